"""FastAPI application for PortLab portfolio backtests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from portlab.api.schemas import (
    EqualWeightRequest,
    ErrorResponse,
    HealthResponse,
    PortfolioResponse,
    PositionResponse,
    StatsResponse,
    WeightedRequest,
)
from portlab.core.config import resolve_config
from portlab.core.services.portfolio_service import PortfolioReport, PortfolioService
from portlab.core.utils.env import load_dotenv
from portlab.core.utils.errors import (
    ConfigLoadError,
    DataFetchError,
    DataIntegrityError,
    InsufficientDataError,
    InvalidInputError,
    NoDataError,
    PortLabError,
)
from portlab.core.utils.logging import configure_logging, get_logger

_LOGGER_NAME = "portlab.api.app"


def _http_status_for_portlab_error(exc: PortLabError) -> int:
    """Map typed domain exceptions to HTTP status codes."""
    if isinstance(exc, (ConfigLoadError, InvalidInputError)):
        return 400
    if isinstance(exc, NoDataError):
        return 404
    if isinstance(exc, DataFetchError):
        return 502
    if isinstance(exc, (DataIntegrityError, InsufficientDataError)):
        return 422
    return 500


def _to_response(report: PortfolioReport) -> PortfolioResponse:
    """Convert a service report into the API payload."""
    shares = report.portfolio.shares
    return PortfolioResponse(
        title=report.title,
        subtitle=report.subtitle,
        cash_weight=report.config.cash_weight,
        cash_value=report.portfolio.cash_value,
        positions=[
            PositionResponse(
                symbol=asset.symbol,
                weight=asset.weight,
                shares=shares.get(asset.symbol, 0.0),
            )
            for asset in report.config.assets
        ],
        timestamps=[stamp.to_pydatetime() for stamp in report.portfolio.timestamps],
        values=[float(value) for value in report.portfolio.values],
        stats=StatsResponse(**vars(report.stats)),
    )


def create_app(service: PortfolioService | None = None) -> FastAPI:
    """
    Build and return the PortLab FastAPI app.

    Args:
        service: Optional pre-built service; defaults to one built from
            ``PORTLAB_*`` environment configuration.

    Returns:
        Configured FastAPI instance.
    """
    load_dotenv(Path(".env"))
    config = resolve_config()
    configure_logging(config.log_level)
    portfolio_service = service or PortfolioService.from_config(config)

    app = FastAPI(
        title="PortLab API",
        version="0.1.0",
        description="Portfolio backtests over Yahoo Finance daily closes.",
    )
    logger = get_logger(_LOGGER_NAME)
    logger.info("PortLab API startup complete.")

    @app.exception_handler(PortLabError)
    async def _handle_portlab_error(_: Any, exc: PortLabError) -> JSONResponse:
        """Render typed domain errors as JSON responses."""
        get_logger(_LOGGER_NAME).error("PortLab API error: %s", exc)
        payload = ErrorResponse(error_code=exc.error_code, message=str(exc))
        return JSONResponse(
            status_code=_http_status_for_portlab_error(exc),
            content=payload.model_dump(),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(_: Any, exc: Exception) -> JSONResponse:
        """Render unknown errors as deterministic API payloads."""
        get_logger(_LOGGER_NAME).exception("Unexpected PortLab API error: %s", exc)
        payload = ErrorResponse(error_code="internal_error", message="Internal server error.")
        return JSONResponse(status_code=500, content=payload.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Return API health metadata."""
        return HealthResponse()

    @app.post("/portfolios/equal", response_model=PortfolioResponse)
    def equal_weight(request: EqualWeightRequest) -> PortfolioResponse:
        """Backtest an equal-weight portfolio."""
        report = portfolio_service.run_equal_weight(request.symbols, request.window)
        return _to_response(report)

    @app.post("/portfolios/weighted", response_model=PortfolioResponse)
    def weighted(request: WeightedRequest) -> PortfolioResponse:
        """Backtest a weighted portfolio from its raw token string."""
        report = portfolio_service.run_weighted(request.portfolio)
        return _to_response(report)

    @app.post("/portfolios/equal/chart")
    def equal_weight_chart(request: EqualWeightRequest) -> Response:
        """Render an equal-weight portfolio chart as PNG."""
        image = portfolio_service.make_equal_weight_chart(request.symbols, request.window)
        return Response(content=image, media_type="image/png")

    @app.post("/portfolios/weighted/chart")
    def weighted_chart(request: WeightedRequest) -> Response:
        """Render a weighted portfolio chart as PNG."""
        image = portfolio_service.make_weighted_chart(request.portfolio)
        return Response(content=image, media_type="image/png")

    return app
