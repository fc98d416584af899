"""Pydantic schemas for PortLab API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class HealthResponse(BaseModel):
    """Health endpoint response."""

    status: str = "ok"
    service: str = "portlab-api"


class ErrorResponse(BaseModel):
    """Error payload for typed API failures."""

    error_code: str
    message: str


class EqualWeightRequest(BaseModel):
    """Equal-weight backtest request: symbols plus lookback window."""

    symbols: list[str] = Field(min_length=1)
    window: str = "1y"

    @model_validator(mode="after")
    def validate_symbols(self) -> EqualWeightRequest:
        """Strip blank symbols."""
        self.symbols = [symbol.strip() for symbol in self.symbols if symbol.strip()]
        if not self.symbols:
            raise ValueError("symbols must contain at least one non-empty symbol.")
        return self


class WeightedRequest(BaseModel):
    """Weighted backtest request as the raw ``SYM W ... WINDOW`` string."""

    portfolio: str = Field(min_length=1)


class StatsResponse(BaseModel):
    """Portfolio statistics; return, volatility and drawdown are in percent."""

    initial_value: float
    final_value: float
    total_return: float
    annual_return: float
    volatility: float
    sharpe_ratio: float
    max_drawdown: float
    num_days: int


class PositionResponse(BaseModel):
    """One realized position."""

    symbol: str
    weight: float
    shares: float


class PortfolioResponse(BaseModel):
    """Backtest output for renderers and text summaries."""

    title: str
    subtitle: str
    cash_weight: float
    cash_value: float
    positions: list[PositionResponse]
    timestamps: list[datetime]
    values: list[float]
    stats: StatsResponse
