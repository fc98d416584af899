"""PortLab command-line interface."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import typer

from portlab.core.config import AppConfig, resolve_config
from portlab.core.services.portfolio_service import PortfolioReport, PortfolioService
from portlab.core.utils.env import load_dotenv
from portlab.core.utils.errors import exit_code_for_exception
from portlab.core.utils.logging import configure_logging, get_logger
from portlab.core.utils.plotting import render_portfolio_chart, save_chart

app = typer.Typer(help="PortLab CLI", no_args_is_help=True)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
    help="Optional YAML configuration file.",
)
WINDOW_OPTION = typer.Option("1y", "--window", "-w", help="Lookback such as 30d, 6w, 3m, 1y.")
CHART_OPTION = typer.Option(
    None,
    "--chart",
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
    help="Write a PNG chart of the portfolio value to this path.",
)
INTERVAL_OPTION = typer.Option("1d", "--interval", "-i", help="Bar interval: 1m, 5m, 15m, 1h, 1d.")
SERIES_WINDOW_OPTION = typer.Option(
    "",
    "--window",
    "-w",
    help="Lookback; empty uses the interval default and long windows are clamped.",
)
SYMBOLS_ARGUMENT = typer.Argument(..., help="Symbols to hold in equal weight.")
PORTFOLIO_ARGUMENT = typer.Argument(
    ...,
    help='Weighted portfolio string, e.g. "SPY 0.6 AAPL 0.3 1y".',
)
SYMBOL_ARGUMENT = typer.Argument(..., help="Symbol to fetch.")


@app.callback()
def callback() -> None:
    """PortLab CLI commands."""


def _build_service(config: AppConfig) -> PortfolioService:
    """Construct the portfolio service for a command run."""
    return PortfolioService.from_config(config)


def _prepare(config_path: Path | None) -> AppConfig:
    load_dotenv(Path(".env"))
    app_config = resolve_config(config_path)
    configure_logging(app_config.log_level)
    return app_config


def _handle_cli_exception(logger_name: str, context: str, exc: Exception) -> None:
    """Log diagnostics and exit with the typed exit code."""
    logger = get_logger(logger_name)
    logger.error("%s failed: %s", context, exc)
    typer.echo(f"error={exc}", err=True)
    raise typer.Exit(code=exit_code_for_exception(exc)) from None


def _print_report(report: PortfolioReport) -> None:
    """Print the report summary in deterministic order."""
    typer.echo(f"title={report.title}")
    typer.echo(f"summary={report.subtitle}")
    typer.echo(f"cash_weight={report.config.cash_weight:.6f}")
    for key, value in report.stats.to_dict().items():
        typer.echo(f"{key}={value:.6f}")
    start = report.portfolio.timestamps[0].date().isoformat()
    end = report.portfolio.timestamps[-1].date().isoformat()
    typer.echo(f"date_range=[{start}, {end}]")


def _write_chart(report: PortfolioReport, chart: Path | None) -> None:
    if chart is None:
        return
    path = save_chart(render_portfolio_chart(report.render_request()), chart)
    typer.echo(f"chart={path}")


@app.command("equal")
def equal(
    symbols: list[str] = SYMBOLS_ARGUMENT,
    window: str = WINDOW_OPTION,
    chart: Path | None = CHART_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Backtest an equal-weight buy-and-hold portfolio."""
    logger_name = __name__
    try:
        service = _build_service(_prepare(config))
        report = service.run_equal_weight(symbols, window)
        _print_report(report)
        _write_chart(report, chart)
    except Exception as exc:
        _handle_cli_exception(logger_name, "Equal-weight backtest", exc)


@app.command("weighted")
def weighted(
    portfolio: str = PORTFOLIO_ARGUMENT,
    chart: Path | None = CHART_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Backtest a custom-weighted portfolio with optional shorts and margin."""
    logger_name = __name__
    try:
        service = _build_service(_prepare(config))
        report = service.run_weighted(portfolio)
        _print_report(report)
        _write_chart(report, chart)
    except Exception as exc:
        _handle_cli_exception(logger_name, "Weighted backtest", exc)


@app.command("series")
def series(
    symbol: str = SYMBOL_ARGUMENT,
    interval: str = INTERVAL_OPTION,
    window: str = SERIES_WINDOW_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Fetch one cleaned close-price series and print a summary."""
    logger_name = __name__
    try:
        service = _build_service(_prepare(config))
        result = service.fetch_symbol_series(symbol, interval, window)
    except Exception as exc:
        _handle_cli_exception(logger_name, "Series fetch", exc)

    first = datetime.fromtimestamp(result.timestamps[0], tz=UTC).isoformat()
    last = datetime.fromtimestamp(result.timestamps[-1], tz=UTC).isoformat()
    typer.echo(f"symbol={result.symbol}")
    typer.echo(f"points={len(result)}")
    typer.echo(f"range=[{first}, {last}]")
    typer.echo(f"last_close={result.closes[-1]:.6f}")


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
