"""Portfolio backtest workflows shared by the CLI and API."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from portlab.core.backtest.alignment import align_series
from portlab.core.backtest.engine import run_portfolio_backtest
from portlab.core.backtest.metrics import calculate_portfolio_stats
from portlab.core.backtest.parser import parse_weighted_portfolio
from portlab.core.backtest.types import (
    AlignedTimeline,
    PortfolioConfig,
    PortfolioData,
    PortfolioStats,
    create_equal_weight_config,
    create_portfolio_config,
)
from portlab.core.config import AppConfig
from portlab.core.data.base import DataProvider
from portlab.core.data.types import PriceSeries
from portlab.core.data.window import normalize_interval_window, resolve_window, trim_to_target_days
from portlab.core.data.yahoo_provider import YahooFinanceProvider
from portlab.core.services.cache import (
    ArtifactCache,
    TTLArtifactCache,
    portfolio_cache_key,
    weighted_portfolio_cache_key,
)
from portlab.core.utils.errors import DataFetchError, InvalidInputError, NoDataError
from portlab.core.utils.logging import get_logger
from portlab.core.utils.plotting import ChartRenderer, RenderRequest, render_portfolio_chart

PORTFOLIO_INTERVAL = "1d"
_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PortfolioReport:
    """Finished backtest payload handed to renderers and API callers."""

    title: str
    subtitle: str
    config: PortfolioConfig
    timeline: AlignedTimeline
    portfolio: PortfolioData
    stats: PortfolioStats

    def render_request(self) -> RenderRequest:
        """Build the renderer hand-off for this report."""
        return RenderRequest(
            timestamps=self.portfolio.timestamps,
            values=[float(value) for value in self.portfolio.values],
            stats=self.stats,
            title=self.title,
            subtitle=self.subtitle,
        )


def format_stats_subtitle(stats: PortfolioStats) -> str:
    """One-line stats summary used under chart titles and in text replies."""
    return (
        f"Return: {stats.total_return:.2f}% | Sharpe: {stats.sharpe_ratio:.2f} | "
        f"Vol: {stats.volatility:.2f}% | MaxDD: {stats.max_drawdown:.2f}%"
    )


def equal_weight_title(symbols: Sequence[str]) -> str:
    """Title for an equal-weight portfolio."""
    return f"Equal Weighted Portfolio ({', '.join(symbols)})"


def weighted_title(config: PortfolioConfig) -> str:
    """Title listing each position, shorts, and the cash or margin leg."""
    composition: list[str] = []
    for asset in config.assets:
        if asset.weight >= 0:
            composition.append(f"{asset.symbol} {asset.weight * 100:.1f}%")
        else:
            composition.append(f"{asset.symbol} {-asset.weight * 100:.1f}% SHORT")
    if config.cash_weight > 0:
        composition.append(f"Cash {config.cash_weight * 100:.1f}%")
    elif config.cash_weight < 0:
        composition.append(f"Margin {-config.cash_weight * 100:.1f}%")
    return f"Weighted Portfolio ({', '.join(composition)})"


def normalize_symbols(symbols: Sequence[str]) -> list[str]:
    """Upper-case and strip symbols; reject empty lists and duplicates."""
    normalized = [symbol.strip().upper() for symbol in symbols if symbol.strip()]
    if not normalized:
        raise InvalidInputError("no symbols provided")
    seen: set[str] = set()
    for symbol in normalized:
        if symbol in seen:
            raise InvalidInputError(f"duplicate symbol: {symbol}")
        seen.add(symbol)
    return normalized


class PortfolioService:
    """Fetch, clean, align, backtest and render portfolios."""

    def __init__(
        self,
        provider: DataProvider,
        cache: ArtifactCache | None = None,
        renderer: ChartRenderer = render_portfolio_chart,
        initial_value: float = 100.0,
        annualization_factor: int = 252,
        symbol_delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize a portfolio service.

        Args:
            provider: Market data provider returning cleaned series.
            cache: Rendered artifact cache; defaults to a 60 second TTL cache.
            renderer: Chart renderer for finished reports.
            initial_value: Starting portfolio value.
            annualization_factor: Trading days per year for statistics.
            symbol_delay_seconds: Pause between per-symbol fetches.
            sleep: Sleep function used for the inter-symbol pause.
        """
        self._provider = provider
        self._cache: ArtifactCache = cache if cache is not None else TTLArtifactCache()
        self._renderer = renderer
        self._initial_value = initial_value
        self._annualization_factor = annualization_factor
        self._symbol_delay_seconds = symbol_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: AppConfig) -> PortfolioService:
        """Build a service wired to Yahoo Finance from application config."""
        provider = YahooFinanceProvider(
            hosts=config.provider.hosts,
            timeout_seconds=config.provider.timeout_seconds,
            backoff_seconds=config.provider.backoff_seconds,
            user_agent=config.provider.user_agent,
            cleaning=config.cleaning,
        )
        return cls(
            provider=provider,
            cache=TTLArtifactCache(ttl_seconds=config.cache.ttl_seconds),
            initial_value=config.portfolio.initial_value,
            annualization_factor=config.portfolio.annualization_factor,
            symbol_delay_seconds=config.provider.symbol_delay_seconds,
        )

    def fetch_portfolio_assets(
        self,
        symbols: Sequence[str],
        window: str,
        cancel_event: threading.Event | None = None,
    ) -> list[PriceSeries]:
        """
        Fetch daily series for every symbol, trimmed to the requested window.

        Symbols are fetched one at a time with a short pause between them to
        stay under the provider's informal rate limit. Any failing symbol
        aborts the whole request.
        """
        resolution = resolve_window(window)
        assets: list[PriceSeries] = []
        for position, symbol in enumerate(symbols):
            if position > 0 and self._symbol_delay_seconds > 0:
                self._sleep(self._symbol_delay_seconds)
            _LOGGER.info(
                "Fetching %s interval=%s range=%s",
                symbol,
                PORTFOLIO_INTERVAL,
                resolution.range_code,
            )
            try:
                series = self._provider.fetch_series(
                    symbol,
                    PORTFOLIO_INTERVAL,
                    resolution.range_code,
                    cancel_event=cancel_event,
                )
            except DataFetchError as exc:
                raise type(exc)(f"failed to fetch {symbol}: {exc}") from exc
            if not series.timestamps:
                raise NoDataError(f"no data available for {symbol}")
            assets.append(trim_to_target_days(series, resolution.target_days))
        return assets

    def _build_report(
        self,
        config: PortfolioConfig,
        window: str,
        title: str,
        cancel_event: threading.Event | None,
    ) -> PortfolioReport:
        assets = self.fetch_portfolio_assets(config.symbols, window, cancel_event=cancel_event)
        timeline = align_series(assets)
        _LOGGER.info("Aligned %d assets on %d timestamps", len(assets), len(timeline))
        portfolio = run_portfolio_backtest(timeline, config)
        stats = calculate_portfolio_stats(portfolio, self._annualization_factor)
        return PortfolioReport(
            title=title,
            subtitle=format_stats_subtitle(stats),
            config=config,
            timeline=timeline,
            portfolio=portfolio,
            stats=stats,
        )

    def run_equal_weight(
        self,
        symbols: Sequence[str],
        window: str,
        cancel_event: threading.Event | None = None,
    ) -> PortfolioReport:
        """Backtest an equal-weight, fully invested portfolio."""
        normalized = normalize_symbols(symbols)
        config = create_equal_weight_config(normalized, self._initial_value)
        return self._build_report(config, window, equal_weight_title(normalized), cancel_event)

    def run_weighted(
        self,
        text: str,
        cancel_event: threading.Event | None = None,
    ) -> PortfolioReport:
        """Parse a ``SYM W ... WINDOW`` string and backtest the weighted portfolio."""
        parsed = parse_weighted_portfolio(text)
        config = create_portfolio_config(parsed.symbols, parsed.weights, self._initial_value)
        return self._build_report(config, parsed.window, weighted_title(config), cancel_event)

    def _cached_render(self, key: str, build: Callable[[], PortfolioReport]) -> bytes:
        cached = self._cache.get(key)
        if cached is not None:
            _LOGGER.debug("Artifact cache hit for %s", key)
            return cached
        _LOGGER.debug("Artifact cache miss for %s", key)
        image = self._renderer(build().render_request())
        self._cache.set(key, image)
        return image

    def make_equal_weight_chart(
        self,
        symbols: Sequence[str],
        window: str,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Render an equal-weight portfolio chart, reusing recent renders."""
        normalized = normalize_symbols(symbols)
        return self._cached_render(
            portfolio_cache_key(normalized, window),
            lambda: self.run_equal_weight(normalized, window, cancel_event=cancel_event),
        )

    def make_weighted_chart(
        self,
        text: str,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Render a weighted portfolio chart, reusing recent renders."""
        parsed = parse_weighted_portfolio(text)
        return self._cached_render(
            weighted_portfolio_cache_key(parsed.symbols, parsed.weights, parsed.window),
            lambda: self.run_weighted(text, cancel_event=cancel_event),
        )

    def fetch_symbol_series(
        self,
        symbol: str,
        interval: str,
        window: str,
        cancel_event: threading.Event | None = None,
    ) -> PriceSeries:
        """Fetch one cleaned series with the interval's lookback ceiling applied."""
        resolved_interval, range_code = normalize_interval_window(interval, window)
        normalized = normalize_symbols([symbol])[0]
        _LOGGER.info(
            "Fetching %s interval=%s range=%s", normalized, resolved_interval, range_code
        )
        series = self._provider.fetch_series(
            normalized, resolved_interval, range_code, cancel_event=cancel_event
        )
        if not series.timestamps:
            raise NoDataError(f"no data available for {normalized}")
        return series
