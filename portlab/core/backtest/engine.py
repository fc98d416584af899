"""Static buy-and-hold portfolio backtest on aligned daily closes."""

from __future__ import annotations

import numpy as np
import pandas as pd

from portlab.core.backtest.types import (
    AlignedTimeline,
    PortfolioConfig,
    PortfolioData,
    create_equal_weight_config,
)
from portlab.core.utils.errors import DataIntegrityError, InsufficientDataError, InvalidInputError


def _validate_timeline(timeline: AlignedTimeline, config: PortfolioConfig) -> pd.DataFrame:
    """Check shapes and initial prices; return prices in config asset order."""
    num_days = len(timeline.times)
    if num_days == 0:
        raise InsufficientDataError("no timestamps provided")
    if len(config.assets) != len(timeline.prices.columns):
        raise DataIntegrityError(
            f"config assets ({len(config.assets)}) don't match price data "
            f"({len(timeline.prices.columns)})"
        )

    missing = [symbol for symbol in config.symbols if symbol not in timeline.prices.columns]
    if missing:
        raise DataIntegrityError(f"no aligned prices for configured assets: {missing}")

    prices = timeline.prices.loc[:, config.symbols]
    if len(prices.index) != num_days:
        raise DataIntegrityError(
            f"price matrix has {len(prices.index)} rows, expected {num_days}"
        )
    if num_days < 2:
        raise InsufficientDataError("need at least 2 data points for portfolio calculation")

    for index, symbol in enumerate(config.symbols):
        first_price = float(prices.iloc[0, index])
        if not np.isfinite(first_price):
            raise DataIntegrityError(
                f"invalid initial price for asset {index} ({symbol}): {first_price} (NaN or Inf)"
            )
        if first_price <= 0:
            raise DataIntegrityError(
                f"invalid initial price for asset {index} ({symbol}): {first_price}"
            )
    return prices.astype(float)


def _raise_on_bad_prices(prices: pd.DataFrame) -> None:
    """Raise for the first negative, NaN or infinite price, naming asset and day."""
    matrix = prices.to_numpy(dtype=float)
    bad = ~np.isfinite(matrix) | (matrix < 0)
    if not bad.any():
        return
    day, asset_index = (int(value) for value in np.argwhere(bad)[0])
    price = matrix[day, asset_index]
    reason = " (NaN or Inf)" if not np.isfinite(price) else ""
    raise DataIntegrityError(
        f"invalid price for asset {asset_index} ({prices.columns[asset_index]}) "
        f"on day {day}: {price}{reason}"
    )


def _raise_on_non_finite(series: pd.Series, label: str) -> None:
    bad = ~np.isfinite(series.to_numpy(dtype=float))
    if bad.any():
        position = int(np.argmax(bad))
        raise DataIntegrityError(
            f"invalid {label} at position {position}: {series.iloc[position]}"
        )


def run_portfolio_backtest(timeline: AlignedTimeline, config: PortfolioConfig) -> PortfolioData:
    """
    Run a static buy-and-hold backtest with optional shorts and cash/margin.

    Execution model:
    - Share counts are fixed at the first timestamp:
      ``shares = initial_value * weight / price[0]``. A negative weight gives
      negative shares.
    - Cash is ``initial_value * cash_weight``. It is held flat and never
      rebalanced.
    - ``value[t] = cash + sum(shares * price[t])``.
    - ``return[t] = value[t] / value[t-1] - 1`` while ``value[t-1] > 0``,
      otherwise ``0``.

    A zero price is valid and contributes nothing. A negative, NaN or
    infinite price anywhere aborts the run.

    Args:
        timeline: Aligned timeline with one price column per configured symbol.
        config: Portfolio allocation.

    Returns:
        Portfolio value and return series plus realized share counts.

    Raises:
        InsufficientDataError: If the timeline has fewer than two points.
        InvalidInputError: If ``initial_value`` is not a positive finite number.
        DataIntegrityError: If shapes disagree or any value is invalid.
    """
    if not np.isfinite(config.initial_value) or config.initial_value <= 0:
        raise InvalidInputError(f"initial value must be positive and finite, got {config.initial_value}")
    prices = _validate_timeline(timeline, config)
    _raise_on_bad_prices(prices)

    initial_value = float(config.initial_value)
    cash_value = initial_value * config.cash_weight
    initial_prices = prices.iloc[0]
    shares = pd.Series(
        [initial_value * asset.weight for asset in config.assets],
        index=prices.columns,
        dtype=float,
    ) / initial_prices
    _raise_on_non_finite(shares, "share calculation")

    values = prices.mul(shares, axis=1).sum(axis=1) + cash_value
    values.iloc[0] = initial_value
    values.name = "value"
    _raise_on_non_finite(values, "portfolio value")

    previous = values.shift(1).iloc[1:]
    current = values.iloc[1:]
    returns = ((current - previous) / previous).where(previous > 0, 0.0)
    returns.name = "return"
    _raise_on_non_finite(returns, "daily return")

    return PortfolioData(
        values=values.astype(float),
        returns=returns.astype(float),
        shares={str(symbol): float(count) for symbol, count in shares.items()},
        cash_value=cash_value,
    )


def run_equal_weight_backtest(
    timeline: AlignedTimeline,
    initial_value: float = 100.0,
) -> PortfolioData:
    """Run the backtest with weight ``1/N`` per timeline asset and no cash."""
    if timeline.prices.columns.empty:
        raise InsufficientDataError("no asset data provided")
    config = create_equal_weight_config(timeline.symbols, initial_value)
    return run_portfolio_backtest(timeline, config)
