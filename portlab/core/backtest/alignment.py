"""Forward-fill alignment of multi-asset price series onto one timeline."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from portlab.core.backtest.types import AlignedTimeline
from portlab.core.data.types import PriceSeries
from portlab.core.utils.errors import AlignmentError, InsufficientDataError


def _closest_price(series: PriceSeries, target: int) -> float | None:
    """
    Latest positive price at or before ``target``, else the first one after it.

    The forward search can pull a later price into an earlier slot; it only
    applies before the asset's first observation on the timeline.
    """
    best_ts: int | None = None
    best_price: float | None = None
    for ts, price in zip(series.timestamps, series.closes, strict=True):
        if price > 0 and ts <= target and (best_ts is None or ts > best_ts):
            best_ts, best_price = ts, price
    if best_price is not None:
        return best_price

    for ts, price in zip(series.timestamps, series.closes, strict=True):
        if price > 0 and ts > target:
            return price
    return None


def _fill_asset(series: PriceSeries, base_timestamps: Sequence[int]) -> list[float]:
    """Fill one asset's prices for every base timestamp."""
    price_by_ts = {
        ts: price for ts, price in zip(series.timestamps, series.closes, strict=True) if price > 0
    }
    filled: list[float] = []
    last_price: float | None = None
    for ts in base_timestamps:
        if ts in price_by_ts:
            last_price = price_by_ts[ts]
        elif last_price is None:
            last_price = _closest_price(series, ts)
            if last_price is None:
                raise AlignmentError(
                    f"no valid price data found for asset {series.symbol} "
                    f"at or around timestamp {ts}"
                )
        filled.append(last_price)
    return filled


def align_series(series_list: Sequence[PriceSeries]) -> AlignedTimeline:
    """
    Align per-asset series onto the timeline of the sparsest series.

    The series with the fewest points sets the timeline, which keeps a 24/7
    asset from multiplying the number of rows when mixed with a market-hours
    asset. Every asset is then filled for each base timestamp: exact matches
    use the actual price, later gaps are forward-filled, and leading gaps take
    the nearest available price.

    Args:
        series_list: Cleaned series, one per requested symbol.

    Returns:
        Timeline with one equal-length, gap-free price column per symbol.

    Raises:
        InsufficientDataError: If no series or an empty base series is given.
        AlignmentError: If an asset has no usable price or a filled column's
            length disagrees with the timeline.
    """
    if not series_list:
        raise InsufficientDataError("no assets provided for alignment")

    base = min(series_list, key=len)
    if not base.timestamps:
        raise InsufficientDataError(f"no timestamps found in base asset {base.symbol}")
    base_timestamps = sorted(base.timestamps)

    columns: dict[str, list[float]] = {}
    for series in series_list:
        filled = _fill_asset(series, base_timestamps)
        if len(filled) != len(base_timestamps):
            raise AlignmentError(
                f"price alignment failed for asset {series.symbol}: "
                f"got {len(filled)} prices, expected {len(base_timestamps)}"
            )
        if series.symbol in columns:
            raise AlignmentError(f"duplicate asset {series.symbol} in alignment input")
        columns[series.symbol] = filled

    times = pd.DatetimeIndex(pd.to_datetime(base_timestamps, unit="s", utc=True), name="time")
    prices = pd.DataFrame(columns, index=times, dtype=float)
    return AlignedTimeline(times=times, prices=prices)
