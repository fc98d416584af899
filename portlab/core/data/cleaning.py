"""Structural and statistical cleaning for fetched close-price series."""

from __future__ import annotations

import pandas as pd

from portlab.core.data.types import PriceSeries
from portlab.core.utils.logging import get_logger

DEFAULT_IQR_K = 1.5
DEFAULT_IQR_MIN_POINTS = 20
_LOGGER = get_logger(__name__)


def filter_non_negative(series: PriceSeries) -> PriceSeries:
    """
    Drop points with a negative close.

    Zero closes are kept; they mark missing observations for alignment.
    """
    return series.select([close >= 0 for close in series.closes])


def filter_iqr(
    series: PriceSeries,
    k: float = DEFAULT_IQR_K,
    min_points: int = DEFAULT_IQR_MIN_POINTS,
) -> PriceSeries:
    """
    Drop closes outside ``[Q1 - k*IQR, Q3 + k*IQR]``.

    Quartiles use linear interpolation between order statistics. The filter
    is skipped for series shorter than ``min_points``, for a degenerate
    ``IQR <= 0``, and whenever filtering would leave fewer than
    ``min_points // 2`` points.

    Args:
        series: Input series.
        k: Fence multiplier.
        min_points: Minimum series length before filtering applies.

    Returns:
        Filtered series, or the input unchanged when a guard trips.
    """
    if len(series) < min_points:
        return series

    closes = pd.Series(series.closes, dtype=float)
    q1 = float(closes.quantile(0.25, interpolation="linear"))
    q3 = float(closes.quantile(0.75, interpolation="linear"))
    iqr = q3 - q1
    if iqr <= 0:
        return series

    lower = q1 - k * iqr
    upper = q3 + k * iqr
    keep = closes.between(lower, upper, inclusive="both")
    kept = int(keep.sum())
    if kept < min_points // 2:
        _LOGGER.debug(
            "IQR filter for %s would keep %d of %d points; leaving series unchanged",
            series.symbol,
            kept,
            len(series),
        )
        return series

    if kept < len(series):
        _LOGGER.debug(
            "IQR filter removed %d outlier(s) from %s (bounds %.6f..%.6f)",
            len(series) - kept,
            series.symbol,
            lower,
            upper,
        )
    return series.select(keep.tolist())


def clean_series(
    series: PriceSeries,
    iqr_k: float = DEFAULT_IQR_K,
    iqr_min_points: int = DEFAULT_IQR_MIN_POINTS,
) -> PriceSeries:
    """Apply the non-negative filter followed by the IQR outlier filter."""
    return filter_iqr(filter_non_negative(series), k=iqr_k, min_points=iqr_min_points)
