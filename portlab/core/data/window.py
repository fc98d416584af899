"""Lookback window resolution and provider range selection."""

from __future__ import annotations

import re
from dataclasses import dataclass

from portlab.core.data.types import PriceSeries
from portlab.core.utils.errors import InvalidInputError

SECONDS_PER_DAY = 24 * 3600
DEFAULT_RESOLUTION_DAYS = 365

# Smallest-first; "max" covers anything longer than the last entry.
RANGE_SPANS: tuple[tuple[str, int], ...] = (
    ("5d", 5),
    ("1mo", 30),
    ("3mo", 90),
    ("6mo", 180),
    ("1y", 365),
    ("2y", 730),
    ("5y", 1825),
    ("10y", 3650),
)
UNIT_DAYS: dict[str, int] = {"d": 1, "w": 7, "m": 30, "y": 365}
UNPARSEABLE_DEFAULTS: dict[str, tuple[str, int]] = {
    "d": ("1mo", 30),
    "w": ("1mo", 21),
    "m": ("1y", 365),
    "y": ("1y", 365),
}

SUPPORTED_INTERVALS: tuple[str, ...] = ("1m", "5m", "15m", "1h", "1d")
MAX_LOOKBACK_DAYS: dict[str, int] = {
    "1m": 30,
    "5m": 90,
    "15m": 180,
    "1h": 730,
    "1d": 30 * 365,
}
DEFAULT_INTERVAL_WINDOWS: dict[str, str] = {
    "1m": "30d",
    "5m": "1m",
    "15m": "3m",
    "1h": "1y",
    "1d": "1y",
}
# Windows accepted by the interval clamp, ordered by lookback length.
_CLAMP_LADDER: tuple[tuple[tuple[str, ...], str, int], ...] = (
    (("1d",), "1d", 1),
    (("5d",), "5d", 5),
    (("30d", "1m"), "1mo", 30),
    (("90d", "3m"), "3mo", 90),
    (("180d", "6m"), "6mo", 180),
    (("1y",), "1y", 365),
    (("2y",), "2y", 730),
    (("5y",), "5y", 1825),
    (("10y",), "10y", 3650),
    (("30y",), "30y", 30 * 365),
)
_INTEGER_PATTERN = re.compile(r"^\+?\d+$")


@dataclass(frozen=True)
class WindowResolution:
    """Provider range code plus the exact day span to keep after fetching."""

    range_code: str
    target_days: int


def _range_for_days(days: int) -> str:
    for code, span in RANGE_SPANS:
        if span >= days:
            return code
    return "max"


def resolve_window(window: str | None) -> WindowResolution:
    """
    Map a lookback token such as ``"3m"`` or ``"2y"`` to a provider range.

    The smallest range code that covers the requested span is chosen so the
    fetch stays as small as possible; the exact span is returned for trimming.
    An empty token means one year. An unparseable count falls back to a
    per-unit default instead of failing.

    Args:
        window: Token of the form ``<int><unit>`` with unit in ``d/w/m/y``.

    Returns:
        Resolved range code and target day count.

    Raises:
        InvalidInputError: If the unit is not one of ``d/w/m/y``.
    """
    token = (window or "").strip().lower()
    if not token:
        return WindowResolution("1y", DEFAULT_RESOLUTION_DAYS)

    unit = token[-1]
    if unit not in UNIT_DAYS:
        raise InvalidInputError(
            f"invalid window format: {token} (use format like 1d, 1w, 1m, 1y)"
        )

    count_text = token[:-1]
    # Fractional or signed counts such as "1.5d" or "-5d" are not truncated
    # to a leading integer; they take the per-unit default like any other
    # unparseable count.
    if not _INTEGER_PATTERN.match(count_text) or int(count_text) <= 0:
        range_code, days = UNPARSEABLE_DEFAULTS[unit]
        return WindowResolution(range_code, days)

    target_days = int(count_text) * UNIT_DAYS[unit]
    return WindowResolution(_range_for_days(target_days), target_days)


def trim_to_target_days(series: PriceSeries, target_days: int) -> PriceSeries:
    """
    Keep only the most recent ``target_days`` of a series.

    The cutoff is measured back from the latest timestamp. Series with no more
    points than ``target_days`` are returned as-is.
    """
    if not series.timestamps or target_days <= 0:
        return series
    if len(series) <= target_days:
        return series

    cutoff = series.timestamps[-1] - target_days * SECONDS_PER_DAY
    start_index = next(
        (index for index, ts in enumerate(series.timestamps) if ts >= cutoff),
        0,
    )
    return PriceSeries(
        symbol=series.symbol,
        timestamps=series.timestamps[start_index:],
        closes=series.closes[start_index:],
    )


def normalize_interval_window(interval: str | None, window: str | None) -> tuple[str, str]:
    """
    Clamp an ad-hoc interval/window request to the provider's lookback ceiling.

    Intraday intervals only have limited history (1m: 30 days, 5m: 90 days,
    15m: 180 days, 1h: 2 years, 1d: 30 years). Longer windows are clamped to
    the ceiling instead of failing.

    Args:
        interval: One of ``1m, 5m, 15m, 1h, 1d``; anything else becomes ``5m``.
        window: Window token such as ``1m`` or ``90d``; empty uses a per-interval default.

    Returns:
        Tuple of ``(interval, range_code)``.
    """
    resolved_interval = (interval or "").strip().lower()
    if resolved_interval not in SUPPORTED_INTERVALS:
        resolved_interval = "5m"

    token = (window or "").strip().lower() or DEFAULT_INTERVAL_WINDOWS[resolved_interval]
    requested = next(
        (rank for rank, (aliases, _, _) in enumerate(_CLAMP_LADDER) if token in aliases),
        2,
    )
    ceiling_days = MAX_LOOKBACK_DAYS[resolved_interval]
    allowed = max(
        rank for rank, (_, _, days) in enumerate(_CLAMP_LADDER) if days <= ceiling_days
    )
    _, range_code, _ = _CLAMP_LADDER[min(requested, allowed)]
    return resolved_interval, range_code
