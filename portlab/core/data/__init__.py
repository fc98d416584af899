"""Market data access, cleaning and window resolution."""

from portlab.core.data.base import DataProvider
from portlab.core.data.cleaning import clean_series, filter_iqr, filter_non_negative
from portlab.core.data.types import PriceSeries
from portlab.core.data.window import (
    WindowResolution,
    normalize_interval_window,
    resolve_window,
    trim_to_target_days,
)
from portlab.core.data.yahoo_provider import YahooFinanceProvider

__all__ = [
    "DataProvider",
    "PriceSeries",
    "WindowResolution",
    "YahooFinanceProvider",
    "clean_series",
    "filter_iqr",
    "filter_non_negative",
    "normalize_interval_window",
    "resolve_window",
    "trim_to_target_days",
]
