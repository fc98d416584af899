"""Abstract interfaces for market data providers."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from portlab.core.data.types import PriceSeries


class DataProvider(ABC):
    """Abstract interface for close-price series providers."""

    @abstractmethod
    def fetch_series(
        self,
        symbol: str,
        interval: str,
        range_code: str,
        cancel_event: threading.Event | None = None,
    ) -> PriceSeries:
        """
        Fetch a cleaned close-price series for a symbol.

        Args:
            symbol: Provider symbol identifier.
            interval: Bar interval such as ``1d`` or ``5m``.
            range_code: Provider range code such as ``1y``.
            cancel_event: Optional event that aborts pending retries once set.

        Returns:
            Cleaned series with ascending timestamps.
        """
