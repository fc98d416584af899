"""Value types for fetched market data."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class PriceSeries:
    """
    Close prices for one symbol, index-aligned with Unix-second timestamps.

    A close of ``0.0`` marks a missing observation; alignment skips it.
    """

    symbol: str
    timestamps: tuple[int, ...]
    closes: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.timestamps) != len(self.closes):
            raise ValueError(
                f"PriceSeries for '{self.symbol}' has {len(self.timestamps)} timestamps "
                f"but {len(self.closes)} closes."
            )

    def __len__(self) -> int:
        return len(self.timestamps)

    @classmethod
    def from_lists(
        cls,
        symbol: str,
        timestamps: list[int] | tuple[int, ...],
        closes: list[float] | tuple[float, ...],
    ) -> PriceSeries:
        """Build a series, truncating to the shorter of the two sequences."""
        size = min(len(timestamps), len(closes))
        return cls(
            symbol=symbol,
            timestamps=tuple(int(ts) for ts in timestamps[:size]),
            closes=tuple(float(close) for close in closes[:size]),
        )

    def select(self, keep: list[bool] | pd.Series) -> PriceSeries:
        """Return a new series with only the flagged points, pairs kept together."""
        flags = list(keep)
        return PriceSeries(
            symbol=self.symbol,
            timestamps=tuple(ts for ts, flag in zip(self.timestamps, flags, strict=True) if flag),
            closes=tuple(cl for cl, flag in zip(self.closes, flags, strict=True) if flag),
        )

    def to_pandas(self) -> pd.Series:
        """Return closes as a float series indexed by UTC timestamps."""
        index = pd.to_datetime(list(self.timestamps), unit="s", utc=True)
        return pd.Series(list(self.closes), index=index, dtype=float, name=self.symbol)
