"""Data structures for portfolio backtests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import pandas as pd


@dataclass(frozen=True)
class WeightedAsset:
    """Target weight for one symbol; negative weights are short positions."""

    symbol: str
    weight: float


@dataclass(frozen=True)
class PortfolioConfig:
    """Static buy-and-hold allocation realized once at the first timestamp."""

    assets: tuple[WeightedAsset, ...]
    cash_weight: float
    initial_value: float

    @property
    def symbols(self) -> list[str]:
        """Configured symbols in allocation order."""
        return [asset.symbol for asset in self.assets]

    @property
    def net_weight(self) -> float:
        """Sum of signed asset weights."""
        return sum(asset.weight for asset in self.assets)

    @property
    def gross_exposure(self) -> float:
        """Sum of absolute asset weights."""
        return sum(abs(asset.weight) for asset in self.assets)


def create_portfolio_config(
    symbols: Sequence[str],
    weights: Sequence[float],
    initial_value: float,
) -> PortfolioConfig:
    """
    Build a config whose cash weight is ``1 - sum(weights)``.

    Cash exceeds 1.0 when short proceeds are held and is negative (margin)
    when net long exposure is above 100%.
    """
    if len(symbols) != len(weights):
        raise ValueError(
            f"symbols and weights length mismatch: {len(symbols)} vs {len(weights)}"
        )
    assets = tuple(
        WeightedAsset(symbol=symbol, weight=float(weight))
        for symbol, weight in zip(symbols, weights, strict=True)
    )
    return PortfolioConfig(
        assets=assets,
        cash_weight=1.0 - sum(asset.weight for asset in assets),
        initial_value=initial_value,
    )


def create_equal_weight_config(symbols: Sequence[str], initial_value: float) -> PortfolioConfig:
    """Build a fully invested ``1/N`` config with no cash."""
    if not symbols:
        return PortfolioConfig(assets=(), cash_weight=1.0, initial_value=initial_value)
    weight = 1.0 / len(symbols)
    return PortfolioConfig(
        assets=tuple(WeightedAsset(symbol=symbol, weight=weight) for symbol in symbols),
        cash_weight=0.0,
        initial_value=initial_value,
    )


@dataclass(frozen=True)
class AlignedTimeline:
    """Unified UTC timeline with one gap-free price column per symbol."""

    times: pd.DatetimeIndex
    prices: pd.DataFrame

    @property
    def symbols(self) -> list[str]:
        """Column order of the price matrix."""
        return [str(column) for column in self.prices.columns]

    def __len__(self) -> int:
        return len(self.times)


@dataclass(frozen=True)
class PortfolioData:
    """Daily portfolio values and simple returns from one backtest."""

    values: pd.Series
    returns: pd.Series
    shares: dict[str, float] = field(default_factory=dict)
    cash_value: float = 0.0

    @property
    def timestamps(self) -> pd.DatetimeIndex:
        """Timestamps of the value series."""
        return pd.DatetimeIndex(self.values.index)


@dataclass(frozen=True)
class PortfolioStats:
    """Summary statistics; return, volatility and drawdown are in percent."""

    initial_value: float
    final_value: float
    total_return: float
    annual_return: float
    volatility: float
    sharpe_ratio: float
    max_drawdown: float
    num_days: int

    def to_dict(self) -> dict[str, float]:
        """Return metrics in deterministic order."""
        return {
            "initial_value": self.initial_value,
            "final_value": self.final_value,
            "total_return": self.total_return,
            "annual_return": self.annual_return,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "num_days": float(self.num_days),
        }
