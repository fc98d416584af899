"""Backtest engine exports."""

from portlab.core.backtest.alignment import align_series
from portlab.core.backtest.engine import run_equal_weight_backtest, run_portfolio_backtest
from portlab.core.backtest.metrics import calculate_max_drawdown, calculate_portfolio_stats
from portlab.core.backtest.parser import ParsedPortfolio, parse_weighted_portfolio
from portlab.core.backtest.types import (
    AlignedTimeline,
    PortfolioConfig,
    PortfolioData,
    PortfolioStats,
    WeightedAsset,
    create_equal_weight_config,
    create_portfolio_config,
)

__all__ = [
    "AlignedTimeline",
    "ParsedPortfolio",
    "PortfolioConfig",
    "PortfolioData",
    "PortfolioStats",
    "WeightedAsset",
    "align_series",
    "calculate_max_drawdown",
    "calculate_portfolio_stats",
    "create_equal_weight_config",
    "create_portfolio_config",
    "parse_weighted_portfolio",
    "run_equal_weight_backtest",
    "run_portfolio_backtest",
]
