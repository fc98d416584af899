"""Portfolio performance statistics."""

from __future__ import annotations

import math
from collections.abc import Sequence

import pandas as pd

from portlab.core.backtest.types import PortfolioData, PortfolioStats
from portlab.core.utils.errors import DataIntegrityError, InsufficientDataError

TRADING_DAYS_PER_YEAR = 252


def calculate_max_drawdown(values: Sequence[float] | pd.Series) -> float:
    """
    Calculate the largest peak-to-trough decline of a value series.

    The running peak starts at the first strictly positive value. Drawdowns
    are only measured while both peak and value are non-negative.

    Args:
        values: Portfolio values in chronological order.

    Returns:
        Max drawdown as a decimal in ``[0, 1]``; ``0.0`` for fewer than two
        values or when no value is positive.
    """
    points = [float(value) for value in values]
    if len(points) < 2:
        return 0.0

    peak = next((value for value in points if value > 0), None)
    if peak is None:
        return 0.0

    max_drawdown = 0.0
    for value in points:
        if value > peak:
            peak = value
        if value >= 0:
            max_drawdown = max(max_drawdown, (peak - value) / peak)
    return max_drawdown


def _ensure_finite(name: str, value: float) -> None:
    if math.isnan(value) or math.isinf(value):
        raise DataIntegrityError(f"invalid {name}: {value}")


def calculate_portfolio_stats(
    portfolio: PortfolioData,
    annualization_factor: int = TRADING_DAYS_PER_YEAR,
) -> PortfolioStats:
    """
    Compute total/annualized return, volatility, Sharpe and max drawdown.

    Conventions:
    - Volatility uses the sample standard deviation (``N - 1``) of daily
      returns, scaled by ``sqrt(annualization_factor)``.
    - The annual return is geometric over
      ``len(returns) / annualization_factor`` years.
    - Sharpe assumes a zero risk-free rate and is ``0`` for zero volatility.

    Args:
        portfolio: Backtest output.
        annualization_factor: Trading days per year.

    Returns:
        Statistics with return, volatility and drawdown in percent.

    Raises:
        InsufficientDataError: With fewer than two values or two returns.
        DataIntegrityError: If any derived statistic is NaN or infinite.
    """
    if annualization_factor <= 0:
        raise ValueError("annualization_factor must be greater than 0.")
    values = portfolio.values
    returns = portfolio.returns
    if len(values) < 2:
        raise InsufficientDataError("insufficient portfolio data")
    if len(returns) == 0:
        raise InsufficientDataError("no return data available")
    if len(returns) < 2:
        raise InsufficientDataError("need at least 2 return observations for statistics")

    initial_value = float(values.iloc[0])
    final_value = float(values.iloc[-1])
    if initial_value == 0 or not math.isfinite(initial_value):
        raise DataIntegrityError(f"invalid total return: initial value is {initial_value}")
    total_return = (final_value - initial_value) / initial_value

    daily_volatility = float(returns.std(ddof=1))
    years_in_period = len(returns) / annualization_factor
    annual_return = 0.0
    if years_in_period > 0 and final_value > 0 and initial_value > 0:
        try:
            annual_return = (final_value / initial_value) ** (1.0 / years_in_period) - 1.0
        except OverflowError as exc:
            raise DataIntegrityError("invalid annual return: inf") from exc

    annual_volatility = daily_volatility * math.sqrt(annualization_factor)
    sharpe_ratio = annual_return / annual_volatility if annual_volatility > 0 else 0.0
    max_drawdown = calculate_max_drawdown(values)

    stats = PortfolioStats(
        initial_value=initial_value,
        final_value=final_value,
        total_return=total_return * 100,
        annual_return=annual_return * 100,
        volatility=annual_volatility * 100,
        sharpe_ratio=sharpe_ratio,
        max_drawdown=max_drawdown * 100,
        num_days=len(values),
    )
    for name in ("total_return", "annual_return", "volatility", "sharpe_ratio", "max_drawdown"):
        _ensure_finite(name.replace("_", " "), getattr(stats, name))
    return stats
