"""Pydantic models for the two Yahoo Finance payload shapes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from portlab.core.data.types import PriceSeries
from portlab.core.utils.errors import NoDataError


def _closes(values: list[float | None]) -> list[float]:
    """Replace null closes with the ``0.0`` missing sentinel."""
    return [0.0 if value is None else float(value) for value in values]


class ChartQuote(BaseModel):
    """Quote indicator block of the chart endpoint."""

    close: list[float | None] = Field(default_factory=list)


class ChartIndicators(BaseModel):
    """Indicator container of the chart endpoint."""

    quote: list[ChartQuote] = Field(default_factory=list)


class ChartMeta(BaseModel):
    """Subset of chart metadata used for diagnostics."""

    gmtoffset: int | None = None
    timezone: str | None = None


class ChartResult(BaseModel):
    """One symbol result from the chart endpoint."""

    meta: ChartMeta = Field(default_factory=ChartMeta)
    timestamp: list[int] = Field(default_factory=list)
    indicators: ChartIndicators = Field(default_factory=ChartIndicators)


class ChartBody(BaseModel):
    """``chart`` envelope."""

    result: list[ChartResult] | None = None
    error: Any = None


class ChartResponse(BaseModel):
    """Primary schema: ``GET /v8/finance/chart/{symbol}``."""

    chart: ChartBody

    def to_price_series(self, symbol: str) -> PriceSeries:
        """
        Adapt the first result to a ``PriceSeries``.

        Raises:
            NoDataError: If the payload has no result or no quote block.
        """
        results = self.chart.result or []
        if not results or not results[0].indicators.quote:
            raise NoDataError(f"no data for symbol '{symbol}'")
        first = results[0]
        return PriceSeries.from_lists(
            symbol, first.timestamp, _closes(first.indicators.quote[0].close)
        )


class SparkSeries(BaseModel):
    """Reduced series block of the spark endpoint."""

    timestamp: list[int] = Field(default_factory=list)
    close: list[float | None] = Field(default_factory=list)


class SparkResult(BaseModel):
    """One symbol result from the spark endpoint."""

    symbol: str | None = None
    response: list[SparkSeries] = Field(default_factory=list)


class SparkBody(BaseModel):
    """``spark`` envelope."""

    result: list[SparkResult] | None = None
    error: Any = None


class SparkResponse(BaseModel):
    """Fallback schema: ``GET /v7/finance/spark?symbols={SYMBOL}``."""

    spark: SparkBody

    def to_price_series(self, symbol: str) -> PriceSeries:
        """
        Adapt the first spark response block to a ``PriceSeries``.

        Raises:
            NoDataError: If the payload carries no series.
        """
        results = self.spark.result or []
        if not results or not results[0].response:
            raise NoDataError(f"no spark data for symbol '{symbol}'")
        first = results[0].response[0]
        return PriceSeries.from_lists(symbol, first.timestamp, _closes(first.close))
