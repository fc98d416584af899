"""Test helpers for deterministic portfolio cases."""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping, Sequence
from typing import Any

import requests

from portlab.core.data.base import DataProvider
from portlab.core.data.types import PriceSeries
from portlab.core.utils.errors import DataFetchError

DAY_SECONDS = 86_400
START_TIMESTAMP = 1_704_067_200  # 2024-01-01T00:00:00Z


def daily_timestamps(count: int, start: int = START_TIMESTAMP) -> list[int]:
    """Return ``count`` consecutive daily Unix timestamps."""
    return [start + offset * DAY_SECONDS for offset in range(count)]


def make_price_series(
    symbol: str,
    closes: Sequence[float],
    timestamps: Sequence[int] | None = None,
) -> PriceSeries:
    """Build a series on consecutive days unless timestamps are given."""
    stamps = list(timestamps) if timestamps is not None else daily_timestamps(len(closes))
    return PriceSeries(symbol=symbol, timestamps=tuple(stamps), closes=tuple(closes))


def chart_body(timestamps: Sequence[int], closes: Sequence[float | None]) -> str:
    """Serialize a minimal chart endpoint payload."""
    return json.dumps(
        {
            "chart": {
                "result": [
                    {
                        "meta": {"gmtoffset": -14400, "timezone": "EDT"},
                        "timestamp": list(timestamps),
                        "indicators": {"quote": [{"close": list(closes)}]},
                    }
                ],
                "error": None,
            }
        }
    )


def spark_body(timestamps: Sequence[int], closes: Sequence[float | None]) -> str:
    """Serialize a minimal spark endpoint payload."""
    return json.dumps(
        {
            "spark": {
                "result": [
                    {
                        "symbol": "SPY",
                        "response": [{"timestamp": list(timestamps), "close": list(closes)}],
                    }
                ],
                "error": None,
            }
        }
    )


class FakeResponse:
    """Minimal response stub for provider tests."""

    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Scripted session stub; records every requested URL."""

    def __init__(self, outcomes: list[object]) -> None:
        self._outcomes = list(outcomes)
        self.urls: list[str] = []
        self.params: list[dict[str, str]] = []

    @property
    def calls(self) -> int:
        return len(self.urls)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        """Return next scripted response or raise scripted exception."""
        self.urls.append(url)
        self.params.append(dict(kwargs.get("params") or {}))
        if not self._outcomes:
            raise requests.ConnectionError("No scripted outcomes left.")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        assert isinstance(outcome, FakeResponse)
        return outcome


class FakeProvider(DataProvider):
    """In-memory provider keyed by symbol; exceptions are raised as-is."""

    def __init__(self, series: Mapping[str, PriceSeries | DataFetchError]) -> None:
        self._series = dict(series)
        self.requests: list[tuple[str, str, str]] = []

    def fetch_series(
        self,
        symbol: str,
        interval: str,
        range_code: str,
        cancel_event: threading.Event | None = None,
    ) -> PriceSeries:
        self.requests.append((symbol, interval, range_code))
        outcome = self._series[symbol]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
