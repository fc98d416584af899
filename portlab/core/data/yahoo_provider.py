"""Yahoo Finance chart/spark provider with host rotation and schema fallback."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import requests
from pydantic import ValidationError

from portlab.core.config import DEFAULT_HOSTS, DEFAULT_USER_AGENT, CleaningConfig
from portlab.core.data.base import DataProvider
from portlab.core.data.cleaning import clean_series
from portlab.core.data.retry import (
    DEFAULT_BACKOFF_SECONDS,
    RETRYABLE_ERRORS,
    RetryPolicy,
    with_fallback,
)
from portlab.core.data.schemas import ChartResponse, SparkResponse
from portlab.core.data.types import PriceSeries
from portlab.core.utils.errors import (
    DataFetchError,
    NoDataError,
    RateLimitedError,
    SchemaError,
    TransportError,
)
from portlab.core.utils.logging import get_logger

RATE_LIMIT_BANNER = "Edge: Too Many Requests"
BODY_PREVIEW_CHARS = 120
_LOGGER = get_logger(__name__)

SchemaT = TypeVar("SchemaT", ChartResponse, SparkResponse)


def _preview(body: str) -> str:
    return body[:BODY_PREVIEW_CHARS]


class YahooFinanceProvider(DataProvider):
    """REST client for Yahoo Finance close-price series."""

    def __init__(
        self,
        hosts: Sequence[str] = DEFAULT_HOSTS,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
        backoff_seconds: Sequence[float] = DEFAULT_BACKOFF_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        cleaning: CleaningConfig | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """
        Initialize a Yahoo Finance provider.

        Args:
            hosts: Equivalent API hosts, tried in order on every attempt.
            session: Optional requests session for dependency injection.
            timeout_seconds: Per-request timeout in seconds.
            backoff_seconds: Delays between full host sweeps.
            user_agent: Browser-like User-Agent header value.
            cleaning: IQR filter parameters applied to every fetched series.
            sleep: Optional sleep function used between attempts.

        Raises:
            ValueError: If no hosts are given or a timing value is invalid.
        """
        if not hosts:
            raise ValueError("At least one provider host is required.")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")
        if any(delay < 0 for delay in backoff_seconds):
            raise ValueError("backoff_seconds values must be >= 0.")

        self._hosts = tuple(hosts)
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._cleaning = cleaning or CleaningConfig()
        policy_kwargs: dict[str, Any] = {"backoff_seconds": tuple(backoff_seconds)}
        if sleep is not None:
            policy_kwargs["sleep"] = sleep
        self._primary_policy = RetryPolicy(**policy_kwargs)
        self._spark_policy = RetryPolicy(retry_on=(*RETRYABLE_ERRORS, NoDataError), **policy_kwargs)

    def _headers(self, symbol: str) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "Accept-Language": "en-US,en;q=0.9",
            "Referer": f"https://finance.yahoo.com/quote/{symbol.upper()}/chart",
        }

    def _get_payload(
        self,
        url: str,
        params: dict[str, str],
        symbol: str,
        schema: type[SchemaT],
    ) -> SchemaT:
        """Perform one GET and classify every failure mode."""
        host_label = url.split("/")[2]
        try:
            response = self._session.get(
                url,
                params=params,
                headers=self._headers(symbol),
                timeout=self._timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"yahoo {host_label} request failed: {exc}") from exc

        body = response.text or ""
        if response.status_code == 429 or body.startswith(RATE_LIMIT_BANNER):
            raise RateLimitedError(f"yahoo {host_label} returned 429: {RATE_LIMIT_BANNER}")
        if response.status_code != 200:
            raise TransportError(
                f"yahoo {host_label} returned {response.status_code}: {_preview(body)}"
            )
        if body.startswith("<") or body.startswith("Edge:"):
            raise SchemaError(f"yahoo returned non-json body: {_preview(body)}")
        try:
            return schema.model_validate_json(body)
        except ValidationError as exc:
            raise SchemaError(
                f"failed to parse yahoo {schema.__name__}: {exc.error_count()} error(s); "
                f"body: {_preview(body)}"
            ) from exc

    def _try_hosts(self, fetch_from_host: Callable[[str], PriceSeries]) -> PriceSeries:
        """Try each host once; raise the last error if all of them fail."""
        last_error: DataFetchError | None = None
        for host in self._hosts:
            try:
                return fetch_from_host(host)
            except (*RETRYABLE_ERRORS, NoDataError) as exc:
                last_error = exc
                _LOGGER.debug("Host %s failed: %s", host, exc)
                if isinstance(exc, NoDataError) and not isinstance(exc, _SparkNoData):
                    raise
        assert last_error is not None
        raise last_error

    def _fetch_chart(self, symbol: str, interval: str, range_code: str, host: str) -> PriceSeries:
        payload = self._get_payload(
            url=f"https://{host}/v8/finance/chart/{symbol}",
            params={
                "range": range_code,
                "interval": interval,
                "includePrePost": "true",
                "events": "div,splits",
            },
            symbol=symbol,
            schema=ChartResponse,
        )
        return payload.to_price_series(symbol)

    def _fetch_spark(self, symbol: str, interval: str, range_code: str, host: str) -> PriceSeries:
        payload = self._get_payload(
            url=f"https://{host}/v7/finance/spark",
            params={"symbols": symbol.upper(), "range": range_code, "interval": interval},
            symbol=symbol,
            schema=SparkResponse,
        )
        try:
            return payload.to_price_series(symbol)
        except NoDataError as exc:
            raise _SparkNoData(str(exc)) from exc

    def fetch_series(
        self,
        symbol: str,
        interval: str,
        range_code: str,
        cancel_event: threading.Event | None = None,
    ) -> PriceSeries:
        """
        Fetch close prices for a symbol, falling back to the spark endpoint.

        Each schema gets up to ``len(backoff_seconds) + 1`` sweeps over all
        hosts. A well-formed but empty chart payload is terminal and is not
        retried. The returned series has already been cleaned.

        Args:
            symbol: Provider symbol identifier.
            interval: Bar interval such as ``1d``.
            range_code: Provider range code such as ``1y``.
            cancel_event: Optional event that aborts pending backoff sleeps.

        Returns:
            Cleaned price series.

        Raises:
            DataFetchError: The last recorded error once both schemas are exhausted.
        """

        def primary() -> PriceSeries:
            return self._primary_policy.run(
                lambda: self._try_hosts(
                    lambda host: self._fetch_chart(symbol, interval, range_code, host)
                ),
                cancel_event=cancel_event,
            )

        def secondary() -> PriceSeries:
            return self._spark_policy.run(
                lambda: self._try_hosts(
                    lambda host: self._fetch_spark(symbol, interval, range_code, host)
                ),
                cancel_event=cancel_event,
            )

        try:
            raw = with_fallback(primary, secondary)
        except _SparkNoData as exc:
            raise NoDataError(str(exc)) from exc
        cleaned = clean_series(
            raw,
            iqr_k=self._cleaning.iqr_k,
            iqr_min_points=self._cleaning.iqr_min_points,
        )
        _LOGGER.debug(
            "Fetched %s interval=%s range=%s: %d raw points, %d after cleaning",
            symbol,
            interval,
            range_code,
            len(raw),
            len(cleaned),
        )
        return cleaned


class _SparkNoData(NoDataError):
    """Empty spark payload; retryable unlike an empty chart payload."""
