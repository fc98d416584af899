"""Composable retry and fallback helpers for provider requests."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from portlab.core.utils.errors import (
    DataFetchError,
    FetchCancelledError,
    RateLimitedError,
    SchemaError,
    TransportError,
)
from portlab.core.utils.logging import get_logger

T = TypeVar("T")

DEFAULT_BACKOFF_SECONDS: tuple[float, ...] = (0.2, 0.5, 1.0)
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (TransportError, RateLimitedError, SchemaError)
_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with a fixed backoff ladder.

    The callable runs once, then once more after each backoff step, so a
    ladder of three delays gives four attempts in total.
    """

    backoff_seconds: Sequence[float] = DEFAULT_BACKOFF_SECONDS
    retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first."""
        return len(self.backoff_seconds) + 1

    def _wait(self, delay: float, cancel_event: threading.Event | None) -> None:
        if cancel_event is None:
            if delay > 0:
                self.sleep(delay)
            return
        if cancel_event.wait(delay):
            raise FetchCancelledError("Fetch cancelled during retry backoff.")

    def run(self, fn: Callable[[], T], cancel_event: threading.Event | None = None) -> T:
        """
        Call ``fn`` until it succeeds or the attempts are exhausted.

        Only exceptions listed in ``retry_on`` are retried; anything else
        propagates immediately.

        Args:
            fn: Zero-argument callable performing one attempt.
            cancel_event: Optional event; once set, pending backoff is aborted.

        Returns:
            Value returned by the first successful attempt.

        Raises:
            FetchCancelledError: If ``cancel_event`` is set before or while waiting.
            Exception: The last retryable error once attempts are exhausted.
        """
        last_error: Exception | None = None
        for attempt in range(self.max_attempts):
            if cancel_event is not None and cancel_event.is_set():
                raise FetchCancelledError("Fetch cancelled before attempt.")
            try:
                return fn()
            except self.retry_on as exc:
                last_error = exc
                _LOGGER.debug("Attempt %d/%d failed: %s", attempt + 1, self.max_attempts, exc)
            if attempt < len(self.backoff_seconds):
                self._wait(self.backoff_seconds[attempt], cancel_event)

        assert last_error is not None
        _LOGGER.warning("Giving up after %d attempts: %s", self.max_attempts, last_error)
        raise last_error


def with_fallback(
    primary: Callable[[], T],
    secondary: Callable[[], T],
    fallback_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
) -> T:
    """
    Run ``primary``; on a fallback-eligible error run ``secondary`` instead.

    If the secondary also fails its own error is raised, chained to the
    primary failure.
    """
    try:
        return primary()
    except fallback_on as primary_error:
        _LOGGER.warning("Primary source failed (%s); trying fallback", primary_error)
        try:
            return secondary()
        except DataFetchError as secondary_error:
            raise secondary_error from primary_error
