"""In-memory TTL cache for rendered portfolio artifacts."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

DEFAULT_TTL_SECONDS = 60.0


class ArtifactCache(Protocol):
    """Minimal cache interface used by the portfolio service."""

    def get(self, key: str) -> bytes | None:
        """Return a live cached value, or ``None`` on a miss."""

    def set(self, key: str, value: bytes) -> None:
        """Store a value under ``key``."""


@dataclass(frozen=True)
class _CacheEntry:
    created_at: float
    value: bytes


class TTLArtifactCache:
    """
    Thread-safe map from request fingerprint to rendered bytes.

    Entries expire ``ttl_seconds`` after they were written. Expired entries
    are treated as misses and overwritten on the next ``set``; nothing is
    evicted in the background.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0.")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or now >= entry.created_at + self._ttl_seconds:
            return None
        return entry.value

    def set(self, key: str, value: bytes) -> None:
        entry = _CacheEntry(created_at=self._clock(), value=bytes(value))
        with self._lock:
            self._entries[key] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def portfolio_cache_key(symbols: Sequence[str], window: str) -> str:
    """Fingerprint an equal-weight render request."""
    return f"portfolio-{','.join(symbols)}-{window}"


def weighted_portfolio_cache_key(
    symbols: Sequence[str],
    weights: Sequence[float],
    window: str,
) -> str:
    """Fingerprint a weighted render request; weights are rounded to 3 decimals."""
    weight_text = ",".join(f"{weight:.3f}" for weight in weights)
    return f"wport-{','.join(symbols)}-{weight_text}-{window}"
