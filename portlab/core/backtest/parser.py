"""Parser for ``SYMBOL WEIGHT ... WINDOW`` portfolio strings."""

from __future__ import annotations

import math
from dataclasses import dataclass

from portlab.core.utils.errors import InvalidInputError

COMMAND_PREFIX = "/port"
MAX_LONG_WEIGHT = 1.0
MAX_SHORT_WEIGHT = -1.0
MAX_GROSS_EXPOSURE = 3.0


@dataclass(frozen=True)
class ParsedPortfolio:
    """Validated symbols and weights from a portfolio string."""

    symbols: tuple[str, ...]
    weights: tuple[float, ...]
    window: str
    cash_weight: float
    gross_exposure: float


def _parse_weight(token: str, symbol: str) -> float:
    try:
        weight = float(token)
    except ValueError as exc:
        raise InvalidInputError(f"invalid weight '{token}' for symbol {symbol}") from exc
    if not math.isfinite(weight):
        raise InvalidInputError(f"invalid weight '{token}' for symbol {symbol}: not a real number")
    if weight > MAX_LONG_WEIGHT:
        raise InvalidInputError(f"long weight {weight:g} for symbol {symbol} exceeds 1.0")
    if weight < MAX_SHORT_WEIGHT:
        raise InvalidInputError(
            f"short weight {weight:g} for symbol {symbol} exceeds -1.0 (max 100% short)"
        )
    return weight


def parse_weighted_portfolio(text: str) -> ParsedPortfolio:
    """
    Parse ``SYM1 W1 SYM2 W2 ... WINDOW`` into validated weights.

    Checks, in order: at least one pair plus a window; every symbol has a
    weight; each weight is a real number in ``[-1, 1]``; no duplicate symbols
    (case-insensitive); gross exposure ``sum(|w|) <= 3.0``. Each asset is
    capped on its own and the 300% gross ceiling applies on top of that.

    Args:
        text: Raw token string, optionally prefixed with ``/port``.

    Returns:
        Parsed portfolio with ``cash_weight = 1 - sum(weights)``.

    Raises:
        InvalidInputError: Naming the violated constraint and token.
    """
    stripped = text.strip()
    if stripped.startswith(COMMAND_PREFIX):
        stripped = stripped[len(COMMAND_PREFIX) :].strip()

    parts = stripped.split()
    if len(parts) < 3:
        raise InvalidInputError("insufficient arguments: need at least symbol weight window")

    window = parts[-1]
    pairs = parts[:-1]
    if len(pairs) % 2 != 0:
        raise InvalidInputError("invalid format: each symbol must have a weight")

    symbols: list[str] = []
    weights: list[float] = []
    for position in range(0, len(pairs), 2):
        symbol = pairs[position].strip().upper()
        if not symbol:
            raise InvalidInputError(f"empty symbol at position {position // 2 + 1}")
        weights.append(_parse_weight(pairs[position + 1].strip(), symbol))
        symbols.append(symbol)

    seen: set[str] = set()
    for symbol in symbols:
        if symbol in seen:
            raise InvalidInputError(f"duplicate symbol: {symbol}")
        seen.add(symbol)

    gross_exposure = sum(abs(weight) for weight in weights)
    if gross_exposure > MAX_GROSS_EXPOSURE:
        raise InvalidInputError(
            f"total gross exposure {gross_exposure:.3f} exceeds 3.0 (300% leverage limit)"
        )

    return ParsedPortfolio(
        symbols=tuple(symbols),
        weights=tuple(weights),
        window=window,
        cash_weight=1.0 - sum(weights),
        gross_exposure=gross_exposure,
    )
