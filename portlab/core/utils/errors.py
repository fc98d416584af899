"""Domain-specific error taxonomy for PortLab."""

from __future__ import annotations


class PortLabError(Exception):
    """Base PortLab error with CLI exit-code metadata."""

    exit_code: int = 1
    error_code: str = "portlab_error"


class ConfigLoadError(PortLabError, ValueError):
    """Configuration loading/validation error."""

    exit_code = 2
    error_code = "config_error"


class InvalidInputError(PortLabError, ValueError):
    """User-supplied window, weight, or symbol input is invalid."""

    exit_code = 3
    error_code = "invalid_input"


class DataFetchError(PortLabError, ConnectionError):
    """Upstream market-data fetch failure."""

    exit_code = 4
    error_code = "data_fetch_error"


class TransportError(DataFetchError):
    """Network failure or unexpected HTTP status from the provider."""

    error_code = "transport_error"


class RateLimitedError(DataFetchError):
    """Provider answered with HTTP 429 or its rate-limit banner."""

    error_code = "rate_limited"


class SchemaError(DataFetchError):
    """Provider body could not be parsed into a known payload shape."""

    error_code = "schema_error"


class NoDataError(DataFetchError):
    """Provider returned a well-formed but empty result."""

    error_code = "no_data"


class FetchCancelledError(DataFetchError):
    """A fetch was cancelled while waiting between retry attempts."""

    error_code = "fetch_cancelled"


class DataIntegrityError(PortLabError, ValueError):
    """NaN/Inf/negative values or inconsistent shapes found mid-computation."""

    exit_code = 5
    error_code = "data_integrity_error"


class AlignmentError(DataIntegrityError):
    """Multi-asset timeline alignment failure."""

    error_code = "alignment_error"


class InsufficientDataError(PortLabError, ValueError):
    """Too few points or returns to compute a result."""

    exit_code = 6
    error_code = "insufficient_data"


class ArtifactError(PortLabError, RuntimeError):
    """Chart render/write error."""

    exit_code = 7
    error_code = "artifact_error"


def exit_code_for_exception(exc: Exception) -> int:
    """
    Resolve process exit code for an exception.

    Args:
        exc: Raised exception.

    Returns:
        Integer process exit code.
    """
    return int(getattr(exc, "exit_code", 1))
