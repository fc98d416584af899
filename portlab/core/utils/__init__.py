"""Utility helpers."""

from portlab.core.utils.env import env_overrides, load_dotenv
from portlab.core.utils.errors import (
    AlignmentError,
    ArtifactError,
    ConfigLoadError,
    DataFetchError,
    DataIntegrityError,
    FetchCancelledError,
    InsufficientDataError,
    InvalidInputError,
    NoDataError,
    PortLabError,
    RateLimitedError,
    SchemaError,
    TransportError,
    exit_code_for_exception,
)
from portlab.core.utils.logging import configure_logging, get_logger

__all__ = [
    "AlignmentError",
    "ArtifactError",
    "ConfigLoadError",
    "DataFetchError",
    "DataIntegrityError",
    "FetchCancelledError",
    "InsufficientDataError",
    "InvalidInputError",
    "NoDataError",
    "PortLabError",
    "RateLimitedError",
    "SchemaError",
    "TransportError",
    "configure_logging",
    "env_overrides",
    "exit_code_for_exception",
    "get_logger",
    "load_dotenv",
]
