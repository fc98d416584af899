"""Logging setup for PortLab processes."""

from __future__ import annotations

import logging

from portlab.core.utils.errors import ConfigLoadError

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
LEVEL_NAMES: tuple[str, ...] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
# Chart rendering and HTTP client chatter would drown out retry diagnostics.
_QUIET_LOGGERS: tuple[str, ...] = ("matplotlib", "PIL", "urllib3", "httpx", "httpcore")


def normalize_level(level: str) -> str:
    """
    Upper-case a level name and check it is one PortLab accepts.

    Raises:
        ConfigLoadError: If the name is not a standard logging level.
    """
    name = level.strip().upper()
    if name not in LEVEL_NAMES:
        raise ConfigLoadError(f"Invalid log level: {level} (expected one of {', '.join(LEVEL_NAMES)})")
    return name


def configure_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging for a CLI run or API process.

    Third-party plotting and HTTP loggers are held at ``WARNING`` whatever
    the requested level.

    Args:
        level: Level name such as ``INFO`` or ``DEBUG``.
    """
    logging.basicConfig(
        level=logging.getLevelName(normalize_level(level)),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger.

    Args:
        name: Dotted logger name, usually a module path under ``portlab``.

    Returns:
        Standard library logger.
    """
    return logging.getLogger(name)
