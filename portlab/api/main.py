"""Executable entrypoint for the PortLab FastAPI server."""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from portlab.core.utils.errors import ConfigLoadError

UVICORN_LOG_LEVELS: tuple[str, ...] = ("critical", "error", "warning", "info", "debug", "trace")


@dataclass(frozen=True)
class ServerSettings:
    """Bind address and log level for the API process."""

    host: str = "127.0.0.1"
    port: int = 8030
    log_level: str = "info"


def _validated_port(raw_value: str, source: str) -> int:
    try:
        port = int(raw_value)
    except ValueError as exc:
        raise ConfigLoadError(f"Invalid {source} value: {raw_value}") from exc
    if port < 1 or port > 65535:
        raise ConfigLoadError(f"{source} must be between 1 and 65535.")
    return port


def settings_from_env(environ: Mapping[str, str] | None = None) -> ServerSettings:
    """
    Read ``PORTLAB_API_HOST``, ``PORTLAB_API_PORT`` and ``PORTLAB_API_LOG_LEVEL``.

    Unset variables keep the ``ServerSettings`` defaults.

    Raises:
        ConfigLoadError: If the port or log level is invalid.
    """
    source = os.environ if environ is None else environ
    defaults = ServerSettings()
    log_level = source.get("PORTLAB_API_LOG_LEVEL", defaults.log_level).lower()
    if log_level not in UVICORN_LOG_LEVELS:
        raise ConfigLoadError(f"Invalid PORTLAB_API_LOG_LEVEL value: {log_level}")
    return ServerSettings(
        host=source.get("PORTLAB_API_HOST", defaults.host),
        port=_validated_port(source.get("PORTLAB_API_PORT", str(defaults.port)), "PORTLAB_API_PORT"),
        log_level=log_level,
    )


def parse_server_args(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerSettings:
    """Overlay command-line flags on environment settings."""
    base = settings_from_env(environ)
    parser = argparse.ArgumentParser(description="Run PortLab API server.")
    parser.add_argument("--host", default=base.host, help="Bind host.")
    parser.add_argument("--port", type=int, default=base.port, help="Bind port.")
    parser.add_argument(
        "--log-level",
        default=base.log_level,
        choices=UVICORN_LOG_LEVELS,
        help="Uvicorn log level.",
    )
    args = parser.parse_args(argv)
    if args.port < 1 or args.port > 65535:
        parser.error("--port must be between 1 and 65535.")
    return ServerSettings(host=args.host, port=args.port, log_level=args.log_level)


def main() -> None:
    """Run the PortLab API server."""
    import uvicorn

    settings = parse_server_args()
    uvicorn.run(
        "portlab.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
