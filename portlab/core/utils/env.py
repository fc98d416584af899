"""Environment helpers: ``.env`` loading and ``PORTLAB_*`` config overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from portlab.core.utils.errors import ConfigLoadError

ENV_PREFIX = "PORTLAB_"
NESTED_SEPARATOR = "__"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def load_dotenv(path: Path = Path(".env"), override: bool = False) -> dict[str, str]:
    """
    Load ``KEY=VALUE`` lines from a dotenv file into ``os.environ``.

    Blank lines, ``#`` comments and ``export`` prefixes are accepted.

    Args:
        path: Dotenv file path. A missing file is not an error.
        override: Whether existing environment variables are replaced.

    Returns:
        Variables set by this call.

    Raises:
        ConfigLoadError: If a non-comment line has no ``=``.
    """
    resolved_path = path.expanduser().resolve()
    if not resolved_path.is_file():
        return {}

    loaded: dict[str, str] = {}
    lines = resolved_path.read_text(encoding="utf-8").splitlines()
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").strip()
        key, separator, raw_value = line.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ConfigLoadError(f"Expected KEY=VALUE in {resolved_path} line {line_number}: {raw_line!r}")
        if key in os.environ and not override:
            continue
        os.environ[key] = _unquote(raw_value.strip())
        loaded[key] = os.environ[key]
    return loaded


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Collect ``PORTLAB_SECTION__FIELD=value`` variables as a nested mapping.

    ``PORTLAB_CACHE__TTL_SECONDS=30`` becomes ``{"cache": {"ttl_seconds": "30"}}``.
    Values stay raw strings. List-typed fields such as ``PORTLAB_PROVIDER__HOSTS``
    split their own comma-separated text during validation.

    Args:
        environ: Source mapping, defaults to ``os.environ``.

    Returns:
        Nested override mapping suitable for merging into raw config data.
    """
    source = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for name, value in source.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = name[len(ENV_PREFIX) :].lower().split(NESTED_SEPARATOR)
        if len(path) != 2 or not all(path):
            continue
        section, field_name = path
        overrides.setdefault(section, {})[field_name] = value
    return overrides
