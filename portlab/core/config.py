"""Configuration models and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from portlab.core.utils.env import env_overrides
from portlab.core.utils.errors import ConfigLoadError
from portlab.core.utils.logging import normalize_level

DEFAULT_HOSTS: tuple[str, str] = ("query1.finance.yahoo.com", "query2.finance.yahoo.com")
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15"
)


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ProviderConfig(BaseModel):
    """Market-data provider settings."""

    hosts: list[str] = Field(default_factory=lambda: list(DEFAULT_HOSTS))
    timeout_seconds: float = 10.0
    backoff_seconds: list[float] = Field(default_factory=lambda: [0.2, 0.5, 1.0])
    user_agent: str = DEFAULT_USER_AGENT
    symbol_delay_seconds: float = 0.1

    @field_validator("hosts", "backoff_seconds", mode="before")
    @classmethod
    def split_comma_separated(cls, value: Any) -> Any:
        """Accept comma-separated strings from environment overrides."""
        return _split_csv(value)

    @model_validator(mode="after")
    def validate_provider(self) -> ProviderConfig:
        """Ensure hosts and timing values are usable."""
        normalized_hosts = [host.strip() for host in self.hosts if host.strip()]
        if not normalized_hosts:
            raise ValueError("provider.hosts must contain at least one host.")
        self.hosts = normalized_hosts
        if self.timeout_seconds <= 0:
            raise ValueError("provider.timeout_seconds must be > 0.")
        if any(delay < 0 for delay in self.backoff_seconds):
            raise ValueError("provider.backoff_seconds values must be >= 0.")
        if self.symbol_delay_seconds < 0:
            raise ValueError("provider.symbol_delay_seconds must be >= 0.")
        return self


class CleaningConfig(BaseModel):
    """Series cleaning settings."""

    iqr_k: float = 1.5
    iqr_min_points: int = 20

    @model_validator(mode="after")
    def validate_cleaning(self) -> CleaningConfig:
        """Validate IQR filter parameters."""
        if self.iqr_k <= 0:
            raise ValueError("cleaning.iqr_k must be > 0.")
        if self.iqr_min_points < 2:
            raise ValueError("cleaning.iqr_min_points must be >= 2.")
        return self


class CacheConfig(BaseModel):
    """Rendered artifact cache settings."""

    ttl_seconds: float = 60.0

    @model_validator(mode="after")
    def validate_cache(self) -> CacheConfig:
        """Validate cache TTL."""
        if self.ttl_seconds < 0:
            raise ValueError("cache.ttl_seconds must be >= 0.")
        return self


class PortfolioSettings(BaseModel):
    """Backtest defaults."""

    initial_value: float = 100.0
    annualization_factor: int = 252

    @model_validator(mode="after")
    def validate_portfolio(self) -> PortfolioSettings:
        """Validate backtest defaults."""
        if self.initial_value <= 0:
            raise ValueError("portfolio.initial_value must be > 0.")
        if self.annualization_factor <= 0:
            raise ValueError("portfolio.annualization_factor must be > 0.")
        return self


class AppConfig(BaseModel):
    """Top-level application configuration."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    portfolio: PortfolioSettings = Field(default_factory=PortfolioSettings)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize the level name to upper case."""
        try:
            return normalize_level(value)
        except ConfigLoadError as exc:
            raise ValueError(str(exc)) from exc


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge section overrides into raw config data."""
    merged = dict(base)
    for section, values in overrides.items():
        current = merged.get(section)
        if isinstance(current, dict) and isinstance(values, dict):
            merged[section] = {**current, **values}
        else:
            merged[section] = values
    return merged


def _build_config(raw_config: dict[str, Any]) -> AppConfig:
    try:
        return AppConfig.model_validate(raw_config)
    except Exception as exc:
        raise ConfigLoadError(f"Config validation failed: {exc}") from exc


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    resolved_path = path.expanduser().resolve()
    if not resolved_path.exists():
        raise ConfigLoadError(f"Config file not found: {resolved_path}")
    if not resolved_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {resolved_path}")
    try:
        with resolved_path.open("r", encoding="utf-8") as handle:
            raw_config: Any = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigLoadError(f"Failed to read config file {resolved_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in config file {resolved_path}: {exc}") from exc
    if not isinstance(raw_config, dict):
        raise ConfigLoadError("YAML root must be a mapping/object.")
    return raw_config


def load_config(path: Path) -> AppConfig:
    """
    Load and validate application config from YAML.

    Args:
        path: YAML config file path.

    Returns:
        Validated application config.
    """
    return _build_config(_read_yaml_mapping(path))


def load_config_from_yaml_text(yaml_text: str) -> AppConfig:
    """
    Load and validate config from YAML text.

    Args:
        yaml_text: YAML string.

    Returns:
        Validated application config.
    """
    try:
        raw_config: Any = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML text: {exc}") from exc
    if not isinstance(raw_config, dict):
        raise ConfigLoadError("YAML root must be a mapping/object.")
    return _build_config(raw_config)


def resolve_config(path: Path | None = None, environ: dict[str, str] | None = None) -> AppConfig:
    """
    Build the effective config: YAML file (optional) plus ``PORTLAB_*`` overrides.

    Args:
        path: Optional YAML config path.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        Validated application config.
    """
    raw_config = _read_yaml_mapping(path) if path is not None else {}
    overrides = env_overrides(environ)
    log_level = overrides.pop("log", {}).get("level")
    merged = _merge(raw_config, overrides)
    if log_level:
        merged["log_level"] = log_level
    return _build_config(merged)


def dump_config_to_yaml(config: AppConfig) -> str:
    """Serialize config to canonical YAML."""
    payload = config.model_dump(mode="json")
    return yaml.safe_dump(payload, sort_keys=True, default_flow_style=False)
