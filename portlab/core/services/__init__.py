"""Service-layer workflows for CLI and API orchestration."""

from portlab.core.services.cache import (
    ArtifactCache,
    TTLArtifactCache,
    portfolio_cache_key,
    weighted_portfolio_cache_key,
)
from portlab.core.services.portfolio_service import (
    PortfolioReport,
    PortfolioService,
    format_stats_subtitle,
)

__all__ = [
    "ArtifactCache",
    "PortfolioReport",
    "PortfolioService",
    "TTLArtifactCache",
    "format_stats_subtitle",
    "portfolio_cache_key",
    "weighted_portfolio_cache_key",
]
