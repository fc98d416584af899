"""Chart rendering for finished portfolio series."""

from __future__ import annotations

import io
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from portlab.core.backtest.types import PortfolioStats
from portlab.core.utils.errors import ArtifactError

DISPLAY_TIMEZONE = "America/New_York"
Y_PADDING_RATIO = 0.05


@dataclass(frozen=True)
class RenderRequest:
    """Numeric series and labels handed to a chart renderer."""

    timestamps: pd.DatetimeIndex
    values: list[float]
    stats: PortfolioStats
    title: str
    subtitle: str


ChartRenderer = Callable[[RenderRequest], bytes]


def _configure_matplotlib() -> None:
    """Point matplotlib at a writable config directory on read-only hosts."""
    if "MPLCONFIGDIR" not in os.environ:
        mpl_config_dir = Path("/tmp/portlab-mplconfig")
        mpl_config_dir.mkdir(parents=True, exist_ok=True)
        os.environ["MPLCONFIGDIR"] = str(mpl_config_dir)


def format_axis_labels(timestamps: pd.DatetimeIndex) -> list[str]:
    """Format x-axis labels in Eastern Time; month/year once the span is long."""
    index = pd.DatetimeIndex(timestamps)
    if index.tz is None:
        index = index.tz_localize("UTC")
    local = index.tz_convert(DISPLAY_TIMEZONE)
    pattern = "%b %d" if len(local) <= 60 else "%b '%y"
    return [stamp.strftime(pattern) for stamp in local]


def y_axis_bounds(values: list[float]) -> tuple[float, float]:
    """Pad the value range by 5% on both sides."""
    low, high = min(values), max(values)
    padding = (high - low) * Y_PADDING_RATIO
    if padding == 0:
        padding = abs(high) * Y_PADDING_RATIO or 1.0
    return low - padding, high + padding


def render_portfolio_chart(request: RenderRequest) -> bytes:
    """
    Render a portfolio value line chart to PNG bytes.

    Args:
        request: Finished series, stats and labels.

    Returns:
        PNG image bytes.

    Raises:
        ArtifactError: If the request is empty or matplotlib fails.
    """
    if not request.values:
        raise ArtifactError("Cannot render a chart without values.")

    _configure_matplotlib()
    from matplotlib.backends.backend_agg import FigureCanvasAgg
    from matplotlib.figure import Figure

    labels = format_axis_labels(request.timestamps)
    positions = list(range(len(request.values)))
    tick_count = 6 if len(labels) > 30 else max(3, len(labels) // 3)
    step = max(1, len(labels) // tick_count)
    # Never registered with pyplot; safe to build from threadpool workers.
    figure = Figure(figsize=(10, 5))
    FigureCanvasAgg(figure)
    try:
        axis = figure.add_subplot()
        axis.plot(positions, request.values, linewidth=1.4, color="#0f3d3e")
        axis.set_title(f"{request.title}\n{request.subtitle}", fontsize=10)
        axis.set_xticks(positions[::step])
        axis.set_xticklabels(labels[::step])
        axis.set_ylim(*y_axis_bounds(request.values))
        axis.set_ylabel("Portfolio Value")
        axis.grid(alpha=0.25, linestyle="--", linewidth=0.7)
        figure.tight_layout()
        buffer = io.BytesIO()
        figure.savefig(buffer, format="png", dpi=120)
        return buffer.getvalue()
    except Exception as exc:
        raise ArtifactError(f"Failed to render portfolio chart '{request.title}': {exc}") from exc
    finally:
        figure.clear()


def save_chart(image: bytes, path: Path) -> Path:
    """Write rendered image bytes to ``path``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(image)
    except OSError as exc:
        raise ArtifactError(f"Failed to write chart to {path}: {exc}") from exc
    return path
