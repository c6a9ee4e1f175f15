"""Matplotlib renderings of the progress series and the heat map."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Protocol, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.colors import ListedColormap
from matplotlib.figure import Figure

from .dates import weekday
from .progress import HEAT_LEVELS, HeatCell, ProgressPoint

HEAT_COLORS = ["#EBEDF0", "#9BE9A8", "#40C463", "#30A14E", "#216E39"]
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class ChartRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def _empty_figure(message: str) -> Figure:
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.text(0.5, 0.5, message, ha="center", va="center", fontsize=12, color="#999")
    ax.axis("off")
    return fig


def build_progress_chart(points: Sequence[ProgressPoint]) -> Figure:
    """Line chart of the daily completion percentage with completed counts as bars."""

    if not points:
        return _empty_figure("No habit data yet\nLog a habit to see your progress")

    labels = [point.date.strftime("%d %b") for point in points]
    rates = [point.percentage for point in points]
    counts = [point.completed_count for point in points]

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar(range(len(points)), counts, color="#C7D2FE", label="Completed habits")
    ax.set_ylabel("Completed", color="#4B5563")
    ax.yaxis.set_major_locator(mticker.MaxNLocator(integer=True))

    rate_ax = ax.twinx()
    rate_ax.plot(range(len(points)), rates, color="#4F46E5", linewidth=2, marker="o", markersize=3)
    rate_ax.set_ylim(0, 100)
    rate_ax.yaxis.set_major_formatter(mticker.PercentFormatter())
    rate_ax.set_ylabel("Completion rate", color="#4F46E5")

    step = max(1, len(points) // 10)
    ax.set_xticks(range(0, len(points), step))
    ax.set_xticklabels(labels[::step], rotation=45, ha="right", fontsize=8)
    ax.spines["top"].set_visible(False)
    rate_ax.spines["top"].set_visible(False)
    ax.set_title("Daily completion", fontsize=13, fontweight="bold", color="#111827")
    fig.tight_layout()
    return fig


def heat_grid(cells: Sequence[HeatCell]) -> list[list[int | None]]:
    """Arrange cells into 7 weekday rows (Sunday first) by week columns.

    Positions before the first cell and after the last one are ``None``.
    """

    if not cells:
        return [[] for _ in range(7)]
    offset = weekday(cells[0].date)
    columns = (offset + len(cells) + 6) // 7
    grid: list[list[int | None]] = [[None] * columns for _ in range(7)]
    for index, cell in enumerate(cells):
        position = offset + index
        grid[position % 7][position // 7] = cell.level
    return grid


def build_heatmap_chart(cells: Sequence[HeatCell]) -> Figure:
    if not cells:
        return _empty_figure("No completions in this window")

    grid = heat_grid(cells)
    matrix = [[-1 if level is None else level for level in row] for row in grid]
    cmap = ListedColormap(["#FFFFFF", *HEAT_COLORS])

    fig, ax = plt.subplots(figsize=(max(4, len(matrix[0]) * 0.35), 3))
    ax.imshow(matrix, cmap=cmap, vmin=-1, vmax=HEAT_LEVELS, aspect="equal")
    ax.set_yticks(range(7))
    ax.set_yticklabels(WEEKDAY_LABELS, fontsize=8)
    ax.set_xticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)
    first, last = cells[0].date, cells[-1].date
    ax.set_title(f"{first:%d %b %Y} - {last:%d %b %Y}", fontsize=10, color="#374151")
    fig.tight_layout()
    return fig


def _save(fig: Figure, output_path: Path, renderer: ChartRenderer | None) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if renderer is not None:
        renderer.render(fig, output_path=output_path)
    else:
        fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path


def export_progress_png(
    *, points: Sequence[ProgressPoint], output_path: Path, renderer: ChartRenderer | None = None
) -> Path:
    """Render the progress chart to PNG and return the path."""

    return _save(build_progress_chart(points), output_path, renderer)


def export_heatmap_png(
    *, cells: Sequence[HeatCell], output_path: Path, renderer: ChartRenderer | None = None
) -> Path:
    return _save(build_heatmap_chart(cells), output_path, renderer)


def figure_png_bytes(fig: Figure) -> bytes:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", bbox_inches="tight", dpi=100)
    plt.close(fig)
    return buffer.getvalue()


__all__ = [
    "ChartRenderer",
    "build_heatmap_chart",
    "build_progress_chart",
    "export_heatmap_png",
    "export_progress_png",
    "figure_png_bytes",
    "heat_grid",
]
