"""
Shared styling and export for densitree figures.

A densitree figure has no meaningful axes: x is path length from the
root (or from the aligned tips) and y is a slot index, so both axes are
hidden and only the tree drawings and tip labels remain. This module
holds the palette, the figure-level settings, and the export methods
every figure class inherits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import plotly.graph_objects as go

# One colour per tree when trees are coloured individually; cycled for
# samples larger than the palette.
SEQUENTIAL_PALETTE: list[str] = [
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
]

# Shared colour of every overlaid tree
TREE_LINE_COLOR = "#2c3e50"

# Figure file suffix -> plotly writer
FIGURE_WRITERS: dict[str, str] = {
    ".html": "write_html",
    ".json": "write_json",
    ".png": "write_image",
    ".jpg": "write_image",
    ".jpeg": "write_image",
    ".svg": "write_image",
    ".pdf": "write_image",
}
FIGURE_SUFFIXES: tuple[str, ...] = tuple(FIGURE_WRITERS)


@dataclass
class PlotConfig:
    """Figure size and text styling of a densitree figure."""

    width: int = 800
    height: int = 600
    template: str = "plotly_white"
    font_family: str = "Arial, Helvetica, sans-serif"
    title_font_size: int = 16
    tip_font_size: int = 11
    legend_font_size: int = 11
    # Right margin leaves room for tip labels of the rectangular layouts
    margin: dict[str, int] = field(
        default_factory=lambda: {"l": 20, "r": 120, "t": 60, "b": 20}
    )
    show_legend: bool = False

    def to_layout_dict(
        self,
        title: str | None = None,
        include_legend: bool = False,
    ) -> dict[str, Any]:
        """Plotly layout settings for this config.

        Args:
            title: Figure title, omitted when empty.
            include_legend: Add legend settings (one entry per tree).
        """
        layout: dict[str, Any] = {
            "template": self.template,
            "font": {"family": self.font_family, "size": self.tip_font_size},
            "margin": self.margin,
            "width": self.width,
            "height": self.height,
        }
        if title:
            layout["title"] = {"text": title, "font": {"size": self.title_font_size}}
        if include_legend:
            layout["legend"] = {"font": {"size": self.legend_font_size}}
            layout["showlegend"] = self.show_legend
        return layout


class BasePlot(ABC):
    """A figure built from reconciled tree tables, with export helpers."""

    def __init__(self, config: PlotConfig | None = None) -> None:
        self.config = config or PlotConfig()

    @abstractmethod
    def create_figure(self) -> go.Figure:
        """Build the plotly figure."""
        ...

    def to_html(self, include_plotlyjs: bool = True) -> str:
        """Standalone HTML document."""
        return self.create_figure().to_html(
            full_html=True,
            include_plotlyjs=True if include_plotlyjs else "cdn",
        )

    def to_json(self) -> str:
        return self.create_figure().to_json()

    def save(self, path: str | Path, **kwargs: Any) -> Path:
        """
        Write the figure, choosing the writer from the file suffix.

        Static image formats go through plotly's image export and need
        its optional rendering engine installed.

        Args:
            path: Output file (.html, .json, .png, .jpg, .jpeg, .svg, .pdf).
            **kwargs: Passed to the plotly writer.

        Returns:
            The written path.

        Raises:
            ValueError: If the suffix is not a supported figure format.
        """
        path = Path(path)
        writer = FIGURE_WRITERS.get(path.suffix.lower())
        if writer is None:
            msg = f"Unsupported file format: {path}"
            raise ValueError(msg)

        fig = self.create_figure()
        path.parent.mkdir(parents=True, exist_ok=True)
        if writer == "write_html":
            kwargs.setdefault("include_plotlyjs", True)
        getattr(fig, writer)(str(path), **kwargs)
        return path

    def _finish(self, fig: go.Figure, title: str | None, equal_axes: bool = False) -> go.Figure:
        """Hide both axes and apply the config; equal_axes keeps polar drawings round."""
        fig.update_xaxes(visible=False)
        if equal_axes:
            fig.update_yaxes(visible=False, scaleanchor="x", scaleratio=1)
        else:
            fig.update_yaxes(visible=False)
        fig.update_layout(**self.config.to_layout_dict(title, include_legend=self.config.show_legend))
        return fig
