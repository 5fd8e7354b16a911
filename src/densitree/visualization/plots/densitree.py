"""
Densitree overlay plot.

Draws every reconciled tree of a densitree on one set of axes: the first
tree is the base layer and each further tree is one semi-transparent
overlay trace, so disagreement across the sample shows up as spread
between the drawings.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
import plotly.graph_objects as go
import polars as pl

from densitree.models.config import Layout
from densitree.visualization.plots.base import (
    SEQUENTIAL_PALETTE,
    TREE_LINE_COLOR,
    BasePlot,
    PlotConfig,
)

if TYPE_CHECKING:
    from densitree.core.densitree import DensitreeResult

# Opening angle (radians) of the polar layouts
POLAR_SPANS: dict[Layout, float] = {
    Layout.CIRCULAR: 2 * math.pi,
    Layout.RADIAL: 2 * math.pi,
    Layout.FAN: math.pi,
}

# Points used to approximate one arc of a circular elbow
ARC_RESOLUTION = 16

Point = tuple[float, float]


def _edges(table: pl.DataFrame) -> pl.DataFrame:
    """Join every non-root node with its parent's coordinates."""
    parents = table.select(
        pl.col("node").alias("parent"),
        pl.col("x").alias("parent_x"),
        pl.col("y").alias("parent_y"),
    )
    return table.join(parents, on="parent", how="inner")


def _angle(y: float, n_slots: int, span: float) -> float:
    if span >= 2 * math.pi:
        return span * (y - 1) / max(n_slots, 1)
    return span * (y - 1) / max(n_slots - 1, 1)


def _polar(r: float, theta: float) -> Point:
    return (r * math.cos(theta), r * math.sin(theta))


def edge_path(
    layout: Layout,
    parent: Point,
    child: Point,
    n_slots: int,
) -> list[Point]:
    """
    Points of the line drawn from a parent node to a child node.

    Args:
        layout: Layout geometry.
        parent: (x, y) of the parent in tree coordinates.
        child: (x, y) of the child in tree coordinates.
        n_slots: Number of tip slots, used to map y to an angle.

    Returns:
        Screen points; slanted/radial edges are straight, rectangular/
        circular/fan edges are elbows.
    """
    (px, py), (cx, cy) = parent, child

    if layout == Layout.SLANTED:
        return [parent, child]
    if layout == Layout.RECTANGULAR:
        return [parent, (px, cy), child]

    span = POLAR_SPANS[layout]
    p_theta = _angle(py, n_slots, span)
    c_theta = _angle(cy, n_slots, span)
    if layout == Layout.RADIAL:
        return [_polar(px, p_theta), _polar(cx, c_theta)]

    arc = [_polar(px, t) for t in np.linspace(p_theta, c_theta, ARC_RESOLUTION)]
    return [*arc, _polar(cx, c_theta)]


def tip_position(layout: Layout, x: float, y: float, n_slots: int) -> Point:
    """Screen position of a tip."""
    if layout in POLAR_SPANS:
        return _polar(x, _angle(y, n_slots, POLAR_SPANS[layout]))
    return (x, y)


class DensitreePlot(BasePlot):
    """
    Overlay of all reconciled trees of a densitree.

    Each tree becomes one line trace (edges separated by None gaps), drawn
    in input order so the first tree sits at the bottom of the stack.
    """

    def __init__(
        self,
        result: DensitreeResult,
        config: PlotConfig | None = None,
        title: str = "Densitree",
        opacity: float = 0.3,
        line_width: float = 1.0,
        color_by_tree: bool = False,
        show_tip_labels: bool = True,
    ) -> None:
        """
        Initialize densitree plot.

        Args:
            result: Output of build_densitree().
            config: Plot configuration
            title: Chart title
            opacity: Line opacity of every tree (0-1)
            line_width: Line width in pixels
            color_by_tree: Colour each tree from the sequential palette
                instead of one shared colour
            show_tip_labels: Label tips of the base tree at their slots
        """
        super().__init__(config)
        if not 0.0 <= opacity <= 1.0:
            msg = f"opacity must be between 0 and 1, got {opacity}"
            raise ValueError(msg)
        self.result = result
        self.title = title
        self.opacity = opacity
        self.line_width = line_width
        self.color_by_tree = color_by_tree
        self.show_tip_labels = show_tip_labels

    @property
    def layout(self) -> Layout:
        return self.result.layout

    def _n_slots(self) -> int:
        highest = max(
            (table.filter(pl.col("is_tip")).get_column("y").max() or 0.0)
            for table in self.result.tables
        )
        return max(len(self.result.tip_order), int(round(highest)))

    def _tree_trace(self, index: int, table: pl.DataFrame, n_slots: int) -> go.Scatter:
        xs: list[float | None] = []
        ys: list[float | None] = []
        edges = _edges(table)
        for px, py, cx, cy in zip(
            edges.get_column("parent_x").to_list(),
            edges.get_column("parent_y").to_list(),
            edges.get_column("x").to_list(),
            edges.get_column("y").to_list(),
        ):
            for x, y in edge_path(self.layout, (px, py), (cx, cy), n_slots):
                xs.append(x)
                ys.append(y)
            xs.append(None)
            ys.append(None)

        if self.color_by_tree:
            color = SEQUENTIAL_PALETTE[index % len(SEQUENTIAL_PALETTE)]
        else:
            color = TREE_LINE_COLOR

        return go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            name=f"Tree {index}",
            line={"color": color, "width": self.line_width},
            opacity=self.opacity,
            hoverinfo="skip",
            showlegend=self.config.show_legend,
        )

    def _tip_label_trace(self, n_slots: int) -> go.Scatter:
        tips = self.result.tables[0].filter(pl.col("is_tip"))
        points = [
            tip_position(self.layout, x, y, n_slots)
            for x, y in zip(tips.get_column("x").to_list(), tips.get_column("y").to_list())
        ]
        labels = tips.get_column("label").to_list()
        return go.Scatter(
            x=[p[0] for p in points],
            y=[p[1] for p in points],
            mode="text",
            text=labels,
            textposition="middle right",
            name="Tips",
            hovertemplate="<b>%{text}</b><extra></extra>",
            showlegend=False,
        )

    def create_figure(self) -> go.Figure:
        """Create the overlay figure."""
        n_slots = self._n_slots()
        fig = go.Figure()

        for i, table in enumerate(self.result.tables):
            fig.add_trace(self._tree_trace(i, table, n_slots))

        if self.show_tip_labels:
            fig.add_trace(self._tip_label_trace(n_slots))

        return self._finish(fig, self.title, equal_axes=self.layout in POLAR_SPANS)
