"""
Plot components for densitree.

Provides the plot base class, shared styling, and the densitree overlay.
"""

from densitree.visualization.plots.base import (
    SEQUENTIAL_PALETTE,
    TREE_LINE_COLOR,
    BasePlot,
    PlotConfig,
)
from densitree.visualization.plots.densitree import DensitreePlot, edge_path

__all__ = [
    "SEQUENTIAL_PALETTE",
    "TREE_LINE_COLOR",
    "BasePlot",
    "DensitreePlot",
    "PlotConfig",
    "edge_path",
]
