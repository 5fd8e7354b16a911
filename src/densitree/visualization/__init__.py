"""
Visualization module for densitree.

Provides Plotly-based rendering of reconciled tree overlays.
"""

from densitree.visualization.plots import DensitreePlot, PlotConfig

__all__ = [
    "DensitreePlot",
    "PlotConfig",
]
