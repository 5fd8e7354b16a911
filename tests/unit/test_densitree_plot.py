"""
Tests for the densitree overlay plot.

Tests edge geometry per layout, trace composition and export.
"""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from densitree import build_densitree
from densitree.models.config import Layout

plotly = pytest.importorskip("plotly")


@pytest.fixture
def result(two_tree_sample):
    return build_densitree(two_tree_sample)


class TestPlotConfig:
    """Test PlotConfig dataclass."""

    def test_default_values(self):
        from densitree.visualization.plots.base import PlotConfig

        config = PlotConfig()
        assert config.width == 800
        assert config.height == 600
        assert config.template == "plotly_white"
        assert config.show_legend is False

    def test_to_layout_dict_with_title(self):
        from densitree.visualization.plots.base import PlotConfig

        layout = PlotConfig().to_layout_dict(title="Trees")
        assert layout["title"]["text"] == "Trees"
        assert "legend" not in layout

    def test_to_layout_dict_with_legend(self):
        from densitree.visualization.plots.base import PlotConfig

        layout = PlotConfig(show_legend=True).to_layout_dict(include_legend=True)
        assert layout["showlegend"] is True


class TestEdgePath:
    """Test per-layout edge geometry."""

    def test_slanted_is_straight(self):
        from densitree.visualization.plots.densitree import edge_path

        assert edge_path(Layout.SLANTED, (0.0, 1.0), (1.0, 2.0), 3) == [(0.0, 1.0), (1.0, 2.0)]

    def test_rectangular_is_elbow(self):
        from densitree.visualization.plots.densitree import edge_path

        path = edge_path(Layout.RECTANGULAR, (0.0, 1.5), (1.0, 2.0), 3)
        assert path == [(0.0, 1.5), (0.0, 2.0), (1.0, 2.0)]

    def test_radial_maps_slot_to_angle(self):
        """Slot 1 sits at angle 0; a full circle is split into n slots."""
        from densitree.visualization.plots.densitree import edge_path

        start, end = edge_path(Layout.RADIAL, (0.0, 1.0), (2.0, 2.0), 4)
        assert start == pytest.approx((0.0, 0.0))
        assert end == pytest.approx((0.0, 2.0))

    def test_fan_spans_half_circle(self):
        """The last slot of a fan sits at 180 degrees."""
        from densitree.visualization.plots.densitree import edge_path

        path = edge_path(Layout.FAN, (1.0, 1.0), (3.0, 3.0), 3)
        assert path[-1] == pytest.approx((-3.0, 0.0))

    def test_circular_arc_keeps_parent_radius(self):
        from densitree.visualization.plots.densitree import ARC_RESOLUTION, edge_path

        path = edge_path(Layout.CIRCULAR, (2.0, 1.0), (3.0, 3.0), 4)

        assert len(path) == ARC_RESOLUTION + 1
        for x, y in path[:-1]:
            assert math.hypot(x, y) == pytest.approx(2.0)
        assert math.hypot(*path[-1]) == pytest.approx(3.0)


class TestDensitreePlot:
    """Test DensitreePlot figure composition."""

    def test_one_trace_per_tree_plus_labels(self, result):
        from densitree.visualization.plots import DensitreePlot

        fig = DensitreePlot(result).create_figure()

        assert len(fig.data) == 3
        assert [trace.name for trace in fig.data[:2]] == ["Tree 0", "Tree 1"]
        assert fig.data[2].mode == "text"

    def test_edges_separated_by_gaps(self, result):
        """Four edges per 3-tip tree, each followed by a None gap."""
        from densitree.visualization.plots import DensitreePlot

        trace = DensitreePlot(result).create_figure().data[0]

        assert len(trace.x) == 4 * 3
        assert list(trace.x).count(None) == 4

    def test_rectangular_edges_have_elbows(self, two_tree_sample):
        from densitree.visualization.plots import DensitreePlot

        result = build_densitree(two_tree_sample, layout="rectangular")
        trace = DensitreePlot(result).create_figure().data[1]

        assert len(trace.x) == 4 * 4

    def test_tip_labels_of_base_tree(self, result):
        from densitree.visualization.plots import DensitreePlot

        labels = DensitreePlot(result).create_figure().data[-1]

        assert sorted(labels.text) == ["a", "b", "c"]
        assert sorted(labels.y) == [1.0, 2.0, 3.0]

    def test_without_tip_labels(self, result):
        from densitree.visualization.plots import DensitreePlot

        fig = DensitreePlot(result, show_tip_labels=False).create_figure()
        assert len(fig.data) == 2

    def test_opacity_and_colors(self, result):
        from densitree.visualization.plots import SEQUENTIAL_PALETTE, DensitreePlot

        fig = DensitreePlot(result, opacity=0.5, color_by_tree=True).create_figure()

        assert fig.data[0].opacity == 0.5
        assert fig.data[0].line.color == SEQUENTIAL_PALETTE[0]
        assert fig.data[1].line.color == SEQUENTIAL_PALETTE[1]

    def test_shared_color_by_default(self, result):
        from densitree.visualization.plots import TREE_LINE_COLOR, DensitreePlot

        fig = DensitreePlot(result).create_figure()
        assert {fig.data[0].line.color, fig.data[1].line.color} == {TREE_LINE_COLOR}

    def test_invalid_opacity(self, result):
        from densitree.visualization.plots import DensitreePlot

        with pytest.raises(ValueError, match="opacity"):
            DensitreePlot(result, opacity=1.5)

    @pytest.mark.parametrize("layout", ["circular", "radial", "fan"])
    def test_polar_layouts_use_equal_axes(self, two_tree_sample, layout):
        from densitree.visualization.plots import DensitreePlot

        result = build_densitree(two_tree_sample, layout=layout)
        fig = DensitreePlot(result).create_figure()

        assert fig.layout.yaxis.scaleanchor == "x"

    def test_legend_lists_each_tree(self, result):
        from densitree.visualization.plots import DensitreePlot, PlotConfig

        fig = DensitreePlot(result, config=PlotConfig(show_legend=True, legend_font_size=9)).create_figure()

        assert fig.layout.showlegend is True
        assert fig.layout.legend.font.size == 9
        assert [trace.showlegend for trace in fig.data[:2]] == [True, True]

    def test_no_legend_by_default(self, result):
        from densitree.visualization.plots import DensitreePlot

        fig = DensitreePlot(result).create_figure()
        assert fig.layout.showlegend is None

    def test_layout_settings(self, result):
        from densitree.visualization.plots import DensitreePlot, PlotConfig

        fig = DensitreePlot(result, config=PlotConfig(width=640, height=480), title="Sample").create_figure()

        assert fig.layout.width == 640
        assert fig.layout.height == 480
        assert fig.layout.title.text == "Sample"
        assert fig.layout.xaxis.visible is False


class TestDensitreePlotExport:
    """Test export through BasePlot."""

    def test_to_html(self, result):
        from densitree.visualization.plots import DensitreePlot

        html = DensitreePlot(result).to_html()
        assert "<html>" in html

    def test_to_json(self, result):
        from densitree.visualization.plots import DensitreePlot

        data = json.loads(DensitreePlot(result).to_json())
        assert len(data["data"]) == 3

    def test_save_html(self, result, tmp_path: Path):
        from densitree.visualization.plots import DensitreePlot

        path = tmp_path / "densitree.html"
        DensitreePlot(result).save(str(path))
        assert path.exists()

    def test_save_unsupported(self, result, tmp_path: Path):
        from densitree.visualization.plots import DensitreePlot

        with pytest.raises(ValueError, match="Unsupported file format"):
            DensitreePlot(result).save(str(tmp_path / "densitree.txt"))
