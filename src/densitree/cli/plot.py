"""
Densitree commands.

Provides subcommands:
- plot: Overlay every tree of a sample and write the figure
- order: Print the consensus tip order of a sample
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from densitree.cli.utils import QuietConsole, exit_with_error, stage
from densitree.core.exceptions import DensitreeError, InvalidConfigurationError
from densitree.core.parsers import TreeFormat, load_inputs
from densitree.models.config import DensitreeConfig, Layout
from densitree.models.tip_order import parse_tip_order_option

console = Console()


def _load_config(path: Path | None) -> DensitreeConfig | None:
    if path is None:
        return None
    try:
        return DensitreeConfig.from_yaml(path)
    except ValidationError as e:
        exit_with_error(console, InvalidConfigurationError.from_validation_error(e))
    except (ValueError, yaml.YAMLError) as e:
        exit_with_error(console, InvalidConfigurationError(f"Invalid config file {path}: {e}"))
    return None


def _load_trees(inputs: list[Path], fmt: TreeFormat) -> list[Any]:
    try:
        return load_inputs(inputs, fmt)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None


def plot(
    inputs: list[Path] = typer.Argument(
        ...,
        help="Tree files (all trees in every file are overlaid, in order)",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output figure (.html, .json, or an image format such as .png)",
    ),
    input_format: TreeFormat = typer.Option(
        TreeFormat.NEWICK,
        "--format",
        "-f",
        help="Input format: newick, nexus, or table (coordinate table with a 'tree' column)",
    ),
    layout: Layout | None = typer.Option(
        None,
        "--layout",
        "-l",
        help="Layout: slanted, rectangular, fan, circular, or radial [default: slanted]",
    ),
    tip_order: str | None = typer.Option(
        None,
        "--tip-order",
        help="'mds', a 0-based tree index, or comma-separated tip labels [default: mds]",
    ),
    align_tips: bool | None = typer.Option(
        None,
        "--align-tips/--align-root",
        help="Align trees by their tips or by their root [default: tips]",
    ),
    jitter: float | None = typer.Option(
        None,
        "--jitter",
        "-j",
        help="Std. deviation of vertical tip jitter for trees after the first",
        min=0.0,
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Random seed for jitter",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (command-line options take precedence)",
        exists=True,
        dir_okay=False,
    ),
    title: str = typer.Option(
        "Densitree",
        "--title",
        help="Figure title",
    ),
    width: int = typer.Option(
        800,
        "--width",
        help="Figure width in pixels",
        min=100,
    ),
    height: int = typer.Option(
        600,
        "--height",
        help="Figure height in pixels",
        min=100,
    ),
    opacity: float = typer.Option(
        0.3,
        "--opacity",
        help="Line opacity of each tree (0-1)",
        min=0.0,
        max=1.0,
    ),
    color_by_tree: bool = typer.Option(
        False,
        "--color-by-tree",
        help="Colour each tree separately instead of one shared colour",
    ),
    tables: Path | None = typer.Option(
        None,
        "--tables",
        "-t",
        help="Also write the reconciled coordinate tables (.csv, .tsv or .parquet)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Overlay a sample of trees and write the densitree figure.

    Examples:

        # Posterior sample, MDS tip order, tips aligned
        densitree plot posterior.nwk --output densitree.html

        # Rectangular layout, reuse the tip order of the first tree
        densitree plot boot.nwk -o boot.html --layout rectangular --tip-order 0

        # Root-aligned with a little jitter, keep the coordinates
        densitree plot trees.nex -f nexus -o out.html --align-root -j 0.05 --tables coords.csv
    """
    import polars as pl

    from densitree.core.densitree import build_densitree
    from densitree.core.io_utils import output_format_for, write_dataframe
    from densitree.visualization.plots import DensitreePlot, PlotConfig
    from densitree.visualization.plots.base import FIGURE_SUFFIXES

    out = QuietConsole(console, quiet=quiet)

    if output.suffix.lower() not in FIGURE_SUFFIXES:
        console.print(
            f"[red]Error: Unsupported output format '{output.suffix}'. "
            f"Use one of: {', '.join(FIGURE_SUFFIXES)}[/red]"
        )
        raise typer.Exit(code=1) from None

    base_config = _load_config(config_file)
    if seed is not None:
        base = base_config or DensitreeConfig()
        base_config = base.model_copy(update={"seed": seed})

    out.print("\n[bold blue]Densitree[/bold blue]\n")

    try:
        order_value = parse_tip_order_option(tip_order) if tip_order is not None else None

        with stage("Loading trees...", console, quiet):
            trees = _load_trees(inputs, input_format)
        out.print(f"[bold]Trees:[/bold] {len(trees)}")

        with stage("Reconciling coordinates...", console, quiet):
            result = build_densitree(
                trees,
                config=base_config,
                layout=layout,
                tip_order=order_value,
                align_tips=align_tips,
                jitter=jitter,
            )
    except DensitreeError as e:
        exit_with_error(console, e)

    out.print(f"[bold]Tips:[/bold] {len(result.tip_order)}")
    out.print(f"[bold]Layout:[/bold] {result.layout.value}")

    plot_config = PlotConfig(width=width, height=height)
    figure = DensitreePlot(
        result,
        config=plot_config,
        title=title,
        opacity=opacity,
        color_by_tree=color_by_tree,
    )

    try:
        figure.save(str(output))
    except (ValueError, ImportError) as e:
        console.print(f"\n[red]Error writing figure: {e}[/red]")
        raise typer.Exit(code=1) from None
    out.print(f"\n[green]Figure written to {output}[/green]")

    if tables is not None:
        try:
            write_dataframe(result.combined(), tables, output_format_for(tables))
        except (OSError, pl.exceptions.PolarsError) as e:
            console.print(f"\n[red]Error writing coordinate tables: {e}[/red]")
            raise typer.Exit(code=1) from None
        out.print(f"[green]Coordinate tables written to {tables}[/green]")


def order(
    inputs: list[Path] = typer.Argument(
        ...,
        help="Tree files",
        exists=True,
        dir_okay=False,
    ),
    input_format: TreeFormat = typer.Option(
        TreeFormat.NEWICK,
        "--format",
        "-f",
        help="Input format: newick, nexus, or table",
    ),
    tip_order: str = typer.Option(
        "mds",
        "--tip-order",
        help="'mds', a 0-based tree index, or comma-separated tip labels",
    ),
) -> None:
    """
    Print the consensus tip order of a tree sample.

    Examples:

        densitree order posterior.nwk

        densitree order boot.nwk --tip-order 3
    """
    from densitree.core.densitree import build_densitree

    try:
        trees = _load_trees(inputs, input_format)
        result = build_densitree(trees, tip_order=parse_tip_order_option(tip_order))
    except DensitreeError as e:
        exit_with_error(console, e)

    table = Table(title=f"Consensus tip order ({result.n_trees} trees)", min_width=40)
    table.add_column("Slot", justify="right", style="cyan")
    table.add_column("Tip")
    for slot, label in enumerate(result.tip_order, start=1):
        table.add_row(str(slot), label)
    console.print(table)


def register(app: typer.Typer) -> None:
    """Register the densitree commands on the main application."""
    app.command(name="plot")(plot)
    app.command(name="order")(order)
