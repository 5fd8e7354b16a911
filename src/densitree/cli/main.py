"""
Main CLI entry point for densitree.

Provides subcommands:
- plot: Overlay a tree sample and write the figure
- order: Print the consensus tip order of a tree sample
"""

from __future__ import annotations

import typer
from rich import print as rprint

from densitree import __version__

app = typer.Typer(
    name="densitree",
    help="Overlay phylogenetic tree samples on a shared consensus tip order",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"densitree version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Densitree: draw many trees on top of each other.

    Trees sharing a tip set (bootstrap replicates, posterior samples) are
    placed on one consensus tip order so that disagreement between them
    shows up as visual spread.
    """


# Register subcommands
from densitree.cli import plot

plot.register(app)


if __name__ == "__main__":
    app()
