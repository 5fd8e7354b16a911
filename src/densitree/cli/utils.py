"""
Console helpers shared by the densitree commands.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from densitree.core.exceptions import DensitreeError


@contextmanager
def stage(description: str, console: Console, quiet: bool = False) -> Iterator[None]:
    """Show a spinner with elapsed time while one pipeline stage runs.

    Stages have no known length (parsing a tree file, embedding the
    sample), so the task is indeterminate. Nothing is drawn in quiet mode.
    """
    columns = (
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
    )
    with Progress(*columns, console=console, transient=True, disable=quiet) as progress:
        progress.add_task(description, total=None)
        yield


def exit_with_error(console: Console, error: DensitreeError) -> None:
    """Print a densitree error and its suggestion, then exit with code 1."""
    console.print(f"[red]Error: {error.message}[/red]")
    if error.suggestion:
        console.print(f"[dim]{error.suggestion}[/dim]")
    raise typer.Exit(code=1) from None


class QuietConsole:
    """Rich console whose ``print`` is muted under ``--quiet``.

    Errors go through the wrapped console directly (``.console``) so they
    are shown in quiet mode too; any other attribute is looked up on the
    wrapped console.
    """

    def __init__(self, console: Console, quiet: bool = False) -> None:
        self.console = console
        self.quiet = quiet

    def print(self, *objects: Any, **kwargs: Any) -> None:
        if self.quiet:
            return
        self.console.print(*objects, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.console, name)
