"""
E2E test fixtures for densitree CLI testing.

Provides a CLI runner and invocation helpers for end-to-end tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable

import pytest
from typer.testing import CliRunner

from densitree.cli.main import app

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def e2e_runner() -> CliRunner:
    """Provide a CLI runner for E2E tests."""
    return CliRunner()


@pytest.fixture
def run_plot(e2e_runner: CliRunner, tmp_path: Path) -> Callable[..., Result]:
    """
    Run `densitree plot` with output files placed in a temporary directory.

    Returns a callable taking the input paths, the figure file name and any
    extra command-line arguments.
    """

    def _run(inputs: list[Path], output_name: str, *args: str) -> Result:
        return e2e_runner.invoke(
            app,
            ["plot", *map(str, inputs), "--output", str(tmp_path / output_name), *args],
        )

    return _run
