"""
Shared pytest fixtures for densitree tests.

Provides reusable tree samples (Newick strings, BioPython trees,
FortifiedTree tables) and temporary tree files.
"""

from __future__ import annotations

from io import StringIO
from pathlib import Path

import polars as pl
import pytest


# =============================================================================
# Newick Fixtures
# =============================================================================


@pytest.fixture
def two_tree_sample() -> list[str]:
    """Two 3-tip trees that disagree on which tip is the outgroup."""
    return [
        "((a:1,b:1):1.5,c:2.5);",
        "((a:1,c:1):1,b:2);",
    ]


@pytest.fixture
def five_tip_newick() -> str:
    """Balanced-ish 5-tip tree with branch lengths."""
    return "(((a:1,b:1):1,c:2):1,(d:1.5,e:1.5):1.5);"


@pytest.fixture
def posterior_sample() -> list[str]:
    """Small sample of 6-tip trees with varying topology and scale."""
    return [
        "(((a:1,b:1):1,c:2):1,((d:1,e:1):1,f:2):1);",
        "(((a:1,b:1):0.5,c:1.5):2,((d:1,e:1):1,f:2):1.5);",
        "(((a:0.5,c:0.5):1,b:1.5):1,((d:1,f:1):1,e:2):1);",
        "(((b:1,a:1):1,c:2):2,(f:2,(e:1,d:1):1):2);",
    ]


@pytest.fixture
def unit_length_newick() -> str:
    """Tree without branch lengths."""
    return "((a,b),(c,d));"


# =============================================================================
# BioPython Fixtures
# =============================================================================


@pytest.fixture
def phylo_tree(five_tip_newick: str):
    """BioPython tree parsed from the 5-tip Newick string."""
    from Bio import Phylo

    return Phylo.read(StringIO(five_tip_newick), "newick")


# =============================================================================
# Table Fixtures
# =============================================================================


@pytest.fixture
def fortified_table() -> pl.DataFrame:
    """
    Hand-built FortifiedTree for ((a:1,b:2):1,c:3).

    Nodes 1-3 are tips, 4 is the root, 5 the (a,b) clade.
    """
    return pl.DataFrame(
        {
            "node": [1, 2, 3, 4, 5],
            "parent": [5, 5, 4, None, 4],
            "branch_length": [1.0, 2.0, 3.0, None, 1.0],
            "label": ["a", "b", "c", None, None],
            "is_tip": [True, True, True, False, False],
        }
    )


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def newick_file(tmp_path: Path, posterior_sample: list[str]) -> Path:
    """Newick file with one tree per line."""
    path = tmp_path / "sample.nwk"
    path.write_text("\n".join(posterior_sample) + "\n")
    return path


@pytest.fixture
def nexus_file(tmp_path: Path) -> Path:
    """Nexus file with two trees."""
    path = tmp_path / "sample.nex"
    path.write_text(
        "#NEXUS\n"
        "BEGIN TREES;\n"
        "    TREE t1 = ((a:1,b:1):1.5,c:2.5);\n"
        "    TREE t2 = ((a:1,c:1):1,b:2);\n"
        "END;\n"
    )
    return path
