"""
Loaders for tree samples.

Tree files (Newick or Nexus, one or many trees per file) are read with
BioPython. Coordinate tables written by `densitree plot --tables` can be
read back and split into one FortifiedTree table per tree.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import polars as pl

from densitree.core.exceptions import InputEmptyError, TreeFileError
from densitree.core.io_utils import read_dataframe
from densitree.core.phylogeny.fortify import FORTIFIED_SCHEMA

if TYPE_CHECKING:
    from Bio.Phylo.BaseTree import Tree

logger = logging.getLogger(__name__)


class TreeFormat(str, Enum):
    """Input file format."""

    NEWICK = "newick"
    NEXUS = "nexus"
    TABLE = "table"


def load_trees(path: Path, fmt: TreeFormat | str = TreeFormat.NEWICK) -> list[Tree]:
    """
    Read every tree in a Newick or Nexus file.

    Args:
        path: Tree file.
        fmt: "newick" or "nexus".

    Returns:
        BioPython trees in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        TreeFileError: If the file cannot be parsed.
        InputEmptyError: If the file holds no trees.
    """
    from Bio import Phylo

    fmt = TreeFormat(fmt)
    if fmt == TreeFormat.TABLE:
        msg = "Use load_tree_tables() for coordinate tables"
        raise ValueError(msg)

    if not path.exists():
        raise FileNotFoundError(f"Tree file not found: {path}")

    try:
        trees = list(Phylo.parse(str(path), fmt.value))
    except Exception as e:
        raise TreeFileError(str(path), str(e)) from e

    if not trees:
        raise InputEmptyError(str(path))

    logger.info(f"Loaded {len(trees)} trees from {path}")
    return trees


def load_tree_tables(path: Path) -> list[pl.DataFrame]:
    """
    Read a concatenated coordinate table and split it per tree.

    The table must hold FortifiedTree columns plus a `tree` column; rows are
    grouped by `tree` in order of first appearance.

    Args:
        path: CSV, TSV or Parquet file.

    Returns:
        One DataFrame per tree (the `tree` column is kept).

    Raises:
        TreeFileError: If the file cannot be read or has no `tree` column.
        InputEmptyError: If the table has no rows.
    """
    try:
        table = read_dataframe(path, schema={**FORTIFIED_SCHEMA, "tree": pl.Int64})
    except (OSError, ValueError, pl.exceptions.PolarsError) as e:
        raise TreeFileError(str(path), str(e)) from e

    if "tree" not in table.columns:
        raise TreeFileError(str(path), "no 'tree' column to split trees on")
    if table.height == 0:
        raise InputEmptyError(str(path))

    tables = table.partition_by("tree", maintain_order=True)
    logger.info(f"Loaded {len(tables)} tree tables from {path}")
    return tables


def load_inputs(paths: list[Path], fmt: TreeFormat | str) -> list[Tree] | list[pl.DataFrame]:
    """Load and concatenate trees from several files of the same format."""
    fmt = TreeFormat(fmt)
    loaded: list = []
    for path in paths:
        if fmt == TreeFormat.TABLE:
            loaded.extend(load_tree_tables(path))
        else:
            loaded.extend(load_trees(path, fmt))
    return loaded
