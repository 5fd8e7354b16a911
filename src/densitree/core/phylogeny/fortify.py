"""Tabularize phylogenetic trees into FortifiedTree tables.

A FortifiedTree is a polars DataFrame with one row per node:

    node           Int64     1..n for tips, n+1..N for internal nodes
    parent         Int64     parent node id, null for the root
    branch_length  Float64   length of the edge to the parent (nullable)
    label          Utf8      tip label (internal nodes may be null)
    is_tip         Boolean
    x              Float64   root-to-node path length
    y              Float64   vertical slot

Tip rows always come first. Trees arrive as BioPython trees, Newick
strings or already tabularized DataFrames; all three end up validated
against the same contract.
"""

from __future__ import annotations

import logging
from collections import Counter
from io import StringIO
from typing import TYPE_CHECKING, Any, Union

import polars as pl

from densitree.core.exceptions import MalformedTreeError
from densitree.core.phylogeny.topology import Topology
from densitree.core.phylogeny.ycoord import assign_y_coordinates, native_tip_order

if TYPE_CHECKING:
    from Bio.Phylo.BaseTree import Clade, Tree

logger = logging.getLogger(__name__)

TreeInput = Union["Tree", "Clade", str, pl.DataFrame]

FORTIFIED_SCHEMA: dict[str, Any] = {
    "node": pl.Int64,
    "parent": pl.Int64,
    "branch_length": pl.Float64,
    "label": pl.Utf8,
    "is_tip": pl.Boolean,
    "x": pl.Float64,
    "y": pl.Float64,
}

REQUIRED_COLUMNS: tuple[str, ...] = ("node", "parent", "label", "is_tip")


def fortify(tree: TreeInput, tree_index: int | None = None) -> pl.DataFrame:
    """
    Convert a tree into a validated FortifiedTree table.

    Args:
        tree: BioPython Tree or Clade, Newick string, or a DataFrame that
            already follows the FortifiedTree contract.
        tree_index: Position of the tree in the input list, for error context.

    Returns:
        FortifiedTree DataFrame with tips in the first rows.

    Raises:
        MalformedTreeError: If the tree is not a single rooted topology with
            uniquely labelled tips.
    """
    if isinstance(tree, pl.DataFrame):
        return _complete_table(tree, tree_index)
    if isinstance(tree, str):
        return _tabularize_phylo(_read_newick(tree, tree_index), tree_index)
    return _tabularize_phylo(tree, tree_index)


def _read_newick(text: str, tree_index: int | None) -> Tree:
    from Bio import Phylo
    from Bio.Phylo.NewickIO import NewickError

    try:
        return Phylo.read(StringIO(text), "newick")
    except (NewickError, ValueError) as e:
        raise MalformedTreeError(tree_index, f"invalid Newick string ({e})") from e


def _tabularize_phylo(tree: Tree | Clade, tree_index: int | None) -> pl.DataFrame:
    """Walk a BioPython tree in pre-order and emit one row per clade."""
    root = getattr(tree, "root", tree)

    visited: set[int] = set()
    clades: list[Any] = []
    parent_of: dict[int, Any] = {}
    stack: list[tuple[Any, Any]] = [(root, None)]
    while stack:
        clade, parent = stack.pop()
        if id(clade) in visited:
            raise MalformedTreeError(
                tree_index, f"clade '{clade.name}' is reachable by more than one path"
            )
        visited.add(id(clade))
        clades.append(clade)
        parent_of[id(clade)] = parent
        stack.extend((child, clade) for child in reversed(clade.clades))

    tips = [c for c in clades if not c.clades]
    internals = [c for c in clades if c.clades]
    node_id = {id(c): i + 1 for i, c in enumerate(tips + internals)}

    rows = []
    for clade in tips + internals:
        parent = parent_of[id(clade)]
        rows.append(
            {
                "node": node_id[id(clade)],
                "parent": node_id[id(parent)] if parent is not None else None,
                "branch_length": clade.branch_length,
                "label": clade.name,
                "is_tip": not clade.clades,
            }
        )

    table = pl.DataFrame(rows, schema={k: FORTIFIED_SCHEMA[k] for k in rows[0]})
    return _complete_table(table, tree_index)


def _complete_table(table: pl.DataFrame, tree_index: int | None) -> pl.DataFrame:
    """Cast, validate and fill in missing x/y columns."""
    missing = [c for c in REQUIRED_COLUMNS if c not in table.columns]
    if missing:
        raise MalformedTreeError(tree_index, f"missing columns: {', '.join(missing)}")

    if "branch_length" not in table.columns:
        table = table.with_columns(pl.lit(None, dtype=pl.Float64).alias("branch_length"))

    try:
        table = table.with_columns(
            [
                pl.col(name).cast(dtype)
                for name, dtype in FORTIFIED_SCHEMA.items()
                if name in table.columns
            ]
        )
    except pl.exceptions.PolarsError as e:
        raise MalformedTreeError(tree_index, f"columns have incompatible types ({e})") from e

    # ggtree-style tables mark the root as its own parent
    table = table.with_columns(
        pl.when(pl.col("parent") == pl.col("node"))
        .then(pl.lit(None, dtype=pl.Int64))
        .otherwise(pl.col("parent"))
        .alias("parent")
    )

    validate_fortified(table, tree_index)

    if "x" not in table.columns or table.get_column("x").null_count() > 0:
        table = table.with_columns(pl.Series("x", root_distances(table)))
    if "y" not in table.columns or table.get_column("y").null_count() > 0:
        y = assign_y_coordinates(table, native_tip_order(table), tree_index)
        table = table.with_columns(pl.Series("y", y))

    leading = list(FORTIFIED_SCHEMA)
    return table.select(leading + [c for c in table.columns if c not in leading])


def validate_fortified(table: pl.DataFrame, tree_index: int | None = None) -> None:
    """
    Check that a table describes a single rooted tree with tips first.

    Raises:
        MalformedTreeError: Describing the first violated constraint.
    """
    if table.height == 0:
        raise MalformedTreeError(tree_index, "table has no rows")

    nodes = table.get_column("node")
    if nodes.null_count() > 0:
        raise MalformedTreeError(tree_index, "node ids must not be null")
    if nodes.n_unique() != table.height:
        raise MalformedTreeError(tree_index, "node ids are not unique")

    n_roots = table.get_column("parent").null_count()
    if n_roots != 1:
        raise MalformedTreeError(tree_index, f"expected exactly one root, found {n_roots}")

    node_set = set(nodes.to_list())
    parent_ids = set(table.get_column("parent").drop_nulls().to_list())
    unknown = parent_ids - node_set
    if unknown:
        raise MalformedTreeError(
            tree_index, f"unknown parent ids: {', '.join(map(str, sorted(unknown)[:5]))}"
        )

    is_tip = table.get_column("is_tip").to_list()
    if any(flag is None for flag in is_tip):
        raise MalformedTreeError(tree_index, "is_tip must not be null")
    n_tips = sum(is_tip)
    if n_tips == 0:
        raise MalformedTreeError(tree_index, "tree has no tips")
    if not all(is_tip[:n_tips]):
        raise MalformedTreeError(tree_index, "tip rows must come before internal node rows")

    for node, tip in zip(nodes.to_list(), is_tip):
        if tip and node in parent_ids:
            raise MalformedTreeError(tree_index, f"tip node {node} has children")
        if not tip and node not in parent_ids:
            raise MalformedTreeError(tree_index, f"internal node {node} has no children")

    labels = table.get_column("label").to_list()[:n_tips]
    if any(label is None or label == "" for label in labels):
        raise MalformedTreeError(tree_index, "every tip needs a label")
    duplicated = sorted(label for label, count in Counter(labels).items() if count > 1)
    if duplicated:
        raise MalformedTreeError(
            tree_index, f"duplicate tip labels: {', '.join(duplicated[:5])}"
        )

    lengths = table.get_column("branch_length")
    if (lengths.drop_nulls() < 0).any():
        raise MalformedTreeError(tree_index, "branch lengths must be non-negative")

    _check_connected(Topology.from_table(table), tree_index)


def _check_connected(topology: Topology, tree_index: int | None) -> None:
    """Every node must reach the root without revisiting a node."""
    reaches_root: set[int] = {topology.root}
    for start in topology.nodes:
        path: list[int] = []
        seen: set[int] = set()
        node: int | None = start
        while node is not None and node not in reaches_root:
            if node in seen:
                raise MalformedTreeError(tree_index, f"cycle through node {node}")
            seen.add(node)
            path.append(node)
            node = topology.parent_of(node)
        if node is None:
            raise MalformedTreeError(tree_index, f"node {start} is disconnected from the root")
        reaches_root.update(path)


def has_complete_branch_lengths(table: pl.DataFrame) -> bool:
    """True when every non-root edge carries a branch length."""
    edges = table.filter(pl.col("parent").is_not_null())
    return edges.get_column("branch_length").null_count() == 0


def edge_lengths(table: pl.DataFrame) -> dict[int, float]:
    """
    Length of the edge above each non-root node.

    If any branch length is missing the whole tree is unit-weighted; defined
    and undefined lengths are never mixed.
    """
    edges = table.filter(pl.col("parent").is_not_null())
    nodes = edges.get_column("node").to_list()
    if not has_complete_branch_lengths(table):
        return dict.fromkeys(nodes, 1.0)
    return dict(zip(nodes, edges.get_column("branch_length").to_list()))


def root_distances(table: pl.DataFrame) -> list[float]:
    """Path length from the root to every node, aligned with table rows."""
    topology = Topology.from_table(table)
    lengths = edge_lengths(table)

    depth = {topology.root: 0.0}
    for node in topology.preorder():
        parent = topology.parent_of(node)
        if parent is not None:
            depth[node] = depth[parent] + lengths[node]
    return [depth[node] for node in topology.nodes]


def tip_count(table: pl.DataFrame) -> int:
    return int(table.get_column("is_tip").sum())
