"""
Tip-to-tip distance matrices.

Builds the cophenetic (patristic distance) matrix of a tree and permutes it
into a reference tip order so that matrices from different trees line up
row for row and column for column.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd
import polars as pl

from densitree.core.exceptions import TipSetMismatchError
from densitree.core.phylogeny.fortify import edge_lengths, has_complete_branch_lengths
from densitree.core.phylogeny.topology import Topology

logger = logging.getLogger(__name__)


def cophenetic_matrix(table: pl.DataFrame, tree_index: int | None = None) -> pd.DataFrame:
    """
    Compute the pairwise patristic distance matrix over a tree's tips.

    The distance between two tips is the sum of edge lengths on the path
    joining them through their most recent common ancestor. With A the
    tip-by-edge incidence matrix (A[i, e] = 1 when edge e lies between
    tip i and the root) and w the edge lengths:

        d(i, j) = depth(i) + depth(j) - 2 * shared(i, j)

    where depth = A @ w and shared = (A * w) @ A.T is the depth of the
    common ancestor.

    Args:
        table: Validated FortifiedTree table.
        tree_index: Position of the tree in the input list, for log context.

    Returns:
        Symmetric DataFrame indexed by tip label in native tip order, with a
        zero diagonal.

    Note:
        If any branch length is missing the whole tree is treated as
        unit-weighted.
    """
    if not has_complete_branch_lengths(table):
        logger.debug(f"Tree {tree_index}: branch lengths incomplete, using unit edge lengths")

    topology = Topology.from_table(table)
    lengths = edge_lengths(table)

    tips = table.filter(pl.col("is_tip"))
    tip_nodes = tips.get_column("node").to_list()
    labels = tips.get_column("label").to_list()

    edges = [node for node in topology.nodes if node != topology.root]
    edge_col = {node: j for j, node in enumerate(edges)}
    weights = np.array([lengths[node] for node in edges], dtype=float)

    incidence = np.zeros((len(tip_nodes), len(edges)))
    for i, tip in enumerate(tip_nodes):
        node: int | None = tip
        while node is not None and node != topology.root:
            incidence[i, edge_col[node]] = 1.0
            node = topology.parent_of(node)

    depth = incidence @ weights
    shared = (incidence * weights) @ incidence.T
    distances = depth[:, None] + depth[None, :] - 2.0 * shared

    # Cancellation can leave tiny negatives on long paths
    distances = np.clip(distances, 0.0, None)
    np.fill_diagonal(distances, 0.0)

    return pd.DataFrame(distances, index=labels, columns=labels)


def align_to_reference(
    matrix: pd.DataFrame,
    reference: Sequence[str],
    tree_index: int,
) -> pd.DataFrame:
    """
    Permute a distance matrix into a reference tip order.

    Args:
        matrix: Labelled tip distance matrix of one tree.
        reference: Reference tip labels (from the first tree).
        tree_index: Position of the tree in the input list.

    Returns:
        Matrix whose row and column k correspond to reference tip k.

    Raises:
        TipSetMismatchError: If the tree's tip set differs from the reference.
    """
    tree_tips = set(matrix.index)
    reference_tips = set(reference)
    if tree_tips != reference_tips:
        raise TipSetMismatchError(
            tree_index=tree_index,
            missing=reference_tips - tree_tips,
            extra=tree_tips - reference_tips,
        )

    ordered = list(reference)
    return matrix.loc[ordered, ordered]


def aligned_distance_matrices(tables: Sequence[pl.DataFrame]) -> tuple[list[str], list[np.ndarray]]:
    """
    Build every tree's distance matrix in the first tree's tip order.

    Args:
        tables: FortifiedTree tables, first one is the reference.

    Returns:
        Tuple of (reference tip labels, list of aligned n x n arrays).
    """
    reference = tables[0].filter(pl.col("is_tip")).get_column("label").to_list()
    aligned = [
        align_to_reference(cophenetic_matrix(table, i), reference, i).to_numpy()
        for i, table in enumerate(tables)
    ]
    return reference, aligned
