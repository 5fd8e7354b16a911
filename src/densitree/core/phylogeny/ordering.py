"""
Consensus tip ordering across a tree sample.

Every tree in a densitree is drawn against one shared vertical tip order.
The order is either given explicitly, borrowed from the existing y-order of
one input tree, or derived from the trees themselves:

1. Build each tree's cophenetic matrix in the first tree's tip order.
2. Stack the matrices vertically, so column k holds tip k's distance
   profile across the whole sample.
3. Take Euclidean distances between those columns.
4. Embed the tips in one dimension with classical MDS (principal
   coordinates analysis) and sort by the embedding.

Tips whose relative positions are stable across the sample end up close
together, which keeps line crossings in the overlay low.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import polars as pl
from scipy.spatial.distance import pdist, squareform

from densitree.core.exceptions import (
    InputEmptyError,
    InvalidTipOrderIndexError,
    TipSetMismatchError,
)
from densitree.core.phylogeny.distances import aligned_distance_matrices
from densitree.models.tip_order import BorrowFromTree, DeriveByMDS, ExplicitOrder, TipOrder

logger = logging.getLogger(__name__)

# Relative eigenvalue size below which the embedding is treated as degenerate
EIGENVALUE_TOLERANCE = 1e-10


def classical_mds_1d(distances: np.ndarray) -> np.ndarray | None:
    """
    One-dimensional classical MDS embedding of a distance matrix.

    Double-centres the squared distances, B = -1/2 J D^2 J, and returns the
    eigenvector of the largest eigenvalue of B scaled by the square root of
    that eigenvalue. The sign is fixed so the largest-magnitude coordinate
    is positive.

    Args:
        distances: Symmetric n x n distance matrix.

    Returns:
        Array of n coordinates, or None when the embedding is degenerate
        (non-finite input or no positive leading eigenvalue).
    """
    if not np.all(np.isfinite(distances)):
        return None

    n = distances.shape[0]
    if n == 1:
        return np.zeros(1)

    squared = distances**2
    centering = np.eye(n) - np.full((n, n), 1.0 / n)
    gram = -0.5 * centering @ squared @ centering
    gram = (gram + gram.T) / 2

    eigenvalues, eigenvectors = np.linalg.eigh(gram)
    leading = eigenvalues[-1]
    scale = float(np.abs(eigenvalues).max())
    if scale == 0.0 or leading <= EIGENVALUE_TOLERANCE * scale:
        return None

    coordinates = eigenvectors[:, -1] * np.sqrt(leading)
    if coordinates[np.argmax(np.abs(coordinates))] < 0:
        coordinates = -coordinates
    return coordinates


def tip_similarity_matrix(aligned: Sequence[np.ndarray]) -> np.ndarray:
    """
    Euclidean distances between tips' stacked distance profiles.

    Args:
        aligned: Per-tree n x n distance matrices in a shared tip order.

    Returns:
        n x n matrix of distances between columns of the stacked matrix.
    """
    stacked = np.vstack(aligned)
    if stacked.shape[1] < 2:
        return np.zeros((stacked.shape[1], stacked.shape[1]))
    return squareform(pdist(stacked.T, metric="euclidean"))


def mds_tip_order(tables: Sequence[pl.DataFrame]) -> list[str]:
    """
    Derive a consensus tip order by MDS over all trees.

    Args:
        tables: FortifiedTree tables; the first defines the reference tips.

    Returns:
        Reference tip labels sorted by ascending embedding coordinate.

    Raises:
        InputEmptyError: If no tables are given.
        TipSetMismatchError: If any tree's tip set differs from the first.
    """
    if not tables:
        raise InputEmptyError()

    reference, aligned = aligned_distance_matrices(tables)
    similarity = tip_similarity_matrix(aligned)
    coordinates = classical_mds_1d(similarity)

    if coordinates is None:
        logger.warning(
            "Tip distances are degenerate across all trees; "
            "using the first tree's native tip order"
        )
        return list(reference)

    order = np.argsort(coordinates, kind="stable")
    return [reference[i] for i in order]


def borrowed_tip_order(tables: Sequence[pl.DataFrame], index: int) -> list[str]:
    """
    Reuse the existing vertical order of one tree.

    Args:
        tables: FortifiedTree tables.
        index: 0-based index of the tree whose y-order is reused.

    Returns:
        That tree's tip labels sorted by their current y-coordinate.

    Raises:
        InvalidTipOrderIndexError: If index is outside the tree list.
        TipSetMismatchError: If the borrowed tree's tips differ from the first
            tree's.
    """
    if not 0 <= index < len(tables):
        raise InvalidTipOrderIndexError(index, len(tables))

    tips = tables[index].filter(pl.col("is_tip"))
    borrowed = tips.sort("y", maintain_order=True).get_column("label").to_list()

    reference = set(tables[0].filter(pl.col("is_tip")).get_column("label").to_list())
    if set(borrowed) != reference:
        raise TipSetMismatchError(
            tree_index=index,
            missing=reference - set(borrowed),
            extra=set(borrowed) - reference,
        )
    return borrowed


def consensus_tip_order(tables: Sequence[pl.DataFrame], tip_order: TipOrder) -> list[str]:
    """
    Compute the tip order shared by every tree of the overlay.

    Args:
        tables: FortifiedTree tables, one per input tree.
        tip_order: Resolved ordering mode.

    Returns:
        Ordered tip labels; slot k (1-based) is drawn at y = k.

    Raises:
        InputEmptyError: If no tables are given.
        InvalidTipOrderIndexError: For an out-of-range borrowed tree index.
        TipSetMismatchError: If tip sets differ (MDS and borrow modes).
    """
    if not tables:
        raise InputEmptyError()

    match tip_order:
        case ExplicitOrder(labels=labels):
            logger.debug(f"Using explicit tip order of {len(labels)} labels")
            return list(labels)
        case BorrowFromTree(index=index):
            logger.debug(f"Borrowing tip order from tree {index}")
            return borrowed_tip_order(tables, index)
        case DeriveByMDS():
            logger.debug(f"Deriving tip order by MDS over {len(tables)} trees")
            return mds_tip_order(tables)

    msg = f"Unknown tip order variant: {tip_order!r}"
    raise TypeError(msg)
