"""
Coordinate reconciliation across the trees of a densitree.

Applies the consensus tip order to every tree, aligns the trees
horizontally, and optionally jitters tip positions so near-identical trees
do not hide each other. Only the x and y columns change; topology, labels
and tip flags are carried through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import polars as pl

from densitree.core.exceptions import InvalidConfigurationError
from densitree.core.phylogeny.ycoord import assign_y_coordinates

logger = logging.getLogger(__name__)

RandomSource = np.random.Generator | int | None


def make_rng(rng: RandomSource = None) -> np.random.Generator:
    """Return a numpy Generator, seeding a new one from an int or fresh entropy."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def max_x(table: pl.DataFrame) -> float:
    """Rightmost x of a tree, ignoring missing values."""
    values = table.get_column("x").drop_nulls().drop_nans()
    return float(values.max()) if len(values) else 0.0


def reconcile_coordinates(
    tables: Sequence[pl.DataFrame],
    tip_order: Sequence[str],
    align_tips: bool = True,
    jitter: float = 0.0,
    rng: RandomSource = None,
) -> list[pl.DataFrame]:
    """
    Reconcile every tree's coordinates against a shared tip order.

    For each tree i:

    1. y is recomputed so tips sit at their consensus slots and internal
       nodes at the mean of their children.
    2. With align_tips, x is shifted by (max x over all trees - max x of
       tree i) so every tree's rightmost tip lands at the same position.
       Without it x is left as is and every root stays where it was.
    3. For i > 0 and jitter > 0, independent N(0, jitter) noise is added to
       the y of tip rows only.

    Args:
        tables: FortifiedTree tables, one per input tree.
        tip_order: Consensus tip order.
        align_tips: Align trees by their tips (True) or their root (False).
        jitter: Standard deviation of tip jitter, must be >= 0.
        rng: numpy Generator or integer seed for the jitter draws.

    Returns:
        New tables with reconciled x and y, in input order.

    Raises:
        InvalidConfigurationError: If jitter is negative or not finite.
    """
    if not np.isfinite(jitter) or jitter < 0:
        raise InvalidConfigurationError(
            message=f"jitter must be a finite value >= 0 (got {jitter})",
            suggestion="Use jitter=0 to disable jitter, or a small positive value such as 0.1.",
        )

    generator = make_rng(rng)
    extents = [max_x(table) for table in tables]
    farthest = max(extents, default=0.0)

    reconciled = []
    for i, table in enumerate(tables):
        y = assign_y_coordinates(table, tip_order, tree_index=i)

        if i > 0 and jitter > 0:
            tip_mask = table.get_column("is_tip").to_numpy()
            y[tip_mask] += generator.normal(loc=0.0, scale=jitter, size=int(tip_mask.sum()))

        columns = [pl.Series("y", y)]
        if align_tips:
            columns.append(pl.col("x") + (farthest - extents[i]))
        reconciled.append(table.with_columns(columns))

    if jitter > 0 and len(tables) > 1:
        logger.debug(f"Jittered tips of {len(tables) - 1} trees with sd={jitter}")

    return reconciled
