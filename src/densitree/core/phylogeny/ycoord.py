"""Topological y-assignment for a fixed tip order.

Tips take the 1-based slot of their label in the requested order; every
internal node sits at the mean y of its children, so each clade is drawn
centred over its descendants.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import polars as pl

from densitree.core.phylogeny.topology import Topology

logger = logging.getLogger(__name__)


def assign_y_coordinates(
    table: pl.DataFrame,
    tip_order: Sequence[str],
    tree_index: int | None = None,
) -> np.ndarray:
    """
    Compute y-coordinates for every node of a tree under a tip order.

    Args:
        table: Validated FortifiedTree table.
        tip_order: Tip labels from bottom (slot 1) to top.
        tree_index: Position of the tree in the input list, for log context.

    Returns:
        Float array of y-coordinates aligned with the table rows.

    Note:
        Tips whose labels are absent from tip_order are placed after the
        last slot, in their native table order, and a warning is logged.
        Labels in tip_order that the tree lacks leave their slot empty.
    """
    topology = Topology.from_table(table)
    slots = {label: i + 1 for i, label in enumerate(tip_order)}

    y = np.full(table.height, np.nan)
    is_tip = table.get_column("is_tip").to_list()
    labels = table.get_column("label").to_list()

    unplaced: list[str] = []
    next_slot = len(tip_order) + 1
    for i, (tip, label) in enumerate(zip(is_tip, labels)):
        if not tip:
            continue
        slot = slots.get(label)
        if slot is None:
            unplaced.append(label)
            slot = next_slot
            next_slot += 1
        y[i] = float(slot)

    if unplaced:
        which = f"tree {tree_index}" if tree_index is not None else "tree"
        logger.warning(
            f"{len(unplaced)} tips of {which} are not in the tip order; "
            f"placing them after slot {len(tip_order)}: {', '.join(unplaced[:5])}"
        )

    for node in topology.postorder():
        kids = topology.children[node]
        if kids:
            y[topology.row[node]] = float(np.mean([y[topology.row[k]] for k in kids]))

    return y


def native_tip_order(table: pl.DataFrame) -> list[str]:
    """Tip labels in table row order."""
    return table.filter(pl.col("is_tip")).get_column("label").to_list()
