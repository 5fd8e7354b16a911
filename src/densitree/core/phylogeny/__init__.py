"""Phylogeny module for densitree construction.

Provides tree tabularization, tip distance matrices, consensus tip
ordering, topological y-assignment, and coordinate reconciliation.
"""

from densitree.core.phylogeny.distances import align_to_reference, cophenetic_matrix
from densitree.core.phylogeny.fortify import fortify, validate_fortified
from densitree.core.phylogeny.ordering import (
    classical_mds_1d,
    consensus_tip_order,
    mds_tip_order,
)
from densitree.core.phylogeny.reconcile import reconcile_coordinates
from densitree.core.phylogeny.ycoord import assign_y_coordinates

__all__ = [
    "align_to_reference",
    "assign_y_coordinates",
    "classical_mds_1d",
    "consensus_tip_order",
    "cophenetic_matrix",
    "fortify",
    "mds_tip_order",
    "reconcile_coordinates",
    "validate_fortified",
]
