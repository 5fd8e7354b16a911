"""
Densitree: overlay phylogenetic tree samples on a shared tip order.

Draws many trees that share a tip set (bootstrap replicates, posterior
samples) on top of each other. A consensus tip order, derived by classical
MDS over the trees' tip distance matrices, keeps the overlay readable so
that topological and branch-length disagreement shows up as spread.
"""

__version__ = "0.1.0"
__author__ = "Densitree Team"

from densitree.core.densitree import DensitreeResult, build_densitree
from densitree.core.exceptions import DensitreeError
from densitree.models.config import DensitreeConfig, Layout

__all__ = [
    "DensitreeConfig",
    "DensitreeError",
    "DensitreeResult",
    "Layout",
    "__version__",
    "build_densitree",
]
