"""
Core algorithms for densitree construction.

This module contains the consensus tip ordering and coordinate
reconciliation that let many trees be drawn against one shared tip order.
"""

from densitree.core.exceptions import (
    DensitreeError,
    InputEmptyError,
    InvalidConfigurationError,
    InvalidTipOrderIndexError,
    MalformedTreeError,
    TipSetMismatchError,
)

__all__ = [
    "DensitreeError",
    "InputEmptyError",
    "InvalidConfigurationError",
    "InvalidTipOrderIndexError",
    "MalformedTreeError",
    "TipSetMismatchError",
]
