"""
Tip order selection.

The consensus tip order can come from three places: a caller-supplied list
of labels, the existing vertical order of one of the input trees, or a
one-dimensional MDS embedding of tip distances across all trees. The raw
user value is resolved once, at the API boundary, into one of the tagged
variants below; the ordering code only ever sees the variants.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Union

from densitree.core.exceptions import DuplicateTipLabelError, InvalidConfigurationError

MDS_TOKEN = "mds"


@dataclass(frozen=True)
class ExplicitOrder:
    """Use the given labels verbatim as the consensus order."""

    labels: tuple[str, ...]


@dataclass(frozen=True)
class BorrowFromTree:
    """Reuse the y-order of the tree at a 0-based index in the input list."""

    index: int


@dataclass(frozen=True)
class DeriveByMDS:
    """Derive the order from classical MDS over aligned distance matrices."""


TipOrder = Union[ExplicitOrder, BorrowFromTree, DeriveByMDS]

TipOrderValue = Union[str, int, Sequence[str], ExplicitOrder, BorrowFromTree, DeriveByMDS]


def resolve_tip_order(value: TipOrderValue) -> TipOrder:
    """
    Resolve a user-facing tip order value into a tagged variant.

    Args:
        value: "mds" (case-insensitive), a non-negative tree index, a
            sequence of tip labels, or an already-resolved variant.

    Returns:
        ExplicitOrder, BorrowFromTree or DeriveByMDS.

    Raises:
        DuplicateTipLabelError: If a label sequence repeats a label.
        InvalidConfigurationError: For any other value.

    Example:
        >>> resolve_tip_order("mds")
        DeriveByMDS()
        >>> resolve_tip_order(2)
        BorrowFromTree(index=2)
    """
    if isinstance(value, (ExplicitOrder, BorrowFromTree, DeriveByMDS)):
        return value

    if isinstance(value, str):
        if value.strip().lower() == MDS_TOKEN:
            return DeriveByMDS()
        raise InvalidConfigurationError(
            message=f"Unknown tip order token '{value}'",
            suggestion=(
                "Use 'mds', an integer tree index, or a list of tip labels. "
                "A single label must be passed as a one-element list."
            ),
        )

    # bool is an int subclass but never a meaningful tree index
    if isinstance(value, bool):
        raise InvalidConfigurationError(
            message=f"Tip order must not be a boolean (got {value})",
            suggestion="Use 'mds', an integer tree index, or a list of tip labels.",
        )

    if isinstance(value, int):
        if value < 0:
            raise InvalidConfigurationError(
                message=f"Tip order index must be non-negative (got {value})",
                suggestion="Tree indices are 0-based; use 0 for the first tree.",
            )
        return BorrowFromTree(index=value)

    if isinstance(value, Sequence):
        labels = tuple(value)
        if not labels:
            raise InvalidConfigurationError(
                message="Explicit tip order is empty",
                suggestion="List the tip labels in the order they should be drawn.",
            )
        if not all(isinstance(label, str) for label in labels):
            raise InvalidConfigurationError(
                message="Explicit tip order must contain only string labels",
                suggestion="Pass tip labels as strings, e.g. ['a', 'b', 'c'].",
            )
        duplicates = {label for label, count in Counter(labels).items() if count > 1}
        if duplicates:
            raise DuplicateTipLabelError(duplicates)
        return ExplicitOrder(labels=labels)

    raise InvalidConfigurationError(
        message=f"Unsupported tip order value of type {type(value).__name__}",
        suggestion="Use 'mds', an integer tree index, or a list of tip labels.",
    )


def parse_tip_order_option(text: str) -> TipOrder:
    """
    Parse the command-line form of a tip order.

    Accepts "mds", an integer tree index, or a comma-separated label list.

    Example:
        >>> parse_tip_order_option("a,b,c")
        ExplicitOrder(labels=('a', 'b', 'c'))
    """
    stripped = text.strip()
    if stripped.lower() == MDS_TOKEN:
        return DeriveByMDS()
    if stripped.lstrip("-").isdigit():
        return resolve_tip_order(int(stripped))
    labels = [label.strip() for label in stripped.split(",") if label.strip()]
    return resolve_tip_order(labels)
