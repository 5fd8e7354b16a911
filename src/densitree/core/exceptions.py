"""
Custom exceptions with actionable guidance.

Every error raised while building a densitree is terminal for the whole
request: a densitree with missing members is misleading, so nothing is
dropped or retried. Each error type carries enough context (tree index,
tip labels) and a suggestion for fixing the input.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


def _preview(labels: Iterable[str], limit: int = 5) -> str:
    """Format a short, sorted preview of tip labels."""
    items = sorted(labels)
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f"... and {len(items) - limit} more"
    return shown


class DensitreeError(Exception):
    """Base exception for densitree errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InputEmptyError(DensitreeError):
    """Raised when the tree collection is empty."""

    def __init__(self, source: str | None = None):
        where = f" in {source}" if source else ""
        super().__init__(
            message=f"No trees found{where}; a densitree needs at least one tree",
            suggestion=(
                "Pass a non-empty list of trees. When reading from a file, check "
                "that it is in the declared format (newick, nexus or table)."
            ),
        )


class TipSetMismatchError(DensitreeError):
    """Raised when a tree's tip labels differ from the reference tree's."""

    def __init__(
        self,
        tree_index: int,
        missing: set[str],
        extra: set[str],
        reference_index: int = 0,
    ):
        details = []
        if missing:
            details.append(f"missing: {_preview(missing)}")
        if extra:
            details.append(f"not in reference: {_preview(extra)}")

        super().__init__(
            message=(
                f"Tree {tree_index} does not share the tip set of reference tree "
                f"{reference_index} ({'; '.join(details)})"
            ),
            suggestion=(
                "All trees must carry the same tip labels. Prune the extra tips "
                "or relabel the trees so every tree has the same taxa."
            ),
        )
        self.tree_index = tree_index
        self.missing = missing
        self.extra = extra


class InvalidTipOrderIndexError(DensitreeError):
    """Raised when an integer tip order points outside the tree list."""

    def __init__(self, index: int, n_trees: int):
        super().__init__(
            message=(
                f"Tip order index {index} is out of range for {n_trees} "
                f"tree{'s' if n_trees != 1 else ''}"
            ),
            suggestion=f"Use a 0-based tree index between 0 and {max(n_trees - 1, 0)}.",
        )
        self.index = index
        self.n_trees = n_trees


class MalformedTreeError(DensitreeError):
    """Raised when a tree is not a single connected rooted topology."""

    def __init__(self, tree_index: int | None, reason: str):
        which = f"Tree {tree_index}" if tree_index is not None else "Tree"
        super().__init__(
            message=f"{which} is malformed: {reason}",
            suggestion=(
                "Each tree must have exactly one root, every node must reach "
                "the root, tips must carry unique labels and come first in "
                "the table, and branch lengths must be non-negative."
            ),
        )
        self.tree_index = tree_index
        self.reason = reason


class TreeFileError(DensitreeError):
    """Raised when a tree file cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Could not read trees from '{path}': {reason}",
            suggestion=(
                "Check the file format flag (--format newick, nexus or table). "
                "Table files must contain the columns node, parent, "
                "branch_length, label, is_tip, x, y and tree."
            ),
        )
        self.path = path


class InvalidConfigurationError(DensitreeError):
    """Raised when configuration is invalid."""

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> InvalidConfigurationError:
        """Build from a pydantic ValidationError raised by DensitreeConfig."""
        problems = []
        for item in error.errors():
            field = ".".join(str(part) for part in item["loc"]) or "config"
            problems.append(f"{field}: {item['msg']}")
        return cls(
            message=f"Invalid densitree configuration ({'; '.join(problems)})",
            suggestion=(
                "layout must be one of slanted, rectangular, fan, circular, "
                "radial; jitter must be >= 0; tip_order must be 'mds', a tree "
                "index or a list of tip labels."
            ),
        )


class DuplicateTipLabelError(InvalidConfigurationError):
    """Raised when an explicit tip order repeats a label."""

    def __init__(self, duplicates: set[str]):
        super().__init__(
            message=f"Explicit tip order repeats labels: {_preview(duplicates)}",
            suggestion="List every tip label exactly once in the tip order.",
        )
        self.duplicates = duplicates
