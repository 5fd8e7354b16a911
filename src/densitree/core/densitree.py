"""
End-to-end densitree construction.

Turns a collection of trees into reconciled coordinate tables that share
one consensus tip order, ready to be drawn as stacked layers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import polars as pl
from pydantic import ValidationError

from densitree.core.exceptions import InputEmptyError, InvalidConfigurationError
from densitree.core.phylogeny.fortify import TreeInput, fortify, tip_count
from densitree.core.phylogeny.ordering import consensus_tip_order
from densitree.core.phylogeny.reconcile import RandomSource, reconcile_coordinates
from densitree.models.config import DensitreeConfig, Layout
from densitree.models.tip_order import resolve_tip_order

logger = logging.getLogger(__name__)


@dataclass
class DensitreeResult:
    """Reconciled trees of a densitree.

    Attributes:
        tip_order: Consensus tip labels; slot k (1-based) is drawn at y = k.
        tables: One reconciled FortifiedTree table per input tree, in input
            order. The first is the base layer of the overlay.
        config: Configuration the result was built with.
    """

    tip_order: list[str]
    tables: list[pl.DataFrame]
    config: DensitreeConfig

    @property
    def layout(self) -> Layout:
        return self.config.layout

    @property
    def n_trees(self) -> int:
        return len(self.tables)

    def combined(self) -> pl.DataFrame:
        """
        Concatenate all tables into one, tagging rows with their tree.

        A `tree` column holding the 0-based tree index is added unless the
        tables already carry one.
        """
        tagged = [
            table if "tree" in table.columns else table.with_columns(pl.lit(i).alias("tree"))
            for i, table in enumerate(self.tables)
        ]
        return pl.concat(tagged, how="diagonal_relaxed")


def _resolve_config(config: DensitreeConfig | None, overrides: dict[str, Any]) -> DensitreeConfig:
    """Merge keyword overrides into a validated configuration."""
    fields = config.model_dump() if config is not None else {}
    fields.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return DensitreeConfig(**fields)
    except ValidationError as e:
        raise InvalidConfigurationError.from_validation_error(e) from e


def build_densitree(
    trees: Iterable[TreeInput],
    *,
    config: DensitreeConfig | None = None,
    layout: Layout | str | None = None,
    tip_order: Any = None,
    align_tips: bool | None = None,
    jitter: float | None = None,
    rng: RandomSource = None,
) -> DensitreeResult:
    """
    Build a densitree from a collection of trees.

    Keyword arguments override the matching fields of `config`; anything
    left unset falls back to the DensitreeConfig defaults.

    Args:
        trees: BioPython trees, Newick strings, or FortifiedTree DataFrames.
        config: Base configuration.
        layout: Layout geometry forwarded to the renderer.
        tip_order: "mds", a 0-based tree index, or a list of tip labels.
        align_tips: Align trees by their tips (True) or their root (False).
        jitter: Standard deviation of tip jitter for trees after the first.
        rng: numpy Generator or seed for jitter; defaults to config.seed.

    Returns:
        DensitreeResult with the consensus order and reconciled tables.

    Raises:
        InvalidConfigurationError: For an unsupported layout, a negative
            jitter or an unusable tip order.
        DuplicateTipLabelError: If an explicit tip order repeats a label.
        InputEmptyError: If no trees are given.
        MalformedTreeError: If a tree is not a single rooted topology.
        TipSetMismatchError: If trees do not share the first tree's tips.
        InvalidTipOrderIndexError: For an out-of-range tree index.

    Example:
        >>> result = build_densitree(["((a:1,b:1):1.5,c:2.5);", "((a:1,c:1):1,b:2);"])
        >>> sorted(result.tip_order)
        ['a', 'b', 'c']
    """
    # Repeated labels raise DuplicateTipLabelError, not a validation error
    if tip_order is not None:
        tip_order = resolve_tip_order(tip_order)
    resolved = _resolve_config(
        config,
        {
            "layout": layout,
            "tip_order": tip_order,
            "align_tips": align_tips,
            "jitter": jitter,
        },
    )

    tree_list = list(trees)
    if not tree_list:
        raise InputEmptyError()

    tables = [fortify(tree, tree_index=i) for i, tree in enumerate(tree_list)]
    logger.info(f"Tabularized {len(tables)} trees with {tip_count(tables[0])} tips")

    order = consensus_tip_order(tables, resolved.resolved_tip_order())

    reconciled = reconcile_coordinates(
        tables,
        order,
        align_tips=resolved.align_tips,
        jitter=resolved.jitter,
        rng=rng if rng is not None else resolved.seed,
    )

    return DensitreeResult(tip_order=order, tables=reconciled, config=resolved)
