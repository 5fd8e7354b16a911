"""
Pydantic configuration models for densitree.

These models define how a set of trees is overlaid: the layout geometry
forwarded to the renderer, how the consensus tip order is chosen, and how
each tree's coordinates are reconciled (tip alignment and jitter).
Configuration can be loaded from YAML files or built from CLI arguments.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator

from densitree.core.exceptions import InvalidConfigurationError
from densitree.models.tip_order import (
    MDS_TOKEN,
    BorrowFromTree,
    DeriveByMDS,
    ExplicitOrder,
    TipOrder,
    resolve_tip_order,
)

logger = logging.getLogger(__name__)


class Layout(str, Enum):
    """Tree layout geometry."""

    SLANTED = "slanted"
    RECTANGULAR = "rectangular"
    FAN = "fan"
    CIRCULAR = "circular"
    RADIAL = "radial"


class DensitreeConfig(BaseModel):
    """
    Configuration for overlaying a tree sample.

    Tip order:
        - "mds": order tips by a 1-D classical MDS embedding of their
          distance profiles across all trees (default)
        - integer: reuse the existing y-order of the tree at that 0-based index
        - list of labels: use the labels verbatim

    Alignment:
        - align_tips=True shifts every tree so its rightmost tip lands on the
          rightmost tip of the deepest tree
        - align_tips=False leaves every root at x=0

    Jitter:
        Standard deviation of Gaussian noise added to the tip y-coordinates of
        every tree except the first. Purely cosmetic; 0 disables it.
    """

    layout: Layout = Field(
        default=Layout.SLANTED,
        description="Layout geometry forwarded to the renderer",
    )
    tip_order: str | int | list[str] = Field(
        default=MDS_TOKEN,
        description="'mds', a 0-based tree index, or an explicit list of tip labels",
    )
    align_tips: bool = Field(
        default=True,
        description="Align trees by their tips (True) or by their root (False)",
    )
    jitter: float = Field(
        default=0.0,
        ge=0,
        description="Standard deviation of vertical tip jitter for trees after the first",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the jitter random generator (None draws fresh entropy)",
    )

    @field_validator("tip_order", mode="before")
    @classmethod
    def normalize_tip_order(cls, value: Any) -> Any:
        """Unwrap resolved variants; reject booleans, which would coerce to 0 and 1."""
        if isinstance(value, ExplicitOrder):
            return list(value.labels)
        if isinstance(value, BorrowFromTree):
            return value.index
        if isinstance(value, DeriveByMDS):
            return MDS_TOKEN
        if isinstance(value, bool):
            msg = "tip_order must be 'mds', a tree index, or a list of labels, not a boolean"
            raise ValueError(msg)
        if isinstance(value, tuple):
            return list(value)
        return value

    @field_validator("tip_order")
    @classmethod
    def validate_tip_order(cls, value: str | int | list[str]) -> str | int | list[str]:
        """Tip order must resolve to one of the three ordering modes."""
        try:
            resolve_tip_order(value)
        except InvalidConfigurationError as e:
            raise ValueError(e.message) from None
        return value

    def resolved_tip_order(self) -> TipOrder:
        """Return the tip order as a tagged variant."""
        return resolve_tip_order(self.tip_order)

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        """
        Load configuration from a YAML file.

        The YAML file uses a small nested structure::

            layout: rectangular
            ordering:
              tip_order: mds
            alignment:
              align_tips: true
              jitter: 0.05
              seed: 1

        Unknown keys are ignored (forward compatibility).

        Args:
            path: Path to YAML configuration file.

        Returns:
            DensitreeConfig populated from YAML values merged with defaults.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            ValueError: If the YAML document is not a mapping.
            pydantic.ValidationError: If a value is invalid.
        """
        import yaml

        raw = yaml.safe_load(path.read_text())
        if not isinstance(raw, dict):
            msg = f"YAML config must be a mapping, got {type(raw).__name__}"
            raise ValueError(msg)

        return cls(**_flatten_yaml_config(raw))

    def to_yaml(self, path: Path) -> None:
        """
        Write configuration to a YAML file.

        Args:
            path: Output file path.
        """
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """
        Serialize configuration to a YAML string.

        Returns:
            YAML-formatted string with nested structure.
        """
        import yaml

        data = _build_yaml_structure(self)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    model_config = {"frozen": True}


def _map_if_present(
    source: dict[str, Any],
    source_key: str,
    target: dict[str, Any],
    target_key: str,
) -> None:
    """Copy source[source_key] to target[target_key] if present."""
    if source_key in source:
        target[target_key] = source[source_key]


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten nested YAML config structure into DensitreeConfig keyword arguments.

    Maps:
        layout -> layout
        ordering.tip_order -> tip_order
        alignment.align_tips / jitter / seed -> align_tips / jitter / seed
    """
    flat: dict[str, Any] = {}

    _map_if_present(raw, "layout", flat, "layout")

    ordering = raw.get("ordering") or {}
    _map_if_present(ordering, "tip_order", flat, "tip_order")

    alignment = raw.get("alignment") or {}
    _map_if_present(alignment, "align_tips", flat, "align_tips")
    _map_if_present(alignment, "jitter", flat, "jitter")
    _map_if_present(alignment, "seed", flat, "seed")

    return flat


def _build_yaml_structure(config: DensitreeConfig) -> dict[str, Any]:
    """Build the nested YAML structure written by to_yaml_str()."""
    return {
        "layout": config.layout.value,
        "ordering": {"tip_order": config.tip_order},
        "alignment": {
            "align_tips": config.align_tips,
            "jitter": config.jitter,
            "seed": config.seed,
        },
    }
