"""
Configuration and option models for densitree.

Provides the pydantic configuration model and the tagged tip order
variants resolved at the API boundary.
"""

from densitree.models.config import DensitreeConfig, Layout
from densitree.models.tip_order import (
    BorrowFromTree,
    DeriveByMDS,
    ExplicitOrder,
    TipOrder,
    parse_tip_order_option,
    resolve_tip_order,
)

__all__ = [
    "BorrowFromTree",
    "DensitreeConfig",
    "DeriveByMDS",
    "ExplicitOrder",
    "Layout",
    "TipOrder",
    "parse_tip_order_option",
    "resolve_tip_order",
]
