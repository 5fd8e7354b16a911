"""
CLI commands for densitree.

Provides the command-line interface for plotting tree samples and
inspecting their consensus tip order.
"""

__all__ = ["main", "plot", "utils"]
