"""Parent/child structure of a tabular tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import polars as pl


@dataclass
class Topology:
    """Parent/child links of a FortifiedTree, indexed by node id.

    Attributes:
        nodes: Node ids in table row order.
        parents: Parent id per row (None for the root).
        root: Node id of the root.
        children: Child node ids per node, in table row order.
        row: Row index of each node id.
    """

    nodes: list[int]
    parents: list[int | None]
    root: int
    children: dict[int, list[int]] = field(default_factory=dict)
    row: dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_table(cls, table: pl.DataFrame) -> Topology:
        """Build from the node and parent columns of a validated table."""
        nodes = [int(n) for n in table.get_column("node").to_list()]
        parents = [None if p is None else int(p) for p in table.get_column("parent").to_list()]

        row = {node: i for i, node in enumerate(nodes)}
        children: dict[int, list[int]] = {node: [] for node in nodes}
        root = nodes[0]
        for node, parent in zip(nodes, parents):
            if parent is None:
                root = node
            else:
                children[parent].append(node)

        return cls(nodes=nodes, parents=parents, root=root, children=children, row=row)

    def parent_of(self, node: int) -> int | None:
        return self.parents[self.row[node]]

    def preorder(self) -> list[int]:
        """Node ids from the root down, children in row order."""
        order: list[int] = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            order.append(node)
            stack.extend(reversed(self.children[node]))
        return order

    def postorder(self) -> list[int]:
        """Node ids with every child before its parent."""
        return self.preorder()[::-1]
