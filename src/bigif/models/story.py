"""Compiled story graph data models.

The output of the graph builder: one StoryNode per reachable
(knot, state) pair, keyed by its canonical identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bigif.graph.state import StateVector


@dataclass(frozen=True)
class StoryEdge:
    """A choice leading from one node to another."""

    text: str
    target_node_id: str
    stitch: str | None = None


@dataclass
class StoryNode:
    """A single, unique, reachable state of the narrative."""

    id: str
    knot_name: str
    scene: str
    state: StateVector
    content: str = ""
    edges: list[StoryEdge] = field(default_factory=list)
    is_end: bool = False
    stitch: str | None = None


@dataclass
class StoryGraph:
    """All reachable nodes, in discovery order, plus pass-through metadata."""

    metadata: dict[str, str]
    nodes: dict[str, StoryNode] = field(default_factory=dict)
    entry_id: str = ""

    @property
    def entry(self) -> StoryNode:
        return self.nodes[self.entry_id]

    @property
    def edge_count(self) -> int:
        return sum(len(node.edges) for node in self.nodes.values())

    def edges(self) -> list[tuple[StoryNode, StoryEdge]]:
        """Return every (source node, edge) pair in discovery order."""
        return [(node, edge) for node in self.nodes.values() for edge in node.edges]
