"""Compiled graph inspection.

Statistics an author looks at after compiling: how far the state space
fans out, which knots can never be reached, and where the story stops
without an ending. Pure graph analysis.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bigif.graph.validation import ValidationReport, run_all_checks
from bigif.observability.logging import get_logger

if TYPE_CHECKING:
    from bigif.models.script import Script
    from bigif.models.story import StoryGraph

log = get_logger(__name__)


@dataclass
class GraphSummary:
    """High-level statistics of one compilation."""

    title: str | None
    knot_count: int
    node_count: int
    edge_count: int
    variable_count: int
    ending_nodes: list[str] = field(default_factory=list)
    dead_ends: list[str] = field(default_factory=list)
    unreachable_knots: list[str] = field(default_factory=list)
    states_per_knot: dict[str, int] = field(default_factory=dict)
    scenes: list[str] = field(default_factory=list)
    report: ValidationReport = field(default_factory=ValidationReport)

    @property
    def max_states_per_knot(self) -> int:
        return max(self.states_per_knot.values(), default=0)


def inspect_graph(script: Script, graph: StoryGraph) -> GraphSummary:
    """Summarize a compiled graph against the script it came from.

    Args:
        script: Parsed script.
        graph: Graph compiled from ``script``.

    Returns:
        GraphSummary including the invariant validation report.
    """
    per_knot = Counter(node.knot_name for node in graph.nodes.values())
    title = next((v for k, v in script.metadata.items() if k.lower() == "title"), None)

    summary = GraphSummary(
        title=title,
        knot_count=len(script.knots),
        node_count=len(graph.nodes),
        edge_count=graph.edge_count,
        variable_count=len(script.declarations.names),
        ending_nodes=[node.id for node in graph.nodes.values() if node.is_end],
        dead_ends=[
            node.id for node in graph.nodes.values() if not node.edges and not node.is_end
        ],
        unreachable_knots=sorted(name for name in script.knots if name not in per_knot),
        states_per_knot=dict(sorted(per_knot.items())),
        scenes=sorted({node.scene for node in graph.nodes.values() if node.scene}),
        report=run_all_checks(graph, script.declarations),
    )

    log.info(
        "graph_inspected",
        nodes=summary.node_count,
        unreachable_knots=len(summary.unreachable_knots),
        dead_ends=len(summary.dead_ends),
    )
    return summary
