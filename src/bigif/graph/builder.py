"""Reachable-state graph builder.

Breadth-first exploration of (knot, state) pairs starting from the entry
knot with every variable false. Each distinct pair becomes exactly one
StoryNode; identities come from ``bigif.graph.identity``.

Exploration order is deterministic: nodes are dequeued in discovery order
and a node's choices are followed in declaration order. That order fixes
edge order in the output but never which nodes exist.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from bigif.errors import MissingEntryKnotError, UnknownKnotError
from bigif.graph.identity import node_id
from bigif.graph.state import (
    apply_mutations,
    evaluate_condition,
    initial_state,
    purge_locals,
)
from bigif.models.script import VariableClass
from bigif.models.story import StoryEdge, StoryGraph, StoryNode
from bigif.observability.logging import get_logger

if TYPE_CHECKING:
    from bigif.graph.state import StateVector
    from bigif.models.script import Choice, Knot, Script

log = get_logger(__name__)

DEFAULT_ENTRY_KNOT = "index"


def select_content(knot: Knot, state: StateVector) -> str:
    """Return the content of the first text block whose condition holds.

    Blocks are tried strictly in declared order; a block with an empty
    condition always matches. Returns "" when nothing matches.
    """
    for block in knot.body:
        if evaluate_condition(block.condition, state):
            return block.content
    return ""


def create_node(knot: Knot, state: StateVector, *, stitch: str | None = None) -> StoryNode:
    """Build the StoryNode for a knot entered with the given state."""
    return StoryNode(
        id=node_id(knot.name, state),
        knot_name=knot.name,
        scene=knot.scene,
        state=state,
        content=select_content(knot, state),
        is_end=knot.is_end,
        stitch=stitch,
    )


def resolve_destination(choice: Choice, current: str) -> str | None:
    """Name the knot a choice leads to, or None for a no-op choice.

    An explicit target wins. A choice that changes state stays in the
    current knot. Anything else leads nowhere, including a bare
    local-anchor jump: the anchor tag only annotates the edge.
    """
    if choice.target:
        return choice.target
    if choice.mutations:
        return current
    return None


def build_story_graph(script: Script, entry: str = DEFAULT_ENTRY_KNOT) -> StoryGraph:
    """Explore every reachable (knot, state) pair of a script.

    Args:
        script: Parsed script.
        entry: Name of the knot the story starts in.

    Returns:
        The complete graph of reachable nodes, keyed by canonical identity.

    Raises:
        MissingEntryKnotError: If the script has no knot named ``entry``.
        UnknownKnotError: If a reachable choice leads to an undefined knot.
    """
    knots = script.knots
    entry_knot = knots.get(entry)
    if entry_knot is None:
        raise MissingEntryKnotError(entry, available=list(knots))

    classes = script.declarations.classify()
    local_names = sorted(name for name, cls in classes.items() if cls is VariableClass.LOCAL)

    log.debug(
        "graph_build_started",
        entry=entry,
        knots=len(knots),
        variables=len(classes),
        locals=len(local_names),
    )

    root = create_node(entry_knot, initial_state(script.declarations))
    graph = StoryGraph(metadata=dict(script.metadata), entry_id=root.id)
    graph.nodes[root.id] = root
    queue: deque[StoryNode] = deque([root])

    while queue:
        current = queue.popleft()
        current_knot = knots[current.knot_name]

        for choice in current_knot.choices:
            if not evaluate_condition(choice.condition, current.state):
                continue

            next_state = apply_mutations(current.state, choice.mutations, classes)

            target_name = resolve_destination(choice, current.knot_name)
            if target_name is None:
                log.debug("choice_dropped", knot=current.knot_name, choice=choice.text)
                continue

            target_knot = knots.get(target_name)
            if target_knot is None:
                raise UnknownKnotError(
                    target_name,
                    source=current.knot_name,
                    choice_text=choice.text,
                    available=list(knots),
                )

            if target_knot.scene != current_knot.scene:
                next_state = purge_locals(next_state, local_names)

            next_node = create_node(target_knot, next_state, stitch=choice.stitch)
            current.edges.append(
                StoryEdge(text=choice.text, target_node_id=next_node.id, stitch=choice.stitch)
            )

            if next_node.id not in graph.nodes:
                graph.nodes[next_node.id] = next_node
                queue.append(next_node)

    log.info(
        "story_graph_built",
        entry=entry,
        nodes=len(graph.nodes),
        edges=graph.edge_count,
    )
    return graph
