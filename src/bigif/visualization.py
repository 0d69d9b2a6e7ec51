"""Story graph visualization.

Renders a compiled story graph as DOT (Graphviz) or Mermaid markup.
Pure graph analysis: nothing here recompiles or touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bigif.observability.logging import get_logger

if TYPE_CHECKING:
    from bigif.models.story import StoryGraph, StoryNode

log = get_logger(__name__)

# Scene color palette, cycled in order of first appearance
_SCENE_COLORS = [
    "#ADD8E6",  # light blue
    "#FFD700",  # gold
    "#FFA07A",  # light salmon
    "#98FB98",  # pale green
    "#DDA0DD",  # plum
    "#87CEEB",  # sky blue
    "#F0E68C",  # khaki
]
_NO_SCENE_COLOR = "#D3D3D3"  # light grey
_START_COLOR = "#90EE90"  # light green
_ENDING_COLOR = "#FFB6C1"  # light pink
_STATE_CHANGE_COLOR = "#6A5ACD"  # slate blue for state-changing choices
_DEAD_END_BORDER = "#FF4500"  # orange-red border for non-ending nodes without choices


@dataclass
class VizNode:
    """A story node (or a whole knot, when collapsed) in the visualization."""

    id: str
    label: str
    scene: str = ""
    is_start: bool = False
    is_ending: bool = False
    is_dead_end: bool = False


@dataclass
class VizEdge:
    """A choice edge in the visualization."""

    from_id: str
    to_id: str
    label: str = ""
    changes_state: bool = False
    stitch: str | None = None


@dataclass
class VizGraph:
    """Complete visualization data extracted from a story graph."""

    nodes: list[VizNode]
    edges: list[VizEdge]
    scenes: list[str] = field(default_factory=list)


def _state_label(node: StoryNode) -> str:
    on = sorted(name for name, value in node.state.items() if value)
    return ", ".join(on) if on else "-"


def build_viz_graph(graph: StoryGraph, *, collapse_states: bool = False) -> VizGraph:
    """Extract visualization data from a story graph.

    Args:
        graph: Compiled story graph.
        collapse_states: If True, draw one node per knot instead of one per
            (knot, state) pair; parallel edges with the same label are merged.

    Returns:
        VizGraph with nodes, edges and the scenes in order of appearance.
    """
    scenes = list(dict.fromkeys(node.scene for node in graph.nodes.values()))

    def viz_id(node: StoryNode) -> str:
        return node.knot_name if collapse_states else node.id

    nodes: dict[str, VizNode] = {}
    for node in graph.nodes.values():
        vid = viz_id(node)
        dead_end = not node.edges and not node.is_end
        existing = nodes.get(vid)
        if existing is not None:
            existing.is_start = existing.is_start or node.id == graph.entry_id
            existing.is_dead_end = existing.is_dead_end or dead_end
            continue
        label = node.knot_name if collapse_states else f"{node.knot_name}\n{_state_label(node)}"
        nodes[vid] = VizNode(
            id=vid,
            label=label,
            scene=node.scene,
            is_start=node.id == graph.entry_id,
            is_ending=node.is_end,
            is_dead_end=dead_end,
        )

    edges: list[VizEdge] = []
    seen: set[tuple[str, str, str]] = set()
    for source, edge in graph.edges():
        target = graph.nodes[edge.target_node_id]
        key = (viz_id(source), viz_id(target), edge.text)
        if collapse_states and key in seen:
            continue
        seen.add(key)
        edges.append(
            VizEdge(
                from_id=key[0],
                to_id=key[1],
                label=edge.text,
                changes_state=source.state != target.state,
                stitch=edge.stitch,
            )
        )

    log.info(
        "viz_graph_built",
        nodes=len(nodes),
        edges=len(edges),
        scenes=len(scenes),
        collapse_states=collapse_states,
    )
    return VizGraph(nodes=list(nodes.values()), edges=edges, scenes=scenes)


def render_dot(vg: VizGraph, *, no_labels: bool = False) -> str:
    """Render a VizGraph as DOT (Graphviz) markup.

    Args:
        vg: Visualization data.
        no_labels: If True, omit choice labels on edges.

    Returns:
        DOT format string.
    """
    scene_color = _assign_scene_colors(vg.scenes)

    lines = [
        "digraph story {",
        "  rankdir=LR;",
        '  node [fontname="Helvetica" fontsize=10 style="filled,solid"];',
        '  edge [fontname="Helvetica" fontsize=8];',
        "",
    ]

    for node in vg.nodes:
        attrs = _dot_node_attrs(node, scene_color)
        attr_str = " ".join(f"{k}={v}" for k, v in attrs.items())
        lines.append(f'  "{_dot_escape(node.id)}" [{attr_str}];')

    lines.append("")

    for edge in vg.edges:
        edge_attrs: dict[str, str] = {}
        if not no_labels and edge.label:
            edge_attrs["label"] = f'"{_dot_escape(edge.label)}"'
        if edge.stitch:
            edge_attrs["style"] = '"dashed"'
        if edge.changes_state:
            edge_attrs["color"] = f'"{_STATE_CHANGE_COLOR}"'
            edge_attrs["penwidth"] = '"2"'
        edge_attr_str = " ".join(f"{k}={v}" for k, v in edge_attrs.items())
        suffix = f" [{edge_attr_str}]" if edge_attr_str else ""
        lines.append(f'  "{_dot_escape(edge.from_id)}" -> "{_dot_escape(edge.to_id)}"{suffix};')

    lines.append("}")
    return "\n".join(lines)


def render_mermaid(vg: VizGraph, *, no_labels: bool = False) -> str:
    """Render a VizGraph as Mermaid markup.

    Args:
        vg: Visualization data.
        no_labels: If True, omit choice labels on edges.

    Returns:
        Mermaid format string.
    """
    safe_ids = _mermaid_ids(vg.nodes)
    lines = ["graph LR"]

    for node in vg.nodes:
        safe_id = safe_ids[node.id]
        label = _mermaid_escape(node.label)
        if node.is_start:
            lines.append(f'  {safe_id}["{label}"]:::start')
        elif node.is_ending:
            lines.append(f'  {safe_id}(["{label}"]):::ending')
        elif node.is_dead_end:
            lines.append(f'  {safe_id}["{label}"]:::deadEnd')
        else:
            lines.append(f'  {safe_id}["{label}"]')

    lines.append("")

    for edge in vg.edges:
        src = safe_ids[edge.from_id]
        dst = safe_ids[edge.to_id]
        arrow = "-.->" if edge.stitch else "-->"
        if not no_labels and edge.label:
            label = _mermaid_escape(edge.label)
            lines.append(f'  {src} {arrow}|"{label}"| {dst}')
        else:
            lines.append(f"  {src} {arrow} {dst}")

    lines.append("")
    lines.append(f"  classDef start fill:{_START_COLOR},stroke:#333")
    lines.append(f"  classDef ending fill:{_ENDING_COLOR},stroke:#333")
    lines.append(f"  classDef deadEnd stroke:{_DEAD_END_BORDER},stroke-width:3px")
    state_indices = [i for i, e in enumerate(vg.edges) if e.changes_state]
    if state_indices:
        idx_list = ",".join(str(i) for i in state_indices)
        lines.append(f"  linkStyle {idx_list} stroke:{_STATE_CHANGE_COLOR},stroke-width:2px")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _assign_scene_colors(scenes: list[str]) -> dict[str, str]:
    """Assign a color to each named scene; the unnamed scene stays grey."""
    named = [s for s in scenes if s]
    return {scene: _SCENE_COLORS[i % len(_SCENE_COLORS)] for i, scene in enumerate(named)}


def _dot_node_attrs(node: VizNode, scene_color: dict[str, str]) -> dict[str, str]:
    """Build DOT attribute dict for a node."""
    attrs: dict[str, str] = {}

    if node.is_start:
        attrs["shape"] = "doubleoctagon"
        attrs["fillcolor"] = f'"{_START_COLOR}"'
    elif node.is_ending:
        attrs["shape"] = "octagon"
        attrs["fillcolor"] = f'"{_ENDING_COLOR}"'
    else:
        attrs["shape"] = "box"
        attrs["fillcolor"] = f'"{scene_color.get(node.scene, _NO_SCENE_COLOR)}"'

    if node.is_dead_end:
        attrs["color"] = f'"{_DEAD_END_BORDER}"'
        attrs["penwidth"] = '"2.5"'

    attrs["label"] = f'"{_dot_escape(node.label)}"'
    return attrs


def _dot_escape(text: str) -> str:
    """Escape special characters for DOT strings."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _mermaid_ids(nodes: list[VizNode]) -> dict[str, str]:
    """Map node ids to Mermaid-safe identifiers.

    Canonical node ids contain ``|``, ``=`` and ``,``, none of which Mermaid
    accepts, so nodes are numbered in order instead.
    """
    return {node.id: f"n{i}" for i, node in enumerate(nodes)}


def _mermaid_escape(text: str) -> str:
    """Escape special characters for Mermaid labels."""
    return text.replace('"', "&quot;").replace("\n", "<br/>")
