"""Twee/SugarCube export format.

Generates a Twee 3 file compatible with SugarCube 2. Every story node
becomes one passage; since each node already has its state resolved, the
output needs no story variables, only plain links.

Format reference: https://twinery.org/cookbook/terms/terms_twee.html
SugarCube: https://www.motoslave.net/sugarcube/2/docs/
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING

from bigif.observability.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from bigif.models.story import StoryEdge, StoryGraph, StoryNode

log = get_logger(__name__)

START_PASSAGE = "Start"
DEFAULT_TITLE = "Untitled"

# Passage names Twee or SugarCube treat specially
RESERVED_PASSAGES = frozenset(
    {
        "StoryTitle",
        "StoryData",
        "StoryInit",
        "StoryCaption",
        "StoryMenu",
        "StoryBanner",
        "StorySubtitle",
        "StoryAuthor",
        "StoryInterface",
        "StoryShare",
        "PassageReady",
        "PassageDone",
        "PassageHeader",
        "PassageFooter",
    }
)

# Characters with meaning in Twee passage headers or link markup
_UNSAFE_NAME = re.compile(r"[\[\]{}|<>]")
_UNSAFE_LABEL = ("->", "<-", "|", "[", "]")


class TweeExporter:
    """Export a story graph as Twee 3 / SugarCube 2."""

    format_name = "twee"

    def export(self, graph: StoryGraph, output_dir: Path) -> Path:
        """Write the graph as a .twee file.

        Args:
            graph: Compiled story graph.
            output_dir: Directory to write output files.

        Returns:
            Path to the generated story.twee file.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / "story.twee"
        output_file.write_text(render_twee(graph), encoding="utf-8")

        log.info(
            "twee_export_complete",
            passages=len(graph.nodes),
            links=graph.edge_count,
            output=str(output_file),
        )
        return output_file


def render_twee(graph: StoryGraph) -> str:
    """Render a story graph as Twee 3 source."""
    title = story_title(graph.metadata)
    names = passage_names(graph)

    lines = _story_header(title, graph.entry_id)
    lines.append("")
    for node in graph.nodes.values():
        lines.extend(_render_passage(node, names))
        lines.append("")
    return "\n".join(lines)


def story_title(metadata: dict[str, str]) -> str:
    """Pick the story title from script metadata, ignoring key case."""
    for key, value in metadata.items():
        if key.lower() == "title" and value:
            return value
    return DEFAULT_TITLE


def passage_names(graph: StoryGraph) -> dict[str, str]:
    """Assign a readable, unique passage name to every node.

    The entry node is ``Start``. Other nodes take their knot name, numbered
    from the second state of the same knot on, in discovery order. A knot
    named like a special passage (``StoryData``, ``StoryInit``...) is
    numbered from its first state.
    """
    names: dict[str, str] = {graph.entry_id: START_PASSAGE}
    used = {START_PASSAGE, *RESERVED_PASSAGES}
    for node in graph.nodes.values():
        if node.id in names:
            continue
        base = _UNSAFE_NAME.sub("_", node.knot_name)
        name, n = base, 1
        while name in used:
            n += 1
            name = f"{base} ({n})"
        names[node.id] = name
        used.add(name)
    return names


def _story_header(title: str, entry_id: str) -> list[str]:
    # Derived from the content so that recompiling keeps the same IFID
    ifid = str(uuid.uuid5(uuid.NAMESPACE_URL, f"bigif:{title}:{entry_id}")).upper()
    return [
        f":: StoryTitle\n{title}",
        "",
        f':: StoryData\n{{"ifid": "{ifid}", "format": "SugarCube", "format-version": "2.37.3"}}',
    ]


def _render_passage(node: StoryNode, names: dict[str, str]) -> list[str]:
    name = names[node.id]
    tags = []
    if name == START_PASSAGE:
        tags.append("start")
    if node.is_end:
        tags.append("ending")
    tag_str = f" [{' '.join(tags)}]" if tags else ""

    lines = [f":: {name}{tag_str}"]
    if node.content:
        lines.append(_escape_sugarcube(node.content))
    for edge in node.edges:
        lines.append(_render_link(edge, names))
    return lines


def _render_link(edge: StoryEdge, names: dict[str, str]) -> str:
    target = names[edge.target_node_id]
    label = edge.text or target
    if any(token in label for token in _UNSAFE_LABEL):
        quoted = label.replace('"', '\\"')
        return f'<<link "{quoted}" "{target}">><</link>>'
    return f"[[{label}->{target}]]"


def _escape_sugarcube(text: str) -> str:
    """Escape SugarCube macro delimiters to prevent unintended execution."""
    return text.replace("<<", "&lt;&lt;").replace(">>", "&gt;&gt;")
