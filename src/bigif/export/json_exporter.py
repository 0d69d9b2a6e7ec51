"""JSON export format.

The reference serialization of a compiled story graph::

    {
      "metadata": {...},
      "graph": {
        "nodes": {
          "<node id>": {
            "knotName": ..., "scene": ..., "state": {...}, "content": ...,
            "edges": [{"text": ..., "targetNodeId": ..., "stitch": ...}],
            "isEnd": ..., "stitch": ...
          }
        }
      }
    }

Node ids and state keys are sorted so that equal graphs serialize to
identical bytes. ``stitch`` keys appear only when set.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from bigif.observability.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from bigif.models.story import StoryEdge, StoryGraph, StoryNode

log = get_logger(__name__)


def _edge_to_dict(edge: StoryEdge) -> dict[str, Any]:
    data: dict[str, Any] = {"text": edge.text, "targetNodeId": edge.target_node_id}
    if edge.stitch:
        data["stitch"] = edge.stitch
    return data


def _node_to_dict(node: StoryNode) -> dict[str, Any]:
    data: dict[str, Any] = {
        "knotName": node.knot_name,
        "scene": node.scene,
        "state": node.state.to_dict(),
        "content": node.content,
        "edges": [_edge_to_dict(edge) for edge in node.edges],
        "isEnd": node.is_end,
    }
    if node.stitch:
        data["stitch"] = node.stitch
    return data


def graph_to_dict(graph: StoryGraph) -> dict[str, Any]:
    """Build the reference nested structure for a story graph."""
    return {
        "metadata": dict(sorted(graph.metadata.items())),
        "graph": {
            "nodes": {
                node_id: _node_to_dict(graph.nodes[node_id]) for node_id in sorted(graph.nodes)
            },
        },
    }


def render_json(graph: StoryGraph) -> str:
    """Serialize a story graph as indented reference JSON."""
    return json.dumps(graph_to_dict(graph), indent=2, ensure_ascii=False)


class JsonExporter:
    """Export a story graph as reference JSON."""

    format_name = "json"

    def export(self, graph: StoryGraph, output_dir: Path) -> Path:
        """Write the graph as formatted JSON.

        Args:
            graph: Compiled story graph.
            output_dir: Directory to write output files.

        Returns:
            Path to the generated story.json file.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / "story.json"
        output_file.write_text(render_json(graph) + "\n", encoding="utf-8")

        log.info("json_export_complete", nodes=len(graph.nodes), output=str(output_file))
        return output_file
