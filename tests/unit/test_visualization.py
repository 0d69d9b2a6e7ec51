"""Tests for story graph visualization."""

from __future__ import annotations

from bigif.compiler import compile_script
from bigif.visualization import build_viz_graph, render_dot, render_mermaid
from tests.fixtures.scripts import DOOR_AND_KEY, LOCAL_PURGE, STITCHES


class TestBuildVizGraph:
    def test_one_node_per_state(self) -> None:
        vg = build_viz_graph(compile_script(DOOR_AND_KEY))

        assert [n.id for n in vg.nodes] == [
            "index|has_key=false",
            "index|has_key=true",
            "victory|has_key=true",
        ]
        assert vg.nodes[0].is_start is True
        assert vg.nodes[2].is_ending is True

    def test_state_changes_marked(self) -> None:
        vg = build_viz_graph(compile_script(DOOR_AND_KEY))

        assert [e.changes_state for e in vg.edges] == [True, False]

    def test_state_label(self) -> None:
        vg = build_viz_graph(compile_script(DOOR_AND_KEY))

        assert vg.nodes[0].label == "index\n-"
        assert vg.nodes[1].label == "index\nhas_key"

    def test_collapse_states(self) -> None:
        vg = build_viz_graph(compile_script(LOCAL_PURGE, entry="room"), collapse_states=True)

        assert [n.id for n in vg.nodes] == ["room", "hall"]
        # room -> room (drawer) and room -> hall, merged across both room states
        assert [(e.from_id, e.to_id) for e in vg.edges] == [("room", "room"), ("room", "hall")]
        assert vg.scenes == ["bedroom", "corridor"]

    def test_dead_end_detected(self) -> None:
        vg = build_viz_graph(compile_script("=== index ===\n* Go. -> stuck\n=== stuck ===\n"))

        stuck = next(n for n in vg.nodes if n.id == "stuck|")
        assert stuck.is_dead_end is True
        assert stuck.is_ending is False


class TestRenderDot:
    def test_structure(self) -> None:
        dot = render_dot(build_viz_graph(compile_script(DOOR_AND_KEY)))

        assert dot.startswith("digraph story {")
        assert dot.endswith("}")
        assert "doubleoctagon" in dot
        assert 'label="Search the floor."' in dot

    def test_no_labels(self) -> None:
        dot = render_dot(build_viz_graph(compile_script(DOOR_AND_KEY)), no_labels=True)

        assert "Search the floor." not in dot

    def test_stitch_edges_dashed(self) -> None:
        dot = render_dot(build_viz_graph(compile_script(STITCHES)))

        assert 'style="dashed"' in dot


class TestRenderMermaid:
    def test_structure(self) -> None:
        mermaid = render_mermaid(build_viz_graph(compile_script(DOOR_AND_KEY)))

        assert mermaid.startswith("graph LR")
        assert 'n0["index<br/>-"]:::start' in mermaid
        assert 'n0 -->|"Search the floor."| n1' in mermaid
        assert "classDef ending" in mermaid
        assert "linkStyle 0 " in mermaid

    def test_stitch_arrow(self) -> None:
        mermaid = render_mermaid(build_viz_graph(compile_script(STITCHES)), no_labels=True)

        assert "n0 -.-> n1" in mermaid
