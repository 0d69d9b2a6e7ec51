"""Tests for compiled graph inspection."""

from __future__ import annotations

from bigif.graph.builder import build_story_graph
from bigif.inspection import GraphSummary, inspect_graph
from bigif.parser import parse_script
from tests.fixtures.scripts import DOOR_AND_KEY, LOCAL_PURGE, UNREACHABLE_KNOT


def _inspect(text: str, entry: str = "index") -> GraphSummary:
    script = parse_script(text)
    return inspect_graph(script, build_story_graph(script, entry))


class TestInspectGraph:
    def test_counts(self) -> None:
        summary = _inspect(DOOR_AND_KEY)

        assert summary.title == "The Locked Door"
        assert summary.knot_count == 2
        assert summary.node_count == 3
        assert summary.edge_count == 2
        assert summary.variable_count == 1
        assert summary.ending_nodes == ["victory|has_key=true"]

    def test_states_per_knot(self) -> None:
        summary = _inspect(DOOR_AND_KEY)

        assert summary.states_per_knot == {"index": 2, "victory": 1}
        assert summary.max_states_per_knot == 2

    def test_unreachable_knots(self) -> None:
        summary = _inspect(UNREACHABLE_KNOT)

        assert summary.unreachable_knots == ["secret"]

    def test_dead_ends(self) -> None:
        summary = _inspect("=== index ===\n* Go. -> stuck\n=== stuck ===\nNothing.\n")

        assert summary.dead_ends == ["stuck|"]
        assert summary.report.has_warnings is True

    def test_scenes(self) -> None:
        summary = _inspect(LOCAL_PURGE, entry="room")

        assert summary.scenes == ["bedroom", "corridor"]
        assert summary.title is None

    def test_report_included(self) -> None:
        summary = _inspect(DOOR_AND_KEY)

        assert not summary.report.has_failures
        assert len(summary.report.checks) == 7

    def test_empty_summary_max(self) -> None:
        summary = GraphSummary(
            title=None, knot_count=0, node_count=0, edge_count=0, variable_count=0
        )

        assert summary.max_states_per_knot == 0
