"""Tests for story graph invariant checks."""

from __future__ import annotations

from bigif.graph.builder import build_story_graph
from bigif.graph.state import StateVector
from bigif.graph.validation import (
    ValidationCheck,
    ValidationReport,
    check_complete_states,
    check_entry_node,
    check_flag_monotonicity,
    check_identity_consistency,
    check_local_purge,
    check_no_dangling_edges,
    check_reachable_endings,
    run_all_checks,
)
from bigif.models.script import Declarations
from bigif.models.story import StoryEdge, StoryGraph, StoryNode
from bigif.parser import parse_script
from tests.fixtures.scripts import DOOR_AND_KEY, FLAG_IRREVERSIBLE, LOCAL_PURGE


def _node(knot: str, scene: str = "", **state: bool) -> StoryNode:
    vector = StateVector(state)
    parts = ",".join(f"{k}={str(v).lower()}" for k, v in sorted(state.items()))
    return StoryNode(id=f"{knot}|{parts}", knot_name=knot, scene=scene, state=vector)


def _graph(*nodes: StoryNode) -> StoryGraph:
    return StoryGraph(
        metadata={},
        nodes={node.id: node for node in nodes},
        entry_id=nodes[0].id if nodes else "",
    )


class TestValidationReport:
    def test_summary_counts(self) -> None:
        report = ValidationReport(
            checks=[
                ValidationCheck(name="a", severity="pass"),
                ValidationCheck(name="b", severity="warn"),
                ValidationCheck(name="c", severity="fail"),
                ValidationCheck(name="d", severity="pass"),
            ]
        )

        assert report.has_failures is True
        assert report.has_warnings is True
        assert [c.name for c in report.failures] == ["c"]
        assert report.summary == "1 failed, 1 warnings, 2 passed"

    def test_empty_report(self) -> None:
        report = ValidationReport()

        assert report.has_failures is False
        assert report.summary == ""


class TestBuiltGraphsPass:
    def test_door_and_key(self) -> None:
        script = parse_script(DOOR_AND_KEY)
        report = run_all_checks(build_story_graph(script), script.declarations)

        assert not report.has_failures
        assert not report.has_warnings
        assert len(report.checks) == 7

    def test_flags_and_locals(self) -> None:
        for text, entry in ((FLAG_IRREVERSIBLE, "index"), (LOCAL_PURGE, "room")):
            script = parse_script(text)
            report = run_all_checks(build_story_graph(script, entry), script.declarations)

            assert not report.has_failures, report.summary


class TestIndividualChecks:
    def test_entry_missing(self) -> None:
        graph = StoryGraph(metadata={}, entry_id="ghost|")

        assert check_entry_node(graph).severity == "fail"

    def test_entry_not_all_false(self) -> None:
        graph = _graph(_node("index", a=True))

        check = check_entry_node(graph)
        assert check.severity == "fail"
        assert "every variable false" in check.message

    def test_dangling_edge(self) -> None:
        start = _node("index")
        start.edges.append(StoryEdge(text="Go", target_node_id="nowhere|"))

        check = check_no_dangling_edges(_graph(start))
        assert check.severity == "fail"
        assert "index| -> nowhere|" in check.message

    def test_non_canonical_key(self) -> None:
        node = _node("index", a=False)
        graph = StoryGraph(metadata={}, nodes={"wrong": node}, entry_id="wrong")

        assert check_identity_consistency(graph).severity == "fail"

    def test_incomplete_state(self) -> None:
        graph = _graph(_node("index", a=False))
        declarations = Declarations(global_states=("a", "b"))

        check = check_complete_states(graph, declarations)
        assert check.severity == "fail"
        assert "index|a=false" in check.message

    def test_flag_reset_detected(self) -> None:
        before = _node("index", f=True)
        after = _node("next", f=False)
        before.edges.append(StoryEdge(text="Go", target_node_id=after.id))
        declarations = Declarations(flag_states=("f",))

        check = check_flag_monotonicity(_graph(before, after), declarations)
        assert check.severity == "fail"
        assert "1 flag reset(s)" in check.message

    def test_local_leak_detected(self) -> None:
        before = _node("room", scene="a", l=True)
        after = _node("hall", scene="b", l=True)
        before.edges.append(StoryEdge(text="Go", target_node_id=after.id))
        declarations = Declarations(local_states=("l",))

        assert check_local_purge(_graph(before, after), declarations).severity == "fail"

    def test_local_kept_within_scene_passes(self) -> None:
        before = _node("room", scene="a", l=True)
        after = _node("closet", scene="a", l=True)
        before.edges.append(StoryEdge(text="Go", target_node_id=after.id))
        declarations = Declarations(local_states=("l",))

        assert check_local_purge(_graph(before, after), declarations).severity == "pass"

    def test_no_ending_warns(self) -> None:
        check = check_reachable_endings(_graph(_node("index")))

        assert check.severity == "warn"

    def test_offender_list_truncated(self) -> None:
        nodes = [_node(f"k{i}", a=False) for i in range(5)]
        declarations = Declarations(global_states=("a", "b"))

        check = check_complete_states(_graph(*nodes), declarations)
        assert check.message.startswith("5 node(s)")
        assert "(+2 more)" in check.message
