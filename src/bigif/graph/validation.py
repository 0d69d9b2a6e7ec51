"""Invariant checks for a compiled story graph.

Pure, deterministic functions over a built graph. The builder upholds all
of these by construction, so a failing check means a compiler bug rather
than a script mistake. Checks report pass/warn/fail and are aggregated in
a ValidationReport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from bigif.graph.identity import node_id
from bigif.models.script import VariableClass

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bigif.models.script import Declarations
    from bigif.models.story import StoryGraph

# Cap on offenders listed in one check message
_MAX_LISTED = 3


@dataclass
class ValidationCheck:
    """Result of a single validation check.

    Attributes:
        name: Identifier for the check.
        severity: "pass", "warn", or "fail".
        message: Human-readable description of the result.
    """

    name: str
    severity: Literal["pass", "warn", "fail"]
    message: str = ""


@dataclass
class ValidationReport:
    """Aggregated results of validation checks."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return any(c.severity == "fail" for c in self.checks)

    @property
    def has_warnings(self) -> bool:
        return any(c.severity == "warn" for c in self.checks)

    @property
    def failures(self) -> list[ValidationCheck]:
        return [c for c in self.checks if c.severity == "fail"]

    @property
    def summary(self) -> str:
        """Human-readable summary of all checks."""
        counts = {
            severity: sum(1 for c in self.checks if c.severity == severity)
            for severity in ("fail", "warn", "pass")
        }
        parts: list[str] = []
        if counts["fail"]:
            parts.append(f"{counts['fail']} failed")
        if counts["warn"]:
            parts.append(f"{counts['warn']} warnings")
        if counts["pass"]:
            parts.append(f"{counts['pass']} passed")
        return ", ".join(parts)


def _result(name: str, offenders: list[str], problem: str, ok: str) -> ValidationCheck:
    if not offenders:
        return ValidationCheck(name=name, severity="pass", message=ok)
    listed = ", ".join(offenders[:_MAX_LISTED])
    more = f" (+{len(offenders) - _MAX_LISTED} more)" if len(offenders) > _MAX_LISTED else ""
    return ValidationCheck(
        name=name,
        severity="fail",
        message=f"{len(offenders)} {problem}: {listed}{more}",
    )


def _names_of(classes: Mapping[str, VariableClass], cls: VariableClass) -> list[str]:
    return sorted(name for name, c in classes.items() if c is cls)


def check_entry_node(graph: StoryGraph) -> ValidationCheck:
    """The entry identity must name a registered node whose state is all false."""
    entry = graph.nodes.get(graph.entry_id)
    if entry is None:
        return ValidationCheck(
            name="entry_node",
            severity="fail",
            message=f"Entry node '{graph.entry_id}' is not in the graph",
        )
    if any(entry.state.values()):
        return ValidationCheck(
            name="entry_node",
            severity="fail",
            message=f"Entry node '{graph.entry_id}' does not start with every variable false",
        )
    return ValidationCheck(name="entry_node", severity="pass", message=f"Entry: {entry.id}")


def check_no_dangling_edges(graph: StoryGraph) -> ValidationCheck:
    """Every edge target must be a registered node."""
    dangling = [
        f"{node.id} -> {edge.target_node_id}"
        for node, edge in graph.edges()
        if edge.target_node_id not in graph.nodes
    ]
    return _result("no_dangling_edges", dangling, "dangling edge(s)", "All edge targets exist")


def check_identity_consistency(graph: StoryGraph) -> ValidationCheck:
    """Each node must be keyed by the canonical identity of its knot and state."""
    mismatched = [
        key
        for key, node in graph.nodes.items()
        if key != node.id or node.id != node_id(node.knot_name, node.state)
    ]
    return _result(
        "identity_consistency",
        mismatched,
        "node(s) keyed by a non-canonical id",
        "All node ids are canonical",
    )


def check_complete_states(graph: StoryGraph, declarations: Declarations) -> ValidationCheck:
    """Every node's state must carry every declared variable."""
    declared = set(declarations.names)
    incomplete = [node.id for node in graph.nodes.values() if not declared <= set(node.state)]
    return _result(
        "complete_states",
        incomplete,
        "node(s) missing declared variables",
        f"All nodes carry {len(declared)} declared variable(s)",
    )


def check_flag_monotonicity(graph: StoryGraph, declarations: Declarations) -> ValidationCheck:
    """A flag true in an edge's source must be true in its target."""
    flags = _names_of(declarations.classify(), VariableClass.FLAG)
    violations: list[str] = []
    for node, edge in graph.edges():
        target = graph.nodes.get(edge.target_node_id)
        if target is None:
            continue
        for flag in flags:
            if node.state.get(flag) and not target.state.get(flag):
                violations.append(f"{flag} on {node.id} -> {target.id}")
    return _result(
        "flag_monotonicity",
        violations,
        "flag reset(s)",
        f"{len(flags)} flag(s) never reset",
    )


def check_local_purge(graph: StoryGraph, declarations: Declarations) -> ValidationCheck:
    """Edges that change scene must land with every local variable false."""
    local_names = _names_of(declarations.classify(), VariableClass.LOCAL)
    violations: list[str] = []
    for node, edge in graph.edges():
        target = graph.nodes.get(edge.target_node_id)
        if target is None or target.scene == node.scene:
            continue
        leaked = [name for name in local_names if target.state.get(name)]
        if leaked:
            violations.append(f"{','.join(leaked)} on {node.id} -> {target.id}")
    return _result(
        "local_purge",
        violations,
        "local variable(s) surviving a scene change",
        f"{len(local_names)} local(s) purged on scene change",
    )


def check_reachable_endings(graph: StoryGraph) -> ValidationCheck:
    """Warn when no END knot can be reached at all."""
    endings = sum(1 for node in graph.nodes.values() if node.is_end)
    if endings == 0:
        return ValidationCheck(
            name="reachable_endings",
            severity="warn",
            message="No ending is reachable from the entry node",
        )
    return ValidationCheck(
        name="reachable_endings",
        severity="pass",
        message=f"{endings} ending node(s) reachable",
    )


def run_all_checks(graph: StoryGraph, declarations: Declarations) -> ValidationReport:
    """Run every invariant check against a compiled graph."""
    return ValidationReport(
        checks=[
            check_entry_node(graph),
            check_no_dangling_edges(graph),
            check_identity_consistency(graph),
            check_complete_states(graph, declarations),
            check_flag_monotonicity(graph, declarations),
            check_local_purge(graph, declarations),
            check_reachable_endings(graph),
        ]
    )
