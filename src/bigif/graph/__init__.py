"""Graph package - the semantic core of the compiler.

State model, canonical node identity, the reachable-state graph builder,
and invariant checks over its output. Nothing in here performs I/O.
"""

from bigif.graph.builder import (
    DEFAULT_ENTRY_KNOT,
    build_story_graph,
    create_node,
    resolve_destination,
    select_content,
)
from bigif.graph.identity import node_id, parse_node_id
from bigif.graph.state import (
    Comparison,
    Condition,
    StateVector,
    apply_mutations,
    evaluate_condition,
    initial_state,
    parse_condition,
    parse_mutation,
    purge_locals,
)
from bigif.graph.validation import ValidationCheck, ValidationReport, run_all_checks

__all__ = [
    "DEFAULT_ENTRY_KNOT",
    "Comparison",
    "Condition",
    "StateVector",
    "ValidationCheck",
    "ValidationReport",
    "apply_mutations",
    "build_story_graph",
    "create_node",
    "evaluate_condition",
    "initial_state",
    "node_id",
    "parse_condition",
    "parse_mutation",
    "parse_node_id",
    "purge_locals",
    "resolve_destination",
    "run_all_checks",
    "select_content",
]
