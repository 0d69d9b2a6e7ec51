"""Compile pipeline: script text -> parsed Script -> StoryGraph.

compile_script() is a pure function of its input. It either returns the
complete graph or raises a CompileError; no partial graph is ever handed
back. compile_to_json() adds the reference JSON serialization.
"""

from __future__ import annotations

from typing import Any

from bigif.errors import GraphCorruptionError
from bigif.export.json_exporter import render_json
from bigif.graph.builder import DEFAULT_ENTRY_KNOT, build_story_graph
from bigif.graph.validation import run_all_checks
from bigif.models.story import StoryGraph  # noqa: TC001 - public return type
from bigif.observability.logging import get_logger
from bigif.parser import parse_script

log = get_logger(__name__)


def compile_script(
    text: str,
    *,
    entry: str = DEFAULT_ENTRY_KNOT,
    validate: bool = True,
    metadata_defaults: dict[str, str] | None = None,
) -> StoryGraph:
    """Compile script text into the graph of reachable story states.

    Args:
        text: Script source.
        entry: Name of the starting knot.
        validate: Re-check graph invariants after the build.
        metadata_defaults: Metadata used where the script header is silent.

    Returns:
        The complete story graph.

    Raises:
        ScriptParseError: If the text is not valid BigIF syntax.
        StructuralError: If the entry knot or a reachable target is missing.
        GraphCorruptionError: If validation finds a broken invariant.
    """
    script = parse_script(text)
    graph = build_story_graph(script, entry=entry)

    if metadata_defaults:
        graph.metadata = {**metadata_defaults, **graph.metadata}

    if validate:
        report = run_all_checks(graph, script.declarations)
        if report.has_failures:
            violations = [f"{c.name}: {c.message}" for c in report.failures]
            log.error("graph_validation_failed", violations=violations)
            raise GraphCorruptionError(violations)
        log.debug("graph_validated", summary=report.summary)

    return graph


def compile_to_json(text: str, **kwargs: Any) -> str:
    """Compile script text and serialize the graph as reference JSON.

    Keyword arguments are passed on to compile_script().
    """
    return render_json(compile_script(text, **kwargs))
