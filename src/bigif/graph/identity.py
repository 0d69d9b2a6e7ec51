"""Canonical node identity.

A node is identified by its knot name and its full state vector, encoded
as ``knot|a=false,b=true`` with variable names sorted. The encoding is
human-readable and independent of insertion order, so fixtures and
downstream consumers can pin exact identity strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

KNOT_SEPARATOR = "|"
VARIABLE_SEPARATOR = ","


def node_id(knot_name: str, state: Mapping[str, bool]) -> str:
    """Build the canonical identity of a (knot, state) pair.

    Args:
        knot_name: Name of the knot.
        state: Full state vector of the node.

    Returns:
        Identity string, e.g. ``index|has_key=false``.
    """
    parts = [f"{name}={str(state[name]).lower()}" for name in sorted(state)]
    return f"{knot_name}{KNOT_SEPARATOR}{VARIABLE_SEPARATOR.join(parts)}"


def parse_node_id(identity: str) -> tuple[str, dict[str, bool]]:
    """Split a canonical identity back into knot name and state.

    Raises:
        ValueError: If the identity is not in canonical form.
    """
    knot_name, sep, encoded = identity.partition(KNOT_SEPARATOR)
    if not sep or not knot_name:
        msg = f"Not a canonical node id: {identity!r}"
        raise ValueError(msg)

    state: dict[str, bool] = {}
    if encoded:
        for part in encoded.split(VARIABLE_SEPARATOR):
            name, eq, value = part.partition("=")
            if not eq or value not in ("true", "false"):
                msg = f"Malformed state entry {part!r} in node id {identity!r}"
                raise ValueError(msg)
            state[name] = value == "true"
    return knot_name, state
