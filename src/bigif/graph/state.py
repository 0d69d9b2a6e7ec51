"""State model: state vectors, conditions and state transitions.

Pure functions with no I/O. A state vector is an immutable mapping from
variable name to boolean; every transition returns a new vector so that
sibling choices of one node never share a successor state.

Unknown variable names are tolerated everywhere: a comparison against an
undeclared name reads it as false, and a mutation of an undeclared name is
recorded in the resulting vector.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from bigif.errors import ConditionSyntaxError, ScriptParseError
from bigif.models.script import Mutation, VariableClass

if TYPE_CHECKING:
    from bigif.models.script import Declarations

__all__ = [
    "Comparison",
    "Condition",
    "StateVector",
    "VariableClass",
    "apply_mutations",
    "check_variable_name",
    "evaluate_condition",
    "initial_state",
    "parse_condition",
    "parse_mutation",
    "purge_locals",
]

_CONJUNCTION = "&&"
_LITERALS = {"true": True, "false": False}
# Characters that would make a node identity ambiguous
_RESERVED_NAME_CHARS = ("=", ",", "|")


class StateVector(Mapping[str, bool]):
    """Immutable mapping of variable name to value."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, bool] | Iterable[tuple[str, bool]] = ()) -> None:
        self._values: dict[str, bool] = dict(values)

    def __getitem__(self, name: str) -> bool:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return self._values == dict(other.items())
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._values.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={str(v).lower()}" for k, v in sorted(self._values.items()))
        return f"StateVector({inner})"

    def updated(self, changes: Mapping[str, bool]) -> StateVector:
        """Return a new vector with ``changes`` applied on top of this one."""
        return StateVector({**self._values, **changes})

    def purged(self, names: Iterable[str]) -> StateVector:
        """Return a new vector with every name in ``names`` forced to false."""
        return self.updated(dict.fromkeys(names, False))

    def to_dict(self) -> dict[str, bool]:
        """Plain dict with names sorted, for serialization."""
        return dict(sorted(self._values.items()))


@dataclass(frozen=True)
class Comparison:
    """One atomic comparison: ``name == value`` or ``name != value``."""

    name: str
    expected: bool
    negated: bool = False

    def holds(self, state: Mapping[str, bool]) -> bool:
        actual = state.get(self.name, False)
        if self.negated:
            return actual != self.expected
        return actual == self.expected

    def __str__(self) -> str:
        op = "!=" if self.negated else "=="
        return f"{self.name} {op} {str(self.expected).lower()}"


@dataclass(frozen=True)
class Condition:
    """A conjunction of comparisons. The empty condition always holds."""

    comparisons: tuple[Comparison, ...] = ()

    def holds(self, state: Mapping[str, bool]) -> bool:
        # all() stops at the first failing comparison
        return all(c.holds(state) for c in self.comparisons)

    @property
    def names(self) -> set[str]:
        return {c.name for c in self.comparisons}

    def __str__(self) -> str:
        return f" {_CONJUNCTION} ".join(str(c) for c in self.comparisons)


def check_variable_name(
    name: str, source: str = "", *, error: type[ScriptParseError] = ScriptParseError
) -> str:
    """Return ``name`` if it can appear in a node identity.

    Raises:
        ScriptParseError: If the name is empty or contains ``=``, ``,`` or ``|``.
    """
    if not name:
        raise error("variable name is empty", line=source)
    bad = [c for c in _RESERVED_NAME_CHARS if c in name]
    if bad:
        raise error(
            f"variable name '{name}' may not contain {' or '.join(repr(c) for c in bad)}",
            line=source,
        )
    return name


def _parse_literal(text: str, source: str) -> bool:
    value = _LITERALS.get(text.strip())
    if value is None:
        raise ConditionSyntaxError(f"expected 'true' or 'false', got '{text.strip()}'", line=source)
    return value


def _parse_comparison(part: str, source: str) -> Comparison:
    # "!=" must be tried first: "a != b" also contains "="
    for op, negated in (("!=", True), ("==", False)):
        if op in part:
            name, _, literal = part.partition(op)
            name = name.strip()
            if not name:
                raise ConditionSyntaxError("comparison is missing a variable name", line=source)
            check_variable_name(name, source, error=ConditionSyntaxError)
            return Comparison(name=name, expected=_parse_literal(literal, source), negated=negated)
    raise ConditionSyntaxError(f"comparison '{part}' has no '==' or '!='", line=source)


@lru_cache(maxsize=1024)
def parse_condition(text: str) -> Condition:
    """Parse ``a == true && b != false`` into a Condition.

    Args:
        text: Raw condition text. Blank text yields the always-true condition.

    Returns:
        The parsed condition.

    Raises:
        ConditionSyntaxError: If any conjunct is not ``name ==|!= true|false``.
    """
    if not text.strip():
        return Condition()

    comparisons = []
    for part in text.split(_CONJUNCTION):
        part = part.strip()
        if not part:
            raise ConditionSyntaxError("empty comparison in condition", line=text)
        comparisons.append(_parse_comparison(part, text))
    return Condition(tuple(comparisons))


def evaluate_condition(condition: str | Condition, state: Mapping[str, bool]) -> bool:
    """Evaluate a condition against a state vector.

    Args:
        condition: Raw condition text or an already parsed Condition.
        state: Variable values. Names missing from it read as false.

    Returns:
        True if every comparison holds (always True for an empty condition).
    """
    if isinstance(condition, str):
        condition = parse_condition(condition)
    return condition.holds(state)


def parse_mutation(text: str) -> Mutation:
    """Parse ``name = true|false`` into a Mutation.

    Raises:
        ScriptParseError: If the text is not a single boolean assignment.
    """
    name, sep, literal = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ScriptParseError("state change must look like 'name = true|false'", line=text)
    value = _LITERALS.get(literal.strip())
    if value is None:
        raise ScriptParseError(
            f"state change value must be 'true' or 'false', got '{literal.strip()}'", line=text
        )
    return Mutation(name=check_variable_name(name, text), value=value)


def initial_state(declarations: Declarations) -> StateVector:
    """Every declared variable, of every class, set to false."""
    return StateVector(dict.fromkeys(declarations.names, False))


def apply_mutations(
    state: StateVector,
    mutations: Iterable[Mutation],
    classes: Mapping[str, VariableClass],
) -> StateVector:
    """Apply mutations in order and return the successor state.

    A FLAG variable never goes back to false: assigning false to it is
    ignored, whatever its position in the list. GLOBAL and LOCAL variables
    take the assigned value. Undeclared names are recorded as assigned.

    Args:
        state: Current state; left untouched.
        mutations: Assignments to apply, left to right.
        classes: Class of every declared variable.

    Returns:
        A new state vector.
    """
    values = dict(state)
    for mutation in mutations:
        if not mutation.value and classes.get(mutation.name) is VariableClass.FLAG:
            continue
        values[mutation.name] = mutation.value
    return StateVector(values)


def purge_locals(state: StateVector, local_names: Iterable[str]) -> StateVector:
    """Force every local variable to false, as on a scene change."""
    return state.purged(local_names)
