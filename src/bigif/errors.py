"""Compilation error types.

Every failure of a compilation surfaces as a single ``CompileError``
carrying a ``stage`` tag and a descriptive message. Nothing is recovered
and no partial graph is ever returned alongside an error.

Structural errors know which knots were available and can format
"did you mean" feedback for script authors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches

# Display limit for available-name listings
_MAX_AVAILABLE_DISPLAY = 20


class CompileError(Exception):
    """Base class for every failure of a compilation.

    Attributes:
        stage: Which step failed: "parse", "graph" or "validate".
    """

    stage: str = "compile"


@dataclass
class ScriptParseError(CompileError):
    """Raised when script text does not follow the BigIF syntax.

    Attributes:
        reason: What is wrong with the line.
        line_number: 1-based line number in the script, 0 when unknown.
        line: The offending line as written.
    """

    reason: str
    line_number: int = 0
    line: str = ""

    stage = "parse"

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.line_number:
            return f"line {self.line_number}: {self.reason}: {self.line.strip()!r}"
        if self.line:
            return f"{self.reason}: {self.line.strip()!r}"
        return self.reason

    def at_line(self, line_number: int, line: str) -> ScriptParseError:
        """Return a copy of this error located at the given script line."""
        return type(self)(self.reason, line_number=line_number, line=line)


class ConditionSyntaxError(ScriptParseError):
    """Raised when a condition expression is not a conjunction of comparisons."""


class StructuralError(CompileError):
    """Base class for errors in the shape of the knot graph.

    Subclasses implement to_feedback() with a message an author can act on.
    """

    stage = "graph"

    def to_feedback(self) -> str:
        raise NotImplementedError


def _suggest(name: str, available: list[str]) -> list[str]:
    return get_close_matches(name, available, n=3, cutoff=0.6)


def _format_available(available: list[str]) -> list[str]:
    lines = ["**Available knots**:"]
    for name in sorted(available)[:_MAX_AVAILABLE_DISPLAY]:
        lines.append(f"  - `{name}`")
    if len(available) > _MAX_AVAILABLE_DISPLAY:
        lines.append(f"  - ... and {len(available) - _MAX_AVAILABLE_DISPLAY} more")
    return lines


@dataclass
class MissingEntryKnotError(StructuralError):
    """Raised when the script has no knot with the entry name.

    Attributes:
        entry: The entry knot name that was looked up.
        available: Knot names the script does define.
    """

    entry: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(f"script must contain a starting knot named '{self.entry}'")

    def to_feedback(self) -> str:
        lines = [
            "## Structural Error: Missing Entry Knot",
            "",
            f"**Expected**: `=== {self.entry} ===`",
            "",
        ]
        suggestions = _suggest(self.entry, self.available)
        if suggestions:
            lines.append("**Did you mean one of these?**")
            lines.extend(f"  - `{s}`" for s in suggestions)
            lines.append("")
        if self.available:
            lines.extend(_format_available(self.available))
        else:
            lines.append("**Problem**: The script defines no knots at all.")
        return "\n".join(lines)


@dataclass
class UnknownKnotError(StructuralError):
    """Raised when a reachable choice leads to a knot that does not exist.

    Attributes:
        target: The knot name the choice points at.
        source: The knot containing the choice.
        choice_text: Label of the offending choice.
        available: Knot names the script does define.
    """

    target: str
    source: str = ""
    choice_text: str = ""
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        msg = f"choice leads to non-existent knot: '{self.target}'"
        if self.source:
            msg += f" (from knot '{self.source}')"
        super().__init__(msg)

    def to_feedback(self) -> str:
        lines = [
            "## Structural Error: Unknown Knot",
            "",
            f"**Choice**: `{self.choice_text}` in knot `{self.source}`",
            f"**Target**: `{self.target}`",
            "",
            "**Problem**: No knot with this name exists in the script.",
            "",
        ]
        suggestions = _suggest(self.target, self.available)
        if suggestions:
            lines.append("**Did you mean one of these?**")
            lines.extend(f"  - `{s}`" for s in suggestions)
            lines.append("")
        lines.extend(_format_available(self.available))
        return "\n".join(lines)


@dataclass
class GraphCorruptionError(CompileError):
    """Raised when the post-build invariant checks fail.

    Unlike StructuralError this points at a compiler bug, not at the script.

    Attributes:
        violations: Messages of the failed checks.
    """

    violations: list[str]

    stage = "validate"

    def __post_init__(self) -> None:
        super().__init__(f"story graph failed {len(self.violations)} invariant check(s)")

    def __str__(self) -> str:
        lines = ["Story graph failed invariant checks:"]
        for v in self.violations[:5]:
            lines.append(f"  - {v}")
        if len(self.violations) > 5:
            lines.append(f"  - ... and {len(self.violations) - 5} more")
        return "\n".join(lines)


class ConfigError(Exception):
    """Raised when compile configuration cannot be loaded."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")
