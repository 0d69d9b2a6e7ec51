"""Line-oriented parser for BigIF scripts.

A script is a header of ``// KEY: value`` lines followed by knots::

    // title: The Locked Door
    // STATES: has_key
    // FLAG-STATES: met_guard
    // LOCAL-STATES: drawer_open

    === index ===
    // scene: cellar
    - {has_key == false} The door is locked.
    - {has_key == true} The key fits the lock.
    * {has_key == false} Search the floor. ~ has_key = true
    * {has_key == true} Open the door. -> victory
    * Look closer. -> .inspect

    === victory ===
    You are free.
    END

The parser only checks syntax. Whether choices point at existing knots is
a question of reachability, answered by the graph builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bigif.errors import ScriptParseError
from bigif.graph.identity import KNOT_SEPARATOR
from bigif.graph.state import check_variable_name, parse_condition, parse_mutation
from bigif.models.script import Choice, Declarations, Knot, Mutation, Script, TextBlock
from bigif.observability.logging import get_logger

log = get_logger(__name__)

COMMENT_PREFIX = "//"
KNOT_MARKER = "==="
CHOICE_PREFIX = "*"
BLOCK_PREFIX = "-"
END_KEYWORD = "END"
TARGET_ARROW = "->"
MUTATION_PREFIX = "~"
STITCH_PREFIX = "."
SCENE_DIRECTIVE = "scene"

# Header keys declaring state variables (matched case-insensitively)
_DECLARATION_KEYS = ("STATES", "FLAG-STATES", "LOCAL-STATES")


@dataclass
class _BlockDraft:
    condition: str = ""
    lines: list[str] = field(default_factory=list)

    def freeze(self) -> TextBlock:
        return TextBlock(condition=self.condition, content="\n".join(self.lines).strip())


@dataclass
class _KnotDraft:
    name: str
    scene: str = ""
    body: list[_BlockDraft] = field(default_factory=list)
    choices: list[Choice] = field(default_factory=list)
    is_end: bool = False

    def freeze(self) -> Knot:
        return Knot(
            name=self.name,
            scene=self.scene,
            body=tuple(block.freeze() for block in self.body),
            choices=tuple(self.choices),
            is_end=self.is_end,
        )


def _extract_condition(remainder: str) -> tuple[str, str]:
    """Cut a ``{...}`` condition out of a line.

    Returns:
        (condition, remaining text). The condition is "" if there are no braces.
    """
    start = remainder.find("{")
    if start == -1:
        return "", remainder
    end = remainder.find("}")
    if end == -1 or end < start:
        raise ScriptParseError("mismatched braces in condition")
    condition = remainder[start + 1 : end].strip()
    parse_condition(condition)
    return condition, remainder[:start] + remainder[end + 1 :]


def parse_choice(line: str) -> Choice:
    """Parse a ``*`` choice line.

    Parts are cut from the right: destination first, then state changes,
    then the condition; whatever remains is the choice text.

    Raises:
        ScriptParseError: On malformed syntax or an empty choice.
    """
    remainder = line.strip().removeprefix(CHOICE_PREFIX).strip()

    target: str | None = None
    stitch: str | None = None
    if TARGET_ARROW in remainder:
        remainder, _, destination = remainder.partition(TARGET_ARROW)
        destination = destination.strip()
        if not destination:
            raise ScriptParseError("choice arrow has no destination")
        if destination.startswith(STITCH_PREFIX):
            stitch = destination
        else:
            target = destination

    mutations: list[Mutation] = []
    remainder, *changes = remainder.split(MUTATION_PREFIX)
    for change in changes:
        if change.strip():
            mutations.append(parse_mutation(change))

    condition, remainder = _extract_condition(remainder)
    text = remainder.strip()

    if not text and not target and not stitch and not mutations:
        raise ScriptParseError("choice appears to be empty")

    return Choice(
        text=text,
        condition=condition,
        mutations=tuple(mutations),
        target=target,
        stitch=stitch,
    )


def _parse_block_line(line: str) -> _BlockDraft:
    remainder = line.strip().removeprefix(BLOCK_PREFIX).strip()
    condition, remainder = _extract_condition(remainder)
    content = remainder.strip()
    return _BlockDraft(condition=condition, lines=[content] if content else [])


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


class _ScriptReader:
    """Accumulates header, knots and blocks while scanning lines."""

    def __init__(self) -> None:
        self.metadata: dict[str, str] = {}
        self.declared: dict[str, list[str]] = {key: [] for key in _DECLARATION_KEYS}
        self.knots: dict[str, _KnotDraft] = {}
        self.knot: _KnotDraft | None = None
        self.block: _BlockDraft | None = None

    def feed(self, line: str) -> None:
        stripped = line.strip()

        if not stripped:
            # blank line inside a block is a paragraph break
            if self.block is not None:
                self.block.lines.append("")
            return

        if self.knot is None and stripped.startswith(COMMENT_PREFIX):
            self._header(stripped)
            return

        if stripped.startswith(KNOT_MARKER) and stripped.endswith(KNOT_MARKER):
            self._open_knot(stripped)
            return

        if self.knot is None:
            return  # stray text before the first knot

        if stripped.startswith((CHOICE_PREFIX, COMMENT_PREFIX)) or stripped == END_KEYWORD:
            self.block = None

        if stripped.startswith(COMMENT_PREFIX):
            key, sep, value = stripped.removeprefix(COMMENT_PREFIX).partition(":")
            if sep and key.strip() == SCENE_DIRECTIVE:
                self.knot.scene = value.strip()
        elif stripped == END_KEYWORD:
            self.knot.is_end = True
        elif stripped.startswith(CHOICE_PREFIX):
            self.knot.choices.append(parse_choice(stripped))
        elif stripped.startswith(BLOCK_PREFIX):
            self.block = _parse_block_line(stripped)
            self.knot.body.append(self.block)
        elif self.block is not None:
            self.block.lines.append(stripped)
        else:
            self.block = _BlockDraft(lines=[stripped])
            self.knot.body.append(self.block)

    def _header(self, stripped: str) -> None:
        key, sep, value = stripped.removeprefix(COMMENT_PREFIX).partition(":")
        if not sep:
            return  # plain comment
        key, value = key.strip(), value.strip()
        if key.upper() in self.declared:
            self.declared[key.upper()].extend(
                check_variable_name(name) for name in _split_names(value)
            )
        else:
            self.metadata[key] = value

    def _open_knot(self, stripped: str) -> None:
        name = stripped[len(KNOT_MARKER) : -len(KNOT_MARKER)].strip()
        if not name:
            raise ScriptParseError("found knot with empty name")
        if KNOT_SEPARATOR in name:
            raise ScriptParseError(f"knot name may not contain '{KNOT_SEPARATOR}'")
        if name in self.knots:
            raise ScriptParseError(f"duplicate knot '{name}'")
        self.knot = _KnotDraft(name=name)
        self.knots[name] = self.knot
        self.block = None

    def build(self) -> Script:
        return Script(
            metadata=self.metadata,
            declarations=Declarations(
                global_states=tuple(dict.fromkeys(self.declared["STATES"])),
                flag_states=tuple(dict.fromkeys(self.declared["FLAG-STATES"])),
                local_states=tuple(dict.fromkeys(self.declared["LOCAL-STATES"])),
            ),
            knots={name: draft.freeze() for name, draft in self.knots.items()},
        )


def parse_script(text: str) -> Script:
    """Parse script text into a Script.

    Args:
        text: Full script source.

    Returns:
        The parsed script.

    Raises:
        ScriptParseError: With the line number of the first malformed line.
    """
    reader = _ScriptReader()
    for line_number, line in enumerate(text.splitlines(), start=1):
        try:
            reader.feed(line)
        except ScriptParseError as e:
            if e.line_number:
                raise
            raise e.at_line(line_number, line) from e

    script = reader.build()
    log.debug(
        "script_parsed",
        knots=len(script.knots),
        variables=len(script.declarations.names),
        metadata_keys=sorted(script.metadata),
    )
    return script
