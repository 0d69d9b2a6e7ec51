"""Pydantic models for a parsed BigIF script.

These models are the intermediate representation handed from the parser
to the graph builder: knots with conditional text blocks and conditional
choices, plus the declared state variables and free-form metadata.
All models are frozen; the builder never modifies its input.
"""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VariableClass(Enum):
    """Mutation discipline of a declared state variable."""

    GLOBAL = "global"  # free mutation
    FLAG = "flag"  # monotonic, false -> true only
    LOCAL = "local"  # reset to false on every scene change


class Mutation(BaseModel):
    """A single state assignment carried by a choice, e.g. ``has_key = true``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Variable being assigned")
    value: bool = Field(description="Value assigned to the variable")

    def __str__(self) -> str:
        return f"{self.name} = {str(self.value).lower()}"


class TextBlock(BaseModel):
    """A conditional block of body text. An empty condition always holds."""

    model_config = ConfigDict(frozen=True)

    condition: str = Field(default="", description="Raw condition text, e.g. 'a == true'")
    content: str = Field(default="", description="Body text, may span several lines")


class Choice(BaseModel):
    """A choice line: ``* {condition} text ~ mutation -> target``.

    At most one destination is set: ``target`` names another knot, while
    ``stitch`` is a local-anchor tag (``.name``) that keeps the active knot.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Label shown to the reader")
    condition: str = Field(default="", description="Raw condition text")
    mutations: tuple[Mutation, ...] = Field(
        default=(), description="State assignments, applied left to right"
    )
    target: str | None = Field(default=None, description="Destination knot name")
    stitch: str | None = Field(default=None, description="Local-anchor tag, e.g. '.search'")

    @model_validator(mode="after")
    def _single_destination(self) -> Self:
        if self.target and self.stitch:
            msg = f"choice '{self.text}' has both a target and a stitch"
            raise ValueError(msg)
        return self


class Knot(BaseModel):
    """A named, addressable unit of content and choices."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    scene: str = Field(default="", description="Scene label; empty is its own scene")
    body: tuple[TextBlock, ...] = ()
    choices: tuple[Choice, ...] = ()
    is_end: bool = False


class Declarations(BaseModel):
    """State variables declared in the script header, by mutation class."""

    model_config = ConfigDict(frozen=True)

    global_states: tuple[str, ...] = ()
    flag_states: tuple[str, ...] = ()
    local_states: tuple[str, ...] = ()

    def classify(self) -> dict[str, VariableClass]:
        """Resolve exactly one class per declared name.

        A name declared in several sets takes the most restrictive class:
        FLAG over LOCAL over GLOBAL.
        """
        classes: dict[str, VariableClass] = {}
        for name in self.global_states:
            classes[name] = VariableClass.GLOBAL
        for name in self.local_states:
            classes[name] = VariableClass.LOCAL
        for name in self.flag_states:
            classes[name] = VariableClass.FLAG
        return classes

    @property
    def names(self) -> list[str]:
        """All declared names, each once, in declaration order."""
        return list(dict.fromkeys((*self.global_states, *self.flag_states, *self.local_states)))


class Script(BaseModel):
    """A complete parsed script."""

    model_config = ConfigDict(frozen=True)

    metadata: dict[str, str] = Field(default_factory=dict)
    declarations: Declarations = Field(default_factory=Declarations)
    knots: dict[str, Knot] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _knot_keys_match_names(self) -> Self:
        for key, knot in self.knots.items():
            if key != knot.name:
                msg = f"knot registered as '{key}' is named '{knot.name}'"
                raise ValueError(msg)
        return self
