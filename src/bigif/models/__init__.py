"""Data models for scripts (compiler input) and story graphs (compiler output)."""

from bigif.models.script import (
    Choice,
    Declarations,
    Knot,
    Mutation,
    Script,
    TextBlock,
    VariableClass,
)
from bigif.models.story import StoryEdge, StoryGraph, StoryNode

__all__ = [
    "Choice",
    "Declarations",
    "Knot",
    "Mutation",
    "Script",
    "StoryEdge",
    "StoryGraph",
    "StoryNode",
    "TextBlock",
    "VariableClass",
]
