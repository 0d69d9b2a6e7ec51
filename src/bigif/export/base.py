"""Exporter protocol shared by every output format."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from bigif.models.story import StoryGraph


class Exporter(Protocol):
    """Protocol for story graph export format handlers."""

    format_name: str

    def export(self, graph: StoryGraph, output_dir: Path) -> Path:
        """Export the graph to the given output directory.

        Args:
            graph: Compiled story graph.
            output_dir: Directory to write output files.

        Returns:
            Path to the main output file.
        """
        ...
