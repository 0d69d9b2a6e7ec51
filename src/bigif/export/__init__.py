"""Export format handlers (JSON, Twee)."""

from __future__ import annotations

from bigif.export.base import Exporter
from bigif.export.json_exporter import JsonExporter, graph_to_dict, render_json
from bigif.export.twee_exporter import TweeExporter, render_twee

_EXPORTERS: dict[str, type[JsonExporter | TweeExporter]] = {
    "json": JsonExporter,
    "twee": TweeExporter,
}

EXPORT_FORMATS = tuple(sorted(_EXPORTERS))


def get_exporter(format_name: str) -> JsonExporter | TweeExporter:
    """Get an exporter instance by format name.

    Args:
        format_name: Export format ("json" or "twee").

    Returns:
        Exporter instance.

    Raises:
        ValueError: If the format is not supported.
    """
    cls = _EXPORTERS.get(format_name)
    if cls is None:
        supported = ", ".join(EXPORT_FORMATS)
        msg = f"Unknown export format '{format_name}'. Supported: {supported}"
        raise ValueError(msg)
    return cls()


__all__ = [
    "EXPORT_FORMATS",
    "Exporter",
    "JsonExporter",
    "TweeExporter",
    "get_exporter",
    "graph_to_dict",
    "render_json",
    "render_twee",
]
