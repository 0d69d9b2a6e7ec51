"""Compile configuration loading.

Configuration resolution, highest precedence first:
1. CLI flags
2. Environment variables (BIGIF_ENTRY_KNOT, BIGIF_OUTPUT_FORMAT)
3. ``bigif.yaml`` next to the script, or the file given with --config
4. Built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from bigif.errors import ConfigError
from bigif.graph.builder import DEFAULT_ENTRY_KNOT

CONFIG_FILE_NAME = "bigif.yaml"
DEFAULT_OUTPUT_FORMAT = "json"
DEFAULT_OUTPUT_DIR = Path("build")

ENV_ENTRY_KNOT = "BIGIF_ENTRY_KNOT"
ENV_OUTPUT_FORMAT = "BIGIF_OUTPUT_FORMAT"


@dataclass
class CompileConfig:
    """Settings for one compilation run.

    Attributes:
        entry_knot: Knot the story starts in.
        output_format: Exporter name ("json" or "twee").
        output_dir: Directory receiving exported files.
        validate: Re-check graph invariants after the build.
        metadata_defaults: Metadata applied where the script header is silent.
    """

    entry_knot: str = DEFAULT_ENTRY_KNOT
    output_format: str = DEFAULT_OUTPUT_FORMAT
    output_dir: Path = DEFAULT_OUTPUT_DIR
    validate: bool = True
    metadata_defaults: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompileConfig:
        """Create config from a dictionary, applying environment overrides.

        Args:
            data: Parsed ``bigif.yaml`` content. Recognized keys are
                entry, format, output_dir, validate and metadata.

        Returns:
            CompileConfig instance.
        """
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            msg = "'metadata' must be a mapping"
            raise ValueError(msg)

        validate = data.get("validate", True)
        if not isinstance(validate, bool):
            msg = f"'validate' must be true or false, got {validate!r}"
            raise ValueError(msg)

        return cls(
            entry_knot=os.getenv(ENV_ENTRY_KNOT) or data.get("entry", DEFAULT_ENTRY_KNOT),
            output_format=(
                os.getenv(ENV_OUTPUT_FORMAT) or data.get("format", DEFAULT_OUTPUT_FORMAT)
            ),
            output_dir=Path(data.get("output_dir", DEFAULT_OUTPUT_DIR)),
            validate=validate,
            metadata_defaults={str(k): str(v) for k, v in metadata.items()},
        )


def find_config(script_path: Path) -> Path | None:
    """Return the ``bigif.yaml`` beside a script, if there is one."""
    candidate = script_path.parent / CONFIG_FILE_NAME
    return candidate if candidate.exists() else None


def load_compile_config(config_path: Path | None = None) -> CompileConfig:
    """Load compile configuration.

    Args:
        config_path: YAML file to read. None means defaults plus environment.

    Returns:
        CompileConfig instance.

    Raises:
        ConfigError: If the file is missing, empty or invalid.
    """
    if config_path is None:
        return CompileConfig.from_dict({})

    if not config_path.exists():
        raise ConfigError(config_path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ConfigError(config_path, "Empty file")
        if not isinstance(data, dict):
            raise ConfigError(config_path, "Top level must be a mapping")

        return CompileConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(config_path, str(e)) from e
