"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from tests.fixtures.scripts import DOOR_AND_KEY


@pytest.fixture(autouse=True)
def clear_bigif_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of test runs."""
    monkeypatch.delenv("BIGIF_ENTRY_KNOT", raising=False)
    monkeypatch.delenv("BIGIF_OUTPUT_FORMAT", raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def door_script_path(tmp_path: Path) -> Path:
    """Write the door-and-key script into a temporary story directory."""
    path = tmp_path / "story" / "door.bigif"
    path.parent.mkdir()
    path.write_text(DOOR_AND_KEY, encoding="utf-8")
    return path
