"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from bigif.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Leave logging at the default level after each test."""
    yield
    close_file_logging()
    configure_logging(verbosity=0)


def test_configure_logging_sets_level_warning() -> None:
    """Default verbosity (0) sets WARNING level."""
    configure_logging(verbosity=0)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING


def test_configure_logging_verbose_sets_info() -> None:
    """verbosity=1 sets INFO level on the console handler."""
    configure_logging(verbosity=1)

    root_logger = logging.getLogger()
    # Root level is DEBUG to allow file handlers, but console handler filters
    assert root_logger.level == logging.DEBUG
    assert root_logger.handlers[0].level == logging.INFO


def test_configure_logging_very_verbose_sets_debug() -> None:
    """verbosity=2 sets DEBUG level."""
    configure_logging(verbosity=2)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert root_logger.handlers[0].level == logging.DEBUG


def test_get_logger_returns_bound_logger() -> None:
    """get_logger returns a structlog logger with expected methods."""
    logger = get_logger(__name__)

    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "error")
    assert hasattr(logger, "warning")


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    import bigif.observability.logging as log_module

    log_module._configured = False

    logger = get_logger("test")

    assert log_module._configured is True
    assert logger is not None


def test_file_logging_requires_dir() -> None:
    """log_to_file without log_dir is rejected."""
    with pytest.raises(ValueError, match="log_dir is required"):
        configure_logging(log_to_file=True)


def test_file_logging_writes_jsonl(tmp_path: Path) -> None:
    """Events land in debug.jsonl as one JSON object per line."""
    log_dir = tmp_path / "logs"
    configure_logging(verbosity=0, log_to_file=True, log_dir=log_dir)
    assert get_logs_dir() == log_dir

    logging.getLogger("bigif.test").debug("plain message")
    close_file_logging()

    lines = (log_dir / "debug.jsonl").read_text().splitlines()
    entry = json.loads(lines[-1])
    assert entry["level"] == "DEBUG"
    assert entry["logger"] == "bigif.test"
    assert entry["message"] == "plain message"


def test_close_file_logging_idempotent(tmp_path: Path) -> None:
    """Closing twice is harmless."""
    configure_logging(log_to_file=True, log_dir=tmp_path)

    close_file_logging()
    close_file_logging()


def test_console_renders_event_and_fields(capsys: pytest.CaptureFixture[str]) -> None:
    """Console lines show the event name followed by key=value pairs."""
    configure_logging(verbosity=1)

    get_logger("bigif.test").info("graph_ready", nodes=3)

    err = capsys.readouterr().err
    assert "graph_ready" in err
    assert "nodes=3" in err
    assert "'event'" not in err


def test_console_quiet_below_warning(capsys: pytest.CaptureFixture[str]) -> None:
    """Default verbosity keeps info events off the console."""
    configure_logging(verbosity=0)

    get_logger("bigif.test").info("graph_ready", nodes=3)

    assert "graph_ready" not in capsys.readouterr().err
