"""Tests for diagnostic logging configuration and context propagation."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from packages.edr_shared.logging import (
    bind_context,
    clear_context,
    command_context,
    configure_logging,
    get_context,
    get_logger,
    log_context,
    scenario_context,
)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Leave the root logger and bound context as the test found them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    clear_context()
    yield
    clear_context()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_output_includes_bound_context() -> None:
    """JSON lines should carry core fields plus every bound context key."""
    stream = io.StringIO()
    configure_logging(level="INFO", json_output=True, service="edr-generator", stream=stream)

    with log_context({"line_number": 7, "command": "mod_file"}):
        get_logger("edr.test").info("command failed")

    payload = json.loads(stream.getvalue().strip())
    assert payload["message"] == "command failed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "edr.test"
    assert payload["line_number"] == "7"
    assert payload["command"] == "mod_file"
    assert payload["service"] == "edr-generator"


def test_plain_output_appends_sorted_context() -> None:
    """Plain lines should end with sorted key=value pairs."""
    stream = io.StringIO()
    configure_logging(level="INFO", json_output=False, stream=stream)
    bind_context(command="pause", line_number=3)

    get_logger("edr.test").warning("slow")

    assert stream.getvalue().strip().endswith("slow command=pause line_number=3")


def test_level_filters_lower_messages() -> None:
    """Messages below the configured level should not be emitted."""
    stream = io.StringIO()
    configure_logging(level="WARNING", stream=stream)

    get_logger("edr.test").info("hidden")

    assert stream.getvalue() == ""


def test_log_context_restores_previous_values() -> None:
    """Leaving a ``log_context`` block restores the outer context."""
    bind_context(input_file="a.csv")

    with log_context({"line_number": 1}):
        assert get_context() == {"input_file": "a.csv", "line_number": "1"}

    assert get_context() == {"input_file": "a.csv"}


def test_bind_context_ignores_none_values() -> None:
    bind_context(command=None, line_number=2)

    assert get_context() == {"line_number": "2"}


def test_extra_fields_are_emitted_alongside_context() -> None:
    """Structured ``extra=`` values appear in JSON output next to bound context."""
    stream = io.StringIO()
    configure_logging(level="INFO", json_output=True, stream=stream)

    with command_context(line_number=4, command="mod_file"):
        get_logger("edr.test").info(
            "command failed", extra={"error_code": "NOT_FOUND", "target": "a.txt"}
        )

    payload = json.loads(stream.getvalue().strip())
    assert payload["error_code"] == "NOT_FOUND"
    assert payload["target"] == "a.txt"
    assert payload["line_number"] == "4"
    assert "scenario" not in payload
    assert "levelno" not in payload


def test_scenario_context_nests_with_command_context(tmp_path: Path) -> None:
    with scenario_context(input_file=tmp_path / "in.csv", output_file=tmp_path / "log.csv"):
        with command_context(line_number=2, command=None):
            assert get_context() == {
                "input_file": str(tmp_path / "in.csv"),
                "output_file": str(tmp_path / "log.csv"),
                "line_number": "2",
            }
        assert "line_number" not in get_context()

    assert get_context() == {}


def test_plain_output_without_fields_is_unchanged() -> None:
    stream = io.StringIO()
    configure_logging(level="INFO", stream=stream)

    get_logger("edr.test").info("quiet")

    assert stream.getvalue().strip().endswith("edr.test quiet")


def test_only_the_service_name_is_seeded() -> None:
    stream = io.StringIO()
    configure_logging(level="INFO", json_output=True, service="edr-generator", stream=stream)

    get_logger("edr.test").info("started")

    payload = json.loads(stream.getvalue().strip())
    assert payload["service"] == "edr-generator"
    assert "environment" not in payload
    assert get_context() == {}
