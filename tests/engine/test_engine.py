"""Tests for the scenario engine loop and its lifecycle."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import pytest

from packages.edr_engine import (
    COLUMNS,
    EngineState,
    EventSink,
    ExecutionContext,
    ModFileCommand,
    NewFileCommand,
    ParsedLine,
    PauseCommand,
    ProcessCommand,
    ScenarioEngine,
    iter_parsed_lines,
)
from packages.edr_engine.handlers import HANDLERS


def _engine(context: ExecutionContext, **kwargs: object) -> tuple[ScenarioEngine, io.StringIO]:
    stream = io.StringIO()
    engine = ScenarioEngine(context=context, sink=EventSink(stream), **kwargs)
    return engine, stream


def _rows(stream: io.StringIO) -> list[list[str]]:
    return [line.split(",") for line in stream.getvalue().splitlines()]


def test_malformed_line_logs_one_error_and_run_continues(
    context: ExecutionContext, tmp_path: Path
) -> None:
    script = [
        f"new_file,{tmp_path / 'a.txt'}",
        "frobnicate,now",
        f"new_file,{tmp_path / 'b.txt'}",
    ]
    engine, stream = _engine(context)

    summary = engine.run(iter_parsed_lines(script, delimiter=","))

    rows = _rows(stream)
    assert [row[0] for row in rows] == ["Information", "Error", "Information"]
    assert rows[1][2].startswith("UNKNOWN_COMMAND: line 2")
    assert all(value == "" for value in rows[1][3:])
    assert (tmp_path / "b.txt").exists()
    assert summary.commands_processed == 3
    assert summary.records_written == 2
    assert summary.errors_logged == 1


def test_operation_failure_becomes_error_row(
    context: ExecutionContext, tmp_path: Path
) -> None:
    engine, stream = _engine(context)

    summary = engine.run(
        iter_parsed_lines([f"mod_file,{tmp_path / 'ghost.txt'}"], delimiter=",")
    )

    rows = _rows(stream)
    assert len(rows) == 1
    assert rows[0][0] == "Error"
    assert "ghost.txt" in rows[0][2]
    assert summary.errors_logged == 1
    assert not (tmp_path / "ghost.txt").exists()


def test_commands_without_events_write_nothing(
    context: ExecutionContext, sleeper: object, tmp_path: Path
) -> None:
    existing = tmp_path / "a.txt"
    existing.write_bytes(b"")
    lines = [
        ParsedLine(line_number=1, command=PauseCommand(milliseconds=10)),
        ParsedLine(line_number=2, command=NewFileCommand(path=str(existing))),
    ]
    engine, stream = _engine(context)

    summary = engine.run(lines)

    assert stream.getvalue() == ""
    assert summary.commands_processed == 2
    assert summary.records_written == 0
    assert summary.errors_logged == 0
    assert sleeper.calls == [0.01]


def test_state_machine_runs_once(context: ExecutionContext) -> None:
    engine, _ = _engine(context)
    assert engine.state is EngineState.READY

    engine.run([])

    assert engine.state is EngineState.DONE
    assert context.registry.drained
    with pytest.raises(RuntimeError, match="state done"):
        engine.run([])


def test_children_are_drained_at_end_of_run(context: ExecutionContext) -> None:
    command = ProcessCommand(path=sys.executable, args=("-c", "import time; time.sleep(30)"))
    engine, stream = _engine(context)

    summary = engine.run([ParsedLine(line_number=1, command=command)])

    handle = context.registry.get(0)
    assert not handle.is_running()
    assert handle.released
    assert summary.termination.killed == (handle.pid,)
    assert _rows(stream)[0][COLUMNS.index("proc_id")] == str(handle.pid)


def test_missing_handler_is_rejected_at_construction(context: ExecutionContext) -> None:
    handlers = {kind: handler for kind, handler in HANDLERS.items() if kind is not PauseCommand}

    with pytest.raises(ValueError, match="PauseCommand"):
        _engine(context, handlers=handlers)


def test_unexpected_handler_exception_is_isolated(
    context: ExecutionContext, tmp_path: Path
) -> None:
    def exploding(command: object, ctx: ExecutionContext) -> None:
        raise ZeroDivisionError("boom")

    handlers = dict(HANDLERS)
    handlers[PauseCommand] = exploding
    engine, stream = _engine(context, handlers=handlers)

    summary = engine.run(
        [
            ParsedLine(line_number=1, command=PauseCommand(milliseconds=1)),
            ParsedLine(line_number=2, command=NewFileCommand(path=str(tmp_path / "a.txt"))),
        ]
    )

    rows = _rows(stream)
    assert rows[0][0] == "Error"
    assert rows[0][2] == "UNEXPECTED_EXCEPTION: pause failed: boom"
    assert rows[1][0] == "Information"
    assert summary.errors_logged == 1
    assert summary.records_written == 1


class _BrokenSink:
    def write(self, event: object) -> None:
        raise OSError("disk full")


def test_sink_failure_escapes_but_children_are_still_drained(
    context: ExecutionContext,
) -> None:
    command = ProcessCommand(path=sys.executable, args=("-c", "import time; time.sleep(30)"))
    engine = ScenarioEngine(context=context, sink=_BrokenSink())

    with pytest.raises(OSError, match="disk full"):
        engine.run([ParsedLine(line_number=1, command=command)])

    assert engine.state is EngineState.DONE
    assert context.registry.drained
    assert not context.registry.get(0).is_running()


def test_failure_diagnostics_carry_structured_error_fields(
    context: ExecutionContext, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="packages.edr_engine.engine")
    ghost = tmp_path / "ghost.txt"
    engine, _ = _engine(context)

    engine.run([ParsedLine(line_number=3, command=ModFileCommand(path=str(ghost)))])

    failures = [record for record in caplog.records if record.msg.startswith("command failed")]
    assert len(failures) == 1
    assert failures[0].error_code == "NOT_FOUND"
    assert failures[0].error_category == "not_found"
    assert failures[0].target == str(ghost)
