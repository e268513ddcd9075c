"""Execution loop: dispatch parsed commands in order and drain at the end.

The engine walks ``READY -> RUNNING -> DRAINING -> DONE`` exactly once. A failed
line (parse or operation) becomes one ``Error`` row and the loop moves on;
only failures of the event log itself escape ``run``. Spawned children are
always drained before ``DONE``, including when ``run`` raises.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from packages.edr_shared.errors import ErrorDetail, exception_to_error
from packages.edr_shared.logging import command_context, get_logger

from .commands import COMMAND_TYPES, Command
from .context import ExecutionContext
from .errors import EngineError
from .handlers import HANDLERS, Handler
from .parser import ParsedLine
from .records import ErrorEvent, OutputEvent, error_event
from .registry import TerminationReport
from .sink import EventSink

_LOGGER = get_logger(__name__)


class EngineState(str, Enum):
    """Lifecycle states of one scenario run."""

    READY = "ready"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Counters describing one completed scenario run."""

    commands_processed: int
    records_written: int
    errors_logged: int
    termination: TerminationReport


class ScenarioEngine:
    """Dispatch commands to handlers and forward every outcome to the sink."""

    def __init__(
        self,
        *,
        context: ExecutionContext,
        sink: EventSink,
        handlers: Mapping[type, Handler] | None = None,
    ) -> None:
        table = dict(HANDLERS if handlers is None else handlers)
        missing = sorted(kind.__name__ for kind in COMMAND_TYPES if kind not in table)
        if missing:
            raise ValueError(f"no handler registered for command types: {missing}")
        self._handlers = table
        self._context = context
        self._sink = sink
        self._state = EngineState.READY

    @property
    def state(self) -> EngineState:
        return self._state

    def run(self, lines: Iterable[ParsedLine]) -> RunSummary:
        """Execute every parsed line in order, then drain spawned children."""
        if self._state is not EngineState.READY:
            raise RuntimeError(f"scenario engine cannot run from state {self._state.value}")
        self._state = EngineState.RUNNING

        processed = 0
        records = 0
        errors = 0
        try:
            for parsed in lines:
                processed += 1
                with command_context(
                    line_number=parsed.line_number, command=_keyword(parsed.command)
                ):
                    event = self._execute(parsed)
                if event is None:
                    continue
                self._sink.write(event)
                if isinstance(event, ErrorEvent):
                    errors += 1
                else:
                    records += 1
        finally:
            self._state = EngineState.DRAINING
            termination = self._context.registry.drain()
            self._state = EngineState.DONE

        _LOGGER.info(
            "scenario finished",
            extra={
                "commands_processed": processed,
                "records_written": records,
                "errors_logged": errors,
            },
        )
        return RunSummary(
            commands_processed=processed,
            records_written=records,
            errors_logged=errors,
            termination=termination,
        )

    def _execute(self, parsed: ParsedLine) -> OutputEvent | None:
        if parsed.error is not None:
            return self._failure(parsed.error.detail)

        command = parsed.command
        if command is None:
            return None
        handler = self._handlers[type(command)]
        try:
            return handler(command, self._context)
        except EngineError as exc:
            return self._failure(exc.detail)
        except Exception as exc:
            _LOGGER.exception("handler raised an unexpected exception")
            return self._failure(
                exception_to_error(exc, context=f"{command.kind.value} failed")
            )

    def _failure(self, detail: ErrorDetail) -> ErrorEvent:
        _LOGGER.info("command failed: %s", detail.message, extra=detail.log_fields())
        return error_event(detail.render())


def _keyword(command: Command | None) -> str | None:
    if command is None:
        return None
    return command.kind.value
