"""Scenario execution engine for synthesized endpoint telemetry."""

from .commands import (
    COMMAND_TYPES,
    Command,
    CommandKind,
    ConnectCommand,
    ConnectSelfCommand,
    DeleteFileCommand,
    ModFileCommand,
    NewFileCommand,
    PauseCommand,
    ProcessCommand,
)
from .context import ExecutionContext
from .engine import EngineState, RunSummary, ScenarioEngine
from .errors import EngineError, OperationError, ParseError, SetupError, SinkError
from .parser import ParsedLine, iter_parsed_lines, parse_fields, parse_line
from .records import (
    APPLICABLE_COLUMNS,
    COLUMNS,
    Activity,
    ErrorEvent,
    OutputEvent,
    ProcessIdentity,
    Record,
    RecordType,
    to_row,
)
from .registry import ProcessHandle, ProcessRegistry, TerminationReport
from .runner import run_scenario
from .sink import EventSink

__all__ = [
    "APPLICABLE_COLUMNS",
    "Activity",
    "COLUMNS",
    "COMMAND_TYPES",
    "Command",
    "CommandKind",
    "ConnectCommand",
    "ConnectSelfCommand",
    "DeleteFileCommand",
    "EngineError",
    "EngineState",
    "ErrorEvent",
    "EventSink",
    "ExecutionContext",
    "ModFileCommand",
    "NewFileCommand",
    "OperationError",
    "OutputEvent",
    "ParseError",
    "ParsedLine",
    "PauseCommand",
    "ProcessCommand",
    "ProcessHandle",
    "ProcessIdentity",
    "ProcessRegistry",
    "Record",
    "RecordType",
    "RunSummary",
    "ScenarioEngine",
    "SetupError",
    "SinkError",
    "TerminationReport",
    "iter_parsed_lines",
    "parse_fields",
    "parse_line",
    "run_scenario",
]
