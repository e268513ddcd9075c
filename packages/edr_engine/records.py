"""Unified event schema for the output log.

``Record`` carries the full superset of output columns. Which columns a record
may populate is fixed per ``Activity`` in ``APPLICABLE_COLUMNS``; populating any
other column raises ``ValueError`` at construction. ``ErrorEvent`` shares the
same serialization path through ``to_row``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Union

COLUMNS: tuple[str, ...] = (
    "type",
    "timestamp",
    "username",
    "proc_name",
    "proc_cmd",
    "proc_id",
    "activity",
    "file_path",
    "source_addr",
    "source_port",
    "dest_addr",
    "dest_port",
    "bytes_sent",
    "protocol",
)


class RecordType(str, Enum):
    """Severity marker written to the ``type`` column."""

    INFORMATION = "Information"
    ERROR = "Error"


class Activity(str, Enum):
    """Activity labels written to the ``activity`` column."""

    NEW_PROCESS = "New Process"
    NEW_FILE = "New File"
    MODIFY_FILE = "Modify File"
    DELETE_FILE = "Delete File"
    CONNECT = "Connect"
    CONNECT_SELF = "Connect Self"


_IDENTITY_COLUMNS = frozenset(
    {"type", "timestamp", "username", "proc_name", "proc_cmd", "proc_id", "activity"}
)
_FILE_COLUMNS = _IDENTITY_COLUMNS | {"file_path"}
_NETWORK_COLUMNS = _IDENTITY_COLUMNS | {
    "source_addr",
    "source_port",
    "dest_addr",
    "dest_port",
    "bytes_sent",
    "protocol",
}

APPLICABLE_COLUMNS: dict[Activity, frozenset[str]] = {
    Activity.NEW_PROCESS: _IDENTITY_COLUMNS,
    Activity.NEW_FILE: _FILE_COLUMNS,
    Activity.MODIFY_FILE: _FILE_COLUMNS,
    Activity.DELETE_FILE: _FILE_COLUMNS,
    Activity.CONNECT: _NETWORK_COLUMNS,
    Activity.CONNECT_SELF: _NETWORK_COLUMNS,
}


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with microsecond precision."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


@dataclass(frozen=True, slots=True)
class ProcessIdentity:
    """Name, command line and PID of a process named in a record."""

    name: str
    cmdline: str
    pid: int


@dataclass(frozen=True, slots=True)
class Record:
    """One successful telemetry event.

    Field names match ``COLUMNS``; ``type`` is always ``Information``.
    Inapplicable columns stay as empty strings.
    """

    activity: Activity
    timestamp: str
    username: str = ""
    proc_name: str = ""
    proc_cmd: str = ""
    proc_id: str = ""
    file_path: str = ""
    source_addr: str = ""
    source_port: str = ""
    dest_addr: str = ""
    dest_port: str = ""
    bytes_sent: str = ""
    protocol: str = ""

    def __post_init__(self) -> None:
        populated = self.populated_columns()
        unexpected = populated - APPLICABLE_COLUMNS[self.activity]
        if unexpected:
            raise ValueError(
                f"{self.activity.value} record must not populate columns: {sorted(unexpected)}"
            )

    def as_dict(self) -> dict[str, str]:
        """Return every output column mapped to its string value."""
        values = {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name != "activity"
        }
        values["type"] = RecordType.INFORMATION.value
        values["activity"] = self.activity.value
        return {column: values[column] for column in COLUMNS}

    def populated_columns(self) -> frozenset[str]:
        """Return the names of columns holding a non-empty value."""
        return frozenset(column for column, value in self.as_dict().items() if value != "")


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """One failed command, logged with only type, timestamp and message."""

    timestamp: str
    message: str

    def as_dict(self) -> dict[str, str]:
        values = dict.fromkeys(COLUMNS, "")
        values["type"] = RecordType.ERROR.value
        values["timestamp"] = self.timestamp
        values["username"] = self.message
        return values


OutputEvent = Union[Record, ErrorEvent]


def to_row(event: OutputEvent) -> list[str]:
    """Serialize any output event into the fixed column order."""
    values = event.as_dict()
    return [values[column] for column in COLUMNS]


def process_record(*, child: ProcessIdentity, username: str) -> Record:
    """Build a ``New Process`` record describing a spawned child."""
    return Record(
        activity=Activity.NEW_PROCESS,
        timestamp=utc_timestamp(),
        username=username,
        proc_name=child.name,
        proc_cmd=child.cmdline,
        proc_id=str(child.pid),
    )


def file_record(
    *,
    activity: Activity,
    file_path: str,
    host: ProcessIdentity,
    username: str,
) -> Record:
    """Build a file activity record stamped with the engine's identity."""
    return Record(
        activity=activity,
        timestamp=utc_timestamp(),
        username=username,
        proc_name=host.name,
        proc_cmd=host.cmdline,
        proc_id=str(host.pid),
        file_path=file_path,
    )


def connection_record(
    *,
    activity: Activity,
    source: tuple[str, int],
    destination: tuple[str, int],
    bytes_sent: int,
    protocol: str,
    host: ProcessIdentity,
    username: str,
) -> Record:
    """Build a network activity record stamped with the engine's identity."""
    return Record(
        activity=activity,
        timestamp=utc_timestamp(),
        username=username,
        proc_name=host.name,
        proc_cmd=host.cmdline,
        proc_id=str(host.pid),
        source_addr=source[0],
        source_port=str(source[1]),
        dest_addr=destination[0],
        dest_port=str(destination[1]),
        bytes_sent=str(bytes_sent),
        protocol=protocol,
    )


def error_event(message: str) -> ErrorEvent:
    """Build an error event timestamped now."""
    return ErrorEvent(timestamp=utc_timestamp(), message=message)
