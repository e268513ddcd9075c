"""Typed command variants produced by the parser and consumed by handlers.

``Command`` is a closed union: the keyword set is fixed, and the dispatcher
checks its handler table against ``COMMAND_TYPES`` so no variant can go
unhandled.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

MAX_PORT = 65535


class CommandKind(str, Enum):
    """Keywords accepted in the first field of an input line."""

    PROCESS = "process"
    NEW_FILE = "new_file"
    MOD_FILE = "mod_file"
    DELETE_FILE = "delete_file"
    CONNECT = "connect"
    CONNECT_SELF = "connect_self"
    PAUSE = "pause"


@dataclass(frozen=True, slots=True)
class ProcessCommand:
    """Spawn ``path`` with ``args`` passed through verbatim."""

    kind: ClassVar[CommandKind] = CommandKind.PROCESS

    path: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        """Return the full argument vector handed to the operating system."""
        return [self.path, *self.args]


@dataclass(frozen=True, slots=True)
class NewFileCommand:
    """Create ``path`` if it does not exist yet."""

    kind: ClassVar[CommandKind] = CommandKind.NEW_FILE

    path: str


@dataclass(frozen=True, slots=True)
class ModFileCommand:
    """Append one null byte to the existing file at ``path``."""

    kind: ClassVar[CommandKind] = CommandKind.MOD_FILE

    path: str


@dataclass(frozen=True, slots=True)
class DeleteFileCommand:
    """Remove the existing file at ``path``."""

    kind: ClassVar[CommandKind] = CommandKind.DELETE_FILE

    path: str


@dataclass(frozen=True, slots=True)
class ConnectCommand:
    """Open a TCP connection and send ``message`` once."""

    kind: ClassVar[CommandKind] = CommandKind.CONNECT

    dest_addr: str
    dest_port: int
    message: str

    def __post_init__(self) -> None:
        if not 0 <= self.dest_port <= MAX_PORT:
            raise ValueError(f"port out of range: {self.dest_port}")


@dataclass(frozen=True, slots=True)
class ConnectSelfCommand:
    """Send ``message`` to a loopback listener owned by the engine."""

    kind: ClassVar[CommandKind] = CommandKind.CONNECT_SELF

    message: str


@dataclass(frozen=True, slots=True)
class PauseCommand:
    """Block the scenario for ``milliseconds``."""

    kind: ClassVar[CommandKind] = CommandKind.PAUSE

    milliseconds: int

    def __post_init__(self) -> None:
        if self.milliseconds < 0:
            raise ValueError(f"pause duration must not be negative: {self.milliseconds}")

    @property
    def seconds(self) -> float:
        return self.milliseconds / 1000


Command = Union[
    ProcessCommand,
    NewFileCommand,
    ModFileCommand,
    DeleteFileCommand,
    ConnectCommand,
    ConnectSelfCommand,
    PauseCommand,
]

COMMAND_TYPES: tuple[type, ...] = (
    ProcessCommand,
    NewFileCommand,
    ModFileCommand,
    DeleteFileCommand,
    ConnectCommand,
    ConnectSelfCommand,
    PauseCommand,
)
