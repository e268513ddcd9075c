"""Operation handlers: one real side effect per command kind.

Each handler takes its typed command and the explicit ``ExecutionContext`` and
returns a ``Record``, returns ``None`` when the command produces no event, or
raises ``OperationError`` describing the failed operation.
"""

from __future__ import annotations

import os
import socket
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from packages.edr_shared.errors import exception_to_error, not_found_error
from packages.edr_shared.logging import get_logger

from .commands import (
    ConnectCommand,
    ConnectSelfCommand,
    DeleteFileCommand,
    ModFileCommand,
    NewFileCommand,
    PauseCommand,
    ProcessCommand,
)
from .context import ExecutionContext, describe_child
from .errors import OperationError
from .records import (
    Activity,
    ProcessIdentity,
    Record,
    connection_record,
    file_record,
    process_record,
)

_LOGGER = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024
_MODIFY_PAYLOAD = b"\x00"

Handler = Callable[[Any, ExecutionContext], Record | None]


def spawn_process(command: ProcessCommand, context: ExecutionContext) -> Record:
    """Start a child process without waiting for it and register its handle."""
    try:
        popen = subprocess.Popen(
            command.argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except (OSError, ValueError) as exc:
        raise OperationError(
            exception_to_error(
                exc, context=f"cannot spawn process {command.path}", target=command.path
            )
        ) from exc

    child = ProcessIdentity(
        name=describe_child(popen.pid, command.path),
        cmdline=" ".join(command.argv),
        pid=popen.pid,
    )
    handle = context.registry.register(popen, child)
    _LOGGER.debug("child process spawned", extra={"pid": child.pid, "index": handle.index})
    return process_record(child=child, username=context.username)


def create_file(command: NewFileCommand, context: ExecutionContext) -> Record | None:
    """Create an empty file; an existing path is left untouched with no event."""
    path = Path(command.path)
    try:
        with path.open("xb"):
            pass
    except FileExistsError:
        _LOGGER.debug("file already present, nothing created", extra={"path": command.path})
        return None
    except OSError as exc:
        raise OperationError(
            exception_to_error(
                exc, context=f"cannot create file {command.path}", target=command.path
            )
        ) from exc
    return _file_event(Activity.NEW_FILE, path, context)


def modify_file(command: ModFileCommand, context: ExecutionContext) -> Record:
    """Append a single null byte to an existing file."""
    path = Path(command.path)
    try:
        with path.open("r+b") as handle:
            handle.seek(0, os.SEEK_END)
            handle.write(_MODIFY_PAYLOAD)
    except FileNotFoundError as exc:
        raise OperationError(
            not_found_error(
                f"cannot modify file {command.path}: file does not exist",
                target=command.path,
            )
        ) from exc
    except OSError as exc:
        raise OperationError(
            exception_to_error(
                exc, context=f"cannot modify file {command.path}", target=command.path
            )
        ) from exc
    return _file_event(Activity.MODIFY_FILE, path, context)


def delete_file(command: DeleteFileCommand, context: ExecutionContext) -> Record:
    """Remove an existing file."""
    path = Path(command.path)
    canonical = _canonical(path)
    try:
        path.unlink()
    except FileNotFoundError as exc:
        raise OperationError(
            not_found_error(
                f"cannot delete file {command.path}: file does not exist",
                target=command.path,
            )
        ) from exc
    except OSError as exc:
        raise OperationError(
            exception_to_error(
                exc, context=f"cannot delete file {command.path}", target=command.path
            )
        ) from exc
    return file_record(
        activity=Activity.DELETE_FILE,
        file_path=canonical,
        host=context.host,
        username=context.username,
    )


def connect(command: ConnectCommand, context: ExecutionContext) -> Record:
    """Open a TCP connection, send the message once and close."""
    payload = command.message.encode("utf-8")
    destination = f"{command.dest_addr}:{command.dest_port}"
    try:
        with socket.create_connection(
            (command.dest_addr, command.dest_port),
            timeout=context.connect_timeout_seconds,
        ) as sock:
            source = _address(sock.getsockname())
            peer = _address(sock.getpeername())
            sent = _send_message(sock, payload)
    except OSError as exc:
        raise OperationError(
            exception_to_error(
                exc, context=f"cannot send to {destination}", target=destination
            )
        ) from exc
    return connection_record(
        activity=Activity.CONNECT,
        source=source,
        destination=peer,
        bytes_sent=sent,
        protocol=context.protocol,
        host=context.host,
        username=context.username,
    )


def connect_self(command: ConnectSelfCommand, context: ExecutionContext) -> Record:
    """Send the message to a loopback listener held open for this exchange."""
    payload = command.message.encode("utf-8")
    timeout = context.connect_timeout_seconds
    try:
        with socket.create_server(
            (context.loopback_host, 0),
            family=_family_for(context.loopback_host),
            backlog=1,
        ) as listener:
            listener.settimeout(timeout)
            destination = _address(listener.getsockname())
            with socket.create_connection(destination, timeout=timeout) as client:
                source = _address(client.getsockname())
                peer, _ = listener.accept()
                with peer:
                    peer.settimeout(timeout)
                    sent = _send_message(client, payload, receiver=peer)
    except OSError as exc:
        raise OperationError(
            exception_to_error(
                exc,
                context=f"loopback exchange on {context.loopback_host} failed",
                target=context.loopback_host,
            )
        ) from exc
    return connection_record(
        activity=Activity.CONNECT_SELF,
        source=source,
        destination=destination,
        bytes_sent=sent,
        protocol=context.protocol,
        host=context.host,
        username=context.username,
    )


def pause(command: PauseCommand, context: ExecutionContext) -> None:
    """Block the whole engine; pauses never produce an event."""
    context.sleeper(command.seconds)
    return None


HANDLERS: Mapping[type, Handler] = {
    ProcessCommand: spawn_process,
    NewFileCommand: create_file,
    ModFileCommand: modify_file,
    DeleteFileCommand: delete_file,
    ConnectCommand: connect,
    ConnectSelfCommand: connect_self,
    PauseCommand: pause,
}


def _file_event(activity: Activity, path: Path, context: ExecutionContext) -> Record:
    return file_record(
        activity=activity,
        file_path=_canonical(path),
        host=context.host,
        username=context.username,
    )


def _family_for(host: str) -> socket.AddressFamily:
    return socket.AF_INET6 if ":" in host else socket.AF_INET


def _canonical(path: Path) -> str:
    return str(path.resolve())


def _address(sockname: tuple[Any, ...]) -> tuple[str, int]:
    # IPv6 socknames carry flowinfo and scope id after host and port.
    return str(sockname[0]), int(sockname[1])


def _send_message(
    sock: socket.socket,
    payload: bytes,
    *,
    receiver: socket.socket | None = None,
) -> int:
    """Send ``payload`` in chunks and return the number of bytes transmitted.

    When ``receiver`` is given, every chunk is read back from it before the
    next send so a same-thread loopback exchange never fills the socket buffer.
    """
    view = memoryview(payload)
    sent = 0
    while sent < len(view):
        count = sock.send(view[sent : sent + _CHUNK_SIZE])
        if receiver is not None:
            _receive_exactly(receiver, count)
        sent += count
    return sent


def _receive_exactly(sock: socket.socket, expected: int) -> None:
    remaining = expected
    while remaining > 0:
        chunk = sock.recv(min(remaining, _CHUNK_SIZE))
        if not chunk:
            raise ConnectionResetError("peer closed before the message was received")
        remaining -= len(chunk)
