"""Command parser: turns delimited input lines into typed commands.

Each physical line is tokenized on its own by a strict ``csv`` reader; this
module owns keyword selection and per-kind arity/type validation. A malformed
line yields a ``ParseError`` for that line only and never stops iteration.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Sequence

from packages.edr_shared.errors import codes, script_error

from .commands import (
    MAX_PORT,
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
from .errors import ParseError

DEFAULT_DELIMITER = ","

_UNSIGNED_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class ParsedLine:
    """Outcome of parsing one non-blank input line."""

    line_number: int
    command: Command | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_fields(fields: Sequence[str], *, line_number: int | None = None) -> Command:
    """Build one command from already-tokenized fields.

    Raises ``ParseError`` for unknown keywords, wrong arity and unparsable
    numeric fields.
    """
    if not fields:
        raise _parse_error("empty command line", code=codes.INVALID_ARGUMENT, line_number=line_number)

    keyword, arguments = fields[0], list(fields[1:])
    try:
        kind = CommandKind(keyword)
    except ValueError:
        raise _parse_error(
            f"{keyword!r} is not a valid instruction",
            code=codes.UNKNOWN_COMMAND,
            line_number=line_number,
        ) from None

    builder = _BUILDERS[kind]
    return builder(arguments, line_number)


def parse_line(
    line: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    line_number: int | None = None,
) -> Command | None:
    """Parse one physical input line; return ``None`` for blank lines.

    The line is tokenized on its own, so an unbalanced quote fails this line
    only instead of running on into the lines after it.
    """
    fields = _tokenize(line, delimiter=delimiter, line_number=line_number)
    if _is_blank(fields):
        return None
    return parse_fields(fields, line_number=line_number)


def iter_parsed_lines(
    lines: Iterable[str],
    *,
    delimiter: str = DEFAULT_DELIMITER,
) -> Iterator[ParsedLine]:
    """Yield one ``ParsedLine`` per non-blank input line, in source order."""
    for line_number, line in enumerate(lines, start=1):
        try:
            command = parse_line(line, delimiter=delimiter, line_number=line_number)
        except ParseError as exc:
            yield ParsedLine(line_number=line_number, error=exc)
            continue
        if command is None:
            continue
        yield ParsedLine(line_number=line_number, command=command)


def _tokenize(line: str, *, delimiter: str, line_number: int | None) -> list[str]:
    text = line.rstrip("\r\n")
    try:
        rows = list(csv.reader([text], delimiter=delimiter, strict=True))
    except csv.Error as exc:
        raise _parse_error(
            f"malformed quoting: {exc}",
            code=codes.MALFORMED_LINE,
            line_number=line_number,
        ) from None
    return rows[0] if rows else []


def _build_process(arguments: list[str], line_number: int | None) -> Command:
    if len(arguments) < 1:
        raise _arity_error(CommandKind.PROCESS, "process,<path>[,<arg>...]", arguments, line_number)
    path = _require_value(arguments[0], "path", CommandKind.PROCESS, line_number)
    return ProcessCommand(path=path, args=tuple(arguments[1:]))


def _file_builder(
    kind: CommandKind, factory: Callable[..., Command]
) -> Callable[[list[str], int | None], Command]:
    def build(arguments: list[str], line_number: int | None) -> Command:
        if len(arguments) != 1:
            raise _arity_error(kind, f"{kind.value},<path>", arguments, line_number)
        return factory(path=_require_value(arguments[0], "path", kind, line_number))

    return build


def _build_connect(arguments: list[str], line_number: int | None) -> Command:
    if len(arguments) != 3:
        raise _arity_error(
            CommandKind.CONNECT,
            "connect,<address>,<port>,<message>",
            arguments,
            line_number,
        )
    address, raw_port, message = arguments
    address = _require_value(address, "address", CommandKind.CONNECT, line_number)
    port = _parse_unsigned(raw_port, "port", CommandKind.CONNECT, line_number)
    if port > MAX_PORT:
        raise _parse_error(
            f"connect port must be between 0 and {MAX_PORT}, got {raw_port!r}",
            code=codes.INVALID_ARGUMENT,
            line_number=line_number,
        )
    return ConnectCommand(dest_addr=address, dest_port=port, message=message)


def _build_connect_self(arguments: list[str], line_number: int | None) -> Command:
    if len(arguments) != 1:
        raise _arity_error(CommandKind.CONNECT_SELF, "connect_self,<message>", arguments, line_number)
    return ConnectSelfCommand(message=arguments[0])


def _build_pause(arguments: list[str], line_number: int | None) -> Command:
    if len(arguments) != 1:
        raise _arity_error(CommandKind.PAUSE, "pause,<milliseconds>", arguments, line_number)
    milliseconds = _parse_unsigned(arguments[0], "duration", CommandKind.PAUSE, line_number)
    return PauseCommand(milliseconds=milliseconds)


_BUILDERS: dict[CommandKind, Callable[[list[str], int | None], Command]] = {
    CommandKind.PROCESS: _build_process,
    CommandKind.NEW_FILE: _file_builder(CommandKind.NEW_FILE, NewFileCommand),
    CommandKind.MOD_FILE: _file_builder(CommandKind.MOD_FILE, ModFileCommand),
    CommandKind.DELETE_FILE: _file_builder(CommandKind.DELETE_FILE, DeleteFileCommand),
    CommandKind.CONNECT: _build_connect,
    CommandKind.CONNECT_SELF: _build_connect_self,
    CommandKind.PAUSE: _build_pause,
}


def _is_blank(fields: Sequence[str]) -> bool:
    return all(field.strip() == "" for field in fields)


def _require_value(
    value: str, name: str, kind: CommandKind, line_number: int | None
) -> str:
    if value.strip() == "":
        raise _parse_error(
            f"{kind.value} {name} must not be empty",
            code=codes.INVALID_ARGUMENT,
            line_number=line_number,
        )
    return value


def _parse_unsigned(
    raw: str, name: str, kind: CommandKind, line_number: int | None
) -> int:
    candidate = raw.strip()
    if not _UNSIGNED_RE.fullmatch(candidate):
        raise _parse_error(
            f"{kind.value} {name} must be a non-negative integer, got {raw!r}",
            code=codes.INVALID_ARGUMENT,
            line_number=line_number,
        )
    return int(candidate)


def _arity_error(
    kind: CommandKind,
    usage: str,
    arguments: Sequence[str],
    line_number: int | None,
) -> ParseError:
    return _parse_error(
        f"{kind.value} got {len(arguments)} argument(s); expected {usage}",
        code=codes.WRONG_ARITY,
        line_number=line_number,
    )


def _parse_error(message: str, *, code: str, line_number: int | None) -> ParseError:
    if line_number is not None:
        message = f"line {line_number}: {message}"
    return ParseError(
        script_error(message, code=code, line_number=line_number),
        line_number=line_number,
    )
