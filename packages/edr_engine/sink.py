"""Append-only CSV event log.

One header row, then one row per ``Record`` or ``ErrorEvent`` in the fixed
column order. Every row is flushed (and optionally fsynced) before ``write``
returns, so a crash after N events leaves N complete rows on disk.
"""

from __future__ import annotations

import csv
import os
from pathlib import Path
from types import TracebackType
from typing import TextIO

from packages.edr_shared.errors import exception_to_error
from packages.edr_shared.logging import get_logger

from .errors import SetupError, SinkError
from .records import COLUMNS, OutputEvent, to_row

_LOGGER = get_logger(__name__)

OUTPUT_DELIMITER = ","


class EventSink:
    """Serialize output events to a text stream, one line per event."""

    def __init__(
        self,
        stream: TextIO,
        *,
        fsync: bool = False,
        owns_stream: bool = False,
    ) -> None:
        self._stream = stream
        self._writer = csv.writer(stream, delimiter=OUTPUT_DELIMITER, lineterminator="\n")
        self._fsync = fsync
        self._owns_stream = owns_stream
        self._label = str(getattr(stream, "name", "<stream>"))
        self.events_written = 0

    @classmethod
    def open(cls, path: str | Path, *, fsync: bool = True) -> EventSink:
        """Create or truncate ``path`` and write the header row.

        Raises ``SetupError`` when the file cannot be created or written.
        """
        resolved = Path(path)
        try:
            stream = resolved.open("w", encoding="utf-8", newline="")
        except OSError as exc:
            raise SetupError(
                exception_to_error(
                    exc, context=f"cannot open output file {resolved}", target=str(resolved)
                )
            ) from exc

        sink = cls(stream, fsync=fsync, owns_stream=True)
        try:
            sink.write_header()
        except OSError as exc:
            stream.close()
            raise SetupError(
                exception_to_error(
                    exc, context=f"cannot write output file {resolved}", target=str(resolved)
                )
            ) from exc
        _LOGGER.debug("event log opened", extra={"output_file": str(resolved)})
        return sink

    def write_header(self) -> None:
        self._writer.writerow(COLUMNS)
        self._flush()

    def write(self, event: OutputEvent) -> None:
        """Append one event and make it durable before returning.

        Raises ``SinkError`` when the row cannot be written, e.g. on a full disk.
        """
        try:
            self._writer.writerow(to_row(event))
            self._flush()
        except OSError as exc:
            raise SinkError(
                exception_to_error(
                    exc, context=f"cannot write event log {self._label}", target=self._label
                )
            ) from exc
        self.events_written += 1

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def __enter__(self) -> EventSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _flush(self) -> None:
        self._stream.flush()
        if self._fsync:
            os.fsync(self._stream.fileno())
