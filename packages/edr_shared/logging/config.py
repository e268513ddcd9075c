"""Diagnostic logging configuration for the EDR generator.

Diagnostics go to stderr by default; the CSV event log and the CLI run summary
on stdout are never mixed with them. Each line carries the bound scenario
context plus whatever structured ``extra=`` fields the call site passed.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from . import fields
from .context import get_context

# Attributes every LogRecord has; anything else on a record came from ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "scenario"}


class ContextFilter(logging.Filter):
    """Attach the bound scenario context (and the service name) to each record."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self._service = service

    def filter(self, record: logging.LogRecord) -> bool:
        scenario = get_context()
        if self._service:
            scenario.setdefault(fields.SERVICE, self._service)
        record.scenario = scenario
        return True


def structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return scenario context merged with the record's ``extra=`` fields."""
    values: dict[str, Any] = dict(getattr(record, "scenario", {}))
    for key, value in vars(record).items():
        if key not in _RECORD_ATTRIBUTES:
            values[key] = value
    return values


class JsonFormatter(logging.Formatter):
    """One JSON object per line with stable core keys first."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(structured_fields(record))
        if record.exc_info:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable line followed by sorted ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra = structured_fields(record)
        if not extra:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(extra.items()))
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "WARNING",
    json_output: bool = False,
    service: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Install a single root handler, replacing any configured before."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=stream if stream is not None else sys.stderr)
    handler.addFilter(ContextFilter(service=service))
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
