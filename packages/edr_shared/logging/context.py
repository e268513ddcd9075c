"""Scenario-scoped logging context.

Fields bound here ride along on every diagnostic line emitted while they are
in scope, so a log line can be tied back to the scenario file and the input
line whose command produced it. Values are stored as strings; ``None`` means
"not known" and is never bound.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from pathlib import Path
from types import MappingProxyType

from . import fields

_EMPTY: Mapping[str, str] = MappingProxyType({})
_SCENARIO_FIELDS: ContextVar[Mapping[str, str]] = ContextVar(
    "edr_scenario_fields", default=_EMPTY
)


def get_context() -> dict[str, str]:
    """Return a copy of the fields currently in scope."""
    return dict(_SCENARIO_FIELDS.get())


def bind_context(**values: object) -> None:
    """Add fields to the current scope until cleared."""
    _SCENARIO_FIELDS.set(_merged(values))


def clear_context() -> None:
    _SCENARIO_FIELDS.set(_EMPTY)


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of the block, then restore the outer scope."""
    token = _SCENARIO_FIELDS.set(_merged(values))
    try:
        yield
    finally:
        _SCENARIO_FIELDS.reset(token)


def scenario_context(*, input_file: Path, output_file: Path) -> AbstractContextManager[None]:
    """Scope for one whole run."""
    return log_context({fields.INPUT_FILE: input_file, fields.OUTPUT_FILE: output_file})


def command_context(*, line_number: int, command: str | None) -> AbstractContextManager[None]:
    """Scope for executing a single input line."""
    return log_context({fields.LINE_NUMBER: line_number, fields.COMMAND: command})


def _merged(values: Mapping[str, object]) -> Mapping[str, str]:
    current = dict(_SCENARIO_FIELDS.get())
    current.update({str(key): str(value) for key, value in values.items() if value is not None})
    return MappingProxyType(current)
