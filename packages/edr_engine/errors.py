"""Engine exception taxonomy.

Every engine exception wraps exactly one shared ``ErrorDetail`` so the
dispatcher can turn any failure into one ``Error`` row without inspecting the
exception type.
"""

from __future__ import annotations

from packages.edr_shared.errors import ErrorDetail


class EngineError(RuntimeError):
    """Base error for all scenario engine failures."""

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.render())
        self.detail = detail


class ParseError(EngineError):
    """Raised when one input line cannot be turned into a command."""

    def __init__(self, detail: ErrorDetail, *, line_number: int | None = None) -> None:
        super().__init__(detail)
        self.line_number = line_number


class OperationError(EngineError):
    """Raised when a handler's operating-system operation fails."""


class SetupError(EngineError):
    """Raised when the scenario's own input, output or settings are unusable."""


class SinkError(EngineError):
    """Raised when the event log stops accepting rows partway through a run."""
