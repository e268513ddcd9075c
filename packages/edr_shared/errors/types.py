"""Error detail carried by every engine failure and every ``Error`` row."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Where a scenario failure came from."""

    SCRIPT = "script"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    NETWORK = "network"
    SYSTEM = "system"
    INTERNAL = "internal"


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """One failure, with the path/address and input line it concerns.

    ``target`` names the file path, executable or ``host:port`` the failed
    operation addressed; ``line_number`` is the input line for script errors.
    """

    code: str
    message: str
    category: ErrorCategory
    target: str | None = None
    line_number: int | None = None
    exception_type: str | None = None

    def render(self) -> str:
        """Return the single-line ``<CODE>: <message>`` form written to the log."""
        return f"{self.code}: {self.message}"

    def log_fields(self) -> dict[str, str]:
        """Return the structured fields attached to diagnostic log lines."""
        values = {
            "error_code": self.code,
            "error_category": self.category.value,
            "target": self.target,
            "exception_type": self.exception_type,
        }
        return {key: value for key, value in values.items() if value is not None}
