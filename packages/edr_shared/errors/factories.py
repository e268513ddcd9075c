"""Factory helpers for the failure kinds a scenario can produce."""

from __future__ import annotations

from . import codes
from .types import ErrorCategory, ErrorDetail


def script_error(
    message: str,
    *,
    code: str = codes.INVALID_ARGUMENT,
    line_number: int | None = None,
) -> ErrorDetail:
    """An input line that could not be turned into a command."""
    return ErrorDetail(
        code=code,
        message=message,
        category=ErrorCategory.SCRIPT,
        line_number=line_number,
    )


def not_found_error(message: str, *, target: str | None = None) -> ErrorDetail:
    """A file or executable the command names does not exist."""
    return ErrorDetail(
        code=codes.NOT_FOUND,
        message=message,
        category=ErrorCategory.NOT_FOUND,
        target=target,
    )


def permission_error(message: str, *, target: str | None = None) -> ErrorDetail:
    return ErrorDetail(
        code=codes.PERMISSION_DENIED,
        message=message,
        category=ErrorCategory.PERMISSION,
        target=target,
    )


def network_error(
    message: str,
    *,
    code: str = codes.CONNECTION_FAILED,
    target: str | None = None,
) -> ErrorDetail:
    """A connect, send or loopback exchange that did not complete."""
    return ErrorDetail(
        code=code,
        message=message,
        category=ErrorCategory.NETWORK,
        target=target,
    )


def system_error(
    message: str,
    *,
    code: str = codes.IO_ERROR,
    target: str | None = None,
) -> ErrorDetail:
    """Any other operating-system failure (filesystem, process table, sockets)."""
    return ErrorDetail(
        code=code,
        message=message,
        category=ErrorCategory.SYSTEM,
        target=target,
    )


def unexpected_error(message: str, *, exception_type: str) -> ErrorDetail:
    return ErrorDetail(
        code=codes.UNEXPECTED_EXCEPTION,
        message=message,
        category=ErrorCategory.INTERNAL,
        exception_type=exception_type,
    )
