"""Map exceptions raised by OS operations onto shared ``ErrorDetail`` values."""

from __future__ import annotations

import socket

from . import codes
from .factories import unexpected_error
from .types import ErrorCategory, ErrorDetail

# First match wins, so subclasses precede their bases.
_EXCEPTION_MAP: tuple[tuple[type[BaseException], ErrorCategory, str], ...] = (
    (FileNotFoundError, ErrorCategory.NOT_FOUND, codes.NOT_FOUND),
    (PermissionError, ErrorCategory.PERMISSION, codes.PERMISSION_DENIED),
    (FileExistsError, ErrorCategory.SYSTEM, codes.ALREADY_EXISTS),
    (TimeoutError, ErrorCategory.NETWORK, codes.TIMED_OUT),
    (ConnectionRefusedError, ErrorCategory.NETWORK, codes.CONNECTION_REFUSED),
    (ConnectionError, ErrorCategory.NETWORK, codes.CONNECTION_FAILED),
    (socket.gaierror, ErrorCategory.NETWORK, codes.UNRESOLVED_HOST),
    (OSError, ErrorCategory.SYSTEM, codes.IO_ERROR),
    (ValueError, ErrorCategory.SCRIPT, codes.INVALID_ARGUMENT),
)


def exception_to_error(
    exc: Exception,
    *,
    context: str | None = None,
    target: str | None = None,
) -> ErrorDetail:
    """Normalize an exception into an ``ErrorDetail``.

    ``context`` is prefixed to the message ("cannot delete file a.txt: ...");
    ``target`` records the path or address the failed operation addressed.
    Exceptions outside the known OS/argument families become
    ``UNEXPECTED_EXCEPTION``.
    """
    message = _describe(exc, context)
    for exc_type, category, code in _EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            return ErrorDetail(
                code=code,
                message=message,
                category=category,
                target=target,
                exception_type=type(exc).__name__,
            )
    return unexpected_error(message, exception_type=type(exc).__name__)


def _describe(exc: Exception, context: str | None) -> str:
    """Build a readable message, falling back to the exception type name."""
    if isinstance(exc, OSError) and exc.strerror:
        detail = exc.strerror
    else:
        detail = str(exc) or type(exc).__name__
    if context:
        return f"{context}: {detail}"
    return detail
