"""Public shared error API for the EDR generator."""

from . import codes
from .factories import (
    network_error,
    not_found_error,
    permission_error,
    script_error,
    system_error,
    unexpected_error,
)
from .normalize import exception_to_error
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "exception_to_error",
    "network_error",
    "not_found_error",
    "permission_error",
    "script_error",
    "system_error",
    "unexpected_error",
]
