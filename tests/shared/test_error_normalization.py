"""Tests for shared error normalization."""

from __future__ import annotations

import errno
import socket

import pytest

from packages.edr_shared.errors import (
    ErrorCategory,
    codes,
    exception_to_error,
    not_found_error,
    script_error,
)


@pytest.mark.parametrize(
    ("exc", "category", "code"),
    [
        (
            FileNotFoundError(errno.ENOENT, "No such file or directory"),
            ErrorCategory.NOT_FOUND,
            codes.NOT_FOUND,
        ),
        (
            PermissionError(errno.EACCES, "Permission denied"),
            ErrorCategory.PERMISSION,
            codes.PERMISSION_DENIED,
        ),
        (FileExistsError(errno.EEXIST, "File exists"), ErrorCategory.SYSTEM, codes.ALREADY_EXISTS),
        (IsADirectoryError(errno.EISDIR, "Is a directory"), ErrorCategory.SYSTEM, codes.IO_ERROR),
        (TimeoutError("timed out"), ErrorCategory.NETWORK, codes.TIMED_OUT),
        (
            ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"),
            ErrorCategory.NETWORK,
            codes.CONNECTION_REFUSED,
        ),
        (
            ConnectionResetError(errno.ECONNRESET, "Connection reset by peer"),
            ErrorCategory.NETWORK,
            codes.CONNECTION_FAILED,
        ),
        (
            socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
            ErrorCategory.NETWORK,
            codes.UNRESOLVED_HOST,
        ),
        (OSError(errno.EIO, "Input/output error"), ErrorCategory.SYSTEM, codes.IO_ERROR),
        (ValueError("embedded null byte"), ErrorCategory.SCRIPT, codes.INVALID_ARGUMENT),
        (RuntimeError("boom"), ErrorCategory.INTERNAL, codes.UNEXPECTED_EXCEPTION),
    ],
)
def test_exception_to_error_maps_categories(
    exc: Exception, category: ErrorCategory, code: str
) -> None:
    detail = exception_to_error(exc)

    assert detail.category is category
    assert detail.code == code
    assert detail.exception_type == type(exc).__name__


def test_context_prefixes_os_error_reason_and_target_is_kept() -> None:
    """OS errors should render their reason after the caller's context."""
    detail = exception_to_error(
        FileNotFoundError(errno.ENOENT, "No such file or directory", "missing.bin"),
        context="cannot spawn process missing.bin",
        target="missing.bin",
    )

    assert detail.render() == (
        "NOT_FOUND: cannot spawn process missing.bin: No such file or directory"
    )
    assert detail.target == "missing.bin"


def test_empty_exception_message_falls_back_to_type_name() -> None:
    assert exception_to_error(RuntimeError()).message == "RuntimeError"


def test_log_fields_omit_unknown_values() -> None:
    """Only the fields a failure actually has are attached to log lines."""
    detail = not_found_error("cannot modify file a.txt: file does not exist", target="a.txt")

    assert detail.log_fields() == {
        "error_code": "NOT_FOUND",
        "error_category": "not_found",
        "target": "a.txt",
    }


def test_script_errors_carry_the_input_line() -> None:
    detail = script_error("line 9: bad", code=codes.WRONG_ARITY, line_number=9)

    assert detail.category is ErrorCategory.SCRIPT
    assert detail.line_number == 9
    assert detail.target is None
