"""Shared error code constants.

Codes are machine-readable and appear verbatim as the prefix of every ``Error``
row written to the event log (``<CODE>: <message>``).
"""

# Script lines
UNKNOWN_COMMAND = "UNKNOWN_COMMAND"
WRONG_ARITY = "WRONG_ARITY"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
MALFORMED_LINE = "MALFORMED_LINE"

# Files and processes
NOT_FOUND = "NOT_FOUND"
ALREADY_EXISTS = "ALREADY_EXISTS"
PERMISSION_DENIED = "PERMISSION_DENIED"
IO_ERROR = "IO_ERROR"

# Network
TIMED_OUT = "TIMED_OUT"
CONNECTION_REFUSED = "CONNECTION_REFUSED"
CONNECTION_FAILED = "CONNECTION_FAILED"
UNRESOLVED_HOST = "UNRESOLVED_HOST"

# Engine
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
