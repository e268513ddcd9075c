"""Public logging API for the EDR generator.

Wraps the standard ``logging`` module with stderr emission and scenario-scoped
structured context.
"""

from .config import configure_logging, get_logger
from .context import (
    bind_context,
    clear_context,
    command_context,
    get_context,
    log_context,
    scenario_context,
)

__all__ = [
    "bind_context",
    "clear_context",
    "command_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "log_context",
    "scenario_context",
]
