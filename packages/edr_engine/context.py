"""Explicit execution context handed to every operation handler."""

from __future__ import annotations

import getpass
import os
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import psutil

from packages.edr_shared.config import EngineSettings
from packages.edr_shared.logging import get_logger

from .records import ProcessIdentity
from .registry import ProcessRegistry

_LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Identity of the running engine plus shared run-scoped collaborators."""

    username: str
    host: ProcessIdentity
    registry: ProcessRegistry = field(default_factory=ProcessRegistry)
    connect_timeout_seconds: float = 10.0
    loopback_host: str = "127.0.0.1"
    protocol: str = "TCP"
    sleeper: Callable[[float], None] = time.sleep

    @classmethod
    def for_current_process(
        cls,
        *,
        settings: EngineSettings,
        registry: ProcessRegistry | None = None,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> ExecutionContext:
        """Build a context describing this interpreter process."""
        return cls(
            username=current_username(),
            host=current_process_identity(),
            registry=registry
            if registry is not None
            else ProcessRegistry(grace_seconds=settings.terminate_grace_seconds),
            connect_timeout_seconds=settings.connect_timeout_seconds,
            loopback_host=settings.loopback_host,
            protocol=settings.protocol,
            sleeper=sleeper,
        )


def current_username() -> str:
    """Return the login name of the user running the engine."""
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return psutil.Process(os.getpid()).username()


def current_process_identity() -> ProcessIdentity:
    """Return name, joined command line and PID of this process."""
    pid = os.getpid()
    try:
        process = psutil.Process(pid)
        return ProcessIdentity(
            name=process.name(),
            cmdline=" ".join(process.cmdline()),
            pid=pid,
        )
    except psutil.Error as exc:
        _LOGGER.debug("psutil could not describe current process: %s", exc)
        return ProcessIdentity(
            name=Path(sys.executable).name,
            cmdline=" ".join([sys.executable, *sys.argv]),
            pid=pid,
        )


def describe_child(pid: int, path: str) -> str:
    """Return a spawned child's process name, or the executable basename."""
    try:
        return psutil.Process(pid).name()
    except psutil.Error:
        return Path(path).name
