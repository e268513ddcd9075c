"""Run-scoped registry of spawned child processes.

The registry exclusively owns every ``subprocess.Popen`` handle created by the
``process`` handler. Handles are appended in spawn order and addressed by
index. ``drain`` terminates and reaps each handle exactly once and reports what
happened to every PID.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field

from packages.edr_shared.logging import get_logger

from .records import ProcessIdentity

_LOGGER = get_logger(__name__)

_KILL_WAIT_SECONDS = 1.0


@dataclass(slots=True)
class ProcessHandle:
    """One owned child process."""

    index: int
    popen: subprocess.Popen
    identity: ProcessIdentity
    released: bool = False

    @property
    def pid(self) -> int:
        return self.identity.pid

    def is_running(self) -> bool:
        return self.popen.poll() is None


@dataclass(frozen=True, slots=True)
class TerminationReport:
    """PIDs grouped by how their process ended during draining.

    ``killed`` were stopped by the engine, ``premature`` had already exited on
    their own, ``failures`` could not be stopped.
    """

    killed: tuple[int, ...] = ()
    premature: tuple[int, ...] = ()
    failures: tuple[int, ...] = ()

    @property
    def all_stopped(self) -> bool:
        return len(self.failures) == 0

    @property
    def total(self) -> int:
        return len(self.killed) + len(self.premature) + len(self.failures)


@dataclass(slots=True)
class ProcessRegistry:
    """Arena of child process handles with an explicit release step."""

    grace_seconds: float = 1.0
    _handles: list[ProcessHandle] = field(default_factory=list)
    _drained: bool = False

    def register(self, popen: subprocess.Popen, identity: ProcessIdentity) -> ProcessHandle:
        """Take ownership of one freshly spawned child."""
        if self._drained:
            raise RuntimeError("process registry already drained")
        handle = ProcessHandle(index=len(self._handles), popen=popen, identity=identity)
        self._handles.append(handle)
        return handle

    def get(self, index: int) -> ProcessHandle:
        return self._handles[index]

    @property
    def handles(self) -> tuple[ProcessHandle, ...]:
        return tuple(self._handles)

    @property
    def drained(self) -> bool:
        return self._drained

    def __len__(self) -> int:
        return len(self._handles)

    def drain(self) -> TerminationReport:
        """Terminate and reap every registered child; callable once."""
        if self._drained:
            raise RuntimeError("process registry already drained")
        self._drained = True

        killed: list[int] = []
        premature: list[int] = []
        failures: list[int] = []
        for handle in self._handles:
            outcome = self._release(handle)
            if outcome == "killed":
                killed.append(handle.pid)
            elif outcome == "premature":
                premature.append(handle.pid)
            else:
                failures.append(handle.pid)

        report = TerminationReport(
            killed=tuple(killed),
            premature=tuple(premature),
            failures=tuple(failures),
        )
        if not report.all_stopped:
            _LOGGER.warning(
                "child processes failed to terminate",
                extra={"pids": list(report.failures)},
            )
        return report

    def _release(self, handle: ProcessHandle) -> str:
        """Stop one child and return ``killed``, ``premature`` or ``failed``."""
        popen = handle.popen
        try:
            if popen.poll() is not None:
                return "premature"
            popen.terminate()
            try:
                popen.wait(timeout=self.grace_seconds)
            except subprocess.TimeoutExpired:
                popen.kill()
                try:
                    popen.wait(timeout=max(self.grace_seconds, _KILL_WAIT_SECONDS))
                except subprocess.TimeoutExpired:
                    return "failed"
            return "killed"
        except OSError as exc:
            _LOGGER.warning(
                "unable to signal child process",
                extra={"pid": handle.pid, "error": str(exc)},
            )
            return "failed"
        finally:
            handle.released = True
