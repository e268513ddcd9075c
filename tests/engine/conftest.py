"""Shared fixtures for engine tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from packages.edr_engine import ExecutionContext, ProcessIdentity, ProcessRegistry


class RecordingSleeper:
    """Sleeper stub that records requested durations instead of blocking."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def context(sleeper: RecordingSleeper) -> Iterator[ExecutionContext]:
    """Execution context with a fixed host identity and a fresh registry."""
    registry = ProcessRegistry(grace_seconds=2.0)
    yield ExecutionContext(
        username="tester",
        host=ProcessIdentity(name="edr-host", cmdline="edr-host scenario.csv", pid=4242),
        registry=registry,
        connect_timeout_seconds=5.0,
        sleeper=sleeper,
    )
    if not registry.drained:
        registry.drain()
