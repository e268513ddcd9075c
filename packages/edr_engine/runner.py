"""Scenario setup: open input and output, build the context, run the engine."""

from __future__ import annotations

from pathlib import Path

from packages.edr_shared.config import EngineSettings
from packages.edr_shared.errors import exception_to_error
from packages.edr_shared.logging import get_logger, scenario_context

from .context import ExecutionContext
from .engine import RunSummary, ScenarioEngine
from .errors import SetupError
from .parser import iter_parsed_lines
from .sink import EventSink

_LOGGER = get_logger(__name__)


def run_scenario(
    input_path: str | Path,
    *,
    settings: EngineSettings | None = None,
    context: ExecutionContext | None = None,
) -> RunSummary:
    """Run one scenario file end to end.

    Raises ``SetupError`` before any command executes when the input cannot be
    read or the output cannot be created, and ``SinkError`` when the event log
    stops accepting rows partway through.
    """
    settings = settings or EngineSettings()
    resolved = Path(input_path)
    try:
        handle = resolved.open("r", encoding="utf-8", errors="replace", newline="")
    except OSError as exc:
        raise SetupError(
            exception_to_error(
                exc, context=f"cannot read input file {resolved}", target=str(resolved)
            )
        ) from exc

    with handle, scenario_context(input_file=resolved, output_file=settings.outfile):
        with EventSink.open(settings.outfile, fsync=settings.fsync_each_event) as sink:
            run_context = context or ExecutionContext.for_current_process(settings=settings)
            engine = ScenarioEngine(context=run_context, sink=sink)
            _LOGGER.info("scenario started")
            return engine.run(iter_parsed_lines(handle, delimiter=settings.delimiter))
