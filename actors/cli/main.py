"""EDR generator CLI actor implemented with Typer."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml

from packages.edr_engine import RunSummary, SetupError, SinkError, run_scenario
from packages.edr_shared.config import EdrSettings, load_settings
from packages.edr_shared.logging import configure_logging, get_logger

SUCCESS_EXIT_CODE = 0
SETUP_ERROR_EXIT_CODE = 1
EVENT_LOG_ERROR_EXIT_CODE = 1

_LOGGER = get_logger(__name__)


def _cli_params(
    *,
    delimiter: str | None,
    outfile: Path | None,
    timeout: float | None,
    log_level: str | None,
    json_logs: bool,
) -> dict[str, Any]:
    """Map CLI flags onto the nested settings shape; unset flags stay ``None``."""
    return {
        "engine": {
            "delimiter": delimiter,
            "outfile": outfile,
            "connect_timeout_seconds": timeout,
        },
        "logging": {
            "level": log_level.upper() if log_level is not None else None,
            "json_output": True if json_logs else None,
        },
    }


def _resolve_settings(config: Path | None, params: dict[str, Any]) -> EdrSettings:
    """Load settings, turning validation problems into CLI setup errors."""
    try:
        return load_settings(cli_params=params, config_path=config)
    except (ValueError, yaml.YAMLError) as exc:
        _emit_error(f"invalid configuration: {exc}")
        raise typer.Exit(code=SETUP_ERROR_EXIT_CODE) from exc


def _emit_error(message: str) -> None:
    """Render setup failures to stderr."""
    typer.echo(f"error: {message}", err=True)


def _emit_summary(summary: RunSummary) -> None:
    """Render the end-of-run summary."""
    if summary.commands_processed == 0:
        typer.echo(
            "Input file was empty or badly formatted. No commands processed.",
            err=True,
        )
        return
    typer.echo(
        f"Done. {summary.commands_processed} instruction(s) found. "
        f"Encountered {summary.errors_logged} error(s)."
    )
    if summary.termination.failures:
        pids = ", ".join(str(pid) for pid in summary.termination.failures)
        typer.echo(f"warning: child processes still running: {pids}", err=True)


def _single_character(value: str | None) -> str | None:
    """Validate the input delimiter flag."""
    if value is not None and len(value) != 1:
        raise typer.BadParameter("delimiter must be exactly one character")
    return value


app = typer.Typer(
    add_completion=False,
    help="Create EDR events from a scripted command file to exercise detection tooling.",
)


@app.command()
def main(
    input_file: Path = typer.Argument(
        ...,
        help="Command file to execute, one instruction per line",
    ),
    delimiter: str | None = typer.Option(
        None,
        "-d",
        "--delimiter",
        metavar="CHAR",
        callback=_single_character,
        help="Field delimiter of the input file [default: ,]",
    ),
    outfile: Path | None = typer.Option(
        None,
        "-o",
        "--outfile",
        metavar="FILE",
        help="Event log to write [default: log.csv]",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="YAML settings file",
    ),
    timeout: float | None = typer.Option(
        None,
        min=0.001,
        help="Network connect/send timeout in seconds",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Diagnostic log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit diagnostics as JSON lines",
    ),
) -> None:
    """Run every instruction in INPUT_FILE and log one event per action."""
    settings = _resolve_settings(
        config,
        _cli_params(
            delimiter=delimiter,
            outfile=outfile,
            timeout=timeout,
            log_level=log_level,
            json_logs=json_logs,
        ),
    )
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
    )

    try:
        summary = run_scenario(input_file, settings=settings.engine)
    except SetupError as exc:
        _LOGGER.error("scenario setup failed", extra=exc.detail.log_fields())
        _emit_error(exc.detail.message)
        raise typer.Exit(code=SETUP_ERROR_EXIT_CODE) from exc
    except SinkError as exc:
        _LOGGER.error("event log write failed", extra=exc.detail.log_fields())
        _emit_error(exc.detail.message)
        raise typer.Exit(code=EVENT_LOG_ERROR_EXIT_CODE) from exc

    _emit_summary(summary)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


if __name__ == "__main__":
    app()
