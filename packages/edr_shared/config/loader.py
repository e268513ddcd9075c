"""Configuration loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ~/.config/edr-generator/edr.yaml (or an explicit ``--config`` path)
4) Model defaults

Environment variable format:
- Prefix: ``EDR_``
- Nested keys: ``__`` separator
- Example: ``EDR_ENGINE__CONNECT_TIMEOUT_SECONDS=2`` -> ``engine.connect_timeout_seconds = 2``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Mapping

from .models import DEFAULT_CONFIG_PATH, EdrSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> EdrSettings:
    """Resolve settings from CLI params, environment, YAML and defaults.

    ``None`` values inside ``cli_params`` mean "not given on the command line"
    and never override lower-precedence sources.
    """
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    settings_cls = _bind_config_path(resolved)
    return settings_cls(**_drop_unset(cli_params or {}))


def _bind_config_path(path: Path) -> type[EdrSettings]:
    """Return an ``EdrSettings`` subclass reading YAML from ``path``."""
    if path == EdrSettings._config_path:
        return EdrSettings

    class _PathBoundSettings(EdrSettings):
        _config_path: ClassVar[Path] = path

    return _PathBoundSettings


def _drop_unset(values: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively remove ``None`` leaves and any mapping left empty."""
    output: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            nested = _drop_unset(value)
            if nested:
                output[str(key)] = nested
            continue
        output[str(key)] = value
    return output
