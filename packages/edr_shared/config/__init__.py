"""Public API for shared EDR generator configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    EdrSettings,
    EngineSettings,
    LoggingSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EdrSettings",
    "EngineSettings",
    "LoggingSettings",
    "load_settings",
]
