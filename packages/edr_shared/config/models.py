"""Typed configuration models for EDR generator runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "edr-generator" / "edr.yaml"


class LoggingSettings(BaseModel):
    """Diagnostic logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_output: bool = False
    service: str = "edr-generator"


class EngineSettings(BaseModel):
    """Scenario engine settings for input parsing, handlers and the event log."""

    delimiter: str = ","
    outfile: Path = Path("log.csv")
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    loopback_host: str = "127.0.0.1"
    protocol: str = "TCP"
    terminate_grace_seconds: float = Field(default=1.0, ge=0)
    fsync_each_event: bool = True

    @field_validator("delimiter")
    @classmethod
    def _single_character_delimiter(cls, value: str) -> str:
        """Require exactly one usable delimiter character."""
        if len(value) != 1:
            raise ValueError("delimiter must be exactly one character")
        if value in {'"', "\r", "\n"}:
            raise ValueError(f"delimiter {value!r} is not allowed")
        return value


class EdrSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="EDR_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        ]
        return tuple(sources)
