"""Application settings loaded from YAML with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
import shlex
from typing import Annotated, Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
import yaml

ENV_PREFIX = "SITESMITH_"
DEFAULT_SETTINGS_PATH = "config/sitesmith.yaml"

Command = Annotated[tuple[str, ...], NoDecode]


def load_yaml(path: str | Path) -> dict[str, Any]:
    target = Path(path)
    if not target.exists():
        return {}
    with target.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {target}")
    return data


class Settings(BaseSettings):
    """Application settings.

    Keyword values (the YAML file, via :func:`load_settings`) are the base
    layer; ``SITESMITH_*`` environment variables override them.
    """

    # Models
    models_config: str = Field(default="config/models.yaml", description="LiteLLM profiles file")
    classifier_profile: str = Field(default="classifier", description="Profile that picks the framework")
    generator_profile: str = Field(default="generator", description="Profile that writes the project")

    # Sandbox
    install_command: Command = Field(default=("npm", "install"))
    run_command: Command = Field(default=("npm", "run", "dev"))
    boot_attempts: int = Field(default=3, ge=1, description="Sandbox boot attempts")
    boot_delay_s: float = Field(default=1.0, ge=0, description="Delay between boot attempts")
    sandbox_dir: Optional[str] = Field(None, description="Base directory for local sandboxes")

    # Server
    log_level: str = Field(default="INFO", description="Log level")
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="forbid",
        frozen=True,
    )

    @field_validator("install_command", "run_command", mode="before")
    @classmethod
    def _split_command(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(shlex.split(value))
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (env_settings, init_settings)


def load_settings(path: str | Path | None = None) -> Settings:
    """Read settings from YAML, then let ``SITESMITH_*`` variables win."""
    config_path = path or os.getenv(f"{ENV_PREFIX}CONFIG", DEFAULT_SETTINGS_PATH)
    return Settings(**load_yaml(config_path))
