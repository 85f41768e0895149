"""Process-level settings for the task manager."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_dir: Path | None = Field(default=None, validation_alias="CLAUDE_TASK_DIR")
    log_level: str = Field(default="WARNING", validation_alias="CLAUDE_TASK_LOG_LEVEL")
    claude_command: str | None = Field(default=None, validation_alias="CLAUDE_TASK_COMMAND")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "CLAUDE_TASK_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("project_dir", mode="before")
    @classmethod
    def _parse_project_dir(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    @field_validator("claude_command")
    @classmethod
    def _strip_command(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


@lru_cache(maxsize=1)
def get_settings() -> TaskSettings:
    """Return cached settings instance."""

    settings = TaskSettings()
    if settings.project_dir is not None:
        settings.project_dir = settings.project_dir.expanduser()
    return settings


__all__ = ["TaskSettings", "get_settings"]
