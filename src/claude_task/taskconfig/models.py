"""Project configuration model persisted as ``.claude-tasks/config.json``."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..locales import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

DEFAULT_CLAUDE_COMMAND = "claude"


class TaskConfig(BaseModel):
    """Key-value record read before most task operations.

    Only ``claude_command`` and ``language`` drive behaviour; the
    remaining fields feed task file rendering. Keys are camelCase on disk
    and unknown keys survive a rewrite.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    created: str | None = Field(default=None, description="ISO timestamp of initialization.")
    task_template: str | None = Field(
        default=None,
        alias="taskTemplate",
        description="Markdown template with {{PLACEHOLDER}} variables.",
    )
    claude_command: str = Field(
        default=DEFAULT_CLAUDE_COMMAND,
        alias="claudeCommand",
        description="Executable used to invoke the assistant.",
    )
    default_task_title: str | None = Field(default=None, alias="defaultTaskTitle")
    archive_dir: str | None = Field(default=None, alias="archiveDir")
    language: str = Field(default=DEFAULT_LANGUAGE, description="Two-letter language code.")
    default_prerequisites: str | list[str] | None = Field(default=None, alias="defaultPrerequisites")
    default_rules: str | list[str] | None = Field(default=None, alias="defaultRules")
    default_tasks: str | list[str] | None = Field(default=None, alias="defaultTasks")

    @field_validator("claude_command", mode="before")
    @classmethod
    def _default_command(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_CLAUDE_COMMAND
        return str(value).strip()

    @field_validator("language", mode="before")
    @classmethod
    def _normalize_language(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_LANGUAGE
        normalized = str(value).strip().lower()
        if normalized not in SUPPORTED_LANGUAGES:
            return DEFAULT_LANGUAGE
        return normalized

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = ["DEFAULT_CLAUDE_COMMAND", "TaskConfig"]
