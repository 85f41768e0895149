"""Records exchanged by the task file store and history index."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

Priority = Literal["low", "medium", "high"]


@dataclass(slots=True)
class TaskOptions:
    priority: Priority = "medium"
    tags: list[str] = field(default_factory=list)
    prerequisites: str | None = None
    rules: str | None = None
    tasks: str | None = None


@dataclass(slots=True)
class ExecutionLogEntry:
    """One attempted run of the assistant, appended to the active task file."""

    timestamp: datetime
    duration_ms: int
    success: bool
    output: str = ""
    error: str | None = None


@dataclass(slots=True)
class ArchivedTaskRef:
    file: str
    path: Path
    title: str
    date: str
    archived_at: datetime | None
    size: int


@dataclass(slots=True)
class StatusSnapshot:
    current_task: str | None
    current_task_size: int | None
    archived_count: int
    total_executions: int
    last_run: str | None

    @property
    def has_active_task(self) -> bool:
        return self.current_task is not None


__all__ = [
    "ArchivedTaskRef",
    "ExecutionLogEntry",
    "Priority",
    "StatusSnapshot",
    "TaskOptions",
]
