"""Project configuration model and store."""

from .models import DEFAULT_CLAUDE_COMMAND, TaskConfig
from .store import ConfigStore

__all__ = ["ConfigStore", "DEFAULT_CLAUDE_COMMAND", "TaskConfig"]
