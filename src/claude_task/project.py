"""Project root discovery and the fixed file layout beneath it."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

MARKER_DIR = ".claude-tasks"
TASK_FILE = "task.md"
ARCHIVE_DIR = "archive"
CONFIG_FILE = "config.json"

logger = logging.getLogger(__name__)


def _has_marker(directory: Path) -> bool:
    try:
        return (directory / MARKER_DIR).is_dir()
    except OSError as exc:
        logger.debug("Skipping unreadable directory", extra={"path": str(directory), "error": str(exc)})
        return False


def locate_project_root(explicit_dir: Path | str | None = None, *, cwd: Path | None = None) -> Path:
    """Return the project root for this invocation.

    An explicit directory wins without any checks. Otherwise the current
    directory and each of its ancestors, the filesystem root included, is
    probed for the marker directory, git-style. When none has it the
    current directory is returned so it can be initialized fresh.
    """

    if explicit_dir is not None:
        return Path(explicit_dir)

    start = Path(cwd) if cwd is not None else Path(os.getcwd())
    for candidate in (start, *start.parents):
        if _has_marker(candidate):
            return candidate
    return start


@dataclass(frozen=True, slots=True)
class ProjectPaths:
    """Fixed locations of the task files under a project root."""

    root: Path

    @property
    def task_file(self) -> Path:
        return self.root / TASK_FILE

    @property
    def archive_dir(self) -> Path:
        return self.root / ARCHIVE_DIR

    @property
    def config_dir(self) -> Path:
        return self.root / MARKER_DIR

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE


__all__ = ["ProjectPaths", "locate_project_root", "MARKER_DIR", "TASK_FILE", "ARCHIVE_DIR"]
