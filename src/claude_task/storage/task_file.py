"""Ownership of the single active task file and its archive."""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from ..errors import FileSystemError, NoActiveTaskError
from ..project import ProjectPaths
from .models import ArchivedTaskRef, ExecutionLogEntry, TaskOptions

ARCHIVE_SUFFIX = "_task.md"
LOG_HEADER_PATTERN = re.compile(r"^## Execution Log - (.+?) \(", re.MULTILINE)
TITLE_PATTERN = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_ARCHIVE_NAME = re.compile(
    r"^(\d{4}-\d{2}-\d{2})_(\d{2}-\d{2}-\d{2})(?:-(\d{3}))?" + re.escape(ARCHIVE_SUFFIX) + "$"
)
_LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

Renderer = Callable[[str, str, TaskOptions], str]

logger = logging.getLogger(__name__)


def archive_file_name(moment: datetime) -> str:
    """Build a sortable archive name such as ``2025-01-31_09-15-02-042_task.md``."""

    return f"{moment:%Y-%m-%d_%H-%M-%S}-{moment.microsecond // 1000:03d}{ARCHIVE_SUFFIX}"


def parse_archive_name(name: str) -> datetime | None:
    """Recover the archive timestamp from a file name, legacy form included."""

    match = _ARCHIVE_NAME.match(name)
    if match is None:
        return None
    day, clock, millis = match.groups()
    try:
        moment = datetime.strptime(f"{day}_{clock}", "%Y-%m-%d_%H-%M-%S")
    except ValueError:
        return None
    if millis:
        moment = moment.replace(microsecond=int(millis) * 1000)
    return moment


def extract_title(content: str, fallback: str) -> str:
    match = TITLE_PATTERN.search(content)
    return match.group(1).strip() if match else fallback


def format_log_entry(entry: ExecutionLogEntry) -> str:
    status = "✅ Success" if entry.success else "❌ Failed"
    body = entry.output if entry.success else (entry.error or "")
    return (
        f"\n\n## Execution Log - {entry.timestamp.strftime(_LOG_TIME_FORMAT)} ({entry.duration_ms}ms)\n\n"
        f"**Status:** {status}\n\n{body}\n\n---\n"
    )


class TaskFileStore:
    """Reads, writes, rotates and appends to the active task file.

    No locking is performed: a single invoker per project root is assumed.
    """

    def __init__(
        self,
        paths: ProjectPaths,
        *,
        renderer: Renderer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._paths = paths
        self._renderer = renderer
        self._clock = clock or datetime.now

    @property
    def path(self) -> Path:
        return self._paths.task_file

    @property
    def archive_dir(self) -> Path:
        return self._paths.archive_dir

    def exists(self) -> bool:
        return self._paths.task_file.is_file()

    def read(self) -> str:
        try:
            return self._paths.task_file.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NoActiveTaskError(self._paths.task_file) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(
                f"Failed to read task file: {exc}", self._paths.task_file, "read"
            ) from exc

    def write(self, title: str, description: str, options: TaskOptions | None = None) -> Path:
        """Render a fresh task and overwrite the active file.

        Callers archive the previous task with :meth:`rotate` first.
        """

        if self._renderer is None:
            raise RuntimeError("TaskFileStore.write requires a renderer")
        content = self._renderer(title, description, options or TaskOptions())
        self._write_text(content)
        return self._paths.task_file

    def replace_content(self, content: str) -> None:
        """Overwrite the body of an existing active file."""

        if not self.exists():
            raise NoActiveTaskError(self._paths.task_file)
        self._write_text(content)

    def _write_text(self, content: str) -> None:
        try:
            self._paths.task_file.parent.mkdir(parents=True, exist_ok=True)
            self._paths.task_file.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise FileSystemError(
                f"Failed to write task file: {exc}", self._paths.task_file, "write"
            ) from exc

    def rotate(self) -> ArchivedTaskRef | None:
        """Move the active task into the archive, or return ``None`` if there is none.

        The archive copy is fully written before the active file is
        removed. If the removal then fails the task exists in both places,
        which is logged and otherwise accepted.
        """

        task_file = self._paths.task_file
        try:
            content = task_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(
                f"Failed to archive current task: {exc}", task_file, "archive"
            ) from exc

        now = self._clock()
        try:
            self._paths.archive_dir.mkdir(parents=True, exist_ok=True)
            target, archived_at = self._free_archive_path(now)
        except OSError as exc:
            raise FileSystemError(
                f"Failed to archive current task: {exc}", self._paths.archive_dir, "archive"
            ) from exc

        marker = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        archived_content = f"<!-- Archived: {marker} -->\n\n{content}"
        staging = target.with_name(target.name + ".tmp")
        try:
            staging.write_text(archived_content, encoding="utf-8")
            os.replace(staging, target)
        except OSError as exc:
            if staging.exists():
                staging.unlink()
            raise FileSystemError(
                f"Failed to archive current task: {exc}", target, "archive"
            ) from exc

        try:
            task_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning(
                "Archived task but could not remove active file",
                extra={"path": str(task_file), "archive": str(target), "error": str(exc)},
            )

        logger.info("Archived task", extra={"archive": str(target)})
        return ArchivedTaskRef(
            file=target.name,
            path=target,
            title=extract_title(content, "Untitled"),
            date=archived_at.strftime(_LOG_TIME_FORMAT),
            archived_at=archived_at,
            size=len(archived_content.encode("utf-8")),
        )

    def _free_archive_path(self, moment: datetime) -> tuple[Path, datetime]:
        # Advance by one millisecond until the name is free so names stay unique and ordered.
        while True:
            candidate = self._paths.archive_dir / archive_file_name(moment)
            if not candidate.exists():
                return candidate, moment
            moment += timedelta(milliseconds=1)

    def append_log(self, entry: ExecutionLogEntry) -> None:
        """Append an execution record; the file must still exist."""

        task_file = self._paths.task_file
        try:
            with task_file.open("r+", encoding="utf-8") as handle:
                handle.seek(0, os.SEEK_END)
                handle.write(format_log_entry(entry))
        except FileNotFoundError as exc:
            raise NoActiveTaskError(task_file) from exc
        except OSError as exc:
            raise FileSystemError(
                f"Failed to append execution log: {exc}", task_file, "write"
            ) from exc


__all__ = [
    "ARCHIVE_SUFFIX",
    "LOG_HEADER_PATTERN",
    "TaskFileStore",
    "archive_file_name",
    "extract_title",
    "format_log_entry",
    "parse_archive_name",
]
