"""Read-only history and status views over the task files."""

from __future__ import annotations

from pathlib import Path

from ..errors import FileSystemError
from ..project import ProjectPaths
from .models import ArchivedTaskRef, StatusSnapshot
from .task_file import ARCHIVE_SUFFIX, LOG_HEADER_PATTERN, extract_title, parse_archive_name


class HistoryIndex:
    """Derives history and status by scanning files; never writes."""

    def __init__(self, paths: ProjectPaths) -> None:
        self._paths = paths

    def _archive_files(self) -> list[Path]:
        archive_dir = self._paths.archive_dir
        if not archive_dir.is_dir():
            return []
        return [
            path
            for path in archive_dir.iterdir()
            if path.name.endswith(ARCHIVE_SUFFIX) and path.is_file()
        ]

    def list(self, limit: int | None = 10) -> list[ArchivedTaskRef]:
        """Return archived tasks newest first, at most ``limit`` of them."""

        try:
            files = sorted(self._archive_files(), key=lambda path: path.name, reverse=True)
            if limit is not None:
                files = files[: max(limit, 0)]

            history: list[ArchivedTaskRef] = []
            for path in files:
                content = path.read_text(encoding="utf-8")
                archived_at = parse_archive_name(path.name)
                date = (
                    archived_at.strftime("%Y-%m-%d %H:%M:%S")
                    if archived_at is not None
                    else path.name.split("_")[0]
                )
                history.append(
                    ArchivedTaskRef(
                        file=path.name,
                        path=path,
                        title=extract_title(content, "Untitled"),
                        date=date,
                        archived_at=archived_at,
                        size=path.stat().st_size,
                    )
                )
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(
                f"Failed to read task history: {exc}", self._paths.archive_dir, "read"
            ) from exc
        return history

    def status(self) -> StatusSnapshot:
        task_file = self._paths.task_file
        current_task: str | None = None
        current_size: int | None = None
        total_executions = 0
        last_run: str | None = None

        try:
            if task_file.is_file():
                content = task_file.read_text(encoding="utf-8")
                current_task = extract_title(content, "Untitled Task")
                current_size = task_file.stat().st_size
                runs = LOG_HEADER_PATTERN.findall(content)
                total_executions = len(runs)
                last_run = runs[-1] if runs else None
            archived_count = len(self._archive_files())
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(
                f"Failed to get status: {exc}", self._paths.root, "read"
            ) from exc

        return StatusSnapshot(
            current_task=current_task,
            current_task_size=current_size,
            archived_count=archived_count,
            total_executions=total_executions,
            last_run=last_run,
        )


__all__ = ["HistoryIndex"]
