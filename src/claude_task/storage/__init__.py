"""Task file storage and history views."""

from .history import HistoryIndex
from .models import ArchivedTaskRef, ExecutionLogEntry, Priority, StatusSnapshot, TaskOptions
from .task_file import (
    ARCHIVE_SUFFIX,
    TaskFileStore,
    archive_file_name,
    format_log_entry,
    parse_archive_name,
)

__all__ = [
    "ARCHIVE_SUFFIX",
    "ArchivedTaskRef",
    "ExecutionLogEntry",
    "HistoryIndex",
    "Priority",
    "StatusSnapshot",
    "TaskFileStore",
    "TaskOptions",
    "archive_file_name",
    "format_log_entry",
    "parse_archive_name",
]
