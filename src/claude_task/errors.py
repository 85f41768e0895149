"""Error taxonomy shared by the task components."""

from __future__ import annotations

from pathlib import Path


class TaskManagerError(RuntimeError):
    """Base class for handled task manager failures."""

    code = "TASK_MANAGER_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NoActiveTaskError(TaskManagerError):
    """Raised when an operation needs the active task file and it is absent."""

    code = "NO_TASK_FILE"

    def __init__(self, path: Path | str, message: str | None = None) -> None:
        self.path = Path(path)
        super().__init__(message or f'No task file found at {self.path}. Run "claude-task new" first.')


class FileSystemError(TaskManagerError):
    """Wraps an I/O failure with the path and the attempted operation."""

    code = "FILESYSTEM_ERROR"

    def __init__(self, message: str, path: Path | str, operation: str) -> None:
        super().__init__(message)
        self.path = Path(path)
        self.operation = operation


class AssistantExecutionError(TaskManagerError):
    """Raised when the assistant process fails to launch or exits nonzero."""

    code = "CLAUDE_EXECUTION_ERROR"

    def __init__(self, message: str, *, exit_code: int | None = None, stderr: str | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class AssistantRateLimitedError(AssistantExecutionError):
    """The assistant reported that its own usage limit was hit."""

    code = "RATE_LIMITED"


class AssistantTimeoutError(TaskManagerError):
    """The assistant did not finish within the allowed time."""

    code = "TIMEOUT"

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Claude did not respond within {timeout:g} seconds")
        self.timeout = timeout


__all__ = [
    "AssistantExecutionError",
    "AssistantRateLimitedError",
    "AssistantTimeoutError",
    "FileSystemError",
    "NoActiveTaskError",
    "TaskManagerError",
]
