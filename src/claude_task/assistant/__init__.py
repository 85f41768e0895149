"""External assistant orchestration."""

from .runner import (
    EXECUTION_SENTINEL,
    RATE_LIMIT_MARKER,
    SPLIT_TIMEOUT_SECONDS,
    AssistantRunner,
    CapturedResult,
    ExecutionResult,
    FakeAssistantRunner,
    child_environment,
    relative_task_path,
)

__all__ = [
    "AssistantRunner",
    "CapturedResult",
    "EXECUTION_SENTINEL",
    "ExecutionResult",
    "FakeAssistantRunner",
    "RATE_LIMIT_MARKER",
    "SPLIT_TIMEOUT_SECONDS",
    "child_environment",
    "relative_task_path",
]
