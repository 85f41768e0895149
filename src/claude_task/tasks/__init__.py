"""Task file operations: sections, subtasks, progress and the manager facade."""

from .manager import InitReport, NewTaskResult, TaskManager
from .progress import ProgressItem, ProgressReport, ProgressTracker
from .sections import TaskSections
from .subtasks import SplitResult, apply_subtasks, parse_subtasks
from .templates import TemplateRenderer

__all__ = [
    "InitReport",
    "NewTaskResult",
    "ProgressItem",
    "ProgressReport",
    "ProgressTracker",
    "SplitResult",
    "TaskManager",
    "TaskSections",
    "TemplateRenderer",
    "apply_subtasks",
    "parse_subtasks",
]
