"""Per-invocation facade wiring the task components together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from ..assistant import AssistantRunner, ExecutionResult
from ..config import TaskSettings, get_settings
from ..errors import (
    AssistantExecutionError,
    AssistantTimeoutError,
    FileSystemError,
    TaskManagerError,
)
from ..locales import Locale, detect_language, load_locale
from ..project import ProjectPaths
from ..storage import (
    ArchivedTaskRef,
    ExecutionLogEntry,
    HistoryIndex,
    StatusSnapshot,
    TaskFileStore,
    TaskOptions,
)
from ..storage.task_file import extract_title
from ..taskconfig import ConfigStore, TaskConfig
from .bootstrap import attempt, update_gitignore, write_custom_command
from .progress import ProgressReport, ProgressTracker
from .sections import TaskSections
from .subtasks import SplitResult, apply_subtasks, parse_subtasks
from .templates import TemplateRenderer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InitReport:
    created_config: bool
    created_task: bool
    custom_command: bool
    gitignore_updated: bool


@dataclass(slots=True)
class NewTaskResult:
    path: Path
    title: str
    archived: ArchivedTaskRef | None


class TaskManager:
    """Entry point for every task command against one project root."""

    def __init__(
        self,
        root: Path,
        *,
        settings: TaskSettings | None = None,
        runner: AssistantRunner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.paths = ProjectPaths(Path(root))
        self._settings = settings or get_settings()
        self._runner = runner
        self._clock = clock or datetime.now
        self._locale: Locale | None = None
        self.config_store = ConfigStore(self.paths.config_file)
        self.store = TaskFileStore(self.paths, renderer=self._render, clock=self._clock)
        self.history = HistoryIndex(self.paths)
        self.progress = ProgressTracker()

    @property
    def root(self) -> Path:
        return self.paths.root

    @property
    def locale(self) -> Locale:
        if self._locale is None:
            self._locale = load_locale(self.config_store.load().language)
        return self._locale

    @property
    def runner(self) -> AssistantRunner:
        if self._runner is None:
            command = self._settings.claude_command or self.config_store.load().claude_command
            self._runner = AssistantRunner(command)
        return self._runner

    def config(self) -> TaskConfig:
        return self.config_store.load()

    def _render(self, title: str, description: str, options: TaskOptions) -> str:
        renderer = TemplateRenderer(self.config_store.load(), self.locale, clock=self._clock)
        return renderer(title, description, options)

    def init(self) -> InitReport:
        """Create the project layout, config and placeholder task.

        The custom command file and ``.gitignore`` patch are best effort and
        never fail initialization.
        """

        created_config = False
        created_task = False
        try:
            self.paths.archive_dir.mkdir(parents=True, exist_ok=True)
            self.paths.config_dir.mkdir(parents=True, exist_ok=True)
            if not self.config_store.exists():
                self._locale = load_locale(detect_language())
                self.config_store.create_initial(self._locale)
                created_config = True
            else:
                self._locale = load_locale(self.config_store.load().language)

            if not self.store.exists():
                self.store.write(
                    self.locale.translate("defaults.initial_title"),
                    self.locale.translate("defaults.initial_description"),
                )
                created_task = True
        except (OSError, TaskManagerError) as exc:
            raise FileSystemError(f"Failed to initialize: {exc}", self.root, "init") from exc

        custom_command = attempt("custom command", lambda: write_custom_command(self.root, self.locale))
        gitignore = attempt("gitignore update", lambda: update_gitignore(self.root))
        logger.info(
            "Initialized project",
            extra={"root": str(self.root), "created_config": created_config, "created_task": created_task},
        )
        return InitReport(
            created_config=created_config,
            created_task=created_task,
            custom_command=bool(custom_command),
            gitignore_updated=bool(gitignore),
        )

    def create_new_task(
        self,
        title: str | None = None,
        description: str | None = None,
        options: TaskOptions | None = None,
    ) -> NewTaskResult:
        """Archive the current task, if any, then write a fresh one."""

        archived = self.store.rotate()
        resolved_title = title or f"Task {self._clock():%Y-%m-%d %H:%M}"
        resolved_description = description or self.locale.translate("defaults.description")
        path = self.store.write(resolved_title, resolved_description, options or TaskOptions())
        logger.info("Created task", extra={"title": resolved_title, "archived": archived.file if archived else None})
        return NewTaskResult(path=path, title=resolved_title, archived=archived)

    def archive_current_task(self) -> ArchivedTaskRef | None:
        return self.store.rotate()

    def get_task_content(self) -> str:
        return self.store.read()

    async def run_task(
        self,
        verbose: bool = False,
        debug: bool = False,
        edit_permission: bool = True,
    ) -> ExecutionResult:
        """Hand the active task to the assistant; every attempt is logged into the file."""

        self.store.read()
        logger.debug("Running task", extra={"verbose": verbose, "edit_permission": edit_permission})
        return await self.runner.run(
            self.store.path,
            record=self.store.append_log,
            edit_permission=edit_permission,
            debug=debug,
        )

    def record_execution(self, entry: ExecutionLogEntry) -> None:
        self.store.append_log(entry)

    def get_history(self, limit: int | None = 10) -> list[ArchivedTaskRef]:
        return self.history.list(limit)

    def get_status(self) -> StatusSnapshot:
        return self.history.status()

    def get_progress(self) -> ProgressReport:
        return self.progress.compute(self.store.read())

    async def split_task(self, count: int | None = None) -> SplitResult:
        """Ask the assistant for subtasks and write them into the Tasks section.

        The file is only rewritten when at least one subtask was parsed.
        """

        if count is not None and count < 1:
            raise TaskManagerError("Subtask count must be a positive integer", code="INVALID_COUNT")

        content = self.store.read()
        title = extract_title(content, "Untitled Task")
        description = TaskSections.parse(content).body("description") or ""

        try:
            raw = await self.runner.split(title, description, count)
        except (AssistantExecutionError, AssistantTimeoutError) as exc:
            logger.warning("Task split failed", extra={"error": str(exc), "code": exc.code})
            return SplitResult(success=False, error=str(exc), exception=exc)

        subtasks = parse_subtasks(raw)
        if subtasks:
            # Re-read: the task may have been edited while the assistant was thinking.
            current = self.store.read()
            self.store.replace_content(
                apply_subtasks(current, subtasks, heading=self.locale.heading("tasks"))
            )
        return SplitResult(success=True, subtasks=subtasks)

    def get_language(self) -> str:
        return self.config_store.load().language

    def set_language(self, language: str) -> Locale:
        _, locale = self.config_store.set_language(language)
        self._locale = locale
        return locale


__all__ = ["InitReport", "NewTaskResult", "TaskManager"]
