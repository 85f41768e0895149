"""Command line interface for the task manager."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError

from . import __version__
from .assistant import relative_task_path
from .config import get_settings
from .errors import (
    AssistantExecutionError,
    AssistantRateLimitedError,
    AssistantTimeoutError,
    FileSystemError,
    NoActiveTaskError,
    TaskManagerError,
)
from .locales import SUPPORTED_LANGUAGES
from .project import locate_project_root
from .storage import ExecutionLogEntry, TaskOptions
from .tasks import TaskManager

INVALID_COMMAND = "Invalid command. See --help for available commands."


def configure_logging(level: str) -> None:
    """Configure root logging for the CLI."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def format_bytes(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def load_manager(args: argparse.Namespace) -> TaskManager:
    settings = get_settings()
    explicit = getattr(args, "dir", None) or settings.project_dir
    root = locate_project_root(explicit)
    return TaskManager(root, settings=settings)


def cmd_init(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    report = manager.init()
    locale = manager.locale
    print(locale.translate("commands.init.success"))
    print(locale.translate("commands.init.created"))
    if report.custom_command:
        print(locale.translate("commands.init.custom_command"))
    if report.gitignore_updated:
        print(locale.translate("commands.init.gitignore_updated"))
    return 0


def cmd_new(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    tags = [tag.strip() for tag in args.tags.split(",") if tag.strip()] if args.tags else []
    result = manager.create_new_task(
        args.title,
        args.description,
        TaskOptions(priority=args.priority, tags=tags),
    )
    locale = manager.locale
    print(locale.translate("commands.new.success", title=result.title))
    if result.archived is not None:
        print(locale.translate("commands.new.archived", file=result.archived.file))
    if args.priority != "medium":
        print(locale.translate("commands.new.priority", priority=args.priority.upper()))
    if tags:
        print(locale.translate("commands.new.tags", tags=", ".join(tags)))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    locale = manager.locale
    print(locale.translate("commands.run.starting"))
    print(locale.translate("commands.run.task_file", path=relative_task_path(manager.store.path)))
    result = asyncio.run(
        manager.run_task(verbose=args.verbose, debug=args.debug, edit_permission=not args.no_edit)
    )
    print(locale.translate("commands.run.success"))
    if args.verbose and result.output:
        print(locale.translate("commands.run.output"))
        print(result.output)
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    locale = manager.locale
    history = manager.get_history(args.limit)
    if not history:
        print(locale.translate("commands.history.empty"))
        return 0
    print(locale.translate("commands.history.title"))
    for item in history:
        line = locale.translate("commands.history.item", date=item.date, title=item.title)
        if args.size:
            line += f" ({format_bytes(item.size)})"
        print(line)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    locale = manager.locale
    status = manager.get_status()
    print(locale.translate("commands.status.title"))
    if status.current_task is not None:
        print(locale.translate("commands.status.current_task", task=status.current_task))
    else:
        print(locale.translate("commands.status.no_current_task"))
    if status.current_task_size:
        print(locale.translate("commands.status.task_size", size=format_bytes(status.current_task_size)))
    print(locale.translate("commands.status.archived_count", count=status.archived_count))
    print(locale.translate("commands.status.total_executions", count=status.total_executions))
    if status.last_run:
        print(locale.translate("commands.status.last_run", time=status.last_run))
    else:
        print(locale.translate("commands.status.no_last_run"))
    return 0


def cmd_archive(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    archived = manager.archive_current_task()
    if archived is None:
        print(manager.locale.translate("commands.archive.none"))
    else:
        print(manager.locale.translate("commands.archive.success", file=archived.file))
    return 0


def cmd_claude(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    locale = manager.locale
    content = manager.get_task_content()
    prompt = " ".join(args.prompt).strip()
    print(locale.translate("commands.claude.context_start"))
    print(content)
    print(locale.translate("commands.claude.context_end"))
    if prompt:
        print(locale.translate("commands.claude.prompt", prompt=prompt))
    print(locale.translate("commands.claude.hint"))
    manager.record_execution(
        ExecutionLogEntry(
            timestamp=datetime.now(),
            duration_ms=0,
            success=True,
            output=locale.translate("commands.claude.recorded"),
        )
    )
    return 0


def cmd_lang(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    if not args.language:
        print(manager.locale.translate("commands.lang.current", lang=manager.get_language()))
        return 0
    if args.language not in SUPPORTED_LANGUAGES:
        print(manager.locale.translate("commands.lang.invalid"), file=sys.stderr)
        return 1
    locale = manager.set_language(args.language)
    print(locale.translate("commands.lang.changed", lang=locale.language))
    return 0


def cmd_progress(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    report = manager.get_progress()
    print(manager.progress.format_output(report, manager.locale))
    return 0


def cmd_split(args: argparse.Namespace) -> int:
    manager = load_manager(args)
    locale = manager.locale
    print(locale.translate("commands.split.starting"))
    result = asyncio.run(manager.split_task(args.count))
    if not result.success:
        error = result.error or "Unknown error"
        if isinstance(result.exception, AssistantRateLimitedError):
            error = locale.translate("errors.rate_limited")
        print(locale.translate("commands.split.failed", error=error), file=sys.stderr)
        return 1
    if not result.subtasks:
        print(locale.translate("commands.split.empty"), file=sys.stderr)
        return 1
    print(locale.translate("commands.split.success", count=len(result.subtasks)))
    for index, subtask in enumerate(result.subtasks, start=1):
        print(f"  {index}. {subtask}")
    return 0


def handle_error(error: TaskManagerError) -> int:
    """Print a one-line categorized message and return the exit code."""

    if isinstance(error, AssistantRateLimitedError):
        print(f"Rate Limit: {error}", file=sys.stderr)
    elif isinstance(error, AssistantExecutionError):
        print(f"Claude Execution Error: {error}", file=sys.stderr)
    elif isinstance(error, AssistantTimeoutError):
        print(f"Timeout: {error}", file=sys.stderr)
    elif isinstance(error, FileSystemError):
        print(f"File System Error: {error} [{error.operation} {error.path}]", file=sys.stderr)
    elif isinstance(error, NoActiveTaskError):
        print(f"Task Manager Error: {error}", file=sys.stderr)
    else:
        print(f"Task Manager Error: {error} ({error.code})", file=sys.stderr)
    return 1


def settings_error(error: ValidationError) -> int:
    """Report invalid environment settings on one line."""

    details = "; ".join(item["msg"] for item in error.errors())
    print(f"Configuration Error: {details}", file=sys.stderr)
    return 1


class CommandParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit code 1."""

    def error(self, message: str) -> NoReturn:
        if "invalid choice" in message and self._subparsers is not None:
            print(INVALID_COMMAND, file=sys.stderr)
        else:
            self.print_usage(sys.stderr)
            print(f"{self.prog}: error: {message}", file=sys.stderr)
        raise SystemExit(1)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = CommandParser(prog="claude-task", description="Claude Code Task Manager")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--dir", type=Path, default=None, help="Project directory (skips root discovery)")
    sub = parser.add_subparsers(dest="cmd")

    p_init = sub.add_parser("init", help="Initialize task management in the project")
    p_init.set_defaults(func=cmd_init)

    p_new = sub.add_parser("new", help="Archive the current task and create a new one")
    p_new.add_argument("title", nargs="?", default=None)
    p_new.add_argument("-d", "--description", default=None, help="Task description")
    p_new.add_argument(
        "-p",
        "--priority",
        choices=["low", "medium", "high"],
        default="medium",
        help="Task priority (default: medium)",
    )
    p_new.add_argument("--tags", default=None, help="Task tags (comma-separated)")
    p_new.set_defaults(func=cmd_new)

    p_run = sub.add_parser("run", help="Execute the current task with Claude Code")
    p_run.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    p_run.add_argument("-d", "--debug", action="store_true", help="Debug output")
    p_run.add_argument(
        "--no-edit",
        action="store_true",
        help="Do not grant Claude Code file editing permission",
    )
    p_run.set_defaults(func=cmd_run)

    p_history = sub.add_parser("history", help="List archived tasks, newest first")
    p_history.add_argument("-l", "--limit", type=int, default=10, help="Limit number of results")
    p_history.add_argument("--size", action="store_true", help="Show file sizes")
    p_history.set_defaults(func=cmd_history)

    p_status = sub.add_parser("status", help="Show the current task status")
    p_status.set_defaults(func=cmd_status)

    p_archive = sub.add_parser("archive", help="Archive the current task")
    p_archive.set_defaults(func=cmd_archive)

    p_claude = sub.add_parser("claude", help="Show the task context with an optional prompt")
    p_claude.add_argument("prompt", nargs="*")
    p_claude.set_defaults(func=cmd_claude)

    p_lang = sub.add_parser("lang", help="Show or change the language")
    p_lang.add_argument("language", nargs="?", default=None)
    p_lang.set_defaults(func=cmd_lang)

    p_progress = sub.add_parser("progress", help="Show checklist progress")
    p_progress.set_defaults(func=cmd_progress)

    p_split = sub.add_parser("split", help="Split the current task into subtasks with Claude")
    p_split.add_argument("-c", "--count", type=_positive_int, default=None, help="Exact number of subtasks")
    p_split.set_defaults(func=cmd_split)

    return parser


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except TaskManagerError as exc:
        logging.getLogger(__name__).debug("Command failed", exc_info=True)
        return handle_error(exc)
    except ValidationError as exc:
        return settings_error(exc)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``claude-task`` console script."""

    try:
        settings = get_settings()
    except ValidationError as exc:
        raise SystemExit(settings_error(exc)) from None
    configure_logging(settings.log_level)
    exit_code = run(argv)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
