"""Side files written by ``init`` on a best-effort basis."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, TypeVar

from ..locales import Locale

GITIGNORE_ENTRIES = [
    "# Claude Task Manager",
    "task.md",
    "archive/",
    ".claude-tasks/",
    "",
    "# Temporary task files",
    "*.tmp.md",
    "task.*.md",
]

T = TypeVar("T")

logger = logging.getLogger(__name__)


def attempt(label: str, action: Callable[[], T]) -> T | None:
    """Run ``action``; an I/O failure is logged as a warning and yields ``None``."""

    try:
        return action()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipped %s", label, extra={"step": label, "error": str(exc)})
        return None


def write_custom_command(root: Path, locale: Locale) -> bool:
    """Write ``.claude/commands/task.md`` when the project already has ``.claude/``."""

    claude_dir = root / ".claude"
    if not claude_dir.is_dir():
        return False
    commands_dir = claude_dir / "commands"
    commands_dir.mkdir(parents=True, exist_ok=True)
    (commands_dir / "task.md").write_text(locale.translate("custom_command"), encoding="utf-8")
    return True


def update_gitignore(root: Path) -> bool:
    """Add the tool's ignore entries that are not present yet."""

    path = root / ".gitignore"
    content = path.read_text(encoding="utf-8") if path.exists() else ""
    existing = {
        line.strip() for line in content.splitlines() if line.strip() and not line.strip().startswith("#")
    }

    missing = [entry for entry in GITIGNORE_ENTRIES if entry and not entry.startswith("#") and entry not in existing]
    if not missing:
        return False

    block = [entry for entry in GITIGNORE_ENTRIES if not entry or entry.startswith("#") or entry in missing]
    if content and not content.endswith("\n"):
        content += "\n"
    if content:
        content += "\n"
    content += "\n".join(block) + "\n"
    path.write_text(content, encoding="utf-8")
    return True


__all__ = ["GITIGNORE_ENTRIES", "attempt", "update_gitignore", "write_custom_command"]
