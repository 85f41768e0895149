"""Rendering of new task files from the configured template."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable

from ..locales import Locale
from ..storage import TaskOptions
from ..taskconfig import TaskConfig

_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")


def format_items(items: str | list[str] | None, fallback: list[str], *, checkbox: bool = False) -> str:
    """Render list-valued defaults as markdown bullets.

    A leading HTML comment is emitted bare so placeholder hints do not turn
    into list items.
    """

    if isinstance(items, str):
        return items
    values = items if items else fallback
    bullet = "- [ ] " if checkbox else "- "
    lines: list[str] = []
    for index, item in enumerate(values):
        if index == 0 and item.startswith("<!--") and item.endswith("-->"):
            lines.append(item)
        else:
            lines.append(f"{bullet}{item}")
    return "\n".join(lines)


def fill_placeholders(template: str, variables: dict[str, str]) -> str:
    return _PLACEHOLDER.sub(lambda match: variables.get(match.group(1), match.group(0)), template)


class TemplateRenderer:
    """Callable used by the task file store to build fresh task content."""

    def __init__(
        self,
        config: TaskConfig,
        locale: Locale,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._locale = locale
        self._clock = clock or datetime.now

    def template(self) -> str:
        return self._config.task_template or self._locale.translate("task_template")

    def __call__(self, title: str, description: str, options: TaskOptions) -> str:
        now = self._clock()
        variables = {
            "TITLE": title,
            "DESCRIPTION": description,
            "DATE": now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "TIMESTAMP": now.strftime("%Y-%m-%d %H:%M:%S"),
            "PRIORITY": options.priority,
            "TAGS": ", ".join(options.tags),
            "PREREQUISITES": options.prerequisites
            or format_items(self._config.default_prerequisites, self._locale.default_list("prerequisites")),
            "RULES": options.rules
            or format_items(self._config.default_rules, self._locale.default_list("rules")),
            "TASKS": options.tasks
            or format_items(self._config.default_tasks, self._locale.default_list("tasks"), checkbox=True),
        }
        return fill_placeholders(self.template(), variables)


__all__ = ["TemplateRenderer", "fill_placeholders", "format_items"]
