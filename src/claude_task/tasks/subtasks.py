"""Turning the assistant's free-text breakdown into checklist items."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..errors import TaskManagerError
from .sections import TaskSections

# A run of enumeration characters ending in punctuation ("1.", "2)", "-", "**"),
# or bare digits followed by whitespace.
_ENUMERATION = re.compile(r"^(?:[\d.\-*()]*[.\-*)]|\d+(?=\s))\s*")
_CHECKBOX = re.compile(r"^\[[ xX]\]\s*")


@dataclass(slots=True)
class SplitResult:
    success: bool
    subtasks: list[str] = field(default_factory=list)
    error: str | None = None
    exception: TaskManagerError | None = None


def parse_subtasks(raw_response: str) -> list[str]:
    """Return one subtask per meaningful response line, in response order."""

    subtasks: list[str] = []
    for line in raw_response.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("```"):
            continue
        line = _ENUMERATION.sub("", line, count=1)
        line = _CHECKBOX.sub("", line, count=1).strip()
        if line:
            subtasks.append(line)
    return subtasks


def render_checklist(subtasks: list[str]) -> str:
    return "\n".join(f"- [ ] {task}" for task in subtasks)


def apply_subtasks(content: str, subtasks: list[str], *, heading: str = "Tasks") -> str:
    """Write ``subtasks`` as the Tasks section of ``content``.

    An existing Tasks section loses its whole body, including anything a
    user put there by hand. Without one, a new section goes before Notes,
    or at the end.
    """

    sections = TaskSections.parse(content)
    checklist = render_checklist(subtasks)
    if sections.replace_body("tasks", checklist):
        return sections.render()
    if not sections.insert_before("notes", heading, checklist):
        sections.append(heading, checklist)
    return sections.render()


__all__ = ["SplitResult", "apply_subtasks", "parse_subtasks", "render_checklist"]
