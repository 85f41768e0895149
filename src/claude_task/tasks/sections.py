"""Level-2 section view over a task markdown file.

The document is kept as raw text chunks so that rendering an unmodified
parse reproduces the input byte for byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

HEADING_ALIASES: dict[str, tuple[str, ...]] = {
    "description": ("description", "説明"),
    "tasks": ("tasks", "タスク"),
    "notes": ("notes", "メモ"),
}

_SECTION_HEADING = re.compile(r"^##[ \t]+(.+?)[ \t]*$")
_FENCE = "```"


@dataclass(slots=True)
class Section:
    heading: str | None
    heading_line: str
    body: str

    def matches(self, key: str) -> bool:
        if self.heading is None:
            return False
        aliases = HEADING_ALIASES.get(key, (key,))
        return self.heading.casefold() in {alias.casefold() for alias in aliases}

    def render(self) -> str:
        return self.heading_line + self.body


class TaskSections:
    """Ordered sections of a task file: a preamble, then one per ``##`` heading."""

    def __init__(self, sections: list[Section]) -> None:
        self._sections = sections

    @classmethod
    def parse(cls, content: str) -> "TaskSections":
        sections = [Section(heading=None, heading_line="", body="")]
        in_fence = False
        for line in content.splitlines(keepends=True):
            if line.lstrip().startswith(_FENCE):
                in_fence = not in_fence
            match = None if in_fence else _SECTION_HEADING.match(line.rstrip("\r\n"))
            if match:
                sections.append(Section(heading=match.group(1), heading_line=line, body=""))
            else:
                sections[-1].body += line
        return cls(sections)

    @property
    def sections(self) -> list[Section]:
        return list(self._sections)

    def _index(self, key: str) -> int | None:
        for index, section in enumerate(self._sections):
            if section.matches(key):
                return index
        return None

    def find(self, key: str) -> Section | None:
        index = self._index(key)
        return None if index is None else self._sections[index]

    def body(self, key: str) -> str | None:
        section = self.find(key)
        return None if section is None else section.body.strip()

    def replace_body(self, key: str, text: str) -> bool:
        """Replace a section's body with ``text``; the old body is discarded."""

        index = self._index(key)
        if index is None:
            return False
        section = self._sections[index]
        if not section.heading_line.endswith("\n"):
            section.heading_line += "\n"
        section.body = self._block(text, trailing_gap=index < len(self._sections) - 1)
        return True

    def insert_before(self, key: str, heading: str, text: str) -> bool:
        index = self._index(key)
        if index is None:
            return False
        previous = self._sections[index - 1]
        if (previous.heading_line or previous.body) and not previous.render().endswith("\n"):
            previous.body += "\n"
        self._sections.insert(
            index,
            Section(heading=heading, heading_line=f"## {heading}\n", body=self._block(text, trailing_gap=True)),
        )
        return True

    def append(self, heading: str, text: str) -> None:
        tail = self._sections[-1]
        rendered = tail.render()
        if rendered:
            if not rendered.endswith("\n"):
                tail.body += "\n"
            tail.body += "\n"
        self._sections.append(
            Section(heading=heading, heading_line=f"## {heading}\n", body=self._block(text, trailing_gap=False))
        )

    @staticmethod
    def _block(text: str, *, trailing_gap: bool) -> str:
        block = text.rstrip("\n") + "\n"
        return block + "\n" if trailing_gap else block

    def render(self) -> str:
        return "".join(section.render() for section in self._sections)


__all__ = ["HEADING_ALIASES", "Section", "TaskSections"]
