"""Checklist completion tracking."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..locales import Locale
from ..storage.task_file import extract_title

CHECKBOX_PATTERN = re.compile(r"^[ \t]*-[ \t]+\[([ xX])\][ \t]+(.+)$", re.MULTILINE)


@dataclass(slots=True)
class ProgressItem:
    text: str
    completed: bool


@dataclass(slots=True)
class ProgressReport:
    total: int
    completed: int
    percentage: int
    items: list[ProgressItem] = field(default_factory=list)
    title: str = "Untitled Task"


class ProgressTracker:
    """Computes completion from ``- [ ]`` / ``- [x]`` lines."""

    def compute(self, content: str) -> ProgressReport:
        items = [
            ProgressItem(text=match.group(2).strip(), completed=match.group(1).lower() == "x")
            for match in CHECKBOX_PATTERN.finditer(content)
        ]
        total = len(items)
        completed = sum(1 for item in items if item.completed)
        # Half-up rounding, so 12.5% shows as 13%.
        percentage = int(completed * 100 / total + 0.5) if total else 0
        return ProgressReport(
            total=total,
            completed=completed,
            percentage=percentage,
            items=items,
            title=extract_title(content, "Untitled Task"),
        )

    @staticmethod
    def format_progress_bar(percentage: int, width: int = 20) -> str:
        filled = int(percentage / 100 * width + 0.5)
        filled = max(0, min(width, filled))
        return "█" * filled + "░" * (width - filled)

    def format_output(self, report: ProgressReport, locale: Locale) -> str:
        lines = [locale.translate("commands.progress.title", title=report.title), ""]
        if report.total == 0:
            lines.append(locale.translate("commands.progress.empty"))
            lines.append(locale.translate("commands.progress.example_open"))
            lines.append(locale.translate("commands.progress.example_done"))
            return "\n".join(lines)

        lines.append(
            locale.translate(
                "commands.progress.summary",
                bar=self.format_progress_bar(report.percentage),
                percentage=report.percentage,
                completed=report.completed,
                total=report.total,
            )
        )
        lines.append("")
        for item in report.items:
            marker = "✅" if item.completed else "⬜"
            lines.append(f"  {marker} {item.text}")
        return "\n".join(lines)


__all__ = ["CHECKBOX_PATTERN", "ProgressItem", "ProgressReport", "ProgressTracker"]
