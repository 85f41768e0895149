"""Prompt text handed to the assistant."""

from __future__ import annotations

SKIP_PERMISSIONS_FLAG = "--dangerously-skip-permissions"
PRINT_FLAG = "--print"


def build_execution_prompt(relative_task_path: str) -> str:
    return (
        f"Please execute the tasks in @{relative_task_path} and then exit. "
        "Do not enter interactive mode."
    )


def execution_args(prompt: str, edit_permission: bool) -> list[str]:
    if edit_permission:
        return [SKIP_PERMISSIONS_FLAG, PRINT_FLAG, prompt]
    return [PRINT_FLAG, prompt]


def build_split_prompt(title: str, description: str, requested_count: int | None = None) -> str:
    count_instruction = f"exactly {requested_count}" if requested_count else "3-7"
    return f"""Analyze this task and break it down into {count_instruction} actionable subtasks.

Task Title: {title}
Description: {description}

Requirements:
1. Each subtask should be specific and actionable
2. Subtasks should be in logical order
3. Each subtask should be completable independently
4. Keep subtask descriptions concise (one line each)

Output format (ONLY output the subtasks, one per line, no numbers or bullets):
Subtask description 1
Subtask description 2
Subtask description 3
..."""


__all__ = [
    "PRINT_FLAG",
    "SKIP_PERMISSIONS_FLAG",
    "build_execution_prompt",
    "build_split_prompt",
    "execution_args",
]
