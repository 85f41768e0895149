from __future__ import annotations

import textwrap

from claude_task.tasks import TaskSections, apply_subtasks, parse_subtasks

TASK = textwrap.dedent(
    """\
    # Release

    ## Description
    Cut the release branch.

    ## Tasks
    - [x] Old item
    - [ ] Another old item

    ## Context
    Some context.

    ## Notes
    Keep me.
    """
)


def test_parse_strips_markers_and_commentary() -> None:
    raw = "\n".join(
        [
            "# Subtasks",
            "```",
            "1. Write tests",
            "2) Implement parser",
            "- Update docs",
            "* Review",
            "(5) Release",
            "- [ ] Announce",
            "",
            "   ",
            "3D render check",
            "```",
            "-",
        ]
    )

    assert parse_subtasks(raw) == [
        "Write tests",
        "Implement parser",
        "Update docs",
        "Review",
        "Release",
        "Announce",
        "3D render check",
    ]


def test_parse_empty_response_is_empty_list() -> None:
    assert parse_subtasks("") == []
    assert parse_subtasks("## Heading only\n\n") == []


def test_apply_replaces_existing_tasks_section() -> None:
    updated = apply_subtasks(TASK, parse_subtasks("Do X\nDo Y\nDo Z"))

    assert "Old item" not in updated
    assert "## Tasks\n- [ ] Do X\n- [ ] Do Y\n- [ ] Do Z\n\n## Context\n" in updated
    assert updated.endswith("## Notes\nKeep me.\n")


def test_apply_matches_japanese_heading() -> None:
    content = "# 作業\n\n## タスク\n- [ ] 古い\n\n## メモ\nメモです\n"

    updated = apply_subtasks(content, ["新しい"], heading="タスク")

    assert updated == "# 作業\n\n## タスク\n- [ ] 新しい\n\n## メモ\nメモです\n"


def test_apply_inserts_before_notes_when_missing() -> None:
    content = "# T\n\n## Description\nd\n\n## Notes\nn\n"

    updated = apply_subtasks(content, ["A", "B"])

    assert updated == "# T\n\n## Description\nd\n\n## Tasks\n- [ ] A\n- [ ] B\n\n## Notes\nn\n"


def test_apply_appends_when_no_tasks_or_notes() -> None:
    updated = apply_subtasks("# T\n\nbody", ["A"])

    assert updated == "# T\n\nbody\n\n## Tasks\n- [ ] A\n"


def test_tasks_as_last_section_is_replaced() -> None:
    updated = apply_subtasks("# T\n\n## Tasks\n- [ ] old\n", ["new"])

    assert updated == "# T\n\n## Tasks\n- [ ] new\n"


def test_sections_round_trip_and_lookup() -> None:
    sections = TaskSections.parse(TASK)

    assert sections.render() == TASK
    assert sections.body("description") == "Cut the release branch."
    assert sections.find("notes") is not None
    assert sections.body("missing") is None


def test_headings_inside_code_fences_are_ignored() -> None:
    content = "# T\n\n## Description\n```\n## Tasks\n```\n"

    sections = TaskSections.parse(content)

    assert sections.find("tasks") is None
    assert "## Tasks" in sections.body("description")
