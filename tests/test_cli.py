from __future__ import annotations

import json
from pathlib import Path

import pytest

from claude_task import cli
from claude_task.config import get_settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LANG", "en_US.UTF-8")
    for name in ("CLAUDE_TASK_DIR", "CLAUDE_TASK_COMMAND", "CLAUDE_TASK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def write_fake_claude(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "fake-claude"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(0o755)
    return script


def use_command(project: Path, command: Path) -> None:
    config_file = project / ".claude-tasks" / "config.json"
    document = json.loads(config_file.read_text(encoding="utf-8"))
    document["claudeCommand"] = str(command)
    config_file.write_text(json.dumps(document), encoding="utf-8")


def test_init_and_status(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.run(["--dir", str(tmp_path), "init"]) == 0
    assert cli.run(["--dir", str(tmp_path), "status"]) == 0

    out = capsys.readouterr().out
    assert "✅ Task management initialized" in out
    assert "Current task: Initial Task" in out
    assert "Archived tasks: 0" in out
    assert "Last run: Never" in out


def test_new_reports_archive_and_options(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.run(["--dir", str(tmp_path), "init"])
    capsys.readouterr()

    code = cli.run(["--dir", str(tmp_path), "new", "Ship it", "-p", "high", "--tags", "ui, api"])

    out = capsys.readouterr().out
    assert code == 0
    assert "✅ New task created: Ship it" in out
    assert "📦 Previous task archived:" in out
    assert "Priority: HIGH" in out
    assert "Tags: ui, api" in out


def test_history_lists_newest_first(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.run(["--dir", str(tmp_path), "init"])
    cli.run(["--dir", str(tmp_path), "new", "First"])
    cli.run(["--dir", str(tmp_path), "new", "Second"])
    capsys.readouterr()

    cli.run(["--dir", str(tmp_path), "history", "-l", "1"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "📜 Task History:"
    assert len(lines) == 2
    assert lines[1].endswith(": First")


def test_unknown_command_exits_with_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.run(["--dir", str(tmp_path), "frobnicate"])

    assert excinfo.value.code == 1
    assert "Invalid command" in capsys.readouterr().err


def test_missing_task_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.run(["--dir", str(tmp_path), "progress"])

    assert code == 1
    assert "Task Manager Error:" in capsys.readouterr().err


def test_split_writes_subtasks(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    project.mkdir()
    cli.run(["--dir", str(project), "init"])
    use_command(project, write_fake_claude(tmp_path, 'cat >/dev/null\nprintf "1. Do X\\n2. Do Y\\n"'))
    capsys.readouterr()

    code = cli.run(["--dir", str(project), "split", "-c", "2"])

    out = capsys.readouterr().out
    assert code == 0
    assert "✅ Task split into 2 subtasks:" in out
    assert "  1. Do X" in out
    task = (project / "task.md").read_text(encoding="utf-8")
    assert "- [ ] Do X\n- [ ] Do Y\n" in task


def test_split_rate_limit_message(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    project.mkdir()
    cli.run(["--dir", str(project), "init"])
    use_command(project, write_fake_claude(tmp_path, "cat >/dev/null\necho 'Usage limit reached' >&2\nexit 1"))
    before = (project / "task.md").read_text(encoding="utf-8")

    code = cli.run(["--dir", str(project), "split"])

    assert code == 1
    assert "Wait for the limit to reset" in capsys.readouterr().err
    assert (project / "task.md").read_text(encoding="utf-8") == before


def test_split_rejects_non_positive_count(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.run(["--dir", str(tmp_path), "split", "-c", "0"])
    assert excinfo.value.code == 1


def test_run_failure_is_categorized(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    project.mkdir()
    cli.run(["--dir", str(project), "init"])
    use_command(project, write_fake_claude(tmp_path, "exit 3"))
    capsys.readouterr()

    code = cli.run(["--dir", str(project), "run"])

    assert code == 1
    assert "Claude Execution Error: Claude Code failed with exit code 3" in capsys.readouterr().err
    assert "❌ Failed" in (project / "task.md").read_text(encoding="utf-8")


def test_lang_switch(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.run(["--dir", str(tmp_path), "init"])
    capsys.readouterr()

    assert cli.run(["--dir", str(tmp_path), "lang", "fr"]) == 1
    assert cli.run(["--dir", str(tmp_path), "lang", "ja"]) == 0
    assert cli.run(["--dir", str(tmp_path), "lang"]) == 0

    out = capsys.readouterr().out
    assert "ja" in out.splitlines()[-1]


def test_claude_passthrough_records_entry(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.run(["--dir", str(tmp_path), "init"])
    capsys.readouterr()

    assert cli.run(["--dir", str(tmp_path), "claude", "fix", "the", "bug"]) == 0

    out = capsys.readouterr().out
    assert "=== TASK CONTEXT ===" in out
    assert "fix the bug" in out
    assert "## Execution Log - " in (tmp_path / "task.md").read_text(encoding="utf-8")


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main([])
    assert "usage: claude-task" in capsys.readouterr().out


def test_undecodable_files_are_reported_without_traceback(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.run(["--dir", str(tmp_path), "init"])
    cli.run(["--dir", str(tmp_path), "archive"])
    archived = next((tmp_path / "archive").iterdir())
    archived.write_bytes(b"# T\n\xff\xfe\n")
    (tmp_path / "task.md").write_bytes(b"# T\n\xff\xfe\n")
    capsys.readouterr()

    assert cli.run(["--dir", str(tmp_path), "history"]) == 1
    assert cli.run(["--dir", str(tmp_path), "status"]) == 1
    assert cli.run(["--dir", str(tmp_path), "progress"]) == 1

    err = capsys.readouterr().err.splitlines()
    assert len(err) == 3
    assert all(line.startswith("File System Error:") for line in err)


def test_invalid_log_level_exits_with_one(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("CLAUDE_TASK_LOG_LEVEL", "verbose")
    get_settings.cache_clear()

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status"])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("Configuration Error:")
    assert "CLAUDE_TASK_LOG_LEVEL" in err
