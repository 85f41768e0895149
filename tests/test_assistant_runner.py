from __future__ import annotations

import asyncio
import time
from pathlib import Path

import pytest

from claude_task.assistant import (
    EXECUTION_SENTINEL,
    AssistantRunner,
    CapturedResult,
    FakeAssistantRunner,
    child_environment,
)
from claude_task.assistant.prompts import build_split_prompt
from claude_task.errors import (
    AssistantExecutionError,
    AssistantRateLimitedError,
    AssistantTimeoutError,
)


def write_script(tmp_path: Path, body: str, name: str = "claude") -> Path:
    script = tmp_path / name
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(0o755)
    return script


def test_run_passes_edit_flags_and_relative_prompt(tmp_path: Path, monkeypatch) -> None:
    args_file = tmp_path / "args.txt"
    script = write_script(tmp_path, f'echo "$@" > "{args_file}"\n')
    task_file = tmp_path / "task.md"
    task_file.write_text("# Task\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    entries = []

    result = asyncio.run(AssistantRunner(str(script)).run(task_file, record=entries.append))

    assert result.success
    assert result.output == EXECUTION_SENTINEL
    assert args_file.read_text(encoding="utf-8").strip() == (
        "--dangerously-skip-permissions --print "
        "Please execute the tasks in @task.md and then exit. Do not enter interactive mode."
    )
    assert len(entries) == 1 and entries[0].success and entries[0].output == EXECUTION_SENTINEL


def test_run_without_edit_permission_only_prints(tmp_path: Path, monkeypatch) -> None:
    args_file = tmp_path / "args.txt"
    script = write_script(tmp_path, f'echo "$@" > "{args_file}"\n')
    project = tmp_path / "project"
    project.mkdir()
    task_file = project / "task.md"
    task_file.write_text("# Task\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    asyncio.run(AssistantRunner(str(script)).run(task_file, record=lambda entry: None, edit_permission=False))

    assert args_file.read_text(encoding="utf-8").startswith("--print Please execute the tasks in @project/task.md")


def test_run_failure_is_recorded_then_raised(tmp_path: Path) -> None:
    script = write_script(tmp_path, "exit 2\n")
    task_file = tmp_path / "task.md"
    task_file.write_text("# Task\n", encoding="utf-8")
    entries = []

    with pytest.raises(AssistantExecutionError) as excinfo:
        asyncio.run(AssistantRunner(str(script)).run(task_file, record=entries.append))

    assert excinfo.value.exit_code == 2
    assert len(entries) == 1
    assert not entries[0].success
    assert "exit code 2" in entries[0].error


def test_run_launch_failure_has_no_exit_code(tmp_path: Path) -> None:
    task_file = tmp_path / "task.md"
    task_file.write_text("# Task\n", encoding="utf-8")
    entries = []

    with pytest.raises(AssistantExecutionError) as excinfo:
        asyncio.run(AssistantRunner(str(tmp_path / "missing")).run(task_file, record=entries.append))

    assert excinfo.value.exit_code is None
    assert "Failed to start" in str(excinfo.value)
    assert entries and not entries[0].success


def test_split_sends_prompt_over_stdin(tmp_path: Path) -> None:
    args_file = tmp_path / "args.txt"
    prompt_file = tmp_path / "prompt.txt"
    script = write_script(
        tmp_path,
        f'echo "$@" > "{args_file}"\ncat > "{prompt_file}"\nprintf "Do X\\nDo Y\\n\\n"\n',
    )

    raw = asyncio.run(AssistantRunner(str(script)).split("Ship it", "Release the build", 2))

    assert raw == "Do X\nDo Y"
    assert args_file.read_text(encoding="utf-8").strip() == "--print"
    prompt = prompt_file.read_text(encoding="utf-8")
    assert prompt == build_split_prompt("Ship it", "Release the build", 2)
    assert "exactly 2" in prompt


def test_split_prompt_defaults_to_range() -> None:
    prompt = build_split_prompt("T", "D")
    assert "into 3-7 actionable subtasks" in prompt
    assert "no numbers or bullets" in prompt


def test_split_times_out_and_kills_process(tmp_path: Path) -> None:
    script = write_script(tmp_path, "echo partial\nexec sleep 30\n")
    runner = AssistantRunner(str(script), split_timeout=0.5)

    started = time.monotonic()
    with pytest.raises(AssistantTimeoutError) as excinfo:
        asyncio.run(runner.split("T", "D"))

    assert time.monotonic() - started < 10
    assert excinfo.value.timeout == 0.5


def test_split_timeout_kills_descendants(tmp_path: Path) -> None:
    script = write_script(tmp_path, "echo partial\nsleep 8\necho late\n")
    runner = AssistantRunner(str(script), split_timeout=0.5)

    started = time.monotonic()
    with pytest.raises(AssistantTimeoutError):
        asyncio.run(runner.split("T", "D"))

    assert time.monotonic() - started < 5


def test_split_detects_rate_limit_in_stdout(tmp_path: Path) -> None:
    script = write_script(tmp_path, 'echo "Claude AI usage limit reached|1760000000"\nexit 1\n')

    with pytest.raises(AssistantRateLimitedError) as excinfo:
        asyncio.run(AssistantRunner(str(script)).split("T", "D"))

    assert "reset" in str(excinfo.value)
    assert excinfo.value.exit_code == 1


def test_split_generic_failure_is_not_rate_limited(tmp_path: Path) -> None:
    script = write_script(tmp_path, "echo boom >&2\nexit 3\n")

    with pytest.raises(AssistantExecutionError) as excinfo:
        asyncio.run(AssistantRunner(str(script)).split("T", "D"))

    assert not isinstance(excinfo.value, AssistantRateLimitedError)
    assert excinfo.value.exit_code == 3
    assert "boom" in str(excinfo.value)


def test_fake_runner_records_invocations() -> None:
    fake = FakeAssistantRunner(
        [CapturedResult(args=("--print",), returncode=0, stdout="  One\nTwo  \n", stderr="")]
    )

    raw = asyncio.run(fake.split("Title", "Description"))

    assert raw == "One\nTwo"
    assert fake.invocations == [("--print",)]
    assert "Task Title: Title" in fake.inputs[0]


def test_child_environment_strips_virtualenv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIRTUAL_ENV", "/tmp/venv")
    monkeypatch.setenv("HOME", "/home/dev")

    env = child_environment(captured=True)

    assert "VIRTUAL_ENV" not in env
    assert env["HOME"] == "/home/dev"
    assert env["NO_COLOR"] == "1"
    monkeypatch.delenv("NO_COLOR", raising=False)
    assert "NO_COLOR" not in child_environment()
