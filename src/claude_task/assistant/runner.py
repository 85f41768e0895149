"""Async runner for the external assistant CLI."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from ..errors import AssistantExecutionError, AssistantRateLimitedError, AssistantTimeoutError
from ..storage import ExecutionLogEntry
from ..taskconfig import DEFAULT_CLAUDE_COMMAND
from .prompts import PRINT_FLAG, build_execution_prompt, build_split_prompt, execution_args

SPLIT_TIMEOUT_SECONDS = 300.0
RATE_LIMIT_MARKER = "usage limit reached"
RATE_LIMIT_MESSAGE = (
    "Claude usage limit reached. Wait for the limit to reset before trying again."
)
EXECUTION_SENTINEL = "Claude Code execution completed"
# Upper bound on reaping a killed process group.
KILL_GRACE_SECONDS = 5.0

# Stripped from the assistant's environment.
_VIRTUALENV_VARS = ("PYTHONHOME", "PYTHONPATH", "VIRTUAL_ENV", "PIP_RESPECT_VIRTUALENV")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CapturedResult:
    """Holds the outcome of a buffered assistant invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(slots=True)
class ExecutionResult:
    success: bool
    output: str
    timestamp: datetime
    duration_ms: int
    error: str | None = None


def child_environment(*, captured: bool = False) -> dict[str, str]:
    """Environment for the assistant process.

    Captured runs also disable colour so replies parse as plain lines.
    """

    env = {key: value for key, value in os.environ.items() if key not in _VIRTUALENV_VARS}
    if captured:
        env.update(NO_COLOR="1", TERM="dumb")
    return env


def relative_task_path(task_file: Path, cwd: Path | None = None) -> str:
    """Path of the task file relative to the working directory, for prompts."""

    base = cwd or Path.cwd()
    return os.path.relpath(Path(task_file).resolve(), base.resolve())


class AssistantRunner:
    """Spawn the assistant CLI in one of two modes.

    ``run`` streams through the invoking terminal and has no timeout.
    ``split`` pipes a prompt through stdin, buffers the reply and gives up
    after ``split_timeout`` seconds.
    """

    def __init__(
        self,
        command: str = DEFAULT_CLAUDE_COMMAND,
        *,
        split_timeout: float = SPLIT_TIMEOUT_SECONDS,
    ) -> None:
        self._command = command
        self._split_timeout = split_timeout

    @property
    def command(self) -> str:
        return self._command

    @property
    def split_timeout(self) -> float:
        return self._split_timeout

    async def run(
        self,
        task_file: Path,
        *,
        record: Callable[[ExecutionLogEntry], None],
        edit_permission: bool = True,
        debug: bool = False,
    ) -> ExecutionResult:
        """Execute the task file and report the attempt through ``record``.

        ``record`` is called on success and on failure; failures are then
        re-raised as :class:`AssistantExecutionError`.
        """

        relative = relative_task_path(task_file)
        prompt = build_execution_prompt(relative)
        args = execution_args(prompt, edit_permission)
        if debug:
            logger.debug(
                "Executing assistant",
                extra={"command": self._command, "task_file": str(Path(task_file).resolve()), "prompt": prompt},
            )

        started = time.monotonic()
        try:
            returncode = await self._execute_inherited(*args)
            if returncode != 0:
                raise AssistantExecutionError(
                    f"Claude Code failed with exit code {returncode}", exit_code=returncode
                )
        except AssistantExecutionError as exc:
            record(
                ExecutionLogEntry(
                    timestamp=datetime.now(),
                    duration_ms=int((time.monotonic() - started) * 1000),
                    success=False,
                    error=str(exc),
                )
            )
            raise

        entry = ExecutionLogEntry(
            timestamp=datetime.now(),
            duration_ms=int((time.monotonic() - started) * 1000),
            success=True,
            output=EXECUTION_SENTINEL,
        )
        record(entry)
        return ExecutionResult(
            success=True,
            output=entry.output,
            timestamp=entry.timestamp,
            duration_ms=entry.duration_ms,
        )

    async def split(self, title: str, description: str, requested_count: int | None = None) -> str:
        """Ask for a subtask breakdown and return the trimmed raw reply."""

        prompt = build_split_prompt(title, description, requested_count)
        result = await self._invoke_captured(PRINT_FLAG, input_text=prompt)
        if not result.ok:
            captured = f"{result.stdout}\n{result.stderr}".lower()
            if RATE_LIMIT_MARKER in captured:
                raise AssistantRateLimitedError(
                    RATE_LIMIT_MESSAGE, exit_code=result.returncode, stderr=result.stderr
                )
            raise AssistantExecutionError(
                f"Claude failed with code {result.returncode}: {result.stderr.strip()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout.strip()

    async def _execute_inherited(self, *args: str) -> int:
        try:
            process = await asyncio.create_subprocess_exec(
                self._command,
                *args,
                env=child_environment(),
            )
        except OSError as exc:
            raise AssistantExecutionError(f"Failed to start Claude Code: {exc}") from exc
        return await process.wait()

    async def _invoke_captured(self, *args: str, input_text: str) -> CapturedResult:
        cmd = [self._command, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=child_environment(captured=True),
                start_new_session=True,
            )
        except OSError as exc:
            raise AssistantExecutionError(f"Failed to start Claude: {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(input_text.encode("utf-8")),
                timeout=self._split_timeout,
            )
        except asyncio.TimeoutError:
            # Kill the whole session: descendants may still hold the pipes.
            with contextlib.suppress(ProcessLookupError):
                os.killpg(process.pid, signal.SIGKILL)
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)
            logger.warning(
                "Assistant timed out", extra={"command": self._command, "timeout": self._split_timeout}
            )
            raise AssistantTimeoutError(self._split_timeout) from None

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return CapturedResult(args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr)


class FakeAssistantRunner(AssistantRunner):
    """Test double that simulates assistant responses."""

    def __init__(  # type: ignore[override]
        self,
        responses: Iterable[CapturedResult] | None = None,
        *,
        exit_codes: Iterable[int] | None = None,
    ) -> None:
        super().__init__("fake-claude")
        self._responses = list(responses or [])
        self._exit_codes = list(exit_codes or [])
        self._invocations: list[tuple[str, ...]] = []
        self._inputs: list[str] = []

    async def _execute_inherited(self, *args: str) -> int:  # type: ignore[override]
        self._invocations.append(tuple(args))
        if self._exit_codes:
            return self._exit_codes.pop(0)
        return 0

    async def _invoke_captured(self, *args: str, input_text: str) -> CapturedResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        self._inputs.append(input_text)
        if self._responses:
            return self._responses.pop(0)
        return CapturedResult(args=tuple(args), returncode=0, stdout="", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations

    @property
    def inputs(self) -> list[str]:
        return self._inputs


__all__ = [
    "AssistantRunner",
    "CapturedResult",
    "EXECUTION_SENTINEL",
    "ExecutionResult",
    "FakeAssistantRunner",
    "RATE_LIMIT_MARKER",
    "child_environment",
    "SPLIT_TIMEOUT_SECONDS",
    "relative_task_path",
]
