"""Subprocess runner that enforces a hard wall-clock timeout."""

from __future__ import annotations

import logging
import math
import shlex
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from prompt_workflow.orchestrator.backend.base import RunRequest, RunResult
from prompt_workflow.orchestrator.errors import ProcessTimeout, SpawnFailure

logger = logging.getLogger(__name__)

PROMPT_FILE_PLACEHOLDER = "{prompt_file}"
DEFAULT_COMMAND_TEMPLATE = "prompt-run --in {prompt_file}"


class TimedProcessRunner:
    """Spawn the configured executable once per artifact and supervise it."""

    def __init__(
        self,
        *,
        command_template: str = DEFAULT_COMMAND_TEMPLATE,
        log_dir: Path | None = None,
        terminate_grace_seconds: float = 2.0,
    ) -> None:
        # Render once against a dummy path so template errors surface at startup.
        build_run_args(command_template, prompt_file=Path("artifact.md"))
        self.command_template = command_template
        self.log_dir = log_dir
        self.terminate_grace_seconds = terminate_grace_seconds

    def run(self, request: RunRequest) -> RunResult:
        if not math.isfinite(request.timeout_seconds) or request.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {request.timeout_seconds!r}")

        run_args = build_run_args(self.command_template, prompt_file=request.artifact_path)
        with self._output_handles(request.artifact_path) as (stdout_handle, stderr_handle):
            process = _spawn(run_args, stdout_handle=stdout_handle, stderr_handle=stderr_handle)
            try:
                returncode = process.wait(timeout=request.timeout_seconds)
            except subprocess.TimeoutExpired:
                _terminate_process(process, grace_seconds=self.terminate_grace_seconds)
                raise ProcessTimeout(
                    f"{run_args[0]} exceeded {request.timeout_seconds:g}s "
                    f"on {request.artifact_path.name}",
                    timeout_seconds=request.timeout_seconds,
                ) from None
            except BaseException:
                _terminate_process(process, grace_seconds=self.terminate_grace_seconds)
                raise

        logger.debug("%s exited with %d", request.artifact_path.name, returncode)
        return RunResult(exit_code=returncode)

    @contextmanager
    def _output_handles(self, artifact_path: Path) -> Iterator[tuple[IO[str] | int, IO[str] | int]]:
        if self.log_dir is None:
            yield subprocess.DEVNULL, subprocess.DEVNULL
            return

        stdout_path = self.log_dir / f"{artifact_path.stem}.stdout.log"
        stderr_path = self.log_dir / f"{artifact_path.stem}.stderr.log"
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stdout_handle = stdout_path.open("w", encoding="utf-8")
        except OSError as error:
            raise SpawnFailure(
                f"Cannot open process log {stdout_path}: {error}",
                transient=True,
            ) from error
        try:
            stderr_handle = stderr_path.open("w", encoding="utf-8")
        except OSError as error:
            stdout_handle.close()
            raise SpawnFailure(
                f"Cannot open process log {stderr_path}: {error}",
                transient=True,
            ) from error
        with stdout_handle, stderr_handle:
            yield stdout_handle, stderr_handle


def build_run_args(command_template: str, *, prompt_file: Path) -> list[str]:
    """Split the command template into argv and substitute ``{prompt_file}``.

    Splitting happens before substitution, so artifact paths with spaces stay a
    single argument and no shell is involved.
    """

    stripped = command_template.strip()
    if not stripped:
        raise ValueError("Command template is empty.")
    if PROMPT_FILE_PLACEHOLDER not in stripped:
        raise ValueError(f"Command template must include {PROMPT_FILE_PLACEHOLDER}.")

    try:
        tokens = shlex.split(stripped)
    except ValueError as error:
        raise ValueError(f"Cannot parse command template: {error}") from error
    try:
        return [token.format(prompt_file=str(prompt_file)) for token in tokens]
    except (KeyError, IndexError) as error:
        raise ValueError(f"Unsupported command template placeholder: {error}") from error


def _spawn(
    run_args: list[str],
    *,
    stdout_handle: IO[str] | int,
    stderr_handle: IO[str] | int,
) -> subprocess.Popen[bytes]:
    try:
        return subprocess.Popen(  # noqa: S603
            run_args,
            stdin=subprocess.DEVNULL,
            stdout=stdout_handle,
            stderr=stderr_handle,
        )
    except FileNotFoundError as error:
        raise SpawnFailure(f"Executable not found: {run_args[0]}", transient=False) from error
    except PermissionError as error:
        raise SpawnFailure(
            f"Executable is not runnable: {run_args[0]}: {error}",
            transient=False,
        ) from error
    except OSError as error:
        raise SpawnFailure(f"Executable failed to start: {error}", transient=True) from error


def _terminate_process(process: subprocess.Popen[bytes], *, grace_seconds: float) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        logger.warning("Process %d ignored SIGTERM, killing", process.pid)
        try:
            process.kill()
        except OSError:
            return
        try:
            process.wait(timeout=grace_seconds)
        except subprocess.TimeoutExpired:
            logger.error("Process %d did not exit after SIGKILL; abandoning it", process.pid)
