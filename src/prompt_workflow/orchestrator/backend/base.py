"""Runner interface for supervised external-process execution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(slots=True)
class RunRequest:
    """Inputs required to execute one artifact."""

    artifact_path: Path
    timeout_seconds: float


@dataclass(slots=True)
class RunResult:
    """Process ran to completion; a non-zero exit code is a normal outcome."""

    exit_code: int


class ProcessRunner(Protocol):
    """Protocol implemented by artifact runners.

    Implementations return a ``RunResult`` when the process exits on its own and
    raise ``ProcessTimeout`` or ``SpawnFailure`` otherwise.
    """

    def run(self, request: RunRequest) -> RunResult:
        """Run the external executable against one artifact."""
