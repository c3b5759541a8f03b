"""Error taxonomy for artifact execution and filesystem handling."""

from __future__ import annotations

from pathlib import Path


class WorkflowError(RuntimeError):
    """Base class for orchestrator errors."""


class RunnerError(WorkflowError):
    """External process could not produce an exit code."""


class SpawnFailure(RunnerError):
    """Executable could not be launched at all."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class ProcessTimeout(RunnerError):
    """Process exceeded its wall-clock budget and was killed."""

    def __init__(self, message: str, *, timeout_seconds: float) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class IOFailure(WorkflowError):
    """Artifact could not be read, written or moved."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class RelocationFailure(IOFailure):
    """Artifact could not be moved into its destination stage."""
