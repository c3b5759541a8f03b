"""Domain models for stages, execution records and pass reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class ArtifactStatus(str, Enum):
    """Terminal classification of one execution attempt."""

    ERROR = "error"
    SUCCESS_SHORT = "success_short"
    SUCCESS_LONG = "success_long"
    TIMEOUT = "timeout"


class Stage(str, Enum):
    """Stage directories relative to the workflow base path."""

    RAW = "raw"
    PREPROCESSED = "preprocessed"
    RESULTS_ERROR = "results/error"
    RESULTS_SUCCESS_SHORT = "results/success_short"
    RESULTS_SUCCESS_LONG = "results/success_long"
    RESULTS_TIMEOUT = "results/timeout"

    @classmethod
    def for_status(cls, status: ArtifactStatus) -> Stage:
        """Results stage that holds artifacts classified as ``status``."""

        return cls(f"results/{status.value}")

    @property
    def is_terminal(self) -> bool:
        return self.value.startswith("results/")


class AnnotatedPolicy(str, Enum):
    """How a pass treats preprocessed artifacts that already carry a terminal status."""

    REDO = "redo"
    MOVE = "move"


@dataclass(slots=True)
class ExecutionRecord:
    """One orchestration attempt for one artifact; never persisted as a whole."""

    started_monotonic: float
    finished_monotonic: float
    exit_code: int | None
    timed_out: bool
    status: ArtifactStatus
    executed_at: datetime

    @property
    def duration_seconds(self) -> float:
        return max(0.0, self.finished_monotonic - self.started_monotonic)


@dataclass(slots=True)
class ArtifactOutcome:
    """Result of driving one artifact through run, annotate and move."""

    source_path: Path
    status: ArtifactStatus
    exit_code: int
    duration_seconds: float
    final_path: Path | None
    executed: bool = True
    header_error: str | None = None
    relocation_error: str | None = None

    @property
    def stranded(self) -> bool:
        return self.final_path is None


@dataclass(slots=True)
class PassSummary:
    """Aggregate counters for one execution pass."""

    outcomes: list[ArtifactOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def stranded(self) -> list[ArtifactOutcome]:
        return [outcome for outcome in self.outcomes if outcome.stranded]

    def count(self, status: ArtifactStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)


@dataclass(slots=True)
class PreprocessSummary:
    """Counters for one preprocess pass."""

    moved: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)
