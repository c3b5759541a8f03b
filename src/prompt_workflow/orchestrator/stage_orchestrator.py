"""Execute, classify, annotate and relocate every artifact in ``preprocessed/``."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from prompt_workflow.orchestrator.backend import ProcessRunner, RunRequest
from prompt_workflow.orchestrator.classifier import classify
from prompt_workflow.orchestrator.clock import format_duration, format_timestamp, utc_now
from prompt_workflow.orchestrator.errors import (
    IOFailure,
    ProcessTimeout,
    RelocationFailure,
    SpawnFailure,
)
from prompt_workflow.orchestrator.frontmatter import merge_header, read_header
from prompt_workflow.orchestrator.layout import StageLayout
from prompt_workflow.orchestrator.models import (
    AnnotatedPolicy,
    ArtifactOutcome,
    ArtifactStatus,
    ExecutionRecord,
    PassSummary,
    Stage,
)
from prompt_workflow.orchestrator.relocator import move_artifact

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600.0
DEFAULT_SYNTHETIC_EXIT_CODE = 1


class StageOrchestrator:
    """Drives one pass over the preprocessed stage.

    Every artifact is an independent unit of work: run, classify, merge header,
    move. A failure inside one unit is recorded on that artifact and never stops
    its siblings. With ``max_concurrency > 1`` units run on a thread pool, which
    also caps the number of external processes in flight.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        layout: StageLayout,
        runner: ProcessRunner,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int = 1,
        synthetic_exit_code: int = DEFAULT_SYNTHETIC_EXIT_CODE,
        annotated_policy: AnnotatedPolicy = AnnotatedPolicy.REDO,
        monotonic: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if not math.isfinite(timeout_seconds) or timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds!r}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency!r}")
        self.layout = layout
        self.runner = runner
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max_concurrency
        self.synthetic_exit_code = synthetic_exit_code
        self.annotated_policy = annotated_policy
        self._monotonic = monotonic
        self._now = now

    def run_pass(self) -> PassSummary:
        """Process everything currently listed in ``preprocessed/``.

        Outcomes are reported in discovery order even when completion order
        differs under concurrency.
        """

        artifacts = self.layout.list_artifacts(Stage.PREPROCESSED)
        if not artifacts:
            logger.info("No pending artifacts in %s", self.layout.stage_dir(Stage.PREPROCESSED))
            return PassSummary()

        logger.info(
            "Executing %d artifact(s) with concurrency %d",
            len(artifacts),
            self.max_concurrency,
        )
        if self.max_concurrency == 1 or len(artifacts) == 1:
            outcomes = [self._process_contained(path) for path in artifacts]
        else:
            workers = min(self.max_concurrency, len(artifacts))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="artifact") as pool:
                outcomes = list(pool.map(self._process_contained, artifacts))

        summary = PassSummary(outcomes=outcomes)
        for outcome in summary.stranded:
            logger.error(
                "Artifact left in %s and needs manual retry: %s",
                outcome.source_path.parent,
                outcome.source_path.name,
            )
        return summary

    def process_artifact(self, path: Path) -> ArtifactOutcome:
        """Run one artifact to completion: execute, annotate, relocate."""

        if self.annotated_policy is AnnotatedPolicy.MOVE:
            recovered = self._relocate_if_annotated(path)
            if recovered is not None:
                return recovered

        record = self._execute(path)
        exit_code = record.exit_code if record.exit_code is not None else self.synthetic_exit_code
        fields = {
            "status": record.status.value,
            "duration": format_duration(record.duration_seconds),
            "exitCode": exit_code,
            "executedAt": format_timestamp(record.executed_at),
        }

        # Annotation loss is acceptable, artifact loss is not: always try the move.
        header_error: str | None = None
        try:
            merge_header(path, fields)
        except IOFailure as error:
            header_error = str(error)
            logger.warning("Header not updated for %s: %s", path.name, error)

        outcome = ArtifactOutcome(
            source_path=path,
            status=record.status,
            exit_code=exit_code,
            duration_seconds=record.duration_seconds,
            final_path=None,
            header_error=header_error,
        )
        try:
            outcome.final_path = move_artifact(path, self.layout.results_dir(record.status))
        except RelocationFailure as error:
            outcome.relocation_error = str(error)
            logger.error("Cannot relocate %s: %s", path.name, error)
            return outcome

        logger.info(
            "%s -> %s (exit=%d, %.1fs)",
            path.name,
            record.status.value,
            exit_code,
            record.duration_seconds,
        )
        return outcome

    def _process_contained(self, path: Path) -> ArtifactOutcome:
        try:
            return self.process_artifact(path)
        except Exception as error:
            logger.exception("Unexpected failure while processing %s", path.name)
            return ArtifactOutcome(
                source_path=path,
                status=ArtifactStatus.ERROR,
                exit_code=self.synthetic_exit_code,
                duration_seconds=0.0,
                final_path=None,
                relocation_error=f"{type(error).__name__}: {error}",
            )

    def _execute(self, path: Path) -> ExecutionRecord:
        started = self._monotonic()
        exit_code: int | None = None
        timed_out = False
        try:
            result = self.runner.run(
                RunRequest(artifact_path=path, timeout_seconds=self.timeout_seconds),
            )
            exit_code = result.exit_code
        except ProcessTimeout as error:
            timed_out = True
            logger.warning("Timed out: %s", error)
        except SpawnFailure as error:
            logger.error("Cannot launch executable for %s: %s", path.name, error)
        except Exception:
            logger.exception("Runner failed for %s", path.name)
        finished = self._monotonic()

        return ExecutionRecord(
            started_monotonic=started,
            finished_monotonic=finished,
            exit_code=exit_code,
            timed_out=timed_out,
            status=classify(exit_code, finished - started, timed_out),
            executed_at=self._now(),
        )

    def _relocate_if_annotated(self, path: Path) -> ArtifactOutcome | None:
        """Finish an artifact whose header already records a terminal status."""

        try:
            header = read_header(path)
        except IOFailure as error:
            logger.warning("Cannot inspect header of %s, executing it: %s", path.name, error)
            return None

        try:
            status = ArtifactStatus(header.get("status", ""))
        except ValueError:
            return None
        if not header.get("executedAt"):
            return None

        outcome = ArtifactOutcome(
            source_path=path,
            status=status,
            exit_code=_parse_int(header.get("exitCode"), default=self.synthetic_exit_code),
            duration_seconds=_parse_float(header.get("duration"), default=0.0),
            final_path=None,
            executed=False,
        )
        try:
            outcome.final_path = move_artifact(path, self.layout.results_dir(status))
        except RelocationFailure as error:
            outcome.relocation_error = str(error)
            logger.error("Cannot relocate annotated %s: %s", path.name, error)
            return outcome
        logger.info("%s already annotated as %s, moved without re-running", path.name, status.value)
        return outcome


def _parse_int(value: str | None, *, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_float(value: str | None, *, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default
