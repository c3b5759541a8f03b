"""Deterministic outcome classification from exit code and wall-clock duration."""

from __future__ import annotations

from prompt_workflow.orchestrator.models import ArtifactStatus

SHORT_RUN_MAX_SECONDS = 60.0
LONG_RUN_MAX_SECONDS = 600.0


def classify(
    exit_code: int | None,
    duration_seconds: float,
    timed_out: bool,
) -> ArtifactStatus:
    """Map one finished execution onto its terminal status.

    Boundaries are inclusive of the faster class: exactly 60 seconds is still
    ``success_short`` and exactly 600 seconds is still ``success_long``.
    Anything slower than the long bound is reported as ``timeout`` even when the
    process exited cleanly.
    """

    if timed_out:
        return ArtifactStatus.TIMEOUT
    if exit_code != 0:
        return ArtifactStatus.ERROR
    if duration_seconds <= SHORT_RUN_MAX_SECONDS:
        return ArtifactStatus.SUCCESS_SHORT
    if duration_seconds <= LONG_RUN_MAX_SECONDS:
        return ArtifactStatus.SUCCESS_LONG
    return ArtifactStatus.TIMEOUT
