"""Controllers for workflow CLI commands."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from prompt_workflow.config import Settings
from prompt_workflow.orchestrator.backend import TimedProcessRunner
from prompt_workflow.orchestrator.layout import StageLayout
from prompt_workflow.orchestrator.models import (
    AnnotatedPolicy,
    ArtifactStatus,
    PassSummary,
    PreprocessSummary,
    Stage,
)
from prompt_workflow.orchestrator.preprocess import preprocess_pass
from prompt_workflow.orchestrator.stage_orchestrator import StageOrchestrator


@dataclass(slots=True)
class PreprocessCommand:
    """CLI input for the preprocess pass."""

    base_path: Path | None


@dataclass(slots=True)
class ExecuteCommand:
    """CLI input for the execution pass; ``None`` keeps the environment value."""

    base_path: Path | None
    timeout_seconds: float | None = None
    max_concurrency: int | None = None
    command_template: str | None = None
    annotated_policy: str | None = None


@dataclass(slots=True)
class StatusCommand:
    """CLI input for stage counts."""

    base_path: Path | None


@dataclass(slots=True)
class WorkflowResult:
    """Report lines to render in CLI."""

    lines: list[str]
    success: bool


class WorkflowCliController:
    """Coordinates preprocess, execute and status CLI operations."""

    def preprocess(self, command: PreprocessCommand) -> WorkflowResult:
        settings = Settings.from_env(base_path=command.base_path)
        summary = preprocess_pass(StageLayout(settings.base_path))
        return WorkflowResult(
            lines=_render_preprocess_lines(summary),
            success=not summary.failed,
        )

    def execute(self, command: ExecuteCommand) -> WorkflowResult:
        settings = _apply_overrides(Settings.from_env(base_path=command.base_path), command)
        settings.validate()
        summary = build_orchestrator(settings).run_pass()
        return WorkflowResult(
            lines=_render_pass_lines(summary),
            success=not summary.stranded,
        )

    def run(self, command: ExecuteCommand) -> WorkflowResult:
        settings = _apply_overrides(Settings.from_env(base_path=command.base_path), command)
        settings.validate()
        preprocessed = preprocess_pass(StageLayout(settings.base_path))
        executed = build_orchestrator(settings).run_pass()
        return WorkflowResult(
            lines=_render_preprocess_lines(preprocessed) + _render_pass_lines(executed),
            success=not preprocessed.failed and not executed.stranded,
        )

    def status(self, command: StatusCommand) -> list[str]:
        settings = Settings.from_env(base_path=command.base_path)
        layout = StageLayout(settings.base_path)
        counts = layout.counts()
        lines = [f"Base path: {settings.base_path}"]
        lines.extend(f"  {stage.value:<24} {counts[stage]}" for stage in Stage)
        return lines


def build_orchestrator(settings: Settings) -> StageOrchestrator:
    """Wire a stage orchestrator with the subprocess runner from settings."""

    execution = settings.execution
    return StageOrchestrator(
        layout=StageLayout(settings.base_path),
        runner=TimedProcessRunner(
            command_template=execution.command_template,
            log_dir=execution.log_dir,
        ),
        timeout_seconds=execution.timeout_seconds,
        max_concurrency=execution.max_concurrency,
        synthetic_exit_code=execution.synthetic_exit_code,
        annotated_policy=AnnotatedPolicy(execution.annotated_policy),
    )


def _apply_overrides(settings: Settings, command: ExecuteCommand) -> Settings:
    execution = settings.execution
    if command.timeout_seconds is not None:
        execution = replace(execution, timeout_seconds=command.timeout_seconds)
    if command.max_concurrency is not None:
        execution = replace(execution, max_concurrency=command.max_concurrency)
    if command.command_template is not None:
        execution = replace(execution, command_template=command.command_template)
    if command.annotated_policy is not None:
        execution = replace(execution, annotated_policy=command.annotated_policy.lower())
    return replace(settings, execution=execution)


def _render_preprocess_lines(summary: PreprocessSummary) -> list[str]:
    lines = [f"Preprocessed: {len(summary.moved)} failed={len(summary.failed)}"]
    lines.extend(f"  failed {path.name}: {reason}" for path, reason in summary.failed.items())
    return lines


def _render_pass_lines(summary: PassSummary) -> list[str]:
    if not summary.processed:
        return ["Executed: 0 (nothing pending)"]

    counters = " ".join(f"{status.value}={summary.count(status)}" for status in ArtifactStatus)
    lines = [f"Executed: {summary.processed} {counters} stranded={len(summary.stranded)}"]
    for outcome in summary.outcomes:
        destination = outcome.final_path.parent if outcome.final_path else outcome.source_path.parent
        marker = "" if outcome.executed else " (not re-run)"
        lines.append(
            f"  {outcome.source_path.name}: {outcome.status.value} "
            f"exit={outcome.exit_code} duration={outcome.duration_seconds:.1f}s "
            f"-> {destination}{marker}",
        )
        if outcome.relocation_error:
            lines.append(f"    STRANDED: {outcome.relocation_error}")
        elif outcome.header_error:
            lines.append(f"    header not updated: {outcome.header_error}")
    return lines
