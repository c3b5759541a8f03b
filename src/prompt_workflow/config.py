"""Runtime configuration for the prompt workflow."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from prompt_workflow.orchestrator.backend import DEFAULT_COMMAND_TEMPLATE, build_run_args
from prompt_workflow.orchestrator.models import AnnotatedPolicy

DEFAULT_BASE_PATH = Path("pages/workflow/prompts")


@dataclass(slots=True)
class ExecutionSettings:
    """External executable supervision settings."""

    command_template: str = DEFAULT_COMMAND_TEMPLATE
    timeout_seconds: float = 600.0
    max_concurrency: int = 1
    synthetic_exit_code: int = 1
    annotated_policy: str = AnnotatedPolicy.REDO.value
    log_dir: Path | None = None


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    base_path: Path = DEFAULT_BASE_PATH
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        """Load settings from environment with defaults matching the stock layout."""

        log_dir = os.getenv("PROMPT_WORKFLOW_LOG_DIR", "").strip()
        return cls(
            base_path=base_path
            or Path(os.getenv("PROMPT_WORKFLOW_BASE_PATH", str(DEFAULT_BASE_PATH))),
            execution=ExecutionSettings(
                command_template=os.getenv(
                    "PROMPT_WORKFLOW_COMMAND_TEMPLATE",
                    DEFAULT_COMMAND_TEMPLATE,
                ),
                timeout_seconds=_env_float("PROMPT_WORKFLOW_TIMEOUT_SECONDS", 600.0),
                max_concurrency=_env_int("PROMPT_WORKFLOW_MAX_CONCURRENCY", 1),
                synthetic_exit_code=_env_int("PROMPT_WORKFLOW_SYNTHETIC_EXIT_CODE", 1),
                annotated_policy=os.getenv(
                    "PROMPT_WORKFLOW_ANNOTATED_POLICY",
                    AnnotatedPolicy.REDO.value,
                )
                .strip()
                .lower(),
                log_dir=Path(log_dir) if log_dir else None,
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the orchestrator cannot honor."""

        execution = self.execution
        if not math.isfinite(execution.timeout_seconds) or execution.timeout_seconds <= 0:
            raise ValueError("PROMPT_WORKFLOW_TIMEOUT_SECONDS must be a finite number > 0.")
        if execution.max_concurrency < 1:
            raise ValueError("PROMPT_WORKFLOW_MAX_CONCURRENCY must be >= 1.")
        if execution.synthetic_exit_code == 0:
            raise ValueError("PROMPT_WORKFLOW_SYNTHETIC_EXIT_CODE must be non-zero.")
        try:
            build_run_args(execution.command_template, prompt_file=Path("artifact.md"))
        except ValueError as error:
            raise ValueError(f"Invalid PROMPT_WORKFLOW_COMMAND_TEMPLATE: {error}") from error
        try:
            AnnotatedPolicy(execution.annotated_policy)
        except ValueError as error:
            allowed = ", ".join(policy.value for policy in AnnotatedPolicy)
            raise ValueError(
                f"PROMPT_WORKFLOW_ANNOTATED_POLICY must be one of: {allowed}; "
                f"got {execution.annotated_policy!r}",
            ) from error


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid number for {name}: {value!r}") from error
