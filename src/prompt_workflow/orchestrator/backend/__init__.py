"""Process runner implementations."""

from prompt_workflow.orchestrator.backend.base import ProcessRunner, RunRequest, RunResult
from prompt_workflow.orchestrator.backend.process_runner import (
    DEFAULT_COMMAND_TEMPLATE,
    TimedProcessRunner,
    build_run_args,
)

__all__ = [
    "DEFAULT_COMMAND_TEMPLATE",
    "ProcessRunner",
    "RunRequest",
    "RunResult",
    "TimedProcessRunner",
    "build_run_args",
]
