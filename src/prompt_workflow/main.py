"""CLI entrypoint for prompt-workflow."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from prompt_workflow import __version__
from prompt_workflow.controllers import (
    ExecuteCommand,
    PreprocessCommand,
    StatusCommand,
    WorkflowCliController,
    WorkflowResult,
)
from prompt_workflow.orchestrator.models import AnnotatedPolicy

click.rich_click.USE_MARKDOWN = True
WORKFLOW_CONTROLLER = WorkflowCliController()

_base_path_option = click.option(
    "--base-path",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Workflow root holding raw/, preprocessed/ and results/. "
    "Defaults to PROMPT_WORKFLOW_BASE_PATH or pages/workflow/prompts.",
)


def _execution_options(command: Callable) -> Callable:
    command = click.option(
        "--annotated-policy",
        type=click.Choice([policy.value for policy in AnnotatedPolicy], case_sensitive=False),
        default=None,
        help="How to treat preprocessed artifacts that already carry a terminal status.",
    )(command)
    command = click.option(
        "--command-template",
        default=None,
        help="Executable command line. Must contain {prompt_file}.",
    )(command)
    command = click.option(
        "--max-concurrency",
        type=click.IntRange(min=1),
        default=None,
        help="Maximum number of external processes running at once.",
    )(command)
    return click.option(
        "--timeout-seconds",
        type=click.FloatRange(min=0, min_open=True),
        default=None,
        help="Wall-clock budget per artifact before the process is killed.",
    )(command)


@click.group()
@click.version_option(version=__version__, prog_name="prompt-workflow")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def prompt_workflow(log_level: str) -> None:
    """Prompt workflow CLI."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@prompt_workflow.command("preprocess")
@_base_path_option
def preprocess(base_path: Path | None) -> None:
    """Render raw artifacts into preprocessed/."""

    try:
        result = WORKFLOW_CONTROLLER.preprocess(PreprocessCommand(base_path=base_path))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_result(
        result,
        failure_message="Some raw artifacts could not be preprocessed.",
    )


@prompt_workflow.command("execute")
@_base_path_option
@_execution_options
def execute(  # noqa: PLR0913
    base_path: Path | None,
    timeout_seconds: float | None,
    max_concurrency: int | None,
    command_template: str | None,
    annotated_policy: str | None,
) -> None:
    """Run, classify and file every artifact in preprocessed/."""

    command = ExecuteCommand(
        base_path=base_path,
        timeout_seconds=timeout_seconds,
        max_concurrency=max_concurrency,
        command_template=command_template,
        annotated_policy=annotated_policy,
    )
    try:
        result = WORKFLOW_CONTROLLER.execute(command)
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_result(result, failure_message="Some artifacts could not be relocated.")


@prompt_workflow.command("run")
@_base_path_option
@_execution_options
def run(  # noqa: PLR0913
    base_path: Path | None,
    timeout_seconds: float | None,
    max_concurrency: int | None,
    command_template: str | None,
    annotated_policy: str | None,
) -> None:
    """Preprocess raw artifacts, then execute everything pending."""

    command = ExecuteCommand(
        base_path=base_path,
        timeout_seconds=timeout_seconds,
        max_concurrency=max_concurrency,
        command_template=command_template,
        annotated_policy=annotated_policy,
    )
    try:
        result = WORKFLOW_CONTROLLER.run(command)
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_result(result, failure_message="Workflow pass finished with stuck artifacts.")


@prompt_workflow.command("status")
@_base_path_option
def status(base_path: Path | None) -> None:
    """Show how many artifacts sit in each stage."""

    try:
        lines = WORKFLOW_CONTROLLER.status(StatusCommand(base_path=base_path))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_result(result: WorkflowResult, *, failure_message: str) -> None:
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException(failure_message)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    prompt_workflow()
