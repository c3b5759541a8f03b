"""Shared test fixtures."""

from __future__ import annotations

import shlex
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from prompt_workflow.orchestrator.backend import RunRequest, RunResult
from prompt_workflow.orchestrator.layout import StageLayout
from prompt_workflow.orchestrator.models import Stage

FIXED_NOW = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)
FIXED_NOW_TEXT = "2026-10-19T08:00:00.000Z"


def _stub_command_template(*, sleep: float = 0.0, exit_code: int = 0) -> str:
    """Command template that runs the bundled stub executable."""

    return (
        f"{shlex.quote(sys.executable)} -m prompt_workflow.orchestrator.backend.stub_runner "
        f"--in {{prompt_file}} --sleep {sleep} --exit-code {exit_code}"
    )


@dataclass
class FakeClock:
    """Monotonic clock advanced explicitly by scripted runners."""

    value: float = 1_000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@dataclass
class ScriptedRunner:
    """Runner that advances a fake clock and returns or raises scripted outcomes."""

    clock: FakeClock
    script: dict[str, tuple[float, int | BaseException]] = field(default_factory=dict)
    calls: list[Path] = field(default_factory=list)

    def run(self, request: RunRequest) -> RunResult:
        self.calls.append(request.artifact_path)
        seconds, outcome = self.script.get(request.artifact_path.name, (0.0, 0))
        self.clock.advance(seconds)
        if isinstance(outcome, BaseException):
            raise outcome
        return RunResult(exit_code=outcome)


@pytest.fixture()
def layout(tmp_path: Path) -> StageLayout:
    stage_layout = StageLayout(tmp_path / "prompts")
    stage_layout.ensure()
    return stage_layout


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def write_artifact(layout: StageLayout) -> Callable[..., Path]:
    def _write(name: str, text: str = "Prompt body\n", stage: Stage = Stage.PREPROCESSED) -> Path:
        path = layout.stage_dir(stage) / name
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write


@pytest.fixture()
def stub_template() -> Callable[..., str]:
    """Factory for command templates that run the bundled stub executable."""

    return _stub_command_template
