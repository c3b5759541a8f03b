from __future__ import annotations

from pathlib import Path

import allure
import pytest

from prompt_workflow.config import DEFAULT_BASE_PATH, ExecutionSettings, Settings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Settings"),
]

_ENV_NAMES = (
    "PROMPT_WORKFLOW_BASE_PATH",
    "PROMPT_WORKFLOW_COMMAND_TEMPLATE",
    "PROMPT_WORKFLOW_TIMEOUT_SECONDS",
    "PROMPT_WORKFLOW_MAX_CONCURRENCY",
    "PROMPT_WORKFLOW_SYNTHETIC_EXIT_CODE",
    "PROMPT_WORKFLOW_ANNOTATED_POLICY",
    "PROMPT_WORKFLOW_LOG_DIR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_stock_layout() -> None:
    settings = Settings.from_env()

    assert settings.base_path == DEFAULT_BASE_PATH
    assert settings.execution.command_template == "prompt-run --in {prompt_file}"
    assert settings.execution.timeout_seconds == 600.0
    assert settings.execution.max_concurrency == 1
    assert settings.execution.synthetic_exit_code == 1
    assert settings.execution.annotated_policy == "redo"
    assert settings.execution.log_dir is None
    settings.validate()


def test_from_env_reads_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROMPT_WORKFLOW_BASE_PATH", str(tmp_path))
    monkeypatch.setenv("PROMPT_WORKFLOW_COMMAND_TEMPLATE", "runner {prompt_file}")
    monkeypatch.setenv("PROMPT_WORKFLOW_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("PROMPT_WORKFLOW_MAX_CONCURRENCY", "4")
    monkeypatch.setenv("PROMPT_WORKFLOW_SYNTHETIC_EXIT_CODE", "99")
    monkeypatch.setenv("PROMPT_WORKFLOW_ANNOTATED_POLICY", " MOVE ")
    monkeypatch.setenv("PROMPT_WORKFLOW_LOG_DIR", str(tmp_path / "logs"))

    settings = Settings.from_env()

    assert settings.base_path == tmp_path
    assert settings.execution == ExecutionSettings(
        command_template="runner {prompt_file}",
        timeout_seconds=12.5,
        max_concurrency=4,
        synthetic_exit_code=99,
        annotated_policy="move",
        log_dir=tmp_path / "logs",
    )
    settings.validate()


def test_explicit_base_path_wins_over_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROMPT_WORKFLOW_BASE_PATH", "/elsewhere")

    assert Settings.from_env(base_path=tmp_path).base_path == tmp_path


def test_from_env_rejects_non_numeric_values(monkeypatch) -> None:
    monkeypatch.setenv("PROMPT_WORKFLOW_MAX_CONCURRENCY", "many")

    with pytest.raises(ValueError, match="PROMPT_WORKFLOW_MAX_CONCURRENCY"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("execution", "message"),
    [
        (ExecutionSettings(timeout_seconds=0), "TIMEOUT_SECONDS"),
        (ExecutionSettings(timeout_seconds=-1), "TIMEOUT_SECONDS"),
        (ExecutionSettings(timeout_seconds=float("nan")), "TIMEOUT_SECONDS"),
        (ExecutionSettings(timeout_seconds=float("inf")), "TIMEOUT_SECONDS"),
        (ExecutionSettings(max_concurrency=0), "MAX_CONCURRENCY"),
        (ExecutionSettings(synthetic_exit_code=0), "SYNTHETIC_EXIT_CODE"),
        (ExecutionSettings(command_template="prompt-run"), "COMMAND_TEMPLATE"),
        (ExecutionSettings(command_template=""), "COMMAND_TEMPLATE"),
        (ExecutionSettings(annotated_policy="skip"), "ANNOTATED_POLICY"),
    ],
)
def test_validate_rejects_unusable_values(execution: ExecutionSettings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        Settings(execution=execution).validate()


@pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
def test_non_finite_timeout_from_env_fails_validation(monkeypatch, value: str) -> None:
    monkeypatch.setenv("PROMPT_WORKFLOW_TIMEOUT_SECONDS", value)

    settings = Settings.from_env()

    with pytest.raises(ValueError, match="finite"):
        settings.validate()
