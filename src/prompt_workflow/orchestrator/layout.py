"""Stage directory layout under the workflow base path."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from prompt_workflow.orchestrator.models import ArtifactStatus, Stage

ARTIFACT_SUFFIX = ".md"


@dataclass(slots=True, frozen=True)
class StageLayout:
    """Resolves stage, template and context directories for one base path."""

    base_path: Path

    @property
    def templates_dir(self) -> Path:
        return self.base_path / "templates"

    @property
    def context_dir(self) -> Path:
        return self.base_path / "context"

    def stage_dir(self, stage: Stage) -> Path:
        return self.base_path.joinpath(*stage.value.split("/"))

    def results_dir(self, status: ArtifactStatus) -> Path:
        return self.stage_dir(Stage.for_status(status))

    def list_artifacts(self, stage: Stage) -> list[Path]:
        """Markdown artifacts currently in ``stage``, sorted by name.

        A stage directory that does not exist yet is an empty stage.
        """

        directory = self.stage_dir(stage)
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.iterdir()
            if path.suffix == ARTIFACT_SUFFIX and path.is_file()
        )

    def counts(self) -> dict[Stage, int]:
        return {stage: len(self.list_artifacts(stage)) for stage in Stage}

    def ensure(self) -> None:
        """Create every stage directory plus ``templates/`` and ``context/``."""

        for stage in Stage:
            self.stage_dir(stage).mkdir(parents=True, exist_ok=True)
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        self.context_dir.mkdir(parents=True, exist_ok=True)
