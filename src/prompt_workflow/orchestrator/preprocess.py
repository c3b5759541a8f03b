"""Move raw artifacts into ``preprocessed/`` through a template renderer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from prompt_workflow.orchestrator.atomic_io import read_text_exact, write_text_atomic
from prompt_workflow.orchestrator.layout import StageLayout
from prompt_workflow.orchestrator.models import PreprocessSummary, Stage

logger = logging.getLogger(__name__)


class TemplateRenderer(Protocol):
    """External templating collaborator."""

    def render(self, text: str, *, templates_dir: Path, context_dir: Path) -> str:
        """Return rendered artifact text for raw ``text``."""


class PassThroughRenderer:
    """Renderer that returns the raw text unchanged."""

    def render(self, text: str, *, templates_dir: Path, context_dir: Path) -> str:  # noqa: ARG002
        return text


def preprocess_pass(
    layout: StageLayout,
    renderer: TemplateRenderer | None = None,
) -> PreprocessSummary:
    """Render every raw artifact into ``preprocessed/`` under the same name.

    The rendered file is fully written before the raw file is removed. An
    artifact that fails to render or write stays in ``raw/``.
    """

    renderer = renderer or PassThroughRenderer()
    summary = PreprocessSummary()
    destination_dir = layout.stage_dir(Stage.PREPROCESSED)

    for source in layout.list_artifacts(Stage.RAW):
        destination = destination_dir / source.name
        try:
            rendered = renderer.render(
                read_text_exact(source),
                templates_dir=layout.templates_dir,
                context_dir=layout.context_dir,
            )
            write_text_atomic(destination, rendered)
            source.unlink()
        except Exception as error:
            logger.error("Cannot preprocess %s: %s", source.name, error)
            summary.failed[source] = f"{type(error).__name__}: {error}"
            continue
        logger.info("Preprocessed %s", source.name)
        summary.moved.append(destination)
    return summary
