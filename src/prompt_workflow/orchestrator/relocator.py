"""Move artifacts between stage directories.

Within one filesystem a move is a single ``os.replace`` and is atomic: an
observer sees the artifact in exactly one stage. Across filesystems the move
degrades to copy, verify, rename into place, delete source. That fallback is
not atomic; for a short window the artifact exists in both stages.
"""

from __future__ import annotations

import errno
import filecmp
import logging
import os
import shutil
import tempfile
from pathlib import Path

from prompt_workflow.orchestrator.errors import RelocationFailure

logger = logging.getLogger(__name__)


def move_artifact(source: Path, destination_dir: Path) -> Path:
    """Move ``source`` into ``destination_dir`` keeping its basename.

    An existing file with the same name in ``destination_dir`` is replaced.
    """

    if not source.is_file():
        raise RelocationFailure(f"Artifact does not exist: {source}", path=source)
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise RelocationFailure(
            f"Cannot create stage directory {destination_dir}: {error}",
            path=source,
        ) from error

    destination = destination_dir / source.name
    try:
        os.replace(source, destination)
    except OSError as error:
        if error.errno != errno.EXDEV:
            raise RelocationFailure(
                f"Cannot move {source} to {destination_dir}: {error}",
                path=source,
            ) from error
        logger.info("Cross-device move for %s, falling back to copy", source.name)
        _copy_verify_replace(source, destination)
    return destination


def _copy_verify_replace(source: Path, destination: Path) -> None:
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.",
        suffix=".moving",
        dir=destination.parent,
    )
    os.close(fd)
    temp_path = Path(temp_name)
    try:
        shutil.copy2(source, temp_path)
        if not filecmp.cmp(source, temp_path, shallow=False):
            raise RelocationFailure(
                f"Copy verification failed for {source} -> {destination}",
                path=source,
            )
        os.replace(temp_path, destination)
    except OSError as error:
        temp_path.unlink(missing_ok=True)
        raise RelocationFailure(
            f"Cannot copy {source} to {destination.parent}: {error}",
            path=source,
        ) from error
    except RelocationFailure:
        temp_path.unlink(missing_ok=True)
        raise

    try:
        source.unlink()
    except OSError as error:
        raise RelocationFailure(
            f"Copied {source} to {destination} but could not remove the source: {error}",
            path=source,
        ) from error
