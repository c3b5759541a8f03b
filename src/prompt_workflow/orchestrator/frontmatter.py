"""Read and merge the ``key: value`` header block at the top of an artifact.

The header is delimited by two lines containing exactly ``---``. Values are kept
as raw strings; quoting and other formatting of keys that a merge does not touch
survives verbatim.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from prompt_workflow.orchestrator.atomic_io import read_text_exact, write_text_atomic
from prompt_workflow.orchestrator.errors import IOFailure

logger = logging.getLogger(__name__)

HEADER_DELIMITER = "---"


@dataclass(slots=True)
class FrontmatterDocument:
    """Artifact text split into header mapping and body."""

    header: dict[str, str]
    body: str
    has_header: bool


def parse_document(text: str) -> FrontmatterDocument:
    """Split artifact text into an ordered header mapping and the body."""

    lines = _split_lines(text)
    if not lines or _strip_eol(lines[0]) != HEADER_DELIMITER:
        return FrontmatterDocument(header={}, body=text, has_header=False)

    for index in range(1, len(lines)):
        if _strip_eol(lines[index]) == HEADER_DELIMITER:
            header = _parse_header_lines(lines[1:index])
            body = "".join(lines[index + 1 :])
            return FrontmatterDocument(header=header, body=body, has_header=True)

    # Opening delimiter without a closing one: the whole file is body.
    return FrontmatterDocument(header={}, body=text, has_header=False)


def render_document(header: Mapping[str, str], body: str) -> str:
    """Serialize header mapping and body back into artifact text."""

    lines = [HEADER_DELIMITER]
    lines.extend(f"{key}: {value}" for key, value in header.items())
    lines.append(HEADER_DELIMITER)
    return "\n".join(lines) + "\n" + body


def merge_fields(header: Mapping[str, str], fields: Mapping[str, object]) -> dict[str, str]:
    """Overlay ``fields`` onto ``header``; updated keys keep their position."""

    merged = dict(header)
    for key, value in fields.items():
        merged[_validate_key(key)] = _normalize_value(key, value)
    return merged


def read_header(path: Path) -> dict[str, str]:
    """Return the parsed header of ``path`` (empty when it has none)."""

    try:
        text = read_text_exact(path)
    except (OSError, UnicodeDecodeError) as error:
        raise IOFailure(f"Cannot read artifact header: {path}: {error}", path=path) from error
    return parse_document(text).header


def merge_header(path: Path, fields: Mapping[str, object]) -> dict[str, str]:
    """Merge ``fields`` into the header of ``path`` and write the file back.

    The new content is produced in full before a single rename replaces the old
    file, so a concurrent reader sees either the old or the new header.
    """

    try:
        text = read_text_exact(path)
    except (OSError, UnicodeDecodeError) as error:
        raise IOFailure(f"Cannot read artifact: {path}: {error}", path=path) from error

    document = parse_document(text)
    merged = merge_fields(document.header, fields)
    rendered = render_document(merged, document.body)
    if rendered == text:
        logger.debug("Header of %s already up to date", path.name)
        return merged

    try:
        write_text_atomic(path, rendered)
    except OSError as error:
        raise IOFailure(f"Cannot write artifact: {path}: {error}", path=path) from error
    return merged


def _parse_header_lines(lines: list[str]) -> dict[str, str]:
    header: dict[str, str] = {}
    for raw_line in lines:
        line = _strip_eol(raw_line)
        separator = line.find(":")
        if separator == -1:
            continue
        key = line[:separator].strip()
        if not key:
            continue
        header[key] = line[separator + 1 :].strip()
    return header


def _split_lines(text: str) -> list[str]:
    """Split on line feeds only, keeping endings so the body rejoins byte for byte."""

    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _validate_key(key: str) -> str:
    normalized = key.strip()
    if not normalized or ":" in normalized or "\n" in normalized or "\r" in normalized:
        raise ValueError(f"Invalid header key: {key!r}")
    return normalized


def _normalize_value(key: str, value: object) -> str:
    text = str(value).strip()
    if "\n" in text or "\r" in text:
        raise ValueError(f"Header value for {key!r} must be a single line.")
    return text
