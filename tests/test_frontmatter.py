from __future__ import annotations

from pathlib import Path

import allure
import pytest

from prompt_workflow.orchestrator.errors import IOFailure
from prompt_workflow.orchestrator.frontmatter import (
    merge_header,
    parse_document,
    read_header,
    render_document,
)

pytestmark = [
    allure.epic("Artifacts"),
    allure.feature("Header Block"),
]


def test_parse_document_without_header_keeps_whole_text_as_body() -> None:
    document = parse_document("# Title\n\nBody\n")

    assert document.has_header is False
    assert document.header == {}
    assert document.body == "# Title\n\nBody\n"


def test_parse_document_splits_on_first_colon_and_trims() -> None:
    document = parse_document('---\ntitle:  "Hello: world" \nurl: http://x\n---\nBody\n')

    assert document.header == {"title": '"Hello: world"', "url": "http://x"}
    assert document.body == "Body\n"


def test_parse_document_ignores_lines_without_colon() -> None:
    document = parse_document("---\njust text\nkey: value\n\n---\nBody")

    assert document.header == {"key": "value"}
    assert document.body == "Body"


def test_unclosed_header_is_treated_as_body() -> None:
    text = "---\nkey: value\nno closing delimiter\n"

    document = parse_document(text)

    assert document.has_header is False
    assert document.body == text


def test_render_document_round_trips_parsed_header() -> None:
    text = "---\na: 1\nb: two\n---\nBody\n"
    document = parse_document(text)

    assert render_document(document.header, document.body) == text


def test_merge_header_adds_block_to_plain_file(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text("Body text\n", "utf-8")

    merged = merge_header(path, {"status": "error", "exitCode": 2})

    assert merged == {"status": "error", "exitCode": "2"}
    assert path.read_text("utf-8") == "---\nstatus: error\nexitCode: 2\n---\nBody text\n"


def test_merge_header_preserves_unrelated_keys(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text('---\ntemplateUsed: "x"\n---\nBody\n', "utf-8")

    merge_header(path, {"status": "error"})

    assert path.read_text("utf-8") == '---\ntemplateUsed: "x"\nstatus: error\n---\nBody\n'
    assert read_header(path) == {"templateUsed": '"x"', "status": "error"}


def test_merge_header_updates_keep_original_position(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text("---\nstatus: timeout\ntemplateUsed: base\n---\nBody\n", "utf-8")

    merge_header(path, {"duration": "1.0", "status": "success_short"})

    assert read_header(path) == {
        "status": "success_short",
        "templateUsed": "base",
        "duration": "1.0",
    }
    assert path.read_text("utf-8").splitlines()[1] == "status: success_short"


def test_merge_header_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text("---\ntemplateUsed: x\n---\nBody\n", "utf-8")
    fields = {"status": "success_long", "duration": "120.0"}

    merge_header(path, fields)
    once = path.read_bytes()
    merge_header(path, fields)

    assert path.read_bytes() == once


def test_merge_header_keeps_crlf_body_bytes(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_bytes(b"---\r\nkey: v\r\n---\r\nline one\r\nline two\r\n")

    merge_header(path, {"status": "error"})

    assert path.read_bytes() == b"---\nkey: v\nstatus: error\n---\nline one\r\nline two\r\n"


def test_merge_header_leaves_no_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text("Body\n", "utf-8")

    merge_header(path, {"status": "error"})

    assert [child.name for child in tmp_path.iterdir()] == ["prompt.md"]


def test_merge_header_missing_file_raises_io_failure(tmp_path: Path) -> None:
    path = tmp_path / "missing.md"

    with pytest.raises(IOFailure) as excinfo:
        merge_header(path, {"status": "error"})

    assert excinfo.value.path == path


def test_merge_header_rejects_multiline_values(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    path.write_text("Body\n", "utf-8")

    with pytest.raises(ValueError, match="single line"):
        merge_header(path, {"status": "error\ninjected: yes"})
    assert path.read_text("utf-8") == "Body\n"


def test_merge_header_keeps_values_with_unicode_line_separators(tmp_path: Path) -> None:
    path = tmp_path / "prompt.md"
    text = "---\ntitle: first\u2028second\nnote: a\x0cb\u0085c\n---\nBody\u2029tail\n"
    path.write_text(text, "utf-8")

    merge_header(path, {"status": "error"})

    assert path.read_text("utf-8") == (
        "---\ntitle: first\u2028second\nnote: a\x0cb\u0085c\nstatus: error\n---\nBody\u2029tail\n"
    )
    assert read_header(path)["title"] == "first\u2028second"
