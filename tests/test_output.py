from __future__ import annotations

import json
from pathlib import Path

import pytest

from output.text import render_transcript, write_text_file
from pipeline.segments import Segment, build_result


@pytest.fixture
def result():
    return build_result([Segment("Hello world.", 0, 1), Segment("Bye now.", 62, 65)])


def test_write_text_file_creates_parent_dirs(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "file.txt"
    write_text_file(out, "hello\n")
    assert out.read_text(encoding="utf-8") == "hello\n"


def test_render_txt(result) -> None:
    assert render_transcript(result, "txt") == "Hello world. Bye now.\n"
    assert render_transcript(build_result([]), "txt") == ""


def test_render_json(result) -> None:
    assert json.loads(render_transcript(result, "json")) == result.to_dict()


def test_render_srt(result) -> None:
    assert render_transcript(result, "srt") == (
        "1\n00:00:00,000 --> 00:00:01,000\nHello world.\n"
        "\n"
        "2\n00:01:02,000 --> 00:01:05,000\nBye now.\n"
    )


def test_render_rejects_unknown_format(result) -> None:
    with pytest.raises(ValueError, match="Unsupported output format"):
        render_transcript(result, "docx")
