"""Transcript rendering and output."""

from __future__ import annotations

import json
from pathlib import Path

from pipeline.segments import TranscriptionResult


def _srt_time(seconds: int) -> str:
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},000"


def render_transcript(result: TranscriptionResult, fmt: str = "txt") -> str:
    """Render a transcription result as plain text, JSON or SRT.

    Raises:
        ValueError: If ``fmt`` is not one of txt, json or srt.
    """

    if fmt == "txt":
        return f"{result.text}\n" if result.text else ""
    if fmt == "json":
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n"
    if fmt == "srt":
        cues = [
            f"{index}\n{_srt_time(segment.start)} --> {_srt_time(segment.end)}\n{segment.text}\n"
            for index, segment in enumerate(result.segments, start=1)
        ]
        return "\n".join(cues)
    raise ValueError(f"Unsupported output format: {fmt!r}")


def write_text_file(output_path: Path, text: str) -> None:
    """Write transcript text to disk.

    Args:
        output_path: Destination path.
        text: Transcript content.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
