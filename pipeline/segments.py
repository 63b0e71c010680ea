"""Grouping of recognized tokens into sentence segments."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import re
from typing import Any, Iterable, Optional, Sequence

from engine.base import RecognizedToken


logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"[.!?]$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Segment:
    """A sentence with whole-second start and end times."""

    text: str
    start: int
    end: int

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "start": self.start, "end": self.end}


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Joined transcript text plus its ordered segments."""

    text: str
    segments: tuple[Segment, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "segments": [segment.to_dict() for segment in self.segments],
        }


def parse_timestamp(value: Optional[str]) -> float:
    """Convert an ``HH:MM:SS,mmm`` timestamp to seconds.

    Malformed values are logged and read as 0.0; empty values are 0.0.
    """

    if not value:
        return 0.0
    try:
        clock, millis = value.split(",")
        hours, minutes, seconds = (int(part) for part in clock.split(":"))
        return hours * 3600 + minutes * 60 + seconds + int(millis) / 1000
    except (AttributeError, ValueError) as exc:
        logger.warning("Error parsing timestamp %r: %s", value, exc)
        return 0.0


def round_seconds(value: float) -> int:
    """Round to the nearest whole second, halves rounding up."""

    return math.floor(value + 0.5)


def _close_sentence(buffer: Sequence[RecognizedToken]) -> Optional[Segment]:
    text = "".join(token.text for token in buffer).strip()
    text = _WHITESPACE.sub(" ", text)
    if not text:
        return None
    start = round_seconds(parse_timestamp(buffer[0].start))
    end = round_seconds(parse_timestamp(buffer[-1].end))
    # A malformed end reads as 0; keep start <= end.
    return Segment(text=text, start=start, end=max(start, end))


def aggregate_segments(tokens: Sequence[RecognizedToken]) -> list[Segment]:
    """Group tokens into sentences ending in ``.``, ``!`` or ``?``.

    The last token always closes the current sentence. Sentences whose text is
    empty after trimming are dropped. Abbreviations such as "Dr." end a
    sentence too.
    """

    segments: list[Segment] = []
    buffer: list[RecognizedToken] = []
    last_index = len(tokens) - 1

    for index, token in enumerate(tokens):
        buffer.append(token)
        if _SENTENCE_END.search(token.text.strip()) or index == last_index:
            segment = _close_sentence(buffer)
            if segment is not None:
                segments.append(segment)
            buffer = []

    return segments


def build_result(segments: Iterable[Segment]) -> TranscriptionResult:
    """Join segment texts with single spaces."""

    ordered = tuple(segments)
    return TranscriptionResult(
        text=" ".join(segment.text for segment in ordered),
        segments=ordered,
    )
