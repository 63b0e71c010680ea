"""Transcription pipeline factory and exports."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from app.config import EngineConfig
from engine import create_adapter

from .orchestrator import Stage, Transcriber
from .segments import (
    Segment,
    TranscriptionResult,
    aggregate_segments,
    build_result,
    parse_timestamp,
)


def create_transcriber(config: EngineConfig, scratch_dir: Optional[Path] = None) -> Transcriber:
    """Create a Transcriber backed by the configured engine."""

    return Transcriber(create_adapter(config), scratch_dir=scratch_dir)


__all__ = [
    "Segment",
    "Stage",
    "Transcriber",
    "TranscriptionResult",
    "aggregate_segments",
    "build_result",
    "create_transcriber",
    "parse_timestamp",
]
