"""Transcription engine factory and exports."""

from __future__ import annotations

from app.config import EngineConfig, resolve_model_dir

from .adapter import EngineAdapter, EngineReadiness
from .base import (
    EngineError,
    InferenceError,
    InstallationError,
    NotReadyError,
    RecognizedToken,
    TranscriptionEngine,
)
from .faster_whisper import FasterWhisperEngine


def create_engine(config: EngineConfig) -> TranscriptionEngine:
    """Create a transcription engine from configuration.

    This factory allows adding future engines without changing CLI logic.
    """

    backend = (config.backend or "").strip().lower()
    if backend in {"faster-whisper", "faster_whisper", "whisper"}:
        return FasterWhisperEngine(model=config.model, device=config.device)
    raise ValueError(f"Unsupported engine backend: {config.backend!r}")


def create_adapter(config: EngineConfig) -> EngineAdapter:
    """Create an engine adapter with the configured model directory and language."""

    return EngineAdapter(
        create_engine(config),
        model_dir=resolve_model_dir(config),
        language=config.language,
    )


__all__ = [
    "EngineAdapter",
    "EngineError",
    "EngineReadiness",
    "FasterWhisperEngine",
    "InferenceError",
    "InstallationError",
    "NotReadyError",
    "RecognizedToken",
    "TranscriptionEngine",
    "create_adapter",
    "create_engine",
]
