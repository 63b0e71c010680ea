"""Base interfaces for transcription engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from app.errors import TranscriptionError


ProgressCallback = Callable[[float], None]


class EngineError(TranscriptionError):
    """Base error for engine failures."""

    stage = "inferring"


class NotReadyError(EngineError):
    """Raised when transcription is requested before the engine is installed."""


class InferenceError(EngineError):
    """Raised when the engine fails on a normalized audio file."""


class InstallationError(EngineError):
    """Raised when the engine or its model cannot be installed."""

    stage = "installing"


@dataclass(frozen=True, slots=True)
class RecognizedToken:
    """A recognized word or token with ``HH:MM:SS,mmm`` timestamps."""

    text: str
    start: str
    end: str


def format_timestamp(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS,mmm``."""

    total_ms = max(0, round(seconds * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


class TranscriptionEngine(ABC):
    """Interface for speech-to-text engines.

    Both methods block; callers run them off the event loop.
    """

    @abstractmethod
    def install(self, model_dir: Path) -> None:
        """Make sure the engine and its model are available under ``model_dir``.

        Raises:
            InstallationError: If the engine library or model cannot be set up.
        """

    @abstractmethod
    def transcribe(
        self,
        audio_path: Path,
        language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[RecognizedToken]:
        """Transcribe a 16kHz mono WAV file into timestamped tokens.

        Args:
            audio_path: Path to a normalized WAV file.
            language: Language code (e.g. "en"). When None, the engine decides.
            on_progress: Called with a fraction in [0, 1] as decoding advances.

        Returns:
            Tokens in non-decreasing time order.
        """
