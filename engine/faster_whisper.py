"""faster-whisper transcription engine implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .base import (
    InstallationError,
    ProgressCallback,
    RecognizedToken,
    TranscriptionEngine,
    format_timestamp,
)


logger = logging.getLogger(__name__)


class FasterWhisperEngine(TranscriptionEngine):
    """Transcription engine backed by the `faster-whisper` library."""

    def __init__(self, model: str, device: str = "cpu") -> None:
        """Create a FasterWhisperEngine.

        Args:
            model: Whisper model size (e.g. "medium.en") or a local model directory path.
            device: Inference device string (default: "cpu").
        """

        self._model_name = model
        self._device = device
        self._model = None

    def install(self, model_dir: Path) -> None:
        """Download the model into ``model_dir`` and load it."""

        try:
            from faster_whisper import WhisperModel, download_model
        except ModuleNotFoundError as exc:
            raise InstallationError(
                "Missing dependency: faster-whisper. Install with `pip install -e .`."
            ) from exc

        if Path(self._model_name).is_dir():
            model_path = self._model_name
        else:
            target = model_dir / self._model_name
            target.mkdir(parents=True, exist_ok=True)
            logger.info("Fetching Whisper model '%s' into %s", self._model_name, target)
            try:
                model_path = download_model(self._model_name, output_dir=str(target))
            except Exception as exc:
                raise InstallationError(
                    f"Failed to download Whisper model '{self._model_name}'. If you're offline, "
                    "set the model to a local model path."
                ) from exc

        kwargs = {}
        if self._device.strip().lower() == "cpu":
            kwargs["compute_type"] = "int8"

        try:
            self._model = WhisperModel(model_path, device=self._device, **kwargs)
        except Exception as exc:
            raise InstallationError(
                f"Failed to load Whisper model '{self._model_name}' from {model_path}."
            ) from exc

    def transcribe(
        self,
        audio_path: Path,
        language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[RecognizedToken]:
        """Transcribe an audio file into word-level tokens."""

        if self._model is None:
            raise RuntimeError("Whisper model is not loaded; call install() first.")

        segments, info = self._model.transcribe(
            str(audio_path),
            language=language,
            word_timestamps=True,
        )
        duration = float(getattr(info, "duration", 0.0) or 0.0)

        tokens: list[RecognizedToken] = []
        reported = 0.0
        for segment in segments:
            for word in segment.words or []:
                tokens.append(
                    RecognizedToken(
                        text=word.word,
                        start=format_timestamp(word.start),
                        end=format_timestamp(word.end),
                    )
                )
            if on_progress is not None and duration > 0:
                reported = min(1.0, max(reported, segment.end / duration))
                on_progress(reported)

        if on_progress is not None and reported < 1.0:
            on_progress(1.0)
        return tokens
