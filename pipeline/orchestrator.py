"""Transcription orchestrator: bytes in, timestamped segments out."""

from __future__ import annotations

import asyncio
import enum
import logging
from pathlib import Path
import tempfile
from typing import Optional

from engine.adapter import EngineAdapter
from engine.base import NotReadyError, ProgressCallback
from media.audio import normalize_to_wav

from .progress import ProgressHub
from .scratch import ScratchFiles
from .segments import TranscriptionResult, aggregate_segments, build_result


logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    """States of a transcription call."""

    IDLE = "idle"
    RECEIVING = "receiving"
    NORMALIZING = "normalizing"
    INFERRING = "inferring"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


class Transcriber:
    """Drives raw media through normalization, inference and aggregation."""

    def __init__(self, adapter: EngineAdapter, scratch_dir: Optional[Path] = None) -> None:
        self._adapter = adapter
        self._scratch_dir = scratch_dir or Path(tempfile.gettempdir())
        self._progress = ProgressHub()
        self.state = Stage.IDLE

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def check_ready(self) -> bool:
        return self._adapter.is_ready

    async def install(self) -> bool:
        return await self._adapter.install()

    def on_progress(self, callback: ProgressCallback) -> None:
        self._progress.subscribe(callback)

    def off_progress(self, callback: ProgressCallback) -> None:
        self._progress.unsubscribe(callback)

    def _enter(self, stage: Stage) -> None:
        logger.debug("Transcription stage: %s -> %s", self.state.value, stage.value)
        self.state = stage

    async def transcribe(self, data: bytes) -> TranscriptionResult:
        """Transcribe a raw media buffer.

        Raises:
            NotReadyError: If the engine is not installed yet. No files are written.
            ConversionError: If the media cannot be normalized.
            InferenceError: If the engine fails.
        """

        if not self._adapter.is_ready:
            self._enter(Stage.FAILED)
            raise NotReadyError(
                "Transcription engine is not ready. Wait for installation to complete."
            )

        try:
            with ScratchFiles(self._scratch_dir) as scratch:
                self._enter(Stage.RECEIVING)
                upload = scratch.new_path("recording", ".bin")
                await asyncio.to_thread(upload.write_bytes, data)
                logger.debug("Saved %d bytes to %s", len(data), upload)

                self._enter(Stage.NORMALIZING)
                wav_path = scratch.track(await normalize_to_wav(upload, self._scratch_dir))

                self._enter(Stage.INFERRING)
                tokens = await self._adapter.infer(wav_path, on_progress=self._progress.emit)

                self._enter(Stage.AGGREGATING)
                result = build_result(aggregate_segments(tokens))
        except Exception:
            self._enter(Stage.FAILED)
            raise

        self._enter(Stage.COMPLETED)
        logger.info("Transcribed %d segments", len(result.segments))
        return result

    async def transcribe_file(self, path: Path) -> TranscriptionResult:
        """Transcribe a media file without touching the original."""

        data = await asyncio.to_thread(path.read_bytes)
        return await self.transcribe(data)
