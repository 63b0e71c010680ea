"""Async adapter around a blocking transcription engine.

The adapter owns the engine readiness state. Installation runs at most once;
inference is rejected until it has succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .base import (
    InferenceError,
    NotReadyError,
    ProgressCallback,
    RecognizedToken,
    TranscriptionEngine,
)


logger = logging.getLogger(__name__)


class EngineReadiness:
    """Readiness flag: starts false, can only be switched on."""

    __slots__ = ("_ready",)

    def __init__(self) -> None:
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        self._ready = True


class EngineAdapter:
    """Runs engine installation and inference off the event loop."""

    def __init__(
        self,
        engine: TranscriptionEngine,
        model_dir: Path,
        language: Optional[str] = "en",
    ) -> None:
        self._engine = engine
        self._model_dir = model_dir
        self._language = language
        self._readiness = EngineReadiness()
        self._install_task: Optional[asyncio.Future[bool]] = None

    @property
    def is_ready(self) -> bool:
        return self._readiness.ready

    @property
    def model_dir(self) -> Path:
        return self._model_dir

    async def install(self) -> bool:
        """Install the engine and model once; return the resulting readiness.

        Failures are logged and leave the adapter not ready for the rest of
        its lifetime. Concurrent and later calls share the first attempt and
        do not retry.
        """

        if self._install_task is None:
            self._install_task = asyncio.ensure_future(self._install())
        return await self._install_task

    async def _install(self) -> bool:
        logger.info("Installing transcription engine into %s", self._model_dir)
        try:
            await asyncio.to_thread(self._engine.install, self._model_dir)
        except Exception:  # noqa: BLE001 - installation failure is not fatal to the process
            logger.exception("Engine installation failed; transcription stays unavailable")
            return False

        self._readiness.mark_ready()
        logger.info("Transcription engine ready")
        return True

    async def infer(
        self,
        wav_path: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[RecognizedToken]:
        """Transcribe a normalized WAV file into tokens.

        Progress values reported by the engine thread are handed to
        ``on_progress`` on the event loop, in order, before this returns.

        Raises:
            NotReadyError: If installation has not completed successfully.
            InferenceError: If the engine fails.
        """

        if not self._readiness.ready:
            raise NotReadyError(
                "Transcription engine is not ready. Wait for installation to complete."
            )

        loop = asyncio.get_running_loop()

        def relay(value: float) -> None:
            if on_progress is not None:
                loop.call_soon_threadsafe(on_progress, value)

        try:
            tokens = await asyncio.to_thread(
                self._engine.transcribe, wav_path, self._language, relay
            )
        except Exception as exc:
            raise InferenceError(f"Transcription engine failed on {wav_path.name}: {exc}") from exc

        logger.debug("Engine returned %d tokens", len(tokens))
        return list(tokens)
