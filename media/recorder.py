"""Microphone capture via sounddevice."""

from __future__ import annotations

import io
import logging
import threading
import time
from typing import Any, Callable, Optional
import wave

from app.errors import TranscriptionError

from .audio import SAMPLE_RATE


logger = logging.getLogger(__name__)

CHANNELS = 1
SAMPLE_WIDTH = 2  # 16-bit PCM
BLOCK_SIZE = 1024


class RecordingError(TranscriptionError):
    """Raised when the microphone cannot be opened or captured nothing."""

    stage = "recording"


def _default_stream_factory(**kwargs: Any) -> Any:
    try:
        import sounddevice as sd
    except (ModuleNotFoundError, OSError) as exc:
        raise RecordingError(
            "Microphone capture needs sounddevice and PortAudio. Install with `pip install -e .`."
        ) from exc
    return sd.RawInputStream(**kwargs)


class MicrophoneRecorder:
    """Records 16kHz mono 16-bit audio from an input device.

    ``stop()`` returns the capture as WAV bytes, ready for
    ``Transcriber.transcribe``.
    """

    def __init__(
        self,
        device: Optional[int] = None,
        sample_rate: int = SAMPLE_RATE,
        stream_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.device = device
        self.sample_rate = sample_rate
        self._stream_factory = stream_factory or _default_stream_factory
        self._stream: Any = None
        self._frames: list[bytes] = []
        self._lock = threading.Lock()
        self._started_at = 0.0

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    def _callback(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.warning("Audio callback status: %s", status)
        # The buffer is reused by the stream; copy it.
        with self._lock:
            self._frames.append(bytes(indata))

    def start(self) -> None:
        """Open the input stream and start capturing.

        Raises:
            RecordingError: If already recording or the device cannot be opened.
        """

        if self._stream is not None:
            raise RecordingError("Already recording.")

        with self._lock:
            self._frames = []

        try:
            stream = self._stream_factory(
                samplerate=self.sample_rate,
                channels=CHANNELS,
                dtype="int16",
                blocksize=BLOCK_SIZE,
                device=self.device,
                callback=self._callback,
            )
            stream.start()
        except RecordingError:
            raise
        except Exception as exc:
            raise RecordingError(f"Failed to open microphone: {exc}") from exc

        self._stream = stream
        self._started_at = time.monotonic()
        logger.info("Recording started")

    def stop(self) -> bytes:
        """Stop capturing and return the audio as WAV bytes.

        Raises:
            RecordingError: If not recording or no audio was captured.
        """

        if self._stream is None:
            raise RecordingError("Not currently recording.")

        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except Exception as exc:  # noqa: BLE001 - the captured frames are still usable
            logger.warning("Error stopping audio stream: %s", exc)

        with self._lock:
            frames, self._frames = self._frames, []

        pcm = b"".join(frames)
        if not pcm:
            raise RecordingError("No audio data captured.")

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(CHANNELS)
            wav_file.setsampwidth(SAMPLE_WIDTH)
            wav_file.setframerate(self.sample_rate)
            wav_file.writeframes(pcm)

        logger.info(
            "Recording stopped: %.1fs captured in %.1fs",
            len(pcm) / (self.sample_rate * SAMPLE_WIDTH * CHANNELS),
            time.monotonic() - self._started_at,
        )
        return buffer.getvalue()
