"""Media normalization to 16kHz mono WAV via FFmpeg."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import shutil
import subprocess
import time
import uuid

from app.errors import TranscriptionError


logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {
    ".flac",
    ".m4a",
    ".mkv",
    ".mov",
    ".mp3",
    ".mp4",
    ".ogg",
    ".wav",
    ".webm",
}

SAMPLE_RATE = 16000


class MediaError(TranscriptionError):
    """Base error for media handling failures."""

    stage = "normalizing"


class ConversionError(MediaError):
    """Raised when input media cannot be converted to WAV."""


class FfmpegNotFoundError(ConversionError):
    """Raised when FFmpeg is not available on PATH."""


def is_supported_media(path: Path) -> bool:
    """Return True if the file extension is a known audio/video type."""

    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def find_ffmpeg() -> str:
    """Return the FFmpeg executable path (or raise if missing)."""

    ffmpeg = shutil.which("ffmpeg")
    if not ffmpeg:
        raise FfmpegNotFoundError(
            "FFmpeg not found on PATH. Install FFmpeg and ensure `ffmpeg` is available."
        )
    return ffmpeg


def unique_name(prefix: str, suffix: str) -> str:
    """Return a time-based file name with a random tail."""

    return f"{prefix}-{time.time_ns()}-{uuid.uuid4().hex[:8]}{suffix}"


def build_command(ffmpeg: str, input_path: Path, output_wav: Path) -> list[str]:
    """Return the FFmpeg argument list for a mono 16kHz PCM conversion."""

    return [
        ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(input_path),
        "-vn",
        "-ac",
        "1",
        "-ar",
        str(SAMPLE_RATE),
        "-c:a",
        "pcm_s16le",
        str(output_wav),
    ]


async def convert_to_wav(input_path: Path, output_wav: Path) -> None:
    """Convert any FFmpeg-readable media file into a 16kHz mono WAV.

    Args:
        input_path: Path to an audio or video file of any container/codec.
        output_wav: Output .wav path.

    Raises:
        FfmpegNotFoundError: If ffmpeg is not found.
        ConversionError: If ffmpeg cannot be started or exits non-zero.
    """

    ffmpeg = find_ffmpeg()
    cmd = build_command(ffmpeg, input_path, output_wav)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _stdout, stderr = await process.communicate()
    except OSError as exc:
        raise ConversionError(f"Could not start FFmpeg: {exc}") from exc

    if process.returncode != 0:
        details = stderr.decode("utf-8", errors="replace").strip()
        hint = "FFmpeg failed to process the file."
        extra = f"\n\nDetails:\n{details}" if details else ""
        raise ConversionError(f"{hint}\n\nCommand: {' '.join(cmd)}{extra}") from (
            subprocess.CalledProcessError(process.returncode, cmd, stderr=details)
        )


async def normalize_to_wav(input_path: Path, scratch_dir: Path) -> Path:
    """Convert ``input_path`` to a new WAV file in ``scratch_dir``.

    The input file is deleted once conversion succeeds. When conversion fails
    the input is left in place and the error propagates; removing it is up to
    the caller.

    Returns:
        Path of the new WAV file.
    """

    scratch_dir.mkdir(parents=True, exist_ok=True)
    output_wav = scratch_dir / unique_name("audio", ".wav")
    logger.debug("Converting %s -> %s", input_path, output_wav)
    try:
        await convert_to_wav(input_path, output_wav)
    except ConversionError:
        # FFmpeg may leave a truncated output behind.
        try:
            output_wav.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove partial output %s: %s", output_wav, exc)
        raise

    try:
        input_path.unlink()
    except OSError as exc:
        logger.warning("Could not remove converted input %s: %s", input_path, exc)
    return output_wav
