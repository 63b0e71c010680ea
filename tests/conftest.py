from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import pytest

from engine.adapter import EngineAdapter
from engine.base import InstallationError, RecognizedToken, TranscriptionEngine


class FakeEngine(TranscriptionEngine):
    """Engine double that replays canned tokens and progress values."""

    def __init__(
        self,
        tokens: Sequence[RecognizedToken] = (),
        progress: Sequence[float] = (),
        install_error: Optional[Exception] = None,
        transcribe_error: Optional[Exception] = None,
    ) -> None:
        self.tokens = list(tokens)
        self.progress = list(progress)
        self.install_error = install_error
        self.transcribe_error = transcribe_error
        self.install_calls: list[Path] = []
        self.transcribe_calls: list[tuple[Path, Optional[str]]] = []

    def install(self, model_dir: Path) -> None:
        self.install_calls.append(model_dir)
        if self.install_error is not None:
            raise self.install_error

    def transcribe(self, audio_path, language=None, on_progress=None):
        self.transcribe_calls.append((audio_path, language))
        for value in self.progress:
            if on_progress is not None:
                on_progress(value)
        if self.transcribe_error is not None:
            raise self.transcribe_error
        return list(self.tokens)


def token(text: str, start: str, end: str) -> RecognizedToken:
    return RecognizedToken(text=text, start=start, end=end)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine(
        tokens=[
            token("Hello", "00:00:00,000", "00:00:00,500"),
            token(" world.", "00:00:00,500", "00:00:01,000"),
        ],
        progress=[0.1, 0.4, 0.9, 1.0],
    )


@pytest.fixture
def adapter(fake_engine: FakeEngine, tmp_path: Path) -> EngineAdapter:
    return EngineAdapter(fake_engine, model_dir=tmp_path / "models", language="en")


@pytest.fixture
def broken_install_engine() -> FakeEngine:
    return FakeEngine(install_error=InstallationError("download failed"))
