from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from engine import FasterWhisperEngine, create_engine
from app.config import EngineConfig
from engine.base import format_timestamp


class FakeWhisperModel:
    def __init__(self, segments, duration: float) -> None:
        self._segments = segments
        self._duration = duration
        self.kwargs = {}

    def transcribe(self, audio, **kwargs):
        self.kwargs = kwargs
        return iter(self._segments), SimpleNamespace(duration=self._duration)


def _word(text: str, start: float, end: float):
    return SimpleNamespace(word=text, start=start, end=end)


def test_format_timestamp() -> None:
    assert format_timestamp(62.5) == "00:01:02,500"
    assert format_timestamp(3723.004) == "01:02:03,004"
    assert format_timestamp(-1.0) == "00:00:00,000"


def test_transcribe_emits_word_tokens_and_progress() -> None:
    engine = FasterWhisperEngine(model="medium.en")
    model = FakeWhisperModel(
        [
            SimpleNamespace(end=2.0, words=[_word(" Hello", 0.0, 0.5), _word(" world.", 0.5, 2.0)]),
            SimpleNamespace(end=4.0, words=[_word(" Bye.", 3.0, 4.0)]),
        ],
        duration=5.0,
    )
    engine._model = model
    progress: list[float] = []

    tokens = engine.transcribe(Path("a.wav"), language="en", on_progress=progress.append)

    assert [t.text for t in tokens] == [" Hello", " world.", " Bye."]
    assert tokens[1].start == "00:00:00,500"
    assert tokens[1].end == "00:00:02,000"
    assert progress == [0.4, 0.8, 1.0]
    assert model.kwargs == {"language": "en", "word_timestamps": True}


def test_transcribe_requires_install() -> None:
    with pytest.raises(RuntimeError, match="install"):
        FasterWhisperEngine(model="medium.en").transcribe(Path("a.wav"))


def test_create_engine_rejects_unknown_backend() -> None:
    assert isinstance(create_engine(EngineConfig()), FasterWhisperEngine)
    with pytest.raises(ValueError, match="Unsupported engine backend"):
        create_engine(EngineConfig(backend="cloud"))
