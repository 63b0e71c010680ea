from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from conftest import FakeEngine
from engine.adapter import EngineAdapter, EngineReadiness
from engine.base import InferenceError, NotReadyError


def test_readiness_starts_false_and_only_turns_on() -> None:
    readiness = EngineReadiness()
    assert readiness.ready is False
    readiness.mark_ready()
    readiness.mark_ready()
    assert readiness.ready is True


@pytest.mark.asyncio
async def test_install_marks_ready(adapter: EngineAdapter, fake_engine: FakeEngine) -> None:
    assert not adapter.is_ready
    assert await adapter.install() is True
    assert adapter.is_ready
    assert fake_engine.install_calls == [adapter.model_dir]


@pytest.mark.asyncio
async def test_install_runs_once(adapter: EngineAdapter, fake_engine: FakeEngine) -> None:
    await adapter.install()
    await adapter.install()
    assert len(fake_engine.install_calls) == 1


@pytest.mark.asyncio
async def test_failed_install_is_logged_and_not_retried(
    broken_install_engine: FakeEngine, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    adapter = EngineAdapter(broken_install_engine, model_dir=tmp_path)

    with caplog.at_level(logging.ERROR, logger="engine.adapter"):
        assert await adapter.install() is False
    assert "installation failed" in caplog.text

    assert await adapter.install() is False
    assert len(broken_install_engine.install_calls) == 1
    assert not adapter.is_ready

    with pytest.raises(NotReadyError):
        await adapter.infer(tmp_path / "audio.wav")


@pytest.mark.asyncio
async def test_infer_before_install_is_rejected(
    adapter: EngineAdapter, fake_engine: FakeEngine, tmp_path: Path
) -> None:
    with pytest.raises(NotReadyError) as excinfo:
        await adapter.infer(tmp_path / "audio.wav")
    assert excinfo.value.stage == "inferring"
    assert fake_engine.transcribe_calls == []


@pytest.mark.asyncio
async def test_infer_relays_progress_in_order(
    adapter: EngineAdapter, fake_engine: FakeEngine, tmp_path: Path
) -> None:
    await adapter.install()
    seen: list[float] = []

    tokens = await adapter.infer(tmp_path / "audio.wav", on_progress=seen.append)

    assert seen == [0.1, 0.4, 0.9, 1.0]
    assert [t.text for t in tokens] == ["Hello", " world."]
    assert fake_engine.transcribe_calls == [(tmp_path / "audio.wav", "en")]


@pytest.mark.asyncio
async def test_engine_failure_becomes_inference_error(tmp_path: Path) -> None:
    cause = RuntimeError("decoder crashed")
    engine = FakeEngine(progress=[0.2], transcribe_error=cause)
    adapter = EngineAdapter(engine, model_dir=tmp_path)
    await adapter.install()
    seen: list[float] = []

    with pytest.raises(InferenceError) as excinfo:
        await adapter.infer(tmp_path / "audio.wav", on_progress=seen.append)

    assert excinfo.value.__cause__ is cause
    assert seen == [0.2]


@pytest.mark.asyncio
async def test_overlapping_installs_share_one_attempt(
    adapter: EngineAdapter, fake_engine: FakeEngine
) -> None:
    results = await asyncio.gather(adapter.install(), adapter.install())

    assert results == [True, True]
    assert adapter.is_ready
    assert len(fake_engine.install_calls) == 1
