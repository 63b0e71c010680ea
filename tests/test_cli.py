from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import app.cli as cli
from app.config import AppConfig
from conftest import FakeEngine
from engine.adapter import EngineAdapter
from engine.base import InstallationError
from media.audio import unique_name
from media.recorder import MicrophoneRecorder
from pipeline import Transcriber
import pipeline.orchestrator as orchestrator


runner = CliRunner()


@pytest.fixture(autouse=True)
def default_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_config", lambda: AppConfig())


@pytest.fixture(autouse=True)
def fake_ffmpeg(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_normalize(input_path: Path, scratch_dir: Path) -> Path:
        output = scratch_dir / unique_name("audio", ".wav")
        output.write_bytes(b"RIFF")
        input_path.unlink()
        return output

    monkeypatch.setattr(orchestrator, "normalize_to_wav", fake_normalize)


def _use_engine(monkeypatch: pytest.MonkeyPatch, engine: FakeEngine, tmp_path: Path) -> None:
    def factory(config, scratch_dir=None):
        adapter = EngineAdapter(engine, model_dir=tmp_path / "models", language=config.language)
        return Transcriber(adapter, scratch_dir=tmp_path / "scratch")

    monkeypatch.setattr(cli, "create_transcriber", factory)


def test_run_writes_json_transcript(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_engine: FakeEngine
) -> None:
    _use_engine(monkeypatch, fake_engine, tmp_path)
    media = tmp_path / "talk.webm"
    media.write_bytes(b"webm")

    result = runner.invoke(
        cli.create_cli_app(), ["run", str(media), "--format", "json", "--out", str(tmp_path / "out")]
    )

    assert result.exit_code == 0, result.output
    written = tmp_path / "out" / "talk.json"
    assert json.loads(written.read_text(encoding="utf-8")) == {
        "text": "Hello world.",
        "segments": [{"text": "Hello world.", "start": 0, "end": 1}],
    }
    assert media.exists()


def test_run_without_engine_is_not_ready(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _use_engine(monkeypatch, FakeEngine(install_error=InstallationError("offline")), tmp_path)
    media = tmp_path / "talk.webm"
    media.write_bytes(b"webm")

    result = runner.invoke(cli.create_cli_app(), ["run", str(media)])

    assert result.exit_code == 2
    assert not (tmp_path / "talk.txt").exists()


def test_run_rejects_unknown_format(tmp_path: Path) -> None:
    media = tmp_path / "talk.webm"
    media.write_bytes(b"webm")

    result = runner.invoke(cli.create_cli_app(), ["run", str(media), "--format", "docx"])

    assert result.exit_code == 2


def test_install_reports_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _use_engine(monkeypatch, FakeEngine(install_error=InstallationError("offline")), tmp_path)
    result = runner.invoke(cli.create_cli_app(), ["install"])
    assert result.exit_code == 1


def test_install_success(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_engine: FakeEngine
) -> None:
    _use_engine(monkeypatch, fake_engine, tmp_path)
    result = runner.invoke(cli.create_cli_app(), ["install"])
    assert result.exit_code == 0, result.output
    assert "ready" in result.output


def test_status_lists_model() -> None:
    result = runner.invoke(cli.create_cli_app(), ["status"])
    assert result.exit_code == 0
    assert "Model: medium.en (en)" in result.output


class _MicStream:
    def __init__(self, **kwargs) -> None:
        self.callback = kwargs["callback"]

    def start(self) -> None:
        self.callback(b"\x10\x00" * 1600, 1600, None, None)

    def stop(self) -> None:
        pass

    def close(self) -> None:
        pass


def test_record_transcribes_microphone_capture(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_engine: FakeEngine
) -> None:
    _use_engine(monkeypatch, fake_engine, tmp_path)
    devices: list = []

    def recorder_factory(device=None):
        devices.append(device)
        return MicrophoneRecorder(device=device, stream_factory=_MicStream)

    monkeypatch.setattr(cli, "MicrophoneRecorder", recorder_factory)
    out = tmp_path / "out"

    result = runner.invoke(
        cli.create_cli_app(),
        ["record", "--duration", "0", "--input-device", "3", "--out", str(out)],
    )

    assert result.exit_code == 0, result.output
    written = list(out.glob("recording-*.txt"))
    assert len(written) == 1
    assert written[0].read_text(encoding="utf-8") == "Hello world.\n"
    assert devices == [3]
    assert fake_engine.transcribe_calls


def test_record_without_microphone_exits(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_engine: FakeEngine
) -> None:
    _use_engine(monkeypatch, fake_engine, tmp_path)

    def no_device(**kwargs):
        raise OSError("No input device")

    monkeypatch.setattr(
        cli, "MicrophoneRecorder", lambda device=None: MicrophoneRecorder(stream_factory=no_device)
    )

    result = runner.invoke(cli.create_cli_app(), ["record", "--duration", "0"])

    assert result.exit_code == 2
    assert fake_engine.transcribe_calls == []
