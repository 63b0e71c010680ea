"""Interactive TUI for scribeline."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
from pathlib import Path
import platform
import shutil
from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, DataTable, Footer, Header, Input, ProgressBar, Static

from .config import (
    AppConfig,
    OutputConfig,
    check_output_format,
    get_config_path,
    load_config,
    resolve_model_dir,
    save_config,
)
from .errors import TranscriptionError
from media.audio import is_supported_media
from media.recorder import MicrophoneRecorder, RecordingError
from output.text import render_transcript, write_text_file
from pipeline import Transcriber, TranscriptionResult, create_transcriber


logger = logging.getLogger(__name__)


def run_menu() -> None:
    """Run the interactive menu."""

    MenuApp().run()


def _format_bytes(value: float) -> str:
    """Format bytes in a human-readable form."""

    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(value)
    for unit in units:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def _format_clock(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def _system_stats(transcriber: Optional[Transcriber], model_dir: Path) -> str:
    """Return a formatted snapshot of engine and system stats."""

    ready = transcriber is not None and transcriber.check_ready()
    lines = [
        f"Engine: {'ready' if ready else 'not ready'}",
        f"Models: {model_dir}",
        f"FFmpeg: {'found' if shutil.which('ffmpeg') else 'not found'}",
        f"Python: {platform.python_version()}",
    ]

    try:
        import psutil  # type: ignore
    except ModuleNotFoundError:
        lines.append("psutil is not installed. Install with `pip install -e .`.")
        return "\n".join(lines)

    cpu = psutil.cpu_percent(interval=None)
    memory = psutil.virtual_memory()
    disk_root = model_dir if model_dir.exists() else Path.cwd()
    disk = psutil.disk_usage(str(disk_root))
    lines += [
        f"CPU usage: {cpu:.1f}%",
        f"RAM: {_format_bytes(memory.used)} / {_format_bytes(memory.total)} ({memory.percent:.1f}%)",
        f"Disk ({disk_root}): {_format_bytes(disk.free)} free / {_format_bytes(disk.total)} total",
    ]
    return "\n".join(lines)


class MenuApp(App[None]):
    """Top-level Textual app; owns the process-wide transcriber."""

    CSS = """
    Screen {
        align: center middle;
    }

    .title {
        text-style: bold;
        margin: 0 0 1 0;
    }

    #menu, #form, #panel {
        width: 90;
    }

    #segments {
        height: 12;
    }

    #message {
        margin-top: 1;
    }

    .error {
        color: red;
    }
    """

    BINDINGS = [("q", "quit", "Quit")]

    def __init__(self) -> None:
        super().__init__()
        self.config = AppConfig()
        self.transcriber: Optional[Transcriber] = None
        self.startup_error = ""

    def on_mount(self) -> None:
        """Load config, start engine installation, show the main menu."""

        try:
            self.config = load_config()
        except ValueError as exc:
            self.startup_error = f"Config error: {exc}"

        try:
            self.transcriber = create_transcriber(self.config.engine)
        except ValueError as exc:
            self.startup_error = f"Engine error: {exc}"
        else:
            self.run_worker(self.transcriber.install(), name="install")

        self.push_screen(MainMenuScreen())


class MainMenuScreen(Screen):
    """Main menu screen with navigation options."""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("scribeline", classes="title")
        with Vertical(id="menu"):
            yield Button("1) Transcribe a file", id="transcribe")
            yield Button("2) Settings", id="settings")
            yield Button("3) System status", id="status")
            yield Button("4) Exit", id="exit")
            yield Static("", id="message", classes="error")
        yield Footer()

    def on_show(self) -> None:
        self.query_one("#message", Static).update(self.app.startup_error)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "transcribe":
            self.app.push_screen(TranscribeScreen())
        elif button_id == "settings":
            self.app.push_screen(SettingsScreen())
        elif button_id == "status":
            self.app.push_screen(StatusScreen())
        elif button_id == "exit":
            self.app.exit()


class TranscribeScreen(Screen):
    """Screen for running a transcription and viewing its segments."""

    def __init__(self) -> None:
        super().__init__()
        self._busy = False
        self._result: Optional[TranscriptionResult] = None
        self._input_path: Optional[Path] = None
        self._recorder: Optional[MicrophoneRecorder] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("Transcribe a file or a recording", classes="title")
        with Vertical(id="form"):
            yield Static("Checking engine...", id="readiness")
            yield Static("Input file (audio or video):")
            yield Input(placeholder="/path/to/recording.webm", id="input_path")
            with Horizontal():
                yield Button("Run", id="run", disabled=True)
                yield Button("Record", id="record", disabled=True)
                yield Button("Save", id="save", disabled=True)
                yield Button("Back", id="back")
            yield ProgressBar(total=100, show_eta=False, id="progress")
            yield DataTable(id="segments")
            yield Static("", id="transcript")
            yield Static("", id="message")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#segments", DataTable).add_columns("Start", "End", "Text")
        if self.app.transcriber is not None:
            self.app.transcriber.on_progress(self._on_progress)
        self._poll_timer = self.set_interval(1.0, self._poll_readiness)
        self._poll_readiness()

    def on_unmount(self) -> None:
        if self.app.transcriber is not None:
            self.app.transcriber.off_progress(self._on_progress)
        if self._recorder is not None and self._recorder.is_recording:
            try:
                self._recorder.stop()
            except RecordingError as exc:
                logger.debug("Discarded recording on exit: %s", exc)

    def _poll_readiness(self) -> None:
        transcriber = self.app.transcriber
        ready = transcriber is not None and transcriber.check_ready()
        label = "Engine ready." if ready else "Engine is installing or unavailable..."
        self.query_one("#readiness", Static).update(label)
        self._update_buttons(ready)
        if ready:
            self._poll_timer.stop()

    def _on_progress(self, value: float) -> None:
        self.query_one("#progress", ProgressBar).update(progress=value * 100)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "back":
            self.app.pop_screen()
        elif event.button.id == "run":
            self._start_transcription()
        elif event.button.id == "record":
            self._toggle_recording()
        elif event.button.id == "save":
            self._save()

    def _start_transcription(self) -> None:
        if self._busy or self.app.transcriber is None:
            return

        input_value = self.query_one("#input_path", Input).value.strip()
        if not input_value:
            self._set_message("Enter an input file path.", error=True)
            return

        input_path = Path(input_value).expanduser()
        if not input_path.is_file():
            self._set_message(f"Input file does not exist: {input_path}", error=True)
            return
        if not is_supported_media(input_path):
            self._set_message("Unsupported file type. Use an audio or video file.", error=True)
            return

        self._input_path = input_path
        self._begin(input_path)

    def _toggle_recording(self) -> None:
        if self.app.transcriber is None:
            return

        if self._recorder is None or not self._recorder.is_recording:
            if self._busy:
                return
            self._recorder = MicrophoneRecorder()
            try:
                self._recorder.start()
            except RecordingError as exc:
                self._set_message(str(exc), error=True)
                return
            self.query_one("#record", Button).label = "Stop"
            self.query_one("#run", Button).disabled = True
            self._set_message("Recording... press Stop to transcribe.")
            return

        self.query_one("#record", Button).label = "Record"
        try:
            data = self._recorder.stop()
        except RecordingError as exc:
            self._set_message(str(exc), error=True)
            self._set_busy(False)
            return
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        self._input_path = Path.cwd() / f"recording-{stamp}.wav"
        self._begin(data)

    def _begin(self, source: Path | bytes) -> None:
        self._set_message("Transcribing... This may take a while.")
        self._set_busy(True)
        self.query_one("#progress", ProgressBar).update(progress=0)
        self.run_worker(self._transcribe(source), exclusive=True)

    async def _transcribe(self, source: Path | bytes) -> None:
        transcriber = self.app.transcriber
        try:
            if isinstance(source, Path):
                result = await transcriber.transcribe_file(source)
            else:
                result = await transcriber.transcribe(source)
        except TranscriptionError as exc:
            self._set_message(f"{type(exc).__name__}: {exc}", error=True)
        except Exception as exc:  # noqa: BLE001 - UI boundary
            self._set_message(f"Error: {exc}", error=True)
        else:
            self._show_result(result)
            self._set_message(f"Done: {len(result.segments)} segments.")
        finally:
            if self.is_mounted:
                self._set_busy(False)

    def _show_result(self, result: TranscriptionResult) -> None:
        self._result = result
        table = self.query_one("#segments", DataTable)
        table.clear()
        for segment in result.segments:
            table.add_row(_format_clock(segment.start), _format_clock(segment.end), segment.text)
        self.query_one("#transcript", Static).update(result.text)
        self.query_one("#save", Button).disabled = False

    def _save(self) -> None:
        if self._result is None or self._input_path is None:
            return
        fmt = self.app.config.output.format
        output_path = self._input_path.with_suffix(f".{fmt}")
        try:
            write_text_file(output_path, render_transcript(self._result, fmt))
        except OSError as exc:
            self._set_message(f"Could not save transcript: {exc}", error=True)
            return
        self._set_message(f"Saved transcript: {output_path}")

    def _set_message(self, text: str, error: bool = False) -> None:
        message = self.query_one("#message", Static)
        message.update(text)
        message.remove_class("error")
        if error:
            message.add_class("error")

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        transcriber = self.app.transcriber
        self._update_buttons(transcriber is not None and transcriber.check_ready())

    def _update_buttons(self, ready: bool) -> None:
        recording = self._recorder is not None and self._recorder.is_recording
        self.query_one("#run", Button).disabled = self._busy or recording or not ready
        self.query_one("#record", Button).disabled = self._busy or not ready


class SettingsScreen(Screen):
    """Screen for viewing and updating config values."""

    def __init__(self) -> None:
        super().__init__()
        self._config: AppConfig = AppConfig()

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("Settings", classes="title")
        with Vertical(id="form"):
            yield Static("", id="config_path")
            yield Static("Model:")
            yield Input(id="model")
            yield Static("Device:")
            yield Input(id="device")
            yield Static("Language:")
            yield Input(id="language")
            yield Static("Save format (txt, json, srt):")
            yield Input(id="format")
            with Horizontal():
                yield Button("Save", id="save")
                yield Button("Reset to defaults", id="reset")
                yield Button("Back", id="back")
            yield Static("", id="message")
        yield Footer()

    def on_show(self) -> None:
        self._reload_config()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "back":
            self.app.pop_screen()
        elif button_id == "save":
            self._save()
        elif button_id == "reset":
            self._write(AppConfig(), "Reset to defaults")

    def _reload_config(self) -> None:
        try:
            self._config = load_config()
        except ValueError as exc:
            self._set_message(f"Config error: {exc}", error=True)
            self._config = AppConfig()

        self.query_one("#config_path", Static).update(f"Config: {get_config_path()}")
        self._fill(self._config)

    def _fill(self, config: AppConfig) -> None:
        self.query_one("#model", Input).value = config.engine.model
        self.query_one("#device", Input).value = config.engine.device
        self.query_one("#language", Input).value = config.engine.language
        self.query_one("#format", Input).value = config.output.format

    def _save(self) -> None:
        engine = self._config.engine
        try:
            fmt = check_output_format(
                self.query_one("#format", Input).value.strip() or self._config.output.format
            )
        except ValueError as exc:
            self._set_message(str(exc), error=True)
            return

        new_config = AppConfig(
            engine=replace(
                engine,
                model=self.query_one("#model", Input).value.strip() or engine.model,
                device=self.query_one("#device", Input).value.strip() or engine.device,
                language=self.query_one("#language", Input).value.strip() or engine.language,
            ),
            output=OutputConfig(format=fmt),
        )
        self._write(new_config, "Saved")

    def _write(self, config: AppConfig, verb: str) -> None:
        try:
            path = save_config(config)
        except (OSError, ValueError) as exc:
            self._set_message(f"Config error: {exc}", error=True)
            return

        self._config = config
        self.app.config = replace(self.app.config, output=config.output)
        self._fill(config)
        self._set_message(f"{verb}: {path}. Engine changes apply on next start.")

    def _set_message(self, text: str, error: bool = False) -> None:
        message = self.query_one("#message", Static)
        message.update(text)
        message.remove_class("error")
        if error:
            message.add_class("error")


class StatusScreen(Screen):
    """Screen for live engine and system status."""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("System status (live)", classes="title")
        with Vertical(id="panel"):
            yield Static("", id="stats")
            with Horizontal():
                yield Button("Refresh", id="refresh")
                yield Button("Back", id="back")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh()
        self.set_interval(1.0, self._refresh)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "back":
            self.app.pop_screen()
        elif event.button.id == "refresh":
            self._refresh()

    def _refresh(self) -> None:
        model_dir = resolve_model_dir(self.app.config.engine)
        self.query_one("#stats", Static).update(_system_stats(self.app.transcriber, model_dir))
