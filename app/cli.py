"""CLI commands for scribeline."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
import logging
from pathlib import Path
import shutil
import time
from typing import Optional

import typer

from .config import (
    AppConfig,
    EngineConfig,
    check_output_format,
    get_config_path,
    load_config,
    resolve_model_dir,
)
from .logging import configure_logging
from engine import NotReadyError
from media.audio import MediaError
from media.recorder import MicrophoneRecorder, RecordingError
from output.text import render_transcript, write_text_file
from pipeline import Transcriber, TranscriptionResult, create_transcriber


def _load_or_exit() -> AppConfig:
    try:
        return load_config()
    except ValueError as exc:
        typer.secho(f"Config error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(f"Config path: {get_config_path()}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


def _print_progress(value: float) -> None:
    typer.echo(f"Progress: {value * 100:5.1f}%", err=True)


async def _install_and_transcribe(
    transcriber: Transcriber, source: Path | bytes
) -> TranscriptionResult:
    await transcriber.install()
    transcriber.on_progress(_print_progress)
    try:
        if isinstance(source, Path):
            return await transcriber.transcribe_file(source)
        return await transcriber.transcribe(source)
    finally:
        transcriber.off_progress(_print_progress)


def _output_format_or_exit(fmt: Optional[str], config: AppConfig) -> str:
    try:
        return check_output_format(fmt or config.output.format)
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


def create_cli_app() -> typer.Typer:
    """Create the Typer CLI app (kept as a factory to avoid global state)."""

    app = typer.Typer(
        add_completion=False,
        help="Offline audio/video transcription with sentence timestamps using faster-whisper.",
        no_args_is_help=True,
    )

    @app.command("run")
    def run(
        input_file: Path = typer.Argument(
            ...,
            exists=True,
            readable=True,
            dir_okay=False,
            help="Path to an audio or video file.",
        ),
        out: Optional[Path] = typer.Option(
            None,
            "--out",
            "-o",
            file_okay=False,
            dir_okay=True,
            help="Output directory for the transcript (defaults to input file directory).",
        ),
        fmt: Optional[str] = typer.Option(
            None,
            "--format",
            "-f",
            help="Transcript format: txt, json or srt (default: config, then txt).",
        ),
        model: Optional[str] = typer.Option(
            None,
            "--model",
            help="Whisper model size or local model path (default: medium.en).",
        ),
        device: Optional[str] = typer.Option(
            None,
            "--device",
            help="Inference device (overrides config; default: cpu).",
        ),
        language: Optional[str] = typer.Option(
            None,
            "--language",
            help="Spoken language code (overrides config; default: en).",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            help="Enable debug logging.",
        ),
    ) -> None:
        """Transcribe a single media file to a timestamped transcript."""

        configure_logging(verbose=verbose)
        logger = logging.getLogger("scribeline")

        config = _load_or_exit()
        output_format = _output_format_or_exit(fmt, config)

        engine_config = replace(
            config.engine,
            model=model or config.engine.model,
            device=device or config.engine.device,
            language=language or config.engine.language,
        )

        output_dir = out or input_file.parent
        output_path = output_dir / f"{input_file.stem}.{output_format}"

        try:
            transcriber = create_transcriber(engine_config)
            logger.info("Transcribing: %s", input_file.name)
            result = asyncio.run(_install_and_transcribe(transcriber, input_file))
            write_text_file(output_path, render_transcript(result, output_format))
        except (MediaError, NotReadyError) as exc:
            typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc
        except Exception as exc:  # noqa: BLE001 - intentional CLI boundary
            typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc

        typer.echo(str(output_path))

    @app.command("record")
    def record(
        duration: Optional[float] = typer.Option(
            None,
            "--duration",
            "-d",
            min=0,
            help="Seconds to record (default: until Enter is pressed).",
        ),
        out: Optional[Path] = typer.Option(
            None,
            "--out",
            "-o",
            file_okay=False,
            dir_okay=True,
            help="Output directory for the transcript (defaults to the current directory).",
        ),
        fmt: Optional[str] = typer.Option(
            None,
            "--format",
            "-f",
            help="Transcript format: txt, json or srt (default: config, then txt).",
        ),
        input_device: Optional[int] = typer.Option(
            None,
            "--input-device",
            help="Microphone device index (default: system default input).",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            help="Enable debug logging.",
        ),
    ) -> None:
        """Record from the microphone and transcribe the recording."""

        configure_logging(verbose=verbose)

        config = _load_or_exit()
        output_format = _output_format_or_exit(fmt, config)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        output_path = (out or Path.cwd()) / f"recording-{stamp}.{output_format}"

        try:
            transcriber = create_transcriber(config.engine)
            recorder = MicrophoneRecorder(device=input_device)
            recorder.start()
            try:
                if duration is None:
                    typer.prompt(
                        "Recording... press Enter to stop",
                        default="",
                        show_default=False,
                        err=True,
                    )
                else:
                    typer.echo(f"Recording for {duration:g}s...", err=True)
                    time.sleep(duration)
            finally:
                data = recorder.stop()
            result = asyncio.run(_install_and_transcribe(transcriber, data))
            write_text_file(output_path, render_transcript(result, output_format))
        except (MediaError, NotReadyError, RecordingError) as exc:
            typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc
        except Exception as exc:  # noqa: BLE001 - intentional CLI boundary
            typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc

        typer.echo(str(output_path))

    @app.command("install")
    def install(
        model: Optional[str] = typer.Option(None, "--model", help="Model to install."),
        verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    ) -> None:
        """Download and load the transcription model."""

        configure_logging(verbose=verbose)
        config = _load_or_exit()
        engine_config = replace(config.engine, model=model or config.engine.model)

        try:
            transcriber = create_transcriber(engine_config)
        except ValueError as exc:
            typer.secho(f"Config error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc

        if not asyncio.run(transcriber.install()):
            typer.secho(
                "Installation failed. Re-run with --verbose for details.",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        typer.echo(f"Model '{engine_config.model}' ready in {resolve_model_dir(engine_config)}")

    @app.command("status")
    def status() -> None:
        """Show configuration and tool availability."""

        config = _load_or_exit()
        typer.echo(describe_status(config.engine))

    @app.command("menu")
    def menu() -> None:
        """Open the interactive terminal UI."""

        from .menu import run_menu

        run_menu()

    return app


def describe_status(engine: EngineConfig) -> str:
    """Return a short report of the engine setup."""

    model_dir = resolve_model_dir(engine)
    lines = [
        f"Config: {get_config_path()}",
        f"Backend: {engine.backend}",
        f"Model: {engine.model} ({engine.language})",
        f"Model directory: {model_dir}{'' if model_dir.exists() else ' (not created yet)'}",
        f"FFmpeg: {'found' if shutil.which('ffmpeg') else 'not found'}",
    ]
    return "\n".join(lines)
