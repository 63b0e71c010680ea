"""Configuration handling for scribeline.

scribeline loads an optional TOML file from OS-specific locations:

- Linux: ~/.config/scribeline/config.toml
- Windows: %APPDATA%\\scribeline\\config.toml

Downloaded models live under the data directory unless ``[engine].model_dir``
points elsewhere:

- Linux: ~/.local/share/scribeline/models
- Windows: %LOCALAPPDATA%\\scribeline\\models
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import platform
from typing import Any, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore
except ModuleNotFoundError:  # Python 3.10
    import tomli as tomllib  # type: ignore


OUTPUT_FORMATS = ("txt", "json", "srt")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Configuration for the transcription engine."""

    backend: str = "faster-whisper"
    model: str = "medium.en"
    device: str = "cpu"
    language: str = "en"
    model_dir: Optional[Path] = None


@dataclass(frozen=True, slots=True)
class OutputConfig:
    """Configuration for transcript output."""

    format: str = "txt"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def get_config_path() -> Path:
    """Return the default configuration file path for the current OS."""

    system = platform.system().lower()
    if system == "windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "scribeline" / "config.toml"

        # Reasonable fallback for unusual environments.
        return Path.home() / "AppData" / "Roaming" / "scribeline" / "config.toml"

    return Path.home() / ".config" / "scribeline" / "config.toml"


def get_data_dir() -> Path:
    """Return the per-user data directory for the current OS."""

    system = platform.system().lower()
    if system == "windows":
        local = os.environ.get("LOCALAPPDATA")
        if local:
            return Path(local) / "scribeline"
        return Path.home() / "AppData" / "Local" / "scribeline"

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "scribeline"
    return Path.home() / ".local" / "share" / "scribeline"


def resolve_model_dir(config: EngineConfig) -> Path:
    """Return the directory that holds installed models."""

    return config.model_dir or get_data_dir() / "models"


def load_config(path: Path | None = None) -> AppConfig:
    """Load config from a TOML file, falling back to defaults if missing.

    Args:
        path: Optional explicit config path. When None, uses the OS default.

    Raises:
        ValueError: If the config contains unsupported values.
    """

    config_path = path or get_config_path()
    if not config_path.exists():
        return AppConfig()

    with config_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"Invalid config: {exc}") from exc

    engine_raw = _get_table(raw, "engine")
    output_raw = _get_table(raw, "output")
    defaults = AppConfig()

    model_dir = engine_raw.get("model_dir")
    if model_dir is not None:
        model_dir = Path(_get_str(engine_raw, "model_dir", default="")).expanduser()

    engine = EngineConfig(
        backend=_get_str(engine_raw, "backend", default=defaults.engine.backend),
        model=_get_str(engine_raw, "model", default=defaults.engine.model),
        device=_get_str(engine_raw, "device", default=defaults.engine.device),
        language=_get_str(engine_raw, "language", default=defaults.engine.language),
        model_dir=model_dir,
    )

    output = OutputConfig(
        format=check_output_format(
            _get_str(output_raw, "format", default=defaults.output.format)
        )
    )
    return AppConfig(engine=engine, output=output)


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    Args:
        config: Configuration values to persist.
        path: Optional explicit config path. When None, uses the OS default.

    Returns:
        The path that was written.

    Raises:
        ValueError: If unsupported values are provided.
    """

    check_output_format(config.output.format)

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    content = _to_toml(config)
    config_path.write_text(content, encoding="utf-8")
    return config_path


def check_output_format(value: str) -> str:
    """Return the normalized output format or raise ValueError."""

    fmt = value.strip().lower()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unsupported output format {value!r}: set [output].format to one of "
            f"{', '.join(OUTPUT_FORMATS)}."
        )
    return fmt


def _get_table(raw: dict[str, Any], key: str) -> dict[str, Any]:
    """Internal helper to get a TOML table as a dict."""

    value = raw.get(key)
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    raise ValueError(f"Invalid config: [{key}] must be a table.")


def _get_str(raw: dict[str, Any], key: str, default: str) -> str:
    """Internal helper to get a TOML string with a default."""

    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValueError(f"Invalid config: {key} must be a non-empty string.")


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _to_toml(config: AppConfig) -> str:
    """Serialize config data to TOML."""

    lines = [
        "[engine]",
        f"backend = {_quote(config.engine.backend)}",
        f"model = {_quote(config.engine.model)}",
        f"device = {_quote(config.engine.device)}",
        f"language = {_quote(config.engine.language)}",
    ]
    if config.engine.model_dir is not None:
        lines.append(f"model_dir = {_quote(str(config.engine.model_dir))}")
    lines += [
        "",
        "[output]",
        f"format = {_quote(config.output.format)}",
    ]
    return "\n".join(lines) + "\n"
