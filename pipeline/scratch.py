"""Scoped temporary files for a single transcription call."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import Optional

from media.audio import unique_name


logger = logging.getLogger(__name__)


class ScratchFiles:
    """Owns the temporary files of one call and removes them on exit.

    Removal failures are logged as cleanup warnings and never raised.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def __enter__(self) -> "ScratchFiles":
        self.directory.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.cleanup()

    def new_path(self, prefix: str, suffix: str = "") -> Path:
        """Reserve a unique path in the scratch directory."""

        return self.track(self.directory / unique_name(prefix, suffix))

    def track(self, path: Path) -> Path:
        """Take ownership of ``path`` so it is removed on exit."""

        if path not in self._paths:
            self._paths.append(path)
        return path

    def cleanup(self) -> None:
        for path in self._paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Cleanup warning: could not remove %s: %s", path, exc)
        self._paths.clear()
