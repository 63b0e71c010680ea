"""Logging setup for scribeline."""

from __future__ import annotations

import logging


# Third-party loggers that are chatty at INFO/DEBUG.
_NOISY_LOGGERS = ("faster_whisper", "httpx", "huggingface_hub", "asyncio")


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        verbose: When True, sets the log level to DEBUG and includes logger
            names. Otherwise WARNING.
    """

    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(levelname)s %(name)s: %(message)s" if verbose else "%(levelname)s: %(message)s"
    logging.basicConfig(level=level, format=fmt)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
