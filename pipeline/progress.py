"""Progress subscriptions for transcription calls."""

from __future__ import annotations

import logging

from engine.base import ProgressCallback


logger = logging.getLogger(__name__)


class ProgressHub:
    """Delivers progress fractions to subscribers in registration order.

    A callback is removed with the same object that was registered.
    """

    def __init__(self) -> None:
        self._subscribers: list[ProgressCallback] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: ProgressCallback) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: ProgressCallback) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def emit(self, value: float) -> None:
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:  # noqa: BLE001 - a listener must not break transcription
                logger.exception("Progress listener %r failed", callback)
