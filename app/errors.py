"""Shared error base for the transcription pipeline."""

from __future__ import annotations


class TranscriptionError(RuntimeError):
    """Base error for pipeline failures.

    Subclasses set ``stage`` to the pipeline stage that failed so callers can
    tell the failure kinds apart without inspecting messages.
    """

    stage = "unknown"
