"""Error taxonomy shared across the engine."""

from __future__ import annotations


class JournalInsightError(Exception):
    """Base class for engine errors."""


class ValidationError(JournalInsightError):
    """Caller supplied data that can never succeed; not retried."""


class DimensionMismatch(ValidationError):
    """Two vectors of different lengths were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class BackendUnavailable(JournalInsightError):
    """A generative-text or persistence call failed."""


class EntrySaveError(BackendUnavailable):
    """The primary journal entry could not be persisted."""

    user_message = "Could not save entry, try again."

    def __init__(self, detail: str = ""):
        message = self.user_message if not detail else f"{self.user_message} ({detail})"
        super().__init__(message)
        self.detail = detail


class NoSpeechDetected(JournalInsightError):
    """Transcription ended before any speech was captured."""
