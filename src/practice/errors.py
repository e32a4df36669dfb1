"""
Error taxonomy for the practice delivery engine.

Generation failures are recovered locally (fallback exercises) and only
logged. Evaluation failures are surfaced to the caller.
"""

from __future__ import annotations

RAW_SAMPLE_LENGTH = 200


class PracticeEngineError(Exception):
    """Base class for practice engine errors."""
    pass


class GenerationFailure(PracticeEngineError):
    """Raised when the exercise generator cannot deliver a batch."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ResponseParseFailure(GenerationFailure):
    """Raised when the generator payload cannot be parsed into exercises."""

    def __init__(self, reason: str, raw_payload: str | None = None):
        super().__init__(reason)
        self.raw_sample = truncate_sample(raw_payload)

    def __str__(self) -> str:
        if self.raw_sample:
            return f"{self.reason} (raw: {self.raw_sample!r})"
        return self.reason


class RemediationGenerationFailure(GenerationFailure):
    """Raised when the easier batch after a wrong streak could not be fetched.

    The difficulty drop that triggered the fetch is not rolled back.
    """
    pass


class EvaluationFailure(PracticeEngineError):
    """Raised when exercise data reaching evaluation is malformed."""
    pass


def truncate_sample(raw: str | None, limit: int = RAW_SAMPLE_LENGTH) -> str:
    """Shorten a raw payload for diagnostics."""
    if not raw:
        return ""
    if len(raw) <= limit:
        return raw
    return raw[:limit] + "..."
