# src/core/errors.py — v1
"""Error taxonomy of the translation pipeline.

Retryable backend signals (RateLimited, QuotaExceeded, ServiceUnavailable)
never escape the retry controller except wrapped in RetriesExhausted
(llm/retry.py). CacheIOError is always contained by the orchestrator.
"""

from __future__ import annotations


class TranslationPipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class MissingParameters(TranslationPipelineError):
    """Request lacks a target language or a document. Client error, never retried."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required parameters: {', '.join(missing)}")


class RateLimited(TranslationPipelineError):
    """Backend refused the call because of a rate limit (HTTP 429)."""

    status_code = 429


class QuotaExceeded(RateLimited):
    """Backend quota is used up for the current window."""


class ServiceUnavailable(TranslationPipelineError):
    """Backend temporarily unavailable or overloaded (HTTP 503)."""

    status_code = 503


class MalformedModelOutput(TranslationPipelineError):
    """Healed model output still does not parse as the expected JSON."""

    def __init__(self, message: str, offset: int | None = None):
        self.offset = offset
        super().__init__(message)


class CacheIOError(TranslationPipelineError):
    """Reading or writing persisted cache state failed."""


class PipelineTimeout(TranslationPipelineError):
    """A document exceeded the pipeline wall-clock ceiling."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"Translation exceeded the {timeout_s:g}s time limit")
