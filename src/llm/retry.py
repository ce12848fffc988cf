# src/llm/retry.py — v2
"""Retry and fallback policy for a single fragment's backend calls.

Delays grow geometrically from ``base_delay_s``. The first
``fallback_after`` attempts go to the primary backend, the rest to the
fallback backend. Only rate-limit and availability failures are retried;
everything else is re-raised unchanged on the first occurrence.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from cvtranslate.config.settings import Settings
from cvtranslate.core.errors import (
    RateLimited,
    ServiceUnavailable,
    TranslationPipelineError,
)
from cvtranslate.llm.config import BackendRole

logger = logging.getLogger(__name__)

ErrorKind = Literal["rate_limit", "unavailable", "fatal"]

_RATE_LIMIT_SIGNALS = ("429", "quota", "rate limit", "rate-limit", "resource exhausted",
                       "resource_exhausted", "too many requests")
_UNAVAILABLE_SIGNALS = ("503", "unavailable", "overloaded")


class RetriesExhausted(TranslationPipelineError):
    """All attempts for an operation failed with retryable errors."""

    def __init__(self, attempts: int, error_type: str, last_error: Exception):
        self.attempts = attempts
        self.error_type = error_type
        self.last_error = last_error
        super().__init__(
            f"Backend call failed after {attempts} attempts ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration shared by every fragment of a request."""

    max_attempts: int = 5
    base_delay_s: float = 0.5
    backoff_factor: float = 2.0
    fallback_after: int = 2
    jitter: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryConfig:
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay_s=settings.retry_base_delay_s,
            backoff_factor=settings.retry_backoff_factor,
            fallback_after=settings.retry_fallback_after,
            jitter=settings.retry_jitter,
        )


@dataclass
class RetryState:
    """Attempt counter for one fragment; never shared between fragments."""

    attempt: int = 0
    role: BackendRole = "primary"
    delay_s: float = 0.5


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception as rate_limit, unavailable or fatal."""
    if isinstance(error, RateLimited):
        return "rate_limit"
    if isinstance(error, ServiceUnavailable):
        return "unavailable"
    if isinstance(error, TranslationPipelineError):
        return "fatal"

    for attr in ("status_code", "code"):
        status = getattr(error, attr, None)
        if isinstance(status, int):
            if status == 429:
                return "rate_limit"
            if status == 503:
                return "unavailable"

    msg = str(error).lower()
    if any(signal in msg for signal in _RATE_LIMIT_SIGNALS):
        return "rate_limit"
    if any(signal in msg for signal in _UNAVAILABLE_SIGNALS):
        return "unavailable"
    return "fatal"


def _role_for(attempt: int, fallback_after: int) -> BackendRole:
    return "primary" if attempt < fallback_after else "fallback"


async def with_retry(
    operation: Callable[[BackendRole], Awaitable[Any]],
    config: RetryConfig | None = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "operation",
) -> Any:
    """Await ``operation(role)`` until it succeeds or attempts run out.

    Raises:
        RetriesExhausted: If every attempt failed with a retryable error.
        Exception: The first non-retryable error, unchanged.
    """
    config = config or RetryConfig()
    state = RetryState(delay_s=config.base_delay_s)

    while True:
        state.role = _role_for(state.attempt, config.fallback_after)
        try:
            return await operation(state.role)
        except Exception as e:
            error_type = classify_error(e)
            if error_type == "fatal":
                raise

            attempts = state.attempt + 1
            if attempts >= config.max_attempts:
                logger.error(
                    "%s failed on %s backend, giving up after %d attempts (%s)",
                    label, state.role, attempts, error_type,
                )
                raise RetriesExhausted(attempts, error_type, e) from e

            delay = state.delay_s
            if config.jitter:
                delay *= 0.5 + random.random()  # noqa: S311
            logger.warning(
                "%s: %s on %s backend (attempt %d/%d), retrying in %.2fs",
                label, error_type, state.role, attempts, config.max_attempts, delay,
            )
            await sleep(delay)
            state.delay_s *= config.backoff_factor
            state.attempt = attempts
