# src/logging/context.py — v2
"""Contextual logging support — attach request_id, language, mode, fragment to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set once per translation request.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_target_language: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "target_language", default=None
)
_mode: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mode", default=None
)
_fragment: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "fragment", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    target_language: str | None = None
    mode: str | None = None
    fragment: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        target_language=_target_language.get(),
        mode=_mode.get(),
        fragment=_fragment.get(),
    )


def set_request_context(request_id: str, target_language: str, mode: str) -> None:
    """Set request-level context (called once per translation request)."""
    _request_id.set(request_id)
    _target_language.set(target_language)
    _mode.set(mode)
    _fragment.set(None)


def set_fragment_context(index: int | None) -> None:
    """Set fragment-level context (called per fragment translation)."""
    _fragment.set(index)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _target_language.set(None)
    _mode.set(None)
    _fragment.set(None)
