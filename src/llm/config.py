# src/llm/config.py — v2
"""Backend role routing.

Two roles exist: ``primary`` (LLM_PRIMARY) and ``fallback`` (LLM_FALLBACK).
An empty fallback assignment resolves to the primary backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from cvtranslate.config.settings import ConfigurationError, Settings

BackendRole = Literal["primary", "fallback"]


@dataclass(frozen=True)
class LLMAssignment:
    """Resolved LLM provider:model for a backend role."""

    provider: str
    model: str
    source: str  # "primary" or "fallback"

    @property
    def key(self) -> str:
        """Return 'provider:model' string."""
        return f"{self.provider}:{self.model}"


def _parse_assignment(value: str) -> tuple[str, str] | None:
    """Parse 'provider:model' string. Returns None if empty."""
    if not value or ":" not in value:
        return None
    provider, model = value.split(":", 1)
    provider, model = provider.strip(), model.strip()
    if not provider or not model:
        return None
    return (provider, model)


def resolve_backend(role: BackendRole, settings: Settings) -> LLMAssignment:
    """Resolve the provider:model assignment for ``role``.

    Raises:
        ConfigurationError: If the primary assignment cannot be parsed.
    """
    if role == "fallback":
        parsed = _parse_assignment(settings.llm_fallback)
        if parsed:
            return LLMAssignment(provider=parsed[0], model=parsed[1], source="fallback")

    parsed = _parse_assignment(settings.llm_primary)
    if parsed is None:
        raise ConfigurationError(f"Invalid LLM_PRIMARY assignment: {settings.llm_primary!r}")
    return LLMAssignment(provider=parsed[0], model=parsed[1], source="primary")
