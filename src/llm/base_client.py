# src/llm/base_client.py — v2
"""Abstract LLM client interface shared by every backend adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cvtranslate.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers.

    Adapters surface provider failures as exceptions. They do not retry:
    retry and fallback policy belongs to llm/retry.py.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """Text completion."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, openai)."""

    @property
    def model_name(self) -> str:
        return getattr(self, "_model", "")
