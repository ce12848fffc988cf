# src/llm/adapters/openai_adapter.py — v2
"""OpenAI-compatible chat adapter implementing BaseLLMClient.

Uses the official openai SDK with its built-in retries disabled; a custom
``base_url`` points it at any OpenAI-compatible endpoint.
"""

from __future__ import annotations

import time
from typing import Any

from cvtranslate.core.errors import QuotaExceeded, RateLimited, ServiceUnavailable
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.models import LLMResponse, Message


class OpenAIAdapter(BaseLLMClient):
    """OpenAI GPT adapter."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        base_url: str = "",
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._base_url = base_url or None

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        import openai

        client = openai.AsyncOpenAI(
            api_key=self._api_key, base_url=self._base_url, max_retries=0,
        )
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})
        for m in messages:
            oai_messages.append({"role": m.role, "content": m.content})

        t0 = time.monotonic()
        try:
            resp = await client.chat.completions.create(
                model=self._model,
                messages=oai_messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.RateLimitError as e:
            if "quota" in str(e).lower():
                raise QuotaExceeded(str(e)) from e
            raise RateLimited(str(e)) from e
        except openai.APIStatusError as e:
            if e.status_code == 503:
                raise ServiceUnavailable(str(e)) from e
            raise
        latency = int((time.monotonic() - t0) * 1000)

        choice = resp.choices[0]
        usage = resp.usage
        return LLMResponse(
            content=choice.message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self._model,
            provider="openai",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "openai"
