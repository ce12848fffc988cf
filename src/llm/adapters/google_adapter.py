# src/llm/adapters/google_adapter.py — v2
"""Google Gemini adapter implementing BaseLLMClient.

Uses the google-generativeai SDK. Quota and availability failures are
mapped onto the pipeline error taxonomy so the retry controller can
classify them without knowing the SDK.
"""

from __future__ import annotations

import time
from typing import Any

from cvtranslate.core.errors import QuotaExceeded, RateLimited, ServiceUnavailable
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.models import LLMResponse, Message


class GoogleAdapter(BaseLLMClient):
    """Google Gemini adapter."""

    def __init__(self, model: str = "gemini-2.5-flash", api_key: str = "", **kwargs: Any):
        self._model = model
        self._api_key = api_key

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        import google.generativeai as genai
        from google.api_core import exceptions as google_exceptions

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(
            self._model,
            system_instruction=system,
        )

        gen_config: dict[str, Any] = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }

        # Convert messages to Gemini format
        contents = []
        for m in messages:
            role = "model" if m.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": m.content}]})

        t0 = time.monotonic()
        try:
            resp = await model.generate_content_async(
                contents, generation_config=gen_config,
            )
        except google_exceptions.ResourceExhausted as e:
            if "quota" in str(e).lower():
                raise QuotaExceeded(str(e)) from e
            raise RateLimited(str(e)) from e
        except google_exceptions.ServiceUnavailable as e:
            raise ServiceUnavailable(str(e)) from e
        latency = int((time.monotonic() - t0) * 1000)

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            content=resp.text or "",
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
            model=self._model,
            provider="google",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "google"
