# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Everything is built from Settings through the real factories (backend
pool, cache store, app); only the provider adapters are replaced by stub
clients, keyed by model name. No network, no Docker.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from cvtranslate.config.settings import Settings
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.models import LLMResponse, Message


class StubClient(BaseLLMClient):
    """Backend stub answering with a fixed reply, or failing every call."""

    def __init__(
        self,
        model: str,
        reply: str | Callable[[str], str] = "{}",
        error: Exception | None = None,
    ) -> None:
        self._model = model
        self._reply = reply
        self._error = error
        self.prompts: list[str] = []

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        prompt = messages[-1].content
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        content = self._reply(prompt) if callable(self._reply) else self._reply
        return LLMResponse(content=content, model=self._model, provider="stub")

    @property
    def provider_name(self) -> str:
        return "stub"


@pytest.fixture
def stub_client() -> type[StubClient]:
    return StubClient


@pytest.fixture
def integration_settings(tmp_path: Path) -> Settings:
    """Settings pointing at stub models, a temp cache and near-zero backoff."""
    return Settings(
        _env_file=None,
        llm_primary="google:stub-primary",
        llm_fallback="google:stub-fallback",
        cache_root=tmp_path / "cache",
        retry_base_delay_s=0.001,
        stream_fragment_delay_s=0.0,
        log_format="json",
    )


@pytest.fixture
def install_backends(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Route client creation for stub-primary / stub-fallback to the given clients."""

    def _install(primary: BaseLLMClient, fallback: BaseLLMClient | None = None) -> None:
        clients: dict[str, Any] = {"stub-primary": primary, "stub-fallback": fallback or primary}

        def create(provider: str, model: str, settings: Settings | None = None, **kwargs: Any) -> BaseLLMClient:
            return clients[model]

        monkeypatch.setattr("cvtranslate.llm.backends.create_llm_client", create)

    return _install
