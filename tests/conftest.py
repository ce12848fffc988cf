# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a scripted fake LLM backend, a sample CV document, settings and
pipeline factories rooted in temp directories. No network I/O.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from cvtranslate.cache.json_store import JsonCacheStore
from cvtranslate.config.settings import Settings
from cvtranslate.llm.backends import BackendPool
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.models import LLMResponse, Message
from cvtranslate.pipeline.orchestrator import TranslationPipeline

_PAYLOAD_MARKER = "JSON to translate:\n"


def _map_strings(value: Any, fn: Callable[[str], str]) -> Any:
    if isinstance(value, str):
        return fn(value)
    if isinstance(value, list):
        return [_map_strings(v, fn) for v in value]
    if isinstance(value, dict):
        return {k: _map_strings(v, fn) for k, v in value.items()}
    return value


def prefix_translation(payload: str, prefix: str = "FR:") -> str:
    """Fake translation: prefix every string value, one JSON object per line."""
    lines = [line for line in payload.splitlines() if line.strip()]
    return "\n".join(
        json.dumps(_map_strings(json.loads(line), lambda s: prefix + s), ensure_ascii=False)
        for line in lines
    )


class FakeLLMClient(BaseLLMClient):
    """Scripted backend.

    Raises the queued ``failures`` first (one per call), then answers with
    ``responder(payload)`` where payload is the JSON text of the prompt.
    """

    def __init__(
        self,
        name: str = "fake",
        responder: Callable[[str], str] | None = None,
        failures: list[Exception] | None = None,
    ) -> None:
        self._model = name
        self._responder = responder or prefix_translation
        self._failures = list(failures or [])
        self.calls: list[str] = []

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        prompt = messages[-1].content
        self.calls.append(prompt)
        if self._failures:
            raise self._failures.pop(0)
        payload = prompt.split(_PAYLOAD_MARKER, 1)[-1]
        return LLMResponse(content=self._responder(payload), model=self._model, provider="fake")

    @property
    def provider_name(self) -> str:
        return "fake"


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_cv() -> dict[str, Any]:
    """Small but realistic CV document."""
    return {
        "personalInfo": {
            "fullName": "Ada Lovelace",
            "professionalTitle": "Software Engineer",
            "avatarUrl": "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB",
        },
        "profile": "Engineer with a passion for analytical engines.",
        "contact": {
            "email": "ada@example.com",
            "phone": "+44 20 7946 0000",
            "location": "London",
        },
        "skills": ["Mathematics", "Programming", "Technical writing"],
        "experiences": [
            {
                "id": "exp-1",
                "title": "Analyst",
                "company": "Babbage & Co",
                "period": "1842-1843",
                "missions": ["Wrote the first algorithm", "Translated the Menabrea memoir"],
            }
        ],
        "languages": [{"name": "English", "level": "Native"}],
    }


# === FIXTURES: Fake LLM ===


@pytest.fixture
def fake_llm() -> type[FakeLLMClient]:
    """The FakeLLMClient class, for tests that script their own backend."""
    return FakeLLMClient


@pytest.fixture
def translating_client() -> FakeLLMClient:
    """Backend that prefixes every string with 'FR:'."""
    return FakeLLMClient(name="primary")


@pytest.fixture
def mock_sleep() -> AsyncMock:
    """Awaitable sleep that records requested delays without waiting."""
    return AsyncMock(return_value=None)


# === FIXTURES: Settings / pipeline ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture
def make_settings(tmp_cache_dir: Path) -> Callable[..., Settings]:
    """Settings factory isolated from any local .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "cache_root": tmp_cache_dir,
            "stream_fragment_delay_s": 0.0,
            "log_format": "text",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_pipeline(
    make_settings: Callable[..., Settings],
    tmp_cache_dir: Path,
    mock_sleep: AsyncMock,
) -> Callable[..., TranslationPipeline]:
    """Pipeline factory wired to fake backends and a temp JSON cache."""

    def _make(
        primary: BaseLLMClient,
        fallback: BaseLLMClient | None = None,
        cache: bool = True,
        **overrides: Any,
    ) -> TranslationPipeline:
        settings = make_settings(**overrides)
        store = JsonCacheStore(tmp_cache_dir, version=settings.cache_version) if cache else None
        return TranslationPipeline(
            settings,
            BackendPool(primary, fallback),
            cache_store=store,
            sleep=mock_sleep,
        )

    return _make
