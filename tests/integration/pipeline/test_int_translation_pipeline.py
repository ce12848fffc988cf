# tests/integration/pipeline/test_int_translation_pipeline.py — v1
"""Integration tests for the translation pipeline wired from Settings.

Covers: pipeline/orchestrator.py, llm/backends.py, llm/config.py,
        llm/retry.py, translation/translator.py, chunking/*, healing/*,
        redaction/guard.py, cache/json_store.py, cache/cache_factory.py

Backends are StubClient instances from conftest; everything else is real,
including asyncio.sleep backoff (with a 1ms base delay).
"""

from __future__ import annotations

import json

import pytest

from cvtranslate.core.errors import ServiceUnavailable
from cvtranslate.pipeline.events import DoneEvent, ErrorEvent
from cvtranslate.pipeline.orchestrator import TranslationPipeline

ENGINEER = {"title": "Engineer", "skills": ["Go", "SQL"]}
ENGINEER_FR = '{"title": "Ingénieur", "skills": ["Go", "SQL"]}'


async def _stream(pipeline, document, language):
    return [event async for event in pipeline.stream(document, language)]


# =====================================================================
#  END-TO-END — fixed translation
# =====================================================================

class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_batch_keeps_structure(self, integration_settings, install_backends, stub_client):
        install_backends(stub_client("stub-primary", reply=ENGINEER_FR))
        pipeline = TranslationPipeline.from_settings(integration_settings)

        result = await pipeline.translate_batch(ENGINEER, "French")
        assert list(result) == ["title", "skills"]
        assert len(result["skills"]) == 2
        assert result["title"] == "Ingénieur"

    @pytest.mark.asyncio
    async def test_stream_keeps_structure(self, integration_settings, install_backends, stub_client):
        install_backends(stub_client("stub-primary", reply=ENGINEER_FR))
        pipeline = TranslationPipeline.from_settings(integration_settings)

        events = await _stream(pipeline, ENGINEER, "French")
        done = events[-1]
        assert isinstance(done, DoneEvent)
        assert list(done.document) == ["title", "skills"]
        assert len(done.document["skills"]) == 2

    @pytest.mark.asyncio
    async def test_prompt_carries_language_and_document(
        self, integration_settings, install_backends, stub_client,
    ):
        backend = stub_client("stub-primary", reply=ENGINEER_FR)
        install_backends(backend)
        await TranslationPipeline.from_settings(integration_settings).translate_batch(ENGINEER, "French")

        [prompt] = backend.prompts
        assert "Target language: French" in prompt
        assert '{"title": "Engineer"}' in prompt
        assert '{"skills": ["Go", "SQL"]}' in prompt

    @pytest.mark.asyncio
    async def test_cache_persists_across_pipelines(
        self, integration_settings, install_backends, stub_client,
    ):
        backend = stub_client("stub-primary", reply=ENGINEER_FR)
        install_backends(backend)
        first = await TranslationPipeline.from_settings(integration_settings).translate_batch(ENGINEER, "fr")

        second_pipeline = TranslationPipeline.from_settings(integration_settings)
        events = await _stream(second_pipeline, ENGINEER, "fr")
        assert events[0].cached is True
        assert events[-1].document == first
        assert len(backend.prompts) == 1

        root = integration_settings.cache_root
        index = json.loads((root / "index.json").read_text(encoding="utf-8"))
        [(fingerprint, record)] = index["entries"].items()
        assert record["language"] == "fr"
        payload = json.loads((root / f"{fingerprint}.json").read_text(encoding="utf-8"))
        assert payload["document"] == first


# =====================================================================
#  RESILIENCE — 503 and fallback
# =====================================================================

class TestUnavailableBackend:
    @pytest.mark.asyncio
    async def test_batch_returns_original(self, integration_settings, install_backends, stub_client):
        primary = stub_client("stub-primary", error=ServiceUnavailable("503 Service Unavailable"))
        fallback = stub_client("stub-fallback", error=ServiceUnavailable("503 Service Unavailable"))
        install_backends(primary, fallback)
        pipeline = TranslationPipeline.from_settings(integration_settings)

        result = await pipeline.translate_batch(ENGINEER, "French")
        assert result["title"] == "Engineer"
        assert result == ENGINEER
        assert len(primary.prompts) == 2
        assert len(fallback.prompts) == 3
        assert (await pipeline.cache_store.stats()).count == 0

    @pytest.mark.asyncio
    async def test_stream_reports_exhaustion(self, integration_settings, install_backends, stub_client):
        install_backends(stub_client("stub-primary", error=ServiceUnavailable("503 Service Unavailable")))
        pipeline = TranslationPipeline.from_settings(integration_settings)

        events = await _stream(pipeline, ENGINEER, "French")
        assert isinstance(events[-1], ErrorEvent)
        assert "after 5 attempts" in events[-1].message

    @pytest.mark.asyncio
    async def test_fallback_takes_over(self, integration_settings, install_backends, stub_client):
        primary = stub_client("stub-primary", error=ServiceUnavailable("503 overloaded"))
        fallback = stub_client("stub-fallback", reply=ENGINEER_FR)
        install_backends(primary, fallback)

        result = await TranslationPipeline.from_settings(integration_settings).translate_batch(ENGINEER, "French")
        assert result["title"] == "Ingénieur"
        assert len(primary.prompts) == 2
        assert len(fallback.prompts) == 1


# =====================================================================
#  REDACTION
# =====================================================================

class TestRedaction:
    @pytest.mark.asyncio
    async def test_avatar_restored_and_never_sent(
        self, integration_settings, install_backends, stub_client,
    ):
        avatar = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ"
        document = {
            "personalInfo": {"fullName": "Grace Hopper", "avatarUrl": avatar, "title": "Engineer"},
            "skills": ["COBOL"],
        }

        def echo(prompt: str) -> str:
            return prompt.split("JSON to translate:\n", 1)[1].replace("Engineer", "Ingénieur")

        backend = stub_client("stub-primary", reply=echo)
        install_backends(backend)
        result = await TranslationPipeline.from_settings(
            integration_settings.model_copy(update={"chunk_max_length": 1}),
        ).translate_batch(document, "fr")

        assert result["personalInfo"] == {"fullName": "Grace Hopper", "avatarUrl": avatar, "title": "Ingénieur"}
        assert backend.prompts
        assert not any(avatar in prompt or "avatarUrl" in prompt for prompt in backend.prompts)
