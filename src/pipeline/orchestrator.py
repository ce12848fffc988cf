# src/pipeline/orchestrator.py — v2
"""Translation pipeline orchestrator.

Composes redaction, caching, chunking, per-fragment translation with
retry/fallback, output healing and reassembly into two delivery modes:

  stream()           fragments translated strictly in order, one at a time,
                     reported as StartEvent / ChunkEvent / DoneEvent|ErrorEvent
  translate_batch()  fragments fanned out in batches of ``batch_size``;
                     a failed fragment keeps its original text

Nothing is cached unless every fragment was translated and the whole
document was reassembled and parsed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, TypeVar

from cvtranslate.cache.fingerprint import compute_fingerprint
from cvtranslate.cache.models import CacheEntry
from cvtranslate.chunking.framing import frame_document, parse_framed
from cvtranslate.chunking.structural_chunker import StructuralChunker
from cvtranslate.core.errors import CacheIOError, MalformedModelOutput, MissingParameters, PipelineTimeout
from cvtranslate.core.models import Fragment
from cvtranslate.healing.json_healer import heal
from cvtranslate.llm.config import BackendRole
from cvtranslate.llm.models import Message
from cvtranslate.llm.retry import RetryConfig, with_retry
from cvtranslate.logging.context import set_fragment_context, set_request_context
from cvtranslate.pipeline.events import ChunkEvent, DoneEvent, ErrorEvent, PipelineEvent, StartEvent
from cvtranslate.redaction.guard import RedactedField, RedactionGuard
from cvtranslate.translation.translator import translate_fragment

if TYPE_CHECKING:
    from cvtranslate.cache.base_cache_store import BaseCacheStore
    from cvtranslate.chunking.base_chunker import BaseChunker
    from cvtranslate.config.settings import Settings
    from cvtranslate.llm.backends import BackendPool

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HEALTH_PROMPT = "Reply with the single word: pong"


@dataclass
class _Job:
    """Per-request state shared by both delivery modes."""

    language: str
    redacted: Any
    sidecar: list[RedactedField]
    fingerprint: str
    cached: CacheEntry | None = None
    degraded: int = 0
    started: float = field(default_factory=time.monotonic)


class TranslationPipeline:
    """Translate JSON documents fragment by fragment.

    Args:
        settings: Application settings (tuning knobs).
        backends: Primary/fallback LLM clients.
        cache_store: Translation cache, or None to disable caching.
        chunker: Fragment splitter. Defaults to StructuralChunker.
        guard: Redaction guard. Defaults to the configured redacted fields.
        sleep: Awaitable sleep used for backoff and inter-fragment pacing.
    """

    def __init__(
        self,
        settings: Settings,
        backends: BackendPool,
        cache_store: BaseCacheStore | None = None,
        chunker: BaseChunker | None = None,
        guard: RedactionGuard | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._backends = backends
        self._cache = cache_store
        self._chunker = chunker or StructuralChunker(settings)
        self._guard = guard or RedactionGuard.from_settings(settings)
        self._sleep = sleep
        self._retry_config = RetryConfig.from_settings(settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> TranslationPipeline:
        from cvtranslate.cache.cache_factory import create_cache_store
        from cvtranslate.llm.backends import BackendPool

        return cls(
            settings,
            BackendPool.from_settings(settings),
            cache_store=create_cache_store(settings),
        )

    @property
    def cache_store(self) -> BaseCacheStore | None:
        return self._cache

    @property
    def backends(self) -> BackendPool:
        return self._backends

    # ------------------------------------------------------------------
    # Delivery modes
    # ------------------------------------------------------------------

    async def stream(self, document: Any, target_language: str | None) -> AsyncIterator[PipelineEvent]:
        """Translate ``document`` in order, yielding progress events.

        Failures never raise out of the iterator; they end it with an
        ErrorEvent. Closing the iterator stops further backend calls.
        """
        set_request_context(uuid.uuid4().hex[:12], target_language or "", "stream")
        try:
            self._validate(document, target_language)
        except MissingParameters as e:
            logger.info("Rejected stream request: %s", e)
            yield ErrorEvent(message=str(e))
            return
        language = str(target_language)

        job = await self._prepare(document, language)
        if job.cached is not None:
            restored = self._guard.restore(job.cached.document, job.sidecar)
            yield StartEvent(fragment_count=1, cached=True)
            yield ChunkEvent(
                index=0, text=json.dumps(restored, ensure_ascii=False), progress_percent=100,
            )
            yield DoneEvent(success=True, document=restored)
            return

        fragments = self._split(job.redacted)
        yield StartEvent(fragment_count=len(fragments), cached=False)

        deadline = time.monotonic() + self._settings.pipeline_timeout_s
        texts: list[str] = []
        try:
            for fragment in fragments:
                if fragment.index > 0 and self._settings.stream_fragment_delay_s > 0:
                    await self._within(deadline, self._sleep(self._settings.stream_fragment_delay_s))
                text = await self._within(deadline, self._translate_fragment(fragment, language))
                texts.append(text)
                yield ChunkEvent(
                    index=fragment.index,
                    text=text,
                    progress_percent=round((fragment.index + 1) * 100 / len(fragments)),
                )
            translated = self._assemble(texts, job.redacted)
        except Exception as e:  # converted into the terminal error event
            logger.error("Stream translation failed after %d/%d fragments: %s",
                         len(texts), len(fragments), e)
            yield ErrorEvent(message=str(e))
            return

        restored = await self._finish(job, translated)
        yield DoneEvent(success=True, document=restored)

    async def translate_batch(self, document: Any, target_language: str | None) -> Any:
        """Translate ``document`` with batched fan-out and return the result.

        Raises:
            MissingParameters: If the language or the document is missing.
            MalformedModelOutput: If the reassembled document does not parse.
            PipelineTimeout: If the wall-clock ceiling is exceeded.
        """
        set_request_context(uuid.uuid4().hex[:12], target_language or "", "batch")
        self._validate(document, target_language)

        job = await self._prepare(document, str(target_language))
        if job.cached is not None:
            return self._guard.restore(job.cached.document, job.sidecar)

        deadline = time.monotonic() + self._settings.pipeline_timeout_s
        translated = await self._within(deadline, self._translate_batches(job))
        return await self._finish(job, translated)

    async def health_check(self) -> dict[str, Any]:
        """Send a trivial prompt to the primary backend. Errors propagate."""
        client = self._backends.primary
        response = await client.complete(
            messages=[Message(role="user", content=_HEALTH_PROMPT)],
            max_tokens=16,
            temperature=0.0,
        )
        return {
            "status": "ok",
            "response": response.content.strip(),
            "provider": client.provider_name,
            "model": response.model,
        }

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(document: Any, target_language: str | None) -> None:
        missing: list[str] = []
        if not target_language or not str(target_language).strip():
            missing.append("targetLanguage")
        if document is None:
            missing.append("document")
        if missing:
            raise MissingParameters(missing)

    async def _prepare(self, document: Any, language: str) -> _Job:
        redacted, sidecar = self._guard.strip(document)
        job = _Job(
            language=language,
            redacted=redacted,
            sidecar=sidecar,
            fingerprint=compute_fingerprint(redacted, language),
        )
        job.cached = await self._lookup(job.fingerprint)
        logger.info(
            "Translation request: language=%s, fingerprint=%s, cached=%s",
            language, job.fingerprint[:12], job.cached is not None,
        )
        return job

    def _split(self, redacted: Any) -> list[Fragment]:
        fragments = self._chunker.split(frame_document(redacted))
        logger.debug("Document split into %d fragments", len(fragments))
        return fragments

    async def _translate_batches(self, job: _Job) -> Any:
        fragments = self._split(job.redacted)
        size = self._settings.batch_size
        texts: list[str] = []
        for start in range(0, len(fragments), size):
            batch = fragments[start:start + size]
            texts.extend(
                await asyncio.gather(*(self._translate_or_keep(f, job) for f in batch))
            )
        return self._assemble(texts, job.redacted)

    async def _translate_or_keep(self, fragment: Fragment, job: _Job) -> str:
        try:
            return await self._translate_fragment(fragment, job.language)
        except Exception as e:  # degrade to the untranslated fragment
            job.degraded += 1
            logger.warning("Fragment %d kept untranslated: %s", fragment.index, e)
            return fragment.text

    async def _translate_fragment(self, fragment: Fragment, language: str) -> str:
        """Translate, heal and validate one fragment; returns healed text.

        Raises:
            RetriesExhausted: If every backend attempt was rate limited / unavailable.
            MalformedModelOutput: If the healed output does not keep the fragment's shape.
        """
        set_fragment_context(fragment.index)
        if not fragment.text.strip():
            return fragment.text

        async def attempt(role: BackendRole) -> str:
            return await translate_fragment(
                fragment,
                language,
                self._backends.get(role),
                max_tokens=self._settings.llm_max_tokens,
                temperature=self._settings.llm_temperature,
            )

        raw = await with_retry(
            attempt, self._retry_config, sleep=self._sleep, label=f"fragment {fragment.index}",
        )
        expected = parse_framed(fragment.text)
        healed = heal(raw)
        try:
            parse_framed(healed, expected=expected)
        except MalformedModelOutput:
            healed = heal(raw, strict=True)
            parse_framed(healed, expected=expected)
        return healed

    def _assemble(self, texts: list[str], redacted: Any) -> Any:
        """Concatenate fragment texts in order, heal and parse the whole."""
        joined = "\n".join(t.strip() for t in texts)
        try:
            return parse_framed(heal(joined), expected=redacted)
        except MalformedModelOutput as e:
            logger.warning("Reassembled document failed to parse, retrying strict heal: %s", e)
            return parse_framed(heal(joined, strict=True), expected=redacted)

    async def _finish(self, job: _Job, translated: Any) -> Any:
        # The model may echo redacted keys; the cached payload never holds them.
        payload, _ = self._guard.strip(translated)
        if job.degraded:
            logger.warning("%d fragments kept untranslated, result not cached", job.degraded)
        else:
            await self._store(job, payload)
        logger.info(
            "Translation complete: fingerprint=%s in %.1fs",
            job.fingerprint[:12], time.monotonic() - job.started,
        )
        return self._guard.restore(payload, job.sidecar)

    async def _within(self, deadline: float, awaitable: Awaitable[T]) -> T:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise PipelineTimeout(self._settings.pipeline_timeout_s)
        try:
            return await asyncio.wait_for(awaitable, remaining)
        except asyncio.TimeoutError:
            raise PipelineTimeout(self._settings.pipeline_timeout_s) from None

    # ------------------------------------------------------------------
    # Cache access (I/O failures degrade to miss / no-store)
    # ------------------------------------------------------------------

    async def _lookup(self, fingerprint: str) -> CacheEntry | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.lookup(fingerprint)
        except CacheIOError as e:
            logger.warning("Cache lookup failed, treating as miss: %s", e)
            return None

    async def _store(self, job: _Job, payload: Any) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.store(job.fingerprint, payload, job.language)
        except CacheIOError as e:
            logger.warning("Cache store failed, result not cached: %s", e)
