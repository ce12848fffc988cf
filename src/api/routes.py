# src/api/routes.py — v2
"""Translation, cache and backend-health endpoints."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from cvtranslate.api.models import (
    BackendHealthResponse,
    CacheStatsResponse,
    ErrorResponse,
    MaintenanceResponse,
    MessageResponse,
    TranslateRequest,
)
from cvtranslate.cache.base_cache_store import BaseCacheStore
from cvtranslate.cache.maintenance import run_maintenance
from cvtranslate.core.errors import MissingParameters
from cvtranslate.logging.context import clear_context
from cvtranslate.pipeline.orchestrator import TranslationPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_pipeline(request: Request) -> TranslationPipeline:
    return request.app.state.pipeline


def get_cache_store(request: Request) -> BaseCacheStore | None:
    return request.app.state.pipeline.cache_store


@router.post("/translate/stream")
async def translate_stream(
    request: Request,
    payload: TranslateRequest,
    pipeline: TranslationPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    async def event_source() -> AsyncIterator[str]:
        events = pipeline.stream(payload.document, payload.target_language)
        try:
            async for event in events:
                if await request.is_disconnected():
                    logger.info("Client disconnected, stopping translation")
                    break
                yield event.to_sse()
        finally:
            await events.aclose()
            clear_context()

    return StreamingResponse(event_source(), media_type="text/event-stream", headers=_SSE_HEADERS)


@router.post(
    "/translate/batch",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def translate_batch(
    payload: TranslateRequest,
    pipeline: TranslationPipeline = Depends(get_pipeline),
) -> JSONResponse:
    try:
        translated = await pipeline.translate_batch(payload.document, payload.target_language)
    except MissingParameters:
        raise
    except Exception as exc:  # reported to the client as a 500
        logger.exception("Batch translation failed")
        return JSONResponse(status_code=500, content={"error": str(exc)})
    finally:
        clear_context()
    return JSONResponse(content=translated)


@router.post("/cache/clear", response_model=MessageResponse)
async def clear_cache(
    language: str | None = None,
    store: BaseCacheStore | None = Depends(get_cache_store),
) -> MessageResponse:
    if store is None:
        return MessageResponse(message="Cache is disabled")
    if language:
        removed = await store.clear_language(language)
        return MessageResponse(message=f"Cleared {removed} cached translations for {language}")
    removed = await store.clear()
    return MessageResponse(message=f"Cache cleared ({removed} translations removed)")


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    store: BaseCacheStore | None = Depends(get_cache_store),
) -> CacheStatsResponse:
    if store is None:
        return CacheStatsResponse(total_translations=0, languages={}, cache_size_bytes=0)
    stats = await store.stats()
    return CacheStatsResponse(
        total_translations=stats.count,
        languages=stats.per_language,
        cache_size_bytes=stats.total_bytes,
        oldest_entry=stats.oldest_entry,
        newest_entry=stats.newest_entry,
    )


@router.post("/cache/maintenance", response_model=MaintenanceResponse)
async def cache_maintenance(
    request: Request,
    store: BaseCacheStore | None = Depends(get_cache_store),
) -> MaintenanceResponse:
    if store is None:
        return MaintenanceResponse(purged=0, cleared=0, total_translations=0)
    report = await run_maintenance(store, request.app.state.settings.cache_max_size_bytes)
    return MaintenanceResponse(
        purged=report.purged,
        cleared=report.cleared,
        total_translations=report.total_translations,
    )


@router.get(
    "/backend/health",
    response_model=BackendHealthResponse,
    responses={500: {"model": ErrorResponse}},
)
async def backend_health(
    pipeline: TranslationPipeline = Depends(get_pipeline),
) -> Any:
    try:
        result = await pipeline.health_check()
    except Exception as exc:  # reported to the client as a 500
        logger.warning("Backend health check failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return BackendHealthResponse(**result)
