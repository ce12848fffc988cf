# src/api/app.py — v1
"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cvtranslate.api.routes import router
from cvtranslate.cache.maintenance import run_maintenance
from cvtranslate.config.settings import Settings, load_settings
from cvtranslate.core.errors import CacheIOError, MissingParameters, TranslationPipelineError
from cvtranslate.pipeline.orchestrator import TranslationPipeline
from cvtranslate.version import __version__

logger = logging.getLogger(__name__)


async def _maintenance_once(pipeline: TranslationPipeline, settings: Settings) -> None:
    store = pipeline.cache_store
    if store is None:
        return
    try:
        await run_maintenance(store, settings.cache_max_size_bytes)
    except CacheIOError as exc:
        logger.warning("Cache maintenance failed: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    pipeline: TranslationPipeline = app.state.pipeline
    await _maintenance_once(pipeline, settings)

    stop_event = asyncio.Event()
    interval = settings.cache_maintenance_interval_s

    async def periodic_maintenance() -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await _maintenance_once(pipeline, settings)

    task = asyncio.create_task(periodic_maintenance()) if interval > 0 else None
    yield
    stop_event.set()
    if task is not None and not task.done():
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def create_app(
    settings: Settings | None = None,
    pipeline: TranslationPipeline | None = None,
) -> FastAPI:
    """Build the HTTP app around a translation pipeline.

    Args:
        settings: Application settings. Loaded from .env if None.
        pipeline: Pre-built pipeline (tests inject one with fake backends).
    """
    settings = settings or load_settings()
    pipeline = pipeline or TranslationPipeline.from_settings(settings)

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MissingParameters)
    async def _missing_parameters(_request: Request, exc: MissingParameters) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(TranslationPipelineError)
    async def _pipeline_error(_request: Request, exc: TranslationPipelineError) -> JSONResponse:
        logger.error("Request failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
