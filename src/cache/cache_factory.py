# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from cvtranslate.cache.base_cache_store import BaseCacheStore
from cvtranslate.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore implementation, or None when caching is disabled.
    """
    if settings is not None and not settings.cache_enabled:
        return None

    backend = "json" if settings is None else settings.cache_backend

    if backend == "json":
        from cvtranslate.cache.json_store import JsonCacheStore

        if settings is None:
            return JsonCacheStore(cache_root="~/.cvtranslate/cache")
        return JsonCacheStore(
            cache_root=settings.cache_root,
            retention_s=settings.cache_retention_s,
            version=settings.cache_version,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
