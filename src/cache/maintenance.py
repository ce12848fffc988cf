# src/cache/maintenance.py — v1
"""Cache housekeeping: purge expired entries, then enforce a size ceiling."""

from __future__ import annotations

import logging

from cvtranslate.cache.base_cache_store import BaseCacheStore
from cvtranslate.cache.models import MaintenanceReport

logger = logging.getLogger(__name__)


async def run_maintenance(store: BaseCacheStore, max_size_bytes: int) -> MaintenanceReport:
    """Purge expired entries; clear everything if the cache is still too large."""
    purged = await store.purge_expired()
    stats = await store.stats()

    cleared = 0
    if stats.total_bytes > max_size_bytes:
        logger.warning(
            "Cache size %d bytes exceeds %d bytes, clearing all entries",
            stats.total_bytes, max_size_bytes,
        )
        cleared = await store.clear()
        stats = await store.stats()

    logger.info("Cache maintenance: purged=%d, cleared=%d, remaining=%d", purged, cleared, stats.count)
    return MaintenanceReport(purged=purged, cleared=cleared, total_translations=stats.count)
