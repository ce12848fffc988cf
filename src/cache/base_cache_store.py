# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Implementations raise CacheIOError when persisted state cannot be read or
written; callers decide whether that is fatal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cvtranslate.cache.models import CacheEntry, CacheStats


class BaseCacheStore(ABC):
    """Unified interface for translation cache backends."""

    @abstractmethod
    async def lookup(self, fingerprint: str) -> CacheEntry | None:
        """Return the live entry for ``fingerprint``; expired or foreign-version entries are absent."""

    @abstractmethod
    async def store(self, fingerprint: str, document: Any, language: str) -> CacheEntry:
        """Persist a translated document."""

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry. Returns the number removed."""

    @abstractmethod
    async def clear_language(self, language: str) -> int:
        """Remove every entry for one target language."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Remove expired and foreign-version entries."""

    @abstractmethod
    async def stats(self) -> CacheStats:
        """Entry count, per-language counts and on-disk size."""

    @abstractmethod
    async def export_entries(self) -> list[CacheEntry]:
        """All live entries, oldest first."""
