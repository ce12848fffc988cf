# src/cache/models.py — v3
"""Cache domain models: CacheEntry, CacheIndexRecord, CacheIndex, CacheStats."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A stored translation, keyed by the document fingerprint."""

    fingerprint: str
    language: str
    created_at: datetime
    version: str
    document: Any


class CacheIndexRecord(BaseModel):
    """Index metadata for one entry; the index alone decides expiry."""

    created_at: datetime
    language: str
    filename: str
    version: str


class CacheIndex(BaseModel):
    """Persisted fingerprint → record mapping, rewritten on every write."""

    version: str
    entries: dict[str, CacheIndexRecord] = Field(default_factory=dict)


class CacheStats(BaseModel):
    """Aggregate numbers for the cache stats endpoint."""

    count: int = 0
    per_language: dict[str, int] = Field(default_factory=dict)
    total_bytes: int = 0
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None


class MaintenanceReport(BaseModel):
    """Outcome of a maintenance run."""

    purged: int = 0
    cleared: int = 0
    total_translations: int = 0
