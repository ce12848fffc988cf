# src/cache/json_store.py — v3
"""JSON file-based cache store (default CACHE_BACKEND=json).

Layout under CACHE_ROOT::

    index.json            fingerprint → {created_at, language, filename, version}
    <fingerprint>.json    one CacheEntry per translated document

Index writes within a process are serialized by an asyncio.Lock and land
through a temp file + os.replace, so readers never see a torn index.
Separate processes sharing a root still race last-writer-wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from cvtranslate.cache.base_cache_store import BaseCacheStore
from cvtranslate.cache.models import CacheEntry, CacheIndex, CacheIndexRecord, CacheStats
from cvtranslate.core.errors import CacheIOError

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
DEFAULT_RETENTION_S = 7 * 24 * 3600.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(
        self,
        cache_root: str | Path,
        retention_s: float = DEFAULT_RETENTION_S,
        version: str = "2.0",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._root = Path(cache_root).expanduser()
        self._retention = timedelta(seconds=retention_s)
        self._version = version
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def index_path(self) -> Path:
        return self._root / INDEX_FILENAME

    # --- BaseCacheStore ---

    async def lookup(self, fingerprint: str) -> CacheEntry | None:
        record = self._read_index().entries.get(fingerprint)
        if record is None or not self._is_live(record):
            return None

        path = self._root / record.filename
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Cache payload missing for %s", fingerprint[:12])
            return None
        except json.JSONDecodeError as e:
            logger.warning("Corrupt cache payload for %s: %s", fingerprint[:12], e)
            return None
        except OSError as e:
            raise CacheIOError(f"Cannot read cache payload {path}: {e}") from e

        try:
            return CacheEntry.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid cache payload for %s: %s", fingerprint[:12], e)
            return None

    async def store(self, fingerprint: str, document: Any, language: str) -> CacheEntry:
        entry = CacheEntry(
            fingerprint=fingerprint,
            language=language,
            created_at=self._clock(),
            version=self._version,
            document=document,
        )
        filename = self._entry_filename(fingerprint)
        async with self._lock:
            self._write_atomic(self._root / filename, entry.model_dump_json())
            index = self._read_index()
            index.entries[fingerprint] = CacheIndexRecord(
                created_at=entry.created_at,
                language=language,
                filename=filename,
                version=self._version,
            )
            self._write_index(index)
        logger.debug("Cached translation %s (%s)", fingerprint[:12], language)
        return entry

    async def clear(self) -> int:
        return await self._remove_where(lambda _record: True)

    async def clear_language(self, language: str) -> int:
        return await self._remove_where(lambda record: record.language == language)

    async def purge_expired(self) -> int:
        return await self._remove_where(lambda record: not self._is_live(record))

    async def stats(self) -> CacheStats:
        index = self._read_index()
        per_language: dict[str, int] = {}
        total_bytes = self._file_size(self.index_path)
        for record in index.entries.values():
            per_language[record.language] = per_language.get(record.language, 0) + 1
            total_bytes += self._file_size(self._root / record.filename)
        created = [record.created_at for record in index.entries.values()]
        return CacheStats(
            count=len(index.entries),
            per_language=per_language,
            total_bytes=total_bytes,
            oldest_entry=min(created, default=None),
            newest_entry=max(created, default=None),
        )

    async def export_entries(self) -> list[CacheEntry]:
        index = self._read_index()
        entries: list[CacheEntry] = []
        for fingerprint, record in sorted(index.entries.items(), key=lambda kv: kv[1].created_at):
            if not self._is_live(record):
                continue
            entry = await self.lookup(fingerprint)
            if entry is not None:
                entries.append(entry)
        return entries

    # --- Internals ---

    def _is_live(self, record: CacheIndexRecord) -> bool:
        if record.version != self._version:
            return False
        return self._clock() - record.created_at <= self._retention

    async def _remove_where(self, predicate: Callable[[CacheIndexRecord], bool]) -> int:
        async with self._lock:
            index = self._read_index()
            doomed = [fp for fp, record in index.entries.items() if predicate(record)]
            if not doomed:
                return 0
            for fingerprint in doomed:
                record = index.entries.pop(fingerprint)
                try:
                    (self._root / record.filename).unlink(missing_ok=True)
                except OSError as e:
                    raise CacheIOError(f"Cannot delete cache payload {record.filename}: {e}") from e
            self._write_index(index)
        logger.info("Removed %d cache entries", len(doomed))
        return len(doomed)

    def _read_index(self) -> CacheIndex:
        path = self.index_path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return CacheIndex(version=self._version)
        except OSError as e:
            raise CacheIOError(f"Cannot read cache index {path}: {e}") from e

        try:
            return CacheIndex.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Corrupt cache index %s, starting empty: %s", path, e)
            return CacheIndex(version=self._version)

    def _write_index(self, index: CacheIndex) -> None:
        index.version = self._version
        self._write_atomic(self.index_path, index.model_dump_json(indent=2))

    def _write_atomic(self, path: Path, content: str) -> None:
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise CacheIOError(f"Cannot write cache file {path}: {e}") from e

    @staticmethod
    def _file_size(path: Path) -> int:
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise CacheIOError(f"Cannot stat cache file {path}: {e}") from e

    @staticmethod
    def _entry_filename(fingerprint: str) -> str:
        safe_key = fingerprint.replace("/", "_").replace("\\", "_")
        return f"{safe_key}.json"
