# src/api/models.py — v3
"""HTTP request/response models. Wire names are camelCase."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TranslateRequest(BaseModel):
    """Body of both translate endpoints.

    Fields are optional here so a missing one reaches the pipeline and is
    reported as MissingParameters instead of a validation error.
    ``targetLang``/``data`` are accepted for older clients.
    """

    target_language: str | None = Field(
        default=None,
        validation_alias=AliasChoices("targetLanguage", "targetLang", "target_language"),
    )
    document: Any = Field(default=None, validation_alias=AliasChoices("document", "data"))


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(_CamelModel):
    error: str


class MessageResponse(_CamelModel):
    message: str


class CacheStatsResponse(_CamelModel):
    total_translations: int = Field(alias="totalTranslations")
    languages: dict[str, int] = Field(default_factory=dict)
    cache_size_bytes: int = Field(alias="cacheSizeBytes")
    oldest_entry: datetime | None = Field(default=None, alias="oldestEntry")
    newest_entry: datetime | None = Field(default=None, alias="newestEntry")


class MaintenanceResponse(_CamelModel):
    purged: int
    cleared: int
    total_translations: int = Field(alias="totalTranslations")


class BackendHealthResponse(_CamelModel):
    status: str
    response: str
    provider: str | None = None
    model: str | None = None
