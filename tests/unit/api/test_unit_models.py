# tests/unit/api/test_models.py — v2
"""Tests for api/models.py — request aliases and camelCase responses."""

from __future__ import annotations

from cvtranslate.api.models import CacheStatsResponse, MaintenanceResponse, TranslateRequest


class TestTranslateRequest:
    def test_camel_case(self):
        req = TranslateRequest.model_validate({"targetLanguage": "fr", "document": {"a": "b"}})
        assert req.target_language == "fr"
        assert req.document == {"a": "b"}

    def test_legacy_names(self):
        req = TranslateRequest.model_validate({"targetLang": "de", "data": ["x"]})
        assert req.target_language == "de"
        assert req.document == ["x"]

    def test_fields_optional(self):
        req = TranslateRequest.model_validate({})
        assert req.target_language is None
        assert req.document is None


class TestResponses:
    def test_cache_stats_aliases(self):
        resp = CacheStatsResponse(total_translations=2, languages={"fr": 2}, cache_size_bytes=10)
        assert resp.model_dump(by_alias=True) == {
            "totalTranslations": 2, "languages": {"fr": 2}, "cacheSizeBytes": 10,
            "oldestEntry": None, "newestEntry": None,
        }

    def test_maintenance_aliases(self):
        resp = MaintenanceResponse(purged=1, cleared=0, total_translations=3)
        assert resp.model_dump(by_alias=True) == {"purged": 1, "cleared": 0, "totalTranslations": 3}
