# tests/unit/llm/test_backends.py — v1
"""Tests for llm/backends.py — primary/fallback client pool."""

from __future__ import annotations

from cvtranslate.config.settings import Settings
from cvtranslate.llm.adapters.google_adapter import GoogleAdapter
from cvtranslate.llm.adapters.openai_adapter import OpenAIAdapter
from cvtranslate.llm.backends import BackendPool


class TestBackendPool:
    def test_roles(self, fake_llm):
        primary, fallback = fake_llm("p"), fake_llm("f")
        pool = BackendPool(primary, fallback)
        assert pool.get("primary") is primary
        assert pool.get("fallback") is fallback

    def test_fallback_defaults_to_primary(self, fake_llm):
        primary = fake_llm("p")
        pool = BackendPool(primary)
        assert pool.get("fallback") is primary
        assert pool.fallback is None

    def test_from_settings(self):
        s = Settings(
            _env_file=None,
            llm_primary="google:gemini-2.5-flash",
            llm_fallback="openai:gpt-4o-mini",
        )
        pool = BackendPool.from_settings(s)
        assert isinstance(pool.primary, GoogleAdapter)
        assert isinstance(pool.get("fallback"), OpenAIAdapter)

    def test_from_settings_same_backend_twice(self):
        s = Settings(_env_file=None, llm_primary="google:gemini-2.5-flash",
                     llm_fallback="google:gemini-2.5-flash")
        pool = BackendPool.from_settings(s)
        assert pool.fallback is None

    def test_from_settings_without_fallback(self):
        s = Settings(_env_file=None, llm_fallback="")
        pool = BackendPool.from_settings(s)
        assert pool.fallback is None
        assert pool.get("fallback") is pool.primary
