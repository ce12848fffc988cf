# src/llm/backends.py — v1
"""Primary/fallback pair of LLM clients handed to the pipeline."""

from __future__ import annotations

import logging

from cvtranslate.config.settings import Settings
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.client_factory import create_llm_client
from cvtranslate.llm.config import BackendRole, resolve_backend

logger = logging.getLogger(__name__)


class BackendPool:
    """Holds the primary client and an optional fallback client."""

    def __init__(self, primary: BaseLLMClient, fallback: BaseLLMClient | None = None):
        self._primary = primary
        self._fallback = fallback

    @property
    def primary(self) -> BaseLLMClient:
        return self._primary

    @property
    def fallback(self) -> BaseLLMClient | None:
        return self._fallback

    def get(self, role: BackendRole) -> BaseLLMClient:
        """Client for ``role``; the fallback role reuses primary when unset."""
        if role == "fallback" and self._fallback is not None:
            return self._fallback
        return self._primary

    @classmethod
    def from_settings(cls, settings: Settings) -> BackendPool:
        primary = resolve_backend("primary", settings)
        fallback = resolve_backend("fallback", settings)
        logger.info("LLM backends: primary=%s, fallback=%s", primary.key, fallback.key)

        primary_client = create_llm_client(primary.provider, primary.model, settings)
        fallback_client = None
        if fallback.source == "fallback" and fallback.key != primary.key:
            fallback_client = create_llm_client(fallback.provider, fallback.model, settings)
        return cls(primary_client, fallback_client)
