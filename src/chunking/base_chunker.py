# src/chunking/base_chunker.py — v2
"""Abstract chunker interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cvtranslate.core.models import Fragment


class BaseChunker(ABC):
    """Unified interface for chunking strategies."""

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Strategy identifier (e.g., 'structural')."""

    @abstractmethod
    def split(self, text: str, max_length: int | None = None) -> list[Fragment]:
        """Split serialized text into ordered fragments."""
