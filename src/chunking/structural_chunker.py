# src/chunking/structural_chunker.py — v2
"""Structural chunking of serialized JSON.

A fragment is closed only once it has reached the target length while the
lexer sits at nesting depth zero and outside any string literal, so every
fragment is balanced on its own. Fragments may run past the target when no
such point exists; the remainder always becomes the last fragment.
"""

from __future__ import annotations

from cvtranslate.chunking.base_chunker import BaseChunker
from cvtranslate.config.settings import Settings
from cvtranslate.core.lexer import JsonLexer
from cvtranslate.core.models import Fragment

DEFAULT_MAX_LENGTH = 800


class StructuralChunker(BaseChunker):
    """Split JSON text at depth-zero points outside strings."""

    def __init__(self, settings: Settings | None = None):
        self._max_length = DEFAULT_MAX_LENGTH if settings is None else settings.chunk_max_length

    @property
    def strategy_name(self) -> str:
        return "structural"

    def split(self, text: str, max_length: int | None = None) -> list[Fragment]:
        """Split ``text`` into fragments of at least ``max_length`` chars where possible."""
        if not text:
            return []
        limit = max(1, max_length or self._max_length)

        fragments: list[Fragment] = []
        lexer = JsonLexer()
        start = 0
        for idx, ch in enumerate(text):
            lexer.feed(ch)
            length = idx + 1 - start
            if length >= limit and lexer.depth == 0 and not lexer.in_string:
                fragments.append(self._fragment(text, len(fragments), start, idx + 1))
                start = idx + 1

        if start < len(text):
            fragments.append(self._fragment(text, len(fragments), start, len(text)))
        return fragments

    @staticmethod
    def _fragment(text: str, index: int, start: int, end: int) -> Fragment:
        return Fragment(index=index, text=text[start:end], start=start, end=end)
