# src/core/models.py — v2
"""Shared Pydantic domain models used across modules."""

from __future__ import annotations

from pydantic import BaseModel


class Fragment(BaseModel):
    """Ordered slice of a serialized document, balanced at its split point.

    ``start``/``end`` are character offsets into the serialized text, so
    joining the ``text`` of all fragments in ``index`` order reproduces it.
    """

    index: int
    text: str
    start: int
    end: int

    @property
    def char_count(self) -> int:
        return len(self.text)
