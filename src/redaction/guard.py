# src/redaction/guard.py — v1
"""Redaction of fields that must never reach the model or the cache key.

Fields are addressed by dotted paths (``personalInfo.avatarUrl``). ``strip``
removes them from a copy of the document and returns a sidecar holding the
values and their key positions; ``restore`` puts them back in place.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any

from cvtranslate.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_PATHS = ("personalInfo.avatarUrl",)


@dataclass(frozen=True)
class RedactedField:
    """A value removed from a document, with its position among its siblings."""

    path: str
    value: Any
    position: int


class RedactionGuard:
    """Strip configured fields before translation and restore them after."""

    def __init__(self, paths: list[str] | tuple[str, ...] = DEFAULT_PATHS):
        self._paths = [tuple(p.split(".")) for p in paths if p]

    @classmethod
    def from_settings(cls, settings: Settings) -> RedactionGuard:
        return cls(settings.redacted_fields_list)

    @property
    def paths(self) -> list[str]:
        return [".".join(p) for p in self._paths]

    def strip(self, document: Any) -> tuple[Any, list[RedactedField]]:
        """Return a redacted copy of ``document`` and the sidecar of removed values."""
        redacted = copy.deepcopy(document)
        sidecar: list[RedactedField] = []
        for segments in self._paths:
            parent = _walk(redacted, segments[:-1])
            key = segments[-1]
            if not isinstance(parent, dict) or key not in parent:
                continue
            position = list(parent).index(key)
            sidecar.append(RedactedField(".".join(segments), parent.pop(key), position))
        return redacted, sidecar

    def restore(self, document: Any, sidecar: list[RedactedField]) -> Any:
        """Return a copy of ``document`` with every sidecar value back at its position."""
        if not sidecar:
            return document
        if not isinstance(document, dict):
            logger.warning("Cannot restore %d redacted fields into a non-object document", len(sidecar))
            return document

        restored = copy.deepcopy(document)
        for field in reversed(sidecar):
            segments = field.path.split(".")
            parent = _ensure_parents(restored, segments[:-1])
            if parent is None:
                logger.warning("Cannot restore redacted field %s: parent is not an object", field.path)
                continue
            _insert_at(parent, segments[-1], field.value, field.position)
        return restored


def _walk(document: Any, segments: tuple[str, ...] | list[str]) -> Any:
    node = document
    for segment in segments:
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


def _ensure_parents(document: dict[str, Any], segments: list[str]) -> dict[str, Any] | None:
    node = document
    for segment in segments:
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        if not isinstance(child, dict):
            return None
        node = child
    return node


def _insert_at(parent: dict[str, Any], key: str, value: Any, position: int) -> None:
    items = [(k, v) for k, v in parent.items() if k != key]
    items.insert(min(position, len(items)), (key, value))
    parent.clear()
    parent.update(items)
