# src/chunking/framing.py — v2
"""Member-stream framing of documents for chunking.

A serialized JSON object only returns to depth zero at its final brace, which
would leave the structural chunker no split point. Top-level objects are
therefore framed as one single-member object per line::

    {"personalInfo": {...}}
    {"skills": ["Go", "SQL"]}

and decoded back by merging the members in order. Any other JSON value is
framed as itself.
"""

from __future__ import annotations

import json
from typing import Any

from cvtranslate.core.errors import MalformedModelOutput
from cvtranslate.healing.json_healer import describe_failure

_SEPARATORS = " \t\r\n,"


def frame_document(document: Any) -> str:
    """Serialize ``document`` for chunking."""
    if isinstance(document, dict) and document:
        return "\n".join(
            json.dumps({key: value}, ensure_ascii=False) for key, value in document.items()
        )
    return json.dumps(document, ensure_ascii=False)


def parse_framed(text: str, expected: Any = None) -> Any:
    """Decode a framed document.

    Values may be separated by whitespace or stray commas. When ``expected``
    is given, the decoded value must keep its shape: every object key comes
    back (keys the model invented are dropped), arrays keep their length and
    containers keep their type. Leaf values are free to change.

    Raises:
        MalformedModelOutput: If the text is not a sequence of JSON values, or
            if the decoded value does not match the shape of ``expected``.
    """
    decoder = json.JSONDecoder()
    values: list[Any] = []
    idx = _skip_separators(text, 0)
    while idx < len(text):
        try:
            value, idx = decoder.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            raise MalformedModelOutput(describe_failure(text, exc), offset=exc.pos) from exc
        values.append(value)
        idx = _skip_separators(text, idx)

    if not values:
        raise MalformedModelOutput("Model output contains no JSON value", offset=0)

    if not isinstance(expected, dict):
        if len(values) == 1:
            return values[0] if expected is None else conform(values[0], expected)
        if expected is not None:
            raise MalformedModelOutput(f"Expected one JSON value, got {len(values)}")

    if not all(isinstance(value, dict) for value in values):
        raise MalformedModelOutput("Expected a sequence of JSON objects")

    merged: dict[str, Any] = {}
    for value in values:
        merged.update(value)

    if isinstance(expected, dict):
        missing = [key for key in expected if key not in merged]
        if missing:
            raise MalformedModelOutput(
                f"Translated document is missing keys: {', '.join(missing)}"
            )
        # Source key order; keys the model invented are dropped.
        return {key: conform(merged[key], expected[key], f"$.{key}") for key in expected}
    return merged


def conform(value: Any, expected: Any, path: str = "$") -> Any:
    """Check that ``value`` has the container shape of ``expected``.

    Returns ``value`` with object keys in source order and invented keys
    dropped.

    Raises:
        MalformedModelOutput: On a missing key, a changed array length, or a
            container replaced by another kind of value.
    """
    if isinstance(expected, dict):
        if not isinstance(value, dict):
            raise MalformedModelOutput(f"Expected an object at {path}")
        missing = [key for key in expected if key not in value]
        if missing:
            raise MalformedModelOutput(
                f"Translated document is missing keys at {path}: {', '.join(missing)}"
            )
        return {key: conform(value[key], expected[key], f"{path}.{key}") for key in expected}
    if isinstance(expected, list):
        if not isinstance(value, list):
            raise MalformedModelOutput(f"Expected an array at {path}")
        if len(value) != len(expected):
            raise MalformedModelOutput(
                f"Array length changed at {path}: expected {len(expected)}, got {len(value)}"
            )
        return [conform(v, e, f"{path}[{i}]") for i, (v, e) in enumerate(zip(value, expected))]
    if isinstance(value, (dict, list)):
        raise MalformedModelOutput(f"Expected a scalar at {path}")
    return value


def _skip_separators(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _SEPARATORS:
        idx += 1
    return idx
