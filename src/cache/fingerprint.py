# src/cache/fingerprint.py — v3
"""Document fingerprinting for cache lookup.

The fingerprint covers the target language and the redacted document,
serialized compactly with key order preserved, so reordering keys yields a
different fingerprint and redacted fields never influence it.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(document: Any) -> str:
    """Compact, order-preserving serialization used for hashing."""
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))


def compute_fingerprint(document: Any, language: str) -> str:
    """SHA-256 hex digest of ``language`` plus the serialized ``document``.

    Args:
        document: The redacted source document.
        language: Target language code or name.
    """
    payload = f"{language}\n{canonical_json(document)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
