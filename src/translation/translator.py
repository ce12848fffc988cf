# src/translation/translator.py — v1
"""Single-call fragment translation.

One backend call per invocation, no retry and no repair: backend errors
propagate unchanged to the retry controller, and the raw text goes to the
healer.
"""

from __future__ import annotations

import logging

from cvtranslate.core.models import Fragment
from cvtranslate.llm.base_client import BaseLLMClient
from cvtranslate.llm.models import Message

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a translation engine for structured CV data. "
    "Translate ONLY the human-readable string values of the JSON you are given. "
    "Keep every key, the nesting and the order of keys identical. "
    "Keep the number of elements in every array identical. "
    "Do not translate numbers, IDs, dates, URLs, emails or code. "
    "The input contains one JSON object per line; answer with the same number "
    "of lines, one translated JSON object per line. "
    "Return ONLY JSON: no commentary, no markdown."
)

_PROMPT_TEMPLATE = "Target language: {language}\n\nJSON to translate:\n{payload}"


def build_prompt(fragment: Fragment, target_language: str) -> str:
    return _PROMPT_TEMPLATE.format(language=target_language, payload=fragment.text.strip())


async def translate_fragment(
    fragment: Fragment,
    target_language: str,
    client: BaseLLMClient,
    max_tokens: int = 8192,
    temperature: float = 0.2,
) -> str:
    """Ask ``client`` to translate one fragment; returns the raw model text."""
    response = await client.complete(
        messages=[Message(role="user", content=build_prompt(fragment, target_language))],
        system=SYSTEM_INSTRUCTION,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    logger.debug(
        "Fragment %d translated by %s/%s in %dms (%d chars in, %d out)",
        fragment.index, response.provider, response.model, response.latency_ms,
        fragment.char_count, len(response.content),
    )
    return response.content
