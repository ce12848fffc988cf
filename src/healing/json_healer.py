# src/healing/json_healer.py — v2
"""Best-effort syntactic repair of model output that should be JSON.

Steps, in order:
  1. strip markdown code fences (keeping the first fenced block's content)
  2. (strict only) escape raw control characters inside string literals
  3. drop trailing commas before a closing brace/bracket
  4. close a dangling string and append closers for unmatched openers

``heal`` is idempotent and never raises. It does not promise parseable
output; callers still parse and treat failure as MalformedModelOutput.
"""

from __future__ import annotations

import json
import re

from cvtranslate.core.lexer import JsonLexer, LexState, lex

_FENCE_BLOCK = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[ \t]*(?:json|JSON)?")
_WHITESPACE = " \t\r\n"
_CONTROL_ESCAPES = {"\t": "\\t", "\n": "\\n", "\r": "\\r"}


def heal(text: str, strict: bool = False) -> str:
    """Repair near-valid JSON text.

    Args:
        text: Raw model output.
        strict: Also escape raw control characters found inside strings.

    Returns:
        Repaired text (possibly still invalid JSON).
    """
    if not isinstance(text, str):
        return ""
    healed = strip_code_fences(text)
    if strict:
        healed = escape_control_chars(healed)
    healed = remove_trailing_commas(healed)
    return balance(healed)


def strip_code_fences(text: str) -> str:
    """Remove markdown fences the model may wrap its answer in."""
    if "```" not in text:
        return text.strip()
    match = _FENCE_BLOCK.search(text)
    if match:
        text = match.group(1)
    return _FENCE_MARKER.sub("", text).strip()


def escape_control_chars(text: str) -> str:
    """Escape tab/newline/CR inside string literals; drop other control chars there."""
    out: list[str] = []
    lexer = JsonLexer()
    for ch in text:
        before = lexer.feed(ch)
        if before is LexState.NORMAL or ord(ch) >= 0x20:
            out.append(ch)
            continue
        if before is LexState.ESCAPED:
            # A backslash in front of a raw control char: rebuild the escape.
            out.pop()
        escaped = _CONTROL_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
    return "".join(out)


def remove_trailing_commas(text: str) -> str:
    """Drop commas (outside strings) followed only by whitespace/commas and a closer."""
    out: list[str] = []
    lexer = JsonLexer()
    size = len(text)
    for idx, ch in enumerate(text):
        before = lexer.feed(ch)
        if ch == "," and before is LexState.NORMAL:
            nxt = idx + 1
            while nxt < size and (text[nxt] in _WHITESPACE or text[nxt] == ","):
                nxt += 1
            if nxt < size and text[nxt] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def balance(text: str) -> str:
    """Close a dangling string literal and every unmatched opener, innermost first."""
    lexer = lex(text)
    if lexer.state is LexState.ESCAPED:
        text = text[:-1]
    if lexer.in_string:
        text += '"'
    if not lexer.stack:
        return text
    text = text.rstrip(_WHITESPACE)
    while text.endswith(","):
        text = text[:-1].rstrip(_WHITESPACE)
    return text + lexer.pending_closers()


def excerpt(text: str, offset: int | None, radius: int = 40) -> str:
    """Short window of ``text`` around ``offset`` for error messages."""
    if offset is None:
        return text[: radius * 2]
    start = max(0, offset - radius)
    end = min(len(text), offset + radius)
    return f"{text[start:offset]}<<HERE>>{text[offset:end]}"


def describe_failure(text: str, error: json.JSONDecodeError) -> str:
    """Human-readable location of a parse failure, with a window of the text."""
    return (
        f"Invalid JSON at line {error.lineno} column {error.colno} "
        f"(offset {error.pos}): {error.msg} near {excerpt(text, error.pos)!r}"
    )
