# src/core/lexer.py — v2
"""Character-level JSON lexer shared by the chunker and the healer.

Tracks whether the cursor sits inside a string literal (honoring backslash
escapes) and the stack of open braces/brackets seen outside strings. It is
not a parser: it never validates, it only answers "where am I?".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

OPENERS = {"{": "}", "[": "]"}
CLOSERS = {"}": "{", "]": "["}


class LexState(Enum):
    """Tagged lexer state."""

    NORMAL = "normal"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


@dataclass
class JsonLexer:
    """Incremental lexer state; feed one character at a time."""

    state: LexState = LexState.NORMAL
    stack: list[str] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.stack)

    @property
    def in_string(self) -> bool:
        return self.state is not LexState.NORMAL

    def feed(self, ch: str) -> LexState:
        """Advance over ``ch`` and return the state *before* it was consumed."""
        before = self.state
        if self.state is LexState.ESCAPED:
            self.state = LexState.IN_STRING
        elif self.state is LexState.IN_STRING:
            if ch == "\\":
                self.state = LexState.ESCAPED
            elif ch == '"':
                self.state = LexState.NORMAL
        else:
            if ch == '"':
                self.state = LexState.IN_STRING
            elif ch in OPENERS:
                self.stack.append(ch)
            elif ch in CLOSERS and self.stack:
                self.stack.pop()
        return before

    def pending_closers(self) -> str:
        """Closing characters that would balance every open brace/bracket."""
        return "".join(OPENERS[opener] for opener in reversed(self.stack))


def lex(text: str) -> JsonLexer:
    """Run the lexer over ``text`` and return its final state."""
    lexer = JsonLexer()
    for ch in text:
        lexer.feed(ch)
    return lexer
