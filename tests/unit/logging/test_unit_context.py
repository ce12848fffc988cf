# tests/unit/logging/test_context.py — v2
"""Tests for logging/context.py — contextual logging variables."""

from __future__ import annotations

from cvtranslate.logging.context import (
    clear_context,
    get_context,
    set_fragment_context,
    set_request_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_initial_state(self):
        ctx = get_context()
        assert ctx.request_id is None
        assert ctx.target_language is None
        assert ctx.fragment is None

    def test_set_request_context(self):
        set_request_context("req1", "French", "batch")
        ctx = get_context()
        assert ctx.request_id == "req1"
        assert ctx.target_language == "French"
        assert ctx.mode == "batch"

    def test_request_context_resets_fragment(self):
        set_fragment_context(4)
        set_request_context("req2", "German", "stream")
        assert get_context().fragment is None

    def test_fragment_zero_is_kept(self):
        set_fragment_context(0)
        assert get_context().as_dict() == {"fragment": 0}

    def test_as_dict_filters_none(self):
        set_request_context("req1", "French", "batch")
        d = get_context().as_dict()
        assert "request_id" in d
        assert "fragment" not in d

    def test_clear(self):
        set_request_context("req1", "French", "batch")
        set_fragment_context(2)
        clear_context()
        ctx = get_context()
        assert ctx.request_id is None
        assert ctx.fragment is None
