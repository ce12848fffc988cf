# tests/unit/core/test_models.py — v2
"""Tests for core/models.py — shared Pydantic models.

Also covers version.py import validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cvtranslate.core.models import Fragment


class TestFragment:
    def test_create(self):
        f = Fragment(index=0, text='{"a": 1}', start=0, end=8)
        assert f.char_count == 8

    def test_requires_offsets(self):
        with pytest.raises(ValidationError):
            Fragment(index=0, text="x")  # type: ignore[call-arg]


class TestVersion:
    def test_package_exports_version(self):
        import cvtranslate
        from cvtranslate.version import __version__

        assert cvtranslate.__version__ == __version__
        assert __version__.count(".") == 2
