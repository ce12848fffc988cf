# src/__init__.py — v1
"""cvtranslate — resilient chunked JSON document translation."""

from cvtranslate.version import __version__

__all__ = ["__version__"]
