# src/redaction/__init__.py — v1
