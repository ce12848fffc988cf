# src/translation/__init__.py — v1
