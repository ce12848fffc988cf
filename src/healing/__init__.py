# src/healing/__init__.py — v1
