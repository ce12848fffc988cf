# src/main.py — v3
"""CLI entry point — serve, translate, cache commands.

Usage:
    cvtranslate serve [--host HOST] [--port PORT]
    cvtranslate translate <file> --language <lang> [--mode batch|stream] [-o out.json]
    cvtranslate cache stats|clear [--language <lang>]|maintenance|export [-o out.json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from cvtranslate.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from cvtranslate.config.settings import load_settings

    try:
        settings = load_settings()
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _setup_logging(settings, args.verbose)

    try:
        if args.command == "serve":
            return args.func(args, settings)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="cvtranslate",
        description=f"cvtranslate v{__version__} — chunked CV JSON translation service",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP service")
    p_serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    p_serve.add_argument("--port", type=int, default=None, help="Port (default: PORT setting)")
    p_serve.set_defaults(func=_cmd_serve)

    # --- translate ---
    p_translate = subparsers.add_parser("translate", help="Translate a JSON document")
    p_translate.add_argument("file", type=Path, help="Path to a JSON document")
    p_translate.add_argument(
        "-l", "--language", required=True, help="Target language (e.g. French, de)",
    )
    p_translate.add_argument(
        "--mode", choices=("batch", "stream"), default="batch",
        help="Delivery mode (default: batch)",
    )
    p_translate.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the translation here (default: stdout)",
    )
    p_translate.set_defaults(func=_cmd_translate)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clean the translation cache")
    cache_sub = p_cache.add_subparsers(dest="cache_command", required=True)
    cache_sub.add_parser("stats", help="Show cache statistics")
    p_clear = cache_sub.add_parser("clear", help="Remove cached translations")
    p_clear.add_argument("--language", default=None, help="Only clear this language")
    cache_sub.add_parser("maintenance", help="Purge expired entries and enforce the size limit")
    p_export = cache_sub.add_parser("export", help="Dump live cached translations as JSON")
    p_export.add_argument(
        "-o", "--output", type=Path, default=None, help="Write here (default: stdout)",
    )
    p_cache.set_defaults(func=_cmd_cache)

    return parser


def _cmd_serve(args: argparse.Namespace, settings: Any) -> int:
    """Run the FastAPI app under uvicorn."""
    import uvicorn

    from cvtranslate.api.app import create_app

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


async def _cmd_translate(args: argparse.Namespace, settings: Any) -> int:
    """Translate one JSON file in batch or stream mode."""
    from cvtranslate.pipeline.orchestrator import TranslationPipeline

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1
    try:
        document = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Not a JSON document: %s (%s)", file_path, exc)
        return 1

    pipeline = TranslationPipeline.from_settings(settings)
    logger.info("Translating %s to %s (%s mode)", file_path.name, args.language, args.mode)

    if args.mode == "stream":
        translated = None
        async for event in pipeline.stream(document, args.language):
            if event.event == "start":
                print(f"Fragments: {event.fragment_count} (cached: {event.cached})", file=sys.stderr)
            elif event.event == "chunk":
                print(f"  fragment {event.index}: {event.progress_percent}%", file=sys.stderr)
            elif event.event == "error":
                logger.error("Translation failed: %s", event.message)
                return 1
            else:
                translated = event.document
    else:
        translated = await pipeline.translate_batch(document, args.language)

    _write_output(translated, args.output)
    return 0


async def _cmd_cache(args: argparse.Namespace, settings: Any) -> int:
    """Cache stats / clear / maintenance / export."""
    from cvtranslate.cache.cache_factory import create_cache_store
    from cvtranslate.cache.maintenance import run_maintenance

    store = create_cache_store(settings)
    if store is None:
        print("Cache is disabled (CACHE_ENABLED=false)")
        return 0

    if args.cache_command == "stats":
        stats = await store.stats()
        print(f"\nCache statistics for {settings.cache_root}:")
        print(f"  Translations: {stats.count}")
        print(f"  Size:         {stats.total_bytes} bytes")
        if stats.oldest_entry is not None:
            print(f"  Oldest:       {stats.oldest_entry.isoformat()}")
            print(f"  Newest:       {stats.newest_entry.isoformat()}")
        for language, count in sorted(stats.per_language.items()):
            print(f"  {language:12s}  {count}")
    elif args.cache_command == "clear":
        if args.language:
            removed = await store.clear_language(args.language)
        else:
            removed = await store.clear()
        print(f"Removed {removed} cached translations")
    elif args.cache_command == "export":
        entries = await store.export_entries()
        _write_output([entry.model_dump(mode="json") for entry in entries], args.output)
    else:
        report = await run_maintenance(store, settings.cache_max_size_bytes)
        print(f"Purged: {report.purged}  Cleared: {report.cleared}  Remaining: {report.total_translations}")
    return 0


def _write_output(document: Any, output: Path | None) -> None:
    text = json.dumps(document, ensure_ascii=False, indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    logger.info("Translation written to %s", output)


def _setup_logging(settings: Any, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from cvtranslate.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
