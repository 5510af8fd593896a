# src/main.py — v2
"""CLI entry point — cache diagnostics and chunk preview.

Usage:
    docpilot cache stats [--namespace summary]
    docpilot cache list [--namespace summary]
    docpilot cache clear [--namespace summary]
    docpilot cache invalidate <locator> [--namespace summary]
    docpilot chunk <text_file> [--max-input-tokens N] [--no-paragraphs]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from docpilot.version import __version__

logger = logging.getLogger(__name__)

_NAMESPACES = ("summary", "outline")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docpilot",
        description=f"docpilot v{__version__} - document cache and chunking tools",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or reset a cache")
    cache_sub = p_cache.add_subparsers(dest="cache_command")

    def _add_namespace(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-n", "--namespace", choices=_NAMESPACES, default="summary",
            help="Cache namespace (default: summary)",
        )

    p_stats = cache_sub.add_parser("stats", help="Show cache statistics")
    _add_namespace(p_stats)
    p_stats.set_defaults(func=_cmd_cache_stats)

    p_list = cache_sub.add_parser("list", help="List cached documents")
    _add_namespace(p_list)
    p_list.set_defaults(func=_cmd_cache_list)

    p_clear = cache_sub.add_parser("clear", help="Remove every cached entry")
    _add_namespace(p_clear)
    p_clear.set_defaults(func=_cmd_cache_clear)

    p_invalidate = cache_sub.add_parser(
        "invalidate", help="Remove the entry for one document",
    )
    p_invalidate.add_argument("locator", help="Local path or URL of the document")
    _add_namespace(p_invalidate)
    p_invalidate.set_defaults(func=_cmd_cache_invalidate)

    # --- chunk ---
    p_chunk = subparsers.add_parser(
        "chunk", help="Preview how extracted text would be chunked",
    )
    p_chunk.add_argument("text_file", type=Path, help="Extracted text with page markers")
    p_chunk.add_argument(
        "--max-input-tokens", type=int, default=None,
        help="Model input budget (default: DEFAULT_MAX_INPUT_TOKENS setting)",
    )
    p_chunk.add_argument(
        "--no-paragraphs", action="store_true",
        help="Treat each page as a single unit",
    )
    p_chunk.set_defaults(func=_cmd_chunk)

    return parser


async def _cmd_cache_stats(args: argparse.Namespace) -> int:
    """Display statistics for one cache namespace."""
    cache = _open_cache(args.namespace)
    stats = await cache.stats()
    oldest = stats.oldest_entry.isoformat() if stats.oldest_entry else "-"

    print(f"\n{args.namespace} cache ({cache.path}):")
    print(f"  Entries:  {stats.total_entries}")
    print(f"  Size:     {stats.total_size_kb} KB")
    print(f"  Oldest:   {oldest}")
    return 0


async def _cmd_cache_list(args: argparse.Namespace) -> int:
    """List cached documents, newest first."""
    cache = _open_cache(args.namespace)
    listings = await cache.list_all()
    if not listings:
        print(f"{args.namespace} cache is empty")
        return 0

    for item in sorted(listings, key=lambda i: i.created_at, reverse=True):
        print(f"{item.created_at:%Y-%m-%d %H:%M}  {item.locator}  {_preview(item.data)}")
    return 0


async def _cmd_cache_clear(args: argparse.Namespace) -> int:
    cache = _open_cache(args.namespace)
    await cache.clear()
    print(f"{args.namespace} cache cleared")
    return 0


async def _cmd_cache_invalidate(args: argparse.Namespace) -> int:
    cache = _open_cache(args.namespace)
    await cache.invalidate(args.locator)
    print(f"Invalidated {args.locator} in {args.namespace} cache")
    return 0


async def _cmd_chunk(args: argparse.Namespace) -> int:
    """Chunk a text file and print one line per chunk."""
    from docpilot.chunking.page_chunker import PageChunker
    from docpilot.config.settings import Settings

    text_file: Path = args.text_file
    if not text_file.is_file():
        logger.error("File not found: %s", text_file)
        return 1

    settings = Settings()
    chunker = PageChunker(settings=settings)
    budget = args.max_input_tokens or settings.default_max_input_tokens
    config = chunker.default_config(budget)
    if args.no_paragraphs:
        config = config.model_copy(update={"paragraph_boundary": False})

    chunks = chunker.chunk(text_file.read_text(encoding="utf-8"), config)

    for chunk in chunks:
        print(
            f"#{chunk.index:<3d} pages {chunk.start_page}-{chunk.end_page}  "
            f"~{chunk.token_count} tokens  {len(chunk.content)} chars"
        )
    print(f"\n{len(chunks)} chunks, budget {config.max_tokens_per_chunk} tokens/chunk")
    print(f"Within budget: {'yes' if chunker.validate(chunks, config) else 'no'}")
    print(f"Estimated processing time: {chunker.estimate_processing_time(chunks) / 1000:.1f}s")
    return 0


def _open_cache(namespace: str):
    from docpilot.cache.cache_factory import create_document_cache
    from docpilot.config.settings import Settings

    return create_document_cache(namespace, settings=Settings())


def _preview(data: object, limit: int = 60) -> str:
    """One-line preview of a cached artifact."""
    title = getattr(data, "title", None)
    text = str(title if title is not None else data).replace("\n", " ")
    return text if len(text) <= limit else text[:limit] + "..."


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from docpilot.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")


if __name__ == "__main__":
    sys.exit(main())
