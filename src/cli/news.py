# =============================================================================
# src/cli/news.py - newspulse Command-Line Interface
# =============================================================================
#
# Standalone CLI for operating the newspulse research-news corpus: running
# the search-driven ingestion, adding single URLs, backfilling AI content
# and embeddings, indexing reference documents and querying the retrieval
# engine.
#
# Supported subcommands:
#
#   fetch           - Run every configured search query and ingest results
#   add-url         - Ingest one submitted article URL
#   backfill        - Regenerate missing summaries/images (resumable)
#   embed           - Generate missing embeddings (resumable)
#   index-document  - Chunk, embed and store a plain-text document
#   search          - Query the retrieval engine
#   stats           - Display corpus statistics
#   resolve         - Expand a shortened/share URL (no database needed)
#   extract         - Run the tiered metadata extractor on a URL
#
# Usage examples:
#   python -m src.cli fetch
#   python -m src.cli add-url https://bit.ly/3xyz
#   python -m src.cli backfill --batch-size 10 --continue-token 420
#   python -m src.cli embed --kind chunk
#   python -m src.cli index-document --file report.txt --title "WHO report"
#   python -m src.cli search "microplastics in bottled water"
# =============================================================================

"""Standalone CLI for the newspulse ingestion pipeline and retrieval engine.

Usage::

    python -m src.cli fetch
    python -m src.cli add-url https://example.com/story
    python -m src.cli search "nanoplastics placenta"
    python -m src.cli stats
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from src.config.settings import Settings
from src.main import Components, build_components
from src.models.news import Document, IngestionStatus, ItemKind
from src.utils.errors import NewsPulseError, ValidationError
from src.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_fetch(args: argparse.Namespace, components: Components) -> int:
    """Run the configured search queries."""
    queries = args.query or components.search_queries
    if not queries:
        print("No search queries configured (ingestion.search_queries).", file=sys.stderr)
        return 1

    num_results = args.num_results or components.results_per_query
    print(f"Running {len(queries)} search queries ({num_results} results each)")
    result = await components.ingestion.ingest_queries(queries, num_results=num_results)

    for outcome in result.queries:
        print(f"  [{outcome.status.value:<14}] +{outcome.added:<3} {outcome.query}")
    print(f"\nTotal added: {result.total_added}")
    if result.aborted:
        print("Stopped early: search quota exhausted.")
        return 2
    return 0


async def _handle_add_url(args: argparse.Namespace, components: Components) -> int:
    """Ingest one URL."""
    item = await components.ingestion.ingest_url(args.url)
    print(f"Status:       {item.status.value}")
    if item.resolved_url and item.resolved_url != item.url:
        print(f"Resolved to:  {item.resolved_url}")
    if item.article_id is not None:
        print(f"Article ID:   {item.article_id}")
    if item.reason:
        print(f"Reason:       {item.reason}")
    return 0 if item.status in (IngestionStatus.ADDED, IngestionStatus.DUPLICATE) else 1


async def _handle_backfill(args: argparse.Namespace, components: Components) -> int:
    """Regenerate missing summaries and images."""
    token = args.continue_token
    while True:
        result = await components.ingestion.backfill_articles(
            batch_size=args.batch_size,
            continue_token=token,
        )
        print(
            f"Processed {result.processed} (updated {result.updated}, failed {result.failed}); "
            f"continue token: {result.continue_token}"
        )
        token = result.continue_token
        if result.done or not args.all:
            break
    print("Done." if result.done else f"More remaining; resume with --continue-token {token}")
    return 0


async def _handle_embed(args: argparse.Namespace, components: Components) -> int:
    """Generate missing embeddings."""
    service = components.embedding_backfill
    if service is None:
        print("Error: No embedding provider available. Set OPENAI_API_KEY.", file=sys.stderr)
        return 1

    if args.kind == "all":
        totals = await service.run_all(batch_size=args.batch_size)
        for kind, result in totals.items():
            print(f"  {kind.value:<9} processed {result.processed}, updated {result.updated}, failed {result.failed}")
        return 0

    result = await service.run(
        ItemKind(args.kind),
        batch_size=args.batch_size,
        continue_token=args.continue_token,
    )
    print(
        f"Processed {result.processed} (updated {result.updated}, failed {result.failed}); "
        f"continue token: {result.continue_token}; done: {result.done}"
    )
    return 0


async def _handle_index_document(args: argparse.Namespace, components: Components) -> int:
    """Chunk, embed and store a text file."""
    path = Path(args.file)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
        return 1

    document = Document(
        title=args.title or path.stem,
        content=content,
        file_type=path.suffix.lstrip(".") or "txt",
    )
    try:
        stored, chunks = await components.documents.index_document(document)
    except ValidationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print("Indexing complete:")
    print(f"  Document ID:     {stored.id}")
    print(f"  Chunks created:  {len(chunks)}")
    print(f"  Chunks embedded: {sum(1 for c in chunks if c.embedding is not None)}")
    return 0


async def _handle_search(args: argparse.Namespace, components: Components) -> int:
    """Query the retrieval engine."""
    results = await components.retrieval.search(args.query)
    if not results:
        print("No results (the corpus is empty).")
        return 0
    for rank, item in enumerate(results, start=1):
        label = item.url or (f"chunk {item.chunk_index} of document {item.document_id}" if item.kind is ItemKind.CHUNK else "")
        print(f"{rank}. [{item.kind.value}] {item.title}")
        if label:
            print(f"   {label}")
        if item.text:
            print(f"   {item.text[:200]}")
    return 0


async def _handle_stats(args: argparse.Namespace, components: Components) -> int:
    """Display corpus statistics."""
    stats = await components.store.get_stats()
    print("Corpus Statistics")
    print("=" * 40)
    print(f"  Articles:             {stats.articles}")
    print(f"    with summary:       {stats.articles_with_summary}")
    print(f"    with image:         {stats.articles_with_image}")
    print(f"    with embedding:     {stats.articles_with_embedding}")
    print(f"  Documents:            {stats.documents}")
    print(f"    with embedding:     {stats.documents_with_embedding}")
    print(f"  Chunks:               {stats.chunks}")
    print(f"    with embedding:     {stats.chunks_with_embedding}")
    return 0


async def _handle_resolve(args: argparse.Namespace, components: Components) -> int:
    """Expand a shortened URL."""
    resolved = await components.resolver.resolve(args.url)
    print(resolved)
    return 0


async def _handle_extract(args: argparse.Namespace, components: Components) -> int:
    """Run the metadata extractor."""
    try:
        metadata = await components.extractor.extract(args.url)
    except ValidationError as exc:
        print(f"Rejected: {exc.message}", file=sys.stderr)
        return 1
    print(f"Tier:    {metadata.tier.value}")
    print(f"Title:   {metadata.title}")
    print(f"Snippet: {metadata.snippet}")
    return 0


_HANDLERS = {
    "fetch": _handle_fetch,
    "add-url": _handle_add_url,
    "backfill": _handle_backfill,
    "embed": _handle_embed,
    "index-document": _handle_index_document,
    "search": _handle_search,
    "stats": _handle_stats,
    "resolve": _handle_resolve,
    "extract": _handle_extract,
}

# Commands that never touch the database.
_STORELESS_COMMANDS = frozenset({"resolve", "extract"})


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the newspulse CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Operate the newspulse research-news corpus.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- fetch --
    fetch_parser = subparsers.add_parser("fetch", help="Run configured search queries and ingest results")
    fetch_parser.add_argument(
        "--query",
        action="append",
        help="Override the configured queries (repeatable)",
    )
    fetch_parser.add_argument("--num-results", type=int, dest="num_results", help="Results per query")

    # -- add-url --
    add_parser = subparsers.add_parser("add-url", help="Ingest one article URL")
    add_parser.add_argument("url", help="Article URL (shortened links are resolved)")

    # -- backfill --
    backfill_parser = subparsers.add_parser("backfill", help="Regenerate missing summaries and images")
    backfill_parser.add_argument("--batch-size", type=int, default=10, dest="batch_size")
    backfill_parser.add_argument("--continue-token", type=int, dest="continue_token")
    backfill_parser.add_argument("--all", action="store_true", help="Keep going until every batch is done")

    # -- embed --
    embed_parser = subparsers.add_parser("embed", help="Generate missing embeddings")
    embed_parser.add_argument(
        "--kind",
        choices=[k.value for k in ItemKind] + ["all"],
        default="all",
    )
    embed_parser.add_argument("--batch-size", type=int, default=50, dest="batch_size")
    embed_parser.add_argument("--continue-token", type=int, dest="continue_token")

    # -- index-document --
    doc_parser = subparsers.add_parser("index-document", help="Chunk, embed and store a text document")
    doc_parser.add_argument("--file", required=True, help="Path to a UTF-8 text file")
    doc_parser.add_argument("--title", help="Document title (default: file name)")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Query the retrieval engine")
    search_parser.add_argument("query", help="Free-text query")

    # -- stats --
    subparsers.add_parser("stats", help="Show corpus statistics")

    # -- resolve --
    resolve_parser = subparsers.add_parser("resolve", help="Expand a shortened or share URL")
    resolve_parser.add_argument("url")

    # -- extract --
    extract_parser = subparsers.add_parser("extract", help="Extract title and snippet for a URL")
    extract_parser.add_argument("url")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = build_components(app_settings)
    try:
        if args.command not in _STORELESS_COMMANDS:
            await components.store.initialize()
        return await _HANDLERS[args.command](args, components)
    except NewsPulseError as exc:
        logger.error("cli_command_failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components.aclose()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings from the environment / ``.env``,
    configures logging and dispatches to the handler.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    sys.exit(asyncio.run(_run(args, app_settings)))


if __name__ == "__main__":
    main()
