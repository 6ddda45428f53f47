"""Command-line access to the Rechtspraak assistant.

Usage::

    python -m rechtspraak.cli ingest "https://drive.google.com/file/d/<id>/view"
    python -m rechtspraak.cli ask "Wat zegt de Hoge Raad over ontslag op staande voet?"
    python -m rechtspraak.cli search "huurovereenkomst opzegging" --limit 10
    python -m rechtspraak.cli stats

Each subcommand builds the same object graph as the API server
(``rechtspraak.main._build_all``), runs one async handler under
``asyncio.run`` and exits 0 on success, 1 on error.  Documents and
conversations live in memory, so ``ask`` only sees what the vector store
already holds from earlier ``ingest`` runs.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, Awaitable, Callable

from rechtspraak.config.settings import Settings
from rechtspraak.models.chat import ChatOptions
from rechtspraak.models.document import DocumentStatus
from rechtspraak.utils.errors import RechtspraakError

_Handler = Callable[[argparse.Namespace, dict[str, Any]], Awaitable[int]]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    assistant = components["assistant"]
    print(f"Ingesting: {args.link}")
    registered = assistant.ingest_document(args.link)
    document = await components["ingestion"].wait_for(registered["document_id"])
    if document is None:
        print("Error: document disappeared during ingestion.", file=sys.stderr)
        return 1

    print(f"  Document ID:  {document.id}")
    print(f"  Name:         {document.name}")
    print(f"  Status:       {document.status.value}")
    if document.status is DocumentStatus.ERROR:
        print(f"  Error:        {document.error}", file=sys.stderr)
        return 1
    print(f"  Chunks:       {document.chunk_count}")
    print(f"  Vectors:      {document.vectors_upserted}")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    options = ChatOptions(max_results=args.max_results, document_id=args.document_id)
    result = await components["assistant"].send_message(args.session, args.question, options)

    print(result.answer)
    if result.citations:
        print("\nBronnen:")
        for citation in result.citations:
            print(f"  [{citation.id}] {citation.document_name} ({citation.relevance_score}%)")
    if result.follow_ups:
        print("\nVervolgvragen:")
        for question in result.follow_ups:
            print(f"  - {question}")
    print(f"\nSession: {result.session_id} (turn {result.turn_number})")
    return 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    options = ChatOptions(max_results=args.limit)
    results = await components["assistant"].search_documents(args.query, options)
    if not results:
        print("No results.")
        return 0

    for position, result in enumerate(results, start=1):
        print(f"{position}. {result.document_name} [{result.document_type}]")
        print(f"   score: {result.score:.3f} ({result.relevance_category})")
        print(f"   {result.context_snippet}")
    return 0


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:  # noqa: ARG001
    vector_count = await components["vector_index"].count()
    stats = components["assistant"].get_stats()
    registry = components["provider_registry"]

    print("Rechtspraak Statistics")
    print("=" * 40)
    print(f"  Vector store:     {registry['vector_store_name']}")
    print(f"  Stored vectors:   {vector_count}")
    print(f"  LLM:              {registry['llm_name']} (available: {registry['llm']})")
    print(f"  Embedding:        {registry['embedding_name']} (available: {registry['embedding']})")
    print(f"  Chat sessions:    {stats.total_sessions}")
    return 0


_HANDLERS: dict[str, _Handler] = {
    "ingest": _handle_ingest,
    "ask": _handle_ask,
    "search": _handle_search,
    "stats": _handle_stats,
}


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


async def _run(handler: _Handler, args: argparse.Namespace, app_settings: Settings) -> int:
    """Build the components, run *handler*, and always release resources."""
    # Deferred so ``--help`` does not pay for provider imports.
    from rechtspraak.main import _build_all

    try:
        components = _build_all(app_settings)
    except RechtspraakError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    sweeper = components["sweeper"]
    sweeper.start()
    try:
        return await handler(args, components)
    except RechtspraakError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await sweeper.stop()
        await components["ingestion"].drain()
        await components["http_client"].aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m rechtspraak.cli",
        description="Ingest, search, and question Dutch case law.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a Google Drive document")
    ingest_parser.add_argument("link", help="Shareable Google Drive link")

    ask_parser = subparsers.add_parser("ask", help="Ask a question about the case law")
    ask_parser.add_argument("question", help="The question, in Dutch or English")
    ask_parser.add_argument("--session", default=None, help="Session id to continue")
    ask_parser.add_argument("--max-results", type=int, default=None, dest="max_results")
    ask_parser.add_argument("--document-id", default=None, dest="document_id")

    search_parser = subparsers.add_parser("search", help="Semantic search")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum results")

    subparsers.add_parser("stats", help="Show store and provider statistics")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the chosen subcommand, and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    return asyncio.run(_run(_HANDLERS[args.command], args, Settings()))
