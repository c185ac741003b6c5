# =============================================================================
# src/cli/ingest.py -- CLI Ingest Command (vector index management)
# =============================================================================
#
# Standalone CLI for managing the job openings vector index without going
# through the HTTP API.  Nothing here writes JSON documents; it only
# embeds, queries and deletes vector records.
#
# Supported subcommands:
#
#   file      -- Index a JSON file holding one job opening or an array of them
#   directory -- Index every *.json file in a directory (e.g. JOB_OPENINGS_DIR)
#   query     -- Print the top-K matches for a free-text query
#   delete    -- Remove every vector record derived from one content hash
#
# Backends are selected exactly as the API server selects them
# (VECTOR_STORE_BACKEND, APP_ENV and the configured credentials).
#
# Usage examples:
#   python -m src.cli.ingest file ./openings.json
#   python -m src.cli.ingest directory ./data/job-openings
#   python -m src.cli.ingest query "remote python engineer" --top-k 5
#   python -m src.cli.ingest delete --hash 3f2a...
# =============================================================================

"""Standalone CLI for the job openings vector index.

Usage::

    python -m src.cli.ingest file ./openings.json
    python -m src.cli.ingest directory ./data/job-openings
    python -m src.cli.ingest query "remote python engineer" --top-k 5
    python -m src.cli.ingest delete --hash <content-hash>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.utils.errors import JobOpeningsError
from src.utils.logging import configure_logging


def _load_payloads(path: Path) -> list[Any]:
    """Read *path* as JSON and return its job opening payloads.

    A top-level array yields one payload per element; anything else is
    treated as a single payload.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return data
    return [data]


def _document_id(payload: Any) -> str | None:
    """Return the stored document id carried by *payload*, if any."""
    if isinstance(payload, dict) and isinstance(payload.get("id"), str):
        return payload["id"]
    return None


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Index every job opening in one JSON file."""
    service = components["ingestion_service"]
    path = Path(args.path)
    print(f"Indexing file: {path}")

    try:
        payloads = _load_payloads(path)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Error: could not read {path}: {exc}", file=sys.stderr)
        return 1

    total_chunks = 0
    for payload in payloads:
        result = await service.ingest(payload, document_id=_document_id(payload))
        total_chunks += result.chunks_created
        print(f"  {result.source_hash}  chunks={result.chunks_created}")

    print("\nIndexing complete:")
    print(f"  Job openings:   {len(payloads)}")
    print(f"  Chunks created: {total_chunks}")
    print(f"  Index:          {service.index_name}")
    return 0


async def _handle_directory(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Index every ``*.json`` file in a directory.

    Files that fail to read or validate are reported and skipped; the exit
    code is non-zero when any file failed.
    """
    service = components["ingestion_service"]
    directory = Path(args.path)
    if not directory.is_dir():
        print(f"Error: {directory} is not a directory", file=sys.stderr)
        return 1

    print(f"Indexing directory: {directory}")
    indexed = 0
    failed = 0
    total_chunks = 0
    for path in sorted(directory.glob("*.json")):
        try:
            for payload in _load_payloads(path):
                result = await service.ingest(
                    payload, document_id=_document_id(payload) or path.stem
                )
                total_chunks += result.chunks_created
                indexed += 1
            print(f"  {path.name}: ok")
        except (OSError, json.JSONDecodeError, JobOpeningsError) as exc:
            failed += 1
            print(f"  {path.name}: FAILED ({exc})", file=sys.stderr)

    print("\nDirectory indexing complete:")
    print(f"  Job openings:   {indexed}")
    print(f"  Files failed:   {failed}")
    print(f"  Chunks created: {total_chunks}")
    return 1 if failed else 0


async def _handle_query(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print ranked matches for a free-text query."""
    retrieval = components["retrieval_service"]
    matches = await retrieval.search(args.text, args.top_k)

    if not matches:
        print("No matches.")
        return 0

    for rank, match in enumerate(matches, start=1):
        meta = match.metadata
        print(f"{rank}. [{match.score:.3f}] {meta.get('position', '?')} ({meta.get('location', '?')})")
        print(f"   id: {match.id}")
        text = str(meta.get("text", "")).replace("\n", " ")
        if text:
            print(f"   {text[:200]}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Delete the vector records of one content hash."""
    service = components["ingestion_service"]
    deleted = await service.delete_source(args.hash)
    print(f"Deleted {deleted} vector records for {args.hash} from {service.index_name}")
    return 0


_HANDLERS = {
    "file": _handle_file,
    "directory": _handle_directory,
    "query": _handle_query,
    "delete": _handle_delete,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    """Build the components, dispatch to the handler, and close clients."""
    # Deferred so --help does not import the vector store SDKs.
    from src.main import build_components, close_components

    components = build_components(app_settings)
    try:
        return await _HANDLERS[args.command](args, components)
    except JobOpeningsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_components(components)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage the job openings vector index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Index commands")

    # -- file --
    file_parser = subparsers.add_parser(
        "file", help="Index a JSON file (one job opening or an array)"
    )
    file_parser.add_argument("path", help="Path to the JSON file")

    # -- directory --
    dir_parser = subparsers.add_parser("directory", help="Index every *.json file in a directory")
    dir_parser.add_argument("path", help="Directory path")

    # -- query --
    query_parser = subparsers.add_parser("query", help="Search the index")
    query_parser.add_argument("text", help="Free-text query")
    query_parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        dest="top_k",
        help="Number of matches to return (default: QUERY_TOP_K)",
    )

    # -- delete --
    delete_parser = subparsers.add_parser(
        "delete", help="Delete all vector records of one content hash"
    )
    delete_parser.add_argument("--hash", required=True, help="Content hash (source_hash)")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the index management tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)
    sys.exit(asyncio.run(_run(args, app_settings)))


if __name__ == "__main__":
    main()
