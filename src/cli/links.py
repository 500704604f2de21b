# =============================================================================
# src/cli/links.py -- Saved-link management from the terminal
# =============================================================================
#
# Runs the same ingestion, chat and reconciliation services the API uses,
# built from the same Settings / config.yaml, against the same SQLite file.
#
# Subcommands:
#
#   ingest      -- Save a URL for an owner (extract, summarise, tag, embed)
#   preview     -- Show what would be saved for a URL, without saving
#   ask         -- Ask a question answered from an owner's saved links
#   list        -- List an owner's saved links, newest first
#   reconcile   -- Backfill embeddings for records stored without one
#   purge-owner -- Delete every saved link of an owner (requires --yes)
#   token       -- Print a bearer token for an owner (uses AUTH_SECRET)
#
# Usage examples:
#   python -m src.cli.links ingest https://example.com/post --owner alice
#   python -m src.cli.links ask "what did I save about sqlite?" --owner alice
#   python -m src.cli.links reconcile --limit 50
#   python -m src.cli.links purge-owner alice --yes
#   python -m src.cli.links token alice
# =============================================================================

"""Command-line access to the linkvault services.

Usage::

    python -m src.cli.links ingest https://example.com/post --owner alice
    python -m src.cli.links ask "what did I save about sqlite?" --owner alice
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from src.config.settings import Settings
from src.utils.errors import LinkVaultError


def _build_components(app_settings: Settings) -> dict[str, Any]:
    """Build the service graph; deferred so ``token`` stays import-light."""
    from src.config.loader import load_config
    from src.main import build_services

    return build_services(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Saving: {args.url}")
    record = await components["ingestion_service"].ingest(args.url, args.owner)
    print(f"  Id:      {record.id}")
    print(f"  Title:   {record.title or '(none)'}")
    print(f"  Domain:  {record.domain or '(unknown)'}")
    print(f"  Tags:    {', '.join(record.tags) or '(none)'}")
    print(f"  Summary: {record.summary}")
    return 0


async def _handle_preview(args: argparse.Namespace, components: dict[str, Any]) -> int:
    preview = await components["ingestion_service"].preview(args.url)
    print(f"URL:     {preview.url}")
    print(f"Title:   {preview.title or '(none)'}")
    print(f"Image:   {preview.hero_image or '(none)'}")
    print(f"Domain:  {preview.domain or '(unknown)'}")
    print(f"Tags:    {', '.join(preview.tags)}")
    print(f"Summary: {preview.summary}")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    exchange = await components["chat_service"].chat(args.query, args.owner)
    print(exchange.answer)
    if exchange.ranked_records:
        print("\nContext links:")
        for index, ranked in enumerate(exchange.ranked_records, start=1):
            print(
                f"  {index}. [{ranked.relevance_score:>3}%] "
                f"{ranked.title or 'Untitled'} -- {ranked.url}"
            )
    return 0


async def _handle_list(args: argparse.Namespace, components: dict[str, Any]) -> int:
    records = await components["ingestion_service"].list_records(args.owner)
    if not records:
        print("No saved links.")
        return 0
    for record in records:
        created = record.created_at.strftime("%Y-%m-%d %H:%M")
        print(f"{record.id}  {created}  {record.title or 'Untitled'}")
        print(f"    {record.url}  [{', '.join(record.tags)}]")
    return 0


async def _handle_reconcile(args: argparse.Namespace, components: dict[str, Any]) -> int:
    stats = await components["reconciliation_service"].sweep(limit=args.limit)
    print(
        f"Scanned {stats['scanned']}, repaired {stats['repaired']}, failed {stats['failed']}"
    )
    return 0 if stats["failed"] == 0 else 1


async def _handle_purge_owner(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if not args.yes:
        print(f"Refusing to delete every link of {args.owner!r} without --yes", file=sys.stderr)
        return 1
    removed = await components["ingestion_service"].delete_owner(args.owner)
    print(f"Deleted {removed} link(s) for {args.owner}")
    return 0


_HANDLERS = {
    "ingest": _handle_ingest,
    "preview": _handle_preview,
    "ask": _handle_ask,
    "list": _handle_list,
    "reconcile": _handle_reconcile,
    "purge-owner": _handle_purge_owner,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = _build_components(app_settings)
    try:
        await components["record_store"].initialize()
        return await _HANDLERS[args.command](args, components)
    except LinkVaultError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.links",
        description="Save links and ask questions about them.",
    )
    subparsers = parser.add_subparsers(dest="command")

    ingest = subparsers.add_parser("ingest", help="Save a URL")
    ingest.add_argument("url")
    ingest.add_argument("--owner", required=True, help="Owner id the link is saved for")

    preview = subparsers.add_parser("preview", help="Preview a URL without saving it")
    preview.add_argument("url")

    ask = subparsers.add_parser("ask", help="Ask a question over saved links")
    ask.add_argument("query")
    ask.add_argument("--owner", required=True)

    list_cmd = subparsers.add_parser("list", help="List saved links")
    list_cmd.add_argument("--owner", required=True)

    reconcile = subparsers.add_parser("reconcile", help="Backfill missing embeddings")
    reconcile.add_argument("--limit", type=int, default=100)

    purge = subparsers.add_parser("purge-owner", help="Delete every saved link of an owner")
    purge.add_argument("owner")
    purge.add_argument("--yes", action="store_true", help="Confirm the deletion")

    token = subparsers.add_parser("token", help="Print a bearer token for an owner")
    token.add_argument("owner")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()

    if args.command == "token":
        from src.api.auth import issue_token

        if not app_settings.auth_secret:
            print("Warning: AUTH_SECRET is empty; the token is the raw owner id.", file=sys.stderr)
        print(issue_token(args.owner, app_settings.auth_secret))
        return 0

    return asyncio.run(_run(args, app_settings))


if __name__ == "__main__":
    sys.exit(main())
