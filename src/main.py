# src/main.py — v3
"""CLI entry point: prefetch and keys commands.

Usage:
    metacache prefetch <page> [--backend-url URL] [--token TOKEN]
    metacache keys
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from metacache.version import __version__

logger = logging.getLogger(__name__)


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
    from metacache.pages.prefetch import PAGE_PLANS

    parser = argparse.ArgumentParser(
        prog="metacache",
        description=f"metacache v{__version__}: query cache for the DB admin console",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- prefetch ---
    p_prefetch = subparsers.add_parser(
        "prefetch", help="Prefetch a page and print its hydration payload",
    )
    p_prefetch.add_argument("page", choices=sorted(PAGE_PLANS), help="Console page")
    p_prefetch.add_argument(
        "--backend-url", default=None,
        help="Backend base URL (default: METACACHE_BACKEND_URL)",
    )
    p_prefetch.add_argument(
        "--token", default=None,
        help="Bearer token (default: METACACHE_BACKEND_TOKEN)",
    )
    p_prefetch.set_defaults(func=_cmd_prefetch)

    # --- keys ---
    p_keys = subparsers.add_parser(
        "keys", help="List the canonical key roots",
    )
    p_keys.set_defaults(func=_cmd_keys)

    return parser


async def _cmd_prefetch(args: argparse.Namespace) -> int:
    """Run one page plan against the backend."""
    from metacache.adapters.backend_client import BackendClient
    from metacache.config.settings import Settings
    from metacache.pages.prefetch import prefetch_page

    overrides: dict[str, object] = {}
    if args.backend_url:
        overrides["backend_url"] = args.backend_url
    if args.token:
        overrides["backend_token"] = args.token
    settings = Settings(**overrides)  # type: ignore[arg-type]

    async with BackendClient(settings) as backend:
        payload = await prefetch_page(args.page, backend, settings)

    print(payload.to_json())
    return 0


async def _cmd_keys(args: argparse.Namespace) -> int:
    """Print every key prefix the builders use."""
    from metacache.queries import (
        AnalyticsQueries,
        AuthQueries,
        DatabaseQueries,
        RecordQueries,
        SchemaQueries,
        TableQueries,
        ViewQueries,
    )

    prefixes = [
        AuthQueries.current_user_key(),
        AuthQueries.permissions_key(),
        AuthQueries.detailed_permissions_key(),
        AuthQueries.is_system_admin_key(),
        SchemaQueries.lists(),
        SchemaQueries.details(),
        TableQueries.lists(),
        TableQueries.details(),
        ViewQueries.lists(),
        ViewQueries.details(),
        RecordQueries.lists(),
        RecordQueries.counts(),
        DatabaseQueries.stats_key(),
        DatabaseQueries.usage_key(),
        DatabaseQueries.type_key(),
        AnalyticsQueries.dashboard(),
        AnalyticsQueries.roles(),
        AnalyticsQueries.audit(),
    ]
    for prefix in prefixes:
        print(prefix)
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging from settings, verbose forces DEBUG."""
    from metacache.config.settings import Settings
    from metacache.logging.logger import setup_logging_from_settings

    settings = Settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    setup_logging_from_settings(settings)


if __name__ == "__main__":
    sys.exit(main())
