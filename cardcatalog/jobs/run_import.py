"""
Run a card import from the command line.

Dry run by default; pass --apply to save. The summary is printed as JSON.

Usage:
    python -m cardcatalog.jobs.run_import scryfall --set mh3 --limit 50
    python -m cardcatalog.jobs.run_import guardians --file guardians.csv --apply
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from pathlib import Path

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.config import settings
from cardcatalog.db.database import session_scope
from cardcatalog.importers.errors import ImporterError
from cardcatalog.importers.registry import build_registry
from cardcatalog.models.importing import ImportOptions, ImportSummary

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


async def run_source_import(
    source: str,
    options: ImportOptions,
    file_path: Path | None = None,
    session_factory: SessionFactory = session_scope,
) -> ImportSummary:
    """
    Run one importer end to end in its own session.

    Args:
        source: Importer key
        options: Run options
        file_path: Import this file instead of fetching remotely
        session_factory: Opens the session the run owns

    Raises:
        KeyError: If no importer has the given key
        ImporterError: If the run cannot start
        httpx.HTTPError: If a remote fetch fails
    """
    importer = build_registry().get(source)
    logger.info(
        "Running %s import (set=%s, limit=%s, dry_run=%s)",
        importer.key,
        options.set_code,
        options.limit,
        options.dry_run,
    )

    async with session_factory() as session:
        if file_path is not None:
            return await importer.import_from_file(session, file_path.read_bytes(), options)

        async with httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent},
            follow_redirects=True,
            timeout=settings.http_timeout,
        ) as client:
            return await importer.import_from_remote(session, client, options)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import card metadata from a source")
    parser.add_argument(
        "source",
        help=f"Importer key ({', '.join(build_registry().keys)})",
    )
    parser.add_argument("--set", dest="set_code", help="Set code to import (e.g., mh3, TFC)")
    parser.add_argument("--limit", type=int, help="Stop after this many records")
    parser.add_argument("--file", type=Path, help="Import a local CSV or JSON file")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Save the results (default is a dry run)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        options = ImportOptions(dry_run=not args.apply, limit=args.limit, set_code=args.set_code)
        summary = asyncio.run(run_source_import(args.source, options, args.file))
    except (KeyError, ValueError, ImporterError, httpx.HTTPError, OSError) as e:
        logger.error("Import failed: %s", e)
        return 1

    print(json.dumps(summary.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
