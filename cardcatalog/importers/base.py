"""
Importer contract and the batch loop every importer runs through.

An importer normalizes its own transport and schema into CardRecords; the
loop here applies the limit, isolates per-record failures, performs the
single save and decides commit vs rollback from the dry-run flag.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable
from typing import IO, Any, Protocol, TypeVar, runtime_checkable

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.db.dry_run import run_with_dry_run
from cardcatalog.db.operations import upsert_card_printing
from cardcatalog.importers.errors import (
    ImportPreconditionError,
    PayloadFormatError,
    UnsupportedImportError,
)
from cardcatalog.importers.fields import first_present
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

logger = logging.getLogger(__name__)

R = TypeVar("R")

FILE_SCOPE = "(from file)"


@runtime_checkable
class SourceImporter(Protocol):
    """
    A source-specific importer.

    Attributes:
        key: Registry key, e.g. "scryfall"
        display_name: Human-readable source name
        games: Games this source provides cards for
    """

    key: str
    display_name: str
    games: tuple[str, ...]

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        """Fetch from the source's own API or site and import."""
        ...

    async def import_from_file(
        self,
        session: AsyncSession,
        stream: IO[bytes] | bytes,
        options: ImportOptions,
    ) -> ImportSummary:
        """Parse an uploaded CSV/JSON payload and import."""
        ...


def require_set_code(options: ImportOptions, example: str) -> str:
    """
    Return the trimmed set code or fail the whole run.

    Raises:
        ImportPreconditionError: If no set code was given
    """
    set_code = (options.set_code or "").strip()
    if not set_code:
        raise ImportPreconditionError(f"SetCode is required (e.g., {example}).")
    return set_code


def unsupported(source: str, message: str) -> UnsupportedImportError:
    return UnsupportedImportError(f"{source}: {message}")


def describe_record(raw: Any) -> str:
    """Label a raw record as "[SET/NUMBER] Name" for error messages."""
    set_code = first_present(raw, "set", "set_code", "setCode") or "?"
    number = first_present(raw, "number", "collector_number", "collectorNumber") or "?"
    name = first_present(raw, "name", "fullName", "title") or "Unknown"
    return f"[{set_code}/{number}] {name}"


def read_json(response: httpx.Response) -> Any:
    """
    Decode a JSON response body from a source.

    Raises:
        httpx.DecodingError: If the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise httpx.DecodingError(
            f"Invalid JSON from {response.url}: {e}", request=response.request
        ) from e


def read_records(response: httpx.Response) -> list[Any]:
    """
    Parse a whole-set response body into raw records.

    A body that cannot be parsed is an upstream failure, not a bad request.

    Raises:
        httpx.DecodingError: If the body is not UTF-8 or not valid JSON
    """
    try:
        return load_records(response.content)
    except PayloadFormatError as e:
        raise httpx.DecodingError(
            f"Unreadable payload from {response.url}: {e}", request=response.request
        ) from e


async def _iterate(records: AsyncIterable[R] | Iterable[R]) -> AsyncIterator[R]:
    if isinstance(records, AsyncIterable):
        async for item in records:
            yield item
    else:
        for item in records:
            yield item


async def run_import(
    session: AsyncSession,
    *,
    source: str,
    options: ImportOptions,
    records: AsyncIterable[R] | Iterable[R],
    normalize: Callable[[R], Awaitable[CardRecord] | CardRecord],
    describe: Callable[[R], str] = describe_record,
    scope: str | None = None,
    update_style: bool = True,
    delay: float = 0.0,
) -> ImportSummary:
    """
    Normalize and upsert records one at a time inside a dry-run scope.

    Records are processed strictly in order. A record that fails to
    normalize or upsert is counted and described, and the batch moves on.
    Failures while producing records (e.g. a page fetch) abort the run.

    Args:
        session: Unit of work for the whole batch
        source: Importer key, echoed in the summary
        options: Run options (dry_run, limit)
        records: Raw records, possibly fetched lazily page by page
        normalize: Turns a raw record into a CardRecord (may be async)
        describe: Labels a raw record for error messages
        scope: Set label for the trailing message
        update_style: Overwrite the style of printings already stored
        delay: Seconds to pause after each record (scraping politeness)

    Returns:
        The populated ImportSummary
    """
    summary = ImportSummary(source=source, dry_run=options.dry_run)
    limit = options.limit
    label = scope or options.set_code or FILE_SCOPE

    async def work() -> ImportSummary:
        processed = 0
        async for raw in _iterate(records):
            if limit is not None and processed >= limit:
                break
            processed += 1

            try:
                record = normalize(raw)
                if inspect.isawaitable(record):
                    record = await record
                await upsert_card_printing(session, record, summary, update_style=update_style)
            except Exception as e:
                record_label = describe(raw)
                summary.record_error(record_label, e)
                logger.warning("%s: skipped record %s: %s", source, record_label, e)

            if limit is not None and processed >= limit:
                break
            if delay > 0:
                await asyncio.sleep(delay)

        await session.flush()
        summary.messages.append(f"Processed {processed} records for set={label}.")
        logger.info(
            "%s: processed %d records for set=%s (dry_run=%s, errors=%d)",
            source,
            processed,
            label,
            options.dry_run,
            summary.errors,
        )
        return summary

    return await run_with_dry_run(session, options.dry_run, work)
