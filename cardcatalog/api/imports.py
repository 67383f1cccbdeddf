"""
Card import API endpoints.

Runs a registered importer against its remote source or an uploaded file,
either as a dry run (preview, nothing saved) or for real.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.config import MIN_PREVIEW_LIMIT, settings
from cardcatalog.db.database import get_session
from cardcatalog.importers.base import SourceImporter
from cardcatalog.importers.registry import ImporterRegistry, build_registry
from cardcatalog.models.importing import ImportOptions, ImportSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])


class ImportSourceResponse(BaseModel):
    """One registered importer."""

    key: str
    display_name: str
    games: list[str] = Field(default_factory=list)


class ImportSourcesResponse(BaseModel):
    sources: list[ImportSourceResponse] = Field(default_factory=list)


class ImportRequest(BaseModel):
    """Request model for a remote import."""

    set_code: str | None = Field(
        default=None,
        description="Set to fetch; required by every remote source",
        examples=["mh3", "TFC", "WTR"],
    )
    limit: int | None = Field(
        default=None,
        description=f"Stop after this many records (default {settings.preview_limit_default})",
    )


class ImportSummaryResponse(BaseModel):
    """Counts and messages from one import run."""

    source: str
    dry_run: bool
    cards_created: int = 0
    cards_updated: int = 0
    printings_created: int = 0
    printings_updated: int = 0
    errors: int = 0
    messages: list[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: ImportSummary) -> "ImportSummaryResponse":
        return cls(**summary.to_dict())


def get_registry() -> ImporterRegistry:
    return build_registry()


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Dependency that provides an outbound HTTP client for one request."""
    async with httpx.AsyncClient(
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
        timeout=settings.http_timeout,
    ) as client:
        yield client


def resolve_importer(registry: ImporterRegistry, source: str) -> SourceImporter:
    importer, found = registry.try_get(source)
    if not found or importer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown import source '{source}'",
        )
    return importer


def resolve_limit(limit: int | None) -> int:
    """Apply the preview default and reject out-of-range limits."""
    if limit is None:
        return settings.preview_limit_default
    if limit < MIN_PREVIEW_LIMIT or limit > settings.preview_limit_max:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"limit must be between {MIN_PREVIEW_LIMIT} and {settings.preview_limit_max}",
        )
    return limit


async def _run_remote(
    importer: SourceImporter,
    request: ImportRequest,
    dry_run: bool,
    session: AsyncSession,
    client: httpx.AsyncClient,
) -> ImportSummaryResponse:
    options = ImportOptions(
        dry_run=dry_run,
        limit=resolve_limit(request.limit),
        set_code=request.set_code,
    )
    try:
        summary = await importer.import_from_remote(session, client, options)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except httpx.HTTPError as e:
        logger.error("%s: upstream request failed: %s", importer.key, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{importer.display_name} request failed: {e}",
        ) from e

    return ImportSummaryResponse.from_summary(summary)


@router.get("/sources", response_model=ImportSourcesResponse)
async def list_sources(
    registry: Annotated[ImporterRegistry, Depends(get_registry)],
) -> ImportSourcesResponse:
    """List every registered importer, ordered by key."""
    return ImportSourcesResponse(
        sources=[
            ImportSourceResponse(
                key=importer.key,
                display_name=importer.display_name,
                games=list(importer.games),
            )
            for importer in registry.all
        ]
    )


@router.post("/{source}/dry-run", response_model=ImportSummaryResponse)
async def dry_run_import(
    source: str,
    request: ImportRequest,
    registry: Annotated[ImporterRegistry, Depends(get_registry)],
    session: Annotated[AsyncSession, Depends(get_session)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ImportSummaryResponse:
    """
    Preview a remote import.

    Reports exactly what an apply would create or update, then discards it.
    """
    importer = resolve_importer(registry, source)
    return await _run_remote(importer, request, True, session, client)


@router.post("/{source}/apply", response_model=ImportSummaryResponse)
async def apply_import(
    source: str,
    request: ImportRequest,
    registry: Annotated[ImporterRegistry, Depends(get_registry)],
    session: Annotated[AsyncSession, Depends(get_session)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> ImportSummaryResponse:
    """Run a remote import and save the result."""
    importer = resolve_importer(registry, source)
    return await _run_remote(importer, request, False, session, client)


@router.post("/{source}/upload", response_model=ImportSummaryResponse)
async def upload_import(
    source: str,
    file: Annotated[UploadFile, File(description="CSV or JSON card export")],
    registry: Annotated[ImporterRegistry, Depends(get_registry)],
    session: Annotated[AsyncSession, Depends(get_session)],
    dry_run: Annotated[bool, Query()] = True,
    limit: Annotated[int | None, Query()] = None,
    set_code: Annotated[str | None, Query()] = None,
) -> ImportSummaryResponse:
    """
    Import an uploaded CSV or JSON file.

    The format is detected from the content, not the file name. Defaults to
    a dry run.
    """
    importer = resolve_importer(registry, source)
    options = ImportOptions(dry_run=dry_run, limit=resolve_limit(limit), set_code=set_code)

    payload = await file.read()
    if not payload.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    try:
        summary = await importer.import_from_file(session, payload, options)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return ImportSummaryResponse.from_summary(summary)
