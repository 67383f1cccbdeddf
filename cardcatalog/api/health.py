"""
Health check endpoints.

/health answers as long as the process is up; /ready also proves the catalog
tables can be queried and reports how much is in them.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.db import count_cards, count_printings, get_session
from cardcatalog.importers.registry import build_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness/readiness payload."""

    status: str
    importers: int | None = None
    database: str | None = None
    cards: int | None = None
    printings: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe; touches nothing but the importer registry."""
    return HealthResponse(status="healthy", importers=len(build_registry()))


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 when the catalog tables cannot be counted.
    """
    try:
        cards = await count_cards(session)
        printings = await count_printings(session)
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")

    return HealthResponse(
        status="ready",
        database="connected",
        cards=cards,
        printings=printings,
    )
