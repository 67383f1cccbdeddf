from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardcatalog.api.imports import get_http_client
from cardcatalog.db.database import get_session
from cardcatalog.main import app
from cardcatalog.models.db import Base

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


def _scryfall_card(
    name: str = "Lightning Bolt",
    set_code: str | None = "uts",
    number: str = "1",
    type_line: str = "Instant",
    oracle_text: str | None = "Deal 3 damage to any target.",
    rarity: str = "rare",
    finishes: list[str] | None = None,
    image: str | None = "https://img.example/bolt.jpg",
    **extra,
) -> dict:
    """A minimal Scryfall card object."""
    card = {
        "id": f"{set_code}-{number}",
        "name": name,
        "set": set_code,
        "collector_number": number,
        "type_line": type_line,
        "oracle_text": oracle_text,
        "rarity": rarity,
        "finishes": finishes if finishes is not None else ["nonfoil"],
    }
    if image is not None:
        card["image_uris"] = {"normal": image}
    card.update(extra)
    return card


@pytest.fixture
def make_scryfall_card():
    """Factory for minimal Scryfall card objects."""
    return _scryfall_card


@pytest.fixture
def upstream() -> dict[str, httpx.Response]:
    """Canned upstream responses for the API client, keyed by request path."""
    return {}


@pytest.fixture
async def client(session_factory, upstream):
    """Async client for the app with the database and outbound HTTP swapped out."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    def handler(request: httpx.Request) -> httpx.Response:
        return upstream.get(request.url.path, httpx.Response(404))

    async def override_get_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            yield http

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_http_client] = override_get_http_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
