"""Tests for the Dice Masters DB scraper importer."""

import json
from pathlib import Path

import httpx
import pytest
import respx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.db.operations import get_card, get_printing
from cardcatalog.importers.dicemasters import (
    DICEMASTERS_BASE,
    DiceMastersImporter,
    describe_card_entry,
    parse_card_entry,
    parse_card_links,
    parse_card_page,
)
from cardcatalog.importers.errors import RecordError
from cardcatalog.models.importing import ImportOptions

SET_URL = f"{DICEMASTERS_BASE}/set/avx/cards"
IRON_MAN_URL = f"{DICEMASTERS_BASE}/card/avx-1-iron-man"
HULK_URL = f"{DICEMASTERS_BASE}/card/avx-2-hulk"


@pytest.fixture
def set_html(fixtures_dir: Path) -> str:
    return (fixtures_dir / "dicemasters_set.html").read_text()


@pytest.fixture
def card_html(fixtures_dir: Path) -> str:
    return (fixtures_dir / "dicemasters_card.html").read_text()


class TestParseLinks:
    def test_absolute_and_deduplicated(self, set_html: str) -> None:
        assert parse_card_links(set_html, SET_URL) == [IRON_MAN_URL, HULK_URL]


class TestParseCardPage:
    def test_extracts_fields(self, card_html: str) -> None:
        record = parse_card_page(card_html, IRON_MAN_URL)

        assert record.game == "Dice Masters"
        assert record.name == "Iron Man"
        assert record.set_code == "AVX"
        assert record.number == "1"
        assert record.rarity == "Common"
        assert record.card_type == "Character"
        assert record.description == "Global: Pay 1 energy. Target character die gets +1A."
        assert record.image_url == f"{DICEMASTERS_BASE}/images/cards/avx-1.jpg"
        assert record.card_details == {
            "subtitle": "Billionaire Philanthropist",
            "energy": "Fist",
            "purchaseCost": "4",
            "diceFaces": [
                f"{DICEMASTERS_BASE}/images/dice/avx-1-face1.png",
                f"{DICEMASTERS_BASE}/images/dice/avx-1-face2.png",
            ],
        }

    def test_bare_page_defaults(self) -> None:
        record = parse_card_page("<html><body><p>Not found</p></body></html>", IRON_MAN_URL)

        assert record.name == "Unknown"
        assert record.set_code == "UNK"
        assert record.number == ""
        assert record.image_url is None


class TestParseCardEntry:
    def test_alternate_field_names(self) -> None:
        record = parse_card_entry(
            {
                "setSlug": "uxm",
                "cardNumber": 12,
                "cardName": "Storm",
                "energyType": "Bolt",
                "dice": "a.png; b.png",
                "image_uri": "https://img.example/storm.png",
            }
        )

        assert record.set_code == "UXM"
        assert record.number == "12"
        assert record.name == "Storm"
        assert record.card_details["energy"] == "Bolt"
        assert record.card_details["diceFaces"] == ["a.png", "b.png"]
        assert record.image_url == "https://img.example/storm.png"

    def test_rejects_non_objects(self) -> None:
        with pytest.raises(RecordError, match="Expected card object"):
            parse_card_entry(["not", "a", "card"])

    def test_requires_number(self) -> None:
        with pytest.raises(RecordError, match="Missing set or number"):
            parse_card_entry({"set": "avx", "name": "Hulk"})


class TestRemoteImport:
    @respx.mock
    async def test_scrapes_each_card(self, session: AsyncSession, set_html: str, card_html: str) -> None:
        respx.get(SET_URL).mock(return_value=httpx.Response(200, text=set_html))
        respx.get(IRON_MAN_URL).mock(return_value=httpx.Response(200, text=card_html))
        respx.get(HULK_URL).mock(return_value=httpx.Response(500))

        async with httpx.AsyncClient() as client:
            summary = await DiceMastersImporter(delay=0).import_from_remote(
                session, client, ImportOptions(dry_run=False, set_code="AVX")
            )

        assert summary.cards_created == 1
        assert summary.errors == 1
        assert summary.messages[0].startswith(f"Error importing '{HULK_URL}':")
        assert summary.messages[-1] == "Processed 2 records for set=AVX."
        assert await get_card(session, "Dice Masters", "Iron Man") is not None
        assert await get_printing(session, "Dice Masters", "AVX", "1") is not None

    @respx.mock
    async def test_limit_skips_remaining_pages(self, session: AsyncSession, set_html: str, card_html: str) -> None:
        respx.get(SET_URL).mock(return_value=httpx.Response(200, text=set_html))
        iron_man = respx.get(IRON_MAN_URL).mock(return_value=httpx.Response(200, text=card_html))
        hulk = respx.get(HULK_URL).mock(return_value=httpx.Response(200, text=card_html))

        async with httpx.AsyncClient() as client:
            await DiceMastersImporter(delay=0).import_from_remote(
                session, client, ImportOptions(limit=1, set_code="avx")
            )

        assert iron_man.called
        assert not hulk.called

    @respx.mock
    async def test_set_page_failure_aborts(self, session: AsyncSession) -> None:
        respx.get(SET_URL).mock(return_value=httpx.Response(503))

        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.HTTPStatusError):
                await DiceMastersImporter(delay=0).import_from_remote(
                    session, client, ImportOptions(set_code="avx")
                )


class TestFileImport:
    async def test_json_export(self, session: AsyncSession) -> None:
        payload = json.dumps(
            {"cards": [{"set": "avx", "number": "2", "name": "Hulk"}, {"set": "avx", "name": "No Number"}]}
        )

        summary = await DiceMastersImporter().import_from_file(session, payload.encode(), ImportOptions())

        assert summary.cards_created == 1
        assert summary.errors == 1
        assert summary.messages[0] == "Error [avx/?] No Number: Missing set or number in card entry."

    async def test_failing_entry_is_named(self, session: AsyncSession) -> None:
        payload = json.dumps(
            [
                {"set": "avx", "number": "1", "name": "Iron Man"},
                {"set": "avx", "number": "", "name": "Hulk"},
                {"setSlug": "avx", "cardNumber": "3", "cardName": "Thor"},
            ]
        )

        summary = await DiceMastersImporter().import_from_file(session, payload.encode(), ImportOptions())

        assert summary.errors == 1
        assert summary.cards_created == 2
        assert any("Hulk" in message for message in summary.messages)

    def test_describe_card_entry(self) -> None:
        assert describe_card_entry({"setSlug": "uxm", "cardNumber": 12, "cardName": "Storm"}) == "[uxm/12] Storm"
        assert describe_card_entry(["not", "a", "card"]) == "[?/?] Unknown"
