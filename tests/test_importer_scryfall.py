"""Tests for the Scryfall importer."""

import json

import httpx
import pytest
import respx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.db.operations import count_printings, get_card, get_printing
from cardcatalog.importers.errors import ImportPreconditionError, PayloadFormatError
from cardcatalog.importers.scryfall import (
    SCRYFALL_API,
    ScryfallImporter,
    build_rules_text,
    normalize_card,
)
from cardcatalog.models.importing import ImportOptions

SEARCH_URL = f"{SCRYFALL_API}/cards/search"


def search_page(cards: list[dict], next_page: str | None = None) -> httpx.Response:
    body = {"object": "list", "data": cards, "has_more": next_page is not None}
    if next_page:
        body["next_page"] = next_page
    return httpx.Response(200, json=body)


class TestRulesText:
    def test_oracle_text(self) -> None:
        assert build_rules_text({"oracle_text": "Flying"}) == "Flying"

    def test_faces_joined(self) -> None:
        card = {
            "oracle_text": None,
            "card_faces": [
                {"name": "Delver of Secrets", "oracle_text": "Transform it."},
                {"name": "Insectile Aberration", "oracle_text": "Flying"},
            ],
        }
        assert build_rules_text(card) == (
            "Delver of Secrets\nTransform it.\n//\nInsectile Aberration\nFlying"
        )

    def test_face_without_text(self) -> None:
        card = {"card_faces": [{"name": "Front", "oracle_text": ""}]}
        assert build_rules_text(card) == "Front"

    def test_no_text(self) -> None:
        assert build_rules_text({}) is None


class TestNormalize:
    def test_maps_fields(self, make_scryfall_card) -> None:
        record = normalize_card(make_scryfall_card(finishes=["nonfoil", "foil"]))

        assert record.game == "Magic"
        assert record.name == "Lightning Bolt"
        assert record.card_type == "Instant"
        assert record.set_code == "uts"
        assert record.number == "1"
        assert record.rarity == "rare"
        assert record.style == "Foil"
        assert record.image_url == "https://img.example/bolt.jpg"

    def test_defaults(self, make_scryfall_card) -> None:
        card = make_scryfall_card(set_code=None, rarity=None, image=None)
        record = normalize_card(card, "mh3")

        assert record.set_code == "mh3"
        assert record.rarity == "common"
        assert record.style == "Standard"
        assert record.image_url is None

    def test_face_image_fallback(self, make_scryfall_card) -> None:
        card = make_scryfall_card(
            image=None,
            card_faces=[{"name": "Front", "image_uris": {"normal": "https://img.example/front.jpg"}}],
        )
        assert normalize_card(card).image_url == "https://img.example/front.jpg"


class TestRemoteImport:
    async def test_requires_set_code(self, session: AsyncSession) -> None:
        async with httpx.AsyncClient() as client:
            with pytest.raises(ImportPreconditionError, match="SetCode is required"):
                await ScryfallImporter().import_from_remote(session, client, ImportOptions())

    @respx.mock
    async def test_follows_next_page(self, session: AsyncSession, make_scryfall_card) -> None:
        route = respx.get(url__startswith=SEARCH_URL).mock(
            side_effect=[
                search_page([make_scryfall_card(number="1")], next_page=f"{SEARCH_URL}?page=2"),
                search_page([make_scryfall_card(name="Shock", number="2")]),
            ]
        )

        async with httpx.AsyncClient() as client:
            summary = await ScryfallImporter().import_from_remote(
                session, client, ImportOptions(dry_run=False, set_code="uts")
            )

        assert route.call_count == 2
        first_query = route.calls[0].request.url.params
        assert first_query["q"] == "set:uts unique:prints"
        assert first_query["order"] == "set"
        assert summary.cards_created == 2
        assert summary.printings_created == 2
        assert summary.messages[-1] == "Processed 2 records for set=uts."
        assert await count_printings(session) == 2

    @respx.mock
    async def test_limit_stops_page_fetches(self, session: AsyncSession, make_scryfall_card) -> None:
        route = respx.get(url__startswith=SEARCH_URL).mock(
            side_effect=[
                search_page(
                    [make_scryfall_card(number="1"), make_scryfall_card(name="Shock", number="2")],
                    next_page=f"{SEARCH_URL}?page=2",
                ),
                search_page([make_scryfall_card(name="Spark", number="3")]),
            ]
        )

        async with httpx.AsyncClient() as client:
            summary = await ScryfallImporter().import_from_remote(
                session, client, ImportOptions(limit=2, set_code="uts")
            )

        assert route.call_count == 1
        assert summary.cards_created == 2

    @respx.mock
    async def test_upstream_error_propagates(self, session: AsyncSession) -> None:
        respx.get(url__startswith=SEARCH_URL).mock(return_value=httpx.Response(404))

        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.HTTPStatusError):
                await ScryfallImporter().import_from_remote(
                    session, client, ImportOptions(set_code="zzz")
                )

    @respx.mock
    async def test_invalid_json_is_decoding_error(self, session: AsyncSession) -> None:
        respx.get(url__startswith=SEARCH_URL).mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )

        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.DecodingError, match="Invalid JSON"):
                await ScryfallImporter().import_from_remote(
                    session, client, ImportOptions(set_code="uts")
                )

    @respx.mock
    async def test_custom_base_url(self, session: AsyncSession) -> None:
        route = respx.get(url__startswith="https://mirror.example/cards/search").mock(
            return_value=search_page([])
        )

        async with httpx.AsyncClient() as client:
            await ScryfallImporter("https://mirror.example/").import_from_remote(
                session, client, ImportOptions(set_code="uts")
            )

        assert route.called


class TestFileImport:
    async def test_imports_search_page(self, session: AsyncSession, make_scryfall_card) -> None:
        payload = json.dumps({"data": [make_scryfall_card()]}).encode()

        summary = await ScryfallImporter().import_from_file(
            session, payload, ImportOptions(dry_run=False)
        )

        assert summary.printings_created == 1
        assert summary.messages[-1] == "Processed 1 records for set=(from file)."

    async def test_rejects_non_card_payload(self, session: AsyncSession) -> None:
        with pytest.raises(PayloadFormatError):
            await ScryfallImporter().import_from_file(session, b"[1, 2, 3]", ImportOptions())

    async def test_error_message_names_card(self, session: AsyncSession, make_scryfall_card) -> None:
        payload = json.dumps([make_scryfall_card(number="")]).encode()

        summary = await ScryfallImporter().import_from_file(session, payload, ImportOptions())

        assert summary.errors == 1
        assert summary.messages[0] == "Error [uts/?] Lightning Bolt: Missing collector number."


class TestReimportScenario:
    async def test_reimport_updates_type_rarity_and_style(
        self, session: AsyncSession, make_scryfall_card
    ) -> None:
        """A reprinted card is updated in place, not duplicated."""
        importer = ScryfallImporter()
        options = ImportOptions(dry_run=False, set_code="uts")

        first = make_scryfall_card(
            name="Test Card", set_code=None, number="1", finishes=["foil"], rarity="rare"
        )
        created = await importer.import_from_file(session, json.dumps([first]).encode(), options)

        second = make_scryfall_card(
            name="Test Card",
            set_code=None,
            number="1",
            type_line="Sorcery",
            oracle_text=None,
            rarity="mythic",
            finishes=["nonfoil"],
            image=None,
            card_faces=[
                {
                    "name": "Front",
                    "oracle_text": "Draw a card",
                    "image_uris": {"normal": "https://img.example/front.jpg"},
                }
            ],
        )
        updated = await importer.import_from_file(session, json.dumps([second]).encode(), options)

        assert (created.cards_created, created.printings_created) == (1, 1)
        assert (updated.cards_created, updated.printings_created) == (0, 0)
        assert (updated.cards_updated, updated.printings_updated) == (1, 1)

        card = await get_card(session, "Magic", "Test Card")
        printing = await get_printing(session, "Magic", "UTS", "1")
        assert card is not None
        assert printing is not None
        assert card.card_type == "Sorcery"
        assert card.description == "Front\nDraw a card"
        assert printing.rarity == "mythic"
        assert printing.style == "Standard"
        assert printing.image_url == "https://img.example/front.jpg"
