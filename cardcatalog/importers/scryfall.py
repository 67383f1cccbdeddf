"""
Scryfall importer.

Pages through the card search API for one set ("unique:prints" so every
printing is returned) following the next_page cursor, one page at a time so
a limit stops further fetches.

API docs: https://scryfall.com/docs/api/cards/search
"""

from collections.abc import AsyncIterator
from typing import IO, Any
from urllib.parse import quote

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_json, require_set_code, run_import
from cardcatalog.importers.errors import PayloadFormatError
from cardcatalog.importers.fields import derive_style, first_list, first_present, nested
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

SCRYFALL_API = "https://api.scryfall.com"

GAME = "Magic"


def build_rules_text(card: dict[str, Any]) -> str | None:
    """
    Oracle text, or the faces' names and texts for multi-faced cards.

    Faces are rendered as "Name\\nText" and joined with "\\n//\\n".
    """
    oracle = card.get("oracle_text")
    if oracle is not None:
        return str(oracle)

    faces = card.get("card_faces") or []
    if not faces:
        return None

    parts = []
    for face in faces:
        lines = [
            str(value)
            for value in (face.get("name"), face.get("oracle_text"))
            if value is not None and str(value).strip()
        ]
        parts.append("\n".join(lines))
    return "\n//\n".join(parts)


def _image_url(card: dict[str, Any]) -> str | None:
    image = nested(card, "image_uris", "normal")
    if image:
        return image
    for face in card.get("card_faces") or []:
        image = nested(face, "image_uris", "normal")
        if image:
            return image
    return None


def normalize_card(card: dict[str, Any], set_code: str | None = None) -> CardRecord:
    """Map one Scryfall card object onto canonical fields."""
    number = first_present(card, "collector_number") or ""
    return CardRecord(
        game=GAME,
        name=first_present(card, "name") or "Unknown",
        card_type=first_present(card, "type_line") or "",
        description=build_rules_text(card),
        set_code=first_present(card, "set") or set_code or "",
        number=number,
        rarity=first_present(card, "rarity") or "common",
        style=derive_style(first_list(card, "finishes")),
        image_url=_image_url(card),
        card_details={
            "oracle_id": card.get("oracle_id"),
            "mana_cost": card.get("mana_cost"),
            "colors": card.get("colors"),
            "power": card.get("power"),
            "toughness": card.get("toughness"),
            "loyalty": card.get("loyalty"),
            "keywords": card.get("keywords"),
        },
        printing_details={
            "scryfall_id": card.get("id"),
            "finishes": card.get("finishes"),
            "lang": card.get("lang"),
            "released_at": card.get("released_at"),
        },
    )


def describe_card(card: Any) -> str:
    if not isinstance(card, dict):
        return "[?/?] Unknown"
    set_code = first_present(card, "set") or "?"
    number = first_present(card, "collector_number") or "?"
    return f"[{set_code}/{number}] {first_present(card, 'name') or 'Unknown'}"


class ScryfallImporter:
    """Magic: The Gathering cards from Scryfall."""

    key = "scryfall"
    display_name = "Scryfall"
    games = (GAME,)

    def __init__(self, base_url: str = SCRYFALL_API) -> None:
        self.base_url = base_url.rstrip("/")

    def search_url(self, set_code: str) -> str:
        query = quote(f"set:{set_code} unique:prints")
        return f"{self.base_url}/cards/search?q={query}&order=set"

    async def fetch_cards(
        self, client: httpx.AsyncClient, set_code: str
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield cards page by page until has_more is false.

        Raises:
            httpx.HTTPError: If any page request fails
        """
        url: str | None = self.search_url(set_code)
        while url:
            response = await client.get(url)
            response.raise_for_status()
            page = read_json(response)
            for card in page.get("data") or []:
                yield card
            url = page.get("next_page") if page.get("has_more") else None

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'mh3', 'blb'")
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=self.fetch_cards(client, set_code),
            normalize=lambda card: normalize_card(card, set_code),
            describe=describe_card,
            scope=set_code,
        )

    async def import_from_file(
        self,
        session: AsyncSession,
        stream: IO[bytes] | bytes,
        options: ImportOptions,
    ) -> ImportSummary:
        """Import a saved search page or bulk-data dump."""
        cards = load_records(stream)
        if cards and not isinstance(cards[0], dict):
            raise PayloadFormatError("Expected Scryfall card objects.")
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=cards,
            normalize=lambda card: normalize_card(card, options.set_code),
            describe=describe_card,
        )
