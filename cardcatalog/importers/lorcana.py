"""
LorcanaJSON importer.

LorcanaJSON publishes every card in one cards.json file, so a remote import
downloads the whole dump and filters it to the requested set locally.
"""

from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_records, require_set_code, run_import
from cardcatalog.importers.fields import (
    derive_style,
    first_bool,
    first_list,
    first_present,
    nested,
)
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

LORCANAJSON_BASE = "https://raw.githubusercontent.com/LorcanaJSON/LorcanaJSON/main"

GAME = "Disney Lorcana"

_SET_FIELDS = ("setCode", "set_code", "set")
_NUMBER_FIELDS = ("number", "collector_number")


def _image_url(card: Any) -> str | None:
    return (
        first_present(card, "image")
        or nested(card, "images", "full")
        or nested(card, "images", "en", "full")
        or nested(card, "image_urls", "en")
        or nested(card, "image_uris", "normal")
    )


def normalize_card(card: Any) -> CardRecord:
    """Map one LorcanaJSON card onto canonical fields."""
    return CardRecord(
        game=GAME,
        name=first_present(card, "fullName", "name") or "Unknown",
        card_type=first_present(card, "type", "card_type") or "",
        description=first_present(card, "fullText", "rules_text", "text"),
        set_code=first_present(card, *_SET_FIELDS) or "UNK",
        number=first_present(card, *_NUMBER_FIELDS) or "",
        rarity=first_present(card, "rarity") or "Unknown",
        style=derive_style(first_bool(card, "foil"), first_present(card, "finish")),
        image_url=_image_url(card),
        card_details={
            "color": first_present(card, "color", "ink"),
            "cost": first_present(card, "cost"),
            "inkwell": first_bool(card, "inkwell"),
            "strength": first_present(card, "strength"),
            "willpower": first_present(card, "willpower"),
            "lore": first_present(card, "lore"),
            "subtypes": first_list(card, "subtypes", "classifications"),
            "version": first_present(card, "version", "subtitle"),
        },
        printing_details={
            "artist": first_present(card, "artistsText", "artist"),
            "story": first_present(card, "story"),
        },
    )


def _in_set(card: Any, set_code: str | None) -> bool:
    if not set_code:
        return True
    return (first_present(card, *_SET_FIELDS) or "").lower() == set_code.lower()


class LorcanaJsonImporter:
    """Disney Lorcana cards from the LorcanaJSON dump."""

    key = "lorcanajson"
    display_name = "Lorcana JSON"
    games = (GAME,)

    def __init__(self, base_url: str = LORCANAJSON_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        require_set_code(options, "'TFC', 'ROTF', 'ITI'")

        response = await client.get(f"{self.base_url}/cards.json")
        response.raise_for_status()
        return await self._import(session, read_records(response), options)

    async def import_from_file(
        self,
        session: AsyncSession,
        stream: IO[bytes] | bytes,
        options: ImportOptions,
    ) -> ImportSummary:
        return await self._import(session, load_records(stream), options)

    async def _import(
        self,
        session: AsyncSession,
        cards: list[Any],
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = (options.set_code or "").strip() or None
        return await run_import(
            session,
            source=self.key,
            options=options,
            # Cards outside the set are skipped without counting toward the limit
            records=(card for card in cards if _in_set(card, set_code)),
            normalize=normalize_card,
            scope=set_code or "(all)",
        )
