"""
SWU DB importer (Star Wars Unlimited).

One request returns a whole set.
"""

from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_records, require_set_code, run_import
from cardcatalog.importers.fields import (
    derive_style,
    first_bool,
    first_int,
    first_list,
    first_present,
)
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

SWUDB_BASE = "https://www.swu-db.com"

GAME = "Star Wars Unlimited"


def _image_url(card: Any) -> str | None:
    image = first_present(card, "image", "imageUrl", "frontImage")
    if image is None and first_bool(card, "leader"):
        image = first_present(card, "imageFront")
    return image


def normalize_card(card: Any) -> CardRecord:
    """Map one SWU DB card onto canonical fields."""
    card_type = first_present(card, "type") or ""
    text = first_present(card, "text", "rulesText")
    set_code = (first_present(card, "set") or "UNK").upper()
    number = first_present(card, "number") or ""
    rarity = first_present(card, "rarity") or "Unknown"
    variant = first_present(card, "variant")
    style = derive_style(variant)
    aspects = first_list(card, "aspects")
    cost = first_int(card, "cost")

    return CardRecord(
        game=GAME,
        name=first_present(card, "name") or "Unknown",
        card_type=card_type,
        description=text,
        set_code=set_code,
        number=number,
        rarity=rarity,
        style=style,
        image_url=_image_url(card),
        card_details={
            "subtitle": first_present(card, "subtitle"),
            "type": card_type,
            "traits": first_list(card, "traits"),
            "keywords": first_list(card, "keywords"),
            "aspects": aspects,
            "arena": first_present(card, "arena"),
            "power": first_int(card, "power"),
            "health": first_int(card, "health"),
            "cost": cost,
            "text": text,
            "leader": first_bool(card, "leader"),
            "artist": first_present(card, "artist"),
        },
        printing_details={
            "set": set_code,
            "number": number,
            "rarity": rarity,
            "style": style,
            "variant": variant,
            "release": first_present(card, "release"),
            "aspects": aspects,
            "cost": cost,
        },
    )


class SwuDbImporter:
    """Star Wars Unlimited cards from SWU DB."""

    key = "swu"
    display_name = "SWU DB"
    games = (GAME,)

    def __init__(self, base_url: str = SWUDB_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'sor', 'shd'")

        response = await client.get(f"{self.base_url}/api/cards/{set_code.lower()}")
        response.raise_for_status()
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=read_records(response),
            normalize=normalize_card,
            scope=set_code,
        )

    async def import_from_file(
        self,
        session: AsyncSession,
        stream: IO[bytes] | bytes,
        options: ImportOptions,
    ) -> ImportSummary:
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=load_records(stream),
            normalize=normalize_card,
        )
