"""
FortressMaximus importer (Transformers TCG).

Character cards have bot and alt modes; battle cards have a single face. The
stored description prefers battle text, then bot mode, then alt mode.
"""

from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_records, require_set_code, run_import
from cardcatalog.importers.fields import (
    first_int,
    first_list,
    first_mapping,
    first_present,
    nested,
)
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

FORTRESS_MAXIMUS_BASE = "https://fortressmaximus.io"

GAME = "Transformers TCG"


def normalize_card(card: Any) -> CardRecord:
    """Map one FortressMaximus card (or flat CSV row) onto canonical fields."""
    set_code = (first_present(card, "set") or "UNK").upper()
    number = first_present(card, "number") or ""
    rarity = first_present(card, "rarity") or "Unknown"
    battle_text = first_present(card, "text", "rulesText")
    bot_text = first_present(card, "botText")
    alt_text = first_present(card, "altText")
    bot_image = nested(card, "images", "bot")
    alt_image = nested(card, "images", "alt")
    card_image = nested(card, "images", "card")

    return CardRecord(
        game=GAME,
        name=first_present(card, "name") or "Unknown",
        card_type=first_present(card, "type") or "",
        description=battle_text or bot_text or alt_text,
        set_code=set_code,
        number=number,
        rarity=rarity,
        image_url=bot_image or card_image or alt_image or first_present(card, "imageUrl"),
        card_details={
            "subtitle": first_present(card, "subtitle"),
            "faction": first_present(card, "faction"),
            "type": first_present(card, "type"),
            "subtypes": first_list(card, "subtypes"),
            "stars": first_int(card, "stars"),
            "attack": first_int(card, "attack"),
            "defense": first_int(card, "defense"),
            "health": first_int(card, "health"),
            "modes": {
                "bot": {"txt": bot_text, "img": bot_image},
                "alt": {"txt": alt_text, "img": alt_image},
            },
            "battle": {"txt": battle_text, "img": card_image},
        },
        printing_details={
            "set": set_code,
            "number": number,
            "rarity": rarity,
            "images": first_mapping(card, "images"),
            "wave": first_present(card, "wave"),
            "collector": first_present(card, "collectorNumber"),
        },
    )


class TransformersImporter:
    """Transformers TCG cards from FortressMaximus."""

    key = "tftcg"
    display_name = "FortressMaximus"
    games = (GAME,)

    def __init__(self, base_url: str = FORTRESS_MAXIMUS_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'wave-1', 'wave-5', 'titan-masters'")

        response = await client.get(f"{self.base_url}/api/cards", params={"set": set_code})
        response.raise_for_status()
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=read_records(response),
            normalize=normalize_card,
            scope=set_code,
            update_style=False,
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
            update_style=False,
        )
