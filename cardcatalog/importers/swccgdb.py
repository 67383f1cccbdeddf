"""
SWCCGDB importer (Star Wars CCG).

Cards carry their game text on a "front" face. Printings are filed under the
set code the import was asked for, with the number taken from the GEMP id
("1_168" -> "168") when there is one.
"""

from typing import IO, Any
from urllib.parse import quote

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_records, require_set_code, run_import
from cardcatalog.importers.errors import RecordError
from cardcatalog.importers.fields import first_list, first_present, nested
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

SWCCGDB_BASE = "https://swccgdb.com"

GAME = "Star Wars CCG"


def parse_number(gemp_id: str | None) -> str | None:
    """Collector number from a GEMP id; ids without "_" are used whole."""
    if gemp_id is None or not gemp_id.strip():
        return None
    _, sep, rest = gemp_id.partition("_")
    return rest if sep and rest else gemp_id


def normalize_card(card: Any, set_code: str | None) -> CardRecord:
    """
    Map one SWCCGDB card onto canonical fields.

    Raises:
        RecordError: If no set code is known for the card
    """
    set_code = set_code or first_present(card, "set")
    if not set_code:
        raise RecordError("Missing set code.")

    return CardRecord(
        game=GAME,
        name=nested(card, "front", "title") or first_present(card, "name") or "Unknown",
        card_type=nested(card, "front", "type") or "",
        description=nested(card, "front", "gametext"),
        set_code=set_code,
        number=parse_number(first_present(card, "gempId")) or first_present(card, "id") or "",
        rarity=first_present(card, "rarity") or "Unknown",
        image_url=nested(card, "front", "imageUrl"),
        card_details=dict(card) if isinstance(card, dict) else None,
        printing_details={
            "printings": first_list(card, "printings"),
            "side": first_present(card, "side"),
            "set": first_present(card, "set"),
        },
    )


def describe_card(card: Any) -> str:
    title = nested(card, "front", "title") or "Unknown"
    return f"[{first_present(card, 'id') or '?'}] {title}"


class SwccgdbImporter:
    """Star Wars CCG cards from SWCCGDB."""

    key = "swccgdb"
    display_name = "SWCCGDB"
    games = (GAME,)

    def __init__(self, base_url: str = SWCCGDB_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "Premiere, Hoth, Endor")

        response = await client.get(
            f"{self.base_url}/api/public/cards/{quote(set_code, safe='')}.json"
        )
        response.raise_for_status()
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=read_records(response),
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
        """
        Import a saved set file.

        options.set_code, when given, overrides every card's own set; cards
        fall back to their own set only when it is absent.
        """
        set_code = (options.set_code or "").strip() or None
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=load_records(stream),
            normalize=lambda card: normalize_card(card, set_code),
            describe=describe_card,
        )
