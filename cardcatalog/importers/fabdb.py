"""
FABDB importer (Flesh and Blood).

The cards endpoint is paged (?set=WTR&page=N); pages are followed while the
response links to a next page. Printings are keyed by set and number, so a
changed finish updates the stored printing.
"""

from collections.abc import AsyncIterator
from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.config import settings
from cardcatalog.importers.base import read_json, require_set_code, run_import
from cardcatalog.importers.fields import (
    derive_style,
    first_int,
    first_list,
    first_mapping,
    first_present,
    nested,
)
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

FABDB_API = "https://api.fabdb.net"

GAME = "Flesh and Blood"


def normalize_card(card: Any) -> CardRecord:
    """Map one FABDB card onto canonical fields."""
    card_type = first_present(card, "type") or ""
    text = first_present(card, "rules", "text")
    set_code = first_present(card, "set") or "UNK"
    number = first_present(card, "number") or ""
    rarity = first_present(card, "rarity") or "Unknown"
    style = derive_style(first_present(card, "finish"))

    return CardRecord(
        game=GAME,
        name=first_present(card, "name") or "Unknown",
        card_type=card_type,
        description=text,
        set_code=set_code,
        number=number,
        rarity=rarity,
        style=style,
        image_url=(
            nested(card, "images", "full")
            or nested(card, "images", "normal")
            or first_present(card, "image")
        ),
        card_details={
            "class": first_present(card, "class"),
            "talent": first_present(card, "talent"),
            "subtype": first_present(card, "subtype"),
            "type": card_type,
            "cost": first_int(card, "cost"),
            "pitch": first_int(card, "pitch"),
            "power": first_int(card, "power"),
            "defense": first_int(card, "defense"),
            "legality": first_mapping(card, "legality"),
            "traits": first_list(card, "keywords", "traits"),
            "text": text,
        },
        printing_details={
            "set": set_code.upper(),
            "number": number,
            "rarity": rarity,
            "style": style,
            "images": first_mapping(card, "images"),
            "release": first_present(card, "release"),
        },
    )


class FabDbImporter:
    """Flesh and Blood cards from FABDB."""

    key = "fabdb"
    display_name = "FABDB"
    games = (GAME,)

    def __init__(self, base_url: str = FABDB_API, api_key: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = settings.fabdb_api_key if api_key is None else api_key

    async def fetch_cards(
        self, client: httpx.AsyncClient, set_code: str
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield cards page by page.

        Stops on an empty page or when links.next is missing or null.

        Raises:
            httpx.HTTPError: If any page request fails
        """
        headers = {"X-Api-Key": self.api_key} if self.api_key else None
        page = 1
        while True:
            response = await client.get(
                f"{self.base_url}/cards",
                params={"set": set_code, "page": page},
                headers=headers,
            )
            response.raise_for_status()
            body = read_json(response)

            data = body.get("data") if isinstance(body, dict) else None
            if not data:
                return
            for card in data:
                yield card

            links = body.get("links") or {}
            if not links.get("next"):
                return
            page += 1

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'WTR', 'DYN', 'MST'")
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=self.fetch_cards(client, set_code),
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
