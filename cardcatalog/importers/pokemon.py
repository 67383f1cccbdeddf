"""
Pokemon TCG API importer.

Cards are searched by set id (q=set.id:sv1) in pages of 250; a page shorter
than the page size is the last one.

API docs: https://docs.pokemontcg.io/
"""

from collections.abc import AsyncIterator
from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import read_json, require_set_code, run_import
from cardcatalog.importers.fields import first_list, first_mapping, first_present, nested
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

POKEMON_TCG_API = "https://api.pokemontcg.io/v2"

GAME = "Pokemon"

PAGE_SIZE = 250


def build_rules_text(card: Any) -> str | None:
    """
    Abilities then attacks, one "Name: text" line each.

    Entries without text are listed by name alone.
    """
    lines = []
    for field in ("abilities", "attacks"):
        for entry in first_list(card, field) or []:
            if not isinstance(entry, dict):
                continue
            name = first_present(entry, "name")
            text = first_present(entry, "text")
            if name and text:
                lines.append(f"{name}: {text}")
            elif name or text:
                lines.append(name or text)
    return "\n".join(lines) or None


def normalize_card(card: Any) -> CardRecord:
    """Map one Pokemon TCG API card (or a flat CSV row) onto canonical fields."""
    set_code = (nested(card, "set", "id") or first_present(card, "set", "setCode") or "UNK").upper()
    number = first_present(card, "number") or ""
    rarity = first_present(card, "rarity") or "Unknown"
    images = first_mapping(card, "images")

    return CardRecord(
        game=GAME,
        name=first_present(card, "name") or "Unknown",
        card_type=first_present(card, "supertype", "type") or "",
        description=build_rules_text(card) or first_present(card, "text"),
        set_code=set_code,
        number=number,
        rarity=rarity,
        image_url=(
            nested(card, "images", "large")
            or nested(card, "images", "small")
            or first_present(card, "imageUrl", "image")
        ),
        card_details={
            "supertype": first_present(card, "supertype"),
            "subtypes": first_list(card, "subtypes"),
            "types": first_list(card, "types"),
            "hp": first_present(card, "hp"),
            "attacks": first_list(card, "attacks"),
            "abilities": first_list(card, "abilities"),
            "weaknesses": first_list(card, "weaknesses"),
            "resistances": first_list(card, "resistances"),
            "retreatCost": first_list(card, "retreatCost"),
            "regulationMark": first_present(card, "regulationMark"),
            "legalities": first_mapping(card, "legalities"),
        },
        printing_details={
            "set": set_code,
            "number": number,
            "rarity": rarity,
            "images": images,
            "tcgplayer": first_mapping(card, "tcgplayer"),
            "cardmarket": first_mapping(card, "cardmarket"),
        },
    )


def describe_card(card: Any) -> str:
    set_code = nested(card, "set", "id") or first_present(card, "set") or "?"
    number = first_present(card, "number") or "?"
    return f"[{set_code}/{number}] {first_present(card, 'name') or 'Unknown'}"


class PokemonTcgImporter:
    """Pokemon cards from the Pokemon TCG API."""

    key = "pokemon"
    display_name = "Pokemon TCG API"
    games = (GAME,)

    def __init__(self, base_url: str = POKEMON_TCG_API, page_size: int = PAGE_SIZE) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size

    async def fetch_cards(
        self, client: httpx.AsyncClient, set_code: str
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield cards page by page until a short page.

        Raises:
            httpx.HTTPError: If any page request fails
        """
        page = 1
        while True:
            response = await client.get(
                f"{self.base_url}/cards",
                params={
                    "q": f"set.id:{set_code.lower()}",
                    "page": page,
                    "pageSize": self.page_size,
                },
            )
            response.raise_for_status()
            data = read_json(response).get("data") or []
            for card in data:
                yield card
            if len(data) < self.page_size:
                return
            page += 1

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'sv1', 'base1'")
        return await run_import(
            session,
            source=self.key,
            options=options,
            records=self.fetch_cards(client, set_code),
            normalize=normalize_card,
            describe=describe_card,
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
            describe=describe_card,
        )
