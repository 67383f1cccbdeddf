"""
Dice Masters DB importer.

dicemastersdb.com has no API. A remote import reads the set's card list
page, collects links to card pages, then fetches and scrapes each card page
in turn with a short pause between requests.

Note: Web scraping is inherently fragile. Every field is located through a
FieldExtractor so markup changes only need new selectors or labels.
"""

import logging
from typing import IO, Any

import httpx
from bs4 import BeautifulSoup
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.config import settings
from cardcatalog.importers.base import require_set_code, run_import
from cardcatalog.importers.errors import RecordError
from cardcatalog.importers.fields import first_list, first_present
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary
from cardcatalog.scrapers.fields import FieldExtractor, absolute_url

logger = logging.getLogger(__name__)

DICEMASTERS_BASE = "https://dicemastersdb.com"

GAME = "Dice Masters"

SET_FIELD = FieldExtractor((".card-set", ".meta .set", "a[href*='/set/']"), ("Set", "Set Name"))
NUMBER_FIELD = FieldExtractor(
    (".card-number", ".meta .number", ".details .number"),
    ("Card Number", "Card #", "Number"),
)
NAME_FIELD = FieldExtractor(("h1.card-title", ".card-header h1", ".title h1", "h1"))
SUBTITLE_FIELD = FieldExtractor((".card-subtitle", ".subtitle"), ("Subtitle", "Version"))
RARITY_FIELD = FieldExtractor((".card-rarity", ".rarity"), ("Rarity",))
ENERGY_FIELD = FieldExtractor((".card-energy", ".energy"), ("Energy", "Energy Type"))
COST_FIELD = FieldExtractor((".card-cost", ".purchase-cost"), ("Purchase Cost", "Cost"))
TYPE_FIELD = FieldExtractor((".type", ".card-type"), ("Type",))
TEXT_FIELD = FieldExtractor(
    (".rules-text", ".card-text", ".abilities", ".game-text"),
    ("Card Text", "Abilities", "Ability"),
)

IMAGE_SELECTOR = "img.card-image, .card img, .main-image img"
IMAGE_LINK_SELECTOR = "a.card-image[href]"
DICE_FACE_SELECTOR = ".dice-face img, .die img, img[src*='dice'], img[src*='/die']"


def _record(
    *,
    set_code: str,
    number: str,
    name: str,
    rarity: str,
    card_type: str | None,
    subtitle: str | None,
    energy: str | None,
    purchase_cost: str | None,
    dice_faces: list[str],
    text: str | None,
    image_url: str | None,
) -> CardRecord:
    set_code = set_code.upper()
    return CardRecord(
        game=GAME,
        name=name,
        card_type=card_type or "",
        description=text,
        set_code=set_code,
        number=number,
        rarity=rarity,
        image_url=image_url,
        card_details={
            "subtitle": subtitle,
            "energy": energy,
            "purchaseCost": purchase_cost,
            "diceFaces": dice_faces,
        },
        printing_details={
            "set": set_code,
            "number": number,
            "rarity": rarity,
            "style": "Standard",
            "imageUrl": image_url,
        },
    )


def parse_card_links(html: str, page_url: str) -> list[str]:
    """
    Absolute URLs of every "/card/" link on a set list page.

    Duplicates (compared case-insensitively) are dropped; page order is kept.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if "/card/" not in href.lower():
            continue
        url = absolute_url(page_url, href)
        if url is None or url.lower() in seen:
            continue
        seen.add(url.lower())
        links.append(url)
    return links


def parse_card_page(html: str, page_url: str) -> CardRecord:
    """Scrape one card detail page."""
    soup = BeautifulSoup(html, "html.parser")

    image = soup.select_one(IMAGE_SELECTOR)
    src = image.get("src") if image is not None else None
    if not src:
        link = soup.select_one(IMAGE_LINK_SELECTOR)
        src = link.get("href") if link is not None else None

    dice_faces: list[str] = []
    for node in soup.select(DICE_FACE_SELECTOR):
        face = absolute_url(page_url, node.get("src"))
        if face and face not in dice_faces:
            dice_faces.append(face)

    return _record(
        set_code=SET_FIELD.extract(soup) or "UNK",
        number=NUMBER_FIELD.extract(soup) or "",
        name=NAME_FIELD.extract(soup) or "Unknown",
        rarity=RARITY_FIELD.extract(soup) or "Unknown",
        card_type=TYPE_FIELD.extract(soup),
        subtitle=SUBTITLE_FIELD.extract(soup),
        energy=ENERGY_FIELD.extract(soup),
        purchase_cost=COST_FIELD.extract(soup),
        dice_faces=dice_faces,
        text=TEXT_FIELD.extract(soup),
        image_url=absolute_url(page_url, src),
    )


def parse_card_entry(entry: Any) -> CardRecord:
    """
    Map one card object from a saved JSON export.

    Raises:
        RecordError: If the entry is not an object or lacks a number
    """
    if not isinstance(entry, dict):
        raise RecordError("Expected card object.")

    number = (first_present(entry, "number", "cardNumber", "collectorNumber", "card_number") or "").strip()
    if not number:
        raise RecordError("Missing set or number in card entry.")

    faces = first_list(entry, "diceFaces", "dice_faces", "dice") or []
    return _record(
        set_code=(first_present(entry, "set", "setCode", "set_code", "setSlug") or "UNK").strip(),
        number=number,
        name=(first_present(entry, "name", "title", "cardName", "card_name") or "Unknown").strip(),
        rarity=(first_present(entry, "rarity") or "Unknown").strip(),
        card_type=first_present(entry, "cardType", "type", "category"),
        subtitle=first_present(entry, "subtitle", "subTitle", "version"),
        energy=first_present(entry, "energy", "energyType", "energy_type"),
        purchase_cost=first_present(entry, "purchaseCost", "cost", "purchase_cost", "purchase"),
        dice_faces=[str(face) for face in faces if face is not None],
        text=first_present(entry, "text", "cardText", "rulesText", "gameText", "ability"),
        image_url=first_present(entry, "imageUrl", "image_url", "image", "imageUri", "image_uri"),
    )


def describe_card_entry(entry: Any) -> str:
    """Label a JSON export entry as "[SET/NUMBER] Name" for error messages."""
    set_code = first_present(entry, "set", "setCode", "set_code", "setSlug") or "?"
    number = first_present(entry, "number", "cardNumber", "collectorNumber", "card_number") or "?"
    name = first_present(entry, "name", "title", "cardName", "card_name") or "Unknown"
    return f"[{set_code}/{number}] {name}"


class DiceMastersImporter:
    """Dice Masters cards scraped from dicemastersdb.com."""

    key = "dicemasters"
    display_name = "Dice Masters DB"
    games = (GAME,)

    def __init__(self, base_url: str = DICEMASTERS_BASE, delay: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.delay = settings.scrape_delay_seconds if delay is None else delay

    async def fetch_card_links(self, client: httpx.AsyncClient, slug: str) -> list[str]:
        """
        Card page URLs listed for a set.

        Raises:
            httpx.HTTPError: If the list page cannot be fetched
        """
        list_url = f"{self.base_url}/set/{slug}/cards"
        response = await client.get(list_url)
        response.raise_for_status()
        links = parse_card_links(response.text, list_url)
        logger.info("Found %d card links for set %s", len(links), slug)
        return links

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        set_code = require_set_code(options, "'avx', 'uxm', 'cw'")
        slug = set_code.lower()
        links = await self.fetch_card_links(client, slug)

        async def scrape(url: str) -> CardRecord:
            response = await client.get(url)
            response.raise_for_status()
            return parse_card_page(response.text, url)

        return await run_import(
            session,
            source=self.key,
            options=options,
            records=links,
            normalize=scrape,
            describe=lambda url: f"importing '{url}'",
            scope=set_code,
            delay=self.delay,
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
            normalize=parse_card_entry,
            describe=describe_card_entry,
            update_style=False,
        )
