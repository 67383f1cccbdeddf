"""
Catalog read and upsert operations.

The upsert is the single write path for every importer: find-or-create a
card by (game, name), then find-or-create its printing by set and number,
counting a change only when a field really differs.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from cardcatalog.importers.errors import RecordError
from cardcatalog.models.db import CardDB, CardPrintingDB
from cardcatalog.models.importing import CardRecord, ImportSummary, dump_details

# --- Card lookups ---


def _pending_card(session: AsyncSession, game: str, name: str) -> CardDB | None:
    """Card added earlier in this batch but not yet saved."""
    for obj in session.new:
        if isinstance(obj, CardDB) and obj.game == game and obj.name == name:
            return obj
    return None


async def get_card(session: AsyncSession, game: str, name: str) -> CardDB | None:
    """
    Get a card by its natural key.

    Returns None if the card is neither pending in this session nor stored.
    """
    pending = _pending_card(session, game, name)
    if pending is not None:
        return pending

    with session.no_autoflush:
        result = await session.execute(
            select(CardDB).where(CardDB.game == game, CardDB.name == name).limit(1)
        )
    return result.scalars().first()


# --- Printing lookups ---


def _pending_printing(
    session: AsyncSession,
    game: str,
    set_code: str,
    number: str,
) -> CardPrintingDB | None:
    for obj in session.new:
        if not isinstance(obj, CardPrintingDB):
            continue
        if obj.set_code != set_code or obj.number != number:
            continue
        if obj.card is not None and obj.card.game == game:
            return obj
    return None


async def get_printing(
    session: AsyncSession,
    game: str,
    set_code: str,
    number: str,
) -> CardPrintingDB | None:
    """
    Get a printing by set and number among cards of one game.

    Style is not part of the key. The owning card is loaded with the printing.
    """
    pending = _pending_printing(session, game, set_code, number)
    if pending is not None:
        return pending

    stmt = (
        select(CardPrintingDB)
        .join(CardPrintingDB.card)
        .options(contains_eager(CardPrintingDB.card))
        .where(
            CardDB.game == game,
            CardPrintingDB.set_code == set_code,
            CardPrintingDB.number == number,
        )
    )

    with session.no_autoflush:
        result = await session.execute(stmt.order_by(CardPrintingDB.id).limit(1))
    return result.scalars().first()


async def count_cards(session: AsyncSession, game: str | None = None) -> int:
    """Number of stored cards, optionally for one game."""
    stmt = select(func.count(CardDB.id))
    if game is not None:
        stmt = stmt.where(CardDB.game == game)
    return int((await session.execute(stmt)).scalar_one())


async def count_printings(session: AsyncSession, game: str | None = None) -> int:
    """Number of stored printings, optionally for one game."""
    stmt = select(func.count(CardPrintingDB.id))
    if game is not None:
        stmt = stmt.join(CardPrintingDB.card).where(CardDB.game == game)
    return int((await session.execute(stmt)).scalar_one())


# --- Upsert ---


def _normalize(record: CardRecord) -> tuple[str, str]:
    number = (record.number or "").strip()
    if not number:
        raise RecordError("Missing collector number.")
    set_code = (record.set_code or "").strip().upper()
    if not set_code:
        raise RecordError("Missing set code.")
    return set_code, number


async def upsert_card(
    session: AsyncSession, record: CardRecord, summary: ImportSummary
) -> CardDB:
    """
    Find or create the card for a record and bring its fields up to date.

    Counts cards_updated only if at least one field actually changed.
    """
    details = dump_details(record.card_details)
    card = await get_card(session, record.game, record.name)

    if card is None:
        card = CardDB(
            game=record.game,
            name=record.name,
            card_type=record.card_type,
            description=record.description,
            details_json=details,
        )
        session.add(card)
        summary.cards_created += 1
        return card

    changed = False
    if card.card_type != record.card_type:
        card.card_type = record.card_type
        changed = True
    if card.description != record.description:
        card.description = record.description
        changed = True
    if card.details_json != details:
        card.details_json = details
        changed = True
    if changed:
        summary.cards_updated += 1
    return card


async def upsert_card_printing(
    session: AsyncSession,
    record: CardRecord,
    summary: ImportSummary,
    *,
    update_style: bool = True,
) -> CardPrintingDB:
    """
    Insert or update a card and one of its printings.

    The printing is keyed by (set, number) within the record's game. A
    missing image never replaces a stored one, and an existing printing's
    style is left alone unless update_style is set.

    Raises:
        RecordError: If the record has no collector number or set
    """
    set_code, number = _normalize(record)
    card = await upsert_card(session, record, summary)

    details = dump_details(record.printing_details)
    printing = await get_printing(session, record.game, set_code, number)

    if printing is None:
        printing = CardPrintingDB(
            card=card,
            set_code=set_code,
            number=number,
            rarity=record.rarity,
            style=record.style,
            image_url=record.image_url,
            details_json=details,
        )
        session.add(printing)
        summary.printings_created += 1
        return printing

    changed = False
    if printing.card is not card:
        printing.card = card
        changed = True
    if printing.rarity != record.rarity:
        printing.rarity = record.rarity
        changed = True
    if update_style and printing.style != record.style:
        printing.style = record.style
        changed = True
    if record.image_url is not None and printing.image_url != record.image_url:
        printing.image_url = record.image_url
        changed = True
    if printing.details_json != details:
        printing.details_json = details
        changed = True
    if changed:
        summary.printings_updated += 1
    return printing
