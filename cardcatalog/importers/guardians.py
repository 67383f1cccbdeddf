"""
Guardians CCG importer.

There is no public Guardians database to fetch from; cards come from a local
CSV or JSON file. Columns beyond the known ones are kept as "extras" in the
card and printing details.
"""

from typing import IO, Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from cardcatalog.importers.base import run_import, unsupported
from cardcatalog.importers.errors import RecordError
from cardcatalog.importers.fields import first_mapping, first_present
from cardcatalog.importers.payload import load_records
from cardcatalog.models.importing import CardRecord, ImportOptions, ImportSummary

GAME = "Guardians CCG"

KNOWN_COLUMNS = frozenset({"name", "type", "text", "set", "number", "rarity", "imageurl"})


def extract_extras(row: Any) -> dict[str, Any]:
    """Everything outside the known columns; JSON rows may nest it under "extras"."""
    if not isinstance(row, dict):
        return {}
    nested_extras = first_mapping(row, "extras")
    if nested_extras is not None:
        return nested_extras
    return {
        key: value
        for key, value in row.items()
        if isinstance(key, str) and key.lower() not in KNOWN_COLUMNS
    }


def normalize_row(row: Any) -> CardRecord:
    """
    Map one Guardians row onto canonical fields.

    Raises:
        RecordError: If the row has no set or no number
    """
    set_code = first_present(row, "set")
    number = first_present(row, "number")
    if not set_code or not number:
        raise RecordError("Set and number are required.")

    card_type = first_present(row, "type") or ""
    text = first_present(row, "text")
    rarity = first_present(row, "rarity")
    image_url = first_present(row, "imageUrl")
    extras = extract_extras(row)

    return CardRecord(
        game=GAME,
        name=first_present(row, "name") or "Unknown",
        card_type=card_type,
        description=text,
        set_code=set_code,
        number=number,
        rarity=rarity or "Unknown",
        image_url=image_url,
        card_details={"extras": extras, "text": text, "type": card_type},
        printing_details={"rarity": rarity, "imageUrl": image_url, "extras": extras},
    )


class GuardiansImporter:
    """Guardians CCG cards from a local file."""

    key = "guardians"
    display_name = "Guardians Local"
    games = (GAME,)

    async def import_from_remote(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        options: ImportOptions,
    ) -> ImportSummary:
        raise unsupported(self.key, "Use file upload or local path for Guardians.")

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
            normalize=normalize_row,
            update_style=False,
        )
