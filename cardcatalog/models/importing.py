"""
Request, result and record shapes shared by every importer.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImportOptions:
    """
    How a single import run should behave.

    Attributes:
        dry_run: Execute everything but discard all writes
        upsert: Reserved toggle; importers always upsert
        limit: Stop after this many records (previews)
        user_id: Who started the run, for attribution only
        set_code: Scope for remote fetches; required by most sources
    """

    dry_run: bool = True
    upsert: bool = True
    limit: int | None = None
    user_id: int | str | None = None
    set_code: str | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")


@dataclass
class ImportSummary:
    """Counters and diagnostics for one import run."""

    source: str
    dry_run: bool
    cards_created: int = 0
    cards_updated: int = 0
    printings_created: int = 0
    printings_updated: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)

    def record_error(self, label: str, exc: BaseException) -> None:
        """Count a failed record and describe it."""
        self.errors += 1
        self.messages.append(f"Error {label}: {exc}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CardRecord:
    """
    A source record normalized into canonical fields.

    Attributes:
        game: Game the card belongs to (part of the card's natural key)
        name: Card name (part of the card's natural key)
        card_type: Free-text classification ("Creature", "Unit", ...)
        description: Rules text, if any
        set_code: Set the printing belongs to
        number: Collector number within the set
        rarity: Rarity label as reported by the source
        style: "Foil" or "Standard"
        image_url: Printing image, None when the source has none
        card_details: Source attributes stored on the card
        printing_details: Source attributes stored on the printing
    """

    game: str
    name: str
    card_type: str
    description: str | None
    set_code: str
    number: str
    rarity: str
    style: str = "Standard"
    image_url: str | None = None
    card_details: dict[str, Any] | None = None
    printing_details: dict[str, Any] | None = None


def dump_details(details: dict[str, Any] | None) -> str | None:
    """Serialize a details payload so equal input gives equal text."""
    if details is None:
        return None
    return json.dumps(details, sort_keys=True, ensure_ascii=False, default=str)
