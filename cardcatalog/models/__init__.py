from cardcatalog.models.db import Base, CardDB, CardPrintingDB
from cardcatalog.models.importing import (
    CardRecord,
    ImportOptions,
    ImportSummary,
    dump_details,
)

__all__ = [
    "Base",
    "CardDB",
    "CardPrintingDB",
    "CardRecord",
    "ImportOptions",
    "ImportSummary",
    "dump_details",
]
