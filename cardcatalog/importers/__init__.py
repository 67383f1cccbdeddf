"""
Source importers.

Importers live in their own modules and are looked up through
cardcatalog.importers.registry; only the error types are re-exported here so
the persistence layer can raise them without loading every importer.
"""

from cardcatalog.importers.errors import (
    ImporterError,
    ImportPreconditionError,
    PayloadFormatError,
    RecordError,
    UnsupportedImportError,
)

__all__ = [
    "ImportPreconditionError",
    "ImporterError",
    "PayloadFormatError",
    "RecordError",
    "UnsupportedImportError",
]
