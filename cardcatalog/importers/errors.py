"""
Importer exception hierarchy.

Precondition errors abort a whole run before any record is read. Record
errors are caught by the batch loop, counted and reported per record.
"""


class ImporterError(Exception):
    """Base class for import failures."""

    pass


class ImportPreconditionError(ImporterError, ValueError):
    """Raised when a run cannot start with the options it was given."""

    pass


class UnsupportedImportError(ImportPreconditionError):
    """Raised when a source does not offer the requested entry point."""

    pass


class PayloadFormatError(ImportPreconditionError):
    """Raised when an uploaded or fetched payload cannot be parsed at all."""

    pass


class RecordError(ImporterError, ValueError):
    """Raised when a single record cannot be normalized."""

    pass
