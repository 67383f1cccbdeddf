from cardcatalog.db.database import get_session, init_db, session_scope
from cardcatalog.db.dry_run import run_with_dry_run
from cardcatalog.db.operations import (
    count_cards,
    count_printings,
    get_card,
    get_printing,
    upsert_card,
    upsert_card_printing,
)

__all__ = [
    "count_cards",
    "count_printings",
    "get_card",
    "get_printing",
    "get_session",
    "init_db",
    "run_with_dry_run",
    "session_scope",
    "upsert_card",
    "upsert_card_printing",
]
