"""
Tolerant field lookup for loosely-typed source records.

Upstream schemas drift between versions and mirrors ("number" vs
"collector_number", "rules_text" vs "text"), so every lookup takes an ordered
list of candidate keys and returns the first present, non-blank value.
"""

from collections.abc import Mapping
from typing import Any

FOIL = "Foil"
STANDARD = "Standard"

_NEGATED_FOIL = ("nonfoil", "non-foil", "non foil", "not foil")


def _lookup(obj: Any, name: str) -> tuple[bool, Any]:
    """Exact key first, then a case-insensitive match."""
    if not isinstance(obj, Mapping):
        return False, None
    if name in obj:
        return True, obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if isinstance(key, str) and key.lower() == lowered:
            return True, value
    return False, None


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text if text.strip() else None


def first_present(obj: Any, *names: str) -> str | None:
    """
    Return the first candidate field holding a non-blank scalar, as text.

    Numbers are converted with str() so "7" and 7 read the same.

    Example:
        >>> first_present({"collector_number": 7}, "number", "collector_number")
        '7'
    """
    for name in names:
        found, value = _lookup(obj, name)
        if not found:
            continue
        text = _as_text(value)
        if text is not None:
            return text
    return None


def nested(obj: Any, *path: str) -> str | None:
    """Follow a key path (e.g. "images", "en", "full") to a non-blank scalar."""
    current = obj
    for name in path:
        found, current = _lookup(current, name)
        if not found:
            return None
    return _as_text(current)


def first_mapping(obj: Any, *names: str) -> dict[str, Any] | None:
    """First candidate field holding an object."""
    for name in names:
        found, value = _lookup(obj, name)
        if found and isinstance(value, Mapping):
            return dict(value)
    return None


def first_list(obj: Any, *names: str) -> list[Any] | None:
    """
    First candidate field holding a list.

    A delimited string ("a, b; c") is split into its parts; an empty string
    yields an empty list.
    """
    for name in names:
        found, value = _lookup(obj, name)
        if not found or value is None:
            continue
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            parts = value.replace(";", ",").replace("\n", ",").split(",")
            return [part.strip() for part in parts if part.strip()]
    return None


def first_int(obj: Any, *names: str) -> int | None:
    """First candidate field that reads as an integer."""
    for name in names:
        found, value = _lookup(obj, name)
        if not found or value is None or isinstance(value, bool):
            continue
        try:
            return int(str(value).strip())
        except ValueError:
            continue
    return None


def first_bool(obj: Any, *names: str) -> bool:
    """True if any candidate field is true or the string "true"."""
    for name in names:
        found, value = _lookup(obj, name)
        if not found:
            continue
        if value is True:
            return True
        if isinstance(value, str) and value.strip().lower() == "true":
            return True
    return False


def _says_foil(indicator: Any) -> bool:
    if indicator is None:
        return False
    if isinstance(indicator, bool):
        return indicator
    if isinstance(indicator, (list, tuple, set)):
        return any(isinstance(item, str) and item.strip().lower() == "foil" for item in indicator)
    text = str(indicator).lower()
    if any(negated in text for negated in _NEGATED_FOIL):
        return False
    return "foil" in text


def derive_style(*indicators: Any) -> str:
    """
    Collapse a source's finish fields into "Foil" or "Standard".

    Strings count as foil when they contain "foil" (case-insensitive) and are
    not a negated form like "nonfoil". This is stricter than a bare substring
    test, which would call "Non-Foil" a foil. Lists count when an element is exactly
    "foil", so ["nonfoil", "foil"] is foil but ["nonfoil"] is not. Booleans
    are taken as-is.
    """
    return FOIL if any(_says_foil(indicator) for indicator in indicators) else STANDARD
