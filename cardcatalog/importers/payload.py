"""
Reading uploaded or downloaded card payloads.

The format is sniffed from the first non-whitespace byte: "[" or "{" means
JSON, anything else is treated as CSV with a header row.
"""

import csv
import json
from io import StringIO
from typing import IO, Any, Literal

from cardcatalog.importers.errors import PayloadFormatError

PayloadFormat = Literal["json", "csv"]

# Wrapper keys that hold the card array in object-shaped JSON payloads
_ARRAY_KEYS = ("cards", "data")


def read_bytes(source: IO[bytes] | bytes | str) -> bytes:
    """Read an upload into memory."""
    if isinstance(source, bytes):
        return source
    if isinstance(source, str):
        return source.encode("utf-8")
    data = source.read()
    return data.encode("utf-8") if isinstance(data, str) else data


def sniff_format(data: bytes) -> PayloadFormat:
    """Detect JSON vs CSV from the first non-whitespace byte."""
    stripped = data.lstrip(b"\xef\xbb\xbf").lstrip()
    if stripped[:1] in (b"[", b"{"):
        return "json"
    return "csv"


def parse_json_records(text: str) -> list[Any]:
    """
    Parse a JSON payload into a list of records.

    Arrays are used as-is. Objects are unwrapped from their "cards" or
    "data" array when present; otherwise the object is a single record.

    Raises:
        PayloadFormatError: If the text is not valid JSON
    """
    try:
        root = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadFormatError(f"Invalid JSON payload: {e}") from e

    if isinstance(root, list):
        return root
    if isinstance(root, dict):
        for key in _ARRAY_KEYS:
            value = root.get(key)
            if isinstance(value, list):
                return value
        return [root]
    raise PayloadFormatError("Expected a JSON array or object of cards.")


def parse_csv_records(text: str) -> list[dict[str, str]]:
    """
    Parse CSV with a header row into one dict per data row.

    Header names are stripped; blank rows are skipped.
    """
    reader = csv.DictReader(StringIO(text))
    if not reader.fieldnames:
        return []
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    rows: list[dict[str, str]] = []
    for row in reader:
        values = {key: (value or "").strip() for key, value in row.items() if key is not None}
        if any(values.values()):
            rows.append(values)
    return rows


def load_records(source: IO[bytes] | bytes | str) -> list[Any]:
    """
    Read and parse a payload of unknown format.

    Raises:
        PayloadFormatError: If the payload is not UTF-8 or not valid JSON
    """
    data = read_bytes(source)
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise PayloadFormatError("Payload is not UTF-8 text.") from e

    if sniff_format(data) == "json":
        return parse_json_records(text)
    return parse_csv_records(text)
