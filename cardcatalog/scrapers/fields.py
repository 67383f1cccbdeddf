"""
Field extraction from scraped card-detail pages.

Note: Web scraping is inherently fragile. Each field is described by an
ordered list of CSS selectors plus a list of human labels; when every
selector misses, labelled rows ("Rarity: Common", <dt>Rarity</dt><dd>...)
are scanned instead.
"""

from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

# Elements that commonly hold a field label
LABEL_SELECTOR = "dt, th, .label, .field-label, strong"

# Elements next to a label that commonly hold its value
VALUE_SELECTOR = ".value, .field-value, span.value, div.value"


def _clean_label(text: str) -> str:
    return text.strip().rstrip(":").strip().lower()


def _text(node: Tag | None) -> str | None:
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


def select_text(soup: BeautifulSoup | Tag, *selectors: str) -> str | None:
    """Text of the first selector that matches a node with non-blank text."""
    for selector in selectors:
        if not selector.strip():
            continue
        text = _text(soup.select_one(selector))
        if text:
            return text
    return None


def text_by_label(soup: BeautifulSoup | Tag, *labels: str) -> str | None:
    """
    Find a value by the label printed next to it.

    Labels match case-insensitively with any trailing colon stripped.
    """
    wanted = {_clean_label(label) for label in labels if label.strip()}
    if not wanted:
        return None

    for element in soup.select(LABEL_SELECTOR):
        if _clean_label(element.get_text(" ", strip=True)) not in wanted:
            continue

        value: Tag | None = None
        if element.name in ("dt", "th"):
            value = element.find_next_sibling()
        if value is None and element.parent is not None:
            candidate = element.parent.select_one(VALUE_SELECTOR)
            if candidate is not element:
                value = candidate
        if value is None and element.parent is not None:
            # <p><strong>Rarity:</strong> Common</p>
            label_text = element.get_text(" ", strip=True)
            own = element.parent.get_text(" ", strip=True)
            rest = own[len(label_text) :].strip() if own.startswith(label_text) else ""
            if rest:
                return rest
            value = element.parent.find_next_sibling()

        text = _text(value)
        if text:
            return text

    for node in soup.select("li, p"):
        raw = node.get_text(" ", strip=True)
        label, sep, rest = raw.partition(":")
        if sep and _clean_label(label) in wanted and rest.strip():
            return rest.strip()

    return None


@dataclass(frozen=True)
class FieldExtractor:
    """
    How to find one field on a page.

    Attributes:
        selectors: CSS selectors tried in order
        labels: Label texts for the fallback scan
    """

    selectors: tuple[str, ...]
    labels: tuple[str, ...] = ()

    def extract(self, soup: BeautifulSoup | Tag) -> str | None:
        return select_text(soup, *self.selectors) or text_by_label(soup, *self.labels)


def absolute_url(base_url: str, value: str | None) -> str | None:
    """Resolve a possibly relative href/src against the page URL."""
    if value is None or not value.strip():
        return None
    return urljoin(base_url, value.strip())
