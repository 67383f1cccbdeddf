"""Tests for scraped-page field extraction."""

from bs4 import BeautifulSoup

from cardcatalog.scrapers.fields import (
    FieldExtractor,
    absolute_url,
    select_text,
    text_by_label,
)


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestSelectText:
    def test_first_matching_selector(self) -> None:
        soup = soup_of('<div class="rarity">Rare</div><div class="card-rarity">Common</div>')
        assert select_text(soup, ".card-rarity", ".rarity") == "Common"

    def test_skips_blank_matches(self) -> None:
        soup = soup_of('<div class="card-rarity">  </div><div class="rarity">Rare</div>')
        assert select_text(soup, ".card-rarity", ".rarity") == "Rare"

    def test_collapses_nested_text(self) -> None:
        soup = soup_of("<h1>Iron Man <small>Billionaire</small></h1>")
        assert select_text(soup, "h1") == "Iron Man Billionaire"

    def test_no_match(self) -> None:
        assert select_text(soup_of("<p>x</p>"), ".missing", "") is None


class TestTextByLabel:
    def test_definition_list(self) -> None:
        soup = soup_of("<dl><dt>Rarity:</dt><dd>Super Rare</dd></dl>")
        assert text_by_label(soup, "Rarity") == "Super Rare"

    def test_table_header(self) -> None:
        soup = soup_of("<table><tr><th>Energy Type</th><td>Fist</td></tr></table>")
        assert text_by_label(soup, "Energy", "Energy Type") == "Fist"

    def test_value_node_in_parent(self) -> None:
        soup = soup_of('<div><span class="label">Cost</span><span class="value">4</span></div>')
        assert text_by_label(soup, "Purchase Cost", "Cost") == "4"

    def test_strong_label_inline_value(self) -> None:
        soup = soup_of("<p><strong>Card Number:</strong> 12</p>")
        assert text_by_label(soup, "Card Number") == "12"

    def test_parent_next_sibling(self) -> None:
        soup = soup_of('<div><div><span class="field-label">Set</span></div><div>AVX</div></div>')
        assert text_by_label(soup, "Set") == "AVX"

    def test_plain_list_item(self) -> None:
        soup = soup_of("<ul><li>Subtitle: Genius Billionaire</li></ul>")
        assert text_by_label(soup, "subtitle") == "Genius Billionaire"

    def test_no_label(self) -> None:
        assert text_by_label(soup_of("<p>Nothing here</p>"), "Rarity") is None

    def test_no_labels_given(self) -> None:
        assert text_by_label(soup_of("<dt>Rarity</dt><dd>Rare</dd>"), " ") is None


class TestFieldExtractor:
    def test_selectors_before_labels(self) -> None:
        soup = soup_of('<div class="rarity">Rare</div><dl><dt>Rarity</dt><dd>Common</dd></dl>')
        assert FieldExtractor((".rarity",), ("Rarity",)).extract(soup) == "Rare"

    def test_falls_back_to_labels(self) -> None:
        soup = soup_of("<dl><dt>Rarity</dt><dd>Common</dd></dl>")
        assert FieldExtractor((".rarity",), ("Rarity",)).extract(soup) == "Common"


class TestAbsoluteUrl:
    def test_relative(self) -> None:
        assert (
            absolute_url("https://dicemastersdb.com/set/avx/cards", "/card/avx-1")
            == "https://dicemastersdb.com/card/avx-1"
        )

    def test_already_absolute(self) -> None:
        assert absolute_url("https://a.example/x", "https://b.example/y.png") == "https://b.example/y.png"

    def test_blank(self) -> None:
        assert absolute_url("https://a.example/x", "  ") is None
        assert absolute_url("https://a.example/x", None) is None
