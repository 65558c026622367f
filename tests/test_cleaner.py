"""Tests for DOM cleaning: pruning, structure extraction and visible text.

All tests run against inline HTML; nothing touches the network.
"""

from __future__ import annotations

import logging
import math

import pytest

from schemalift.errors import CleaningFailure
from schemalift.pipeline.cleaner import clean
from schemalift.pipeline.models import Button, Heading, Image, Link, ListBlock, MetaTag, Table
from schemalift.pipeline.visible_text import ExhaustiveHarvest, ParagraphHarvest


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_PRODUCT_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Widget | Shop</title>
  <meta name="description" content="A widget">
  <meta property="og:title" content="Widget">
  <meta charset="utf-8">
</head>
<body>
  <nav><a href="/home">Home</a></nav>
  <h1>Widget</h1>
  <p class="price">$19.99</p>
  <span aria-label="4.5 stars"></span>
  <div style="display:none">Secret</div>
  <script>var tracking = 1;</script>
  <ul><li>Red</li><li>Blue</li></ul>
  <table>
    <tr><th>Size</th><th>Stock</th></tr>
    <tr><td>S</td><td>3</td></tr>
    <tr><td></td><td></td></tr>
  </table>
  <img src="/w.png" alt="Widget photo">
  <img src="data:image/png;base64,AAAA">
  <a href="/buy">Buy now</a>
  <a href="#top">Top</a>
  <a href="javascript:void(0)">Script link</a>
  <button>Add to cart</button>
</body>
</html>
"""


@pytest.fixture
def bundle():
    return clean(_PRODUCT_HTML, strategy=ExhaustiveHarvest())


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------

class TestCleanProductPage:
    def test_heading_survives_hidden_and_nav_removed(self) -> None:
        html = (
            "<html><body><nav>Site menu</nav><h1>Widget</h1>"
            '<div style="display:none">secret</div></body></html>'
        )
        result = clean(html)
        assert result.headings == (Heading(level=1, text="Widget"),)
        assert "secret" not in result.text
        assert "Site menu" not in result.text
        assert result.stats.elements_removed >= 2

    def test_visible_text_keeps_short_facts(self, bundle) -> None:
        assert "Widget" in bundle.visible_text
        assert "$19.99" in bundle.visible_text
        assert "4.5 stars" in bundle.visible_text
        assert "Widget photo" in bundle.visible_text

    def test_visible_text_in_document_order(self, bundle) -> None:
        lines = list(bundle.visible_text)
        assert lines.index("Widget") < lines.index("$19.99") < lines.index("Red")

    def test_removed_content_is_gone(self, bundle) -> None:
        assert "Secret" not in bundle.text
        assert "Home" not in bundle.visible_text
        assert "tracking" not in bundle.text
        assert "<script" not in bundle.cleaned_markup
        assert "<nav" not in bundle.cleaned_markup
        assert "Secret" not in bundle.cleaned_markup

    def test_meta_harvested_before_pruning(self, bundle) -> None:
        assert bundle.meta == (
            MetaTag(content="A widget", name="description"),
            MetaTag(content="Widget", property="og:title"),
        )

    def test_headings(self, bundle) -> None:
        assert bundle.headings == (Heading(level=1, text="Widget"),)

    def test_lists(self, bundle) -> None:
        assert bundle.lists == (ListBlock(kind="unordered", items=("Red", "Blue")),)

    def test_tables_drop_empty_rows(self, bundle) -> None:
        assert bundle.tables == (Table(headers=("Size", "Stock"), rows=(("S", "3"),)),)

    def test_images_skip_data_uris(self, bundle) -> None:
        assert bundle.images == (Image(src="/w.png", alt="Widget photo"),)

    def test_links_skip_fragments_and_javascript(self, bundle) -> None:
        # The nav link went with the nav.
        assert bundle.links == (Link(text="Buy now", href="/buy"),)

    def test_buttons(self, bundle) -> None:
        assert bundle.buttons == (Button(text="Add to cart"),)

    def test_stats(self, bundle) -> None:
        stats = bundle.stats
        assert stats.original_length == len(_PRODUCT_HTML)
        assert stats.cleaned_length == len(bundle.cleaned_markup)
        assert stats.dangerous_removed == 1
        assert stats.hidden_removed == 1
        assert stats.boilerplate_removed == 1
        assert stats.elements_removed == 3
        assert stats.token_estimate == math.ceil(len(bundle.text) / 4)

    def test_to_dict_uses_wire_names(self, bundle) -> None:
        payload = bundle.to_dict()
        assert payload["visibleText"] == bundle.text
        assert payload["lists"] == [{"type": "unordered", "items": ["Red", "Blue"]}]
        assert payload["meta"][0] == {"content": "A widget", "name": "description"}
        assert payload["meta"][1] == {"content": "Widget", "property": "og:title"}
        assert payload["stats"]["elementsRemoved"] == 3


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class TestCleanProperties:
    def test_deterministic(self) -> None:
        assert clean(_PRODUCT_HTML) == clean(_PRODUCT_HTML)

    def test_idempotent_on_cleaned_markup(self, bundle) -> None:
        again = clean(bundle.cleaned_markup, strategy=ExhaustiveHarvest())
        assert again.visible_text == bundle.visible_text
        assert again.headings == bundle.headings
        assert again.lists == bundle.lists
        assert again.stats.elements_removed == 0

    def test_bundle_is_immutable(self, bundle) -> None:
        with pytest.raises(AttributeError):
            bundle.cleaned_markup = ""  # type: ignore[misc]

    def test_fragment_without_body(self) -> None:
        result = clean("<p>Hello <b>world</b></p>", strategy=ExhaustiveHarvest())
        assert result.visible_text == ("Hello", "world")
        assert "<p>" in result.cleaned_markup

    def test_empty_markup(self) -> None:
        result = clean("")
        assert result.visible_text == ()
        assert result.cleaned_markup == ""
        assert result.stats.token_estimate == 0

    def test_non_string_input_raises(self) -> None:
        with pytest.raises(CleaningFailure) as exc_info:
            clean(None)  # type: ignore[arg-type]
        assert exc_info.value.stage == "cleaning"


# ---------------------------------------------------------------------------
# Pruning rules
# ---------------------------------------------------------------------------

class TestPruning:
    @pytest.mark.parametrize(
        "hidden",
        [
            '<div aria-hidden="true">Gone</div>',
            "<div hidden>Gone</div>",
            '<div class="sr-only">Gone</div>',
            '<div class="visually-hidden">Gone</div>',
            '<div style="visibility: hidden">Gone</div>',
        ],
    )
    def test_hidden_elements_removed(self, hidden: str) -> None:
        result = clean(f"<body><p>Kept</p>{hidden}</body>")
        assert "Gone" not in result.text
        assert result.stats.hidden_removed == 1

    def test_nested_matches_counted_once(self) -> None:
        html = '<body><footer><div class="footer">x</div></footer><p>Kept</p></body>'
        result = clean(html)
        assert result.stats.boilerplate_removed == 1
        assert result.visible_text == ("Kept",)

    def test_cookie_banner_removed(self) -> None:
        html = '<body><div class="cookie-banner">We use cookies</div><p>Kept</p></body>'
        assert clean(html).visible_text == ("Kept",)

    def test_invalid_selector_is_skipped(self, monkeypatch, caplog) -> None:
        monkeypatch.setattr(
            "schemalift.pipeline.cleaner.HIDDEN_SELECTORS", ("div[", ".hidden")
        )
        html = '<body><div class="hidden">Gone</div><p>Kept</p></body>'
        with caplog.at_level(logging.WARNING, logger="schemalift"):
            result = clean(html)
        assert result.visible_text == ("Kept",)
        assert result.stats.hidden_removed == 1
        assert any("div[" in r.getMessage() for r in caplog.records)

    def test_accessibility_text_on_links(self) -> None:
        html = '<body><a href="/cart" aria-label="Open cart"></a></body>'
        result = clean(html)
        assert result.links == (Link(text="Open cart", href="/cart"),)
        assert "Open cart" in result.visible_text

    def test_input_button_uses_value(self) -> None:
        html = '<body><form><input type="submit" value="Subscribe now"></form></body>'
        assert clean(html).buttons == (Button(text="Subscribe now"),)


# ---------------------------------------------------------------------------
# Visible-text policy
# ---------------------------------------------------------------------------

class TestVisibleTextPolicy:
    _HTML = "<body><h2>Title</h2><div>$5</div><p>A paragraph.</p><ul><li>One</li></ul></body>"

    def test_paragraph_policy(self) -> None:
        result = clean(self._HTML, strategy=ParagraphHarvest())
        assert result.visible_text == ("Title", "A paragraph.", "One")
        assert result.text == "Title\n\nA paragraph.\n\nOne"

    def test_exhaustive_policy_keeps_bare_divs(self) -> None:
        result = clean(self._HTML, strategy=ExhaustiveHarvest())
        assert "$5" in result.visible_text
        assert result.visible_separator == "\n"

    def test_default_policy_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr("schemalift.pipeline.cleaner.settings.visible_text_policy", "paragraphs")
        result = clean(self._HTML)
        assert result.visible_separator == "\n\n"
