"""Deterministic DOM cleaning: raw markup in, :class:`ContentBundle` out.

No inference and no enrichment, only what is visibly on the page.  The
steps run in a fixed order because later steps query the tree left by the
earlier ones:

1. parse (parser warnings suppressed)
2. harvest ``<meta>`` tags, before anything is removed
3. remove dangerous tags
4. remove hidden elements
5. remove boilerplate
6. extract headings, lists, tables, images, links and buttons
7. serialise the pruned body
8. harvest visible text through a :class:`VisibleTextStrategy`
9. compute stats
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import Iterable

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from schemalift.config import settings
from schemalift.errors import CleaningFailure
from schemalift.pipeline.models import (
    Button,
    CleaningStats,
    ContentBundle,
    Heading,
    Image,
    Link,
    ListBlock,
    MetaTag,
    Table,
)
from schemalift.pipeline.rules import (
    BOILERPLATE_SELECTORS,
    BUTTON_SELECTORS,
    DANGEROUS_TAGS,
    HEADING_TAGS,
    HIDDEN_SELECTORS,
)
from schemalift.pipeline.visible_text import VisibleTextStrategy, element_text, get_strategy

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse(raw_markup: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return BeautifulSoup(raw_markup, "html.parser")


def _is_attached(el: Tag, root: BeautifulSoup) -> bool:
    """Return ``True`` if *el* is still part of *root*'s tree."""
    node = el.parent
    while node is not None:
        if node is root:
            return True
        node = node.parent
    return False


def _detach_all(elements: Iterable[Tag], root: BeautifulSoup) -> int:
    removed = 0
    for el in elements:
        # Descendants of an element removed earlier in the same pass are
        # already gone from the document and are not counted again.
        if _is_attached(el, root):
            el.extract()
            removed += 1
    return removed


def _remove_selectors(
    soup: BeautifulSoup,
    selectors: Iterable[str],
    pass_name: str,
    log: logging.Logger,
) -> int:
    """Remove everything matching *selectors*, skipping selectors that fail."""
    removed = 0
    for selector in selectors:
        try:
            matches = soup.select(selector)
        except (SelectorSyntaxError, NotImplementedError, ValueError) as exc:
            log.warning("Skipping %s selector %r: %s", pass_name, selector, exc)
            continue
        removed += _detach_all(matches, soup)
    return removed


def _harvest_meta(soup: BeautifulSoup) -> list[MetaTag]:
    meta: list[MetaTag] = []
    for tag in soup.find_all("meta"):
        content = tag.get("content")
        name = tag.get("name")
        prop = tag.get("property")
        if content is None or not (name or prop):
            continue
        meta.append(MetaTag(content=content.strip(), name=name or None, property=prop or None))
    return meta


def _extract_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for el in soup.find_all(list(HEADING_TAGS)):
        text = element_text(el)
        if text:
            headings.append(Heading(level=int(el.name[1]), text=text))
    return headings


def _extract_lists(soup: BeautifulSoup) -> list[ListBlock]:
    lists: list[ListBlock] = []
    for el in soup.find_all(["ul", "ol"]):
        items = [text for text in (element_text(li) for li in el.find_all("li")) if text]
        if items:
            kind = "ordered" if el.name == "ol" else "unordered"
            lists.append(ListBlock(kind=kind, items=tuple(items)))
    return lists


def _extract_tables(soup: BeautifulSoup) -> list[Table]:
    tables: list[Table] = []
    for table in soup.find_all("table"):
        headers = [text for text in (element_text(th) for th in table.find_all("th")) if text]
        rows: list[tuple[str, ...]] = []
        for tr in table.find_all("tr"):
            cells = tuple(element_text(td) for td in tr.find_all("td"))
            if any(cells):
                rows.append(cells)
        if headers or rows:
            tables.append(Table(headers=tuple(headers), rows=tuple(rows)))
    return tables


def _extract_images(soup: BeautifulSoup) -> list[Image]:
    images: list[Image] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if src and not src.lower().startswith("data:"):
            images.append(Image(src=src, alt=img.get("alt")))
    return images


def _extract_links(soup: BeautifulSoup) -> list[Link]:
    links: list[Link] = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href.startswith("#") or href.lower().startswith("javascript:"):
            continue
        text = element_text(a) or (a.get("aria-label") or a.get("title") or "").strip()
        links.append(Link(text=text, href=href))
    return links


def _extract_buttons(soup: BeautifulSoup) -> list[Button]:
    buttons: list[Button] = []
    for btn in soup.select(BUTTON_SELECTORS):
        text = element_text(btn) or (btn.get("value") or "").strip()
        if text:
            buttons.append(Button(text=text))
    return buttons


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def clean(
    raw_markup: str,
    strategy: VisibleTextStrategy | None = None,
    logger: logging.Logger | None = None,
) -> ContentBundle:
    """Clean *raw_markup* and extract its structured content.

    Args:
        raw_markup: The page HTML exactly as fetched or rendered.
        strategy: Visible-text policy.  Defaults to
            ``settings.visible_text_policy``.
        logger: Destination for diagnostics.  Defaults to the module logger.

    Returns:
        An immutable :class:`ContentBundle`.

    Raises:
        CleaningFailure: If the markup cannot be parsed at all.  No partial
            bundle is ever returned.
    """
    log = logger or _log
    if not isinstance(raw_markup, str):
        raise CleaningFailure(f"Expected markup as str, got {type(raw_markup).__name__}")
    if strategy is None:
        strategy = get_strategy(settings.visible_text_policy)

    log.info("Starting DOM cleaning (input length %d)", len(raw_markup))

    try:
        soup = _parse(raw_markup)
    except Exception as exc:  # noqa: BLE001
        log.error("Cleaning failed: %s", exc)
        raise CleaningFailure(f"Could not parse markup: {exc}") from exc

    try:
        meta = _harvest_meta(soup)

        dangerous = _detach_all(soup.find_all(list(DANGEROUS_TAGS)), soup)
        log.debug("Removed dangerous elements: %d", dangerous)
        hidden = _remove_selectors(soup, HIDDEN_SELECTORS, "hidden", log)
        log.debug("Removed hidden elements: %d", hidden)
        boilerplate = _remove_selectors(soup, BOILERPLATE_SELECTORS, "boilerplate", log)
        log.debug("Removed boilerplate elements: %d", boilerplate)

        headings = _extract_headings(soup)
        lists = _extract_lists(soup)
        tables = _extract_tables(soup)
        images = _extract_images(soup)
        links = _extract_links(soup)
        buttons = _extract_buttons(soup)

        container = soup.body if soup.body is not None else soup
        cleaned_markup = container.decode_contents()
        visible = strategy.extract(container)
    except RecursionError as exc:
        log.error("Cleaning failed: markup nested too deeply")
        raise CleaningFailure("Markup nested too deeply to process") from exc

    text = strategy.separator.join(visible)
    stats = CleaningStats(
        original_length=len(raw_markup),
        cleaned_length=len(cleaned_markup),
        token_estimate=math.ceil(len(text) / 4),
        dangerous_removed=dangerous,
        hidden_removed=hidden,
        boilerplate_removed=boilerplate,
    )

    log.info(
        "Cleaning complete: removed=%d headings=%d lists=%d tables=%d images=%d "
        "links=%d meta=%d tokens~%d (%s policy)",
        stats.elements_removed,
        len(headings),
        len(lists),
        len(tables),
        len(images),
        len(links),
        len(meta),
        stats.token_estimate,
        strategy.name,
    )

    return ContentBundle(
        cleaned_markup=cleaned_markup,
        visible_text=tuple(visible),
        visible_separator=strategy.separator,
        stats=stats,
        headings=tuple(headings),
        lists=tuple(lists),
        tables=tuple(tables),
        images=tuple(images),
        links=tuple(links),
        buttons=tuple(buttons),
        meta=tuple(meta),
    )
