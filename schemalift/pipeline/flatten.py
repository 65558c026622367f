"""Flatten cleaned HTML into a compact, deduplicated line set.

Only human-visible text survives: text nodes plus the accessibility text
(``aria-label``, ``title``, ``alt``) that has no text-node equivalent.
The result feeds the fact-surfacing model, so every repeated phrase costs
tokens; lines are deduplicated across the whole document, not just
consecutively.
"""

from __future__ import annotations

import logging
import re
import warnings

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from schemalift.pipeline.models import FlattenedText
from schemalift.pipeline.rules import ACCESSIBILITY_ATTRS, NON_TEXTUAL_TAGS
from schemalift.pipeline.visible_text import normalise_whitespace

_log = logging.getLogger(__name__)

_TAG = re.compile(r"<[^>]+>")
_ICON_TAGS = frozenset({"i", "span"})


def _is_icon(el: Tag) -> bool:
    if el.name not in _ICON_TAGS:
        return False
    classes = el.get("class") or []
    return any("icon" in cls.lower() for cls in classes)


def _collect(node: Tag, seen: dict[str, None]) -> None:
    """Depth-first walk adding candidate lines to *seen* (an ordered set)."""
    if node.name in NON_TEXTUAL_TAGS or _is_icon(node):
        return

    for attr in ACCESSIBILITY_ATTRS:
        value = node.get(attr)
        if isinstance(value, str):
            _add(seen, value)

    for child in node.children:
        if isinstance(child, Tag):
            _collect(child, seen)
        elif isinstance(child, NavigableString) and not isinstance(
            child, (Comment, Declaration, Doctype, ProcessingInstruction)
        ):
            _add(seen, str(child))


def _add(seen: dict[str, None], raw: str) -> None:
    text = normalise_whitespace(raw)
    if text:
        seen.setdefault(text, None)


def _strip_tags(markup: str) -> str:
    return normalise_whitespace(_TAG.sub(" ", markup))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def flatten(cleaned_markup: str, logger: logging.Logger | None = None) -> FlattenedText:
    """Convert *cleaned_markup* to one fact per line.

    Never raises: if the tree cannot be walked (for example markup nested
    beyond the recursion limit) the result degrades to a single tag-strip
    of the input.
    """
    log = logger or _log
    original_length = len(cleaned_markup)
    log.info("Starting HTML flattening (input length %d)", original_length)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            soup = BeautifulSoup(cleaned_markup, "html.parser")
        seen: dict[str, None] = {}
        _collect(soup.body if soup.body is not None else soup, seen)
        lines = tuple(seen)
    except Exception as exc:  # noqa: BLE001
        log.error("Flattening failed, falling back to tag strip: %s", exc)
        fallback = _strip_tags(cleaned_markup)
        return FlattenedText(
            lines=(fallback,) if fallback else (),
            original_length=original_length,
            used_fallback=True,
        )

    result = FlattenedText(lines=lines, original_length=original_length)
    log.info(
        "Flattening complete: %d line(s), %d%% smaller",
        result.line_count,
        result.reduction_percent,
    )
    return result
