"""Visible-text harvesting strategies used by the cleaner.

Two policies are available:

``exhaustive`` (:class:`ExhaustiveHarvest`, the default)
    Depth-first walk over every text node plus ``aria-label`` / ``title`` /
    ``alt`` attributes, in document order, collapsing consecutive
    duplicates.  Lossless for short facts such as prices and counts.

``paragraphs`` (:class:`ParagraphHarvest`)
    Headings, then paragraphs, then list items, dropping anything shorter
    than ``min_length`` characters.  Smaller prompts, but short strings
    outside ``<p>``/``<li>``/``<hN>`` are lost.

Select one with :func:`get_strategy` or ``settings.visible_text_policy``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from bs4 import NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from schemalift.pipeline.rules import ACCESSIBILITY_ATTRS, HEADING_TAGS, NON_TEXTUAL_TAGS

_WHITESPACE = re.compile(r"\s+")

# NavigableString subclasses that are markup, not text.
_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def normalise_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def element_text(el: Tag) -> str:
    """Return the whitespace-normalised text content of *el*."""
    return normalise_whitespace(el.get_text(" "))


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class VisibleTextStrategy(ABC):
    """Turns a pruned tree into an ordered list of human-readable strings."""

    #: Separator used when the strings are joined into one text block.
    separator: str = "\n"

    @property
    @abstractmethod
    def name(self) -> str:
        """Policy name as used in configuration."""

    @abstractmethod
    def extract(self, root: Tag) -> list[str]:
        """Return the visible strings under *root*."""


# ---------------------------------------------------------------------------
# Policy (a): exhaustive harvest
# ---------------------------------------------------------------------------

class ExhaustiveHarvest(VisibleTextStrategy):
    separator = "\n"

    @property
    def name(self) -> str:
        return "exhaustive"

    def extract(self, root: Tag) -> list[str]:
        lines: list[str] = []
        # Explicit stack so very deep trees cannot hit the recursion limit.
        stack: list = [root]
        while stack:
            node = stack.pop()
            if isinstance(node, NavigableString):
                if isinstance(node, _NON_TEXT_STRINGS):
                    continue
                self._push(lines, str(node))
                continue
            if not isinstance(node, Tag) or node.name in NON_TEXTUAL_TAGS:
                continue
            for attr in ACCESSIBILITY_ATTRS:
                value = node.get(attr)
                if isinstance(value, str):
                    self._push(lines, value)
            stack.extend(reversed(node.contents))
        return lines

    @staticmethod
    def _push(lines: list[str], raw: str) -> None:
        text = normalise_whitespace(raw)
        if text and (not lines or lines[-1] != text):
            lines.append(text)


# ---------------------------------------------------------------------------
# Policy (b): heading / paragraph / list-item harvest
# ---------------------------------------------------------------------------

class ParagraphHarvest(VisibleTextStrategy):
    separator = "\n\n"

    def __init__(self, min_length: int = 2) -> None:
        self.min_length = min_length

    @property
    def name(self) -> str:
        return "paragraphs"

    def extract(self, root: Tag) -> list[str]:
        parts: list[str] = []
        # Headings have no length filter: a one-character title is still a title.
        for heading in root.find_all(list(HEADING_TAGS)):
            text = element_text(heading)
            if text:
                parts.append(text)
        for p in root.find_all("p"):
            text = element_text(p)
            if len(text) >= self.min_length:
                parts.append(text)
        for li in root.find_all("li"):
            text = element_text(li)
            if len(text) >= self.min_length:
                parts.append(text)
        return parts


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_STRATEGIES: dict[str, type[VisibleTextStrategy]] = {
    "exhaustive": ExhaustiveHarvest,
    "paragraphs": ParagraphHarvest,
}


def get_strategy(name: str) -> VisibleTextStrategy:
    """Return a new strategy instance for policy *name*.

    Raises:
        ValueError: If *name* is not a known policy.
    """
    try:
        return _STRATEGIES[name.strip().lower()]()
    except KeyError:
        known = " | ".join(sorted(_STRATEGIES))
        raise ValueError(f"Unknown visible text policy {name!r}. Use: {known}") from None
