"""Data models for the extraction and validation pipeline.

Every result type is a frozen dataclass holding tuples, so a bundle or a
report cannot change after the stage that produced it returns.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

SCHEMA_CONTEXT = "https://schema.org"


# ---------------------------------------------------------------------------
# Cleaner output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class ListBlock:
    kind: Literal["ordered", "unordered"]
    items: tuple[str, ...]


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class Image:
    src: str
    alt: str | None = None


@dataclass(frozen=True)
class Link:
    text: str
    href: str


@dataclass(frozen=True)
class Button:
    text: str


@dataclass(frozen=True)
class MetaTag:
    """A ``<meta>`` tag keyed by either ``name`` or ``property``."""

    content: str
    name: str | None = None
    property: str | None = None


@dataclass(frozen=True)
class CleaningStats:
    """Diagnostic counters.  Never used for downstream decisions."""

    original_length: int
    cleaned_length: int
    token_estimate: int
    dangerous_removed: int = 0
    hidden_removed: int = 0
    boilerplate_removed: int = 0

    @property
    def elements_removed(self) -> int:
        return self.dangerous_removed + self.hidden_removed + self.boilerplate_removed

    def to_dict(self) -> dict[str, int]:
        return {
            "originalLength": self.original_length,
            "cleanedLength": self.cleaned_length,
            "elementsRemoved": self.elements_removed,
            "tokenEstimate": self.token_estimate,
            "dangerousRemoved": self.dangerous_removed,
            "hiddenRemoved": self.hidden_removed,
            "boilerplateRemoved": self.boilerplate_removed,
        }


@dataclass(frozen=True)
class ContentBundle:
    """High-signal, structurally tagged content harvested from one page."""

    cleaned_markup: str
    visible_text: tuple[str, ...]
    stats: CleaningStats
    visible_separator: str = "\n"
    headings: tuple[Heading, ...] = ()
    lists: tuple[ListBlock, ...] = ()
    tables: tuple[Table, ...] = ()
    images: tuple[Image, ...] = ()
    links: tuple[Link, ...] = ()
    buttons: tuple[Button, ...] = ()
    meta: tuple[MetaTag, ...] = ()

    @property
    def text(self) -> str:
        """The visible text as a single string."""
        return self.visible_separator.join(self.visible_text)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of the bundle."""
        return {
            "cleanedMarkup": self.cleaned_markup,
            "visibleText": self.text,
            "headings": [asdict(h) for h in self.headings],
            "lists": [{"type": block.kind, "items": list(block.items)} for block in self.lists],
            "tables": [
                {"headers": list(t.headers), "rows": [list(r) for r in t.rows]}
                for t in self.tables
            ],
            "images": [asdict(i) for i in self.images],
            "links": [asdict(lnk) for lnk in self.links],
            "buttons": [asdict(b) for b in self.buttons],
            "meta": [
                {k: v for k, v in asdict(m).items() if v is not None} for m in self.meta
            ],
            "stats": self.stats.to_dict(),
        }


# ---------------------------------------------------------------------------
# Flattener output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlattenedText:
    lines: tuple[str, ...]
    original_length: int
    used_fallback: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def reduction_percent(self) -> int:
        if not self.original_length:
            return 0
        return round((1 - len(self.text) / self.original_length) * 100)


# ---------------------------------------------------------------------------
# Validator output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidatedEntity:
    """An accepted entity: its type plus repaired, non-empty properties."""

    type: str
    properties: dict[str, Any] = field(default_factory=dict)

    def to_jsonld(self) -> dict[str, Any]:
        """Return a fresh JSON-LD object with the ``@context``/``@type`` envelope."""
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": self.type,
            **copy.deepcopy(self.properties),
        }


@dataclass(frozen=True)
class RejectedEntity:
    type: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"@type": self.type, "reason": self.reason}


@dataclass(frozen=True)
class ValidationReport:
    accepted: tuple[ValidatedEntity, ...] = ()
    rejected: tuple[RejectedEntity, ...] = ()
    repairs: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return len(self.accepted) > 0

    @property
    def entity_types(self) -> list[str]:
        """Types of the accepted entities, in order."""
        return [e.type for e in self.accepted]

    def to_jsonld(self) -> list[dict[str, Any]]:
        return [e.to_jsonld() for e in self.accepted]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "acceptedEntities": self.to_jsonld(),
            "rejectedEntities": [r.to_dict() for r in self.rejected],
            "entityTypes": self.entity_types,
            "repairs": list(self.repairs),
        }
