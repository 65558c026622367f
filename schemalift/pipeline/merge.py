"""Deterministic merge of surfaced facts with the cleaner's visible text.

No parsing, no formatting, no deduplication: facts first, one per line,
then a blank line, then the visible text verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class MergeResult:
    text: str
    fact_count: int
    original_length: int
    merged_length: int


def merge(facts: Sequence[str] | None, visible_text: str) -> str:
    """Prepend *facts* to *visible_text*.

    >>> merge([], "c")
    'c'
    >>> merge(["a", "b"], "c")
    'a\\nb\\n\\nc'
    """
    if not facts:
        return visible_text
    return "\n".join(facts) + "\n\n" + visible_text


def merge_with_stats(facts: Sequence[str] | None, visible_text: str) -> MergeResult:
    """Same as :func:`merge`, with sizes for logging."""
    text = merge(facts, visible_text)
    return MergeResult(
        text=text,
        fact_count=len(facts) if facts else 0,
        original_length=len(visible_text),
        merged_length=len(text),
    )
