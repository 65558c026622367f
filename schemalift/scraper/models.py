"""Data models for page ingestion."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RawPage:
    """The raw HTML for a single URL fetch.

    ``final_url`` is the URL after redirects; relative links on the page
    resolve against it, not against ``url``.
    """

    url: str
    html: str
    final_url: str
    status_code: int
    rendered: bool = False
