"""Small, pure coercions applied by the validator field by field.

Each function accepts whatever the semantic model produced and either
returns the canonical form or signals that nothing usable was found.  None
of them raise.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from urllib.parse import urljoin, urlsplit

from dateutil import parser as date_parser

_NUMERIC_RUN = re.compile(r"\d[\d,]*\.?\d*")
_THOUSANDS_COMMA = re.compile(r",(?=\d{3}(?:\D|$))")
_HAS_DIGIT = re.compile(r"\d")

# A missing month or day is filled from these, never from "today". A string
# that parses differently under the two has no year of its own.
_DATE_DEFAULT = datetime(2000, 1, 1)
_DATE_ALT_DEFAULT = datetime(2001, 1, 1)


def repair_price(raw: Any) -> float | None:
    """Return the first number found in *raw*, or ``None``.

    ``"$19.99"`` → ``19.99``, ``"1,299.00"`` → ``1299.0``,
    ``"19,99 EUR"`` → ``19.99``.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)

    match = _NUMERIC_RUN.search(str(raw))
    if not match:
        return None
    cleaned = _THOUSANDS_COMMA.sub("", match.group(0)).rstrip(",")
    # Any comma left is a decimal separator.
    cleaned = cleaned.replace(",", ".", 1)
    try:
        return float(cleaned)
    except ValueError:
        return None


def _is_absolute_http(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def repair_url(raw: Any, base_url: str | None = None) -> str | None:
    """Return an absolute ``http(s)`` URL for *raw*, or ``None``.

    Protocol-relative URLs get ``https:``; relative URLs are resolved
    against *base_url* when one is given.
    """
    if not isinstance(raw, str):
        return None
    url = raw.strip()
    if not url:
        return None

    if url.startswith("//"):
        candidate = "https:" + url
        return candidate if _is_absolute_http(candidate) else None

    if _is_absolute_http(url):
        return url

    if base_url and _is_absolute_http(base_url):
        try:
            resolved = urljoin(base_url, url)
        except ValueError:
            return None
        if _is_absolute_http(resolved):
            return resolved
    return None


def repair_date(raw: Any) -> Any:
    """Return *raw* as ``YYYY-MM-DD`` if it parses as a date, else unchanged.

    The calendar date is taken as written: ``2026-01-21T23:30:00-05:00``
    stays ``2026-01-21``.  Strings without a year of their own, such as
    ``7:30 PM``, are returned unchanged.
    """
    if not isinstance(raw, str) or not _HAS_DIGIT.search(raw):
        return raw
    try:
        parsed = date_parser.parse(raw.strip(), default=_DATE_DEFAULT)
        alt = date_parser.parse(raw.strip(), default=_DATE_ALT_DEFAULT)
    except (ValueError, OverflowError, TypeError):
        return raw
    if parsed.date() != alt.date():
        return raw
    return parsed.date().isoformat()
