"""HTTP fetcher with optional Playwright render for JS-built pages."""

from __future__ import annotations

import logging
import re

import httpx

from schemalift.config import settings
from schemalift.scraper.models import RawPage

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SPA / JS-rendered page detection heuristics
# ---------------------------------------------------------------------------
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app|__next)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"window\.__NUXT__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

# Auto-scroll: step every 500 ms, give up after this many steps.
_SCROLL_INTERVAL_MS = 500
_MAX_SCROLL_STEPS = 20
_NETWORK_IDLE_TIMEOUT_MS = 10_000


def _is_spa(html: str) -> bool:
    """Return ``True`` if *html* looks like a JavaScript SPA that needs rendering."""
    for pattern in _SPA_PATTERNS:
        if pattern.search(html):
            return True
    # Very little visible text relative to total HTML size.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>", "", html, flags=re.IGNORECASE | re.DOTALL
    )
    stripped = re.sub(r"<[^>]+>", "", no_scripts).strip()
    return len(html) > 2000 and len(stripped) < 200


def _auto_scroll(page) -> int:  # type: ignore[no-untyped-def]
    """Scroll to the bottom one viewport at a time so lazy content loads."""
    last_y = -1
    depth = 0
    for _ in range(_MAX_SCROLL_STEPS):
        depth = page.evaluate("() => { window.scrollBy(0, window.innerHeight); return window.scrollY; }")
        if depth == last_y:
            break
        last_y = depth
        page.wait_for_timeout(_SCROLL_INTERVAL_MS)
    page.evaluate("() => window.scrollTo(0, 0)")
    return int(depth or 0)


def _fetch_with_playwright(url: str) -> RawPage:
    """Render *url* with a headless Chromium browser and return its HTML.

    Playwright is imported lazily so callers that never render don't need a
    browser installed.
    """
    from playwright.sync_api import TimeoutError as PlaywrightTimeout  # noqa: PLC0415
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=True)
        try:
            page = browser.new_page(user_agent=_DEFAULT_HEADERS["User-Agent"])
            response = page.goto(
                url,
                timeout=int(settings.request_timeout * 1000),
                wait_until="domcontentloaded",
            )
            try:
                page.wait_for_load_state("networkidle", timeout=_NETWORK_IDLE_TIMEOUT_MS)
            except PlaywrightTimeout:
                _log.warning("Network idle timeout for %s, continuing anyway", url)
            depth = _auto_scroll(page)
            html = page.content()
            final_url = page.url
            status = response.status if response is not None else 200
        finally:
            browser.close()

    _log.info("Rendered %s (scroll depth %d, %d chars)", final_url, depth, len(html))
    return RawPage(url=url, html=html, final_url=final_url, status_code=status, rendered=True)


def fetch_page(url: str, render: bool | None = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Uses ``httpx`` for standard pages.  Falls back to a headless Playwright
    browser when a JavaScript SPA fingerprint is detected in the initial
    response, or always when *render* (default ``settings.render_js``) is set.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.HTTPError: On transport failures.
    """
    if render is None:
        render = settings.render_js
    if render:
        return _fetch_with_playwright(url)

    with httpx.Client(
        headers=_DEFAULT_HEADERS,
        timeout=settings.request_timeout,
        follow_redirects=True,
    ) as client:
        response = client.get(url)
        response.raise_for_status()
        raw = RawPage(
            url=url,
            html=response.text,
            final_url=str(response.url),
            status_code=response.status_code,
        )

    _log.info("Fetched %s (%d, %d chars)", raw.final_url, raw.status_code, len(raw.html))

    if _is_spa(raw.html):
        _log.info("SPA fingerprint detected for %s, rendering", url)
        raw = _fetch_with_playwright(url)

    return raw
