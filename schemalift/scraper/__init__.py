"""Scraper package: page fetch with an optional headless-browser render."""

from schemalift.scraper.fetcher import fetch_page
from schemalift.scraper.models import RawPage

__all__ = ["fetch_page", "RawPage"]
