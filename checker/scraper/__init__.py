"""Scraper package — page fetch & visible-text extraction."""

from checker.scraper.errors import FetchError, FetchErrorKind, RenderError, RenderErrorKind
from checker.scraper.extractor import extract_visible_text
from checker.scraper.fetcher import fetch_url
from checker.scraper.models import FetchMethod, FetchResult

__all__ = [
    "fetch_url",
    "extract_visible_text",
    "FetchResult",
    "FetchMethod",
    "FetchError",
    "FetchErrorKind",
    "RenderError",
    "RenderErrorKind",
]
