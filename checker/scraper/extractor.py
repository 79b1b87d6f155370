"""Visible-text extraction from raw HTML."""

from __future__ import annotations

from bs4 import BeautifulSoup

# Elements whose contents never render as page text.
NON_VISIBLE_TAGS = ("script", "style", "noscript")


def extract_visible_text(html: str) -> str:
    """Return the lowercased visible text of the document ``<body>``.

    ``<script>``, ``<style>`` and ``<noscript>`` elements are removed first so
    their source does not count as content.  Text nodes are joined with a
    single space so that words in adjacent elements stay separate.  Documents
    without a ``<body>`` fall back to the whole tree.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(list(NON_VISIBLE_TAGS)):
        tag.decompose()

    container = soup.body or soup
    return container.get_text(separator=" ").lower()
