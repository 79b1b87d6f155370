"""Website analysis pipeline.

``analyze_website`` orchestrates the full flow from a URL to a
classification report:

    fetch (httpx → Playwright fallback) → analyze → assemble report
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List

from checker.analysis.analyzer import analyze_content
from checker.analysis.models import AnalysisResult, Match
from checker.scraper.errors import FetchError
from checker.scraper.fetcher import fetch_url
from checker.scraper.models import FetchMethod, FetchResult

logger = logging.getLogger(__name__)

PROACTIVE = "Proactive"
NON_USER = "Non User"


@dataclass
class AnalysisReport:
    """Final classification record for one URL."""

    url: str
    classification: str
    is_detected: bool
    confidence: float
    method: FetchMethod
    content_length: int
    matches: List[Match] = field(default_factory=list)
    total_matches: int = 0
    high_confidence_match_count: int = 0

    @property
    def javascript_rendered(self) -> bool:
        return self.method is FetchMethod.RENDERED

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "classification": self.classification,
            "is_detected": self.is_detected,
            "confidence": self.confidence,
            "matched_keywords": [m.to_dict() for m in self.matches],
            "total_matches": self.total_matches,
            "high_confidence_matches": self.high_confidence_match_count,
            "content_length": self.content_length,
            "javascript_rendered": self.javascript_rendered,
            "analysis_method": self.method.value,
        }


def build_report(url: str, fetched: FetchResult, analysis: AnalysisResult) -> AnalysisReport:
    """Merge fetch metadata and analyzer output into an :class:`AnalysisReport`."""
    return AnalysisReport(
        url=url,
        classification=PROACTIVE if analysis.is_detected else NON_USER,
        is_detected=analysis.is_detected,
        confidence=analysis.confidence,
        method=fetched.method,
        content_length=len(fetched.text),
        matches=analysis.matches,
        total_matches=analysis.total_matches,
        high_confidence_match_count=analysis.high_confidence_match_count,
    )


def analyze_website(url: str) -> AnalysisReport:
    """Fetch *url*, score its text, and return the classification report.

    Raises:
        FetchError: If the page cannot be retrieved.  Nothing is analyzed in
            that case.
    """
    logger.info("Analyzing %s", url)
    try:
        fetched = fetch_url(url)
    except FetchError as exc:
        logger.warning("Fetch failed for %s (%s): %s", url, exc.kind.value, exc)
        raise

    report = build_report(url, fetched, analyze_content(fetched.text))
    logger.info(
        "%s -> %s (confidence=%.3f, matches=%d, method=%s)",
        url,
        report.classification,
        report.confidence,
        report.total_matches,
        report.method.value,
    )
    return report
