"""Content analysis package — keyword/pattern financing detection."""

from checker.analysis.analyzer import analyze_content, normalize_text
from checker.analysis.keywords import FINANCING_PATTERNS, KEYWORDS, KeywordEntry
from checker.analysis.models import AnalysisResult, Match

__all__ = [
    "analyze_content",
    "normalize_text",
    "AnalysisResult",
    "Match",
    "KeywordEntry",
    "KEYWORDS",
    "FINANCING_PATTERNS",
]
