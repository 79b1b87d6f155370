"""Data models for content analysis."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional


@dataclass
class Match:
    """A keyword or structural pattern found at least once in the text."""

    keyword: str
    count: int
    is_high_confidence: bool
    examples: Optional[List[str]] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.examples is None:
            data.pop("examples")
        return data


@dataclass
class AnalysisResult:
    """Outcome of :func:`~checker.analysis.analyzer.analyze_content`."""

    is_detected: bool
    confidence: float
    matches: List[Match] = field(default_factory=list)
    total_matches: int = 0
    high_confidence_match_count: int = 0
