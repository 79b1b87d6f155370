"""Rule-based financing detection over extracted page text.

``analyze_content`` is pure: the same text always yields the same
:class:`AnalysisResult`.

Scoring
-------
* high-confidence keyword   +0.30 per occurrence
* standard keyword          +0.10 per occurrence
* structural pattern        +0.25 per occurrence

The sum is capped at 1.0.  A page is flagged when there is at least one
high-confidence occurrence, or at least three *distinct* entries matched.
"""

from __future__ import annotations

import re

from checker.analysis.keywords import FINANCING_PATTERNS, KEYWORD_PATTERNS, PATTERN_LABEL
from checker.analysis.models import AnalysisResult, Match

HIGH_CONFIDENCE_WEIGHT = 0.3
STANDARD_WEIGHT = 0.1
PATTERN_WEIGHT = 0.25
MAX_EXAMPLES = 3
MIN_DISTINCT_MATCHES = 3

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_financing_detected(matches: list[Match], high_confidence_count: int) -> bool:
    # Distinct entries, not occurrences.
    return bool(matches) and (
        high_confidence_count > 0 or len(matches) >= MIN_DISTINCT_MATCHES
    )


def analyze_content(text: str) -> AnalysisResult:
    """Score *text* for financing promotion signals.

    Args:
        text: Visible page text.  Case does not matter.

    Returns:
        An :class:`AnalysisResult` whose ``matches`` are sorted by descending
        count, ties keeping keyword-then-pattern configuration order.
    """
    content = normalize_text(text)
    matches: list[Match] = []
    confidence = 0.0
    high_confidence_count = 0

    for entry, regex in KEYWORD_PATTERNS:
        count = len(regex.findall(content))
        if not count:
            continue
        matches.append(Match(entry.keyword, count, entry.is_high_confidence))
        if entry.is_high_confidence:
            confidence += HIGH_CONFIDENCE_WEIGHT * count
            high_confidence_count += count
        else:
            confidence += STANDARD_WEIGHT * count

    for pattern in FINANCING_PATTERNS:
        found = [m.group(0) for m in pattern.finditer(content)]
        if not found:
            continue
        matches.append(
            Match(PATTERN_LABEL, len(found), True, examples=found[:MAX_EXAMPLES])
        )
        confidence += PATTERN_WEIGHT * len(found)
        high_confidence_count += len(found)

    confidence = min(confidence, 1.0)
    matches.sort(key=lambda m: m.count, reverse=True)

    return AnalysisResult(
        is_detected=is_financing_detected(matches, high_confidence_count),
        confidence=round(confidence, 3),
        matches=matches,
        total_matches=sum(m.count for m in matches),
        high_confidence_match_count=high_confidence_count,
    )
