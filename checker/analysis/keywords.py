"""Static keyword and pattern configuration for financing detection.

Order matters: matches are emitted in enumeration order (keywords before
patterns) and the final sort by count is stable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class KeywordEntry:
    keyword: str
    is_high_confidence: bool = False


_STANDARD_TERMS = (
    # Primary financing terms
    "financing", "apply now", "credit", "loan", "payment plan",
    "installment", "monthly payment", "deferred payment",
    # Credit-related terms
    "credit score", "credit check", "no credit check", "bad credit",
    "credit approval", "instant credit", "pre-approved",
    # Application terms
    "apply online", "quick approval", "instant approval",
    "application", "pre-qualify", "get approved",
    # Payment terms
    "buy now pay later", "bnpl", "split payment", "pay over time",
    "0% apr", "no interest", "interest free", "same as cash",
    # Promotional terms
    "special financing", "promotional financing", "finance options",
    "payment options", "flexible payment", "easy payment",
    # Financing providers
    "affirm", "klarna", "afterpay", "sezzle", "quadpay", "zip",
    "paypal credit", "synchrony", "care credit", "wells fargo",
    # Call-to-action terms
    "finance it", "finance today", "get financing", "check financing",
    "financing available", "finance this purchase",
)

HIGH_CONFIDENCE_TERMS = frozenset({
    "apply now", "financing", "credit approval", "payment plan",
    "buy now pay later", "monthly payment", "affirm", "klarna",
    "afterpay", "finance options", "get approved",
})

KEYWORDS: tuple[KeywordEntry, ...] = tuple(
    KeywordEntry(term, term in HIGH_CONFIDENCE_TERMS) for term in _STANDARD_TERMS
)

# Phrasing shapes that signal financing regardless of exact wording.
# Every pattern counts as high-confidence.
FINANCING_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE | re.ASCII)
    for p in (
        r"\$\d+\s*per\s*month",
        r"\d+\s*months\s*financing",
        r"\d+\s*%\s*apr",
        r"no\s*money\s*down",
        r"zero\s*percent",
        r"\d+\s*easy\s*payments",
    )
)

PATTERN_LABEL = "financial_pattern"


def keyword_regex(keyword: str) -> re.Pattern[str]:
    """Compile a case-insensitive whole-word regex for *keyword*.

    The literal is escaped so characters such as ``%`` or ``-`` never act as
    regex syntax.  Word boundaries are ASCII-only: an accented letter next to
    the keyword does not count as part of the word.
    """
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE | re.ASCII)


KEYWORD_PATTERNS: tuple[tuple[KeywordEntry, re.Pattern[str]], ...] = tuple(
    (entry, keyword_regex(entry.keyword)) for entry in KEYWORDS
)
