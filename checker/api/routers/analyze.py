"""Analysis endpoints.

Routes
------
POST /analyze          Body: {"url": "https://..."}   → analyze_website
GET  /analyze?url=...                                 → analyze_website

Both routes are rate limited per client address.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from checker.api.ratelimit import enforce_rate_limit
from checker.pipeline import analyze_website
from checker.scraper.errors import FetchError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


class MatchOut(BaseModel):
    keyword: str
    count: int
    is_high_confidence: bool
    examples: Optional[list[str]] = None


class AnalyzeResponse(BaseModel):
    status: str
    url: str
    classification: str
    is_detected: bool
    confidence: float
    matched_keywords: list[MatchOut]
    total_matches: int
    high_confidence_matches: int
    content_length: int
    javascript_rendered: bool
    analysis_method: str
    timestamp: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_valid_url(value: str) -> bool:
    """Return ``True`` when *value* parses with both a scheme and a host."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def _run_analysis(url: str) -> dict[str, Any]:
    try:
        report = analyze_website(url)
    except FetchError as exc:
        raise HTTPException(status_code=500, detail=f"Analysis failed: {exc}") from exc
    except Exception as exc:
        logger.exception("Unexpected error analyzing %s", url)
        raise HTTPException(
            status_code=500, detail="Analysis failed: internal error"
        ) from exc

    return {
        "status": "success",
        **report.to_dict(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=AnalyzeResponse, response_model_exclude_none=True)
def analyze_post(body: Optional[AnalyzeRequest] = None) -> dict[str, Any]:
    """Fetch the URL in the JSON body and classify its financing promotion."""
    url = (body.url or "").strip() if body else ""
    if not url:
        raise HTTPException(status_code=400, detail="URL is required")
    if not is_valid_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL format")
    return _run_analysis(url)


@router.get("", response_model=AnalyzeResponse, response_model_exclude_none=True)
def analyze_get(url: Optional[str] = None) -> dict[str, Any]:
    """Query-string variant of ``POST /analyze``."""
    url = (url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL parameter is required")
    if not is_valid_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL format")
    return _run_analysis(url)
