"""Simple in-memory per-client rate limiter for the analyze endpoints.

Counts requests per client address over a sliding window.  State lives on
the application instance, so it is per-process and lost on restart.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Dict, List, Tuple

from fastapi import HTTPException, Request


class SlidingWindowRateLimiter:
    def __init__(self, max_requests: int, window_seconds: float) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> Tuple[bool, int]:
        """Record a hit for *key* if allowed.

        Returns ``(allowed, retry_after_seconds)``.
        """
        now = time.monotonic()
        cutoff = now - self.window_seconds
        with self._lock:
            self._evict_expired(cutoff)
            hits = [ts for ts in self._hits.get(key, []) if ts > cutoff]
            if len(hits) >= self.max_requests:
                self._hits[key] = hits
                return False, max(1, math.ceil(hits[0] - cutoff))
            hits.append(now)
            self._hits[key] = hits
        return True, 0

    def _evict_expired(self, cutoff: float) -> None:
        # Drop clients whose newest hit is outside the window.
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: reject the request with 429 once the client is over quota."""
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "unknown"
    allowed, retry_after = limiter.check(client)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail="Too many requests from this IP, please try again later.",
            headers={"Retry-After": str(retry_after)},
        )
