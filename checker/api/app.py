"""FastAPI application factory.

State
-----
Each app instance owns its own :class:`SlidingWindowRateLimiter`
(``request.app.state.rate_limiter``); nothing else is shared between
requests.

Routes
------
    /          — service description
    /health    — liveness check
    /analyze   — website financing analysis (rate limited)

Every response carries a fixed set of security headers, and unknown paths
return a JSON 404.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from checker.api.ratelimit import SlidingWindowRateLimiter
from checker.api.routers import analyze as analyze_router
from checker.config import configure_logging, settings

SERVICE_NAME = "Website Financing Analyzer"
SERVICE_VERSION = "1.0.0"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


async def _add_security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = "Endpoint not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging()

    app = FastAPI(
        title=SERVICE_NAME,
        description=(
            "Fetches a web page and classifies whether it proactively promotes "
            "financing or credit, using keyword and pattern matching."
        ),
        version=SERVICE_VERSION,
    )
    app.state.rate_limiter = SlidingWindowRateLimiter(
        settings.rate_limit_requests, settings.rate_limit_window
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_add_security_headers)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)

    app.include_router(analyze_router.router, prefix="/analyze", tags=["analyze"])

    @app.get("/", tags=["meta"])
    def index() -> dict[str, Any]:
        """Describe the service and its endpoints."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Detects proactive financing promotion on websites",
            "endpoints": {
                "POST /analyze": 'Analyze a website. Body: {"url": "https://..."}',
                "GET /analyze?url=": "Analyze a website via query parameter",
                "GET /health": "Health check",
            },
        }

    @app.get("/health", tags=["meta"])
    def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


# Module-level instance used by uvicorn:
#   uvicorn checker.api.app:app --reload
app = create_app()
