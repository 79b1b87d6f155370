"""HTTP fetcher with a Playwright fallback for JS-rendered pages.

The cheap path is a single ``httpx`` GET followed by BeautifulSoup text
extraction.  When that yields fewer than ``settings.min_content_length``
characters the page is assumed to build its content client-side, and it is
fetched again through a headless Chromium browser.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import httpx

from checker.config import settings
from checker.scraper.errors import FetchError, FetchErrorKind, RenderError, RenderErrorKind
from checker.scraper.extractor import extract_visible_text
from checker.scraper.models import FetchMethod, FetchResult

logger = logging.getLogger(__name__)

_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
]

# Runs inside the page: drop non-visible elements, return rendered text.
_EXTRACT_TEXT_JS = """
() => {
  document.querySelectorAll('script, style, noscript').forEach(el => el.remove());
  return document.body ? document.body.innerText.toLowerCase() : '';
}
"""

# Each rendered fetch owns a whole browser process; cap how many run at once.
_RENDER_SLOTS = threading.BoundedSemaphore(settings.max_concurrent_renders)


def _status_error(exc: httpx.HTTPStatusError) -> FetchError:
    status = exc.response.status_code
    if status == 403:
        return FetchError(FetchErrorKind.BLOCKED)
    if status == 404:
        return FetchError(FetchErrorKind.NOT_FOUND)
    return FetchError(
        FetchErrorKind.NETWORK,
        detail=f"Request failed with status code {status}",
    )


def _fetch_simple(url: str) -> str:
    """GET *url* and return its lowercased visible body text.

    Raises:
        FetchError: On DNS/connection failure, timeout, or a 4xx/5xx status.
    """
    try:
        with httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout,
            follow_redirects=True,
            max_redirects=settings.max_redirects,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
            html = response.text
    except httpx.HTTPStatusError as exc:
        raise _status_error(exc) from exc
    except httpx.TimeoutException as exc:
        raise FetchError(FetchErrorKind.TIMEOUT, detail=str(exc)) from exc
    except httpx.ConnectError as exc:
        raise FetchError(FetchErrorKind.UNREACHABLE, detail=str(exc)) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(FetchErrorKind.NETWORK, detail=str(exc)) from exc

    return extract_visible_text(html)


def _release(close: Callable[[], None], what: str) -> None:
    """Run a browser teardown step without masking an in-flight error."""
    from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415

    try:
        close()
    except PlaywrightError as exc:
        logger.warning("Failed to close %s: %s", what, exc)


def _read_rendered_text(browser: Any, url: str) -> str:
    from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError  # noqa: PLC0415

    try:
        page = browser.new_page(user_agent=settings.user_agent)
        page.goto(
            url,
            timeout=int(settings.render_timeout * 1000),
            wait_until="networkidle",
        )
        # Deferred widgets (payment badges, promo banners) load late.
        page.wait_for_timeout(int(settings.render_settle_delay * 1000))
    except PlaywrightTimeoutError as exc:
        raise RenderError(RenderErrorKind.TIMEOUT, str(exc)) from exc
    except PlaywrightError as exc:
        raise FetchError(
            FetchErrorKind.NETWORK,
            message=f"Browser error: {exc}",
            detail=str(exc),
        ) from exc

    try:
        text = page.evaluate(_EXTRACT_TEXT_JS)
    except PlaywrightError as exc:
        raise RenderError(RenderErrorKind.EVALUATION_FAILURE, str(exc)) from exc
    return str(text or "")


def _fetch_rendered(url: str) -> str:
    """Render *url* with headless Chromium and return its visible text.

    The browser and the Playwright driver are shut down on every exit path;
    a failure during shutdown is logged rather than raised.  Playwright is
    imported lazily so the simple path works without a browser install.

    Raises:
        RenderError: On driver/browser launch failure, navigation timeout, or
            a failed in-page extraction.
        FetchError: On any other navigation error.
    """
    from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415
    from playwright.sync_api import sync_playwright  # noqa: PLC0415

    with _RENDER_SLOTS:
        try:
            pw = sync_playwright().start()
        except (PlaywrightError, OSError) as exc:
            raise RenderError(RenderErrorKind.LAUNCH_FAILURE, str(exc)) from exc

        try:
            try:
                browser = pw.chromium.launch(headless=True, args=_BROWSER_ARGS)
            except PlaywrightError as exc:
                raise RenderError(RenderErrorKind.LAUNCH_FAILURE, str(exc)) from exc
            try:
                return _read_rendered_text(browser, url)
            finally:
                _release(browser.close, "browser")
        finally:
            _release(pw.stop, "playwright driver")


def fetch_url(url: str) -> FetchResult:
    """Fetch *url* and return its visible text tagged with the method used.

    Uses ``httpx`` first.  Falls back to a headless Playwright browser when the
    extracted text is shorter than ``settings.min_content_length``.

    Raises:
        FetchError: If either stage fails.  A failed rendered fetch is not
            retried and does not fall back to the short simple-fetch text.
    """
    text = _fetch_simple(url)

    if len(text) < settings.min_content_length:
        logger.info(
            "Content seems minimal (%d chars) for %s, trying JavaScript rendering",
            len(text),
            url,
        )
        return FetchResult(text=_fetch_rendered(url), method=FetchMethod.RENDERED)

    return FetchResult(text=text, method=FetchMethod.SIMPLE)
