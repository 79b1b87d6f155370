"""Tests for the scraper — visible-text extraction and the two-tier fetch.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``fetch_url`` tests.
- ``_fetch_rendered`` is patched when testing the simple→rendered decision.
- Playwright itself is replaced with ``MagicMock`` objects (no browser is
  installed in the test environment); the real ``playwright.sync_api`` error
  classes are used so the error mapping is exercised for real.
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from checker.config import settings
from checker.scraper.errors import FetchError, FetchErrorKind, RenderError, RenderErrorKind
from checker.scraper.extractor import extract_visible_text
from checker.scraper.fetcher import _fetch_rendered, _fetch_simple, fetch_url
from checker.scraper.models import FetchMethod, FetchResult


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_LONG_HTML = (
    "<!DOCTYPE html><html><head><title>Store</title></head><body><main><p>"
    + "Quality furniture for every room. " * 40
    + "</p></main></body></html>"
)

_SPA_HTML = """\
<!DOCTYPE html>
<html>
<head><title>React App</title></head>
<body>
  <div id="root"></div>
  <script src="/bundle.js"></script>
</body>
</html>
"""


def _mock_playwright(page: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Return ``(sync_playwright factory, browser)`` wired to yield *page*.

    The started driver is reachable as ``factory.return_value.start.return_value``.
    """
    browser = MagicMock(name="browser")
    browser.new_page.return_value = page
    pw = MagicMock(name="playwright")
    pw.chromium.launch.return_value = browser
    factory = MagicMock(name="sync_playwright")
    factory.return_value.start.return_value = pw
    return factory, browser


# ---------------------------------------------------------------------------
# extract_visible_text
# ---------------------------------------------------------------------------

class TestExtractVisibleText:
    def test_lowercases_body_text(self) -> None:
        html = "<html><body><h1>Apply NOW</h1><p>Easy Financing</p></body></html>"
        text = extract_visible_text(html)
        assert "apply now" in text
        assert "easy financing" in text

    def test_strips_script_style_noscript(self) -> None:
        html = """\
<html><body>
  <script>var financing = 1;</script>
  <style>.credit{color:red}</style>
  <noscript>Enable JavaScript</noscript>
  <p>Real content here.</p>
</body></html>
"""
        text = extract_visible_text(html)
        assert "var financing" not in text
        assert "color" not in text
        assert "enable javascript" not in text
        assert "real content here." in text

    def test_ignores_head(self) -> None:
        html = "<html><head><title>Loan Title</title></head><body><p>Body</p></body></html>"
        text = extract_visible_text(html)
        assert "loan" not in text
        assert "body" in text

    def test_adjacent_elements_stay_separate_words(self) -> None:
        html = "<html><body><span>apply</span><span>now</span></body></html>"
        assert "apply now" in " ".join(extract_visible_text(html).split())

    def test_empty_document(self) -> None:
        assert extract_visible_text("").strip() == ""
        assert extract_visible_text("<html></html>").strip() == ""


# ---------------------------------------------------------------------------
# _fetch_simple error mapping
# ---------------------------------------------------------------------------

class TestFetchSimple:
    def test_returns_visible_text(self) -> None:
        with respx.mock:
            respx.get("https://shop.example.com/").mock(
                return_value=httpx.Response(200, text=_LONG_HTML)
            )
            text = _fetch_simple("https://shop.example.com/")
        assert "quality furniture" in text

    def test_sends_browser_user_agent(self) -> None:
        with respx.mock:
            route = respx.get("https://shop.example.com/").mock(
                return_value=httpx.Response(200, text=_LONG_HTML)
            )
            _fetch_simple("https://shop.example.com/")
        assert "Mozilla/5.0" in route.calls.last.request.headers["User-Agent"]

    def test_follows_redirects(self) -> None:
        with respx.mock:
            respx.get("https://old.example.com/").mock(
                return_value=httpx.Response(
                    301, headers={"Location": "https://new.example.com/"}
                )
            )
            respx.get("https://new.example.com/").mock(
                return_value=httpx.Response(200, text=_LONG_HTML)
            )
            text = _fetch_simple("https://old.example.com/")
        assert "quality furniture" in text

    @staticmethod
    def _mock_redirect_chain() -> None:
        # /r0 -> /r1 -> ... -> /r6, which finally answers 200.
        for hop in range(6):
            respx.get(f"https://hops.example.com/r{hop}").mock(
                return_value=httpx.Response(
                    302, headers={"Location": f"https://hops.example.com/r{hop + 1}"}
                )
            )
        respx.get("https://hops.example.com/r6").mock(
            return_value=httpx.Response(200, text=_LONG_HTML)
        )

    def test_five_redirects_are_followed(self) -> None:
        assert settings.max_redirects == 5
        with respx.mock:
            self._mock_redirect_chain()
            text = _fetch_simple("https://hops.example.com/r1")
        assert "quality furniture" in text

    def test_sixth_redirect_is_network_error(self) -> None:
        with respx.mock:
            self._mock_redirect_chain()
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://hops.example.com/r0")
        assert info.value.kind is FetchErrorKind.NETWORK
        assert isinstance(info.value.__cause__, httpx.TooManyRedirects)

    def test_403_is_blocked(self) -> None:
        with respx.mock:
            respx.get("https://example.com/").mock(return_value=httpx.Response(403))
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://example.com/")
        assert info.value.kind is FetchErrorKind.BLOCKED
        assert "Access denied" in str(info.value)

    def test_404_is_not_found(self) -> None:
        with respx.mock:
            respx.get("https://example.com/missing").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://example.com/missing")
        assert info.value.kind is FetchErrorKind.NOT_FOUND
        assert str(info.value) == "Website not found (404)"

    def test_other_status_is_network_error(self) -> None:
        with respx.mock:
            respx.get("https://example.com/").mock(return_value=httpx.Response(503))
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://example.com/")
        assert info.value.kind is FetchErrorKind.NETWORK
        assert "503" in info.value.detail
        assert str(info.value).startswith("Network error:")

    def test_connection_failure_is_unreachable(self) -> None:
        with respx.mock:
            respx.get("https://nope.invalid/").mock(
                side_effect=httpx.ConnectError("Name or service not known")
            )
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://nope.invalid/")
        assert info.value.kind is FetchErrorKind.UNREACHABLE
        assert isinstance(info.value.__cause__, httpx.ConnectError)

    def test_timeout_is_timeout(self) -> None:
        with respx.mock:
            respx.get("https://slow.example.com/").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            with pytest.raises(FetchError) as info:
                _fetch_simple("https://slow.example.com/")
        assert info.value.kind is FetchErrorKind.TIMEOUT


# ---------------------------------------------------------------------------
# fetch_url — simple vs rendered decision
# ---------------------------------------------------------------------------

class TestFetchUrl:
    def test_long_content_uses_simple_method(self) -> None:
        with respx.mock:
            respx.get("https://shop.example.com/").mock(
                return_value=httpx.Response(200, text=_LONG_HTML)
            )
            with patch("checker.scraper.fetcher._fetch_rendered") as mock_render:
                result = fetch_url("https://shop.example.com/")

        mock_render.assert_not_called()
        assert isinstance(result, FetchResult)
        assert result.method is FetchMethod.SIMPLE
        assert len(result.text) >= 1000

    def test_short_content_falls_back_to_rendering(self) -> None:
        with respx.mock:
            respx.get("https://spa.example.com/").mock(
                return_value=httpx.Response(200, text=_SPA_HTML)
            )
            with patch(
                "checker.scraper.fetcher._fetch_rendered",
                return_value="rendered text with financing",
            ) as mock_render:
                result = fetch_url("https://spa.example.com/")

        mock_render.assert_called_once_with("https://spa.example.com/")
        assert result.method is FetchMethod.RENDERED
        assert result.text == "rendered text with financing"

    def test_threshold_is_respected(self, monkeypatch) -> None:
        monkeypatch.setattr("checker.scraper.fetcher.settings.min_content_length", 10)
        html = "<html><body><p>just enough text</p></body></html>"
        with respx.mock:
            respx.get("https://small.example.com/").mock(
                return_value=httpx.Response(200, text=html)
            )
            with patch("checker.scraper.fetcher._fetch_rendered") as mock_render:
                result = fetch_url("https://small.example.com/")

        mock_render.assert_not_called()
        assert result.method is FetchMethod.SIMPLE

    @pytest.mark.parametrize(
        ("length", "method"),
        [(999, FetchMethod.RENDERED), (1000, FetchMethod.SIMPLE)],
    )
    def test_threshold_boundary(self, length: int, method: FetchMethod) -> None:
        assert settings.min_content_length == 1000
        html = "<html><body>" + "a" * length + "</body></html>"
        with respx.mock:
            respx.get("https://edge.example.com/").mock(
                return_value=httpx.Response(200, text=html)
            )
            with patch(
                "checker.scraper.fetcher._fetch_rendered", return_value="rendered"
            ):
                result = fetch_url("https://edge.example.com/")

        assert result.method is method

    def test_simple_failure_does_not_render(self) -> None:
        with respx.mock:
            respx.get("https://example.com/").mock(return_value=httpx.Response(404))
            with patch("checker.scraper.fetcher._fetch_rendered") as mock_render:
                with pytest.raises(FetchError):
                    fetch_url("https://example.com/")
        mock_render.assert_not_called()

    def test_render_failure_propagates(self) -> None:
        with respx.mock:
            respx.get("https://spa.example.com/").mock(
                return_value=httpx.Response(200, text=_SPA_HTML)
            )
            with patch(
                "checker.scraper.fetcher._fetch_rendered",
                side_effect=RenderError(RenderErrorKind.TIMEOUT, "30000ms exceeded"),
            ):
                with pytest.raises(FetchError) as info:
                    fetch_url("https://spa.example.com/")
        assert info.value.kind is FetchErrorKind.TIMEOUT


# ---------------------------------------------------------------------------
# _fetch_rendered — browser lifecycle
# ---------------------------------------------------------------------------

class TestFetchRendered:
    def test_returns_evaluated_text_and_closes_browser(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.return_value = "klarna checkout available"
        factory, browser = _mock_playwright(page)

        with patch("playwright.sync_api.sync_playwright", factory):
            text = _fetch_rendered("https://spa.example.com/")

        assert text == "klarna checkout available"
        browser.new_page.assert_called_once()
        assert "Mozilla/5.0" in browser.new_page.call_args.kwargs["user_agent"]
        goto_kwargs = page.goto.call_args.kwargs
        assert goto_kwargs["wait_until"] == "networkidle"
        assert goto_kwargs["timeout"] == 15000
        page.wait_for_timeout.assert_called_once_with(2000)
        browser.close.assert_called_once()

    def test_navigation_timeout_closes_browser(self) -> None:
        page = MagicMock(name="page")
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 15000ms exceeded")
        factory, browser = _mock_playwright(page)

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError) as info:
                _fetch_rendered("https://slow.example.com/")

        assert info.value.render_kind is RenderErrorKind.TIMEOUT
        assert info.value.kind is FetchErrorKind.TIMEOUT
        assert str(info.value) == "Website took too long to load"
        browser.close.assert_called_once()

    def test_navigation_error_is_network_error(self) -> None:
        page = MagicMock(name="page")
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        factory, browser = _mock_playwright(page)

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(FetchError) as info:
                _fetch_rendered("https://nope.invalid/")

        assert info.value.kind is FetchErrorKind.NETWORK
        assert str(info.value).startswith("Browser error:")
        browser.close.assert_called_once()

    def test_evaluation_failure_closes_browser(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")
        factory, browser = _mock_playwright(page)

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError) as info:
                _fetch_rendered("https://spa.example.com/")

        assert info.value.render_kind is RenderErrorKind.EVALUATION_FAILURE
        assert info.value.kind is FetchErrorKind.NETWORK
        browser.close.assert_called_once()

    def test_launch_failure(self) -> None:
        page = MagicMock(name="page")
        factory, browser = _mock_playwright(page)
        pw = factory.return_value.start.return_value
        pw.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError) as info:
                _fetch_rendered("https://spa.example.com/")

        assert info.value.render_kind is RenderErrorKind.LAUNCH_FAILURE
        browser.close.assert_not_called()

    def test_none_result_becomes_empty_string(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.return_value = None
        factory, _ = _mock_playwright(page)

        with patch("playwright.sync_api.sync_playwright", factory):
            assert _fetch_rendered("https://spa.example.com/") == ""

    def test_driver_start_failure(self) -> None:
        factory = MagicMock(name="sync_playwright")
        factory.return_value.start.side_effect = PlaywrightError("Driver crashed")

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError) as info:
                _fetch_rendered("https://spa.example.com/")

        assert info.value.render_kind is RenderErrorKind.LAUNCH_FAILURE
        assert isinstance(info.value.__cause__, PlaywrightError)

    def test_driver_is_stopped(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.return_value = "text"
        factory, _ = _mock_playwright(page)
        pw = factory.return_value.start.return_value

        with patch("playwright.sync_api.sync_playwright", factory):
            _fetch_rendered("https://spa.example.com/")

        pw.stop.assert_called_once()

    def test_close_failure_keeps_extracted_text(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.return_value = "affirm at checkout"
        factory, browser = _mock_playwright(page)
        browser.close.side_effect = PlaywrightError("Target closed")
        pw = factory.return_value.start.return_value

        with patch("playwright.sync_api.sync_playwright", factory):
            text = _fetch_rendered("https://spa.example.com/")

        assert text == "affirm at checkout"
        pw.stop.assert_called_once()

    def test_close_failure_does_not_mask_evaluation_error(self) -> None:
        page = MagicMock(name="page")
        page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")
        factory, browser = _mock_playwright(page)
        browser.close.side_effect = PlaywrightError("Target closed")
        factory.return_value.start.return_value.stop.side_effect = PlaywrightError(
            "Connection closed"
        )

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError) as info:
                _fetch_rendered("https://spa.example.com/")

        assert info.value.render_kind is RenderErrorKind.EVALUATION_FAILURE


# ---------------------------------------------------------------------------
# _fetch_rendered — concurrency cap
# ---------------------------------------------------------------------------

class TestRenderSlots:
    def test_waits_for_a_free_slot(self, monkeypatch) -> None:
        slots = threading.BoundedSemaphore(1)
        monkeypatch.setattr("checker.scraper.fetcher._RENDER_SLOTS", slots)
        page = MagicMock(name="page")
        page.evaluate.return_value = "rendered"
        factory, _ = _mock_playwright(page)
        results: list[str] = []

        slots.acquire()
        with patch("playwright.sync_api.sync_playwright", factory):
            worker = threading.Thread(
                target=lambda: results.append(_fetch_rendered("https://spa.example.com/"))
            )
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
            factory.assert_not_called()

            slots.release()
            worker.join(timeout=5)

        assert not worker.is_alive()
        assert results == ["rendered"]

    def test_slot_released_after_failure(self, monkeypatch) -> None:
        slots = threading.BoundedSemaphore(1)
        monkeypatch.setattr("checker.scraper.fetcher._RENDER_SLOTS", slots)
        page = MagicMock(name="page")
        factory, _ = _mock_playwright(page)
        pw = factory.return_value.start.return_value
        pw.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with patch("playwright.sync_api.sync_playwright", factory):
            with pytest.raises(RenderError):
                _fetch_rendered("https://spa.example.com/")

        pw.stop.assert_called_once()
        assert slots.acquire(blocking=False) is True
