"""Tests for the headless browser fetcher.

Playwright is *not* launched: ``sync_playwright`` is patched with a
``MagicMock`` tree (playwright → chromium → browser → context → page) so the
tests can assert on launch options, navigation and, above all, that the
browser is closed on every exit path.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from backend.scraper.browser import BrowserFetcher


def _fake_playwright(goto_error: Exception | None = None):
    page = MagicMock(name="page")
    page.content.return_value = "<html><head><title>Rendered</title></head></html>"
    page.screenshot.return_value = b"\x89PNG fake"
    if goto_error is not None:
        page.goto.side_effect = goto_error

    context = MagicMock(name="context")
    context.new_page.return_value = page
    browser = MagicMock(name="browser")
    browser.new_context.return_value = context
    pw = MagicMock(name="playwright")
    pw.chromium.launch.return_value = browser

    manager = MagicMock(name="sync_playwright()")
    manager.__enter__.return_value = pw
    manager.__exit__.return_value = False
    return manager, pw, browser, context, page


@pytest.fixture()
def fetcher(settings) -> BrowserFetcher:
    return BrowserFetcher(settings)


class TestRender:
    def test_returns_rendered_html_and_closes(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            html = fetcher.render("https://blocked.example.com/")

        assert "Rendered" in html
        browser.close.assert_called_once()

    def test_launch_and_context_are_masked(self, fetcher, settings) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            fetcher.render("https://blocked.example.com/")

        launch_kwargs = pw.chromium.launch.call_args.kwargs
        assert launch_kwargs["headless"] is True
        assert "--disable-blink-features=AutomationControlled" in launch_kwargs["args"]

        ctx_kwargs = browser.new_context.call_args.kwargs
        assert ctx_kwargs["locale"] == settings.browser_locale
        assert ctx_kwargs["timezone_id"] == settings.browser_timezone
        assert ctx_kwargs["viewport"] == {
            "width": settings.browser_viewport_width,
            "height": settings.browser_viewport_height,
        }
        script = context.add_init_script.call_args.args[0]
        assert "webdriver" in script

    def test_navigates_to_dom_ready_with_timeout(self, fetcher, settings) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            fetcher.render("https://blocked.example.com/")

        page.goto.assert_called_once_with(
            "https://blocked.example.com/",
            timeout=int(settings.browser_timeout * 1000),
            wait_until="domcontentloaded",
        )

    def test_human_like_interaction(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            fetcher.render("https://blocked.example.com/")

        page.mouse.move.assert_called_once()
        page.mouse.wheel.assert_called_once()
        page.evaluate.assert_called_with("window.scrollTo(0, 0)")

    def test_navigation_timeout_returns_none_and_closes(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright(
            goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded")
        )
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            assert fetcher.render("https://slow.example.com/") is None

        browser.close.assert_called_once()

    def test_launch_failure_returns_none(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        pw.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            assert fetcher.render("https://example.com/") is None

    def test_unexpected_error_still_closes_browser(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        page.content.side_effect = RuntimeError("boom")
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            with pytest.raises(RuntimeError):
                fetcher.render("https://example.com/")

        browser.close.assert_called_once()


class TestScreenshot:
    def test_viewport_png(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright()
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            png = fetcher.screenshot("https://example.com/")

        assert png == b"\x89PNG fake"
        page.screenshot.assert_called_once_with(type="png", full_page=False)
        browser.close.assert_called_once()

    def test_failure_returns_none_and_closes(self, fetcher) -> None:
        manager, pw, browser, context, page = _fake_playwright(
            goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        )
        with patch("backend.scraper.browser.sync_playwright", return_value=manager):
            assert fetcher.screenshot("https://nowhere.invalid/") is None

        browser.close.assert_called_once()
