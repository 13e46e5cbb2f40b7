"""Headless Chromium fallback for pages that block plain HTTP clients.

Used in two places:

- :meth:`BrowserFetcher.render` when the direct fetch is answered with 403.
- :meth:`BrowserFetcher.screenshot` as the last preview-image strategy.

Each call launches its own browser and closes it in a ``finally`` block, so a
navigation timeout or a crashed page never leaves a Chromium process behind.
"""

from __future__ import annotations

import logging
import random
from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from backend.config import Settings

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-first-run",
    "--no-default-browser-check",
]

# Runs before any page script on every navigation in the context.
_STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = window.chrome || { runtime: {} };
const _origQuery = window.navigator.permissions && window.navigator.permissions.query;
if (_origQuery) {
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications'
            ? Promise.resolve({ state: Notification.permission })
            : _origQuery(parameters)
    );
}
"""


class BrowserFetcher:
    """Disposable-browser renderer configured from :class:`Settings`."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, url: str) -> Optional[str]:
        """Return the rendered HTML of *url*, or ``None`` if the browser failed."""
        try:
            with self._open_page(url) as page:
                return page.content()
        except PlaywrightError as exc:
            logger.warning("Browser render failed for %s: %s", url, exc)
            return None

    def screenshot(self, url: str) -> Optional[bytes]:
        """Return a PNG of the visible viewport of *url*, or ``None``."""
        try:
            with self._open_page(url) as page:
                return page.screenshot(type="png", full_page=False)
        except PlaywrightError as exc:
            logger.warning("Browser screenshot failed for %s: %s", url, exc)
            return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _open_page(self, url: str) -> Iterator[Page]:
        s = self.settings
        viewport = {"width": s.browser_viewport_width, "height": s.browser_viewport_height}

        with sync_playwright() as pw:
            browser = pw.chromium.launch(headless=s.browser_headless, args=_LAUNCH_ARGS)
            try:
                context = browser.new_context(
                    user_agent=s.user_agent,
                    viewport=viewport,
                    locale=s.browser_locale,
                    timezone_id=s.browser_timezone,
                    java_script_enabled=True,
                    is_mobile=False,
                    has_touch=False,
                    extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
                )
                context.add_init_script(_STEALTH_SCRIPT)
                page = context.new_page()
                logger.debug("Browser navigating to %s", url)
                # Many sites never reach network idle; DOM construction is enough.
                page.goto(
                    url,
                    timeout=int(s.browser_timeout * 1000),
                    wait_until="domcontentloaded",
                )
                _act_like_a_reader(page, viewport["width"], viewport["height"])
                yield page
            finally:
                browser.close()


def _act_like_a_reader(page: Page, width: int, height: int) -> None:
    """Move the pointer, scroll down, pause, then return to the top."""
    page.mouse.move(width * random.uniform(0.3, 0.6), height * random.uniform(0.3, 0.6), steps=10)
    page.mouse.wheel(0, random.randint(height // 2, height))
    page.wait_for_timeout(random.randint(600, 1500))
    page.evaluate("window.scrollTo(0, 0)")
    page.wait_for_timeout(random.randint(200, 500))
