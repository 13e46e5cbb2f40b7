"""Metadata orchestrator: URL in, :class:`MetadataResult` out, never raising.

Flow for one call::

    validate URL
      └─ YouTube host?  ── oEmbed ok ──────────────────────────────► result
      └─ direct fetch
           ├─ 2xx ─────────────────────────────► parse ─► extract fields ─► result
           ├─ 403 ─► headless render ─ ok ─────► parse ─► extract fields ─► result
           │                         └ fail ──► minimal result
           └─ timeout / network / other status ─► minimal result

The minimal result is ``MetadataResult(title=<hostname>)``.  Favicon and
preview-image failures only blank their own field.  The one exception that
escapes is :class:`InvalidURLError`, raised before any network activity.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, TypeVar
from urllib.parse import urlparse

from backend.config import Settings
from backend.config import settings as default_settings
from backend.scraper.browser import BrowserFetcher
from backend.scraper.context import ExtractionContext
from backend.scraper.favicon import resolve_favicon
from backend.scraper.fetcher import fetch, new_client
from backend.scraper.images import resolve_preview_image
from backend.scraper.models import FetchFailure, MetadataResult
from backend.scraper.parser import Document, parse_html
from backend.scraper.youtube import is_youtube_host, resolve_youtube
from backend.storage.assets import AssetStore, LocalAssetStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidURLError(ValueError):
    """The input is not an absolute http(s) URL."""


def normalize_url(url: str) -> str:
    """Strip whitespace and check *url* is absolute http(s) with a host.

    Raises:
        InvalidURLError: For anything else.
    """
    if not isinstance(url, str):
        raise InvalidURLError(f"URL must be a string, got {type(url).__name__}")
    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidURLError(f"Malformed URL: {url!r}") from exc
    if parsed.scheme not in ("http", "https") or not hostname:
        raise InvalidURLError(f"Not an absolute http(s) URL: {url!r}")
    return candidate


class MetadataExtractor:
    """Runs the extraction pipeline with explicitly supplied collaborators.

    Args:
        settings: Timeouts and heuristics.  Defaults to the module singleton.
        store: Where favicons and preview images are written.  Defaults to a
            :class:`LocalAssetStore` under ``settings.assets_dir``.
        browser: Headless fallback.  Defaults to a :class:`BrowserFetcher`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[AssetStore] = None,
        browser: Optional[BrowserFetcher] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.store = store or LocalAssetStore(
            self.settings.assets_dir, self.settings.assets_url_prefix
        )
        self.browser = browser or BrowserFetcher(self.settings)

    def extract(self, url: str) -> MetadataResult:
        """Return the best metadata available for *url*.

        Raises:
            InvalidURLError: If *url* is not an absolute http(s) URL.
        """
        url = normalize_url(url)
        hostname = urlparse(url).hostname or url
        logger.info("Extracting metadata for %s", url)

        try:
            with new_client(self.settings.user_agent) as client:
                ctx = ExtractionContext(
                    client=client,
                    settings=self.settings,
                    store=self.store,
                    browser=self.browser,
                )
                return self._run(ctx, url, hostname)
        except Exception:
            logger.exception("Metadata extraction crashed for %s", url)
            return MetadataResult(title=hostname)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _run(self, ctx: ExtractionContext, url: str, hostname: str) -> MetadataResult:
        if is_youtube_host(hostname):
            result = _guarded(lambda: resolve_youtube(ctx, url), "YouTube oEmbed", url)
            if result is not None:
                return result

        document, base_url = self._load_document(ctx, url)
        if document is None:
            return MetadataResult(title=hostname)

        return self._extract_fields(ctx, base_url, hostname, document)

    def _load_document(
        self, ctx: ExtractionContext, url: str
    ) -> Tuple[Optional[Document], str]:
        """Return ``(document, base_url)``; ``document`` is ``None`` when the page is out of reach."""
        outcome = fetch(ctx.client, url, self.settings.page_timeout)
        if not isinstance(outcome, FetchFailure):
            return parse_html(outcome.content, outcome.encoding), outcome.url

        if outcome.blocked:
            logger.info("Direct fetch of %s blocked (403), escalating to browser", url)
            html = ctx.browser.render(url)
            if html:
                return parse_html(html), url
            logger.info("Browser render of %s failed, returning minimal metadata", url)
            return None, url

        logger.info(
            "Direct fetch of %s failed (%s), returning minimal metadata",
            url,
            outcome.status_code or outcome.reason.value,
        )
        return None, url

    def _extract_fields(
        self, ctx: ExtractionContext, base_url: str, hostname: str, document: Document
    ) -> MetadataResult:
        title = (
            document.meta_content('meta[property="og:title"]')
            or document.title_text()
            or hostname
        )
        description = document.meta_content(
            'meta[property="og:description"]'
        ) or document.meta_content('meta[name="description" i]')

        preview_ref = _guarded(
            lambda: resolve_preview_image(ctx, base_url, document), "Preview image", base_url
        )
        favicon_ref = _guarded(
            lambda: resolve_favicon(ctx, base_url, document), "Favicon", base_url
        )

        return MetadataResult(
            title=title,
            description=description,
            favicon_ref=favicon_ref,
            preview_image_ref=preview_ref,
        )


def _guarded(step: Callable[[], Optional[T]], label: str, url: str) -> Optional[T]:
    """Run one optional stage; any exception only costs that stage's field."""
    try:
        return step()
    except Exception:
        logger.warning("%s resolution failed for %s", label, url, exc_info=True)
        return None


def extract_metadata(
    url: str,
    *,
    settings: Optional[Settings] = None,
    store: Optional[AssetStore] = None,
    browser: Optional[BrowserFetcher] = None,
) -> MetadataResult:
    """Convenience wrapper around :meth:`MetadataExtractor.extract`."""
    return MetadataExtractor(settings=settings, store=store, browser=browser).extract(url)
