"""Favicon resolution: first downloadable icon among the page's declared
icons and the conventional ``/favicon.ico``, stored locally."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import List, Optional
from urllib.parse import urlparse

from backend.scraper.context import ExtractionContext, timestamp_ms
from backend.scraper.fallback import first_success
from backend.scraper.fetcher import fetch
from backend.scraper.models import FetchFailure
from backend.scraper.parser import Document, absolute_url

logger = logging.getLogger(__name__)

_LINK_RELS = ("icon", "shortcut icon", "apple-touch-icon")
_DEFAULT_EXT = "ico"


def favicon_candidates(base_url: str, document: Optional[Document]) -> List[str]:
    """Absolute candidate URLs in the order they are tried."""
    hrefs: List[str] = []
    if document is not None:
        for rel in _LINK_RELS:
            href = document.link_href(rel)
            if href:
                hrefs.append(href)
    hrefs.append("/favicon.ico")
    resolved = (absolute_url(base_url, href) for href in hrefs)
    return [url for url in resolved if url]


def icon_extension(icon_url: str) -> str:
    """Extension from the URL path (``.png`` -> ``png``), default ``ico``."""
    suffix = PurePosixPath(urlparse(icon_url).path).suffix.lstrip(".").lower()
    if suffix and suffix.isalnum() and len(suffix) <= 5:
        return suffix
    return _DEFAULT_EXT


def resolve_favicon(
    ctx: ExtractionContext, base_url: str, document: Optional[Document]
) -> Optional[str]:
    """Download and store the site's favicon.

    Returns:
        The asset-store reference, or ``None`` when every candidate failed.
    """
    hostname = urlparse(base_url).hostname or "site"

    def attempt(icon_url: str) -> Optional[str]:
        outcome = fetch(ctx.client, icon_url, ctx.settings.favicon_timeout)
        if isinstance(outcome, FetchFailure):
            logger.debug("Favicon candidate %s failed: %s", icon_url, outcome.reason.value)
            return None
        if not outcome.content:
            logger.debug("Favicon candidate %s returned an empty body", icon_url)
            return None
        filename = f"{hostname}-{timestamp_ms()}.{icon_extension(icon_url)}"
        return ctx.store.store(outcome.content, filename)

    ref = first_success(favicon_candidates(base_url, document), attempt)
    if ref is None:
        logger.info("No favicon found for %s", base_url)
    return ref
