"""Preview-image resolution.

Three strategies, each tried only when the previous one produced nothing:

1. Social meta tags (Open Graph, Twitter cards, schema.org ``itemprop``).
2. Large inline ``<img>`` elements that do not look like icons or logos.
3. A viewport screenshot taken by the headless browser.

Every remote image goes through :func:`download_image`, which enforces the
content-type and minimum-size rules and stores the bytes locally, so the
result is always an asset reference and never the remote URL.
"""

from __future__ import annotations

import logging
from typing import Callable, Container, Iterator, List, Optional, Set
from urllib.parse import urlparse

from bs4 import Tag

from backend.scraper.context import ExtractionContext, timestamp_ms
from backend.scraper.fallback import first_success
from backend.scraper.fetcher import IMAGE_HEADERS, fetch
from backend.scraper.models import (
    FailureReason,
    FetchFailure,
    FetchOutcome,
)
from backend.scraper.parser import Document, absolute_url

logger = logging.getLogger(__name__)

_META_IMAGE_SELECTORS = (
    'meta[property="og:image"]',
    'meta[property="og:image:url"]',
    'meta[name="twitter:image"]',
    'meta[name="twitter:image:src"]',
    'meta[property="twitter:image"]',
    '[itemprop="image"]',
)

_NON_CONTENT_HINTS = ("icon", "logo", "button", "avatar")

_EXTENSIONS = {
    "jpeg": "jpg",
    "png": "png",
    "webp": "webp",
    "gif": "gif",
    "svg+xml": "svg",
}


# ---------------------------------------------------------------------------
# Shared download rule
# ---------------------------------------------------------------------------

def image_extension(content_type: str) -> str:
    """``image/jpeg`` -> ``jpg``, ``image/svg+xml`` -> ``svg``; default ``jpg``."""
    subtype = content_type.split(";", 1)[0].strip().lower().partition("/")[2]
    return _EXTENSIONS.get(subtype, "jpg")


def validate_image(outcome: FetchOutcome, min_bytes: int) -> FetchOutcome:
    """Turn a successful fetch into a failure unless it looks like a real image."""
    if isinstance(outcome, FetchFailure):
        return outcome
    if not outcome.content_type.strip().lower().startswith("image/"):
        return FetchFailure(
            url=outcome.url,
            reason=FailureReason.WRONG_CONTENT_TYPE,
            status_code=outcome.status_code,
            detail=outcome.content_type or "missing content-type",
        )
    if len(outcome.content) < min_bytes:
        return FetchFailure(
            url=outcome.url,
            reason=FailureReason.TOO_SMALL,
            status_code=outcome.status_code,
            detail=f"{len(outcome.content)} bytes",
        )
    return outcome


def download_image(ctx: ExtractionContext, image_url: str, hostname: str) -> Optional[str]:
    """Fetch *image_url*, validate it and store it as ``{hostname}-og-{ts}.{ext}``.

    Returns:
        The asset reference, or ``None`` if the image was rejected.
    """
    outcome = validate_image(
        fetch(ctx.client, image_url, ctx.settings.image_timeout, headers=IMAGE_HEADERS),
        ctx.settings.min_image_bytes,
    )
    if isinstance(outcome, FetchFailure):
        logger.debug(
            "Image %s rejected: %s %s", image_url, outcome.reason.value, outcome.detail
        )
        return None

    filename = f"{hostname}-og-{timestamp_ms()}.{image_extension(outcome.content_type)}"
    return ctx.store.store(outcome.content, filename)


# ---------------------------------------------------------------------------
# Candidate producers
# ---------------------------------------------------------------------------

def meta_image_candidates(base_url: str, document: Document) -> Iterator[str]:
    """Distinct absolute image URLs declared in meta tags, in priority order."""
    seen: Set[str] = set()
    for selector in _META_IMAGE_SELECTORS:
        for tag in document.select(selector):
            raw = _first_attr(tag, ("content", "href", "src"))
            if raw:
                url = absolute_url(base_url, raw)
                if url and url not in seen:
                    seen.add(url)
                    yield url
                break


def _first_attr(tag: Tag, names: tuple) -> Optional[str]:
    for name in names:
        value = tag.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _declared_pixels(value: object) -> Optional[int]:
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if text.endswith("px"):
        text = text[:-2]
    try:
        return int(float(text))
    except ValueError:
        return None


def inline_image_candidates(
    base_url: str,
    document: Document,
    min_dimension: int,
    limit: int,
    exclude: Container[str] = (),
) -> List[str]:
    """Up to *limit* distinct absolute ``<img>`` URLs that look like content images.

    An image is skipped when its ``src`` mentions icon/logo/button/avatar, or
    when it declares both ``width`` and ``height`` and either is below
    *min_dimension*.  URLs in *exclude* (already tried) are skipped too.
    """
    urls: List[str] = []
    for tag in document.images():
        src = tag.get("src", "").strip()
        lowered = src.lower()
        if any(hint in lowered for hint in _NON_CONTENT_HINTS):
            continue

        width = _declared_pixels(tag.get("width"))
        height = _declared_pixels(tag.get("height"))
        if width is not None and height is not None:
            if width < min_dimension or height < min_dimension:
                continue

        url = absolute_url(base_url, src)
        if url and url not in urls and url not in exclude:
            urls.append(url)
        if len(urls) >= limit:
            break
    return urls


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def resolve_preview_image(
    ctx: ExtractionContext, base_url: str, document: Document
) -> Optional[str]:
    """Return an asset reference for the page's preview image, or ``None``.

    Each remote URL is downloaded at most once, even when several meta tags
    and an inline ``<img>`` all point at it.
    """
    hostname = urlparse(base_url).hostname or "site"
    attempted: Set[str] = set()

    def download(url: str) -> Optional[str]:
        attempted.add(url)
        return download_image(ctx, url, hostname)

    def from_meta_tags() -> Optional[str]:
        return first_success(meta_image_candidates(base_url, document), download)

    def from_inline_images() -> Optional[str]:
        candidates = inline_image_candidates(
            base_url,
            document,
            ctx.settings.min_image_dimension,
            ctx.settings.max_inline_images,
            exclude=attempted,
        )
        return first_success(candidates, download)

    def from_screenshot() -> Optional[str]:
        logger.info("No usable preview image on %s, taking a screenshot", base_url)
        png = ctx.browser.screenshot(base_url)
        if not png:
            return None
        return ctx.store.store(png, f"{hostname}-screenshot-{timestamp_ms()}.png")

    strategies: List[Callable[[], Optional[str]]] = [
        from_meta_tags,
        from_inline_images,
        from_screenshot,
    ]
    return first_success(strategies, lambda strategy: strategy())
