"""YouTube metadata via the public oEmbed endpoint and the thumbnail CDN.

YouTube pages are heavy, consent-walled and rarely carry useful meta tags for
plain HTTP clients, so video URLs skip generic extraction entirely when the
oEmbed call succeeds.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from backend.scraper.context import ExtractionContext
from backend.scraper.fallback import first_success
from backend.scraper.favicon import resolve_favicon
from backend.scraper.fetcher import fetch
from backend.scraper.images import download_image
from backend.scraper.models import FetchFailure, MetadataResult

logger = logging.getLogger(__name__)

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
THUMBNAIL_TEMPLATE = "https://i.ytimg.com/vi/{video_id}/{variant}.jpg"
_THUMBNAIL_VARIANTS = ("maxresdefault", "hqdefault")

_SHORT_HOST = "youtu.be"
_MAIN_HOST = "youtube.com"


def is_youtube_host(hostname: Optional[str]) -> bool:
    """``youtube.com`` and its subdomains, or the ``youtu.be`` short links."""
    if not hostname:
        return False
    host = hostname.lower()
    return host in (_MAIN_HOST, _SHORT_HOST) or host.endswith("." + _MAIN_HOST)


def video_id_from_url(url: str) -> Optional[str]:
    """Return the video id: ``?v=`` on youtube.com, first path segment on youtu.be."""
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host == _SHORT_HOST:
        segment = parsed.path.lstrip("/").split("/", 1)[0]
        return segment or None
    values = parse_qs(parsed.query).get("v")
    if values and values[0].strip():
        return values[0].strip()
    return None


def thumbnail_candidates(video_id: Optional[str], vendor_thumbnail: Optional[str]) -> List[str]:
    urls: List[str] = []
    if video_id:
        urls.extend(
            THUMBNAIL_TEMPLATE.format(video_id=video_id, variant=variant)
            for variant in _THUMBNAIL_VARIANTS
        )
        if vendor_thumbnail:
            urls.append(vendor_thumbnail)
    return urls


def resolve_youtube(ctx: ExtractionContext, url: str) -> Optional[MetadataResult]:
    """Build a :class:`MetadataResult` for a YouTube URL.

    Returns:
        ``None`` when the oEmbed call fails, telling the orchestrator to fall
        back to generic extraction.  Otherwise a result whose title and
        description come from oEmbed, independent of whether a thumbnail
        could be stored.
    """
    hostname = urlparse(url).hostname or _MAIN_HOST
    oembed_url = f"{OEMBED_ENDPOINT}?{urlencode({'url': url, 'format': 'json'})}"

    outcome = fetch(ctx.client, oembed_url, ctx.settings.oembed_timeout)
    if isinstance(outcome, FetchFailure):
        logger.info(
            "YouTube oEmbed failed for %s (%s), using generic extraction",
            url,
            outcome.status_code or outcome.reason.value,
        )
        return None

    try:
        data = json.loads(outcome.text)
    except ValueError:
        logger.info("YouTube oEmbed returned invalid JSON for %s", url)
        return None
    if not isinstance(data, dict):
        return None

    title = _clean(data.get("title")) or hostname
    author = _clean(data.get("author_name"))
    description = f"By {author}" if author else None

    candidates = thumbnail_candidates(video_id_from_url(url), _clean(data.get("thumbnail_url")))
    preview_ref = first_success(
        candidates, lambda thumb: download_image(ctx, thumb, hostname)
    )
    favicon_ref = resolve_favicon(ctx, url, None)

    return MetadataResult(
        title=title,
        description=description,
        favicon_ref=favicon_ref,
        preview_image_ref=preview_ref,
    )


def _clean(value: object) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None
