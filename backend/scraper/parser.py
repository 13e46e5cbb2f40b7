"""HTML parsing: turns raw markup into a queryable :class:`Document`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """Thin wrapper over a :class:`BeautifulSoup` tree with the lookups the
    resolvers need.  All helpers return ``None`` instead of empty strings."""

    soup: BeautifulSoup

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def meta_content(self, selector: str) -> Optional[str]:
        """Return the stripped ``content`` of the first match, if non-empty."""
        for tag in self.soup.select(selector):
            value = _attr(tag, "content")
            if value:
                return value
        return None

    def title_text(self) -> Optional[str]:
        tag = self.soup.find("title")
        if tag is None:
            return None
        return tag.get_text(strip=True) or None

    def link_href(self, rel: str) -> Optional[str]:
        """Return the href of the first ``<link>`` whose rel tokens are exactly
        those of *rel*, in any order and case."""
        wanted = set(rel.lower().split())
        for tag in self.soup.find_all("link", href=True):
            tokens = tag.get("rel") or []
            if isinstance(tokens, str):
                tokens = tokens.split()
            if {t.lower() for t in tokens} == wanted:
                href = _attr(tag, "href")
                if href:
                    return href
        return None

    def images(self) -> List[Tag]:
        """All ``<img>`` elements that carry a non-empty ``src``."""
        return [tag for tag in self.soup.find_all("img") if _attr(tag, "src")]


def _attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    return value.strip() or None


def absolute_url(base_url: str, href: str) -> Optional[str]:
    """Resolve *href* against *base_url*; ``None`` unless the result is http(s)."""
    try:
        resolved = urljoin(base_url, href.strip())
    except ValueError:
        return None
    if urlparse(resolved).scheme not in ("http", "https"):
        return None
    return resolved


def parse_html(html: Union[str, bytes], encoding: Optional[str] = None) -> Document:
    """Parse *html* into a :class:`Document`.

    Raw bytes are decoded by BeautifulSoup: *encoding* (the charset from the
    ``Content-Type`` header) wins when given, otherwise a BOM or a
    ``<meta charset>`` in the markup decides.

    ``html.parser`` builds a best-effort tree from broken markup; if it still
    gives up, an empty document is returned so extraction degrades to the
    hostname fallbacks instead of failing.
    """
    kwargs = {}
    if isinstance(html, bytes) and html and encoding:
        kwargs["from_encoding"] = encoding
    try:
        soup = BeautifulSoup(html or "", "html.parser", **kwargs)
    except Exception:
        logger.warning("Unparseable HTML, continuing with an empty document", exc_info=True)
        soup = BeautifulSoup("", "html.parser")
    return Document(soup=soup)
