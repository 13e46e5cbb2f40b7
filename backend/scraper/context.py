"""Per-call collaborators shared by the resolvers of one extraction."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from backend.config import Settings
from backend.storage.assets import AssetStore

if TYPE_CHECKING:
    from backend.scraper.browser import BrowserFetcher


@dataclass
class ExtractionContext:
    """Everything a resolver needs besides the URL it works on.

    One instance lives for exactly one :func:`extract_metadata` call; nothing
    in it is shared between concurrent extractions.
    """

    client: httpx.Client
    settings: Settings
    store: AssetStore
    browser: "BrowserFetcher"


def timestamp_ms() -> int:
    """Millisecond wall-clock stamp used to namespace stored asset filenames."""
    return int(time.time() * 1000)
