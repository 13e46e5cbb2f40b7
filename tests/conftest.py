"""Shared fixtures for the metadata pipeline tests.

- ``respx`` mocks httpx at the transport layer; no real network calls.
- Playwright is never launched: resolvers get a ``StubBrowser``.
- Assets are written to a per-test ``tmp_path`` directory.
"""

from __future__ import annotations

from typing import Iterator

import httpx
import pytest
import respx

from backend.config import Settings
from backend.scraper.context import ExtractionContext
from backend.storage.assets import LocalAssetStore
from helpers import StubBrowser


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(workspace_dir=tmp_path)


@pytest.fixture()
def store(settings) -> LocalAssetStore:
    return LocalAssetStore(settings.assets_dir)


@pytest.fixture()
def browser() -> StubBrowser:
    return StubBrowser()


@pytest.fixture()
def http() -> Iterator[respx.Router]:
    """Active respx router; routes that are never hit do not fail the test."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def ctx(settings, store, browser) -> Iterator[ExtractionContext]:
    with httpx.Client(follow_redirects=True) as client:
        yield ExtractionContext(client=client, settings=settings, store=store, browser=browser)
