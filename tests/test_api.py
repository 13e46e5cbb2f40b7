"""Tests for the /metadata and /assets API endpoints.

The TestClient lifespan builds its own extractor and asset store; each test
replaces them with ones backed by ``tmp_path`` and a stub extractor, so no
network or browser is involved.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.api.app import create_app
from backend.scraper.metadata import InvalidURLError
from backend.scraper.models import MetadataResult
from backend.storage.assets import LocalAssetStore


class _StubExtractor:
    def __init__(self, result: MetadataResult) -> None:
        self.result = result
        self.calls: list[str] = []

    def extract(self, url: str) -> MetadataResult:
        self.calls.append(url)
        if not url.strip().startswith(("http://", "https://")):
            raise InvalidURLError(f"Not an absolute http(s) URL: {url!r}")
        return self.result


@pytest.fixture()
def store(tmp_path) -> LocalAssetStore:
    return LocalAssetStore(tmp_path / "assets")


@pytest.fixture()
def extractor() -> _StubExtractor:
    return _StubExtractor(
        MetadataResult(
            title="Example Article",
            description=None,
            favicon_ref="/assets/example.com-1.ico",
            preview_image_ref="/assets/example.com-og-1.jpg",
        )
    )


@pytest.fixture()
def client(tmp_path, monkeypatch, store, extractor):
    monkeypatch.setattr("backend.config.settings.workspace_dir", tmp_path)
    app = create_app()
    with TestClient(app, raise_server_exceptions=True) as c:
        c.app.state.asset_store = store
        c.app.state.extractor = extractor
        yield c


class TestMetadataEndpoint:
    def test_returns_record(self, client, extractor) -> None:
        resp = client.get("/metadata", params={"url": "https://example.com/article"})

        assert resp.status_code == 200
        assert resp.json() == {
            "url": "https://example.com/article",
            "title": "Example Article",
            "description": None,
            "favicon": "/assets/example.com-1.ico",
            "og_image": "/assets/example.com-og-1.jpg",
        }
        assert extractor.calls == ["https://example.com/article"]

    def test_invalid_url_is_422(self, client) -> None:
        resp = client.get("/metadata", params={"url": "example.com"})
        assert resp.status_code == 422

    def test_missing_url_is_422(self, client) -> None:
        assert client.get("/metadata").status_code == 422


class TestAssetsEndpoint:
    def test_serves_stored_file(self, client, store) -> None:
        ref = store.store(b"\x89PNG data", "example.com-og-1.png")

        resp = client.get(ref)

        assert resp.status_code == 200
        assert resp.content == b"\x89PNG data"
        assert resp.headers["content-type"] == "image/png"
        assert "immutable" in resp.headers["cache-control"]

    def test_ico_mime_type(self, client, store) -> None:
        store.store(b"\x00\x00\x01\x00", "example.com-1.ico")
        resp = client.get("/assets/example.com-1.ico")
        assert resp.headers["content-type"] == "image/x-icon"

    def test_missing_file_is_404(self, client, store) -> None:
        store.root.mkdir(parents=True, exist_ok=True)
        assert client.get("/assets/nothing.png").status_code == 404

    def test_traversal_is_403(self, client, store, tmp_path) -> None:
        store.root.mkdir(parents=True, exist_ok=True)
        (tmp_path / "secret.txt").write_text("s")
        resp = client.get("/assets/..%2Fsecret.txt")
        assert resp.status_code == 403
