"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, makes sure the asset directory
exists, and builds a single :class:`MetadataExtractor` (shared across all
requests via ``request.app.state.extractor``).  The extractor holds only
configuration; every request gets its own HTTP client and browser.

Routers
-------
    /metadata  — metadata extraction for a URL
    /assets    — stored favicons, preview images and screenshots
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.logging_config import configure_logging
from backend.scraper.metadata import MetadataExtractor
from backend.storage.assets import LocalAssetStore

from backend.api.routers import assets as assets_router
from backend.api.routers import metadata as metadata_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepare logging, storage and the extractor on startup."""
    configure_logging(settings.log_format, settings.log_level)
    settings.ensure_workspace()
    store = LocalAssetStore(settings.assets_dir, settings.assets_url_prefix)
    app.state.asset_store = store
    app.state.extractor = MetadataExtractor(settings=settings, store=store)
    yield


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="QuickMark API",
        description=(
            "Bookmark metadata extraction: title, description, favicon and "
            "preview image for any URL, with locally stored image assets."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # The browser extension and bookmarklet call from arbitrary origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(metadata_router.router, prefix="/metadata", tags=["metadata"])
    app.include_router(assets_router.router, prefix="/assets", tags=["assets"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
