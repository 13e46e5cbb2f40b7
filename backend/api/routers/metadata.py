"""Metadata endpoint.

Routes
------
GET /metadata?url=https://...    → extract_metadata
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from backend.scraper.metadata import InvalidURLError

router = APIRouter()
logger = logging.getLogger(__name__)


class MetadataResponse(BaseModel):
    url: str
    title: str
    description: Optional[str] = None
    favicon: Optional[str] = None
    og_image: Optional[str] = None


@router.get("", response_model=MetadataResponse)
def get_metadata(
    request: Request,
    url: str = Query(..., description="Absolute http(s) URL to describe."),
) -> dict:
    """Fetch the page and return its bookmark metadata.

    Extraction never fails for reachable-or-not pages; the response may just
    be sparse.  Only a malformed URL is rejected, with 422.

    Declared as a plain ``def`` so FastAPI runs it in its worker thread pool,
    where the synchronous Playwright API is allowed.
    """
    extractor = request.app.state.extractor
    try:
        result = extractor.extract(url)
    except InvalidURLError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.info("Metadata for %s: %s", url, result)
    return {"url": url.strip(), **result.to_dict()}
