"""Static serving of stored assets.

Routes
------
GET /assets/{path}    → file bytes with an image MIME type, cached forever
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from backend.storage.assets import content_type_for

router = APIRouter()

# Asset filenames carry a millisecond timestamp, so a name never changes content.
_CACHE_CONTROL = "public, max-age=31536000, immutable"


@router.get("/{path:path}")
def get_asset(path: str, request: Request) -> FileResponse:
    store = request.app.state.asset_store
    try:
        file_path = store.resolve(path)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail="Forbidden") from exc
    if file_path is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(
        file_path,
        media_type=content_type_for(file_path.name),
        headers={"Cache-Control": _CACHE_CONTROL},
    )
