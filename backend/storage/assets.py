"""Asset storage for downloaded favicons, preview images and screenshots.

The metadata pipeline only needs one capability from storage::

    ref = store.store(data, filename)

and treats the returned reference as opaque.  :class:`LocalAssetStore` writes
files into a directory and returns ``/assets/<filename>`` style references,
which the ``/assets`` route resolves back to files via :meth:`resolve`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

_MIME_TYPES = {
    "ico": "image/x-icon",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
}


class AssetStore(Protocol):
    def store(self, data: bytes, filename: str) -> str:
        """Persist *data* under *filename* and return a retrievable reference."""
        ...


def content_type_for(filename: str) -> str:
    """Return the MIME type to serve *filename* with, by extension."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return _MIME_TYPES.get(ext, "application/octet-stream")


class LocalAssetStore:
    """Filesystem-backed :class:`AssetStore`.

    Args:
        root: Directory the files are written to.  Created on first write.
        url_prefix: Prefix of the returned references.
    """

    def __init__(self, root: Path, url_prefix: str = "/assets") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def store(self, data: bytes, filename: str) -> str:
        name = Path(filename).name
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid asset filename: {filename!r}")
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(data)
        return f"{self.url_prefix}/{name}"

    def resolve(self, relative: str) -> Optional[Path]:
        """Map a path below the asset root to a file, or ``None``.

        Raises:
            PermissionError: If *relative* escapes the asset directory.
        """
        root = self.root.resolve()
        candidate = (root / relative).resolve()
        if candidate != root and root not in candidate.parents:
            raise PermissionError(relative)
        if not candidate.is_file():
            return None
        return candidate
