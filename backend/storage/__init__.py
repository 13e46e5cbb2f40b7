"""Asset storage package."""

from backend.storage.assets import AssetStore, LocalAssetStore, content_type_for

__all__ = ["AssetStore", "LocalAssetStore", "content_type_for"]
