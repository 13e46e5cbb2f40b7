"""Scraper package — page metadata extraction for bookmarks."""

from backend.scraper.metadata import (
    InvalidURLError,
    MetadataExtractor,
    extract_metadata,
)
from backend.scraper.models import FailureReason, FetchFailure, MetadataResult

__all__ = [
    "extract_metadata",
    "MetadataExtractor",
    "MetadataResult",
    "InvalidURLError",
    "FetchFailure",
    "FailureReason",
]
