"""Data models for the metadata pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class FailureReason(str, Enum):
    """Why a single fetch attempt did not produce a usable payload."""

    TIMEOUT = "timeout"
    NON_2XX = "non-2xx"
    WRONG_CONTENT_TYPE = "wrong-content-type"
    TOO_SMALL = "too-small"
    NETWORK_ERROR = "network-error"


@dataclass(frozen=True)
class FetchedResource:
    """A successful (2xx) response body, fully read."""

    url: str
    status_code: int
    content: bytes
    content_type: str = ""
    encoding: Optional[str] = None  # charset from the Content-Type header, if any

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            # unknown charset label
            return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class FetchFailure:
    """A failed fetch attempt.  Never raised; returned in place of a payload."""

    url: str
    reason: FailureReason
    status_code: Optional[int] = None
    detail: str = ""

    @property
    def blocked(self) -> bool:
        """``True`` for HTTP 403, the signal to escalate to a real browser."""
        return self.reason is FailureReason.NON_2XX and self.status_code == 403


FetchOutcome = Union[FetchedResource, FetchFailure]


@dataclass(frozen=True)
class MetadataResult:
    """Best-effort metadata for one bookmarked URL.

    ``title`` is always a non-empty string.  The other fields are either a
    non-empty string or ``None``; image fields hold asset-store references,
    never remote URLs.
    """

    title: str
    description: Optional[str] = None
    favicon_ref: Optional[str] = None
    preview_image_ref: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON shape returned by the API and the CLI."""
        return {
            "title": self.title,
            "description": self.description,
            "favicon": self.favicon_ref,
            "og_image": self.preview_image_ref,
        }
