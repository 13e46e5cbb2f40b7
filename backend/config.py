"""Centralised settings for the QuickMark backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

The metadata pipeline never reads the module-level ``settings`` directly from
deep inside a resolver; the orchestrator receives a :class:`Settings` instance
and threads it through every stage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("QUICKMARK_WORKSPACE", Path.cwd() / "data")
        )
    )

    @property
    def assets_dir(self) -> Path:
        """Directory holding downloaded favicons, preview images and screenshots."""
        return self.workspace_dir / "assets"

    assets_url_prefix: str = field(
        default_factory=lambda: os.environ.get("ASSETS_URL_PREFIX", "/assets")
    )

    # ------------------------------------------------------------------
    # Direct fetcher (seconds)
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", _DEFAULT_USER_AGENT)
    )
    page_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PAGE_TIMEOUT", "10.0"))
    )
    favicon_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FAVICON_TIMEOUT", "3.0"))
    )
    image_timeout: float = field(
        default_factory=lambda: float(os.environ.get("IMAGE_TIMEOUT", "10.0"))
    )
    oembed_timeout: float = field(
        default_factory=lambda: float(os.environ.get("OEMBED_TIMEOUT", "10.0"))
    )

    # ------------------------------------------------------------------
    # Preview-image heuristics
    # ------------------------------------------------------------------
    min_image_bytes: int = field(
        default_factory=lambda: int(os.environ.get("MIN_IMAGE_BYTES", "5000"))
    )
    min_image_dimension: int = field(
        default_factory=lambda: int(os.environ.get("MIN_IMAGE_DIMENSION", "200"))
    )
    max_inline_images: int = field(
        default_factory=lambda: int(os.environ.get("MAX_INLINE_IMAGES", "3"))
    )

    # ------------------------------------------------------------------
    # Headless browser
    # ------------------------------------------------------------------
    browser_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_TIMEOUT", "30.0"))
    )
    browser_headless: bool = field(
        default_factory=lambda: _env_bool("BROWSER_HEADLESS", "true")
    )
    browser_locale: str = field(
        default_factory=lambda: os.environ.get("BROWSER_LOCALE", "en-US")
    )
    browser_timezone: str = field(
        default_factory=lambda: os.environ.get("BROWSER_TIMEZONE", "America/New_York")
    )
    browser_viewport_width: int = field(
        default_factory=lambda: int(os.environ.get("BROWSER_VIEWPORT_WIDTH", "1366"))
    )
    browser_viewport_height: int = field(
        default_factory=lambda: int(os.environ.get("BROWSER_VIEWPORT_HEIGHT", "768"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_format: str = field(
        default_factory=lambda: os.environ.get("LOG_FORMAT", "text")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace and asset directories if they do not exist."""
        self.assets_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from backend.config import settings
settings = Settings()
