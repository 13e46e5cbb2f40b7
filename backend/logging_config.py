"""Logging configuration for the CLI and the API process.

Two output modes, selected by ``LOG_FORMAT``:

- ``text`` (default): human-readable lines for local use.
- ``json``: one JSON object per line for log shippers.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from pythonjsonlogger.json import JsonFormatter

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(
    log_format: str = "text", log_level: str = "INFO", stream: TextIO = sys.stdout
) -> None:
    """Install a single stream handler on the root logger.

    Args:
        log_format: ``"text"`` or ``"json"``.
        log_level: Standard level name, e.g. ``"DEBUG"``.
        stream: Where records go; the CLI passes stderr to keep stdout clean.
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(stream)
    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
                "asctime": "timestamp",
            },
        )
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)

    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Per-request lines from the HTTP stack drown out the pipeline's own logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.ERROR)
