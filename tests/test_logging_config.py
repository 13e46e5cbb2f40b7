"""Tests for logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from backend.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_text_format() -> None:
    stream = io.StringIO()
    configure_logging("text", "INFO", stream)
    logging.getLogger("backend.test").info("hello %s", "world")

    line = stream.getvalue()
    assert "INFO backend.test hello world" in line


def test_json_format() -> None:
    stream = io.StringIO()
    configure_logging("json", "DEBUG", stream)
    logging.getLogger("backend.test").debug("fetched")

    record = json.loads(stream.getvalue().strip())
    assert record["message"] == "fetched"
    assert record["level"] == "DEBUG"
    assert record["logger"] == "backend.test"


def test_level_filters_and_quiets_http_stack() -> None:
    stream = io.StringIO()
    configure_logging("text", "WARNING", stream)
    logging.getLogger("backend.test").info("hidden")

    assert stream.getvalue() == ""
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("playwright").level == logging.ERROR
