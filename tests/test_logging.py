"""Tests for structured logging."""

import json
import logging
import sys

from mediauploader.core import logging as upload_logging
from mediauploader.core.logging import JsonLogFormatter, upload_context


def _record(message="Chunk acknowledged", **extra):
    record = logging.LogRecord(
        name="mediauploader.uploader.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    """Test extra fields are emitted at the top level."""
    entry = json.loads(JsonLogFormatter().format(_record(bytes_sent=20, continuation_id="abc")))

    assert entry["message"] == "Chunk acknowledged"
    assert entry["severity"] == "INFO"
    assert entry["bytes_sent"] == 20
    assert entry["continuation_id"] == "abc"


def test_json_formatter_includes_public_id_context():
    """Test the current upload's public ID is attached to every line."""
    token = upload_context.set("testimage")
    try:
        entry = json.loads(JsonLogFormatter().format(_record()))
    finally:
        upload_context.reset(token)

    assert entry["public_id"] == "testimage"


def test_json_formatter_exception():
    """Test exceptions are flattened into string fields."""
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    entry = json.loads(JsonLogFormatter().format(record))

    assert entry["exception_type"] == "RuntimeError"
    assert entry["exception_message"] == "boom"
    assert "Traceback" in entry["exception"]


def test_setup_logging_json_outside_local(monkeypatch):
    """Test non-local environments log JSON at the configured level."""
    from mediauploader.core.config import settings

    monkeypatch.setattr(settings, "ENV", "production")
    monkeypatch.setattr(settings, "LOG_LEVEL", "warning")

    upload_logging.setup_logging()

    package_logger = logging.getLogger("mediauploader")
    assert package_logger.level == logging.WARNING
    assert isinstance(package_logger.handlers[0].formatter, JsonLogFormatter)
    assert package_logger.propagate is False
