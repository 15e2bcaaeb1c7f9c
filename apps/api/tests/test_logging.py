"""
Tests for structured logging
"""
import json
import logging
import sys

import pytest

from core.logging import JSONFormatter, SERVICE_NAME, setup_logging


def _record(msg="Set logged", exc_info=None, **extra):
    record = logging.LogRecord("services.workout_sessions", logging.INFO, __file__, 42, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_entry_fields():
    entry = json.loads(JSONFormatter().format(_record()))

    assert entry["level"] == "INFO"
    assert entry["service"] == SERVICE_NAME
    assert entry["logger"] == "services.workout_sessions"
    assert entry["message"] == "Set logged"
    assert entry["location"].endswith(":42")


def test_extra_fields_merged():
    record = _record(extra_fields={"path": "/v1/training/metrics", "status_code": 200})
    entry = json.loads(JSONFormatter().format(record))

    assert entry["path"] == "/v1/training/metrics"
    assert entry["status_code"] == 200


def test_exception_included():
    try:
        raise ValueError("unknown muscle group")
    except ValueError:
        record = _record("Landmarks failed", exc_info=sys.exc_info())

    entry = json.loads(JSONFormatter().format(record))
    assert entry["exception_type"] == "ValueError"
    assert "unknown muscle group" in entry["exception"]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_formats(restore_root_logger):
    root = setup_logging(level="debug", log_format="json")
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, JSONFormatter)

    root = setup_logging(level="warning", log_format="text")
    assert root.level == logging.WARNING
    assert not isinstance(root.handlers[0].formatter, JSONFormatter)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
