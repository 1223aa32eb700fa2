"""
Tests for the JSON log format and request id propagation.
"""
import json
import sys
import logging

from core.logging_config import (
    JSONFormatter,
    MASK,
    RequestIdFilter,
    bind_request_id,
    reset_request_id,
)


def make_record(msg="History entry appended", **extra):
    record = logging.LogRecord(
        name="services.history_service", level=logging.INFO, pathname=__file__,
        lineno=1, msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def render(record):
    RequestIdFilter().filter(record)
    return json.loads(JSONFormatter().format(record))


def test_json_line_carries_core_fields():
    line = render(make_record(patient_id="8f14e45f", version=3))

    assert line["level"] == "INFO"
    assert line["logger"] == "services.history_service"
    assert line["msg"] == "History entry appended"
    assert line["ts"].endswith("Z")
    assert line["patient_id"] == "8f14e45f"
    assert line["version"] == 3
    assert "request_id" not in line


def test_identity_fields_are_masked():
    line = render(make_record(patient_name="John Doe", dob="1990-01-15", health_status="Critical"))

    assert line["patient_name"] == MASK
    assert line["dob"] == MASK
    assert line["health_status"] == "Critical"


def test_bound_request_id_is_attached():
    token = bind_request_id("req-123")
    try:
        line = render(make_record())
    finally:
        reset_request_id(token)

    assert line["request_id"] == "req-123"
    assert "request_id" not in render(make_record())


def test_explicit_request_id_wins_over_context():
    token = bind_request_id("from-context")
    try:
        line = render(make_record(request_id="from-caller"))
    finally:
        reset_request_id(token)

    assert line["request_id"] == "from-caller"


def test_exception_is_rendered():
    try:
        raise ValueError("store exploded")
    except ValueError:
        record = make_record()
        record.exc_info = sys.exc_info()

    line = render(record)
    assert "store exploded" in line["exc"]
