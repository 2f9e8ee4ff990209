"""
Structured logging tests - message format and payload sanitization.
"""

import logging

from casefile.util.logging import StructuredLogger, sanitize_record


def test_operation_message_format(caplog):
    log = StructuredLogger("casefile.test")
    with caplog.at_level(logging.INFO, logger="casefile.test"):
        log.log_record_operation("add", "r1", details={"count": 3})

    assert "Operation: record.add, Status: success" in caplog.text
    assert "'record_id': 'r1'" in caplog.text
    assert "'count': 3" in caplog.text


def test_rejections_logged_as_warning(caplog):
    log = StructuredLogger("casefile.test")
    with caplog.at_level(logging.INFO, logger="casefile.test"):
        log.log_validation_error("form", [("name", "missing"), ("phone", "missing")])

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert "'fields': ['name', 'phone']" in record.getMessage()


def test_diagnostics_truncate_long_name(caplog):
    log = StructuredLogger("casefile.test")
    with caplog.at_level(logging.INFO, logger="casefile.test"):
        log.log_storage_diagnostics("convicts", 1, 2048, "id-1", "N" * 80)

    assert "'usage_kb': 2.0" in caplog.text
    assert "N" * 80 not in caplog.text


def test_sanitize_record_hides_image():
    sanitized = sanitize_record({"id": "1", "image": "data:" + "A" * 500, "caseDetails": "x" * 80, "tags": ["a"]})

    assert sanitized["image"] == "[505 chars]"
    assert len(sanitized["caseDetails"]) == 50
    assert sanitized["tags"] == ["a"]
