"""
Unit tests for the exception hierarchy and logging helpers.
"""

import json
import logging

from lora_catalog.utils import LogContext, Timer, get_logger
from lora_catalog.utils.exceptions import (
    ErrorCode,
    InvalidNameError,
    IOFailureError,
    NotFoundError,
)
from lora_catalog.utils.logging_config import JSONFormatter, record_context


def make_record(**extra):
    record = logging.LogRecord("lora_catalog.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestExceptions:
    """Tests for LoraCatalogError and its subclasses."""

    def test_default_codes(self):
        assert NotFoundError("x").error_code == ErrorCode.FILE_NOT_FOUND
        assert IOFailureError("x").error_code == ErrorCode.IO_FAILURE
        assert InvalidNameError("x").error_code == ErrorCode.INVALID_NAME

    def test_context_goes_to_details(self):
        error = IOFailureError("boom", file_path="/a", operation="save", extra_none=None)

        assert error.details == {"file_path": "/a", "operation": "save"}

    def test_explicit_code_and_cause(self):
        cause = OSError("disk full")
        error = IOFailureError("boom", error_code=ErrorCode.WRITE_FAILED, cause=cause)

        assert error.error_code == ErrorCode.WRITE_FAILED
        assert "Caused by: OSError: disk full" in str(error)

    def test_to_dict(self):
        data = InvalidNameError("taken", name="cel", error_code=ErrorCode.NAME_COLLISION).to_dict()

        assert data["error_type"] == "InvalidNameError"
        assert data["error_name"] == "NAME_COLLISION"
        assert data["details"] == {"name": "cel"}
        assert data["cause"] is None


class TestLogging:
    """Tests for structured logging helpers."""

    def test_get_logger_is_under_package(self):
        assert get_logger("lora_catalog.catalog").name == "lora_catalog.catalog"
        assert get_logger("tests").name == "lora_catalog.tests"

    def test_log_context_fields(self):
        logger = get_logger(__name__)
        with LogContext(logger, command="verify"):
            assert record_context(make_record()) == {"command": "verify"}
        assert record_context(make_record()) == {}

    def test_extra_wins_over_context(self):
        logger = get_logger(__name__)
        with LogContext(logger, logical_path="outer"):
            fields = record_context(make_record(logical_path="inner"))

        assert fields["logical_path"] == "inner"

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(make_record(operation="scan")))

        assert data["message"] == "hello"
        assert data["operation"] == "scan"
        assert len(data["correlation_id"]) == 8

    def test_timer_records_duration(self):
        with Timer(get_logger(__name__), "noop") as timer:
            pass

        assert timer.duration_ms >= 0
