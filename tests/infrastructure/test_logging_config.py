"""Test suite for structured logging configuration."""

import json
import logging

import pytest

from clinicdesk.infrastructure.logging_config import QUIET_LOGGERS, StructuredFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra):
    record = logging.LogRecord(
        name="clinicdesk.adapters.professionals",
        level=logging.ERROR,
        pathname=__file__,
        lineno=10,
        msg="Failed to load professionals: %s",
        args=("timeout",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """JSON formatting of log records."""

    def test_basic_fields(self):
        payload = json.loads(StructuredFormatter().format(_record()))

        assert payload["level"] == "ERROR"
        assert payload["logger"] == "clinicdesk.adapters.professionals"
        assert payload["message"] == "Failed to load professionals: timeout"
        assert payload["timestamp"].endswith("Z")

    def test_adapter_context(self):
        payload = json.loads(StructuredFormatter().format(_record(user_id="user-1", operation="list")))

        assert payload["user_id"] == "user-1"
        assert payload["operation"] == "list"

    def test_extra_fields(self):
        payload = json.loads(StructuredFormatter().format(_record(extra_fields={"table": "professionals"})))
        assert payload["table"] == "professionals"


class TestSetupLogging:
    """Root logger configuration."""

    def test_json_handler(self, restore_root_logger):
        setup_logging(use_json=True, log_level="debug")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_text_handler_and_quiet_loggers(self, restore_root_logger):
        setup_logging(log_level="INFO")

        assert not isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(log_level="chatty")
        assert restore_root_logger.level == logging.INFO
