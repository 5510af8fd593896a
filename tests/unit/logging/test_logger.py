# tests/unit/logging/test_logger.py — v3
"""Tests for logging/logger.py — formatters and root logger setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from docpilot.cache import document_cache
from docpilot.logging.context import clear_context, set_document_context, set_operation_context
from docpilot.logging.logger import JsonFormatter, TextFormatter, setup_logging
from docpilot.pipeline import document_processor


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _reset_logging():
    clear_context()
    yield
    clear_context()
    logging.getLogger("docpilot").handlers.clear()


class TestJsonFormatter:
    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_document_context("/docs/report.pdf", "summary")
        set_operation_context("chunk")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "source_locator": "/docs/report.pdf",
            "namespace": "summary",
            "operation": "chunk",
        }

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"chunks": 3})))
        assert parsed["data"] == {"chunks": 3}

    def test_format_with_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        set_document_context("/docs/report.pdf", "outline")
        set_operation_context("consolidate")
        output = TextFormatter().format(_record())
        assert "[outline]" in output
        assert "(consolidate)" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("docpilot")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("docpilot")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_module_loggers_reach_root_handlers(self, tmp_path):
        log_file = tmp_path / "docpilot.log"
        setup_logging(log_file=log_file)
        document_cache.logger.info("from cache")
        document_processor.logger.info("from processor")
        for handler in logging.getLogger("docpilot").handlers:
            handler.flush()

        written = log_file.read_text(encoding="utf-8")
        assert "from cache" in written
        assert "from processor" in written

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("docpilot").handlers) == 1

    def test_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "docpilot.log"
        setup_logging(log_file=log_file)
        logging.getLogger("docpilot.test").info("written")
        for handler in logging.getLogger("docpilot").handlers:
            handler.flush()
        assert "written" in log_file.read_text(encoding="utf-8")
