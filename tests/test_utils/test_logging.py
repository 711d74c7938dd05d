"""Tests for structured logging helpers."""

import io
import json
import logging

import pytest

from infant_monitor.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    create_logger_with_context,
    setup_logging,
    setup_logging_from_config,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def json_stream():
    """Logger 'test.json' writing JSON lines into a StringIO."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger = logging.getLogger("test.json")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, stream
    logger.removeHandler(handler)


class TestJSONFormatter:
    def test_fields(self, json_stream):
        logger, stream = json_stream
        logger.info("tick done")
        record = json.loads(stream.getvalue())
        assert record["message"] == "tick done"
        assert record["level"] == "INFO"
        assert record["logger"] == "test.json"
        assert record["thread"] == "MainThread"
        assert "context" not in record

    def test_exception_included(self, json_stream):
        logger, stream = json_stream
        try:
            raise ValueError("bad rate")
        except ValueError:
            logger.exception("failed")
        assert "bad rate" in json.loads(stream.getvalue())["exception"]

    def test_adapter_context(self, json_stream):
        _, stream = json_stream
        adapter = create_logger_with_context("test.json", {"session_id": "abc123"})
        adapter.warning("short buffer", extra={"context": {"tick": 3}})
        record = json.loads(stream.getvalue())
        assert record["context"] == {"session_id": "abc123", "tick": 3}


class TestColoredFormatter:
    def test_levelname_restored(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "oops", None, None)
        output = formatter.format(record)
        assert "\033[31m" in output
        assert record.levelname == "ERROR"


class TestSetupLogging:
    def test_console_handler(self, restore_root_logger):
        setup_logging(level="warning", colored=False)
        root = restore_root_logger
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_json_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "monitor.log"
        setup_logging(level="INFO", log_file=str(log_file), console_enabled=False)
        logging.getLogger("infant_monitor.test").info("written to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        assert json.loads(lines[-1])["message"] == "written to file"

    @pytest.mark.parametrize("kwargs", [{"level": "LOUD"}, {"log_format": "xml"}])
    def test_rejects_unknown_settings(self, restore_root_logger, kwargs):
        with pytest.raises(ValueError):
            setup_logging(**kwargs)

    def test_from_config_section(self, restore_root_logger):
        setup_logging_from_config({"level": "ERROR", "format": "json", "file": None})
        root = restore_root_logger
        assert root.level == logging.ERROR
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_verbose_overrides_level(self, restore_root_logger):
        setup_logging_from_config({"level": "ERROR"}, verbose=True)
        assert restore_root_logger.level == logging.DEBUG
