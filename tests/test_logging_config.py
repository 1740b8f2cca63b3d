# tests/test_logging_config.py
"""
Tests for the agentmem.logging_config module.

Covers the DisplayFilter gate, handler installation and replacement,
file logging and component log levels.
"""

import logging

import pytest

import agentmem.logging_config as logging_config
from agentmem.config import LoggingConfig
from agentmem.logging_config import (DisplayFilter, configure_logging,
                                     get_log_file_path, log_display)


@pytest.fixture
def reset_logging():
    """Remove handlers installed by configure_logging around each test."""
    yield
    root = logging.getLogger()
    for handler in (logging_config._console_handler, logging_config._file_handler):
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
    logging_config._console_handler = None
    logging_config._file_handler = None
    logging_config._log_file_path = None


def make_record(level=logging.INFO, display=None) -> logging.LogRecord:
    record = logging.LogRecord("agentmem.test", level, __file__, 1, "msg", None, None)
    if display is not None:
        record.display = display
    return record


class TestDisplayFilter:
    def test_quiet_blocks_plain_records(self):
        assert DisplayFilter().filter(make_record()) is False

    def test_quiet_passes_display_records(self):
        assert DisplayFilter().filter(make_record(display=True)) is True

    def test_display_min_level(self):
        display_filter = DisplayFilter(display_min_level=logging.WARNING)
        assert display_filter.filter(make_record(logging.INFO, display=True)) is False
        assert display_filter.filter(make_record(logging.ERROR, display=True)) is True

    def test_verbose_passes_everything(self):
        assert DisplayFilter(console_globally_enabled=True).filter(make_record()) is True


class TestConfigureLogging:
    def test_console_only_by_default(self, reset_logging):
        assert configure_logging("test") is None
        assert logging_config._console_handler in logging.getLogger().handlers
        assert get_log_file_path() is None

    def test_file_logging(self, tmp_path, reset_logging):
        log_path = tmp_path / "logs" / "agentmem.log"
        config = LoggingConfig(file_enabled=True, file_path=str(log_path))

        assert configure_logging("test", config) == log_path

        logging.getLogger("agentmem.test").warning("written to file")
        logging_config._file_handler.flush()
        assert "written to file" in log_path.read_text()

    def test_reconfigure_replaces_own_handlers(self, reset_logging):
        configure_logging("test")
        first = logging_config._console_handler
        configure_logging("test")

        handlers = logging.getLogger().handlers
        assert first not in handlers
        assert logging_config._console_handler in handlers

    def test_component_levels(self, reset_logging):
        configure_logging("test", LoggingConfig(components={"agentmem.noisy": "ERROR"}))
        assert logging.getLogger("agentmem.noisy").level == logging.ERROR


class TestLogDisplay:
    def test_sets_display_flag_and_merges_extra(self, caplog):
        logger = logging.getLogger("agentmem.display")
        with caplog.at_level(logging.INFO, logger="agentmem.display"):
            log_display(logger, logging.INFO, "Synced %d", 3, extra={"tier": "durable"})

        [record] = caplog.records
        assert record.getMessage() == "Synced 3"
        assert record.display is True
        assert record.tier == "durable"

    def test_does_not_mutate_caller_extra(self, caplog):
        logger = logging.getLogger("agentmem.display")
        extra = {"tier": "fast"}
        with caplog.at_level(logging.INFO, logger="agentmem.display"):
            log_display(logger, logging.INFO, "Evicted", extra=extra)

        assert extra == {"tier": "fast"}
        assert caplog.records[0].display is True
