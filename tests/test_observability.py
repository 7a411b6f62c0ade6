"""
Tests for logging configuration.
"""

import logging

import pytest

from macup.core.observability.logging_config import parse_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("INFO") == logging.INFO

    def test_unknown_falls_back_to_warning(self):
        assert parse_level("chatty") == logging.WARNING
        assert parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler_lowers_effective_level(self, tmp_path):
        log_file = tmp_path / "macup.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("macup.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

        for handler in root.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.close()
