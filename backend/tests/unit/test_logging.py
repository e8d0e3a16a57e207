"""Tests for logging setup."""
import logging

import pytest

from backend.services.shared.logging import get_logger, setup_logging


class TestGetLogger:
    def test_returns_logger(self):
        assert isinstance(get_logger("test.module"), logging.Logger)

    def test_prefixes_namespace(self):
        assert get_logger("performance.engine").name == "genstudio.performance.engine"

    def test_existing_namespace_kept(self):
        assert get_logger("genstudio.routers").name == "genstudio.routers"

    def test_similar_prefix_is_not_namespace(self):
        assert get_logger("genstudiox").name == "genstudio.genstudiox"

    def test_same_name_returns_same_logger(self):
        assert get_logger("test.same") is get_logger("test.same")


class TestSetupLogging:
    def test_setup_with_level(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("genstudio").level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging(level="INFO")
        setup_logging(level="INFO")
        assert len(logging.getLogger("genstudio").handlers) == 1

    def test_setup_file_handler(self, tmp_dir):
        log_file = tmp_dir / "logs" / "test.log"
        setup_logging(level="INFO", log_file=str(log_file))
        get_logger("test_file").info("test message")
        for handler in logging.getLogger("genstudio").handlers:
            handler.flush()
        assert "test message" in log_file.read_text()

    def test_invalid_level_raises(self):
        with pytest.raises(ValueError):
            setup_logging(level="INVALID_LEVEL")
