"""Unit tests for logging configuration."""

import logging

import pytest

from lifeexp.logging_config import create_logger, log_exception


@pytest.mark.unit
class TestCreateLogger:
    """Test logger creation."""

    def test_level_and_single_handler(self):
        """Test repeated creation does not stack handlers."""
        create_logger("lifeexp.test_logger", log_level="DEBUG")
        logger = create_logger("lifeexp.test_logger", log_level="WARNING")

        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_file_handler(self, temp_dir):
        """Test optional file logging."""
        logger = create_logger("lifeexp.file_logger", log_dir=str(temp_dir), log_file="run.log")
        logger.info("written to file")

        for handler in logger.handlers:
            handler.flush()
        assert "written to file" in (temp_dir / "run.log").read_text()
        for handler in logger.handlers[1:]:
            handler.close()
            logger.removeHandler(handler)

    def test_log_exception_includes_context(self, mock_logger):
        """Test exception details and context are logged."""
        log_exception(mock_logger, ValueError("bad row"), {"input": "panel.csv"})

        messages = [call.args[0] for call in mock_logger.critical.call_args_list]
        assert "Error Type: ValueError" in messages
        assert "Error Details: bad row" in messages
        assert any("panel.csv" in message for message in messages)
