"""
Centralized logging configuration for the life expectancy pipeline.

This module provides a consistent, structured logging approach
across every pipeline stage.
"""

import logging
import os
import sys
from typing import Optional, Union

import colorlog


def create_logger(
    name: Optional[str] = None,
    log_level: Optional[Union[int, str]] = None,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
):
    """
    Create a structured, color-coded logger with optional file logging.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: LOG_LEVEL env var, else INFO)
    :param log_dir: Directory to store log files (optional)
    :param log_file: Specific log file name (optional)
    :return: Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # Create logger
    logger = colorlog.getLogger(name or __name__)
    logger.setLevel(log_level)
    logger.propagate = False

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # Create console handler with color
    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    formatter = colorlog.ColoredFormatter(
        "%(log_color)s[%(levelname)s]%(reset)s "
        "%(blue)s[%(name)s]%(reset)s "
        "%(message)s",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
        secondary_log_colors={},
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Optional file logging
    if log_dir or log_file:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if not log_file:
            log_file = f"{name or 'lifeexp'}.log"

        if log_dir:
            log_file = os.path.join(log_dir, log_file)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)

        # Plain text formatter for file logs
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def log_exception(logger, e, context=None):
    """
    Standardized exception logging with optional context.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Optional additional context for the error
    """
    logger.critical("🚨 PIPELINE ERROR 🚨")
    logger.critical(f"Error Type: {type(e).__name__}")
    logger.critical(f"Error Details: {str(e)}")

    if context:
        logger.critical(f"Context: {context}")

    logger.critical("Troubleshooting:")
    logger.critical("  1. Check the raw file header against the 21-column layout")
    logger.critical("  2. Look for non-numeric text in indicator columns")
    logger.critical("  3. Verify COUNTRY_MAPPING_PATH and CLASSIFICATION_PATH")
    logger.critical("  4. Re-run with LOG_LEVEL=DEBUG")
