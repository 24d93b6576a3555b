"""Configuration module for project settings and environment variables.

This module manages configuration settings and environment-specific
parameters for the life expectancy pipeline. Values are read once at
import time; `validate_config` is called by the run entry point.
"""

import os

from lifeexp.exceptions import ConfigurationError
from lifeexp.logging_config import create_logger

logger = create_logger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATA_DIR = os.getenv("DATA_DIR", os.path.join(ROOT_DIR, "data"))
RAW_DATA_DIR = os.getenv("RAW_DATA_DIR", os.path.join(DATA_DIR, "raw"))
OUTPUT_DIR = os.getenv("OUTPUT_DIR", os.path.join(DATA_DIR, "master"))
RAW_FILE_NAME = os.getenv("RAW_FILE_NAME", "Life_Expectancy_Data.csv")

# DuckDB file holding the raw and master tables; ":memory:" keeps nothing
DB_PATH = os.getenv("DB_PATH", os.path.join(DATA_DIR, "life_expectancy.db"))

# Comparison years used by the master assembler
BASELINE_YEAR = _env_int("BASELINE_YEAR", 2000)
COMPARISON_YEAR = _env_int("COMPARISON_YEAR", 2015)
RANK_ALL_YEARS = _env_flag("RANK_ALL_YEARS", False)

# Optional extension files for the collaborators
COUNTRY_MAPPING_PATH = os.getenv("COUNTRY_MAPPING_PATH") or None
CLASSIFICATION_PATH = os.getenv("CLASSIFICATION_PATH") or None

# None runs the derived metrics engine serially
DERIVE_MAX_WORKERS = _env_int("DERIVE_MAX_WORKERS", 0) or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def validate_config():
    """
    Validate critical configuration parameters.

    :raises ConfigurationError: If configuration is invalid
    """
    required_dirs = [
        ("DATA_DIR", DATA_DIR),
        ("RAW_DATA_DIR", RAW_DATA_DIR),
        ("OUTPUT_DIR", OUTPUT_DIR),
    ]

    for dir_name, dir_path in required_dirs:
        if not dir_path:
            raise ConfigurationError(
                f"Missing required directory configuration: {dir_name}"
            )

        try:
            os.makedirs(dir_path, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create directory {dir_name} at {dir_path}: {e}"
            )

    if not DB_PATH:
        raise ConfigurationError("Database path (DB_PATH) is not configured")

    if DB_PATH != ":memory:":
        db_dir = os.path.dirname(DB_PATH)
        try:
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create database directory at {db_dir}: {e}"
            )

    if BASELINE_YEAR >= COMPARISON_YEAR:
        raise ConfigurationError(
            f"BASELINE_YEAR ({BASELINE_YEAR}) must precede "
            f"COMPARISON_YEAR ({COMPARISON_YEAR})"
        )

    if DERIVE_MAX_WORKERS is not None and DERIVE_MAX_WORKERS < 0:
        raise ConfigurationError("DERIVE_MAX_WORKERS cannot be negative")

    for name, path in [
        ("COUNTRY_MAPPING_PATH", COUNTRY_MAPPING_PATH),
        ("CLASSIFICATION_PATH", CLASSIFICATION_PATH),
    ]:
        if path and not os.path.isfile(path):
            raise ConfigurationError(f"{name} points to a missing file: {path}")

    logger.info("Configuration validation successful")
