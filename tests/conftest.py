"""Pytest configuration and shared fixtures for the life expectancy pipeline tests.

This module provides fixtures for:
- DuckDB database connections
- Record factories for every pipeline stage
- Sample panel data in the public CSV layout
- Temporary file management
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock

import duckdb
import pandas as pd
import pytest

from lifeexp.entity_resolver import EntityResolver
from lifeexp.models import CleanedRecord, DerivedRecord, RawRecord, widen
from lifeexp.schema import BASE_FIELDS, DERIVED_FIELDS

# Header of the public Kaggle/WHO release, stray spaces included
KAGGLE_HEADER = [
    "Country",
    "Year",
    "Status",
    "Life expectancy ",
    "Adult Mortality",
    "infant deaths",
    "Alcohol",
    "percentage expenditure",
    "Hepatitis B",
    "Measles ",
    " BMI ",
    "under-five deaths ",
    "Polio",
    "Total expenditure",
    "Diphtheria ",
    " HIV/AIDS",
    "GDP",
    "Population",
    " thinness  1-19 years",
    " thinness 5-9 years",
    "Income composition of resources",
    "Schooling",
]


# ============================================================================
# Record Factories
# ============================================================================

@pytest.fixture
def make_raw() -> Callable[..., RawRecord]:
    """Build RawRecords with every indicator null unless given."""

    def factory(country: str = "Testland", year: int = 2015, **fields) -> RawRecord:
        fields.setdefault("status", "Developing")
        return RawRecord(country=country, year=year, **fields)

    return factory


@pytest.fixture
def make_cleaned() -> Callable[..., CleanedRecord]:
    """Build CleanedRecords with every base field null unless given."""

    def factory(country: str = "Testland", year: int = 2015, **fields) -> CleanedRecord:
        values = {name: None for name in BASE_FIELDS}
        values.update(fields)
        values.setdefault("iso_code", None)
        values.setdefault("status", "Developing")
        values.setdefault("duplicate_flag", False)
        return CleanedRecord(country=country, year=year, **values)

    return factory


@pytest.fixture
def make_derived(make_cleaned) -> Callable[..., DerivedRecord]:
    """Build DerivedRecords; derived fields default to null."""

    def factory(country: str = "Testland", year: int = 2015, **fields) -> DerivedRecord:
        derived = {name: fields.pop(name, None) for name in DERIVED_FIELDS}
        return widen(DerivedRecord, make_cleaned(country, year, **fields), **derived)

    return factory


@pytest.fixture
def kaggle_header():
    """Column names of the public release."""
    return list(KAGGLE_HEADER)


@pytest.fixture
def resolver() -> EntityResolver:
    """Resolver with the default mapping table."""
    return EntityResolver()


# ============================================================================
# DuckDB Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def duckdb_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Provide an in-memory DuckDB connection for testing.

    Yields:
        DuckDB connection object
    """
    con = duckdb.connect(":memory:")
    yield con
    con.close()


# ============================================================================
# Test Data Fixtures
# ============================================================================

def panel_row(country, year, **values):
    """One row in the public CSV layout, keyed by KAGGLE_HEADER."""
    row = {column: None for column in KAGGLE_HEADER}
    row.update({"Country": country, "Year": year, "Status": values.pop("status", "Developing")})
    for name, value in values.items():
        row[KAGGLE_HEADER[3 + BASE_FIELDS.index(name)]] = value
    return row


@pytest.fixture(scope="function")
def sample_panel_data() -> pd.DataFrame:
    """Small panel with a mapped name, a gap year and an implausible value.

    Returns:
        Pandas DataFrame with the public column names
    """
    rows = [
        panel_row(
            "USA", 2000, status="Developed", life_expectancy=76.8, adult_mortality=114,
            population=282162411, total_expenditure=13.1, hepatitis_b=90, polio=90,
            diphtheria=94, bmi=28.5, schooling=16.0, income_composition_of_resources=0.88,
        ),
        panel_row(
            "USA", 2015, status="Developed", life_expectancy=79.3, adult_mortality=850,
            population=321418820, gdp=18036648000000, total_expenditure=17.1,
            hepatitis_b=95, polio=93, diphtheria=94,
        ),
        panel_row(
            "Germany", 2000, status="Developed", life_expectancy=78.0, adult_mortality=95,
            population=82211508, gdp=23635.9, total_expenditure=10.1, hepatitis_b=65,
            polio=95, diphtheria=97, schooling=15.6,
        ),
        panel_row(
            "Germany", 2015, status="Developed", life_expectancy=81.0, adult_mortality=65,
            population=81686611, gdp=41176.9, total_expenditure=11.3, hepatitis_b=88,
            polio=95, diphtheria=95, schooling=17.0,
        ),
        panel_row(
            "Viet Nam", 2015, life_expectancy=76.0, adult_mortality=127,
            infant_deaths=28, population=92677076, hepatitis_b=97, polio=97,
            diphtheria=97, bmi=17.5,
        ),
        panel_row(
            "Neverland", 2015, life_expectancy=120.0, hiv_aids=-1.0,
        ),
    ]
    return pd.DataFrame(rows, columns=KAGGLE_HEADER)


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing.

    Yields:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def temp_csv_file(temp_dir: Path, sample_panel_data: pd.DataFrame) -> Path:
    """Create a temporary CSV file with the sample panel.

    Returns:
        Path to temporary CSV file
    """
    csv_path = temp_dir / "Life_Expectancy_Data.csv"
    sample_panel_data.to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture(scope="function")
def classification_csv(temp_dir: Path) -> Path:
    """Classification table in the World Bank layout.

    Returns:
        Path to temporary CSV file
    """
    csv_path = temp_dir / "classifications.csv"
    pd.DataFrame(
        {
            "country_name": ["United States of America", "Germany", "Viet Nam"],
            "country_code": ["USA", "DEU", "VNM"],
            "region": ["North America", "Europe & Central Asia", "East Asia & Pacific"],
            "income_group": ["High income", "High income", "Lower middle income"],
        }
    ).to_csv(csv_path, index=False)
    return csv_path


# ============================================================================
# Mock Fixtures for Pipeline Components
# ============================================================================

@pytest.fixture(scope="function")
def mock_logger():
    """Provide a mock logger for testing.

    Returns:
        Mock logger object
    """
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.critical = MagicMock()
    return logger
