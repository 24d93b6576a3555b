"""Country classifications joined onto the master dataset.

Region and income group come from an external World Bank style table
keyed by standardized country name. G7 and G20 membership is fixed.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

import duckdb

from lifeexp.exceptions import ConfigurationError, SchemaError
from lifeexp.logging_config import create_logger

logger = create_logger(__name__)

CLASSIFICATION_COLUMNS = ("country_name", "country_code", "region", "income_group")


@dataclass(frozen=True)
class CountryClassification:
    country_name: str
    country_code: Optional[str]
    region: Optional[str]
    income_group: Optional[str]


G7_COUNTRIES = frozenset(
    {
        "United States of America",
        "United Kingdom",
        "France",
        "Germany",
        "Italy",
        "Canada",
        "Japan",
    }
)

G20_COUNTRIES = G7_COUNTRIES | frozenset(
    {
        "Russian Federation",
        "China",
        "India",
        "Brazil",
        "Mexico",
        "South Africa",
        "Australia",
        "Korea (Republic of)",
        "Indonesia",
        "Saudi Arabia",
        "Turkey",
        "Argentina",
    }
)

SAMPLE_CLASSIFICATIONS: Dict[str, CountryClassification] = {
    row.country_name: row
    for row in (
        CountryClassification("United States of America", "USA", "North America", "High income"),
        CountryClassification("China", "CHN", "East Asia & Pacific", "Upper middle income"),
        CountryClassification("India", "IND", "South Asia", "Lower middle income"),
        CountryClassification("Brazil", "BRA", "Latin America & Caribbean", "Upper middle income"),
        CountryClassification("Germany", "DEU", "Europe & Central Asia", "High income"),
    )
}


def load_classifications(
    path: str, connection: Optional[duckdb.DuckDBPyConnection] = None
) -> Dict[str, CountryClassification]:
    """Read a classification CSV with columns country_name, country_code,
    region and income_group.

    :raises ConfigurationError: If the file does not exist
    :raises SchemaError: If the file lacks a required column
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"Classification file not found: {path}")

    con = connection if connection else duckdb.connect()
    try:
        rows = con.execute(
            f"""
            SELECT {', '.join(CLASSIFICATION_COLUMNS)}
            FROM read_csv(?, header = true, all_varchar = true)
            """,
            [path],
        ).fetchall()
    except duckdb.Error as e:
        raise SchemaError(f"Unable to read classifications from {path}: {e}")

    classifications: Dict[str, CountryClassification] = {}
    for name, code, region, income_group in rows:
        if not name:
            continue
        # First row wins for a repeated country name
        classifications.setdefault(
            name.strip(), CountryClassification(name.strip(), code, region, income_group)
        )

    logger.info(f"Loaded {len(classifications)} country classifications from {path}")
    return classifications
