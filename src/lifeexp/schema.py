"""Life expectancy panel schema - version 1.

The raw panel has one row per country-year with 21 columns: country,
year, development status and 19 numeric indicators. Column names in the
public release carry stray spaces and mixed case (``"Life expectancy "``,
``" thinness  1-19 years"``); `normalize_column_name` maps them onto the
snake_case names below.
"""

import re
from typing import Dict, List, Tuple

import pyarrow as pa

RAW_SCHEMA_V1 = {
    "country": {
        "type": "String",
        "nullable": False,
        "description": "Country name as written in the source",
    },
    "year": {
        "type": "Int",
        "nullable": False,
        "description": "Reference year of the observation",
    },
    "status": {
        "type": "String",
        "nullable": True,
        "description": "Development status: Developed or Developing",
    },
    "life_expectancy": {
        "type": "Decimal",
        "nullable": True,
        "description": "Life expectancy at birth in years",
    },
    "adult_mortality": {
        "type": "Decimal",
        "nullable": True,
        "description": "Deaths per 1000 population aged 15-60",
    },
    "infant_deaths": {
        "type": "Decimal",
        "nullable": True,
        "description": "Absolute infant deaths",
    },
    "alcohol": {
        "type": "Decimal",
        "nullable": True,
        "description": "Litres of pure alcohol per capita (15+)",
    },
    "percentage_expenditure": {
        "type": "Decimal",
        "nullable": True,
        "description": "Health expenditure as a share of GDP per capita",
    },
    "hepatitis_b": {
        "type": "Decimal",
        "nullable": True,
        "description": "Hepatitis B immunization coverage among 1-year-olds (%)",
    },
    "measles": {
        "type": "Decimal",
        "nullable": True,
        "description": "Reported measles cases",
    },
    "bmi": {
        "type": "Decimal",
        "nullable": True,
        "description": "Average body mass index of the population",
    },
    "under_five_deaths": {
        "type": "Decimal",
        "nullable": True,
        "description": "Absolute under-five deaths",
    },
    "polio": {
        "type": "Decimal",
        "nullable": True,
        "description": "Polio immunization coverage among 1-year-olds (%)",
    },
    "total_expenditure": {
        "type": "Decimal",
        "nullable": True,
        "description": "Government health expenditure as % of total government expenditure",
    },
    "diphtheria": {
        "type": "Decimal",
        "nullable": True,
        "description": "DTP3 immunization coverage among 1-year-olds (%)",
    },
    "hiv_aids": {
        "type": "Decimal",
        "nullable": True,
        "description": "HIV/AIDS deaths per 1000 live births (0-4 years)",
    },
    "gdp": {
        "type": "Decimal",
        "nullable": True,
        "description": "Gross domestic product (USD)",
    },
    "population": {
        "type": "Decimal",
        "nullable": True,
        "description": "Population of the country",
    },
    "thinness_1_19_years": {
        "type": "Decimal",
        "nullable": True,
        "description": "Prevalence of thinness among ages 10-19 (%)",
    },
    "thinness_5_9_years": {
        "type": "Decimal",
        "nullable": True,
        "description": "Prevalence of thinness among ages 5-9 (%)",
    },
    "income_composition_of_resources": {
        "type": "Decimal",
        "nullable": True,
        "description": "Human Development Index income component (0-1)",
    },
    "schooling": {
        "type": "Decimal",
        "nullable": True,
        "description": "Average years of schooling",
    },
}

RAW_V1_METADATA = {
    "version": 1,
    "created_at": "2024-12-01",
    "created_by": "system",
    "description": "WHO/UN life expectancy panel, 2000-2015",
    "grain": ["country", "year"],
}

IDENTITY_COLUMNS: Tuple[str, ...] = ("country", "year", "status")

# The 19 indicator columns counted by the completeness score, in source order
BASE_FIELDS: Tuple[str, ...] = tuple(
    name for name in RAW_SCHEMA_V1 if name not in IDENTITY_COLUMNS
)

DERIVED_FIELDS: Tuple[str, ...] = (
    "gdp_per_capita",
    "health_expenditure_per_capita",
    "infant_mortality_rate",
    "under_five_mortality_rate",
    "immunization_coverage_avg",
    "life_exp_change_1yr",
    "life_exp_change_5yr",
    "gdp_growth_rate",
    "health_spending_efficiency",
)

SCORE_FIELDS: Tuple[str, ...] = (
    "completeness_score",
    "quality_score",
    "health_system_performance_score",
    "disease_burden_score",
    "social_determinants_score",
)

MASTER_FIELDS: Tuple[str, ...] = (
    "life_exp_2000",
    "improvement_since_2000",
    "global_rank",
    "region",
    "income_group",
    "is_g7",
    "is_g20",
)

_DUCKDB_TYPES = {"String": "VARCHAR", "Int": "BIGINT", "Decimal": "DOUBLE"}


def raw_table_ddl(table_name: str) -> str:
    """Build the CREATE TABLE statement for the typed raw table."""
    columns = ",\n    ".join(
        f"{name} {_DUCKDB_TYPES[spec['type']]}"
        + ("" if spec["nullable"] else " NOT NULL")
        for name, spec in RAW_SCHEMA_V1.items()
    )
    return f"CREATE TABLE {table_name} (\n    {columns}\n)"


def master_arrow_schema() -> pa.Schema:
    """Arrow schema of the master table, column order matching MasterRecord."""
    fields: List[pa.Field] = [
        pa.field("country", pa.string(), nullable=False),
        pa.field("iso_code", pa.string()),
        pa.field("year", pa.int64(), nullable=False),
        pa.field("status", pa.string()),
    ]
    fields += [pa.field(name, pa.float64()) for name in BASE_FIELDS]
    fields.append(pa.field("duplicate_flag", pa.bool_()))
    fields += [pa.field(name, pa.float64()) for name in DERIVED_FIELDS]
    fields += [
        pa.field("completeness_score", pa.float64()),
        pa.field("quality_score", pa.int64()),
        pa.field("health_system_performance_score", pa.float64()),
        pa.field("disease_burden_score", pa.float64()),
        pa.field("social_determinants_score", pa.float64()),
        pa.field("life_exp_2000", pa.float64()),
        pa.field("improvement_since_2000", pa.float64()),
        pa.field("global_rank", pa.int64()),
        pa.field("region", pa.string()),
        pa.field("income_group", pa.string()),
        pa.field("is_g7", pa.bool_()),
        pa.field("is_g20", pa.bool_()),
    ]
    return pa.schema(fields)


def normalize_column_name(name: str) -> str:
    """Convert a raw header to snake_case, e.g. ' HIV/AIDS' -> 'hiv_aids'."""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def missing_columns(columns: List[str]) -> List[str]:
    """Return the schema columns absent from a normalized header."""
    present = set(columns)
    return [name for name in RAW_SCHEMA_V1 if name not in present]


def column_descriptions() -> Dict[str, str]:
    return {name: spec["description"] for name, spec in RAW_SCHEMA_V1.items()}
