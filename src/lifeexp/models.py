"""Record types flowing through the pipeline.

Each stage produces a new frozen record type that widens the previous
one: RawRecord -> CleanedRecord -> DerivedRecord -> ScoredRecord ->
MasterRecord. No stage mutates a record produced by an earlier stage.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from lifeexp.exceptions import RecordParseError
from lifeexp.schema import BASE_FIELDS

T = TypeVar("T")


def _parse_number(column: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise RecordParseError(f"Column '{column}' holds non-numeric value {value!r}")
    # NaN from pandas or an 'inf' literal carries no observation
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_year(value: Any) -> int:
    number = _parse_number("year", value)
    if number is None or not number.is_integer():
        raise RecordParseError(f"Year must be an integer, got {value!r}")
    return int(number)


def _parse_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class RawRecord:
    """One country-year observation exactly as received."""

    country: str
    year: int
    status: Optional[str] = None
    life_expectancy: Optional[float] = None
    adult_mortality: Optional[float] = None
    infant_deaths: Optional[float] = None
    alcohol: Optional[float] = None
    percentage_expenditure: Optional[float] = None
    hepatitis_b: Optional[float] = None
    measles: Optional[float] = None
    bmi: Optional[float] = None
    under_five_deaths: Optional[float] = None
    polio: Optional[float] = None
    total_expenditure: Optional[float] = None
    diphtheria: Optional[float] = None
    hiv_aids: Optional[float] = None
    gdp: Optional[float] = None
    population: Optional[float] = None
    thinness_1_19_years: Optional[float] = None
    thinness_5_9_years: Optional[float] = None
    income_composition_of_resources: Optional[float] = None
    schooling: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RawRecord":
        """Build a record from a row keyed by normalized column names.

        :raises RecordParseError: If the row has no country, a non-integer
            year, or non-numeric text in an indicator column
        """
        country = _parse_text(row.get("country"))
        if country is None:
            raise RecordParseError(f"Row is missing a country name: {dict(row)}")

        values = {name: _parse_number(name, row.get(name)) for name in BASE_FIELDS}
        return cls(
            country=str(row.get("country")),
            year=_parse_year(row.get("year")),
            status=_parse_text(row.get("status")),
            **values,
        )

    def base_values(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in BASE_FIELDS}


@dataclass(frozen=True)
class CountryIdentity:
    """Canonical identity a raw country string resolves to."""

    original_name: str
    standardized_name: str
    iso_code: Optional[str] = None


@dataclass(frozen=True)
class CleanedRecord:
    """Validated base fields keyed by (standardized country, year)."""

    country: str
    iso_code: Optional[str]
    year: int
    status: Optional[str]
    life_expectancy: Optional[float]
    adult_mortality: Optional[float]
    infant_deaths: Optional[float]
    alcohol: Optional[float]
    percentage_expenditure: Optional[float]
    hepatitis_b: Optional[float]
    measles: Optional[float]
    bmi: Optional[float]
    under_five_deaths: Optional[float]
    polio: Optional[float]
    total_expenditure: Optional[float]
    diphtheria: Optional[float]
    hiv_aids: Optional[float]
    gdp: Optional[float]
    population: Optional[float]
    thinness_1_19_years: Optional[float]
    thinness_5_9_years: Optional[float]
    income_composition_of_resources: Optional[float]
    schooling: Optional[float]
    # True when other raw rows shared this key and were dropped
    duplicate_flag: bool

    @property
    def key(self):
        return (self.country, self.year)

    def non_null_base_count(self) -> int:
        return sum(1 for name in BASE_FIELDS if getattr(self, name) is not None)


@dataclass(frozen=True)
class DerivedRecord(CleanedRecord):
    """Cleaned record plus per-capita, rate and lag fields."""

    gdp_per_capita: Optional[float]
    health_expenditure_per_capita: Optional[float]
    infant_mortality_rate: Optional[float]
    under_five_mortality_rate: Optional[float]
    immunization_coverage_avg: Optional[float]
    life_exp_change_1yr: Optional[float]
    life_exp_change_5yr: Optional[float]
    gdp_growth_rate: Optional[float]
    health_spending_efficiency: Optional[float]


@dataclass(frozen=True)
class ScoredRecord(DerivedRecord):
    """Derived record plus data-quality scores and composite indices."""

    completeness_score: float
    quality_score: int
    health_system_performance_score: float
    disease_burden_score: float
    social_determinants_score: float


@dataclass(frozen=True)
class MasterRecord(ScoredRecord):
    """Scored record plus cross-year comparison, ranking and classification."""

    life_exp_2000: Optional[float]
    improvement_since_2000: Optional[float]
    global_rank: Optional[int]
    region: Optional[str]
    income_group: Optional[str]
    is_g7: bool
    is_g20: bool


def widen(record_type: Type[T], base: Any, **extra: Any) -> T:
    """Build a wider record from every field of `base` plus `extra`."""
    values = {f.name: getattr(base, f.name) for f in fields(base)}
    values.update(extra)
    return record_type(**values)
