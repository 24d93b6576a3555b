"""Derived metrics: per-capita values, rates, immunization averages and
year-over-year changes.

Lag fields look up the same country's record by year value (``year - 1``,
``year - 5``), never by row position, so a gap in the series yields a
null instead of comparing against an older year.
"""

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence

from lifeexp.exceptions import DuplicateRecordError
from lifeexp.logging_config import create_logger
from lifeexp.models import CleanedRecord, DerivedRecord, widen

logger = create_logger(__name__)

IMMUNIZATION_FIELDS = ("hepatitis_b", "polio", "diphtheria")


def per_population(value: Optional[float], population: Optional[float], scale: float = 1.0):
    if value is None or population is None or population <= 0:
        return None
    return value * scale / population


def immunization_average(record: CleanedRecord) -> Optional[float]:
    """Mean of whichever immunization coverages are present."""
    present = [getattr(record, name) for name in IMMUNIZATION_FIELDS]
    present = [value for value in present if value is not None]
    if not present:
        return None
    return sum(present) / len(present)


def health_spending_efficiency(record: CleanedRecord) -> Optional[float]:
    if record.life_expectancy is None or record.total_expenditure is None:
        return None
    if record.total_expenditure <= 0:
        return None
    return record.life_expectancy / record.total_expenditure


def _difference(current: Optional[float], earlier: Optional[float]) -> Optional[float]:
    if current is None or earlier is None:
        return None
    return current - earlier


def _growth_rate(current: Optional[float], earlier: Optional[float]) -> Optional[float]:
    if current is None or earlier is None or earlier <= 0:
        return None
    return (current - earlier) / earlier * 100


def derive_country(records: Sequence[CleanedRecord]) -> List[DerivedRecord]:
    """Derive metrics for one country's series.

    :raises DuplicateRecordError: If two records share a year
    """
    by_year: Dict[int, CleanedRecord] = {}
    for record in records:
        if record.year in by_year:
            raise DuplicateRecordError(
                f"Duplicate record for {record.country} in {record.year}"
            )
        by_year[record.year] = record

    gdp_per_capita = {
        year: per_population(record.gdp, record.population)
        for year, record in by_year.items()
    }

    derived = []
    for year in sorted(by_year):
        record = by_year[year]
        previous = by_year.get(year - 1)
        five_back = by_year.get(year - 5)

        current_gdp_pc = gdp_per_capita[year]
        health_pc = None
        if current_gdp_pc is not None and record.total_expenditure is not None:
            health_pc = current_gdp_pc * (record.total_expenditure / 100)

        derived.append(
            widen(
                DerivedRecord,
                record,
                gdp_per_capita=current_gdp_pc,
                health_expenditure_per_capita=health_pc,
                infant_mortality_rate=per_population(
                    record.infant_deaths, record.population, 1000
                ),
                under_five_mortality_rate=per_population(
                    record.under_five_deaths, record.population, 1000
                ),
                immunization_coverage_avg=immunization_average(record),
                life_exp_change_1yr=_difference(
                    record.life_expectancy,
                    previous.life_expectancy if previous else None,
                ),
                life_exp_change_5yr=_difference(
                    record.life_expectancy,
                    five_back.life_expectancy if five_back else None,
                ),
                gdp_growth_rate=_growth_rate(
                    current_gdp_pc, gdp_per_capita.get(year - 1)
                ),
                health_spending_efficiency=health_spending_efficiency(record),
            )
        )
    return derived


def derive(
    cleaned: Iterable[CleanedRecord], max_workers: Optional[int] = None
) -> List[DerivedRecord]:
    """Derive metrics for every country, returning records sorted by
    (country, year).

    Countries are independent series, so with `max_workers` they are
    processed in a thread pool; the output is the same as a serial run.
    """
    series: Dict[str, List[CleanedRecord]] = defaultdict(list)
    for record in cleaned:
        series[record.country].append(record)

    countries = sorted(series)
    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(lambda c: derive_country(series[c]), countries))
    else:
        results = [derive_country(series[country]) for country in countries]

    derived = [record for country_records in results for record in country_records]
    logger.info(f"Derived metrics for {len(derived)} records across {len(countries)} countries")
    return derived
