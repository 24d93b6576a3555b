"""Field validation and cleaning against plausibility bounds.

Every base field has an independent rule: an ordered list of checks
where the first violated check decides the outcome (null the value, or
replace it with a cap/floor). Infant and under-five deaths additionally
become null when they exceed a share of the raw population.
"""

import operator
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from lifeexp.logging_config import create_logger
from lifeexp.models import CleanedRecord, CountryIdentity, RawRecord
from lifeexp.schema import BASE_FIELDS

logger = create_logger(__name__)

NULLED = "nulled"
REPLACED = "replaced"

_COMPARISONS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@dataclass(frozen=True)
class Check:
    """A bound such as ``> 100 -> null`` or ``> 90 -> 90``."""

    comparison: str
    threshold: float
    replacement: Optional[float] = None

    def violated_by(self, value: float) -> bool:
        return _COMPARISONS[self.comparison](value, self.threshold)


@dataclass(frozen=True)
class FieldRule:
    field: str
    checks: Tuple[Check, ...] = ()
    # Null the value when it exceeds this share of the raw population
    max_population_share: Optional[float] = None

    def apply(
        self, value: Optional[float], population: Optional[float] = None
    ) -> Tuple[Optional[float], Optional[str]]:
        """Return the cleaned value and the outcome (None when unchanged)."""
        if value is None:
            return None, None

        for check in self.checks:
            if check.violated_by(value):
                if check.replacement is None:
                    return None, NULLED
                return check.replacement, REPLACED

        if (
            self.max_population_share is not None
            and population is not None
            and population > 0
            and value > population * self.max_population_share
        ):
            return None, NULLED

        return value, None


def _null(comparison: str, threshold: float) -> Check:
    return Check(comparison, threshold)


def _to(comparison: str, threshold: float, replacement: float) -> Check:
    return Check(comparison, threshold, replacement)


def _immunization(field: str) -> FieldRule:
    # Coverage above 100% is kept as "high" by capping at 99
    return FieldRule(field, (_to(">", 100, 99), _null("<", 0)))


FIELD_RULES: Dict[str, FieldRule] = {
    rule.field: rule
    for rule in (
        FieldRule("life_expectancy", (_null(">", 100), _null("<", 20), _to(">", 90, 90))),
        FieldRule(
            "adult_mortality", (_null(">", 1000), _null("<", 0), _to(">", 700, 700))
        ),
        FieldRule("infant_deaths", (_to("<", 0, 0),), max_population_share=0.1),
        FieldRule("alcohol", (_to("<", 0, 0), _null(">", 25))),
        FieldRule("percentage_expenditure", (_to("<", 0, 0),)),
        _immunization("hepatitis_b"),
        FieldRule("measles", (_to("<", 0, 0),)),
        FieldRule("bmi", (_null("<", 10), _null(">", 60))),
        FieldRule("under_five_deaths", (_to("<", 0, 0),), max_population_share=0.2),
        _immunization("polio"),
        FieldRule("total_expenditure", (_null("<", 0), _null(">", 20))),
        _immunization("diphtheria"),
        FieldRule("hiv_aids", (_to("<", 0, 0), _null(">", 50))),
        FieldRule("gdp", (_null("<", 0), _null(">", 200_000))),
        FieldRule("population", (_null("<=", 0), _null(">", 2_000_000_000))),
        FieldRule("thinness_1_19_years", (_null("<", 0), _null(">", 50))),
        FieldRule("thinness_5_9_years", (_null("<", 0), _null(">", 50))),
        FieldRule(
            "income_composition_of_resources", (_to("<", 0, 0), _to(">", 1, 1))
        ),
        FieldRule("schooling", (_null("<", 0), _null(">", 25))),
    )
}


def clean_with_outcomes(
    raw: RawRecord, identity: CountryIdentity, duplicate_flag: bool = False
) -> Tuple[CleanedRecord, Dict[str, str]]:
    """Clean one record and report which fields were nulled or replaced."""
    values: Dict[str, Optional[float]] = {}
    outcomes: Dict[str, str] = {}
    for name, rule in FIELD_RULES.items():
        cleaned, outcome = rule.apply(getattr(raw, name), raw.population)
        values[name] = cleaned
        if outcome:
            outcomes[name] = outcome

    record = CleanedRecord(
        country=identity.standardized_name,
        iso_code=identity.iso_code,
        year=raw.year,
        status=raw.status,
        duplicate_flag=duplicate_flag,
        **values,
    )
    return record, outcomes


def clean(
    raw: RawRecord, identity: CountryIdentity, duplicate_flag: bool = False
) -> CleanedRecord:
    """Apply every field rule to `raw` under the resolved `identity`."""
    record, _ = clean_with_outcomes(raw, identity, duplicate_flag)
    return record


def clean_all(
    entries: Iterable[Tuple[RawRecord, CountryIdentity, bool]],
) -> Tuple[List[CleanedRecord], Dict[str, Dict[str, int]]]:
    """Clean a batch of (raw, identity, duplicate_flag) entries.

    :return: cleaned records in input order, and per-field counts of
        nulled and replaced values
    """
    records: List[CleanedRecord] = []
    counts: Dict[str, Counter] = defaultdict(Counter)
    for raw, identity, duplicate_flag in entries:
        record, outcomes = clean_with_outcomes(raw, identity, duplicate_flag)
        records.append(record)
        for name, outcome in outcomes.items():
            counts[name][outcome] += 1

    summary = {name: dict(counts[name]) for name in BASE_FIELDS if name in counts}
    for name, field_counts in summary.items():
        logger.info(
            f"Cleaned {name}: {field_counts.get(NULLED, 0)} nulled, "
            f"{field_counts.get(REPLACED, 0)} capped or floored"
        )
    logger.info(f"Cleaned {len(records)} records")
    return records, summary
