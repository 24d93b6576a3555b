"""Data-quality scores and composite health indices.

Three composite indices, each on a 0-100 scale:

- health system performance: immunization (40%), inverse infant
  mortality (30%), health spending efficiency (30%)
- disease burden: 100 minus HIV/AIDS, adult mortality and measles
  penalties (higher means less burden)
- social determinants: schooling (40%), income composition (40%),
  nutrition via BMI band (20%)

A neutral prior replaces a component only when that component's own
input is null.
"""

from typing import Iterable, List, Optional

from lifeexp.logging_config import create_logger
from lifeexp.models import DerivedRecord, ScoredRecord, widen
from lifeexp.schema import BASE_FIELDS

logger = create_logger(__name__)

# Neutral priors for missing inputs. They are not fitted to data and can
# bias the indices of sparse records toward the middle of the scale.
DEFAULT_IMMUNIZATION_COVERAGE = 0.0
DEFAULT_INFANT_MORTALITY_COMPONENT = 50.0
DEFAULT_EFFICIENCY_COMPONENT = 50.0
DEFAULT_MEASLES_CONTRIBUTION = 10.0
DEFAULT_INCOME_COMPOSITION = 0.5

# Quality tiers evaluated top-down: (minimum non-null fields, requires life expectancy, score)
QUALITY_TIERS = (
    (17, True, 100),
    (15, True, 80),
    (12, True, 60),
    (10, False, 40),
)
LOWEST_QUALITY_SCORE = 20


def completeness_score(non_null_count: int) -> float:
    return round(non_null_count * 100.0 / len(BASE_FIELDS), 2)


def quality_score(non_null_count: int, has_life_expectancy: bool) -> int:
    for minimum, needs_life_expectancy, score in QUALITY_TIERS:
        if non_null_count >= minimum and (has_life_expectancy or not needs_life_expectancy):
            return score
    return LOWEST_QUALITY_SCORE


def health_system_performance(record: DerivedRecord) -> float:
    immunization = record.immunization_coverage_avg
    if immunization is None:
        immunization = DEFAULT_IMMUNIZATION_COVERAGE

    if record.infant_mortality_rate is None:
        infant_component = DEFAULT_INFANT_MORTALITY_COMPONENT
    else:
        infant_component = (1 - min(record.infant_mortality_rate / 100, 1)) * 100

    if record.health_spending_efficiency is None:
        efficiency_component = DEFAULT_EFFICIENCY_COMPONENT
    else:
        efficiency_component = min(record.health_spending_efficiency / 20 * 100, 100)

    return immunization * 0.4 + infant_component * 0.3 + efficiency_component * 0.3


def _measles_contribution(measles: Optional[float], population: Optional[float]) -> float:
    if measles is None or population is None or population <= 0:
        return DEFAULT_MEASLES_CONTRIBUTION
    return min(measles / population * 100_000, 20)


def disease_burden(record: DerivedRecord) -> float:
    hiv_penalty = min((record.hiv_aids or 0.0) * 2, 40)
    mortality_penalty = min((record.adult_mortality or 0.0) / 10, 40)
    measles_penalty = _measles_contribution(record.measles, record.population)
    return 100 - (hiv_penalty + mortality_penalty + measles_penalty)


def _nutrition_component(bmi: Optional[float]) -> float:
    if bmi is None:
        return 0.0
    if 18.5 <= bmi <= 30:
        return 20.0
    if 16 <= bmi <= 35:
        return 10.0
    return 0.0


def social_determinants(record: DerivedRecord) -> float:
    education = min((record.schooling or 0.0) * 5, 40)
    income = record.income_composition_of_resources
    if income is None:
        income = DEFAULT_INCOME_COMPOSITION
    return education + income * 100 * 0.4 + _nutrition_component(record.bmi)


def score(derived: DerivedRecord) -> ScoredRecord:
    """Attach completeness, quality tier and composite indices."""
    non_null = derived.non_null_base_count()
    return widen(
        ScoredRecord,
        derived,
        completeness_score=completeness_score(non_null),
        quality_score=quality_score(non_null, derived.life_expectancy is not None),
        health_system_performance_score=health_system_performance(derived),
        disease_burden_score=disease_burden(derived),
        social_determinants_score=social_determinants(derived),
    )


def score_all(derived: Iterable[DerivedRecord]) -> List[ScoredRecord]:
    scored = [score(record) for record in derived]
    high_quality = sum(1 for record in scored if record.quality_score >= 80)
    logger.info(
        f"Scored {len(scored)} records ({high_quality} with quality score >= 80)"
    )
    return scored
