"""Master dataset assembly.

Joins each scored row to the same country's baseline-year row, computes
the improvement between the baseline and comparison years, ranks life
expectancy within a year and attaches country classifications.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from lifeexp.classification import G7_COUNTRIES, G20_COUNTRIES, CountryClassification
from lifeexp.logging_config import create_logger
from lifeexp.models import MasterRecord, ScoredRecord, widen

logger = create_logger(__name__)

DEFAULT_BASELINE_YEAR = 2000
DEFAULT_COMPARISON_YEAR = 2015


def competition_rank(values: Sequence[Optional[float]]) -> List[Optional[int]]:
    """Rank values descending with ties sharing a rank (1, 1, 3).

    Null values are not ranked.
    """
    order = sorted(
        (index for index, value in enumerate(values) if value is not None),
        key=lambda index: values[index],
        reverse=True,
    )
    ranks: List[Optional[int]] = [None] * len(values)
    previous_value = None
    previous_rank = 0
    for position, index in enumerate(order, start=1):
        value = values[index]
        if position == 1 or value != previous_value:
            previous_rank = position
            previous_value = value
        ranks[index] = previous_rank
    return ranks


def _global_ranks(
    records: Sequence[ScoredRecord], rank_years: Optional[set]
) -> Dict[int, Optional[int]]:
    by_year: Dict[int, List[int]] = defaultdict(list)
    for index, record in enumerate(records):
        if rank_years is None or record.year in rank_years:
            by_year[record.year].append(index)

    ranks: Dict[int, Optional[int]] = {}
    for indices in by_year.values():
        year_ranks = competition_rank([records[i].life_expectancy for i in indices])
        ranks.update(zip(indices, year_ranks))
    return ranks


def assemble(
    scored: Iterable[ScoredRecord],
    baseline_year: int = DEFAULT_BASELINE_YEAR,
    comparison_year: int = DEFAULT_COMPARISON_YEAR,
    classifications: Optional[Mapping[str, CountryClassification]] = None,
    rank_all_years: bool = False,
) -> List[MasterRecord]:
    """Build master records sorted by (country, year).

    :param baseline_year: Year whose life expectancy is carried on every
        row of the country as ``life_exp_2000``
    :param comparison_year: Year whose rows get ``improvement_since_2000``
        and, unless `rank_all_years`, the only populated ``global_rank``
    :param classifications: Region and income group by standardized name
    """
    records = sorted(scored, key=lambda r: (r.country, r.year))
    classifications = classifications or {}

    baseline: Dict[str, Optional[float]] = {}
    for record in records:
        if record.year == baseline_year:
            baseline.setdefault(record.country, record.life_expectancy)

    ranks = _global_ranks(records, None if rank_all_years else {comparison_year})

    master = []
    for index, record in enumerate(records):
        life_exp_baseline = baseline.get(record.country)
        improvement = None
        if (
            record.year == comparison_year
            and record.life_expectancy is not None
            and life_exp_baseline is not None
        ):
            improvement = record.life_expectancy - life_exp_baseline

        classification = classifications.get(record.country)
        master.append(
            widen(
                MasterRecord,
                record,
                life_exp_2000=life_exp_baseline,
                improvement_since_2000=improvement,
                global_rank=ranks.get(index),
                region=classification.region if classification else None,
                income_group=classification.income_group if classification else None,
                is_g7=record.country in G7_COUNTRIES,
                is_g20=record.country in G20_COUNTRIES,
            )
        )

    ranked = sum(1 for record in master if record.global_rank is not None)
    logger.info(
        f"Assembled {len(master)} master records "
        f"({ranked} ranked, baseline {baseline_year}, comparison {comparison_year})"
    )
    return master
