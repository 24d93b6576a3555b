"""Composition of the pipeline stages.

    raw records -> resolve -> deduplicate -> clean -> derive -> score -> assemble

Every stage is a pure function of its input; the same raw records and
settings always give the same master records.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from lifeexp.assembler import DEFAULT_BASELINE_YEAR, DEFAULT_COMPARISON_YEAR, assemble
from lifeexp.classification import CountryClassification
from lifeexp.cleaning import clean_all
from lifeexp.derived import derive
from lifeexp.entity_resolver import EntityResolver
from lifeexp.exceptions import EmptyInputError
from lifeexp.logging_config import create_logger
from lifeexp.models import MasterRecord, RawRecord
from lifeexp.quality_metrics import DuplicateReport, detect_duplicates
from lifeexp.scoring import score_all

logger = create_logger(__name__)


@dataclass
class PipelineResult:
    """Master records plus what each stage recovered from."""

    records: List[MasterRecord]
    duplicates: DuplicateReport
    unresolved_names: List[str] = field(default_factory=list)
    cleaning_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    raw_count: int = 0

    @property
    def countries(self) -> List[str]:
        return sorted({record.country for record in self.records})


def run_pipeline(
    raw_records: Sequence[RawRecord],
    resolver: Optional[EntityResolver] = None,
    baseline_year: int = DEFAULT_BASELINE_YEAR,
    comparison_year: int = DEFAULT_COMPARISON_YEAR,
    classifications: Optional[Mapping[str, CountryClassification]] = None,
    rank_all_years: bool = False,
    max_workers: Optional[int] = None,
) -> PipelineResult:
    """Run every stage over a batch of raw records.

    Duplicate (standardized country, year) keys keep their first-seen
    row, flagged with ``duplicate_flag``; later rows are dropped.

    :raises EmptyInputError: If `raw_records` is empty
    """
    if not raw_records:
        raise EmptyInputError("No raw records to process")

    resolver = resolver or EntityResolver()
    logger.info(f"Processing {len(raw_records)} raw records")

    identities, unresolved = resolver.resolve_all(record.country for record in raw_records)
    resolved = [(record, identities[record.country]) for record in raw_records]

    duplicates = detect_duplicates(
        [(identity.standardized_name, record.year) for record, identity in resolved]
    )
    entries = []
    for index in duplicates.kept_indices:
        record, identity = resolved[index]
        key = (identity.standardized_name, record.year)
        entries.append((record, identity, duplicates.is_duplicated(key)))

    cleaned, cleaning_counts = clean_all(entries)
    derived = derive(cleaned, max_workers=max_workers)
    scored = score_all(derived)
    master = assemble(
        scored,
        baseline_year=baseline_year,
        comparison_year=comparison_year,
        classifications=classifications,
        rank_all_years=rank_all_years,
    )

    logger.info(
        f"Pipeline produced {len(master)} master records "
        f"({duplicates.duplicate_row_count} duplicate rows dropped)"
    )
    return PipelineResult(
        records=master,
        duplicates=duplicates,
        unresolved_names=unresolved,
        cleaning_counts=cleaning_counts,
        raw_count=len(raw_records),
    )
