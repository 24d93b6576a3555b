"""Data quality assessment for the life expectancy panel.

Two parts:

- duplicate key detection over resolved (country, year) keys, used by
  the pipeline to keep the first-seen row of each duplicate group
- SQL profiling of the raw DuckDB table: missing values per column,
  implausible values, raw duplicates and incomplete country timelines
"""

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import duckdb

from lifeexp.logging_config import create_logger
from lifeexp.schema import RAW_SCHEMA_V1

logger = create_logger(__name__)


@dataclass(frozen=True)
class DuplicateReport:
    """Duplicate keys found in a batch.

    Attributes:
        groups: Key -> number of rows sharing it (only keys seen more than once)
        kept_indices: Index of the first-seen row for every key
        dropped_indices: Indices of the later rows of duplicate groups
    """

    groups: Dict[Hashable, int] = field(default_factory=dict)
    kept_indices: Tuple[int, ...] = ()
    dropped_indices: Tuple[int, ...] = ()

    @property
    def duplicate_group_count(self) -> int:
        return len(self.groups)

    @property
    def duplicate_row_count(self) -> int:
        return len(self.dropped_indices)

    def is_duplicated(self, key: Hashable) -> bool:
        return key in self.groups


def detect_duplicates(keys: Sequence[Hashable]) -> DuplicateReport:
    """Find repeated keys; the first occurrence of each key is kept."""
    counts = Counter(keys)
    seen = set()
    kept: List[int] = []
    dropped: List[int] = []
    for index, key in enumerate(keys):
        if key in seen:
            dropped.append(index)
        else:
            seen.add(key)
            kept.append(index)

    groups = {key: count for key, count in counts.items() if count > 1}
    for key, count in sorted(groups.items(), key=lambda item: str(item[0])):
        logger.warning(f"Duplicate key {key}: {count} rows, keeping the first")

    return DuplicateReport(
        groups=groups, kept_indices=tuple(kept), dropped_indices=tuple(dropped)
    )


@dataclass
class ColumnCompleteness:
    column: str
    missing_count: int
    missing_percentage: float
    band: str


@dataclass
class DatasetMetrics:
    """Data quality metrics for the raw panel."""

    dataset_name: str
    timestamp: str
    total_records: int
    total_countries: int
    total_years: int
    year_range_min: int
    year_range_max: int
    duplicate_count: int
    completeness_percentage: float
    column_completeness: List[ColumnCompleteness]
    outliers: Dict[str, int]
    incomplete_timelines: List[str]
    issues: List[str]


# (label, SQL condition) pairs counted as implausible raw values
OUTLIER_CHECKS: Tuple[Tuple[str, str], ...] = (
    ("Life Expectancy > 90", "life_expectancy > 90"),
    ("Life Expectancy < 35", "life_expectancy < 35"),
    ("Adult Mortality > 700", "adult_mortality > 700"),
    ("BMI > 60", "bmi > 60"),
    ("BMI < 15", "bmi < 15"),
    (
        "Immunization Coverage > 100%",
        "hepatitis_b > 100 OR polio > 100 OR diphtheria > 100",
    ),
    ("Zero Population", "population = 0 OR population IS NULL"),
)


def completeness_band(missing_count: int, total_records: int) -> str:
    if missing_count == 0:
        return "Complete"
    if missing_count < total_records * 0.05:
        return "Good (<5% missing)"
    if missing_count < total_records * 0.20:
        return "Moderate (5-20% missing)"
    return "Poor (>20% missing)"


class QualityMetrics:
    """Calculate data quality metrics for a raw panel table."""

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None):
        """Initialize quality metrics calculator.

        Args:
            connection: DuckDB connection. If None, creates a new connection.
        """
        self.con = connection if connection else duckdb.connect()
        logger.info("Quality metrics calculator initialized")

    def column_completeness(
        self, table_name: str, columns: Optional[Iterable[str]] = None
    ) -> List[ColumnCompleteness]:
        """Count missing values per column, worst column first.

        Args:
            table_name: Fully qualified table name (e.g. 'source.life_expectancy')
            columns: Columns to profile; every schema column by default
        """
        columns = list(columns or RAW_SCHEMA_V1)
        counts = ", ".join(f"COUNT(*) - COUNT({column})" for column in columns)
        try:
            result = self.con.execute(
                f"SELECT COUNT(*), {counts} FROM {table_name}"
            ).fetchone()
        except duckdb.Error as e:
            logger.error(f"Error profiling missing values for {table_name}: {e}")
            raise

        total = int(result[0])
        profile = [
            ColumnCompleteness(
                column=column,
                missing_count=int(missing),
                missing_percentage=round(100.0 * missing / total, 2) if total else 0.0,
                band=completeness_band(int(missing), total),
            )
            for column, missing in zip(columns, result[1:])
        ]
        profile.sort(key=lambda c: (-c.missing_percentage, c.column))
        return profile

    def outlier_counts(self, table_name: str) -> Dict[str, int]:
        """Count rows violating each plausibility check; zero counts are omitted."""
        counts = {}
        for label, condition in OUTLIER_CHECKS:
            try:
                result = self.con.execute(
                    f"SELECT COUNT(*) FROM {table_name} WHERE {condition}"
                ).fetchone()
            except duckdb.Error as e:
                logger.error(f"Error counting '{label}' in {table_name}: {e}")
                raise
            if result[0]:
                counts[label] = int(result[0])
        logger.info(f"Outliers in {table_name}: {counts}")
        return counts

    def count_duplicates(
        self, table_name: str, grain_columns: Sequence[str] = ("country", "year")
    ) -> int:
        """Count grain values appearing more than once."""
        grain_str = ", ".join(grain_columns)
        result = self.con.execute(
            f"""
            SELECT COUNT(*) FROM (
                SELECT {grain_str}
                FROM {table_name}
                GROUP BY {grain_str}
                HAVING COUNT(*) > 1
            )
            """
        ).fetchone()
        duplicates = int(result[0]) if result and result[0] is not None else 0
        logger.info(f"Duplicate groups in {table_name}: {duplicates}")
        return duplicates

    def incomplete_timelines(self, table_name: str) -> List[str]:
        """Countries observed in fewer distinct years than the whole panel spans."""
        rows = self.con.execute(
            f"""
            SELECT country
            FROM {table_name}
            GROUP BY country
            HAVING COUNT(DISTINCT year) < (SELECT COUNT(DISTINCT year) FROM {table_name})
            ORDER BY country
            """
        ).fetchall()
        return [row[0] for row in rows]

    def get_year_range(self, table_name: str) -> Tuple[int, int]:
        result = self.con.execute(f"SELECT MIN(year), MAX(year) FROM {table_name}").fetchone()
        if result and result[0] is not None and result[1] is not None:
            return (int(result[0]), int(result[1]))
        return (0, 0)

    def assess(self, table_name: str) -> DatasetMetrics:
        """Calculate every metric for the raw table.

        Args:
            table_name: Fully qualified table name

        Returns:
            DatasetMetrics object with all calculated metrics
        """
        logger.info(f"Calculating metrics for {table_name}")

        total_records, total_countries, total_years = self.con.execute(
            f"""
            SELECT COUNT(*), COUNT(DISTINCT country), COUNT(DISTINCT year)
            FROM {table_name}
            """
        ).fetchone()

        profile = self.column_completeness(table_name)
        outliers = self.outlier_counts(table_name)
        duplicate_count = self.count_duplicates(table_name)
        incomplete = self.incomplete_timelines(table_name)
        year_min, year_max = self.get_year_range(table_name)

        cells = total_records * len(profile)
        missing_cells = sum(c.missing_count for c in profile)
        completeness = round(100.0 * (cells - missing_cells) / cells, 2) if cells else 0.0

        issues = []
        for column in profile:
            if column.band.startswith("Poor"):
                issues.append(
                    f"{column.column} is {column.missing_percentage:.2f}% missing"
                )
        for label, count in outliers.items():
            issues.append(f"{label}: {count} rows")
        if duplicate_count > 0:
            issues.append(f"Found {duplicate_count} duplicate country-year groups")
        if incomplete:
            issues.append(f"{len(incomplete)} countries have incomplete timelines")

        metrics = DatasetMetrics(
            dataset_name=table_name,
            timestamp=datetime.now().isoformat(),
            total_records=int(total_records),
            total_countries=int(total_countries),
            total_years=int(total_years),
            year_range_min=year_min,
            year_range_max=year_max,
            duplicate_count=duplicate_count,
            completeness_percentage=completeness,
            column_completeness=profile,
            outliers=outliers,
            incomplete_timelines=incomplete,
            issues=issues,
        )
        logger.info(
            f"Metrics calculated for {table_name}: {completeness}% complete, "
            f"{len(issues)} issues"
        )
        return metrics

    def export_metrics_json(self, metrics: DatasetMetrics, output_path: str) -> None:
        """Export metrics to a JSON file."""
        with open(output_path, "w") as f:
            json.dump(asdict(metrics), f, indent=2)
        logger.info(f"Metrics exported to {output_path}")
