"""Catalog module for the master dataset.

`MasterStore` persists master records to a DuckDB table through ibis and
answers the read-side queries built on it: row lookup, one year's cross
section, quality-filtered subsets and grouped summaries.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

import ibis
import pandas as pd
import pyarrow as pa

from lifeexp.exceptions import ExportError
from lifeexp.logging_config import create_logger, log_exception
from lifeexp.models import MasterRecord
from lifeexp.schema import master_arrow_schema

# Set up logging
logger = create_logger(__name__)

MASTER_TABLE_NAME = "master"

# Grouping columns accepted by `summarize_by`
SUMMARY_COLUMNS = ("region", "income_group", "status", "year")


def to_arrow(records: Sequence[MasterRecord]) -> pa.Table:
    """Convert master records to an Arrow table with the master schema."""
    return pa.Table.from_pylist(
        [asdict(record) for record in records], schema=master_arrow_schema()
    )


def _to_records(table: pa.Table) -> List[MasterRecord]:
    return [MasterRecord(**row) for row in table.to_pylist()]


class MasterStore:
    """Master table in a DuckDB database, accessed through ibis."""

    def __init__(self, db_path: str = ":memory:", table_name: str = MASTER_TABLE_NAME):
        self.db_path = db_path
        self.table_name = table_name
        self.con = ibis.duckdb.connect(db_path)

    def write(self, records: Sequence[MasterRecord]) -> None:
        """Create or replace the master table.

        :raises ExportError: If the table cannot be created
        """
        try:
            self.con.create_table(self.table_name, obj=to_arrow(records), overwrite=True)
            logger.info(
                f"🗄️ Table '{self.table_name}' written to {self.db_path} "
                f"with {len(records)} rows"
            )
        except Exception as e:
            log_exception(logger, e, context="DuckDB Creation")
            raise ExportError(f"Failed to write table '{self.table_name}': {e}")

    @property
    def table(self) -> ibis.Table:
        return self.con.table(self.table_name)

    def count(self) -> int:
        return int(self.table.count().execute())

    def lookup(self, country: str, year: int) -> Optional[MasterRecord]:
        """Return the record for a standardized country name and year."""
        t = self.table
        rows = _to_records(
            t.filter((t.country == country) & (t.year == year)).to_pyarrow()
        )
        return rows[0] if rows else None

    def for_year(self, year: int) -> List[MasterRecord]:
        """Cross section of one year, best life expectancy first."""
        t = self.table
        expr = t.filter(t.year == year).order_by(
            [ibis.desc(t.life_expectancy), t.country]
        )
        return _to_records(expr.to_pyarrow())

    def with_min_quality(
        self, threshold: int = 80, year: Optional[int] = None
    ) -> List[MasterRecord]:
        """Records whose quality score is at least `threshold` (60 or 80 in practice)."""
        t = self.table
        expr = t.filter(t.quality_score >= threshold)
        if year is not None:
            expr = expr.filter(expr.year == year)
        return _to_records(expr.order_by([expr.country, expr.year]).to_pyarrow())

    def summarize_by(
        self, column: str, year: Optional[int] = None, min_quality: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Aggregate the master table by `column`.

        Args:
            column: One of SUMMARY_COLUMNS
            year: Restrict to one year
            min_quality: Keep only rows with at least this quality score

        Returns:
            One dict per group ordered by the grouping value, nulls last
        """
        if column not in SUMMARY_COLUMNS:
            raise ValueError(
                f"Cannot summarize by '{column}', expected one of {SUMMARY_COLUMNS}"
            )

        expr = self.table
        if year is not None:
            expr = expr.filter(expr.year == year)
        if min_quality is not None:
            expr = expr.filter(expr.quality_score >= min_quality)

        summary = (
            expr.group_by(column)
            .aggregate(
                country_count=expr.country.nunique(),
                record_count=expr.count(),
                avg_life_expectancy=expr.life_expectancy.mean(),
                avg_health_system_performance=expr.health_system_performance_score.mean(),
                avg_disease_burden=expr.disease_burden_score.mean(),
                avg_social_determinants=expr.social_determinants_score.mean(),
                avg_improvement_since_2000=expr.improvement_since_2000.mean(),
            )
            .order_by(column)
        )
        return summary.to_pyarrow().to_pylist()

    def to_dataframe(self, year: Optional[int] = None) -> pd.DataFrame:
        """Master table (or one year of it) as a pandas DataFrame."""
        expr = self.table
        if year is not None:
            expr = expr.filter(expr.year == year)
        return expr.order_by([expr.country, expr.year]).execute()

    def to_parquet(self, local_path: str) -> None:
        """Save the master table as a Parquet file.

        :raises ExportError: If the file cannot be written
        """
        try:
            self.table.to_parquet(local_path)
            logger.info(f"💾 Master table saved to local Parquet file: {local_path}")
        except Exception as e:
            log_exception(logger, e, context="Parquet Save")
            raise ExportError(f"Failed to save Parquet file {local_path}: {e}")

    def close(self) -> None:
        self.con.disconnect()
