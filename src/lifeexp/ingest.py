"""Ingest module for the raw life expectancy panel.

Reads the panel CSV with DuckDB, normalizes its header onto the raw
schema, parses every row into a `RawRecord` and loads the typed rows
into a DuckDB table for quality profiling.
"""

import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import duckdb

from lifeexp.exceptions import EmptyInputError, IngestError, SchemaError
from lifeexp.logging_config import create_logger
from lifeexp.models import RawRecord
from lifeexp.schema import (
    BASE_FIELDS,
    RAW_SCHEMA_V1,
    missing_columns,
    normalize_column_name,
    raw_table_ddl,
)

# Initialize logger
logger = create_logger(__name__)

RAW_TABLE_NAME = "source.life_expectancy"


def normalize_header(columns: Sequence[str]) -> List[str]:
    """Normalize a raw header and check it against the raw schema.

    :raises SchemaError: If required columns are missing or two raw
        columns normalize to the same name
    """
    normalized = [normalize_column_name(column) for column in columns]

    seen = set()
    for raw_name, name in zip(columns, normalized):
        if name in seen:
            raise SchemaError(f"Column '{raw_name}' duplicates normalized column '{name}'")
        seen.add(name)

    missing = missing_columns(normalized)
    if missing:
        raise SchemaError(f"Input is missing required columns: {', '.join(missing)}")

    extra = [name for name in normalized if name not in RAW_SCHEMA_V1]
    if extra:
        logger.warning(f"Ignoring columns outside the raw schema: {', '.join(extra)}")
    return normalized


def parse_rows(rows: Iterable[Mapping[str, Any]]) -> List[RawRecord]:
    """Parse rows keyed by normalized column names.

    :raises EmptyInputError: If there are no rows
    :raises RecordParseError: If any row cannot be parsed
    """
    records = [RawRecord.from_row(row) for row in rows]
    if not records:
        raise EmptyInputError("The raw panel contains no records")
    return records


class Ingest:
    """Load the raw panel from CSV.

    Key features:
    - Read CSV files through DuckDB without type inference
    - Normalize the public header onto the snake_case raw schema
    - Create a typed raw table for SQL quality checks
    """

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None) -> None:
        """Initialize the ingest process.

        Args:
            connection: DuckDB connection. If None, creates an in-memory one.
        """
        logger.info("Initializing Ingest Process")
        self.con = connection if connection else duckdb.connect()
        self.total_rows_processed = 0

    def read_csv(self, local_file_path: str) -> List[Dict[str, Optional[str]]]:
        """Read a CSV into rows keyed by normalized column names.

        Every value is read as text; numeric parsing happens in `RawRecord`.

        :raises IngestError: If the file is missing or unreadable
        :raises SchemaError: If the header does not match the raw schema
        """
        if not os.path.isfile(local_file_path):
            raise IngestError(f"Input file not found: {local_file_path}")

        logger.info(f"Reading raw panel from {local_file_path}")
        try:
            cursor = self.con.execute(
                "SELECT * FROM read_csv(?, header = true, all_varchar = true)",
                [local_file_path],
            )
            columns = [description[0] for description in cursor.description]
            values = cursor.fetchall()
        except duckdb.Error as e:
            raise IngestError(f"Unable to read {local_file_path}: {e}")

        header = normalize_header(columns)
        return [dict(zip(header, row)) for row in values]

    def load_csv(self, local_file_path: str) -> List[RawRecord]:
        """Read and parse the raw panel.

        :raises EmptyInputError: If the file has a header but no rows
        """
        records = parse_rows(self.read_csv(local_file_path))
        self.total_rows_processed += len(records)
        logger.info(f"Parsed {len(records)} raw records from {local_file_path}")
        return records

    def create_raw_table(
        self, records: Sequence[RawRecord], table_name: str = RAW_TABLE_NAME
    ) -> str:
        """Replace `table_name` with the typed raw records.

        Returns:
            The fully qualified table name
        """
        if "." in table_name:
            schema_name = table_name.split(".", 1)[0]
            self.con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema_name}")

        logger.info(f"Creating table {table_name}")
        self.con.execute(f"DROP TABLE IF EXISTS {table_name}")
        self.con.execute(raw_table_ddl(table_name))

        columns = ("country", "year", "status") + BASE_FIELDS
        placeholders = ", ".join("?" for _ in columns)
        rows = [
            [record.country, record.year, record.status]
            + [getattr(record, name) for name in BASE_FIELDS]
            for record in records
        ]
        if rows:
            self.con.executemany(
                f"INSERT INTO {table_name} ({', '.join(columns)}) VALUES ({placeholders})",
                rows,
            )

        row_count = self.con.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]
        logger.info(f"Table {table_name} created with {row_count} rows")
        return table_name
