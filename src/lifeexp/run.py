"""Run the life expectancy pipeline end to end.

Reads the raw panel CSV, profiles it, builds the master dataset and
writes it to DuckDB and Parquet.

Usage:
    python -m lifeexp.run --input data/raw/Life_Expectancy_Data.csv
    python -m lifeexp.run --output data/master/master.parquet --db :memory:
"""

import argparse
import os
import sys
import time
from typing import Optional

import duckdb

from lifeexp import config
from lifeexp.catalog import MasterStore
from lifeexp.classification import load_classifications
from lifeexp.entity_resolver import EntityResolver, load_mapping_table
from lifeexp.ingest import Ingest
from lifeexp.logging_config import create_logger, log_exception
from lifeexp.pipeline import PipelineResult, run_pipeline
from lifeexp.quality_metrics import QualityMetrics

# Initialize logger
logger = create_logger(__name__)


class Pipeline:
    """Orchestrate ingest, quality assessment, transformation and export."""

    def __init__(
        self,
        input_path: Optional[str] = None,
        output_path: Optional[str] = None,
        db_path: Optional[str] = None,
    ) -> None:
        self.input_path = input_path or os.path.join(config.RAW_DATA_DIR, config.RAW_FILE_NAME)
        self.output_path = output_path or os.path.join(config.OUTPUT_DIR, "master.parquet")
        self.db_path = db_path or config.DB_PATH
        self.con = duckdb.connect()

    def build_resolver(self) -> EntityResolver:
        if config.COUNTRY_MAPPING_PATH:
            return EntityResolver(load_mapping_table(config.COUNTRY_MAPPING_PATH))
        return EntityResolver()

    def load_classifications(self):
        if config.CLASSIFICATION_PATH:
            return load_classifications(config.CLASSIFICATION_PATH, self.con)
        logger.warning("CLASSIFICATION_PATH not set, region and income group stay empty")
        return {}

    def run(self) -> PipelineResult:
        """Run every step.

        :raises PipelineBaseError: If any step fails
        """
        start_time = time.time()
        try:
            config.validate_config()

            ingest = Ingest(self.con)
            raw_records = ingest.load_csv(self.input_path)
            raw_table = ingest.create_raw_table(raw_records)

            metrics = QualityMetrics(self.con).assess(raw_table)
            for issue in metrics.issues:
                logger.warning(f"Raw data issue: {issue}")

            result = run_pipeline(
                raw_records,
                resolver=self.build_resolver(),
                baseline_year=config.BASELINE_YEAR,
                comparison_year=config.COMPARISON_YEAR,
                classifications=self.load_classifications(),
                rank_all_years=config.RANK_ALL_YEARS,
                max_workers=config.DERIVE_MAX_WORKERS,
            )

            store = MasterStore(self.db_path)
            try:
                store.write(result.records)
                store.to_parquet(self.output_path)
            finally:
                store.close()

            duration = time.time() - start_time
            logger.info(
                f"Pipeline completed successfully: {result.raw_count} raw rows, "
                f"{len(result.records)} master rows, {len(result.countries)} countries "
                f"in {duration:.2f}s"
            )
            return result

        except Exception as e:
            log_exception(logger, e, {"context": "Pipeline run", "input": self.input_path})
            raise
        finally:
            self.con.close()


def main(argv=None) -> int:
    """Main entry point for the pipeline CLI."""
    parser = argparse.ArgumentParser(
        description="Build the life expectancy master dataset from the raw panel"
    )
    parser.add_argument("--input", type=str, help="Raw panel CSV (default: RAW_DATA_DIR/RAW_FILE_NAME)")
    parser.add_argument("--output", type=str, help="Master Parquet file (default: OUTPUT_DIR/master.parquet)")
    parser.add_argument("--db", type=str, help="DuckDB database for the master table (default: DB_PATH)")
    args = parser.parse_args(argv)

    try:
        Pipeline(args.input, args.output, args.db).run()
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
