#!/usr/bin/env python3
"""Data quality report generation script.

This script profiles a raw life expectancy panel CSV: missing values per
column, implausible values, duplicate country-years and incomplete
country timelines.

Usage:
    python scripts/data_quality_report.py --input data/raw/Life_Expectancy_Data.csv
    python scripts/data_quality_report.py --format json --output reports/quality_metrics.json
"""

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

import duckdb
from lifeexp import config
from lifeexp.ingest import Ingest
from lifeexp.logging_config import create_logger
from lifeexp.quality_metrics import DatasetMetrics, QualityMetrics
from lifeexp.schema import RAW_V1_METADATA, column_descriptions

logger = create_logger(__name__)


class DataQualityReporter:
    """Generate data quality reports for the raw panel."""

    def __init__(self, connection: duckdb.DuckDBPyConnection = None):
        """Initialize the data quality reporter.

        Args:
            connection: DuckDB connection. If None, creates a new connection.
        """
        self.con = connection if connection else duckdb.connect()
        self.ingest = Ingest(self.con)
        self.metrics_calculator = QualityMetrics(self.con)
        logger.info("Data quality reporter initialized")

    def assess_file(self, input_path: str) -> DatasetMetrics:
        records = self.ingest.load_csv(input_path)
        table_name = self.ingest.create_raw_table(records)
        return self.metrics_calculator.assess(table_name)

    def generate_console_report(self, metrics: DatasetMetrics) -> None:
        """Print data quality report to console."""
        descriptions = column_descriptions()

        print("\n" + "=" * 80)
        print("LIFE EXPECTANCY DATA QUALITY REPORT")
        print("=" * 80)
        print(f"\nGenerated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

        print(f"Dataset: {metrics.dataset_name}")
        print(f"  Schema: v{RAW_V1_METADATA['version']} ({RAW_V1_METADATA['description']})")
        print(f"  Total Records: {metrics.total_records:,}")
        print(f"  Countries: {metrics.total_countries}")
        print(f"  Years: {metrics.total_years}")
        print(f"  Year Range: {metrics.year_range_min}-{metrics.year_range_max}")
        print(f"  Completeness: {metrics.completeness_percentage}%")
        print(f"  Duplicates: {metrics.duplicate_count}")

        print("\nMissing values:")
        for column in metrics.column_completeness:
            print(
                f"  {column.column:<34} {column.missing_count:>6} "
                f"({column.missing_percentage:>6.2f}%)  {column.band}"
            )
            print(f"    {descriptions.get(column.column, '')}")

        if metrics.outliers:
            print("\nImplausible values:")
            for label, count in metrics.outliers.items():
                print(f"  {label}: {count}")

        if metrics.issues:
            print(f"\nIssues:")
            for issue in metrics.issues:
                print(f"  - {issue}")
        else:
            print(f"\nNo issues detected")

        print("=" * 80 + "\n")

    def run_report(self, input_path: str, format: str = 'console', output_path: str = None) -> None:
        """Run data quality report generation.

        Args:
            input_path: Raw panel CSV
            format: Output format ('json' or 'console')
            output_path: Path to output file (json format only)
        """
        logger.info(f"Generating data quality report in {format} format")
        metrics = self.assess_file(input_path)

        if format == 'json':
            if not output_path:
                output_path = 'reports/quality_metrics.json'
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)
            self.metrics_calculator.export_metrics_json(metrics, output_path)
            print(f"\nJSON metrics exported: {output_path}")

        elif format == 'console':
            self.generate_console_report(metrics)

        else:
            raise ValueError(f"Unknown format: {format}")


def main():
    """Main entry point for data quality report script."""
    parser = argparse.ArgumentParser(
        description='Generate a data quality report for the raw life expectancy panel'
    )
    parser.add_argument(
        '--input',
        type=str,
        default=os.path.join(config.RAW_DATA_DIR, config.RAW_FILE_NAME),
        help='Raw panel CSV (default: RAW_DATA_DIR/RAW_FILE_NAME)'
    )
    parser.add_argument(
        '--format',
        choices=['json', 'console'],
        default='console',
        help='Output format (default: console)'
    )
    parser.add_argument(
        '--output',
        type=str,
        help='Output file path (json format)'
    )

    args = parser.parse_args()

    try:
        reporter = DataQualityReporter()
        reporter.run_report(args.input, format=args.format, output_path=args.output)
        print("\nData quality report completed successfully!")

    except Exception as e:
        logger.error(f"Error generating data quality report: {e}")
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
