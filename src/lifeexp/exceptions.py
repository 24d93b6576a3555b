"""
Custom exceptions for the life expectancy pipeline.

Only structural problems are raised. Out-of-domain values, unresolved
country names, missing lag records and duplicate country-years are
recovered inside the stages and reported as counts instead.
"""


class PipelineBaseError(Exception):
    """
    Base exception for all pipeline-related errors.

    All custom exceptions in the pipeline inherit from this class.
    """

    pass


class ConfigurationError(PipelineBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Configuration values are invalid (e.g. baseline after comparison year)
    - A country mapping or classification file cannot be read
    - Environment setup is incorrect
    """

    pass


class IngestError(PipelineBaseError):
    """
    Raised during the ingestion of the raw panel.

    Covers errors specific to data ingestion, including:
    - Missing input files
    - CSV reading failures
    """

    pass


class SchemaError(IngestError):
    """
    Raised when the raw table does not carry the expected columns.
    """

    pass


class RecordParseError(IngestError):
    """
    Raised when a raw row cannot be parsed.

    Covers:
    - Missing country name
    - Non-integer year
    - Non-numeric text in an indicator column
    """

    pass


class EmptyInputError(IngestError):
    """
    Raised when a batch contains no raw records at all.
    """

    pass


class DuplicateRecordError(PipelineBaseError):
    """
    Raised when a stage that requires unique (country, year) keys
    receives duplicates. The pipeline deduplicates before these stages,
    so this signals a caller bypassing that step.
    """

    pass


class ExportError(PipelineBaseError):
    """
    Raised when writing the master dataset fails.

    Covers issues such as:
    - DuckDB table creation failures
    - Parquet export failures
    """

    pass
