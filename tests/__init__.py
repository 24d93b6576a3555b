"""Test suite for the life expectancy pipeline.

This package contains:
- Unit tests for each pipeline stage
- Integration tests running CSV to master dataset
- DuckDB tests for profiling and the master store
"""
