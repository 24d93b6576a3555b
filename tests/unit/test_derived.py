"""Unit tests for the derived metrics engine.

Tests cover:
- Per-capita values and rates
- Immunization averages over present fields only
- Lag fields looked up by year
- Serial and threaded runs agreeing
"""

import pytest

from lifeexp.derived import derive, derive_country, immunization_average
from lifeexp.exceptions import DuplicateRecordError


@pytest.mark.unit
class TestPerRecordMetrics:
    """Test metrics computed from a single record."""

    def test_per_capita_and_rates(self, make_cleaned):
        """Test GDP per capita, health spending and mortality rates."""
        [record] = derive(
            [
                make_cleaned(
                    gdp=50_000.0,
                    population=1_000.0,
                    total_expenditure=10.0,
                    infant_deaths=5.0,
                    under_five_deaths=8.0,
                    life_expectancy=70.0,
                )
            ]
        )

        assert record.gdp_per_capita == pytest.approx(50.0)
        assert record.health_expenditure_per_capita == pytest.approx(5.0)
        assert record.infant_mortality_rate == pytest.approx(5.0)
        assert record.under_five_mortality_rate == pytest.approx(8.0)
        assert record.health_spending_efficiency == pytest.approx(7.0)

    def test_missing_population_nulls_ratios(self, make_cleaned):
        """Test a missing denominator gives null instead of failing."""
        [record] = derive([make_cleaned(gdp=50_000.0, infant_deaths=5.0)])

        assert record.gdp_per_capita is None
        assert record.health_expenditure_per_capita is None
        assert record.infant_mortality_rate is None

    def test_efficiency_requires_positive_expenditure(self, make_cleaned):
        """Test zero health expenditure gives null efficiency."""
        [record] = derive([make_cleaned(life_expectancy=70.0, total_expenditure=0.0)])

        assert record.health_spending_efficiency is None

    def test_immunization_average_divides_by_present_count(self, make_cleaned):
        """Test the mean uses only non-null coverages."""
        assert immunization_average(make_cleaned(hepatitis_b=90.0, polio=80.0)) == 85.0
        assert immunization_average(make_cleaned(diphtheria=70.0)) == 70.0
        assert immunization_average(make_cleaned()) is None


@pytest.mark.unit
class TestLagFields:
    """Test year-over-year fields."""

    def test_one_year_change(self, make_cleaned):
        """Test the change against the previous year."""
        records = derive(
            [
                make_cleaned(year=2001, life_expectancy=71.5),
                make_cleaned(year=2000, life_expectancy=70.0),
            ]
        )

        assert [r.year for r in records] == [2000, 2001]
        assert records[0].life_exp_change_1yr is None
        assert records[1].life_exp_change_1yr == pytest.approx(1.5)

    def test_gap_year_breaks_one_year_change(self, make_cleaned):
        """Test a missing 1999 leaves the 2000 change null even with 1998 present."""
        records = derive(
            [
                make_cleaned(year=1998, life_expectancy=68.0),
                make_cleaned(year=2000, life_expectancy=70.0),
            ]
        )

        assert records[1].year == 2000
        assert records[1].life_exp_change_1yr is None

    def test_five_year_change(self, make_cleaned):
        """Test the change against five years earlier."""
        records = derive(
            [
                make_cleaned(year=2010, life_expectancy=72.0),
                make_cleaned(year=2015, life_expectancy=75.0),
                make_cleaned(year=2014, life_expectancy=74.0),
            ]
        )

        by_year = {r.year: r for r in records}
        assert by_year[2015].life_exp_change_5yr == pytest.approx(3.0)
        assert by_year[2014].life_exp_change_5yr is None
        assert by_year[2015].life_exp_change_1yr == pytest.approx(1.0)

    def test_gdp_growth_rate(self, make_cleaned):
        """Test growth of GDP per capita against the previous year."""
        records = derive(
            [
                make_cleaned(year=2000, gdp=1_000.0, population=10.0),
                make_cleaned(year=2001, gdp=1_100.0, population=10.0),
            ]
        )

        assert records[1].gdp_growth_rate == pytest.approx(10.0)

    def test_gdp_growth_needs_positive_prior(self, make_cleaned):
        """Test a zero prior GDP per capita gives null growth."""
        records = derive(
            [
                make_cleaned(year=2000, gdp=0.0, population=10.0),
                make_cleaned(year=2001, gdp=1_100.0, population=10.0),
            ]
        )

        assert records[1].gdp_growth_rate is None

    def test_countries_do_not_leak_into_each_other(self, make_cleaned):
        """Test lags only use the same country's series."""
        records = derive(
            [
                make_cleaned("A", 2000, life_expectancy=60.0),
                make_cleaned("B", 2001, life_expectancy=80.0),
            ]
        )

        assert all(r.life_exp_change_1yr is None for r in records)

    def test_duplicate_year_is_rejected(self, make_cleaned):
        """Test a series with a repeated year raises."""
        with pytest.raises(DuplicateRecordError):
            derive_country([make_cleaned(year=2000), make_cleaned(year=2000)])


@pytest.mark.unit
class TestParallelDerive:
    """Test deriving across countries in a thread pool."""

    def test_threaded_matches_serial(self, make_cleaned):
        """Test results and order are independent of max_workers."""
        cleaned = [
            make_cleaned(country, year, life_expectancy=50.0 + year - 2000 + i)
            for i, country in enumerate(["Chad", "Peru", "Fiji", "Oman"])
            for year in (2002, 2000, 2001)
        ]

        assert derive(cleaned, max_workers=4) == derive(cleaned)
