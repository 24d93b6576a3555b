"""Unit tests for data-quality scores and composite indices."""

import pytest

from lifeexp.schema import BASE_FIELDS
from lifeexp.scoring import (
    DEFAULT_EFFICIENCY_COMPONENT,
    DEFAULT_INFANT_MORTALITY_COMPONENT,
    DEFAULT_MEASLES_CONTRIBUTION,
    completeness_score,
    disease_burden,
    health_system_performance,
    quality_score,
    score,
    score_all,
    social_determinants,
)


def _filled(count, with_life_expectancy=True):
    """Base field values with `count` non-null entries."""
    names = [name for name in BASE_FIELDS if name != "life_expectancy"]
    values = {name: 1.0 for name in names[: count - 1 if with_life_expectancy else count]}
    if with_life_expectancy:
        values["life_expectancy"] = 70.0
    return values


@pytest.mark.unit
class TestQualityScores:
    """Test completeness and quality tiers."""

    def test_completeness_of_ten_fields(self):
        """Test 10 of 19 fields gives 52.63."""
        assert completeness_score(10) == 52.63

    def test_completeness_bounds(self):
        """Test the empty and full records."""
        assert completeness_score(0) == 0.0
        assert completeness_score(19) == 100.0

    @pytest.mark.parametrize(
        "count, has_life_expectancy, expected",
        [
            (19, True, 100),
            (17, True, 100),
            (16, True, 80),
            (15, True, 80),
            (12, True, 60),
            (11, True, 40),
            (10, True, 40),
            (17, False, 40),
            (10, False, 40),
            (9, True, 20),
            (0, False, 20),
        ],
    )
    def test_quality_tiers(self, count, has_life_expectancy, expected):
        """Test the first matching tier wins."""
        assert quality_score(count, has_life_expectancy) == expected

    def test_score_counts_record_fields(self, make_derived):
        """Test scoring a record with 17 fields with and without life expectancy."""
        with_le = score(make_derived(**_filled(17)))
        without_le = score(make_derived(**_filled(17, with_life_expectancy=False)))

        assert with_le.quality_score == 100
        assert without_le.quality_score == 40
        assert with_le.completeness_score == round(17 * 100 / 19, 2)

    def test_score_of_ten_fields(self, make_derived):
        """Test completeness through the scoring stage."""
        assert score(make_derived(**_filled(10))).completeness_score == 52.63


@pytest.mark.unit
class TestHealthSystemPerformance:
    """Test the health system performance index."""

    def test_all_components_present(self, make_derived):
        """Test the weighted blend."""
        record = make_derived(
            immunization_coverage_avg=90.0,
            infant_mortality_rate=20.0,
            health_spending_efficiency=10.0,
        )

        assert health_system_performance(record) == pytest.approx(36 + 24 + 15)

    def test_components_are_capped(self, make_derived):
        """Test infant mortality and efficiency caps."""
        record = make_derived(
            immunization_coverage_avg=100.0,
            infant_mortality_rate=250.0,
            health_spending_efficiency=40.0,
        )

        assert health_system_performance(record) == pytest.approx(40 + 0 + 30)

    def test_defaults_for_missing_inputs(self, make_derived):
        """Test neutral priors replace missing components only."""
        record = make_derived()
        expected = (
            DEFAULT_INFANT_MORTALITY_COMPONENT * 0.3 + DEFAULT_EFFICIENCY_COMPONENT * 0.3
        )

        assert health_system_performance(record) == pytest.approx(expected)

    def test_zero_infant_mortality_is_not_defaulted(self, make_derived):
        """Test a zero rate is a real observation, not a missing one."""
        record = make_derived(infant_mortality_rate=0.0)

        assert health_system_performance(record) == pytest.approx(30 + 15)


@pytest.mark.unit
class TestDiseaseBurden:
    """Test the disease burden index."""

    def test_penalties(self, make_derived):
        """Test HIV, mortality and measles penalties."""
        record = make_derived(
            hiv_aids=5.0, adult_mortality=150.0, measles=50.0, population=1_000_000.0
        )

        assert disease_burden(record) == pytest.approx(100 - (10 + 15 + 5))

    def test_penalties_are_capped(self, make_derived):
        """Test each penalty's cap."""
        record = make_derived(
            hiv_aids=45.0, adult_mortality=700.0, measles=1e6, population=1_000.0
        )

        assert disease_burden(record) == pytest.approx(0.0)

    def test_missing_measles_uses_default(self, make_derived):
        """Test the measles default when population is unknown."""
        record = make_derived(measles=50.0)

        assert disease_burden(record) == pytest.approx(100 - DEFAULT_MEASLES_CONTRIBUTION)


@pytest.mark.unit
class TestSocialDeterminants:
    """Test the social determinants index."""

    @pytest.mark.parametrize(
        "bmi, nutrition",
        [(22.0, 20), (18.5, 20), (30.0, 20), (17.0, 10), (33.0, 10), (15.0, 0), (40.0, 0)],
    )
    def test_bmi_bands(self, make_derived, bmi, nutrition):
        """Test nutrition component bands."""
        record = make_derived(bmi=bmi, schooling=10.0, income_composition_of_resources=0.5)

        assert social_determinants(record) == pytest.approx(40 + 20 + nutrition)

    def test_defaults(self, make_derived):
        """Test missing schooling, income and BMI."""
        assert social_determinants(make_derived()) == pytest.approx(20.0)

    def test_schooling_cap(self, make_derived):
        """Test schooling contributes at most 40."""
        record = make_derived(schooling=20.0, income_composition_of_resources=1.0)

        assert social_determinants(record) == pytest.approx(40 + 40)


@pytest.mark.unit
def test_score_all_keeps_order(make_derived):
    """Test batch scoring keeps input order and derived fields."""
    records = [make_derived("B", 2015, gdp_per_capita=5.0), make_derived("A", 2014)]

    scored = score_all(records)

    assert [r.country for r in scored] == ["B", "A"]
    assert scored[0].gdp_per_capita == 5.0
