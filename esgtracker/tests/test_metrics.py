"""
Unit tests for the ESG Metrics Engine.

Pure functions, no database. Ratios are compared with pytest.approx
(tolerance 1e-9) except where exact ordering of the float operations matters.
"""
import math

import pytest

from esgtracker.questionnaire.metrics import PERCENT, compute_metrics, safe_ratio
from esgtracker.questionnaire.schemas import DerivedMetrics, ESGRawData
from esgtracker.tests.demo_data import EXPECTED_METRICS, VALID_2023, VALID_2024, with_changes


def _raw(data: dict) -> ESGRawData:
    return ESGRawData.model_validate(data)


# ---------------------------------------------------------------------------
# Test Group 1: safe_ratio
# ---------------------------------------------------------------------------

def test_safe_ratio_plain_division() -> None:
    assert safe_ratio(5, 1000) == pytest.approx(0.005, abs=1e-9)


def test_safe_ratio_scales_after_dividing() -> None:
    """scale * (a / b), not (scale * a) / b."""
    assert safe_ratio(1, 3, PERCENT) == PERCENT * (1 / 3)


@pytest.mark.parametrize(
    "numerator, denominator",
    [(None, 10), (10, None), (None, None), (10, 0), (0, 0), (10, 0.0)],
)
def test_safe_ratio_undefined_is_none(numerator, denominator) -> None:
    assert safe_ratio(numerator, denominator) is None


def test_safe_ratio_zero_numerator_is_zero() -> None:
    assert safe_ratio(0, 100, PERCENT) == 0.0


def test_safe_ratio_overflow_is_none() -> None:
    assert safe_ratio(1e308, 1e-308) is None


# ---------------------------------------------------------------------------
# Test Group 2: compute_metrics
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("year, data", [(2023, VALID_2023), (2024, VALID_2024)])
def test_compute_metrics_demo_years(year: int, data: dict) -> None:
    metrics = compute_metrics(_raw(data))
    expected = EXPECTED_METRICS[year]

    assert metrics.carbon_intensity == pytest.approx(expected["carbonIntensity"], abs=1e-9)
    assert metrics.renewable_electricity_ratio == pytest.approx(
        expected["renewableElectricityRatio"], abs=1e-9
    )
    assert metrics.diversity_ratio == pytest.approx(expected["diversityRatio"], abs=1e-9)
    assert metrics.community_spend_ratio == pytest.approx(
        expected["communitySpendRatio"], abs=1e-9
    )


def test_carbon_intensity_is_exact_quotient() -> None:
    data = with_changes(VALID_2023, carbonEmissions=7.3, totalRevenue=123456.0)
    assert compute_metrics(_raw(data)).carbon_intensity == 7.3 / 123456.0


def test_zero_revenue_nulls_both_revenue_ratios() -> None:
    metrics = compute_metrics(_raw(with_changes(VALID_2023, totalRevenue=0)))

    assert metrics.carbon_intensity is None
    assert metrics.community_spend_ratio is None
    # Unrelated ratios are still computed
    assert metrics.renewable_electricity_ratio == pytest.approx(40.0)
    assert metrics.diversity_ratio == pytest.approx(40.0)


def test_missing_operands_yield_none() -> None:
    metrics = compute_metrics(_raw({"totalElectricityConsumption": 100}))

    assert metrics == DerivedMetrics()
    for value in metrics.model_dump().values():
        assert value is None


def test_empty_record_never_produces_nan() -> None:
    metrics = compute_metrics(ESGRawData())
    for value in metrics.model_dump().values():
        assert value is None or math.isfinite(value)


def test_compute_metrics_is_idempotent() -> None:
    raw = _raw(VALID_2024)
    assert compute_metrics(raw) == compute_metrics(raw)


def test_client_sent_derived_fields_are_ignored() -> None:
    """Derived values echoed back by a client never reach the engine."""
    raw = _raw(with_changes(VALID_2023, carbonIntensity=999, diversityRatio=-1))

    assert "carbon_intensity" not in raw.model_dump()
    assert compute_metrics(raw).carbon_intensity == pytest.approx(0.005)
