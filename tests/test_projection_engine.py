from __future__ import annotations

import math

import pytest

from etf_projector.core.schemas import ProjectionInput
from etf_projector.utils.projection_engine import effective_annual_rate, project

# balance after 10 years of the monthly recurrence, pinned once
GOLDEN_10K_500_10Y_10PCT = 129492.9043603574


def test_series_length_and_first_point():
    for initial, monthly, years in [(0, 0, 0), (1000, 0, 1), (2500.5, 125, 7), (0, 300, 30)]:
        out = project(ProjectionInput(initial_deposit=initial, monthly_contribution=monthly,
                                      horizon_years=years, annual_rate_percent=6))
        assert len(out.series) == years + 1
        assert [pt.year_index for pt in out.series] == list(range(years + 1))
        assert out.series[0].balance == initial
        assert out.series[0].contributed == initial


def test_monotonic_for_non_negative_rate_and_contribution():
    for rate in (0.0, 0.5, 8.0, 25.0):
        for monthly in (0.0, 100.0):
            out = project(ProjectionInput(initial_deposit=1000, monthly_contribution=monthly,
                                          horizon_years=15, annual_rate_percent=rate))
            balances = [pt.balance for pt in out.series]
            assert all(b2 >= b1 for b1, b2 in zip(balances, balances[1:]))


def test_zero_horizon():
    out = project(ProjectionInput(initial_deposit=1234.5, monthly_contribution=100,
                                  horizon_years=0, annual_rate_percent=10))
    assert len(out.series) == 1
    assert out.final_balance == 1234.5
    assert out.total_contributed == 1234.5
    assert out.total_growth == 0


def test_reference_scenario():
    out = project(ProjectionInput(initial_deposit=10000, monthly_contribution=500,
                                  horizon_years=10, annual_rate_percent=10))
    assert out.series[0].balance == 10000
    assert out.total_contributed == 70000
    assert out.series[-1].contributed == 70000
    assert out.final_balance > out.total_contributed
    assert out.final_balance == pytest.approx(GOLDEN_10K_500_10Y_10PCT, rel=1e-9)
    assert out.total_growth == pytest.approx(GOLDEN_10K_500_10Y_10PCT - 70000, rel=1e-9)
    assert out.series[1].balance == pytest.approx(17329.9147208908, rel=1e-9)


def test_growth_applied_before_contribution():
    # one year, contribution only: deposits earn nothing in their own month
    out = project(ProjectionInput(initial_deposit=0, monthly_contribution=100,
                                  horizon_years=1, annual_rate_percent=12))
    expected = sum(100 * 1.01 ** k for k in range(12))
    assert out.final_balance == pytest.approx(expected, rel=1e-12)


def test_negative_rate_decays_without_clamping():
    out = project(ProjectionInput(initial_deposit=1000, monthly_contribution=0,
                                  horizon_years=5, annual_rate_percent=-100))
    balances = [pt.balance for pt in out.series]
    assert all(not math.isnan(b) for b in balances)
    assert all(b > 0 for b in balances)
    assert all(b2 < b1 for b1, b2 in zip(balances, balances[1:]))
    assert out.final_balance == pytest.approx(1000 * (11 / 12) ** 60, rel=1e-9)
    assert out.total_growth < 0


def test_extreme_negative_rates_follow_recurrence():
    # monthly factor -1: the sign flips every month, twelve flips land back on the deposit
    out = project(ProjectionInput(initial_deposit=1000, horizon_years=1, annual_rate_percent=-2400))
    assert out.final_balance == pytest.approx(1000)
    # monthly factor -0.5
    out = project(ProjectionInput(initial_deposit=1000, horizon_years=1, annual_rate_percent=-1800))
    assert out.final_balance == pytest.approx(1000 * 0.5 ** 12)
    # monthly factor 0 wipes the balance, leaving only the last contribution
    out = project(ProjectionInput(initial_deposit=1000, monthly_contribution=50,
                                  horizon_years=2, annual_rate_percent=-1200))
    assert out.final_balance == pytest.approx(50)
    assert out.total_growth == pytest.approx(50 - (1000 + 50 * 24))


def test_project_accepts_raw_mapping():
    out = project({"initial_deposit": "10000", "monthly_contribution": "500",
                   "horizon_years": "10", "annual_rate_percent": "10"})
    assert out.final_balance == pytest.approx(GOLDEN_10K_500_10Y_10PCT, rel=1e-9)
    assert out.inputs.horizon_years == 10


def test_project_none_uses_defaults():
    out = project(None)
    assert len(out.series) == 11
    assert out.final_balance == 0
    assert out.total_growth == 0


def test_project_is_deterministic():
    p = ProjectionInput(initial_deposit=5000, monthly_contribution=250, horizon_years=20, annual_rate_percent=7.5)
    assert project(p).model_dump() == project(p).model_dump()


def test_effective_rate_exceeds_nominal():
    assert effective_annual_rate(8) == pytest.approx(8.29995, abs=1e-4)
    assert effective_annual_rate(0) == 0
    assert effective_annual_rate(-6) < 0
