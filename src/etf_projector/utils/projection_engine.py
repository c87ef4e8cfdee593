from __future__ import annotations

from typing import Any, List, Mapping, Union

from etf_projector.core.schemas import ProjectionInput, ProjectionPoint, ProjectionResult

MONTHS_PER_YEAR = 12


def _monthly_rate(annual_rate_percent: float) -> float:
    # nominal annual rate, compounded monthly
    return annual_rate_percent / 100.0 / MONTHS_PER_YEAR


def effective_annual_rate(annual_rate_percent: float) -> float:
    """Effective yearly growth in percent for a nominal rate compounded monthly."""
    mr = _monthly_rate(annual_rate_percent)
    return ((1.0 + mr) ** MONTHS_PER_YEAR - 1.0) * 100.0


def normalize_input(raw: Union[ProjectionInput, Mapping[str, Any], None]) -> ProjectionInput:
    if isinstance(raw, ProjectionInput):
        return raw
    if raw is None:
        return ProjectionInput()
    if not isinstance(raw, Mapping):
        return ProjectionInput()
    return ProjectionInput.model_validate(dict(raw))


def project(inputs: Union[ProjectionInput, Mapping[str, Any], None]) -> ProjectionResult:
    """Year-by-year balance of a deposit plus monthly contributions.

    Each month growth is applied to the running balance first and the
    contribution is added afterwards, so a deposit earns nothing in the month
    it is made. No rounding and no floor: a negative rate can push the
    balance below zero.
    """
    p = normalize_input(inputs)

    mr = _monthly_rate(p.annual_rate_percent)
    monthly = p.monthly_contribution

    balance = p.initial_deposit
    total_contributed = p.initial_deposit
    series: List[ProjectionPoint] = [
        ProjectionPoint(year_index=0, balance=balance, contributed=total_contributed)
    ]

    for year in range(1, p.horizon_years + 1):
        for _ in range(MONTHS_PER_YEAR):
            balance = balance * (1.0 + mr) + monthly
            total_contributed += monthly
        series.append(ProjectionPoint(year_index=year, balance=balance, contributed=total_contributed))

    return ProjectionResult(
        series=series,
        final_balance=balance,
        total_contributed=total_contributed,
        total_growth=balance - total_contributed,
        inputs=p,
    )
