from __future__ import annotations

from typing import Any, Dict, Optional

from etf_projector.utils.projection_engine import project
from etf_projector.utils.rate_cache import RateCache, build_rate_cache

_ALIASES = {
    "initial_deposit": ("initial", "initial_investment", "current_savings"),
    "monthly_contribution": ("monthly", "monthly_investment"),
    "horizon_years": ("years", "time_horizon_years"),
    "annual_rate_percent": ("rate", "return_rate", "expected_return"),
}


def tool_project(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    p = dict(payload or {})

    # map common aliases -> canonical ProjectionInput fields
    for field, aliases in _ALIASES.items():
        if field in p:
            continue
        for alias in aliases:
            if alias in p:
                p[field] = p[alias]
                break

    out = project(p)
    return out.model_dump()


def tool_resolve_rate(ticker: Optional[str], cache: Optional[RateCache] = None) -> Dict[str, Any]:
    rc = cache or build_rate_cache()
    res = rc.resolve(ticker)
    if res is None:
        return {"status": "skipped", "ticker": "", "rate": None}
    return res.model_dump()
