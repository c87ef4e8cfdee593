from __future__ import annotations

import math
import numbers
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

# Horizons past this are treated like garbage input, not clamped.
MAX_HORIZON_YEARS = 1000

DEFAULT_INITIAL_DEPOSIT = 0.0
DEFAULT_MONTHLY_CONTRIBUTION = 0.0
DEFAULT_HORIZON_YEARS = 10
DEFAULT_ANNUAL_RATE_PERCENT = 0.0


def _to_float(value: Any, default: Optional[float]) -> Optional[float]:
    """Best-effort numeric parse. Anything unusable yields `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return default
    if not isinstance(value, (str, numbers.Real, Decimal)):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError, ArithmeticError):
        return default
    if not math.isfinite(out):
        return default
    return out


# -------------------------
# Projection
# -------------------------

class ProjectionInput(BaseModel):
    """Calculator inputs.

    Raw UI values are coerced rather than rejected: missing, non-numeric,
    non-finite or out-of-range values fall back to the field default.
    """

    model_config = ConfigDict(extra="ignore")

    initial_deposit: float = Field(default=DEFAULT_INITIAL_DEPOSIT, ge=0)
    monthly_contribution: float = Field(default=DEFAULT_MONTHLY_CONTRIBUTION, ge=0)
    horizon_years: int = Field(default=DEFAULT_HORIZON_YEARS, ge=0, le=MAX_HORIZON_YEARS)
    annual_rate_percent: float = Field(
        default=DEFAULT_ANNUAL_RATE_PERCENT,
        description="Nominal annual rate in percent, compounded monthly. May be negative.",
    )

    @field_validator("initial_deposit", "monthly_contribution", mode="before")
    @classmethod
    def _coerce_amount(cls, v: Any) -> float:
        x = _to_float(v, 0.0)
        return x if x >= 0 else 0.0

    @field_validator("horizon_years", mode="before")
    @classmethod
    def _coerce_horizon(cls, v: Any) -> int:
        x = _to_float(v, None)
        if x is None or x < 0 or x > MAX_HORIZON_YEARS:
            return DEFAULT_HORIZON_YEARS
        return int(x)

    @field_validator("annual_rate_percent", mode="before")
    @classmethod
    def _coerce_rate(cls, v: Any) -> float:
        return _to_float(v, DEFAULT_ANNUAL_RATE_PERCENT)


class ProjectionPoint(BaseModel):
    year_index: int = Field(..., ge=0)
    balance: float
    contributed: float = Field(..., description="Cumulative deposits up to and including this year.")

    @property
    def label(self) -> str:
        return f"Year {self.year_index}"


class ProjectionResult(BaseModel):
    series: List[ProjectionPoint]
    final_balance: float
    total_contributed: float
    total_growth: float
    inputs: ProjectionInput


# -------------------------
# Reference rates
# -------------------------

class RateInfo(BaseModel):
    """Growth-rate assumption for one ticker. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    annual_return_percent: float
    dividend_yield_percent: float = 0.0
    display_name: str = ""
    source: Optional[str] = None

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        t = (v or "").strip().upper()
        if not t:
            raise ValueError("ticker is empty")
        return t


ResolutionStatus = Literal["hit", "fresh", "not_found"]


class RateResolution(BaseModel):
    status: ResolutionStatus
    ticker: str
    cache_key: str
    rate: Optional[RateInfo] = None

    @property
    def found(self) -> bool:
        return self.rate is not None

    @property
    def from_cache(self) -> bool:
        return self.status == "hit"
