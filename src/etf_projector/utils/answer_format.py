from __future__ import annotations

from typing import Optional

from etf_projector.core.schemas import ProjectionResult, RateInfo

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "JPY": "¥"}


def format_currency(value: float, currency: str = "USD", decimals: int = 0) -> str:
    symbol = _CURRENCY_SYMBOLS.get((currency or "").upper(), f"{currency} ")
    amount = round(float(value), decimals)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_axis_tick(value: float) -> str:
    """Compact y-axis label: 130000 -> '$130k'."""
    k = float(value) / 1000.0
    txt = f"{k:,.1f}".rstrip("0").rstrip(".")
    return f"${txt}k"


def format_rate_hint(rate: Optional[RateInfo]) -> str:
    if rate is None:
        return "Ticker not found in database"
    return (
        f"Loaded for {rate.display_name or rate.ticker} · "
        f"Avg. Return: {rate.annual_return_percent:g}% | Div. Yield: {rate.dividend_yield_percent:g}%"
    )


def format_projection_md(result: ProjectionResult, currency: str = "USD") -> str:
    p = result.inputs
    lines = [
        f"## Projection over **{p.horizon_years}** years at **{p.annual_rate_percent:g}%**",
        f"- Total value: **{format_currency(result.final_balance, currency)}**",
        f"- Total contributed: **{format_currency(result.total_contributed, currency)}**",
        f"- Interest earned: **{format_currency(result.total_growth, currency)}**",
    ]
    return "\n".join(lines)
