import uuid

import streamlit as st

from etf_projector.core.config import SETTINGS
from etf_projector.utils.answer_format import format_currency, format_rate_hint
from etf_projector.utils.chart_data import growth_figure
from etf_projector.utils.logging import set_log_context, setup_logging
from etf_projector.utils.projection_engine import effective_annual_rate, project
from etf_projector.utils.rate_cache import build_rate_cache
from etf_projector.utils.rate_sources import RateSourceError
from etf_projector.web_app.ui_helpers import _badge

# Setup logging
setup_logging(SETTINGS.log_level)

st.set_page_config(page_title="ETF Growth Calculator", layout="wide")


# Session initialization
def _init_session() -> None:
    st.session_state.setdefault("session_id", str(uuid.uuid4()))
    st.session_state.setdefault("rate_cache", build_rate_cache())
    st.session_state.setdefault("return_rate", float(SETTINGS.default_annual_rate_percent))
    st.session_state.setdefault("_rate_hint", None)
    st.session_state.setdefault("_rate_hint_kind", "info")


def _fetch_rate(ticker: str) -> None:
    set_log_context(request_id=str(uuid.uuid4()), ticker=ticker.strip().upper())
    try:
        res = st.session_state["rate_cache"].resolve(ticker)
    except RateSourceError as e:
        st.session_state["_rate_hint"] = f"Rate lookup failed: {e}"
        st.session_state["_rate_hint_kind"] = "bad"
        return

    if res is None:
        return
    if not res.found:
        # keep the current rate, only report the miss
        st.session_state["_rate_hint"] = format_rate_hint(None)
        st.session_state["_rate_hint_kind"] = "bad"
        return

    st.session_state["return_rate"] = float(res.rate.annual_return_percent)
    hint = format_rate_hint(res.rate)
    if res.from_cache:
        hint += " · cached"
    st.session_state["_rate_hint"] = hint
    st.session_state["_rate_hint_kind"] = "ok"


_init_session()

st.title("ETF Growth Calculator")

col_l, col_r = st.columns([0.4, 0.6], gap="large")

with col_l:
    st.subheader("Inputs")

    ticker = st.text_input("ETF ticker", value="VOO")
    if st.button("Update Data"):
        _fetch_rate(ticker)
    if st.session_state["_rate_hint"]:
        _badge(st.session_state["_rate_hint"], st.session_state["_rate_hint_kind"])

    initial = st.number_input(
        "Initial deposit", min_value=0.0, value=float(SETTINGS.default_initial_deposit), step=500.0
    )
    monthly = st.number_input(
        "Monthly contribution", min_value=0.0, value=float(SETTINGS.default_monthly_contribution), step=50.0
    )
    years = st.slider(
        "Years", min_value=1, max_value=SETTINGS.max_horizon_years, value=int(SETTINGS.default_horizon_years)
    )
    rate = st.number_input("Annual return (%)", step=0.1, key="return_rate")
    st.caption(f"Compounded monthly: {effective_annual_rate(rate):.2f}% effective per year")

result = project(
    {
        "initial_deposit": initial,
        "monthly_contribution": monthly,
        "horizon_years": years,
        "annual_rate_percent": rate,
    }
)

with col_r:
    m1, m2, m3 = st.columns(3)
    m1.metric("Total value", format_currency(result.final_balance))
    m2.metric("Total contributed", format_currency(result.total_contributed))
    m3.metric("Interest earned", format_currency(result.total_growth))

    st.plotly_chart(growth_figure(result), use_container_width=True)
