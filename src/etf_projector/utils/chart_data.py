from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go

from etf_projector.core.schemas import ProjectionResult
from etf_projector.utils.answer_format import format_axis_tick, format_currency


def series_frame(result: ProjectionResult) -> pd.DataFrame:
    rows = [
        {
            "year": pt.year_index,
            "label": pt.label,
            "balance": pt.balance,
            "contributed": pt.contributed,
            "growth": pt.balance - pt.contributed,
        }
        for pt in result.series
    ]
    return pd.DataFrame(rows, columns=["year", "label", "balance", "contributed", "growth"])


def growth_figure(result: ProjectionResult, currency: str = "USD") -> go.Figure:
    """Filled line of portfolio value with the contributed amount underneath."""
    df = series_frame(result)

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=df["label"],
            y=df["contributed"],
            name="Contributed",
            mode="lines",
            line=dict(color="#94a3b8", width=2, dash="dot"),
            hovertemplate="%{customdata}<extra>Contributed</extra>",
            customdata=[format_currency(v, currency) for v in df["contributed"]],
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["label"],
            y=df["balance"],
            name="Portfolio Value",
            mode="lines+markers",
            line=dict(color="#2563eb", width=3, shape="spline"),
            fill="tozeroy",
            fillcolor="rgba(37, 99, 235, 0.25)",
            marker=dict(size=6),
            hovertemplate="%{customdata}<extra>Portfolio Value</extra>",
            customdata=[format_currency(v, currency) for v in df["balance"]],
        )
    )

    lo = min(0.0, float(df["balance"].min()))
    hi = max(float(df["balance"].max()), float(df["contributed"].max()))
    ticks = [lo + (hi - lo) * i / 4 for i in range(5)] if hi > lo else [lo]
    fig.update_layout(
        hovermode="x unified",
        showlegend=True,
        margin=dict(l=10, r=10, t=30, b=10),
        yaxis=dict(tickvals=ticks, ticktext=[format_axis_tick(t) for t in ticks], gridcolor="#334155"),
        xaxis=dict(showgrid=False),
    )
    return fig
