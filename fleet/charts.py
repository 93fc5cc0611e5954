from __future__ import annotations

from typing import Any, Dict, List, Mapping

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

SEVERITY_COLORS = {"high": "#ef4444", "medium": "#f59e0b", "low": "#10b981"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def daily_issues_chart(points: List[Dict[str, Any]]) -> Dict[str, Any]:
    df = pd.DataFrame(points, columns=["date", "sort_key", "issues", "severity"])
    chart = (
        alt.Chart(df)
        .mark_bar(cornerRadius=8)
        .encode(
            x=alt.X("date:N", title="Date", sort=df["date"].tolist()),
            y=alt.Y("issues:Q", title="Issues", axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(
                "severity:N",
                scale=alt.Scale(domain=list(SEVERITY_COLORS), range=list(SEVERITY_COLORS.values())),
                legend=None,
            ),
            tooltip=[alt.Tooltip("date:N", title="Date"), alt.Tooltip("issues:Q", title="Issues")],
        )
    )
    return to_vega_spec(chart)


def client_status_chart(breakdown: Mapping[str, int]) -> Dict[str, Any]:
    df = pd.DataFrame({"status": list(breakdown.keys()), "clients": list(breakdown.values())})
    chart = (
        alt.Chart(df)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("clients:Q"),
            color=alt.Color(
                "status:N",
                title="Status",
                scale=alt.Scale(domain=["All OK", "Has Issues"], range=["#10b981", "#ef4444"]),
            ),
            tooltip=[alt.Tooltip("status:N", title="Status"), alt.Tooltip("clients:Q", title="Clients")],
        )
    )
    return to_vega_spec(chart)
