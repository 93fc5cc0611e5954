from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from fleet.aggregate import VehicleObservation
from fleet.charts import client_status_chart, daily_issues_chart
from fleet.config import MISALIGNED_STATUS, OFFLINE_STATUS, PipelineConfig
from fleet.pipeline import DashboardResult
from fleet.text import get_date_sort_key, month_of
from fleet.views import is_problem


SEARCH_FIELDS = (
    "vehicle",
    "client",
    "location",
    "working_status",
    "alignment_status",
    "vehicle_type",
    "remarks",
)

TABLE_COLUMNS = {
    "clients": {
        "sno": "S.No",
        "client_name": "Client Name",
        "vehicle_count": "Vehicle Count",
        "vehicle_numbers": "Vehicle Numbers",
        "problem_vehicles": "Problem Vehicles",
        "status": "Status",
    },
    "cities": {
        "sno": "S.No",
        "city_name": "City / Location",
        "vehicle_count": "Vehicle Count",
        "vehicle_numbers": "Vehicle Numbers",
        "problem_vehicles": "Problem Vehicles",
        "status": "Status",
    },
}


def search_vehicles(observations: Sequence[VehicleObservation], term: str, *, limit: int = 50) -> Dict[str, Any]:
    q = (term or "").lower()
    if not q.strip():
        return {"query": "", "total": 0, "results": []}
    hits = [o for o in observations if any(q in getattr(o, f).lower() for f in SEARCH_FIELDS)]
    results = [
        {
            "vehicle": o.vehicle,
            "client": o.client,
            "location": o.location,
            "working_status": o.working_status,
            "alignment_status": o.alignment_status,
            "date": o.date,
        }
        for o in hits[: max(0, limit)]
    ]
    return {"query": q, "total": len(hits), "results": results}


def _severity(issues: int) -> str:
    if issues > 5:
        return "high"
    if issues > 2:
        return "medium"
    return "low"


def compute_daily_issues(
    observations: Sequence[VehicleObservation],
    month: Optional[str],
    *,
    window: int = 7,
) -> List[Dict[str, Any]]:
    """Issues per date for one month: +1 for a misaligned row, +1 for an offline row."""
    rows = [o for o in observations if month and o.month == month]
    if not rows:
        return []
    df = pd.DataFrame(
        {
            "date": [o.date for o in rows],
            "issues": [
                int(o.alignment_status == MISALIGNED_STATUS) + int(o.working_status == OFFLINE_STATUS) for o in rows
            ],
        }
    )
    daily = df.groupby("date", sort=False)["issues"].sum().reset_index()
    daily["sort_key"] = daily["date"].map(get_date_sort_key)
    daily = daily.sort_values("sort_key", kind="stable").tail(max(1, window))
    daily["severity"] = daily["issues"].map(_severity)
    return [
        {"date": str(r.date), "sort_key": str(r.sort_key), "issues": int(r.issues), "severity": str(r.severity)}
        for r in daily.itertuples(index=False)
    ]


def compute_client_status_breakdown(client_analysis: Mapping[str, Sequence[Any]]) -> Dict[str, int]:
    has_issues = sum(1 for vehicles in client_analysis.values() if any(is_problem(v) for v in vehicles))
    return {"All OK": len(client_analysis) - has_issues, "Has Issues": has_issues}


def compute_issues(result: DashboardResult, month: Optional[str] = None, config: Optional[PipelineConfig] = None) -> Dict[str, Any]:
    config = config or PipelineConfig()
    month = month or month_of(result.latest_date)
    points = compute_daily_issues(result.all_vehicles, month, window=config.issue_window)
    breakdown = compute_client_status_breakdown(result.client_analysis)

    charts: Dict[str, Any] = {}
    if points:
        charts["daily_issues"] = daily_issues_chart(points)
    if result.client_analysis:
        charts["client_status"] = client_status_chart(breakdown)

    return {
        "month": month,
        "daily_issues": points,
        "client_status": breakdown,
        "charts": charts,
    }


def table_to_frame(table: Mapping[str, Any], kind: str) -> pd.DataFrame:
    columns = TABLE_COLUMNS[kind]
    rows = table.get("data") or []
    df = pd.DataFrame(rows, columns=list(columns.keys()))
    return df.rename(columns=columns)
