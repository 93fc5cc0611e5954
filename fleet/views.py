from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Sequence, Union

from fleet.aggregate import CitySnapshot, ClientSnapshot, MonthBucket
from fleet.config import CURRENT_SENTINEL, MISALIGNED_STATUS, OFFLINE_STATUS, RECENT_DATA_LABEL
from fleet.text import get_date_sort_key
from fleet.timeline import create_alignment_timeline, sort_chronologically


Snapshot = Union[ClientSnapshot, CitySnapshot]


def display_date(latest_date: str) -> str:
    return RECENT_DATA_LABEL if latest_date == CURRENT_SENTINEL else latest_date


def is_problem(vehicle: Snapshot) -> bool:
    return vehicle.working_status == OFFLINE_STATUS or vehicle.alignment_status == MISALIGNED_STATUS


# ---------------- Monthly analysis ----------------
def _active_vehicles(month: str, bucket: MonthBucket) -> List[Dict[str, Any]]:
    rows = [
        {"vehicle": vehicle, "status": f"Active in ALL {month} tabs"}
        for vehicle, tracking in bucket.active.items()
        if tracking.all_active and tracking.statuses
    ]
    return sorted(rows, key=lambda r: r["vehicle"])


def _offline_vehicles(bucket: MonthBucket) -> List[Dict[str, Any]]:
    rows = []
    for vehicle, tracking in bucket.offline.items():
        if not tracking.dates:
            continue
        unique_dates = list(dict.fromkeys(tracking.dates))
        unique_dates.sort(key=get_date_sort_key)
        rows.append({"vehicle": vehicle, "dates": unique_dates, "remarks": tracking.latest_remarks})
    return sorted(rows, key=lambda r: r["vehicle"])


def _alignment_vehicles(bucket: MonthBucket) -> List[Dict[str, Any]]:
    rows = []
    for vehicle, entries in bucket.alignment.items():
        if not entries:
            continue
        latest = sort_chronologically(entries)[-1]
        rows.append(
            {
                "vehicle": vehicle,
                "timeline": create_alignment_timeline(entries),
                "latest_status": latest.alignment_status,
                "remarks": latest.remarks,
            }
        )
    return sorted(rows, key=lambda r: r["vehicle"])


def build_monthly_analysis(months: Mapping[str, MonthBucket]) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    analysis: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for month in sorted(months):
        bucket = months[month]
        analysis[month] = {
            "active_vehicles": _active_vehicles(month, bucket),
            "offline_vehicles": _offline_vehicles(bucket),
            "alignment_vehicles": _alignment_vehicles(bucket),
        }
    return analysis


# ---------------- Client / city tables ----------------
def _snapshot_table(analysis: Mapping[str, Sequence[Snapshot]], latest_date: str, name_field: str) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = []
    for index, name in enumerate(sorted(analysis), start=1):
        vehicles = list(analysis[name])
        problems = [f"{v.vehicle} ({v.working_status}/{v.alignment_status})" for v in vehicles if is_problem(v)]
        rows.append(
            {
                "sno": index,
                name_field: name,
                "vehicle_count": len(vehicles),
                "vehicle_numbers": ", ".join(v.vehicle for v in vehicles),
                "problem_vehicles": ", ".join(problems) or "None",
                "status": f"ISSUES: {len(problems)}/{len(vehicles)}" if problems else "ALL OK",
                "has_problems": bool(problems),
                "vehicles": [asdict(v) for v in vehicles],
            }
        )
    return {"display_date": display_date(latest_date), "data": rows}


def build_client_table(client_analysis: Mapping[str, Sequence[ClientSnapshot]], latest_date: str) -> Dict[str, Any]:
    return _snapshot_table(client_analysis, latest_date, "client_name")


def build_city_table(city_analysis: Mapping[str, Sequence[CitySnapshot]], latest_date: str) -> Dict[str, Any]:
    return _snapshot_table(city_analysis, latest_date, "city_name")


# ---------------- Comprehensive summary ----------------
def build_comprehensive_summary(
    months: Mapping[str, MonthBucket],
    client_analysis: Mapping[str, Sequence[ClientSnapshot]],
    city_analysis: Mapping[str, Sequence[CitySnapshot]],
    latest_date: str,
) -> Dict[str, Any]:
    monthly_counts: Dict[str, Dict[str, int]] = {}
    all_vehicles: set = set()
    for month in sorted(months):
        bucket = months[month]
        monthly_counts[month] = {
            "active": sum(1 for t in bucket.active.values() if t.all_active and t.statuses),
            "offline": sum(1 for t in bucket.offline.values() if t.dates),
            "alignment": sum(1 for entries in bucket.alignment.values() if entries),
        }
        all_vehicles.update(bucket.vehicle_ids)

    return {
        "monthly_counts": monthly_counts,
        "total_vehicles": len(all_vehicles),
        "total_clients": len(client_analysis),
        "total_cities": len(city_analysis),
        "data_source_date": display_date(latest_date),
    }
