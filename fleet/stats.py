from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

from fleet.aggregate import VehicleObservation
from fleet.config import ACTIVE_STATUS, ALIGNED_STATUS, MISALIGNED_STATUS, OFFLINE_MARKERS


@dataclass(frozen=True)
class DashboardStats:
    total_vehicles: int = 0
    active_vehicles: int = 0
    offline_vehicles: int = 0
    aligned_vehicles: int = 0
    misaligned_vehicles: int = 0
    total_clients: int = 0
    total_locations: int = 0
    health_score: int = 0


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None:
        return None
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(f)).quantize(q, rounding=ROUND_HALF_UP))


def health_score(active: int, aligned: int, total: int) -> int:
    """``round((active + aligned) / (total * 2) * 100)``; 0 when there are no rows."""
    if not total:
        return 0
    rounded = round_half_up(((active + aligned) / (total * 2)) * 100)
    return int(rounded) if rounded else 0


def compute_stats(
    observations: Sequence[VehicleObservation],
    client_analysis: Mapping[str, object],
    city_analysis: Mapping[str, object],
) -> DashboardStats:
    total = len(observations)
    active = sum(1 for o in observations if o.working_status == ACTIVE_STATUS)
    offline = sum(1 for o in observations if any(m in o.working_status for m in OFFLINE_MARKERS))
    aligned = sum(1 for o in observations if o.alignment_status == ALIGNED_STATUS)
    misaligned = sum(1 for o in observations if o.alignment_status == MISALIGNED_STATUS)
    return DashboardStats(
        total_vehicles=total,
        active_vehicles=active,
        offline_vehicles=offline,
        aligned_vehicles=aligned,
        misaligned_vehicles=misaligned,
        total_clients=len(client_analysis),
        total_locations=len(city_analysis),
        health_score=health_score(active, aligned, total),
    )
