from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from fleet.aggregate import AggregationState, CitySnapshot, ClientSnapshot, VehicleObservation, aggregate_batch
from fleet.batch import BatchError, RowBatch, batch_summary
from fleet.config import CURRENT_SENTINEL, PipelineConfig
from fleet.stats import DashboardStats, compute_stats
from fleet.views import (
    build_city_table,
    build_client_table,
    build_comprehensive_summary,
    build_monthly_analysis,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardResult:
    stats: DashboardStats = field(default_factory=DashboardStats)
    all_vehicles: Tuple[VehicleObservation, ...] = ()
    monthly_data: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    client_analysis: Dict[str, Tuple[ClientSnapshot, ...]] = field(default_factory=dict)
    city_analysis: Dict[str, Tuple[CitySnapshot, ...]] = field(default_factory=dict)
    latest_date: str = CURRENT_SENTINEL
    gs_script_data: Dict[str, Any] = field(default_factory=dict)
    last_updated: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {
            "stats": asdict(self.stats),
            "all_vehicles": [asdict(v) for v in self.all_vehicles],
            "monthly_data": {m: sorted(ids) for m, ids in self.monthly_data.items()},
            "client_analysis": {k: [asdict(v) for v in vs] for k, vs in self.client_analysis.items()},
            "city_analysis": {k: [asdict(v) for v in vs] for k, vs in self.city_analysis.items()},
            "latest_date": self.latest_date,
            "gs_script_data": self.gs_script_data,
            "last_updated": self.last_updated,
        }


def build_result(state: AggregationState) -> DashboardResult:
    gs_script_data = {
        "monthly_analysis": build_monthly_analysis(state.months),
        "client_analysis_table": build_client_table(state.client_analysis, state.latest_date),
        "city_analysis_table": build_city_table(state.city_analysis, state.latest_date),
        "comprehensive_summary": build_comprehensive_summary(
            state.months, state.client_analysis, state.city_analysis, state.latest_date
        ),
    }
    return DashboardResult(
        stats=compute_stats(state.observations, state.client_analysis, state.city_analysis),
        all_vehicles=tuple(state.observations),
        monthly_data={m: frozenset(b.vehicle_ids) for m, b in state.months.items()},
        client_analysis={k: tuple(vs) for k, vs in state.client_analysis.items()},
        city_analysis={k: tuple(vs) for k, vs in state.city_analysis.items()},
        latest_date=state.latest_date,
        gs_script_data=gs_script_data,
        last_updated=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )


def process_sheet_data(batch: Optional[RowBatch], config: Optional[PipelineConfig] = None) -> DashboardResult:
    """Turn one fetched batch into the full set of dashboard structures.

    Rows that fail validation are dropped silently; only a missing or
    malformed batch raises ``BatchError``.
    """
    if batch is None:
        raise BatchError("No batch to process: the sheet fetch returned nothing")
    if not isinstance(batch, RowBatch):
        raise BatchError(f"Expected a RowBatch, got {type(batch).__name__}")

    logger.debug("Processing batch: %s", batch_summary(batch))
    state = aggregate_batch(batch, config)
    return build_result(state)
