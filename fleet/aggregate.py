from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from fleet.config import (
    ACTIVE_STATUS,
    ALIGNED_STATUS,
    CURRENT_SENTINEL,
    MISALIGNED_STATUS,
    OFFLINE_STATUS,
    UNKNOWN,
    PipelineConfig,
)
from fleet.batch import RowBatch
from fleet.rows import RawRow, has_value, is_header_artifact, is_valid_vehicle_row, normalize_row, resolve_month
from fleet.text import canonical_date, cell_text, clean_text, format_date, get_date_sort_key


logger = logging.getLogger(__name__)

CLIENT_REJECT_VALUES = {"#N/A", "NA"}
CLIENT_REJECT_TOKENS = ("client name", "vehicle number")
CITY_REJECT_VALUES = {"#N/A", "NA"}
CITY_REJECT_TOKENS = ("location", "site", "vehicle number")


@dataclass(frozen=True)
class VehicleObservation:
    vehicle: str
    client: str
    location: str
    working_status: str
    alignment_status: str
    vehicle_type: str
    installation_date: str
    recording: str
    date: str
    remarks: str
    month: str
    source_tab: str


@dataclass(frozen=True)
class StatusEntry:
    date: str
    status: str


@dataclass(frozen=True)
class AlignmentEntry:
    date: str
    alignment_status: str
    remarks: str = ""


@dataclass(frozen=True)
class ClientSnapshot:
    vehicle: str
    working_status: str
    alignment_status: str
    location: str
    remarks: str
    date: str


@dataclass(frozen=True)
class CitySnapshot:
    vehicle: str
    working_status: str
    alignment_status: str
    client: str
    remarks: str
    date: str


@dataclass
class ActiveTracking:
    all_active: bool = True
    statuses: List[StatusEntry] = field(default_factory=list)

    def add(self, entry: StatusEntry) -> None:
        self.statuses.append(entry)
        if entry.status != ACTIVE_STATUS:
            self.all_active = False


@dataclass
class OfflineTracking:
    dates: List[str] = field(default_factory=list)
    latest_remarks: str = ""

    def add(self, date: str, remarks: str) -> None:
        if date not in self.dates:
            self.dates.append(date)
        self.latest_remarks = remarks or "Offline"


@dataclass
class MonthBucket:
    vehicle_ids: Dict[str, None] = field(default_factory=dict)
    active: Dict[str, ActiveTracking] = field(default_factory=dict)
    offline: Dict[str, OfflineTracking] = field(default_factory=dict)
    alignment: Dict[str, List[AlignmentEntry]] = field(default_factory=dict)


@dataclass
class AggregationState:
    latest_date: str = CURRENT_SENTINEL
    latest_sort_key: str = ""
    observations: List[VehicleObservation] = field(default_factory=list)
    months: Dict[str, MonthBucket] = field(default_factory=dict)
    client_analysis: Dict[str, List[ClientSnapshot]] = field(default_factory=dict)
    city_analysis: Dict[str, List[CitySnapshot]] = field(default_factory=dict)
    _client_keys: Set[Tuple[str, str]] = field(default_factory=set, repr=False)
    _city_keys: Set[Tuple[str, str]] = field(default_factory=set, repr=False)

    def bucket(self, month: str) -> MonthBucket:
        if month not in self.months:
            self.months[month] = MonthBucket()
        return self.months[month]


def _accepts(value: str, reject_values: Set[str], reject_tokens: Tuple[str, ...]) -> bool:
    if not value or value in reject_values:
        return False
    lowered = value.lower()
    return not any(token in lowered for token in reject_tokens)


def is_valid_client(name: str) -> bool:
    return _accepts(name, CLIENT_REJECT_VALUES, CLIENT_REJECT_TOKENS)


def is_valid_city(name: str) -> bool:
    return _accepts(name, CITY_REJECT_VALUES, CITY_REJECT_TOKENS)


# ---------------- Pass 1 ----------------
def find_latest_date(batch: RowBatch, config: Optional[PipelineConfig] = None) -> Tuple[str, str]:
    """Return ``(display, sort_key)`` of the most recent date cell, or the ``Current`` sentinel."""
    config = config or PipelineConfig()
    latest_date = ""
    latest_sort_key = ""
    for tab in batch.tabs:
        for cells in tab.data_rows:
            row = normalize_row(cells, config.columns)
            if not has_value(row.date):
                continue
            cd = canonical_date(row.date)
            if cd.sort_key > latest_sort_key:
                latest_sort_key = cd.sort_key
                latest_date = cd.display

    if not latest_date:
        logger.info("No latest date found, collecting client/city data from every row")
        return CURRENT_SENTINEL, ""
    logger.info("Latest date found: %s (sort key %s)", latest_date, latest_sort_key)
    return latest_date, latest_sort_key


# ---------------- Pass 2 ----------------
def build_observation(row: RawRow, tab_name: str, config: Optional[PipelineConfig] = None) -> Optional[VehicleObservation]:
    """Classify one padded row; ``None`` when the row is excluded."""
    config = config or PipelineConfig()
    if not is_valid_vehicle_row(row):
        if row.vehicle_id and row.working_status and is_header_artifact(row.vehicle_id):
            logger.debug("Skipping header-like row in %s: %s", tab_name, row.vehicle_id)
        return None

    month = resolve_month(tab_name, cell_text(row.date))
    if month == UNKNOWN:
        return None

    return VehicleObservation(
        vehicle=row.vehicle_id,
        client=clean_text(row.client) or UNKNOWN,
        location=clean_text(row.location) or UNKNOWN,
        working_status=row.working_status,
        alignment_status=row.alignment_status or UNKNOWN,
        vehicle_type=clean_text(row.type) or config.default_vehicle_type,
        installation_date=format_date(row.installation) if has_value(row.installation) else UNKNOWN,
        recording=clean_text(row.recording) or UNKNOWN,
        date=format_date(row.date),
        remarks=clean_text(row.remarks),
        month=month,
        source_tab=tab_name,
    )


def _collect_snapshot(state: AggregationState, obs: VehicleObservation, raw_client: str, raw_location: str) -> None:
    if is_valid_client(raw_client) and (raw_client, obs.vehicle) not in state._client_keys:
        state._client_keys.add((raw_client, obs.vehicle))
        state.client_analysis.setdefault(raw_client, []).append(
            ClientSnapshot(
                vehicle=obs.vehicle,
                working_status=obs.working_status,
                alignment_status=obs.alignment_status,
                location=obs.location,
                remarks=obs.remarks,
                date=obs.date,
            )
        )

    if is_valid_city(raw_location) and (raw_location, obs.vehicle) not in state._city_keys:
        state._city_keys.add((raw_location, obs.vehicle))
        state.city_analysis.setdefault(raw_location, []).append(
            CitySnapshot(
                vehicle=obs.vehicle,
                working_status=obs.working_status,
                alignment_status=obs.alignment_status,
                client=obs.client,
                remarks=obs.remarks,
                date=obs.date,
            )
        )


def record_observation(state: AggregationState, obs: VehicleObservation, raw_client: str = "", raw_location: str = "") -> None:
    state.observations.append(obs)

    bucket = state.bucket(obs.month)
    bucket.vehicle_ids[obs.vehicle] = None

    bucket.active.setdefault(obs.vehicle, ActiveTracking()).add(StatusEntry(date=obs.date, status=obs.working_status))

    if obs.working_status == OFFLINE_STATUS:
        bucket.offline.setdefault(obs.vehicle, OfflineTracking()).add(obs.date, obs.remarks)

    if obs.alignment_status in (ALIGNED_STATUS, MISALIGNED_STATUS):
        bucket.alignment.setdefault(obs.vehicle, []).append(
            AlignmentEntry(date=obs.date, alignment_status=obs.alignment_status, remarks=obs.remarks)
        )

    if state.latest_date == CURRENT_SENTINEL:
        collect = True
    else:
        collect = obs.date == state.latest_date or get_date_sort_key(obs.date) == state.latest_sort_key
    if collect:
        _collect_snapshot(state, obs, raw_client, raw_location)


def aggregate_batch(batch: RowBatch, config: Optional[PipelineConfig] = None) -> AggregationState:
    """Run both passes over ``batch`` and return freshly allocated accumulators."""
    config = config or PipelineConfig()
    latest_date, latest_sort_key = find_latest_date(batch, config)
    state = AggregationState(latest_date=latest_date, latest_sort_key=latest_sort_key)

    for tab in batch.tabs:
        if not tab.data_rows:
            continue
        logger.debug("Processing %s (%d rows)", tab.name, len(tab.data_rows))
        for cells in tab.data_rows:
            row = normalize_row(cells, config.columns)
            obs = build_observation(row, tab.name, config)
            if obs is None:
                continue
            record_observation(state, obs, clean_text(row.client), clean_text(row.location))

    logger.info(
        "Processing completed: %d rows, %d clients, %d cities",
        len(state.observations),
        len(state.client_analysis),
        len(state.city_analysis),
    )
    for month, bucket in state.months.items():
        logger.info("  %s: %d unique vehicles", month, len(bucket.vehicle_ids))
    return state
