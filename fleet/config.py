from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


ACTIVE_STATUS = "Active"
OFFLINE_STATUS = "Offlline >24Hrs"
ALIGNED_STATUS = "Alligned"
MISALIGNED_STATUS = "Misalligned"

# Matched against the working status when counting offline rows in the stats.
OFFLINE_MARKERS = ("Offlline", "Offline")

CURRENT_SENTINEL = "Current"
RECENT_DATA_LABEL = "Recent Data"
UNKNOWN = "Unknown"

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1]
DEFAULT_FILE_GLOB = "*.xlsx"


@dataclass(frozen=True)
class ColumnLayout:
    date: int = 0
    location: int = 1
    vehicle: int = 2
    client: int = 3
    type: int = 4
    installation: int = 5
    status: int = 6
    recording: int = 7
    alignment: int = 8
    remarks: int = 9


@dataclass(frozen=True)
class PipelineConfig:
    columns: ColumnLayout = field(default_factory=ColumnLayout)
    default_vehicle_type: str = "Bus"
    search_limit: int = 50
    issue_window: int = 7
    daily_tabs_only: bool = True


@dataclass(frozen=True)
class SourceConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    file_glob: str = DEFAULT_FILE_GLOB


def _as_int(value: object, default: int, *, lo: int = 0, hi: int = 10_000) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return max(lo, min(hi, out))


def normalize_config(raw: Optional[Mapping[str, object]] = None) -> PipelineConfig:
    raw = raw or {}

    base = ColumnLayout()
    c = raw.get("columns") or {}
    if not isinstance(c, Mapping):
        c = {}
    columns = ColumnLayout(
        date=_as_int(c.get("date", base.date), base.date, hi=255),
        location=_as_int(c.get("location", base.location), base.location, hi=255),
        vehicle=_as_int(c.get("vehicle", base.vehicle), base.vehicle, hi=255),
        client=_as_int(c.get("client", base.client), base.client, hi=255),
        type=_as_int(c.get("type", base.type), base.type, hi=255),
        installation=_as_int(c.get("installation", base.installation), base.installation, hi=255),
        status=_as_int(c.get("status", base.status), base.status, hi=255),
        recording=_as_int(c.get("recording", base.recording), base.recording, hi=255),
        alignment=_as_int(c.get("alignment", base.alignment), base.alignment, hi=255),
        remarks=_as_int(c.get("remarks", base.remarks), base.remarks, hi=255),
    )

    default_vehicle_type = str(raw.get("default_vehicle_type") or "Bus").strip() or "Bus"
    search_limit = _as_int(raw.get("search_limit", 50), 50, lo=1, hi=500)
    issue_window = _as_int(raw.get("issue_window", 7), 7, lo=1, hi=366)
    daily_tabs_only = bool(raw.get("daily_tabs_only", True))

    return PipelineConfig(
        columns=columns,
        default_vehicle_type=default_vehicle_type,
        search_limit=search_limit,
        issue_window=issue_window,
        daily_tabs_only=daily_tabs_only,
    )


def load_source_config(environ: Optional[Mapping[str, str]] = None) -> SourceConfig:
    """Resolve the workbook location from ``FLEET_DATA_DIR`` / ``FLEET_FILE_GLOB``."""
    env = os.environ if environ is None else environ
    data_dir = (env.get("FLEET_DATA_DIR") or "").strip()
    file_glob = (env.get("FLEET_FILE_GLOB") or "").strip()
    return SourceConfig(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        file_glob=file_glob or DEFAULT_FILE_GLOB,
    )
