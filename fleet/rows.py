from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from fleet.config import UNKNOWN, ColumnLayout
from fleet.text import MONTH_NAMES, cell_text, clean_text, is_missing


HEADER_ARTIFACT_TOKENS = ("vehicle", "chassis", "number")
MIN_VEHICLE_ID_LENGTH = 3

_FULL_MONTHS = [m.lower() for m in MONTH_NAMES]
_ABBREVIATIONS = [
    ("jul", "July"),
    ("aug", "August"),
    ("sep", "September"),
    ("oct", "October"),
    ("nov", "November"),
    ("dec", "December"),
    ("jan", "January"),
    ("feb", "February"),
    ("mar", "March"),
    ("apr", "April"),
    ("may", "May"),
    ("jun", "June"),
]

_MONTH_WORD_RE = re.compile(r"\b(" + "|".join(_FULL_MONTHS) + r")\b", re.IGNORECASE)
_MONTH_NUMBER_RE = re.compile(r"\b(0?[1-9]|1[0-2])\b", re.ASCII)

_DAILY_TAB_FULL_RE = re.compile(r"\d+(st|nd|rd|th)\s+(" + "|".join(_FULL_MONTHS) + r")", re.IGNORECASE)
_DAILY_TAB_ABBR_RE = re.compile(r"\d+\s+(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE)


@dataclass(frozen=True)
class RawRow:
    """One sheet row padded to the fixed column layout (missing cells are ``""``)."""

    date: object = ""
    location: object = ""
    vehicle: object = ""
    client: object = ""
    type: object = ""
    installation: object = ""
    status: object = ""
    recording: object = ""
    alignment: object = ""
    remarks: object = ""

    @property
    def vehicle_id(self) -> str:
        return clean_text(self.vehicle)

    @property
    def working_status(self) -> str:
        return cell_text(self.status)

    @property
    def alignment_status(self) -> str:
        return cell_text(self.alignment)


def normalize_row(cells: Optional[Sequence[object]], columns: Optional[ColumnLayout] = None) -> RawRow:
    columns = columns or ColumnLayout()
    cells = list(cells or [])

    def _cell(idx: int) -> object:
        if idx >= len(cells):
            return ""
        value = cells[idx]
        return "" if is_missing(value) else value

    return RawRow(
        date=_cell(columns.date),
        location=_cell(columns.location),
        vehicle=_cell(columns.vehicle),
        client=_cell(columns.client),
        type=_cell(columns.type),
        installation=_cell(columns.installation),
        status=_cell(columns.status),
        recording=_cell(columns.recording),
        alignment=_cell(columns.alignment),
        remarks=_cell(columns.remarks),
    )


def has_value(value: object) -> bool:
    if is_missing(value):
        return False
    return bool(value)


def is_header_artifact(vehicle_id: str) -> bool:
    if not vehicle_id or len(vehicle_id) < MIN_VEHICLE_ID_LENGTH:
        return True
    lowered = vehicle_id.lower()
    return any(token in lowered for token in HEADER_ARTIFACT_TOKENS)


def is_valid_vehicle_row(row: RawRow) -> bool:
    if not has_value(row.date) or not row.vehicle_id or not row.working_status:
        return False
    return not is_header_artifact(row.vehicle_id)


# ---------------- Month resolution ----------------
MonthResolver = Callable[[str, str], Optional[str]]


def month_from_full_name(tab_name: str, date_text: str) -> Optional[str]:
    tab_lower = tab_name.lower()
    date_lower = date_text.lower()
    for month in _FULL_MONTHS:
        if month in tab_lower or month in date_lower:
            return month.capitalize()
    return None


def month_from_tab_abbreviation(tab_name: str, date_text: str) -> Optional[str]:
    tab_lower = tab_name.lower()
    for abbr, month in _ABBREVIATIONS:
        if abbr in tab_lower:
            return month
    return None


def month_from_date_word(tab_name: str, date_text: str) -> Optional[str]:
    match = _MONTH_WORD_RE.search(date_text)
    if match:
        return match.group(1).capitalize()
    return None


def month_from_date_number(tab_name: str, date_text: str) -> Optional[str]:
    match = _MONTH_NUMBER_RE.search(date_text)
    if match:
        month_num = int(match.group(1))
        if 1 <= month_num <= 12:
            return MONTH_NAMES[month_num - 1]
    return None


MONTH_RESOLVERS: Tuple[MonthResolver, ...] = (
    month_from_full_name,
    month_from_tab_abbreviation,
    month_from_date_word,
    month_from_date_number,
)


def resolve_month(tab_name: str, date_text: str, resolvers: Iterable[MonthResolver] = MONTH_RESOLVERS) -> str:
    for resolver in resolvers:
        month = resolver(tab_name or "", date_text or "")
        if month:
            return month
    return UNKNOWN


# ---------------- Tab selection ----------------
def is_daily_tab(title: str) -> bool:
    return bool(_DAILY_TAB_FULL_RE.search(title) or _DAILY_TAB_ABBR_RE.search(title))


def select_daily_tabs(titles: Iterable[str]) -> List[str]:
    titles = list(titles)
    daily = [t for t in titles if is_daily_tab(t)]
    return daily or titles
