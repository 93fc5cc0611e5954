from __future__ import annotations

from typing import List, Sequence

from fleet.aggregate import AlignmentEntry
from fleet.config import UNKNOWN
from fleet.text import get_date_sort_key


NO_DATA = "No alignment data"
NO_CHANGES = "No alignment changes"
PERIOD_SEPARATOR = " → "

_SKIPPED_STATUSES = {"", UNKNOWN, "NA"}


def sort_chronologically(entries: Sequence[AlignmentEntry]) -> List[AlignmentEntry]:
    return sorted(entries, key=lambda e: get_date_sort_key(e.date))


def _period(status: str, start: str, end: str) -> str:
    span = start if start == end else f"{start} to {end}"
    return f"{status} ({span})"


def create_alignment_timeline(entries: Sequence[AlignmentEntry]) -> str:
    """Run-length encode a vehicle's alignment history, e.g.
    ``"Alligned (1 July to 2 July) → Misalligned (3 July)"``.
    """
    if not entries:
        return NO_DATA

    periods: List[str] = []
    current = ""
    start = ""
    end = ""
    for entry in sort_chronologically(entries):
        status = entry.alignment_status
        if not status or status in _SKIPPED_STATUSES:
            continue
        if status != current:
            if current and start:
                periods.append(_period(current, start, end))
            current = status
            start = entry.date
            end = entry.date
        else:
            end = entry.date

    if current and start:
        periods.append(_period(current, start, end))

    return PERIOD_SEPARATOR.join(periods) if periods else NO_CHANGES
