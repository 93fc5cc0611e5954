from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


_A1_SHEET_RE = re.compile(r"^(?:'((?:[^']|'')*)'|([^!]+))!")


class BatchError(ValueError):
    """The fetched batch is absent or not shaped like a batch."""


@dataclass(frozen=True)
class TabRange:
    name: str
    values: Tuple[Tuple[Any, ...], ...] = field(default_factory=tuple)

    @property
    def data_rows(self) -> Tuple[Tuple[Any, ...], ...]:
        # Row 0 is the sheet header.
        if len(self.values) < 2:
            return ()
        return self.values[1:]


@dataclass(frozen=True)
class RowBatch:
    tabs: Tuple[TabRange, ...] = field(default_factory=tuple)

    @property
    def tab_names(self) -> List[str]:
        return [t.name for t in self.tabs]


def _freeze_values(values: Optional[Sequence[Sequence[Any]]]) -> Tuple[Tuple[Any, ...], ...]:
    if not values:
        return ()
    return tuple(tuple(row or ()) for row in values)


def make_tab(name: str, values: Optional[Sequence[Sequence[Any]]]) -> TabRange:
    return TabRange(name=str(name), values=_freeze_values(values))


def sheet_name_from_range(a1_range: str) -> Optional[str]:
    """``"'26th July'!A1:J200"`` -> ``"26th July"``."""
    if not a1_range:
        return None
    match = _A1_SHEET_RE.match(a1_range.strip())
    if not match:
        return None
    if match.group(1) is not None:
        return match.group(1).replace("''", "'")
    return match.group(2).strip()


def batch_from_records(tabs: Sequence[Mapping[str, Any]]) -> RowBatch:
    out: List[TabRange] = []
    for idx, tab in enumerate(tabs):
        name = tab.get("name") or f"Sheet{idx + 1}"
        out.append(make_tab(name, tab.get("values")))
    return RowBatch(tabs=tuple(out))


def batch_from_sheets_response(response: Mapping[str, Any], sheet_titles: Optional[Sequence[str]] = None) -> RowBatch:
    """Build a batch from a Sheets ``values:batchGet`` payload.

    Tab names come from ``sheet_titles`` when given, otherwise from the A1
    notation of each value range, otherwise ``Sheet<n>``.
    """
    if response is None:
        raise BatchError("Sheets response is missing")
    if not isinstance(response, Mapping):
        raise BatchError(f"Sheets response must be a mapping, got {type(response).__name__}")

    value_ranges = response.get("valueRanges") or []
    titles = list(sheet_titles or [])
    tabs: List[TabRange] = []
    for idx, vr in enumerate(value_ranges):
        vr = vr or {}
        name = titles[idx] if idx < len(titles) and titles[idx] else None
        if not name:
            name = sheet_name_from_range(str(vr.get("range") or "")) or f"Sheet{idx + 1}"
        tabs.append(make_tab(name, vr.get("values")))
    return RowBatch(tabs=tuple(tabs))


def batch_summary(batch: RowBatch) -> Dict[str, int]:
    return {t.name: len(t.data_rows) for t in batch.tabs}
