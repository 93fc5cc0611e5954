from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd


MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_MONTH_ALTERNATION = "|".join(m.lower() for m in MONTH_NAMES)

_TAB_DATE_RE = re.compile(rf"([0-9]+)(st|nd|rd|th)?\s+({_MONTH_ALTERNATION})", re.IGNORECASE)
_DIGITS_RE = re.compile(r"\d+", re.ASCII)
_MONTH_RE = re.compile(_MONTH_ALTERNATION, re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\s]")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
_WS_RUN_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class CanonicalDate:
    display: str
    sort_key: str


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if not pd.api.types.is_scalar(value):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: object) -> str:
    """Stringify a raw cell; missing cells become ``""``."""
    if is_missing(value):
        return ""
    return str(value)


def clean_text(raw: object) -> str:
    if is_missing(raw) or not raw:
        return ""
    text = str(raw).replace("**", "")
    return _WS_RUN_RE.sub(" ", text.strip())


def format_date(value: object) -> str:
    """Normalize a date cell or tab name into ``"<day> <Month>"``.

    Tab-style strings ("26th July") are matched first. Dash-separated text keeps
    its first two parts. Native ``date``/``datetime`` values (including pandas
    timestamps) are formatted directly, ahead of the dash rule, because their
    string form always contains dashes. Anything else falls back to the first
    number plus the first month name, then to the text stripped of punctuation.
    """
    try:
        if isinstance(value, date):
            return f"{value.day} {MONTH_NAMES[value.month - 1]}"

        text = str(value)
        match = _TAB_DATE_RE.search(text)
        if match:
            return f"{match.group(1)} {match.group(3).capitalize()}"

        if "-" in text:
            parts = text.split("-")
            if len(parts) >= 2:
                return f"{parts[0]} {parts[1]}"

        day_match = _DIGITS_RE.search(text)
        month_match = _MONTH_RE.search(text)
        if day_match and month_match:
            return f"{day_match.group(0)} {month_match.group(0)}"

        return _NON_WORD_RE.sub("", text).strip()
    except Exception:
        return str(value)


def _leading_int(token: str) -> int:
    match = _LEADING_INT_RE.match(token)
    if not match:
        return 0
    return int(match.group(1))


def get_date_sort_key(date_str: str) -> str:
    """``"26 July"`` -> ``"07-26"``; strings without two tokens come back unchanged."""
    parts = date_str.split(" ")
    if len(parts) >= 2:
        day = _leading_int(parts[0])
        month_index = MONTH_NAMES.index(parts[1]) + 1 if parts[1] in MONTH_NAMES else 0
        return f"{month_index:02d}-{day:02d}"
    return date_str


def canonical_date(value: object) -> CanonicalDate:
    display = format_date(value)
    return CanonicalDate(display=display, sort_key=get_date_sort_key(display))


def month_of(display: str) -> Optional[str]:
    parts = display.split(" ")
    if len(parts) >= 2 and parts[1] in MONTH_NAMES:
        return parts[1]
    return None
