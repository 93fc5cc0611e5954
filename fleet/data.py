from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pandas as pd

from fleet.batch import RowBatch, TabRange, make_tab
from fleet.config import PipelineConfig, SourceConfig, load_source_config
from fleet.pipeline import DashboardResult, process_sheet_data
from fleet.rows import select_daily_tabs
from fleet.text import is_missing


logger = logging.getLogger(__name__)


def get_source_files(source: Optional[SourceConfig] = None) -> List[Path]:
    source = source or load_source_config()
    return sorted(p for p in source.data_dir.glob(source.file_glob) if not p.name.startswith("~$"))


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def normalize_cell(value: Any) -> Any:
    """Excel cell -> batch cell: blanks become ``None``, whole floats become ints."""
    if is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def frame_to_tab(name: str, df: pd.DataFrame) -> TabRange:
    rows = [[normalize_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]
    return make_tab(name, rows)


# ---------------- Loaders ----------------
def load_workbook_batch(path: Path, *, daily_tabs_only: bool = True) -> RowBatch:
    sheets = pd.read_excel(path, sheet_name=None, header=None, dtype=object)
    names = list(sheets.keys())
    selected = select_daily_tabs(names) if daily_tabs_only else names
    logger.info("Loading %d of %d tabs from %s", len(selected), len(names), Path(path).name)
    return RowBatch(tabs=tuple(frame_to_tab(str(name), sheets[name]) for name in selected))


# ---------------- Public API ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...], config: PipelineConfig) -> DashboardResult:
    # Newest workbook by mtime.
    latest_path = Path(max(files_sig, key=lambda s: s[1])[0])
    batch = load_workbook_batch(latest_path, daily_tabs_only=config.daily_tabs_only)
    return process_sheet_data(batch, config)


def load_dashboard_data(config: Optional[PipelineConfig] = None, source: Optional[SourceConfig] = None) -> DashboardResult:
    config = config or PipelineConfig()
    files = get_source_files(source)
    if not files:
        logger.warning("No source workbook found; returning an empty dashboard")
        return process_sheet_data(RowBatch(), config)
    return _load_dashboard_data_cached(file_signature(files), config)
