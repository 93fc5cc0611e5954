from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import BatchModel, MetaListResponse, PipelineConfigModel, SheetsBatchModel
from fleet.batch import batch_from_records, batch_from_sheets_response
from fleet.config import PipelineConfig, normalize_config
from fleet.data import load_dashboard_data
from fleet.metrics_issues import TABLE_COLUMNS, compute_issues, search_vehicles, table_to_frame
from fleet.pipeline import process_sheet_data


app = FastAPI(title="Vehicle Status Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _config_from_model(model: Optional[PipelineConfigModel]) -> PipelineConfig:
    if model is None:
        return PipelineConfig()
    return normalize_config(model.model_dump())


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _issue_filter(table: dict, issues_only: bool) -> dict:
    if not issues_only or not table:
        return table
    return {**table, "data": [row for row in table.get("data", []) if row.get("has_problems")]}


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.post("/process")
def process(batch: BatchModel):
    try:
        config = _config_from_model(batch.config)
        row_batch = batch_from_records([t.model_dump() for t in batch.tabs])
        return _json(process_sheet_data(row_batch, config).to_payload())
    except Exception as exc:
        logger.exception("process failed")
        return _error(exc)


@app.post("/process/sheets")
def process_sheets(payload: SheetsBatchModel):
    try:
        config = _config_from_model(payload.config)
        response = {"valueRanges": [vr.model_dump() for vr in payload.valueRanges]}
        row_batch = batch_from_sheets_response(response, payload.sheet_titles)
        return _json(process_sheet_data(row_batch, config).to_payload())
    except Exception as exc:
        logger.exception("process_sheets failed")
        return _error(exc)


@app.get("/meta/months", response_model=MetaListResponse)
def meta_months():
    try:
        result = load_dashboard_data()
        return MetaListResponse(values=sorted(result.monthly_data.keys()))
    except Exception as exc:
        logger.exception("meta_months failed")
        return _error(exc)


@app.get("/meta/clients", response_model=MetaListResponse)
def meta_clients():
    try:
        result = load_dashboard_data()
        return MetaListResponse(values=sorted(result.client_analysis.keys()))
    except Exception as exc:
        logger.exception("meta_clients failed")
        return _error(exc)


@app.get("/meta/cities", response_model=MetaListResponse)
def meta_cities():
    try:
        result = load_dashboard_data()
        return MetaListResponse(values=sorted(result.city_analysis.keys()))
    except Exception as exc:
        logger.exception("meta_cities failed")
        return _error(exc)


@app.get("/overview")
def overview():
    try:
        result = load_dashboard_data()
        payload = result.to_payload()
        return _json(
            {
                "stats": payload["stats"],
                "summary": payload["gs_script_data"]["comprehensive_summary"],
                "latest_date": result.latest_date,
                "last_updated": result.last_updated,
            }
        )
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.get("/monthly")
def monthly(month: Optional[str] = Query(default=None)):
    try:
        result = load_dashboard_data()
        analysis = result.gs_script_data.get("monthly_analysis", {})
        if month:
            analysis = {month: analysis[month]} if month in analysis else {}
        return _json({"months": analysis})
    except Exception as exc:
        logger.exception("monthly failed")
        return _error(exc)


@app.get("/clients")
def clients(issues_only: bool = Query(default=False)):
    try:
        result = load_dashboard_data()
        return _json(_issue_filter(result.gs_script_data.get("client_analysis_table", {}), issues_only))
    except Exception as exc:
        logger.exception("clients failed")
        return _error(exc)


@app.get("/cities")
def cities(issues_only: bool = Query(default=False)):
    try:
        result = load_dashboard_data()
        return _json(_issue_filter(result.gs_script_data.get("city_analysis_table", {}), issues_only))
    except Exception as exc:
        logger.exception("cities failed")
        return _error(exc)


@app.get("/search")
def search(q: str = Query(default="")):
    try:
        config = PipelineConfig()
        result = load_dashboard_data(config)
        return _json(search_vehicles(result.all_vehicles, q, limit=config.search_limit))
    except Exception as exc:
        logger.exception("search failed")
        return _error(exc)


@app.get("/issues")
def issues(month: Optional[str] = Query(default=None)):
    try:
        config = PipelineConfig()
        result = load_dashboard_data(config)
        return _json(compute_issues(result, month, config))
    except Exception as exc:
        logger.exception("issues failed")
        return _error(exc)


@app.get("/export/{table}")
def export_table(table: str):
    if table not in TABLE_COLUMNS:
        return JSONResponse(status_code=404, content={"error": f"Unknown table: {table}", "type": "NotFound"})
    result = load_dashboard_data()
    key = "client_analysis_table" if table == "clients" else "city_analysis_table"
    export_df = table_to_frame(result.gs_script_data.get(key, {}), table)
    filename = "client_analysis.csv" if table == "clients" else "city_analysis.csv"
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
