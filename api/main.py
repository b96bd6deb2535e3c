from __future__ import annotations

import logging
import math
from dataclasses import asdict
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel, MetaListResponse
from core.cards import build_cards, build_detail
from core.charts import TrendCharts
from core.data import records_frame
from core.fetch import DataUnavailable, load_dashboard_state
from core.filters import DashboardFilters, normalize_filters, resolve_date_range
from core.metrics_summary import compute_summary
from core.metrics_trends import compute_trends
from core.router import find_record
from core.settings import load_settings


app = FastAPI(title="Kurtosis Sync Test Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    raw = model.model_dump(exclude_none=True)
    return normalize_filters(raw, default_days=load_settings().default_days)


def _range_filters(date_range: Optional[str], start_date: Optional[str], end_date: Optional[str]) -> DashboardFilters:
    return _filters_from_model(DashboardFiltersModel(date_range=date_range, start_date=start_date, end_date=end_date))


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


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _filters_payload(filters: DashboardFilters) -> dict:
    payload = asdict(filters)
    date_range = resolve_date_range(filters)
    payload["resolved_start"] = date_range.start.isoformat()
    payload["resolved_end"] = date_range.end.isoformat()
    return payload


@app.get("/meta/networks")
def meta_networks(
    date_range: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
):
    try:
        state = load_dashboard_state(load_settings(), _range_filters(date_range, start_date, end_date))
        return _json(MetaListResponse(values=state.store.sorted_networks()).model_dump())
    except DataUnavailable as exc:
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("meta_networks failed")
        return _error(exc)


@app.post("/runs")
def runs(filters: DashboardFiltersModel):
    try:
        settings = load_settings()
        f = _filters_from_model(filters)
        state = load_dashboard_state(settings, f)
        trends = compute_trends(state.filtered)
        return _json(
            {
                "filters": _filters_payload(f),
                "summary": compute_summary(state.filtered),
                "cards": build_cards(state.filtered, settings),
                "trends": trends.to_dict(),
                "charts": TrendCharts().redraw(trends).to_specs(),
                "options": {
                    "networks": state.store.sorted_networks(),
                    "el_clients": state.store.el_clients(),
                    "cl_clients": state.store.cl_clients(),
                },
                "skipped": [list(s) for s in state.store.skipped],
            }
        )
    except DataUnavailable as exc:
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("runs failed")
        return _error(exc)


@app.get("/runs/{identifier}")
def run_detail(
    identifier: str,
    date_range: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
):
    try:
        settings = load_settings()
        state = load_dashboard_state(settings, _range_filters(date_range, start_date, end_date))
        record = find_record(state.store.records, identifier)
        if record is None:
            logger.warning("run_detail: no run matches %r", identifier)
            return JSONResponse(status_code=404, content={"error": f"No run matches {identifier!r}", "type": "NotFound"})
        return _json(build_detail(record, settings))
    except DataUnavailable as exc:
        return _error(exc, status_code=503)
    except Exception as exc:
        logger.exception("run_detail failed")
        return _error(exc)


@app.post("/export/runs")
def export_runs(filters: DashboardFiltersModel):
    try:
        state = load_dashboard_state(load_settings(), _filters_from_model(filters))
    except DataUnavailable as exc:
        return _error(exc, status_code=503)
    export_df = records_frame(state.filtered)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=sync_test_runs.csv"})
