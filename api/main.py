from __future__ import annotations

import logging
import math
from urllib.parse import quote

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    DashboardFiltersModel,
    MetaCitiesResponse,
    MetaCountriesResponse,
    MetaVariablesResponse,
    VariableModel,
)
from core.catalog import cities
from core.city_charts import compute_city_charts, series_frame
from core.data import clear_cache, load_dashboard_data
from core.filters import KNOWN_VARIABLES, DashboardFilters, normalize_filters


app = FastAPI(title="TCI Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel, dataset: pd.DataFrame) -> DashboardFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_cities=cities(dataset, raw.get("country") or ""))


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
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/countries", response_model=MetaCountriesResponse)
def meta_countries():
    try:
        data_ctx = load_dashboard_data()
        return _json({"countries": data_ctx["countries"], "error": data_ctx["error"]})
    except Exception as exc:
        logger.exception("meta_countries failed")
        return _error(exc)


@app.get("/meta/cities", response_model=MetaCitiesResponse)
def meta_cities(country: str = Query(default="")):
    try:
        data_ctx = load_dashboard_data()
        return _json({"cities": cities(data_ctx["dataset"], country)})
    except Exception as exc:
        logger.exception("meta_cities failed")
        return _error(exc)


@app.get("/meta/variables", response_model=MetaVariablesResponse)
def meta_variables():
    return MetaVariablesResponse(
        variables=[VariableModel(name=v.name, label=v.label, color=v.color, default=v.default) for v in KNOWN_VARIABLES]
    )


@app.post("/charts")
def charts(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        dataset: pd.DataFrame = data_ctx["dataset"]
        f = _filters_from_model(filters, dataset)
        return _json(compute_city_charts(f, dataset))
    except Exception as exc:
        logger.exception("charts failed")
        return _error(exc)


@app.post("/reload")
def reload():
    clear_cache()
    data_ctx = load_dashboard_data()
    return _json({"rows": len(data_ctx["dataset"]), "error": data_ctx["error"]})


@app.post("/export/{city}")
def export_city(city: str, filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = normalize_filters(filters.model_dump())
        export_df = series_frame(data_ctx["dataset"], city, f.variables)
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        disposition = f"attachment; filename*=UTF-8''{quote(city, safe='')}.csv"
        return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": disposition})
    except Exception as exc:
        logger.exception("export_city failed")
        return _error(exc)
