from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from core.data import time_keys
from core.dates import time_key_sort_value

logger = logging.getLogger(__name__)

DIAGNOSTIC_FIELDS = (
    "NCU_per_1000",
    "NCU",
    "NCU_final_period",
    "portmenteau_pvalue",
    "integration",
    "analysis",
    "LRT_pvalue",
    "ramp_pvalue",
    "ar",
    "ma",
)
METADATA_FIELDS = ("impdate", "graduationdate") + DIAGNOSTIC_FIELDS

SeriesPoint = Dict[str, Any]


def scalar(value: object) -> Any:
    """Plain Python value for a DataFrame cell; missing -> None."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, np.generic):
        return value.item()
    return value


@dataclass(frozen=True)
class CityMetadata:
    impdate: Optional[str] = None
    graduationdate: Optional[str] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.impdate is not None:
            out["impdate"] = self.impdate
        if self.graduationdate is not None:
            out["graduationdate"] = self.graduationdate
        out.update(self.diagnostics)
        return out


def city_metadata(rows: pd.DataFrame) -> CityMetadata:
    """Metadata from the first row (source order) of a single city's rows."""
    if rows.empty:
        return CityMetadata()
    first = rows.iloc[0]
    values = {c: scalar(first[c]) for c in METADATA_FIELDS if c in rows.columns}

    varying = [c for c in values if rows[c].nunique(dropna=False) > 1]
    if varying:
        logger.warning("Metadata differs across rows of one city: %s", ", ".join(varying))

    impdate = values.pop("impdate", None)
    graduationdate = values.pop("graduationdate", None)
    diagnostics = {k: v for k, v in values.items() if v is not None}
    return CityMetadata(
        impdate=str(impdate) if impdate is not None else None,
        graduationdate=str(graduationdate) if graduationdate is not None else None,
        diagnostics=diagnostics,
    )


def build_series(
    df: pd.DataFrame, city: str, variables: Dict[str, bool]
) -> Tuple[List[SeriesPoint], CityMetadata]:
    if df.empty or "city" not in df.columns:
        return [], CityMetadata()
    rows = df[df["city"] == city]
    if rows.empty:
        return [], CityMetadata()

    metadata = city_metadata(rows)

    rows = rows.assign(_date=time_keys(rows))
    rows = rows.assign(_order=pd.to_numeric(rows["_date"].map(time_key_sort_value), errors="coerce"))
    rows = rows.sort_values("_order", kind="stable", na_position="last")

    enabled = [name for name, on in variables.items() if on]
    points: List[SeriesPoint] = []
    for _, row in rows.iterrows():
        point: SeriesPoint = {"date": scalar(row["_date"])}
        for name in enabled:
            point[name] = scalar(row[name]) if name in rows.columns else None
        points.append(point)
    return points, metadata
