from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.catalog import cities
from core.charts import build_city_chart, reference_lines, to_vega_spec
from core.dates import format_display_date
from core.filters import DashboardFilters, enabled_variables
from core.series import build_series


def compute_city_charts(filters: DashboardFilters, df: pd.DataFrame) -> Dict[str, Any]:
    available = cities(df, filters.country)
    selected = [c for c in filters.cities if c in set(available)]

    cards: List[Dict[str, Any]] = []
    for city in selected:
        points, metadata = build_series(df, city, filters.variables)
        refs = reference_lines(metadata)
        cards.append(
            {
                "city": city,
                "points": points,
                "metadata": metadata.to_dict(),
                "reference_lines": [{**r, "date_label": format_display_date(r["date"])} for r in refs],
                "chart": to_vega_spec(build_city_chart(points, filters.variables, metadata, city=city)) if points else None,
            }
        )

    return {
        "filters": asdict(filters),
        "cities": available,
        "variables": enabled_variables(filters.variables),
        "charts": cards,
    }


def series_frame(df: pd.DataFrame, city: str, variables: Dict[str, bool]) -> pd.DataFrame:
    points, _ = build_series(df, city, variables)
    cols = ["date"] + enabled_variables(variables)
    return pd.DataFrame(points, columns=cols)
