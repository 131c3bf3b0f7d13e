from __future__ import annotations

import logging
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.dates import FormatError, convert_graduation_date, format_display_date
from core.filters import enabled_variables, variable_for
from core.series import CityMetadata, SeriesPoint

alt.data_transformers.disable_max_rows()

logger = logging.getLogger(__name__)

IMP_COLOR = "red"
GRAD_COLOR = "blue"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def reference_lines(metadata: CityMetadata) -> List[Dict[str, str]]:
    """Reference-line time keys, always derived from city metadata."""
    lines: List[Dict[str, str]] = []
    if metadata.impdate:
        lines.append({"kind": "imp date", "date": metadata.impdate, "color": IMP_COLOR})
    try:
        grad = convert_graduation_date(metadata.graduationdate)
    except FormatError:
        logger.warning("Skipping graduation line, bad date %r", metadata.graduationdate)
        grad = ""
    if grad:
        lines.append({"kind": "grad date", "date": grad, "color": GRAD_COLOR})
    return lines


def _long_frame(points: List[SeriesPoint], names: List[str]) -> pd.DataFrame:
    records = []
    for p in points:
        label = format_display_date(p.get("date"))
        for name in names:
            records.append(
                {
                    "date": p.get("date"),
                    "date_label": label,
                    "variable": variable_for(name).label,
                    "value": p.get(name),
                }
            )
    return pd.DataFrame(records, columns=["date", "date_label", "variable", "value"])


def build_city_chart(
    points: List[SeriesPoint],
    variables: Dict[str, bool],
    metadata: CityMetadata,
    city: str = "",
    height: int = 400,
) -> alt.LayerChart:
    names = enabled_variables(variables)
    data = _long_frame(points, names)
    domain = list(dict.fromkeys(format_display_date(p.get("date")) for p in points))

    x = alt.X(
        "date_label:O",
        title=None,
        sort=domain,
        scale=alt.Scale(domain=domain),
        axis=alt.Axis(labelAngle=90, labelFontSize=10, labelOverlap=True, grid=True, gridDash=[3, 3]),
    )
    labels = [variable_for(n).label for n in names]
    colors = [variable_for(n).color for n in names]
    dashes = [[5, 5] if variable_for(n).dashed else [1, 0] for n in names]

    lines = (
        alt.Chart(data)
        .mark_line(strokeWidth=2)
        .encode(
            x=x,
            y=alt.Y("value:Q", title=None, axis=alt.Axis(gridDash=[3, 3])),
            color=alt.Color("variable:N", title=None, scale=alt.Scale(domain=labels, range=colors), legend=alt.Legend(orient="bottom")),
            strokeDash=alt.StrokeDash("variable:N", scale=alt.Scale(domain=labels, range=dashes), legend=None),
            tooltip=[
                alt.Tooltip("date_label:O", title="Date"),
                alt.Tooltip("variable:N", title="Variable"),
                alt.Tooltip("value:Q", title="Value"),
            ],
        )
    )

    refs = []
    for line in reference_lines(metadata):
        label = format_display_date(line["date"])
        if not label or label not in domain:
            logger.debug("%s %s outside series for %s", line["kind"], line["date"], city)
            continue
        refs.append({**line, "date_label": label})

    layers: List[alt.Chart] = [lines]
    if refs:
        ref_df = pd.DataFrame(refs)
        rules = (
            alt.Chart(ref_df)
            .mark_rule(strokeDash=[3, 3])
            .encode(x=x, color=alt.Color("color:N", scale=None, legend=None), tooltip=["kind:N", "date_label:O"])
        )
        text = (
            alt.Chart(ref_df)
            .mark_text(angle=90, align="left", dx=5, dy=-50, fontSize=9)
            .encode(x=x, y=alt.value(0), text="kind:N", color=alt.Color("color:N", scale=None, legend=None))
        )
        layers.extend([rules, text])

    return alt.layer(*layers).properties(title=city, height=height, width="container")
