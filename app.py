import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict

from core import data as dd
from core.catalog import cities
from core.charts import build_city_chart
from core.city_charts import series_frame
from core.filters import KNOWN_VARIABLES, Variable, normalize_filters
from core.series import CityMetadata, build_series


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .diag {font-size: 0.75rem;line-height: 1.1;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header"><div class="card-title">{title}</div></div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


DIAGNOSTIC_LABELS = [
    ("NCU_per_1000", "NCU per 1000"),
    ("NCU", "NCU"),
    ("NCU_final_period", "NCU Final Period"),
    ("portmenteau_pvalue", "P Portmanteau"),
    ("integration", "Integration"),
    ("analysis", "Analysis"),
    ("LRT_pvalue", "LRT P-value"),
    ("ramp_pvalue", "Ramp P-value"),
]


def _fmt(value: object) -> str:
    return "" if value is None else str(value)


def variable_label(v: Variable) -> str:
    return f"<span style='color:{v.color}'>{v.name}</span>"


def render_diagnostics(metadata: CityMetadata):
    diag = metadata.diagnostics
    cols = st.columns(4)
    for idx, (key, label) in enumerate(DIAGNOSTIC_LABELS):
        cols[idx % 4].markdown(f"<div class='diag'>{label}: {_fmt(diag.get(key))}</div>", unsafe_allow_html=True)
    st.markdown(
        f"<div class='diag'>Model: AR({_fmt(diag.get('ar'))}), MA({_fmt(diag.get('ma'))})</div>",
        unsafe_allow_html=True,
    )


def render_city(dataset: pd.DataFrame, city: str, variables: Dict[str, bool]):
    points, metadata = build_series(dataset, city, variables)
    with card(city):
        render_diagnostics(metadata)
        if not points:
            st.info("No rows for this city.")
            return
        st.altair_chart(build_city_chart(points, variables, metadata, city=city), use_container_width=True)
        st.download_button(
            "Export CSV",
            data=series_frame(dataset, city, variables).to_csv(index=False).encode("utf-8"),
            file_name=f"{city}.csv",
            mime="text/csv",
            key=f"export_{city}",
        )


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard - TCI", layout="wide")
inject_base_styles()
top_left, top_right = st.columns([8, 2])
top_left.title("Dashboard - TCI")
if top_right.button("Reload data"):
    dd.clear_cache()
    st.rerun()

data_ctx = dd.load_dashboard_data()
dataset: pd.DataFrame = data_ctx["dataset"]
if data_ctx["error"]:
    st.error(f"Error loading data: {data_ctx['error']}")
elif dataset.empty:
    st.warning("The dataset is empty.")

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filters")
    country_options = [""] + data_ctx["countries"]
    selected_country = st.selectbox(
        "Select Country:",
        options=country_options,
        format_func=lambda c: c or "Select a country...",
    )

    st.markdown("---")
    st.markdown("**Select Variables:**")
    selected_vars: Dict[str, bool] = {}
    for v in KNOWN_VARIABLES:
        box, text = st.columns([1, 8])
        selected_vars[v.name] = box.checkbox(v.label, value=v.default, key=f"var_{v.name}", label_visibility="collapsed")
        text.markdown(variable_label(v), unsafe_allow_html=True)

city_options = cities(dataset, selected_country)
selected_cities = []
select_all = False
if selected_country:
    st.markdown("**Select Cities:**")
    select_all = st.checkbox("Select All", key=f"all_{selected_country}")
    selected_cities = st.multiselect(
        "Cities",
        options=city_options,
        default=city_options if select_all else [],
        key=f"cities_{selected_country}_{select_all}",
        label_visibility="collapsed",
    )

filters = normalize_filters(
    {"country": selected_country, "cities": selected_cities, "variables": selected_vars},
    available_cities=city_options,
)

for city in filters.cities:
    render_city(dataset, city, filters.variables)

if filters.country and not filters.cities:
    st.write("Please select one or more cities")
