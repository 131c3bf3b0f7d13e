from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class Variable:
    name: str
    label: str
    color: str
    default: bool = False
    dashed: bool = False


KNOWN_VARIABLES: List[Variable] = [
    Variable("totalreportingsdp_imp", "Total Reporting SDP (Imp)", "#8884d8", default=True),
    Variable("nac_wraadj_total_imp", "NAC Wrap Adj Total (Imp)", "#82ca9d", default=True),
    Variable("nac_wraadj_int", "NAC Wrap Adj Int", "#ff7300", default=True),
    Variable("nac_wraadj_noint", "NAC Wrap Adj NoInt", "#ff7300", default=True, dashed=True),
    Variable("totalreportingsdp", "Total Reporting SDP", "#6b7280"),
    Variable("nac_wraadj_total", "NAC Wrap Adj Total", "#2563eb"),
    Variable("nac_alladj_total_imp", "NAC All Adj Total (Imp)", "#0f766e"),
    Variable("nac_alladj_total", "NAC All Adj Total", "#a16207"),
]
VARIABLES_BY_NAME: Dict[str, Variable] = {v.name: v for v in KNOWN_VARIABLES}
FALLBACK_COLOR = "#9ca3af"


def variable_for(name: str) -> Variable:
    return VARIABLES_BY_NAME.get(name) or Variable(name, name, FALLBACK_COLOR)


def default_variables() -> Dict[str, bool]:
    return {v.name: v.default for v in KNOWN_VARIABLES}


def enabled_variables(variables: Dict[str, bool]) -> List[str]:
    return [name for name, on in variables.items() if on]


@dataclass(frozen=True)
class DashboardFilters:
    country: str = ""
    cities: List[str] = field(default_factory=list)
    variables: Dict[str, bool] = field(default_factory=default_variables)


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v)
        if s and s not in out:
            out.append(s)
    return out


def normalize_filters(raw: dict, *, available_cities: Optional[List[str]] = None) -> DashboardFilters:
    country = (raw.get("country") or "").strip()

    selected_cities = _as_str_list(raw.get("cities"))
    if available_cities is not None:
        if raw.get("select_all"):
            selected_cities = list(available_cities)
        allowed = set(available_cities)
        selected_cities = [c for c in selected_cities if c in allowed]

    variables = default_variables()
    for name, on in (raw.get("variables") or {}).items():
        variables[str(name)] = bool(on)

    return DashboardFilters(country=country, cities=selected_cities, variables=variables)
