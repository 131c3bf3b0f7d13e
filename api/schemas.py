from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.filters import default_variables


class DashboardFiltersModel(BaseModel):
    country: str = ""
    cities: List[str] = Field(default_factory=list)
    select_all: bool = False
    variables: Dict[str, bool] = Field(default_factory=default_variables)


class VariableModel(BaseModel):
    name: str
    label: str
    color: str
    default: bool


class MetaCountriesResponse(BaseModel):
    countries: List[str]
    error: Optional[str] = None


class MetaCitiesResponse(BaseModel):
    cities: List[str]


class MetaVariablesResponse(BaseModel):
    variables: List[VariableModel]
