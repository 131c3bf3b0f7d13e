from __future__ import annotations

from typing import List

import pandas as pd


def _distinct_sorted(values: pd.Series) -> List[str]:
    return sorted({str(v) for v in values.dropna().tolist() if str(v) != ""})


def countries(df: pd.DataFrame) -> List[str]:
    if df.empty or "country" not in df.columns:
        return []
    return _distinct_sorted(df["country"])


def cities(df: pd.DataFrame, country: str) -> List[str]:
    """Cities of `country` (exact, case-sensitive match), sorted."""
    if df.empty or not country or not {"country", "city"}.issubset(df.columns):
        return []
    return _distinct_sorted(df.loc[df["country"] == country, "city"])
