from __future__ import annotations

import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
import requests

from core.catalog import countries

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
LOCAL_CSV_PATH = DATA_DIR / "dataset.csv"

SHEET_ID = "1ute_A9t0CBvWwwvMPGwz6OSGeQO6_qV8"
SHEET_GID = "972210733"
REQUEST_TIMEOUT = 30

TIME_KEY_COLUMNS = ("yearmonth", "reportingdate")
KEY_COLUMNS = ("country", "city", "impdate", "graduationdate") + TIME_KEY_COLUMNS


class LoadError(RuntimeError):
    """Raised when the dataset cannot be fetched, decoded or parsed."""


def sheet_export_url(sheet_id: str = SHEET_ID, gid: str = SHEET_GID) -> str:
    return f"https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"


def default_source() -> str:
    """Prefer a CSV shipped next to the app, else the published sheet."""
    if LOCAL_CSV_PATH.exists():
        return str(LOCAL_CSV_PATH)
    return sheet_export_url()


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def fetch_text(source: str) -> str:
    if _is_url(source):
        try:
            resp = requests.get(source, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise LoadError(f"Request for {source} failed: {exc}") from exc
        raw = resp.content
    else:
        try:
            raw = Path(source).read_bytes()
        except OSError as exc:
            raise LoadError(f"Cannot read {source}: {exc}") from exc
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise LoadError(f"{source} is not valid UTF-8: {exc}") from exc


def infer_cell(value: object) -> object:
    """Numeric strings become numbers; everything else is left alone."""
    if not isinstance(value, str):
        return value
    s = value.strip()
    if not s:
        return value
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        return value


def infer_types(df: pd.DataFrame, skip: Iterable[str] = KEY_COLUMNS) -> pd.DataFrame:
    skip = set(skip)
    for col in df.columns:
        if col in skip or not pd.api.types.is_string_dtype(df[col].dtype):
            continue
        df[col] = df[col].map(infer_cell)
    return df


def parse_csv(text: str) -> pd.DataFrame:
    if not text.strip():
        return pd.DataFrame()
    try:
        header = pd.read_csv(io.StringIO(text), nrows=0, index_col=False).columns
        # Fields past the header width (trailing commas, stray extras) are dropped.
        df = pd.read_csv(
            io.StringIO(text),
            dtype={c: str for c in KEY_COLUMNS},
            skip_blank_lines=True,
            index_col=False,
            usecols=list(range(len(header))),
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise LoadError(f"Cannot parse CSV: {exc}") from exc
    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all").reset_index(drop=True)
    for col in KEY_COLUMNS:
        if col in df.columns:
            df[col] = df[col].str.strip()
    return infer_types(df)


def time_key_column(df: pd.DataFrame) -> Optional[str]:
    for col in TIME_KEY_COLUMNS:
        if col in df.columns:
            return col
    return None


def time_keys(df: pd.DataFrame) -> pd.Series:
    """Per-row time key: yearmonth, falling back to reportingdate."""
    present = [c for c in TIME_KEY_COLUMNS if c in df.columns]
    if not present:
        return pd.Series([None] * len(df), index=df.index, dtype=object)
    keys = df[present[0]]
    for col in present[1:]:
        keys = keys.fillna(df[col])
    return keys


def read_dataset(source: str) -> pd.DataFrame:
    """Fetch and parse `source` (URL or path). Raises LoadError."""
    return parse_csv(fetch_text(source))


@lru_cache(maxsize=4)
def _read_dataset_cached(source: str) -> pd.DataFrame:
    df = read_dataset(source)
    logger.info("Loaded %d rows from %s", len(df), source)
    return df


def load_dataset(source: Optional[str] = None) -> pd.DataFrame:
    """Load boundary: failures are logged and surface as an empty dataset."""
    source = source or default_source()
    try:
        return _read_dataset_cached(source).copy()
    except LoadError:
        logger.warning("Error loading data from %s", source, exc_info=True)
        return pd.DataFrame()


def clear_cache() -> None:
    _read_dataset_cached.cache_clear()


def load_dashboard_data(source: Optional[str] = None) -> Dict[str, object]:
    source = source or default_source()
    error: Optional[str] = None
    try:
        dataset = _read_dataset_cached(source).copy()
    except LoadError as exc:
        logger.warning("Error loading data from %s", source, exc_info=True)
        dataset = pd.DataFrame()
        error = str(exc)
    country_list: List[str] = countries(dataset)
    return {"source": source, "dataset": dataset, "countries": country_list, "error": error}
