from __future__ import annotations

import re
from typing import Optional, Tuple

import pandas as pd

# Fixed English abbreviations; calendar.month_abbr follows the process locale.
MONTH_ABBR = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

TIME_KEY_RE = re.compile(r"^(\d{4})m(\d{1,2})$")
GRAD_DATE_RE = re.compile(r"^([A-Za-z]{3})-(\d{2})$")


class FormatError(ValueError):
    """Raised when a time key or graduation label does not match its format."""


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    s = str(value).strip()
    return s or None


def parse_time_key(key: object) -> Tuple[int, int]:
    """Parse a `YYYYmM` key like 2023m7 -> (2023, 7)."""
    s = _clean(key)
    match = TIME_KEY_RE.match(s) if s else None
    if not match:
        raise FormatError(f"Invalid time key: {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise FormatError(f"Month out of range in time key: {key!r}")
    return year, month


def format_display_date(key: object) -> str:
    """Render a time key as `YYYY-MM` for axes and tooltips; '' when unusable."""
    try:
        year, month = parse_time_key(key)
    except FormatError:
        return ""
    return f"{year:04d}-{month:02d}"


def convert_graduation_date(label: object) -> str:
    """Convert a `Mon-YY` graduation label (e.g. Jan-23) to a time key (2023m1)."""
    s = _clean(label)
    if s is None:
        return ""
    match = GRAD_DATE_RE.match(s)
    if not match:
        raise FormatError(f"Invalid graduation date: {label!r}")
    month_name, year = match.group(1).lower(), match.group(2)
    if month_name not in MONTH_ABBR:
        raise FormatError(f"Unknown month in graduation date: {label!r}")
    return f"20{year}m{MONTH_ABBR.index(month_name) + 1}"


def time_key_sort_value(key: object) -> Optional[int]:
    try:
        year, month = parse_time_key(key)
    except FormatError:
        return None
    return year * 100 + month
