"""
Tolerant parsing helpers for spreadsheet-sourced values.
"""
import re
import pandas as pd
from typing import Any, Dict, Iterable, Optional

NUMBER_PATTERN = re.compile(r'-?[0-9]+[0-9,.\s]*')
TRUE_VALUES = {'true', 'yes', 'y', '1', '✓', '✔'}


def is_blank(value: Any) -> bool:
    """True for None, NaN and empty/whitespace strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Parse a loosely formatted number.

    "1,250.50" -> 1250.5, " 12 m3" -> 12.0, "abc" -> default.
    """
    if is_blank(value) or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)

    match = NUMBER_PATTERN.search(str(value))
    if not match:
        return default

    numeric = re.sub(r'[^0-9.\-]', '', match.group())
    try:
        return float(numeric)
    except ValueError:
        return default


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if is_blank(value):
        return False
    return str(value).strip().lower() in TRUE_VALUES


def clean_text(value: Any) -> Optional[str]:
    """Strip strings, map blanks to None."""
    if is_blank(value):
        return None
    return str(value).strip()


def _squash(name: str) -> str:
    return re.sub(r'\s+', '', str(name)).lower()


def get_value(row: Dict[str, Any], names: Iterable[str]) -> Any:
    """
    Look a value up under any of the given header names.

    Tries each name exactly, then case-insensitively, then ignoring
    whitespace ("PROJECT CODE ( FROM )" == "Project Code (From)").
    Blank cells are skipped.
    """
    names = list(names)
    for name in names:
        if name in row and not is_blank(row[name]):
            return row[name]

    lowered = {str(key).lower(): key for key in row}
    for name in names:
        key = lowered.get(name.lower())
        if key is not None and not is_blank(row[key]):
            return row[key]

    squashed = {_squash(key): key for key in row}
    for name in names:
        key = squashed.get(_squash(name))
        if key is not None and not is_blank(row[key]):
            return row[key]

    return None


def number_text(value: Any) -> Optional[str]:
    """Render a number the way the planning tables store it ("1250", "12.5")."""
    number = parse_number(value, default=None)
    if number is None:
        return None
    if number.is_integer():
        return str(int(number))
    return format(number, '.6f').rstrip('0').rstrip('.')
