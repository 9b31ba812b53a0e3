"""
Date decoding for imported spreadsheets.

Excel stores dates as serial day numbers in the 1900 date system. Serial 1 is
1900-01-01 and serial 60 is 1900-02-29, a day that never existed (Excel kept
Lotus 1-2-3's leap-year bug). Counting from 1899-12-30 gives the right date
for every serial after 60; serials 1-59 need one extra day.
"""
import re
import math
from datetime import date, datetime, timedelta
from typing import Any, Optional
from utils.parsing import is_blank

EXCEL_EPOCH = date(1899, 12, 30)
PHANTOM_LEAP_DAY_SERIAL = 60
MAX_SERIAL = 1000000
MIN_YEAR = 1900
MAX_YEAR = 2100

INVALID_TOKENS = {'null', 'undefined', 'n/a', 'na', '#div/0!', '#error!', '#value!', 'nan', 'nat'}

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

ISO_PATTERN = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$')
COMPACT_PATTERN = re.compile(r'^(\d{4})(\d{2})(\d{2})$')
SLASH_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
DAY_MONTH_YEAR_PATTERN = re.compile(r'^(\d{1,2})-([A-Za-z]{3})-(\d{2}|\d{4})$')


def _in_range(value: Optional[date]) -> Optional[date]:
    if value is None or not MIN_YEAR <= value.year <= MAX_YEAR:
        return None
    return value


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return _in_range(date(year, month, day))
    except ValueError:
        return None


def excel_serial_to_date(serial: Any) -> Optional[date]:
    """Decode an Excel serial day number; None when it is not a usable date."""
    try:
        days = math.floor(float(serial))
    except (TypeError, ValueError, OverflowError):
        return None

    if days <= 0 or days >= MAX_SERIAL or days == PHANTOM_LEAP_DAY_SERIAL:
        return None
    if days < PHANTOM_LEAP_DAY_SERIAL:
        days += 1

    return _in_range(EXCEL_EPOCH + timedelta(days=days))


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date from any of the formats found in imported sheets.

    Handles date/datetime objects, Excel serials, YYYY-MM-DD, YYYYMMDD,
    MM/DD/YYYY (DD/MM/YYYY when the month is out of range) and D-Mon-YY.
    Returns None when nothing matches.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return _in_range(value.date())
    if isinstance(value, date):
        return _in_range(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return excel_serial_to_date(value)

    text = str(value).strip()
    if text.lower() in INVALID_TOKENS:
        return None

    match = ISO_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = COMPACT_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    if not any(sep in text for sep in ('/', '-', 'T', ':')):
        try:
            return excel_serial_to_date(float(text))
        except ValueError:
            pass

    match = SLASH_PATTERN.match(text)
    if match:
        first, second, year = (int(part) for part in match.groups())
        return _safe_date(year, first, second) or _safe_date(year, second, first)

    match = DAY_MONTH_YEAR_PATTERN.match(text)
    if match:
        day, month_name, year = match.groups()
        month = MONTHS.get(month_name.lower())
        if month:
            year = int(year) if len(year) == 4 else 2000 + int(year)
            return _safe_date(year, month, int(day))

    try:
        return _in_range(datetime.fromisoformat(text).date())
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """YYYY-MM-DD for any parseable value, empty string otherwise."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else ''
