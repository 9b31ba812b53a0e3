"""
Daily prayer times from the Aladhan calendar API, with a local fallback table.
"""
import re
import logging
import requests
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from core.settings import settings

logger = logging.getLogger(__name__)

PRAYERS = (
    ("Fajr", "الفجر"),
    ("Dhuhr", "الظهر"),
    ("Asr", "العصر"),
    ("Maghrib", "المغرب"),
    ("Isha", "العشاء"),
)

FALLBACK_TIMES = {
    "Fajr": "04:30",
    "Dhuhr": "12:00",
    "Asr": "15:30",
    "Maghrib": "18:00",
    "Isha": "19:30",
}

TIMING_PATTERN = re.compile(r'(\d{1,2}):(\d{2})')


@dataclass
class PrayerTime:
    name: str
    arabic_name: str
    time: time

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "arabic_name": self.arabic_name,
            "time": self.time.strftime("%H:%M"),
        }


def parse_timing(value: str) -> Optional[time]:
    """'04:30 (EET)' -> time(4, 30)"""
    match = TIMING_PATTERN.search(value or "")
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def build_prayer_times(timings: Dict[str, str]) -> List[PrayerTime]:
    result = []
    for name, arabic_name in PRAYERS:
        parsed = parse_timing(timings.get(name, ""))
        if parsed is None:
            raise ValueError(f"Missing or invalid timing for {name}")
        result.append(PrayerTime(name, arabic_name, parsed))
    return result


def fallback_prayer_times() -> List[PrayerTime]:
    return build_prayer_times(FALLBACK_TIMES)


def fetch_prayer_times(day: Optional[date] = None) -> Dict[str, Any]:
    """
    Prayer times for a day.

    Returns {'date', 'source', 'times'} where source is "api" or "fallback".
    Any network or payload problem falls back to the local table.
    """
    day = day or date.today()
    url = f"{settings.PRAYER_TIMES_API_URL}/{day.year}/{day.month}"
    params = {
        "latitude": settings.PRAYER_LATITUDE,
        "longitude": settings.PRAYER_LONGITUDE,
        "method": settings.PRAYER_METHOD,
    }

    try:
        response = requests.get(url, params=params, timeout=settings.PRAYER_REQUEST_TIMEOUT)
        response.raise_for_status()
        payload = response.json()

        entry = next(
            (
                item for item in payload.get("data", [])
                if str(item.get("date", {}).get("gregorian", {}).get("day", "")).lstrip("0") == str(day.day)
            ),
            None,
        )
        if entry is None:
            raise ValueError(f"No timings for {day.isoformat()} in API response")

        times = build_prayer_times(entry.get("timings", {}))
        return {"date": day, "source": "api", "times": times}

    except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
        logger.warning(f"Prayer times API unavailable, using fallback table: {e}")
        return {"date": day, "source": "fallback", "times": fallback_prayer_times()}


def next_prayer(times: List[PrayerTime], now: datetime) -> Dict[str, Any]:
    """Next prayer after `now`; after Isha this is tomorrow's Fajr."""
    for prayer in times:
        at = datetime.combine(now.date(), prayer.time)
        if at > now:
            return {"prayer": prayer, "at": at, "remaining": at - now}

    first = times[0]
    at = datetime.combine(now.date() + timedelta(days=1), first.time)
    return {"prayer": first, "at": at, "remaining": at - now}


def format_remaining(remaining: timedelta) -> str:
    total_seconds = int(remaining.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
