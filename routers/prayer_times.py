from datetime import date, datetime
from typing import Optional
from fastapi import APIRouter, Query
from services.prayer_times import fetch_prayer_times, next_prayer, format_remaining
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prayer-times", tags=["Prayer Times"])


@router.get("", summary="Prayer Times")
def get_prayer_times(day: Optional[date] = Query(default=None, description="Defaults to today")):
    """Day's prayer times from the API, or the local fallback table."""
    result = fetch_prayer_times(day)
    return {
        "date": result["date"],
        "source": result["source"],
        "times": [prayer.to_dict() for prayer in result["times"]],
    }


@router.get("/next", summary="Next Prayer")
def get_next_prayer():
    """Next prayer and the time left until it."""
    now = datetime.now()
    result = fetch_prayer_times(now.date())
    upcoming = next_prayer(result["times"], now)
    return {
        "source": result["source"],
        **upcoming["prayer"].to_dict(),
        "at": upcoming["at"],
        "remaining": format_remaining(upcoming["remaining"]),
        "remaining_seconds": int(upcoming["remaining"].total_seconds()),
    }
