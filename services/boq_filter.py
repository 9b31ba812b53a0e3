"""
Multi-criteria filtering of BOQ activities.

All criteria are ANDed; values inside a multi-select are ORed.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from models.domain import ActivityRecord
from services.code_matching import matches_any_project, zone_matches, normalize_zone

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BoqFilterCriteria:
    projects: List[str] = field(default_factory=list)
    activities: List[str] = field(default_factory=list)
    zones: List[str] = field(default_factory=list)
    units: List[str] = field(default_factory=list)
    divisions: List[str] = field(default_factory=list)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_quantity: Optional[float] = None
    max_quantity: Optional[float] = None
    search: Optional[str] = None


def _in_list(value: str, selected: Sequence[str]) -> bool:
    target = value.strip().lower()
    return any(target == item.strip().lower() for item in selected)


def _in_range(value: float, low: Optional[float], high: Optional[float]) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _activity_date(activity: ActivityRecord) -> Optional[date]:
    return activity.planned_start_date or activity.deadline


def _matches_search(activity: ActivityRecord, term: str) -> bool:
    term = term.strip().lower()
    haystack = (
        activity.activity_description, activity.project_code, activity.project_sub_code,
        activity.project_full_code, activity.activity_division, activity.unit,
        activity.zone_number, activity.project_full_name,
    )
    return any(term in (value or "").lower() for value in haystack)


def matches_criteria(activity: ActivityRecord, criteria: BoqFilterCriteria) -> bool:
    if criteria.projects and not matches_any_project(
            criteria.projects, activity.project_code,
            activity.project_sub_code, activity.project_full_code):
        return False
    if criteria.activities and not _in_list(activity.activity_description, criteria.activities):
        return False
    if criteria.zones and not zone_matches(activity.zone_number, criteria.zones, activity.project_code):
        return False
    if criteria.units and not _in_list(activity.unit, criteria.units):
        return False
    if criteria.divisions and not _in_list(activity.activity_division, criteria.divisions):
        return False

    if criteria.date_from or criteria.date_to:
        activity_date = _activity_date(activity)
        if activity_date is None:
            return False
        if criteria.date_from and activity_date < criteria.date_from:
            return False
        if criteria.date_to and activity_date > criteria.date_to:
            return False

    if not _in_range(activity.total_value, criteria.min_value, criteria.max_value):
        return False
    if not _in_range(activity.total_units, criteria.min_quantity, criteria.max_quantity):
        return False
    if criteria.search and not _matches_search(activity, criteria.search):
        return False
    return True


def filter_activities(activities: Sequence[ActivityRecord], criteria: BoqFilterCriteria) -> List[ActivityRecord]:
    result = [activity for activity in activities if matches_criteria(activity, criteria)]
    logger.debug(f"Filtered {len(activities)} activities down to {len(result)}")
    return result


def build_facets(activities: Sequence[ActivityRecord], selected_projects: Sequence[str] = ()) -> Dict[str, List[str]]:
    """Distinct filter values available under the current project selection."""
    if selected_projects:
        activities = [
            activity for activity in activities
            if matches_any_project(selected_projects, activity.project_code,
                                   activity.project_sub_code, activity.project_full_code)
        ]

    descriptions, zones, units, divisions = set(), set(), set(), set()
    for activity in activities:
        if activity.activity_description:
            descriptions.add(activity.activity_description)
        if activity.has_zone:
            token = normalize_zone(activity.zone_number, activity.project_code)
            if token:
                zones.add(token)
        if activity.unit:
            units.add(activity.unit)
        if activity.activity_division:
            divisions.add(activity.activity_division)

    return {
        "activities": sorted(descriptions),
        "zones": sorted(zones),
        "units": sorted(units),
        "divisions": sorted(divisions),
    }


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int]:
    """One page (1-based) of items, plus the total count."""
    page = max(page, 1)
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), len(items)
