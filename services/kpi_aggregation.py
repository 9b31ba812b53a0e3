"""
KPI to BOQ activity matching and value aggregation.
"""
import logging
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional

from models.domain import ActivityRecord, KpiRecord
from services.code_matching import matches_project, normalize_zone, extract_zone_number

logger = logging.getLogger(__name__)

VALUE_EQUALS_QUANTITY_TOLERANCE = 0.01
PLAIN_ZONE_PATTERN = re.compile(r"^zone\s*[-_]?\s*\d+$")


@dataclass
class KpiSummary:
    planned_quantity: float = 0.0
    planned_value: float = 0.0
    actual_quantity: float = 0.0
    actual_value: float = 0.0
    progress: float = 0.0
    matched: int = 0
    unmatched: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _same_project(kpi: KpiRecord, activity: ActivityRecord) -> bool:
    activity_full = activity.project_full_code.strip().upper()
    if "-" in activity_full:
        return kpi.project_full_code.strip().upper() == activity_full
    return matches_project(
        activity.project_full_code or activity.project_code,
        kpi.project_code, kpi.project_sub_code, kpi.project_full_code,
        strict=True,
    )


def _description_match(kpi: KpiRecord, activity: ActivityRecord) -> bool:
    kpi_desc = kpi.activity_description.strip().lower()
    activity_desc = activity.activity_description.strip().lower()
    if not kpi_desc or not activity_desc:
        return False
    return kpi_desc in activity_desc or activity_desc in kpi_desc


def _zone_key(zone: str) -> str:
    """'zone-2' and 'zone 2' share a key; any other label stays as its own token."""
    if PLAIN_ZONE_PATTERN.match(zone):
        return f"zone {extract_zone_number(zone)}"
    return zone


def _zone_match(kpi: KpiRecord, activity: ActivityRecord) -> bool:
    if not activity.has_zone:
        return True
    kpi_zone = normalize_zone(kpi.zone, kpi.project_code, kpi.project_full_code)
    activity_zone = normalize_zone(activity.zone_number, activity.project_code, activity.project_full_code)
    return bool(kpi_zone) and _zone_key(kpi_zone) == _zone_key(activity_zone)


def kpi_matches_activity(kpi: KpiRecord, activity: ActivityRecord) -> bool:
    """Same project (strict), overlapping description, and same zone when the activity has one."""
    return _same_project(kpi, activity) and _description_match(kpi, activity) and _zone_match(kpi, activity)


def match_kpi_to_activity(kpi: KpiRecord, activities: Iterable[ActivityRecord]) -> Optional[ActivityRecord]:
    """First matching activity, preferring an exact description match."""
    candidates = [activity for activity in activities if kpi_matches_activity(kpi, activity)]
    if not candidates:
        return None

    kpi_desc = kpi.activity_description.strip().lower()
    for activity in candidates:
        if activity.activity_description.strip().lower() == kpi_desc:
            return activity
    return candidates[0]


def kpi_value(kpi: KpiRecord, activity: Optional[ActivityRecord]) -> float:
    """
    Monetary value of a KPI row.

    Uses the activity rate (total value / total units) when positive. The
    stored value is used only when it differs from the quantity; upstream
    imports sometimes copied the quantity into the value column.
    """
    if activity is not None and activity.total_units > 0:
        rate = activity.total_value / activity.total_units
        if rate > 0:
            return kpi.quantity * rate

    if kpi.value and abs(kpi.value - kpi.quantity) >= VALUE_EQUALS_QUANTITY_TOLERANCE:
        return kpi.value
    return 0.0


def summarize_kpis(kpis: Iterable[KpiRecord], activities: List[ActivityRecord]) -> KpiSummary:
    summary = KpiSummary()
    for kpi in kpis:
        activity = match_kpi_to_activity(kpi, activities)
        if activity is None:
            summary.unmatched += 1
            logger.debug(f"KPI {kpi.id} ({kpi.activity_description}) matched no activity")
            continue

        summary.matched += 1
        value = kpi_value(kpi, activity)
        if kpi.is_actual:
            summary.actual_quantity += kpi.quantity
            summary.actual_value += value
        elif kpi.is_planned:
            summary.planned_quantity += kpi.quantity
            summary.planned_value += value

    if summary.planned_value > 0:
        summary.progress = summary.actual_value / summary.planned_value * 100
    return summary
