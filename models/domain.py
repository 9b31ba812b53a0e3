"""
Domain records for planning entities.

Rows read from the planning tables are loosely typed (numbers stored as text,
full codes missing or stale). These records normalize them once so matching,
filtering and aggregation can work on plain attributes.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from utils.parsing import parse_number, clean_text
from utils.excel_dates import parse_date
from services.code_matching import build_full_code

NO_ZONE = "0"


def _resolve_full_code(code: str, sub_code: str, stored: str) -> str:
    """Prefer the stored full code only when it already carries the sub-code."""
    derived = build_full_code(code, sub_code)
    if not stored:
        return derived
    if sub_code and sub_code.strip().upper() not in stored.upper():
        return derived
    return stored


def _text(row: Dict[str, Any], *names: str) -> str:
    for name in names:
        value = clean_text(row.get(name))
        if value is not None:
            return value
    return ""


@dataclass
class ProjectRecord:
    """Project information."""
    id: Optional[str]
    project_code: str
    project_sub_code: str = ""
    project_full_code: str = ""
    project_name: str = ""
    project_type: str = ""
    responsible_division: str = ""
    currency: str = ""
    project_status: str = ""
    contract_amount: float = 0.0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProjectRecord":
        code = _text(row, "project_code")
        sub_code = _text(row, "project_sub_code")
        return cls(
            id=row.get("id"),
            project_code=code,
            project_sub_code=sub_code,
            project_full_code=_resolve_full_code(code, sub_code, _text(row, "project_full_code")),
            project_name=_text(row, "project_name"),
            project_type=_text(row, "project_type"),
            responsible_division=_text(row, "responsible_division"),
            currency=_text(row, "currency"),
            project_status=_text(row, "project_status"),
            contract_amount=parse_number(row.get("contract_amount")),
        )


@dataclass
class ActivityRecord:
    """BOQ activity with parsed quantities and values."""
    id: Optional[str]
    project_code: str
    project_sub_code: str = ""
    project_full_code: str = ""
    activity_description: str = ""
    activity_division: str = ""
    unit: str = ""
    zone_number: str = NO_ZONE
    total_units: float = 0.0
    planned_units: float = 0.0
    actual_units: float = 0.0
    rate: float = 0.0
    total_value: float = 0.0
    planned_value: float = 0.0
    earned_value: float = 0.0
    planned_start_date: Optional[date] = None
    deadline: Optional[date] = None
    calendar_duration: float = 0.0
    activity_completed: str = ""
    activity_delayed: str = ""
    activity_on_track: str = ""
    project_full_name: str = ""
    project_status: str = ""

    @property
    def has_zone(self) -> bool:
        return self.zone_number not in ("", NO_ZONE)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ActivityRecord":
        code = _text(row, "project_code")
        sub_code = _text(row, "project_sub_code")
        return cls(
            id=row.get("id"),
            project_code=code,
            project_sub_code=sub_code,
            project_full_code=_resolve_full_code(code, sub_code, _text(row, "project_full_code")),
            activity_description=_text(row, "activity_description", "activity", "activity_name"),
            activity_division=_text(row, "activity_division"),
            unit=_text(row, "unit"),
            zone_number=_text(row, "zone_number") or NO_ZONE,
            total_units=parse_number(row.get("total_units")),
            planned_units=parse_number(row.get("planned_units")),
            actual_units=parse_number(row.get("actual_units")),
            rate=parse_number(row.get("rate")),
            total_value=parse_number(row.get("total_value")),
            planned_value=parse_number(row.get("planned_value")),
            earned_value=parse_number(row.get("earned_value")),
            planned_start_date=parse_date(row.get("planned_activity_start_date")),
            deadline=parse_date(row.get("deadline")),
            calendar_duration=parse_number(row.get("calendar_duration")),
            activity_completed=_text(row, "activity_completed"),
            activity_delayed=_text(row, "activity_delayed"),
            activity_on_track=_text(row, "activity_on_track"),
            project_full_name=_text(row, "project_full_name"),
            project_status=_text(row, "project_status"),
        )


@dataclass
class KpiRecord:
    """Planned or actual progress entry."""
    id: Optional[str]
    project_code: str
    input_type: str
    project_sub_code: str = ""
    project_full_code: str = ""
    activity_description: str = ""
    quantity: float = 0.0
    value: float = 0.0
    unit: str = ""
    zone: str = ""
    section: str = ""
    activity_date: Optional[date] = None
    recorded_by: str = ""
    notes: str = ""

    @property
    def is_actual(self) -> bool:
        return self.input_type.strip().lower() == "actual"

    @property
    def is_planned(self) -> bool:
        return self.input_type.strip().lower() == "planned"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "KpiRecord":
        code = _text(row, "project_code")
        sub_code = _text(row, "project_sub_code")
        return cls(
            id=row.get("id"),
            project_code=code,
            input_type=_text(row, "input_type"),
            project_sub_code=sub_code,
            project_full_code=_resolve_full_code(code, sub_code, _text(row, "project_full_code")),
            activity_description=_text(row, "activity_description", "activity", "activity_name"),
            quantity=parse_number(row.get("quantity")),
            value=parse_number(row.get("value")),
            unit=_text(row, "unit"),
            zone=_text(row, "zone"),
            section=_text(row, "section"),
            activity_date=parse_date(row.get("activity_date")),
            recorded_by=_text(row, "recorded_by"),
            notes=_text(row, "notes"),
        )
