from pydantic import BaseModel
from typing import Optional, List
from datetime import date


class ProjectResponse(BaseModel):
    id: Optional[str] = None
    project_code: str
    project_sub_code: str = ""
    project_full_code: str = ""
    project_name: str = ""
    project_type: str = ""
    responsible_division: str = ""
    currency: str = ""
    project_status: str = ""
    contract_amount: float = 0.0


class ActivityResponse(BaseModel):
    id: Optional[str] = None
    project_code: str
    project_sub_code: str = ""
    project_full_code: str = ""
    activity_description: str = ""
    activity_division: str = ""
    unit: str = ""
    zone_number: str = "0"
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

    # Derived from total/planned/actual units
    progress: float = 0.0
    remaining_value: float = 0.0


class ActivityListResponse(BaseModel):
    items: List[ActivityResponse] = []
    total: int
    page: int
    page_size: int
    total_pages: int


class FacetsResponse(BaseModel):
    activities: List[str] = []
    zones: List[str] = []
    units: List[str] = []
    divisions: List[str] = []


class KpiResponse(BaseModel):
    id: Optional[str] = None
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


class KpiSummaryResponse(BaseModel):
    projects: List[str]
    activities: int
    kpis: int
    planned_quantity: float
    planned_value: float
    actual_quantity: float
    actual_value: float
    progress: float
    matched: int
    unmatched: int
    total_project_value: float
    total_earned_value: float
    earned_value_progress: float


class DeleteResponse(BaseModel):
    success: bool
    deleted_activities: int = 0
    deleted_kpis: int = 0
    missing_ids: List[str] = []
    message: str
