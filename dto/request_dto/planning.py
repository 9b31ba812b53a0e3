from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date


class ProjectRequest(BaseModel):
    project_code: str = Field(..., min_length=1)
    project_sub_code: Optional[str] = None
    project_full_code: Optional[str] = None
    project_name: Optional[str] = None
    project_type: Optional[str] = None
    responsible_division: Optional[str] = None
    currency: Optional[str] = None
    project_status: Optional[str] = None
    contract_amount: Optional[float] = None


class ProjectUpdateRequest(BaseModel):
    project_code: Optional[str] = None
    project_sub_code: Optional[str] = None
    project_full_code: Optional[str] = None
    project_name: Optional[str] = None
    project_type: Optional[str] = None
    responsible_division: Optional[str] = None
    currency: Optional[str] = None
    project_status: Optional[str] = None
    contract_amount: Optional[float] = None


class BoqActivityRequest(BaseModel):
    project_code: str = Field(..., min_length=1)
    project_sub_code: Optional[str] = None
    project_full_code: Optional[str] = None
    activity_description: str = Field(..., min_length=1)
    activity_division: Optional[str] = None
    unit: Optional[str] = None
    zone_number: Optional[str] = None
    total_units: Optional[float] = None
    planned_units: Optional[float] = None
    actual_units: Optional[float] = None
    rate: Optional[float] = None
    total_value: Optional[float] = None
    planned_value: Optional[float] = None
    earned_value: Optional[float] = None
    planned_activity_start_date: Optional[date] = None
    deadline: Optional[date] = None
    calendar_duration: Optional[float] = None
    project_full_name: Optional[str] = None
    project_status: Optional[str] = None


class BoqActivityUpdateRequest(BaseModel):
    project_code: Optional[str] = None
    project_sub_code: Optional[str] = None
    project_full_code: Optional[str] = None
    activity_description: Optional[str] = None
    activity_division: Optional[str] = None
    unit: Optional[str] = None
    zone_number: Optional[str] = None
    total_units: Optional[float] = None
    planned_units: Optional[float] = None
    actual_units: Optional[float] = None
    rate: Optional[float] = None
    total_value: Optional[float] = None
    planned_value: Optional[float] = None
    earned_value: Optional[float] = None
    planned_activity_start_date: Optional[date] = None
    deadline: Optional[date] = None
    calendar_duration: Optional[float] = None
    activity_completed: Optional[str] = None
    activity_delayed: Optional[str] = None
    activity_on_track: Optional[str] = None
    project_full_name: Optional[str] = None
    project_status: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class KpiRequest(BaseModel):
    project_code: str = Field(..., min_length=1)
    project_sub_code: Optional[str] = None
    project_full_code: Optional[str] = None
    activity_description: str = Field(..., min_length=1)
    input_type: str = Field(..., description="Planned or Actual")
    quantity: float = 0.0
    value: Optional[float] = None
    unit: Optional[str] = None
    zone: Optional[str] = None
    section: Optional[str] = None
    activity_date: Optional[date] = None
    recorded_by: Optional[str] = None
    notes: Optional[str] = None
