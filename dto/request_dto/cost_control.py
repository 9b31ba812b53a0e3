from pydantic import BaseModel, HttpUrl
from typing import Optional
import datetime as dt


class LedgerImportRequest(BaseModel):
    file_url: HttpUrl
    uploaded_by: str = "user"


class HiredManpowerRequest(BaseModel):
    date: Optional[dt.date] = None
    project_code: Optional[str] = None
    designation: Optional[str] = None
    total_number: Optional[float] = None
    total_hrs: Optional[float] = None
    rate: Optional[float] = None
    cost: Optional[float] = None
    note: Optional[str] = None


class OtherCostRequest(BaseModel):
    date: Optional[dt.date] = None
    project_code: Optional[str] = None
    category: Optional[str] = None
    reference: Optional[str] = None
    unit: Optional[str] = None
    qtty: Optional[float] = None
    rate: Optional[float] = None
    cost: Optional[float] = None
    join_text: Optional[str] = None
    note: Optional[str] = None


class RentedEquipmentRequest(BaseModel):
    date: Optional[dt.date] = None
    project_code: Optional[str] = None
    machine_type: Optional[str] = None
    machine_name: Optional[str] = None
    hrs: Optional[float] = None
    time_sheet_review: Optional[str] = None
    rate: Optional[float] = None
    cost: Optional[float] = None
    supplier: Optional[str] = None
    comment: Optional[str] = None
    status: Optional[str] = None


class TransportationRequest(BaseModel):
    date: Optional[dt.date] = None
    type: Optional[str] = None
    category: Optional[str] = None
    nos: Optional[float] = None
    length_m: Optional[float] = None
    items: Optional[str] = None
    project_code_from: Optional[str] = None
    project_code_to: Optional[str] = None
    rate: Optional[float] = None
    waiting_rate: Optional[float] = None
    cost: Optional[float] = None
    comment: Optional[str] = None
    confirmed: Optional[bool] = None
