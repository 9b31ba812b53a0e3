import uuid
from sqlalchemy import Column, String, Text, Date, TIMESTAMP
from sqlalchemy.sql import func
from models.base import Base
from core.settings import settings


def _new_id() -> str:
    return str(uuid.uuid4())


class Project(Base):
    __tablename__ = settings.PROJECTS_TABLE

    id = Column(String(36), primary_key=True, default=_new_id)
    project_code = Column("Project Code", Text)
    project_sub_code = Column("Project Sub Code", Text)
    project_full_code = Column("Project Full Code", Text)
    project_name = Column("Project Name", Text)
    project_type = Column("Project Type", Text)
    responsible_division = Column("Responsible Division", Text)
    currency = Column("Currency", Text)
    project_status = Column("Project Status", Text)
    contract_amount = Column("Contract Amount", Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class BoqActivity(Base):
    """
    BOQ activity row.

    Quantity and value columns are TEXT in the planning database (values were
    loaded from spreadsheets and may carry thousands separators or units), so
    they are parsed when mapped to ActivityRecord.
    """
    __tablename__ = settings.BOQ_ACTIVITIES_TABLE

    id = Column(String(36), primary_key=True, default=_new_id)
    project_code = Column("Project Code", Text)
    project_sub_code = Column("Project Sub Code", Text)
    project_full_code = Column("Project Full Code", Text)
    activity_description = Column("Activity Description", Text)
    activity_division = Column("Activity Division", Text)
    unit = Column("Unit", Text)
    zone_number = Column("Zone Number", Text)

    total_units = Column("Total Units", Text)
    planned_units = Column("Planned Units", Text)
    actual_units = Column("Actual Units", Text)
    rate = Column("Rate", Text)
    total_value = Column("Total Value", Text)
    planned_value = Column("Planned Value", Text)
    earned_value = Column("Earned Value", Text)

    planned_activity_start_date = Column("Planned Activity Start Date", Text)
    deadline = Column("Deadline", Text)
    calendar_duration = Column("Calendar Duration", Text)

    activity_completed = Column("Activity Completed", Text)
    activity_delayed = Column("Activity Delayed?", Text)
    activity_on_track = Column("Activity On Track?", Text)

    project_full_name = Column("Project Full Name", Text)
    project_status = Column("Project Status", Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Kpi(Base):
    __tablename__ = settings.KPI_TABLE

    id = Column(String(36), primary_key=True, default=_new_id)
    project_code = Column("Project Code", Text)
    project_sub_code = Column("Project Sub Code", Text)
    project_full_code = Column("Project Full Code", Text)
    activity_description = Column("Activity Description", Text)
    input_type = Column("Input Type", Text, nullable=False)
    quantity = Column("Quantity", Text)
    value = Column("Value", Text)
    unit = Column("Unit", Text)
    zone = Column("Zone", Text)
    section = Column("Section", Text)
    activity_date = Column("Activity Date", Date)
    recorded_by = Column("Recorded By", Text)
    notes = Column("Notes", Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
