import uuid
from sqlalchemy import Column, String, Text, Date, Boolean, TIMESTAMP, DECIMAL
from sqlalchemy.sql import func
from models.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class HiredManpower(Base):
    __tablename__ = "hired_manpower"

    id = Column(String(36), primary_key=True, default=_new_id)
    date = Column(Date)
    project_code = Column(Text)
    designation = Column(Text)
    total_number = Column(DECIMAL(18, 2))
    total_hrs = Column(DECIMAL(18, 2))
    rate = Column(DECIMAL(18, 2))
    cost = Column(DECIMAL(18, 2))
    note = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class OtherCost(Base):
    __tablename__ = "other_cost"

    id = Column(String(36), primary_key=True, default=_new_id)
    date = Column(Date)
    project_code = Column(Text)
    category = Column(Text)
    reference = Column(Text)
    unit = Column(Text)
    qtty = Column(DECIMAL(18, 3))
    rate = Column(DECIMAL(18, 2))
    cost = Column(DECIMAL(18, 2))
    join_text = Column(Text)
    note = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class RentedEquipment(Base):
    __tablename__ = "rented_equipment"

    id = Column(String(36), primary_key=True, default=_new_id)
    date = Column(Date)
    project_code = Column(Text)
    machine_type = Column(Text)
    machine_name = Column(Text)
    hrs = Column(DECIMAL(18, 2))
    time_sheet_review = Column(Text)
    rate = Column(DECIMAL(18, 2))
    cost = Column(DECIMAL(18, 2))
    supplier = Column(Text)
    comment = Column(Text)
    status = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Transportation(Base):
    __tablename__ = "transportation"

    id = Column(String(36), primary_key=True, default=_new_id)
    date = Column(Date)
    type = Column(Text)
    category = Column(Text)
    nos = Column(DECIMAL(18, 2))
    length_m = Column(DECIMAL(18, 2))
    items = Column(Text)
    project_code_from = Column(Text)
    project_code_to = Column(Text)
    rate = Column(DECIMAL(18, 2))
    waiting_rate = Column(DECIMAL(18, 2))
    cost = Column(DECIMAL(18, 2))
    comment = Column(Text)
    confirmed = Column(Boolean, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
