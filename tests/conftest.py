import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from connections.postgres_connection import DatabaseConnection
from models import Base
from models.domain import ActivityRecord, KpiRecord


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    DatabaseConnection.use_async_engine(engine)
    yield engine
    await DatabaseConnection.close_async_engine()


@pytest.fixture
def concrete_activity():
    return ActivityRecord(
        id="act-1",
        project_code="P1",
        project_sub_code="01",
        project_full_code="P1-01",
        activity_description="Concrete Pouring",
        unit="m3",
        zone_number="0",
        total_units=100.0,
        planned_units=80.0,
        actual_units=40.0,
        total_value=1000.0,
    )


@pytest.fixture
def make_kpi():
    def _make(input_type="Actual", quantity=10.0, value=0.0, description="Concrete Pouring",
              code="P1", sub_code="01", full_code="P1-01", zone="", kpi_id="kpi"):
        return KpiRecord(
            id=kpi_id,
            project_code=code,
            input_type=input_type,
            project_sub_code=sub_code,
            project_full_code=full_code,
            activity_description=description,
            quantity=quantity,
            value=value,
            zone=zone,
        )
    return _make
