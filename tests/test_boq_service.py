import pytest

from repositories.planning import BoqRepository, KpiRepository
from services.boq import BoqService
from services.boq_filter import BoqFilterCriteria
from services.kpi import KpiService
from services.projects import ProjectService

pytestmark = pytest.mark.asyncio


async def _create_activity(description="Concrete Pouring", sub_code="01", zone=None):
    data = {
        "project_code": "P1",
        "project_sub_code": sub_code,
        "activity_description": description,
        "unit": "m3",
        "total_units": 100,
        "planned_units": 80,
        "total_value": 1000,
    }
    if zone:
        data["zone_number"] = zone
    result = await BoqService().create_activity(data)
    assert result["success"], result
    return result["activity"]


async def _record_kpi(input_type, description="Concrete Pouring", sub_code="01", quantity=5):
    result = await KpiService().create_kpi({
        "project_code": "P1",
        "project_sub_code": sub_code,
        "activity_description": description,
        "input_type": input_type,
        "quantity": quantity,
    })
    assert result["success"], result
    return result["kpi"]


async def test_create_activity_derives_full_code_and_rate(db_engine):
    activity = await _create_activity()
    assert activity.project_full_code == "P1-01"
    assert activity.rate == 10.0
    assert activity.total_units == 100.0


async def test_delete_blocked_by_actual_kpi_deletes_nothing(db_engine):
    activity = await _create_activity()
    await _record_kpi("Actual")
    await _record_kpi("Planned")

    result = await BoqService().delete_activity(activity.id)

    assert result["success"] is False
    assert result["blocked"] is True
    assert "1 Actual KPI" in result["error"]
    assert await BoqRepository().get_by_id(activity.id) is not None
    assert len(await KpiRepository().fetch_all()) == 2


async def test_delete_removes_activity_and_planned_kpis(db_engine):
    activity = await _create_activity()
    await _record_kpi("Planned")
    other = await _record_kpi("Planned", sub_code="02")

    result = await BoqService().delete_activity(activity.id)

    assert result["success"] is True
    assert result["deleted_activities"] == 1
    assert result["deleted_kpis"] == 1
    assert await BoqRepository().get_by_id(activity.id) is None
    remaining = await KpiRepository().fetch_all()
    assert [row["id"] for row in remaining] == [other.id]


async def test_delete_missing_activity(db_engine):
    result = await BoqService().delete_activity("does-not-exist")
    assert result["success"] is False
    assert "not found" in result["error"]


async def test_bulk_delete_is_all_or_nothing(db_engine):
    free = await _create_activity("Excavation")
    guarded = await _create_activity("Concrete Pouring")
    await _record_kpi("Actual", description="Concrete Pouring")

    result = await BoqService().bulk_delete([free.id, guarded.id])

    assert result["success"] is False
    assert result["blocked_ids"] == [guarded.id]
    assert len(await BoqRepository().fetch_all()) == 2


async def test_bulk_delete_without_actual_kpis(db_engine):
    first = await _create_activity("Excavation")
    second = await _create_activity("Backfilling")
    await _record_kpi("Planned", description="Backfilling")

    result = await BoqService().bulk_delete([first.id, second.id, "missing"])

    assert result["success"] is True
    assert result["deleted_activities"] == 2
    assert result["deleted_kpis"] == 1
    assert result["missing_ids"] == ["missing"]


async def test_list_activities_filters_and_pages(db_engine):
    for index in range(3):
        await _create_activity(f"Activity {index}")
    await _create_activity("Other sub-code", sub_code="02")

    result = await BoqService().list_activities(BoqFilterCriteria(projects=["P1-01"]), page=1, page_size=2)

    assert result["total"] == 3
    assert result["total_pages"] == 2
    assert len(result["items"]) == 2


async def test_update_activity_rebuilds_full_code(db_engine):
    activity = await _create_activity()
    result = await BoqService().update_activity(activity.id, {"project_sub_code": "03", "actual_units": 25})

    assert result["success"]
    assert result["activity"].project_full_code == "P1-03"
    assert result["activity"].actual_units == 25.0


async def test_create_kpi_rejects_unknown_input_type(db_engine):
    result = await KpiService().create_kpi({
        "project_code": "P1", "activity_description": "X", "input_type": "Forecast",
    })
    assert result["success"] is False
    assert "Input Type" in result["error"]


async def test_dashboard_summary(db_engine):
    await _create_activity()
    await _record_kpi("Planned", quantity=20)
    await _record_kpi("Actual", quantity=10)
    await _record_kpi("Actual", description="Painting", quantity=3)

    summary = await KpiService().dashboard_summary(["P1-01"])

    assert summary["activities"] == 1
    assert summary["kpis"] == 3
    assert summary["planned_value"] == pytest.approx(200.0)
    assert summary["actual_value"] == pytest.approx(100.0)
    assert summary["progress"] == pytest.approx(50.0)
    assert summary["unmatched"] == 1


async def test_project_crud_and_search(db_engine):
    service = ProjectService()
    created = await service.create_project({"project_code": "P9", "project_sub_code": "01",
                                            "project_name": "Harbour Tower", "contract_amount": 1500000})
    assert created["success"]
    assert created["project"].project_full_code == "P9-01"

    assert [p.project_full_code for p in await service.list_projects("harbour")] == ["P9-01"]
    assert await service.list_projects("nothing") == []

    updated = await service.update_project(created["project"].id, {"project_sub_code": "02"})
    assert updated["project"].project_full_code == "P9-02"

    deleted = await service.delete_project(created["project"].id)
    assert deleted["success"]
    assert await service.get_project(created["project"].id) is None


async def test_update_totals_recomputes_rate_and_earned_value(db_engine):
    activity = await _create_activity()
    result = await BoqService().update_activity(activity.id, {"total_value": 5000, "actual_units": 10})

    assert result["activity"].rate == 50.0
    assert result["activity"].earned_value == 500.0


async def test_update_keeps_explicit_rate(db_engine):
    activity = await _create_activity()
    result = await BoqService().update_activity(activity.id, {"total_value": 5000, "rate": 42})
    assert result["activity"].rate == 42.0


async def test_delete_leaves_kpis_of_overlapping_description(db_engine):
    concrete = await _create_activity("Concrete")
    await _create_activity("Concrete Pouring")
    sibling_kpi = await _record_kpi("Planned", description="Concrete Pouring")

    result = await BoqService().delete_activity(concrete.id)

    assert result["success"] is True
    assert result["deleted_kpis"] == 0
    assert [row["id"] for row in await KpiRepository().fetch_all()] == [sibling_kpi.id]


async def test_actual_kpi_of_overlapping_description_does_not_block(db_engine):
    concrete = await _create_activity("Concrete")
    await _create_activity("Concrete Pouring")
    await _record_kpi("Actual", description="Concrete Pouring")
    own_kpi = await _record_kpi("Planned", description=" concrete ")

    result = await BoqService().delete_activity(concrete.id)

    assert result["success"] is True
    assert result["deleted_kpis"] == 1
    remaining = [row["id"] for row in await KpiRepository().fetch_all()]
    assert own_kpi.id not in remaining
    assert len(remaining) == 1
