from dataclasses import replace

import pytest

from models.domain import ActivityRecord, KpiRecord
from services.boq_values import calculate_boq_values, calculate_project_progress, calculate_rate
from services.kpi_aggregation import kpi_matches_activity, match_kpi_to_activity, kpi_value, summarize_kpis


def test_kpi_value_uses_activity_rate(concrete_activity, make_kpi):
    assert kpi_value(make_kpi(quantity=10), concrete_activity) == pytest.approx(100.0)


def test_kpi_value_falls_back_to_stored_value(concrete_activity, make_kpi):
    no_rate = replace(concrete_activity, total_value=0.0)
    assert kpi_value(make_kpi(quantity=10, value=55), no_rate) == 55
    assert kpi_value(make_kpi(quantity=10, value=55), None) == 55


def test_kpi_value_ignores_value_copied_from_quantity(make_kpi):
    assert kpi_value(make_kpi(quantity=10, value=10.004), None) == 0.0


def test_kpi_matches_on_project_description_and_zone(concrete_activity, make_kpi):
    assert kpi_matches_activity(make_kpi(description="concrete pouring"), concrete_activity)
    assert kpi_matches_activity(make_kpi(description="Concrete"), concrete_activity)
    assert not kpi_matches_activity(make_kpi(description="Painting"), concrete_activity)


def test_kpi_project_match_is_strict_for_sub_coded_activity(concrete_activity, make_kpi):
    other_sub = make_kpi(sub_code="02", full_code="P1-02")
    no_sub = make_kpi(sub_code="", full_code="P1")
    assert not kpi_matches_activity(other_sub, concrete_activity)
    assert not kpi_matches_activity(no_sub, concrete_activity)


def test_kpi_zone_must_match_when_activity_has_zone(concrete_activity, make_kpi):
    zoned = replace(concrete_activity, zone_number="P1 - Zone 2")
    assert kpi_matches_activity(make_kpi(zone="Zone 2"), zoned)
    assert kpi_matches_activity(make_kpi(zone="zone-2"), zoned)
    assert not kpi_matches_activity(make_kpi(zone="Zone 3"), zoned)
    assert not kpi_matches_activity(make_kpi(zone=""), zoned)


def test_match_prefers_exact_description(concrete_activity, make_kpi):
    broad = replace(concrete_activity, id="act-0", activity_description="Concrete Pouring and Curing")
    match = match_kpi_to_activity(make_kpi(), [broad, concrete_activity])
    assert match.id == "act-1"
    assert match_kpi_to_activity(make_kpi(description="Painting"), [broad, concrete_activity]) is None


def test_summarize_kpis(concrete_activity, make_kpi):
    kpis = [
        make_kpi(input_type="Planned", quantity=20, kpi_id="k1"),
        make_kpi(input_type="Actual", quantity=10, kpi_id="k2"),
        make_kpi(input_type="Actual", quantity=5, description="Painting", kpi_id="k3"),
    ]
    summary = summarize_kpis(kpis, [concrete_activity])

    assert summary.planned_quantity == 20
    assert summary.planned_value == pytest.approx(200.0)
    assert summary.actual_quantity == 10
    assert summary.actual_value == pytest.approx(100.0)
    assert summary.progress == pytest.approx(50.0)
    assert summary.matched == 2
    assert summary.unmatched == 1


def test_calculate_boq_values():
    values = calculate_boq_values(total_units=100, planned_units=80, actual_units=40, total_value=1000)
    assert values.rate == 10
    assert values.value == 400
    assert values.progress == 50
    assert values.planned_value == 800
    assert values.earned_value == 400
    assert values.remaining_value == 600


def test_calculate_rate_without_units():
    assert calculate_rate(1000, 0) == 0.0


def test_calculate_project_progress(concrete_activity):
    second = replace(concrete_activity, id="act-2", total_units=10, planned_units=10,
                     actual_units=10, total_value=200)
    progress = calculate_project_progress([concrete_activity, second])

    assert progress.total_project_value == pytest.approx(1000.0)
    assert progress.total_earned_value == pytest.approx(600.0)
    assert progress.progress == pytest.approx(60.0)
    assert [item.activity_id for item in progress.activities] == ["act-1", "act-2"]


def test_activity_record_from_row_parses_loose_values():
    record = ActivityRecord.from_row({
        "id": "a",
        "project_code": "P1",
        "project_sub_code": "01",
        "project_full_code": None,
        "activity_name": "Excavation",
        "total_units": "1,200",
        "total_value": "24,000.50",
        "zone_number": None,
        "planned_activity_start_date": "2024-01-15",
    })
    assert record.project_full_code == "P1-01"
    assert record.activity_description == "Excavation"
    assert record.total_units == 1200.0
    assert record.total_value == 24000.5
    assert record.zone_number == "0"
    assert not record.has_zone
    assert record.planned_start_date.isoformat() == "2024-01-15"


def test_stale_full_code_is_rebuilt():
    record = KpiRecord.from_row({
        "project_code": "P1", "project_sub_code": "02", "project_full_code": "P1",
        "input_type": "Actual", "quantity": "3",
    })
    assert record.project_full_code == "P1-02"
    assert record.is_actual


def test_zones_sharing_a_number_do_not_match(concrete_activity, make_kpi):
    tower = replace(concrete_activity, zone_number="P1 - Tower 2")
    assert not kpi_matches_activity(make_kpi(zone="Parking 2"), tower)
    assert not kpi_matches_activity(make_kpi(zone="Zone 2"), tower)
    assert kpi_matches_activity(make_kpi(zone="tower 2"), tower)
