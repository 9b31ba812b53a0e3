import io
from datetime import date, datetime
from decimal import Decimal
from unittest import mock

import pandas as pd
import pytest
import requests

from services.cost_control import (
    LEDGERS, HIRED_MANPOWER, OTHER_COST, TRANSPORTATION,
    LedgerFilter, LedgerService, build_options, clean_import_row, filter_rows, read_table, rows_to_frame,
)


def test_ledger_registry():
    assert set(LEDGERS) == {"hired-manpower", "other-cost", "rented-equipment", "transportation"}
    assert HIRED_MANPOWER.headers == [
        "DATE", "PROJECT CODE", "DESIGNATION", "TOTAL NUMBER", "TOTAL HRS", "RATE", "COST", "Note",
    ]


def test_clean_import_row_with_tolerant_headers():
    row = {"date": 44000, "Project Code": " P1 ", "designation": "Mason",
           "TOTAL HOURS": "8", "RATE": "1,250.50", "note": float("nan")}
    cleaned = clean_import_row(HIRED_MANPOWER, row)

    assert cleaned == {
        "date": date(2020, 6, 18),
        "project_code": "P1",
        "designation": "Mason",
        "total_hrs": Decimal("8.0"),
        "rate": Decimal("1250.5"),
    }


def test_clean_import_row_drops_rows_without_key_fields():
    assert clean_import_row(HIRED_MANPOWER, {"RATE": 10, "COST": 100}) is None
    assert clean_import_row(OTHER_COST, {"Reference": "INV-1"}) == {"reference": "INV-1"}


def test_transportation_import_row():
    row = {"DATE": "2024-02-01", "TYPE": "Trailer", "Project Code (From)": "P1",
           "PROJECT CODE ( TO )": "P2", "QTY": 3, "Confirmed": "✓", "LENGTH(M)": "12 m"}
    cleaned = clean_import_row(TRANSPORTATION, row)

    assert cleaned["project_code_from"] == "P1"
    assert cleaned["project_code_to"] == "P2"
    assert cleaned["confirmed"] is True
    assert cleaned["length_m"] == Decimal("12.0")
    assert "nos" not in cleaned


ROWS = [
    {"id": "1", "date": date(2024, 1, 5), "type": "Truck", "category": "Sand",
     "project_code_from": "P1", "project_code_to": "P2", "items": "sand", "comment": None, "confirmed": True},
    {"id": "2", "date": date(2024, 1, 20), "type": "Trailer", "category": "Steel",
     "project_code_from": "P3", "project_code_to": "P1", "items": "rebar", "comment": "late", "confirmed": False},
    {"id": "3", "date": None, "type": "Truck", "category": None,
     "project_code_from": "P4", "project_code_to": None, "items": None, "comment": None, "confirmed": None},
]


def _ids(rows):
    return [row["id"] for row in rows]


def test_filter_rows_by_dimensions_and_confirmation():
    assert _ids(filter_rows(TRANSPORTATION, ROWS, LedgerFilter(dimensions={"type": ["Truck"]}))) == ["1", "3"]
    assert _ids(filter_rows(TRANSPORTATION, ROWS, LedgerFilter(confirmed=True))) == ["1"]
    assert _ids(filter_rows(TRANSPORTATION, ROWS, LedgerFilter(confirmed=False))) == ["2", "3"]


def test_filter_rows_by_project_either_direction():
    assert _ids(filter_rows(TRANSPORTATION, ROWS, LedgerFilter(project_codes=["P1"]))) == ["1", "2"]


def test_filter_rows_date_range_is_inclusive():
    criteria = LedgerFilter(date_from=date(2024, 1, 5), date_to=date(2024, 1, 20))
    assert _ids(filter_rows(TRANSPORTATION, ROWS, criteria)) == ["1", "2"]
    criteria = LedgerFilter(date_to=date(2024, 1, 10))
    assert _ids(filter_rows(TRANSPORTATION, ROWS, criteria)) == ["1"]


def test_filter_rows_search():
    assert _ids(filter_rows(TRANSPORTATION, ROWS, LedgerFilter(search="LATE"))) == ["2"]


def test_build_options():
    options = build_options(TRANSPORTATION, ROWS)
    assert options["project_codes"] == ["P1", "P2", "P3", "P4"]
    assert options["type"] == ["Trailer", "Truck"]
    assert options["category"] == ["Sand", "Steel"]


def test_read_table_csv():
    frame = read_table(b"DATE,PROJECT CODE\n2024-01-01,P1\n", "https://example.com/file.csv?token=x")
    assert list(frame.columns) == ["DATE", "PROJECT CODE"]


def _manpower_frame():
    return pd.DataFrame([
        {"DATE": 44000, "PROJECT CODE": "P1", "DESIGNATION": "Mason", "TOTAL NUMBER": 3,
         "TOTAL HRS": 24, "RATE": "1,250.50", "COST": 30012, "Note": "night shift"},
        {"DATE": "2020-07-01", "PROJECT CODE": "P2", "DESIGNATION": "Helper", "TOTAL NUMBER": 2,
         "TOTAL HRS": 16, "RATE": 50, "COST": 800, "Note": None},
        {"DATE": None, "PROJECT CODE": None, "DESIGNATION": None, "TOTAL NUMBER": 5,
         "TOTAL HRS": None, "RATE": None, "COST": None, "Note": None},
    ])


@pytest.mark.asyncio
async def test_import_then_list_and_export(db_engine):
    service = LedgerService(HIRED_MANPOWER)
    progress = []

    result = await service.import_frame(_manpower_frame(), progress=lambda done, total: progress.append((done, total)))

    assert result["success"] is True
    assert result["imported"] == 2
    assert result["skipped"] == 1
    assert progress == [(2, 2)]

    listing = await service.list_entries(LedgerFilter(date_from=date(2020, 6, 1), date_to=date(2020, 6, 30)))
    assert listing["total"] == 1
    entry = listing["items"][0]
    assert entry["date"] == date(2020, 6, 18)
    assert entry["rate"] == pytest.approx(1250.5)
    assert listing["total_cost"] == pytest.approx(30012)

    options = await service.get_options()
    assert options["designation"] == ["Helper", "Mason"]

    content = await service.export(LedgerFilter(), "excel")
    exported = pd.read_excel(io.BytesIO(content))
    assert list(exported.columns) == HIRED_MANPOWER.headers
    assert list(exported["DATE"]) == ["2020-06-18", "2020-07-01"]

    csv_content = await service.export(LedgerFilter(project_codes=["P2"]), "csv")
    assert csv_content.decode("utf-8").splitlines()[0] == ",".join(HIRED_MANPOWER.headers)
    assert len(csv_content.decode("utf-8").splitlines()) == 2


@pytest.mark.asyncio
async def test_import_with_no_usable_rows(db_engine):
    frame = pd.DataFrame([{"RATE": 10, "COST": 20}])
    result = await LedgerService(HIRED_MANPOWER).import_frame(frame)
    assert result["success"] is False
    assert "No valid data found" in result["error"]


@pytest.mark.asyncio
async def test_import_from_url_download_failure(db_engine):
    with mock.patch("services.cost_control.requests.get",
                    side_effect=requests.exceptions.ConnectionError("offline")):
        result = await LedgerService(OTHER_COST).import_from_url("https://example.com/other.xlsx")

    assert result["success"] is False
    assert "Failed to download" in result["error"]


@pytest.mark.asyncio
async def test_crud_and_bulk_delete(db_engine):
    service = LedgerService(TRANSPORTATION)
    created = await service.create_entry({"date": date(2024, 1, 1), "type": "Truck", "cost": 120.5, "confirmed": True})
    assert created["success"]
    entry_id = created["entry"]["id"]
    assert created["entry"]["cost"] == pytest.approx(120.5)

    updated = await service.update_entry(entry_id, {"comment": "checked"})
    assert updated["entry"]["comment"] == "checked"
    assert updated["entry"]["type"] == "Truck"

    missing = await service.update_entry("missing", {"comment": "x"})
    assert "not found" in missing["error"]

    ids = [entry_id]
    for index in range(4):
        extra = await service.create_entry({"date": date(2024, 1, 2), "type": f"Van {index}"})
        ids.append(extra["entry"]["id"])

    with mock.patch("services.cost_control.settings.DELETE_BATCH_SIZE", 2):
        result = await service.bulk_delete(ids)

    assert result == {"success": True, "deleted": 5, "failed": 0, "message": "Deleted 5 of 5 entries"}
    assert (await service.list_entries(LedgerFilter()))["total"] == 0


def test_template_has_headers_only():
    content = LedgerService(OTHER_COST).template("csv")
    assert content.decode("utf-8").strip() == ",".join(OTHER_COST.headers)


def test_export_frame_formats_dates():
    rows = [{"date": datetime(2024, 3, 5, 8, 30), "project_code": "P1", "confirmed": None},
            {"date": None, "project_code": "P2"}]
    frame = rows_to_frame(HIRED_MANPOWER, rows)
    assert list(frame["DATE"]) == ["2024-03-05", ""]
