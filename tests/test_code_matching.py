import pytest

from services.code_matching import (
    build_full_code, split_full_code, matches_project, matches_any_project,
    normalize_zone, zone_matches, extract_zone_number, lookup_codes,
)


@pytest.mark.parametrize("code, sub_code, expected", [
    ("P1", "01", "P1-01"),
    ("P1", "P1-01", "P1-01"),
    ("P1", "-01", "P1-01"),
    ("P1", "", "P1"),
    ("P1", None, "P1"),
    (" P1 ", " 01 ", "P1-01"),
])
def test_build_full_code(code, sub_code, expected):
    assert build_full_code(code, sub_code) == expected


def test_split_full_code_splits_on_first_dash_only():
    assert split_full_code("P10002-01-A") == ("P10002", "01-A")
    assert split_full_code("P10002") == ("P10002", "")
    assert split_full_code(None) == ("", "")


def test_code_and_sub_code_match_without_stored_full_code():
    assert matches_project("X-Y", "X", "Y", "")


def test_exact_full_code_match_is_case_insensitive():
    assert matches_project("p10002-01", None, None, " P10002-01 ")


def test_sub_code_stored_as_full_repeat():
    assert matches_project("P10002-01", "P10002", "P10002-01", None)


def test_different_sub_code_is_rejected():
    assert not matches_project("P10002-01", "P10002", "02", "P10002-02")


def test_bare_full_code_fallback_is_lenient_only():
    assert matches_project("X-Y", "", "", "X")
    assert not matches_project("X-Y", "", "", "X", strict=True)


def test_record_without_sub_code_is_lenient_only():
    assert matches_project("P1-01", "P1", "", "P1")
    assert not matches_project("P1-01", "P1", "", "P1", strict=True)


def test_selection_without_sub_code_needs_record_without_sub_code():
    assert matches_project("P1", "P1", "", "")
    assert not matches_project("P1", "P1", "01", "P1-01", strict=True)


def test_empty_selection_never_matches():
    assert not matches_project("", "P1", "01", "P1-01")


def test_matches_any_project():
    assert matches_any_project(["P2-01", "P1-01"], "P1", "01")
    assert not matches_any_project([], "P1", "01")


def test_normalize_zone_strips_project_prefix():
    assert normalize_zone("P5066 - Zone 2", "P5066") == "zone 2"
    assert normalize_zone("P5066-Zone 2", "P5066") == "zone 2"
    assert normalize_zone("P5066 Zone   2", "P5066") == "zone 2"
    assert normalize_zone("P5066-01 - Zone 2", "P5066", "P5066-01") == "zone 2"
    assert normalize_zone(" -Tower A- ") == "tower a"


def test_zone_match_is_exact_only():
    assert not zone_matches("Tower-Side-C", ["Tower"])
    assert zone_matches("P5066 - Tower", ["tower"], "P5066")
    assert not zone_matches("", ["Tower"])


@pytest.mark.parametrize("zone, expected", [
    ("Zone-3", "3"),
    ("P5066 - zone 2", "2"),
    ("zone_12", "12"),
    ("Block 4", "4"),
    ("Tower", None),
    ("", None),
])
def test_extract_zone_number(zone, expected):
    assert extract_zone_number(zone) == expected


def test_lookup_codes_include_bare_project_code():
    assert lookup_codes(["P1-01", " P2 ", ""]) == {"P1-01", "P1", "P2"}
