from datetime import date, datetime, time, timedelta
from unittest import mock

import requests

from services.prayer_times import (
    fetch_prayer_times, fallback_prayer_times, next_prayer, parse_timing, format_remaining,
)


def _api_response(day="05"):
    response = mock.MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "data": [
            {"date": {"gregorian": {"day": "04"}},
             "timings": {"Fajr": "04:10 (EET)", "Dhuhr": "11:58 (EET)", "Asr": "15:20 (EET)",
                         "Maghrib": "17:50 (EET)", "Isha": "19:10 (EET)"}},
            {"date": {"gregorian": {"day": day}},
             "timings": {"Fajr": "04:12 (EET)", "Dhuhr": "11:59 (EET)", "Asr": "15:21 (EET)",
                         "Maghrib": "17:51 (EET)", "Isha": "19:11 (EET)"}},
        ]
    }
    return response


def test_parse_timing():
    assert parse_timing("04:30 (EET)") == time(4, 30)
    assert parse_timing("25:00") is None
    assert parse_timing("") is None


def test_fetch_picks_requested_day():
    with mock.patch("services.prayer_times.requests.get", return_value=_api_response()) as get:
        result = fetch_prayer_times(date(2024, 3, 5))

    assert result["source"] == "api"
    assert result["times"][0].name == "Fajr"
    assert result["times"][0].time == time(4, 12)
    assert get.call_args.args[0].endswith("/2024/3")
    assert get.call_args.kwargs["params"]["method"] == 5


def test_fetch_falls_back_on_network_error():
    with mock.patch("services.prayer_times.requests.get",
                    side_effect=requests.exceptions.Timeout("slow")):
        result = fetch_prayer_times(date(2024, 3, 5))

    assert result["source"] == "fallback"
    assert [p.to_dict()["time"] for p in result["times"]] == ["04:30", "12:00", "15:30", "18:00", "19:30"]


def test_fetch_falls_back_when_day_missing():
    with mock.patch("services.prayer_times.requests.get", return_value=_api_response(day="06")):
        result = fetch_prayer_times(date(2024, 3, 5))
    assert result["source"] == "fallback"


def test_next_prayer_same_day():
    times = fallback_prayer_times()
    upcoming = next_prayer(times, datetime(2024, 3, 5, 13, 0))
    assert upcoming["prayer"].name == "Asr"
    assert upcoming["remaining"] == timedelta(hours=2, minutes=30)


def test_next_prayer_rolls_over_after_isha():
    times = fallback_prayer_times()
    upcoming = next_prayer(times, datetime(2024, 3, 5, 20, 0))
    assert upcoming["prayer"].name == "Fajr"
    assert upcoming["at"] == datetime(2024, 3, 6, 4, 30)
    assert format_remaining(upcoming["remaining"]) == "08:30:00"
