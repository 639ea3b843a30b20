from __future__ import annotations

from datetime import date, datetime, time

import pytest

from zeitblock.core.time_segments import (
    add_minutes,
    chunk_minutes,
    format_date,
    format_date_title,
    format_duration,
    minutes_between,
    parse_time,
    signed_minutes,
    subtract_minutes,
    truncate_to_minute,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("09:05", time(9, 5)), ("9:05", time(9, 5)), ("09.05", time(9, 5)), (" 23:59 ", time(23, 59))],
)
def test_parse_time_accepts_colon_and_dot(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", ["", "24:00", "9", "09:60", "abc", "09:5"])
def test_parse_time_rejects_malformed_values(text):
    with pytest.raises(ValueError):
        parse_time(text)


def test_format_duration_pads_hours_and_minutes():
    assert format_duration(0) == "00:00"
    assert format_duration(90) == "01:30"
    assert format_duration(125) == "02:05"
    assert format_duration(-30) == "-00:30"


def test_signed_and_clamped_minutes():
    assert signed_minutes(time(10, 0), time(9, 30)) == -30
    assert minutes_between(time(10, 0), time(9, 30)) == 0
    assert minutes_between(time(9, 0), None) == 0
    assert minutes_between(time(9, 0), time(11, 15)) == 135


def test_add_minutes_refuses_to_leave_the_day():
    assert add_minutes(time(22, 0), 119) == time(23, 59)
    with pytest.raises(ValueError):
        add_minutes(time(23, 0), 60)
    assert subtract_minutes(time(10, 0), 45) == time(9, 15)
    with pytest.raises(ValueError):
        subtract_minutes(time(0, 10), 11)


def test_truncate_to_minute_drops_seconds():
    assert truncate_to_minute(datetime(2024, 3, 4, 9, 15, 42)) == time(9, 15)
    assert truncate_to_minute(time(9, 15, 59, 1000)) == time(9, 15)


def test_chunk_minutes():
    assert chunk_minutes(0, 120) == []
    assert chunk_minutes(120, 120) == [120]
    assert chunk_minutes(250, 120) == [120, 120, 10]
    with pytest.raises(ValueError):
        chunk_minutes(10, 0)


def test_date_formatting_is_german():
    assert format_date(date(2024, 3, 4)) == "04.03.2024"
    assert format_date_title(date(2024, 3, 4)) == "Montag, 04.03.2024"
