from __future__ import annotations

from datetime import date, datetime

import pytest

from repairconnect.application.utils.time_math import (
    as_date,
    combine,
    hours_to_minutes,
    intervals_overlap,
    is_valid_time,
    minutes_to_time,
    time_to_minutes,
)
from repairconnect.domain.entities.operating_hours import DEFAULT_OPERATING_HOURS, DayHours, OperatingHours


@pytest.mark.parametrize("value", ["00:00", "9:05", "09:05", "23:59"])
def test_valid_times(value):
    assert is_valid_time(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "1200", "", "ab:cd", "12:5"])
def test_invalid_times(value):
    assert not is_valid_time(value)


def test_time_conversions():
    assert time_to_minutes("08:30") == 510
    assert minutes_to_time(510) == "08:30"
    assert minutes_to_time(24 * 60 + 15) == "00:15"
    assert hours_to_minutes(1.5) == 90

    with pytest.raises(ValueError):
        time_to_minutes("8h")


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((600, 720), (600, 720), True),  # identical
        ((600, 720), (630, 660), True),  # contained
        ((630, 660), (600, 720), True),  # enclosing
        ((600, 720), (690, 780), True),  # partial
        ((600, 720), (720, 780), False),  # adjacent after
        ((600, 720), (540, 600), False),  # adjacent before
    ],
)
def test_intervals_overlap(a, b, expected):
    assert intervals_overlap(*a, *b) is expected


def test_combine_and_as_date():
    assert combine(date(2026, 10, 19), "9:15") == datetime(2026, 10, 19, 9, 15)
    assert as_date(datetime(2026, 10, 19, 23, 0)) == date(2026, 10, 19)


def test_day_hours_rejects_inverted_window():
    with pytest.raises(ValueError):
        DayHours(open="17:00", close="08:00")


def test_is_open_at_includes_closing_minute():
    monday = datetime(2026, 10, 19, 17, 0)

    assert DEFAULT_OPERATING_HOURS.is_open_at(monday)
    assert not DEFAULT_OPERATING_HOURS.is_open_at(datetime(2026, 10, 19, 17, 1))
    assert not DEFAULT_OPERATING_HOURS.is_open_at(datetime(2026, 10, 25, 10, 0))


def test_operating_hours_from_legacy_list():
    hours = OperatingHours.from_mapping(
        [
            {"day": "Monday", "openTime": "09:00", "closeTime": "18:00", "isClosed": False},
            {"day": "sunday", "isClosed": True},
        ]
    )

    assert hours.monday == DayHours(open="09:00", close="18:00")
    assert hours.sunday.closed
    assert hours.tuesday.closed
