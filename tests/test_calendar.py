"""Tests for week and day-type helpers."""

from datetime import date, datetime, time

import pytest

from rosterhelper.domain.calendar import (
    classify_day_type,
    date_range,
    format_hhmm,
    next_week,
    parse_hhmm,
    previous_week,
    start_of_week,
    week_dates,
    weekday_key,
)
from rosterhelper.domain.models import DayTypeTier
from rosterhelper.domain.policies import HolidayDayTypePolicy, WeekdayDayTypePolicy


class TestStartOfWeek:
    """Tests for Monday-based week starts."""

    def test_monday_is_its_own_start(self):
        assert start_of_week(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_sunday_belongs_to_preceding_monday(self):
        assert start_of_week(date(2024, 1, 21)) == date(2024, 1, 15)

    def test_wednesday(self):
        assert start_of_week(date(2024, 1, 17)) == date(2024, 1, 15)

    def test_datetime_is_truncated(self):
        assert start_of_week(datetime(2024, 1, 18, 23, 30)) == date(2024, 1, 15)

    def test_across_year_boundary(self):
        assert start_of_week(date(2024, 1, 3)) == date(2024, 1, 1)
        assert start_of_week(date(2023, 1, 1)) == date(2022, 12, 26)


class TestWeekDates:
    """Tests for week iteration."""

    def test_seven_consecutive_dates(self):
        days = week_dates(date(2024, 1, 15))
        assert len(days) == 7
        assert days[0] == date(2024, 1, 15)
        assert days[-1] == date(2024, 1, 21)

    def test_every_date_maps_back_to_week_start(self):
        for day in week_dates(date(2024, 2, 26)):
            assert start_of_week(day) == date(2024, 2, 26)

    def test_previous_and_next_week(self):
        assert previous_week(date(2024, 1, 15)) == date(2024, 1, 8)
        assert next_week(date(2024, 1, 15)) == date(2024, 1, 22)

    def test_date_range_inclusive(self):
        assert date_range(date(2024, 1, 30), date(2024, 2, 2)) == [
            date(2024, 1, 30),
            date(2024, 1, 31),
            date(2024, 2, 1),
            date(2024, 2, 2),
        ]

    def test_date_range_reversed_is_empty(self):
        assert date_range(date(2024, 1, 5), date(2024, 1, 4)) == []

    def test_weekday_key(self):
        assert weekday_key(date(2024, 1, 15)) == "Mon"
        assert weekday_key(date(2024, 1, 21)) == "Sun"


class TestDayType:
    """Tests for day-type classification."""

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2024, 1, 15), DayTypeTier.OFF_PEAK),  # Mon
            (date(2024, 1, 16), DayTypeTier.OFF_PEAK),  # Tue
            (date(2024, 1, 17), DayTypeTier.OFF_PEAK),  # Wed
            (date(2024, 1, 18), DayTypeTier.OFF_PEAK),  # Thu
            (date(2024, 1, 19), DayTypeTier.PEAK),  # Fri
            (date(2024, 1, 20), DayTypeTier.SUPER_PEAK),  # Sat
            (date(2024, 1, 21), DayTypeTier.PEAK),  # Sun
        ],
    )
    def test_default_weekday_mapping(self, day, expected):
        assert classify_day_type(day) == expected

    def test_custom_weekday_tiers(self):
        tiers = {i: DayTypeTier.OFF_PEAK for i in range(7)}
        tiers[3] = DayTypeTier.PEAK
        policy = WeekdayDayTypePolicy(tiers=tiers)

        assert classify_day_type(date(2024, 1, 18), policy) == DayTypeTier.PEAK
        assert classify_day_type(date(2024, 1, 20), policy) == DayTypeTier.OFF_PEAK

    def test_holiday_override(self):
        policy = HolidayDayTypePolicy({date(2024, 12, 25): DayTypeTier.SUPER_PEAK})

        assert policy.classify(date(2024, 12, 25)) == DayTypeTier.SUPER_PEAK  # Wed
        assert policy.classify(date(2024, 12, 26)) == DayTypeTier.OFF_PEAK


class TestTimeParsing:
    """Tests for HH:MM parsing."""

    def test_parse(self):
        assert parse_hhmm("09:30") == time(9, 30)
        assert parse_hhmm(" 17:00 ") == time(17, 0)

    def test_twenty_four_is_midnight(self):
        assert parse_hhmm("24:00") == time(0, 0)

    @pytest.mark.parametrize("text", ["", "9", "25:00", "10:60", "ab:cd", "10:00:00"])
    def test_malformed(self, text):
        with pytest.raises(ValueError):
            parse_hhmm(text)

    def test_format(self):
        assert format_hhmm(time(2, 5)) == "02:05"
        assert format_hhmm(None) == "--:--"
