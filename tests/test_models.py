"""Tests for domain model invariants and policies."""

from datetime import date, time

import pytest

from rosterhelper.domain.models import (
    DayHours,
    DayTypeTier,
    Gap,
    LeaveInterval,
    LeaveStatus,
    OperatingHours,
    ShiftRotation,
    ShiftTemplate,
    ShiftTime,
)
from rosterhelper.domain.policies import ExactRoleMatchPolicy, NormalizedRoleMatchPolicy


class TestShiftTemplate:
    """Tests for fixed and flexible templates."""

    def test_fixed_duration(self):
        template = ShiftTemplate("st1", "Morning", time(9, 0), time(18, 0), break_minutes=60)
        assert template.duration_minutes == 540
        assert template.paid_minutes == 480
        assert not template.wraps_midnight

    def test_closing_shift_wraps_midnight(self):
        template = ShiftTemplate("st3", "Closing", time(17, 0), time(2, 0))
        assert template.wraps_midnight
        assert template.duration_minutes == 9 * 60

        start, end = template.spans_on(date(2024, 1, 19))
        assert start.date() == date(2024, 1, 19)
        assert end.date() == date(2024, 1, 20)
        assert end.time() == time(2, 0)

    def test_fixed_requires_times(self):
        with pytest.raises(ValueError):
            ShiftTemplate("bad", "Bad", start_time=time(9, 0))

    def test_fixed_rejects_empty_span(self):
        with pytest.raises(ValueError):
            ShiftTemplate("bad", "Bad", time(9, 0), time(9, 0))

    def test_flexible_ignores_times(self):
        template = ShiftTemplate(
            "st4", "Flexible", time(0, 0), time(0, 0),
            is_flexible=True, min_hours_per_day=8, min_days_per_week=5,
        )
        assert template.start_time is None
        assert template.shift_time is None
        assert template.duration_minutes == 480
        assert not template.matches_window(ShiftTime(time(0, 0), time(0, 0)))

    def test_flexible_requires_minimums(self):
        with pytest.raises(ValueError):
            ShiftTemplate("st4", "Flexible", is_flexible=True, min_hours_per_day=8)

    def test_matches_window(self):
        template = ShiftTemplate("st3", "Closing", time(17, 0), time(2, 0))
        assert template.matches_window(ShiftTime(time(17, 0), time(2, 0)))
        assert not template.matches_window(ShiftTime(time(17, 0), time(1, 0)))
        assert not template.matches_window(None)


class TestLeaveInterval:
    """Tests for leave intervals."""

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            LeaveInterval("e1", date(2024, 1, 20), date(2024, 1, 19))

    def test_covers_inclusive(self):
        leave = LeaveInterval("e1", date(2024, 1, 15), date(2024, 1, 17))
        assert leave.covers(date(2024, 1, 15))
        assert leave.covers(date(2024, 1, 17))
        assert not leave.covers(date(2024, 1, 18))

    def test_only_approved_blocks(self):
        for status in LeaveStatus:
            leave = LeaveInterval("e1", date(2024, 1, 15), date(2024, 1, 15), status=status)
            assert leave.blocks_scheduling == (status == LeaveStatus.APPROVED)


class TestGap:
    """Tests for gap records."""

    def test_missing_is_never_negative(self):
        gap = Gap(date(2024, 1, 20), "Bartender", "area2", "Bar", DayTypeTier.SUPER_PEAK, 2, 5)
        assert gap.missing == 0

    def test_missing(self):
        gap = Gap(date(2024, 1, 20), "Bartender", "area2", "Bar", DayTypeTier.SUPER_PEAK, 3, 1)
        assert gap.missing == 2


class TestDayTypeTierParse:
    """Tests for loose tier parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Super Peak", DayTypeTier.SUPER_PEAK),
            ("SUPER_PEAK", DayTypeTier.SUPER_PEAK),
            ("super-peak", DayTypeTier.SUPER_PEAK),
            ("Off-Peak", DayTypeTier.OFF_PEAK),
            ("offpeak", DayTypeTier.OFF_PEAK),
            ("peak", DayTypeTier.PEAK),
        ],
    )
    def test_parse(self, text, expected):
        assert DayTypeTier.parse(text) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            DayTypeTier.parse("holiday")


class TestOperatingHours:
    """Tests for operating hours lookup."""

    def test_closed_and_missing_days(self):
        hours = OperatingHours(
            "bu1",
            {
                "Mon": DayHours(time(10, 0), time(22, 0)),
                "Tue": DayHours(time(0, 0), time(0, 0)),
            },
        )
        assert hours.hours_for(date(2024, 1, 15)).close == time(22, 0)
        assert hours.hours_for(date(2024, 1, 16)) is None
        assert hours.hours_for(date(2024, 1, 17)) is None


class TestShiftRotation:
    """Tests for rotation sequences."""

    def test_cycles_from_start(self):
        rotation = ShiftRotation("rot1", "Two on one off", ["st1", "st1", None])
        start = date(2024, 1, 15)
        assert rotation.template_for(date(2024, 1, 15), start) == "st1"
        assert rotation.template_for(date(2024, 1, 17), start) is None
        assert rotation.template_for(date(2024, 1, 18), start) == "st1"
        assert rotation.template_for(date(2024, 1, 14), start) is None

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError):
            ShiftRotation("rot1", "Empty", [])


class TestRoleMatchPolicies:
    """Tests for role matching."""

    def test_exact_is_case_sensitive(self):
        policy = ExactRoleMatchPolicy()
        assert policy.matches("Bartender", "Bartender")
        assert not policy.matches("bartender", "Bartender")
        assert not policy.matches("Bartender ", "Bartender")

    def test_normalized_folds_case_and_whitespace(self):
        policy = NormalizedRoleMatchPolicy()
        assert policy.matches("  bartender", "Bartender")
        assert policy.matches("Head  Chef", "head chef")
        assert not policy.matches("", "")

    def test_normalized_aliases(self):
        policy = NormalizedRoleMatchPolicy(aliases={"Bar Staff": "Bartender"})
        assert policy.matches("bar staff", "Bartender")
        assert not policy.matches("Server", "Bartender")
