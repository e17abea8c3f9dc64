"""Tests for coverage and schedule validation."""

from datetime import date, time

import pytest

from rosterhelper.domain.models import (
    DayHours,
    Employee,
    EmploymentStatus,
    LeaveInterval,
    LeaveStatus,
    OperatingHours,
    ShiftAssignment,
    ShiftTemplate,
)
from rosterhelper.validation.coverage import CoverageValidator
from rosterhelper.validation.validator import ScheduleValidator, ValidationErrorType

FRIDAY = date(2024, 1, 19)


def create_templates() -> dict[str, ShiftTemplate]:
    templates = [
        ShiftTemplate("st1", "Morning", time(9, 0), time(18, 0)),
        ShiftTemplate("st2", "Mid", time(13, 0), time(22, 0)),
        ShiftTemplate("st3", "Closing", time(17, 0), time(2, 0)),
        ShiftTemplate("st5", "Opening", time(10, 0), time(19, 0)),
        ShiftTemplate("st4", "Flexible", is_flexible=True, min_hours_per_day=8, min_days_per_week=5),
    ]
    return {t.id: t for t in templates}


def create_hours() -> OperatingHours:
    return OperatingHours(
        "bu1",
        {
            "Mon": DayHours(time(10, 0), time(22, 0)),
            "Fri": DayHours(time(10, 0), time(2, 0)),
            "Sun": DayHours(time(0, 0), time(0, 0)),
        },
    )


def shift(emp_id: str, template_id: str, day: date = FRIDAY, assignment_id: str = "") -> ShiftAssignment:
    return ShiftAssignment(
        id=assignment_id or f"{emp_id}-{day.isoformat()}",
        employee_id=emp_id,
        shift_template_id=template_id,
        schedule_date=day,
        business_unit_id="bu1",
    )


class TestCoverageValidator:
    """Tests for opening/closing coverage."""

    @pytest.fixture
    def validator(self):
        """Create a coverage validator."""
        return CoverageValidator()

    def test_closing_not_covered(self, validator):
        # Friday 10:00-02:00, only an opener and a 13-22 shift
        coverage = validator.validate_day(
            FRIDAY,
            [shift("e1", "st5"), shift("e2", "st2")],
            create_hours(),
            create_templates(),
        )

        assert coverage.opening_covered
        assert not coverage.closing_covered
        assert coverage.messages == ["Missing closing shift coverage."]

    def test_closing_after_midnight_covered(self, validator):
        coverage = validator.validate_day(
            FRIDAY,
            [shift("e1", "st5"), shift("e2", "st3")],
            create_hours(),
            create_templates(),
        )
        assert coverage.is_fully_covered
        assert coverage.messages == []

    def test_nothing_scheduled(self, validator):
        coverage = validator.validate_day(FRIDAY, [], create_hours(), create_templates())
        assert coverage.messages == [
            "Missing opening shift coverage.",
            "Missing closing shift coverage.",
        ]

    def test_closed_day_is_covered(self, validator):
        coverage = validator.validate_day(date(2024, 1, 21), [], create_hours(), create_templates())
        assert coverage.is_closed
        assert coverage.is_fully_covered

    def test_unconfigured_day_is_covered(self, validator):
        coverage = validator.validate_day(date(2024, 1, 16), [], create_hours(), create_templates())
        assert coverage.is_fully_covered

    def test_flexible_template_never_covers(self, validator):
        coverage = validator.validate_day(
            date(2024, 1, 15), [shift("e1", "st4", date(2024, 1, 15))], create_hours(), create_templates()
        )
        assert not coverage.opening_covered

    def test_validate_week_ignores_suggestions(self, validator):
        monday = date(2024, 1, 15)
        suggestion = shift("e1", "st5", monday)
        suggestion.provisional = True
        week = validator.validate_week(
            monday,
            [suggestion, shift("e2", "st2", monday)],
            create_hours(),
            create_templates(),
        )

        assert len(week) == 7
        assert not week[monday].opening_covered
        assert week[monday].closing_covered


class TestScheduleValidator:
    """Tests for ScheduleValidator."""

    @pytest.fixture
    def validator(self):
        """Create a schedule validator."""
        return ScheduleValidator()

    @pytest.fixture
    def employees(self):
        """Two employees, one inactive."""
        return {
            "e1": Employee("e1", "Alice", "Host", business_unit_id="bu1"),
            "e2": Employee("e2", "Bob", "Host", business_unit_id="bu1", status=EmploymentStatus.INACTIVE),
        }

    def test_valid(self, validator, employees):
        result = validator.validate([shift("e1", "st1")], employees, create_templates())
        assert result.is_valid, f"Errors: {[str(e) for e in result.errors]}"

    def test_unknown_employee_and_template(self, validator, employees):
        result = validator.validate([shift("e9", "st9")], employees, create_templates())

        types = {e.error_type for e in result.errors}
        assert types == {ValidationErrorType.UNKNOWN_EMPLOYEE, ValidationErrorType.UNKNOWN_TEMPLATE}

    def test_duplicate_slot(self, validator, employees):
        result = validator.validate(
            [shift("e1", "st1", assignment_id="a1"), shift("e1", "st2", assignment_id="a2")],
            employees,
            create_templates(),
        )
        assert result.errors[0].error_type == ValidationErrorType.DUPLICATE_ASSIGNMENT

    def test_assignment_on_approved_leave(self, validator, employees):
        leaves = [
            LeaveInterval("e1", FRIDAY, FRIDAY, id="lv1"),
            LeaveInterval("e1", FRIDAY, FRIDAY, status=LeaveStatus.REJECTED),
        ]
        result = validator.validate([shift("e1", "st1")], employees, create_templates(), leaves)

        assert len(result.errors) == 1
        assert result.errors[0].error_type == ValidationErrorType.ASSIGNMENT_ON_LEAVE
        assert result.errors[0].details == {"leave_id": "lv1"}

    def test_inactive_employee_is_warning(self, validator, employees):
        result = validator.validate([shift("e2", "st1")], employees, create_templates())
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_error_str(self, validator, employees):
        result = validator.validate([shift("e9", "st1")], employees, create_templates())
        assert str(result.errors[0]) == "[unknown_employee] Employee e9: Unknown employee ID: e9 (2024-01-19)"
