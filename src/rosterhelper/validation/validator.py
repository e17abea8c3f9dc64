"""Validation module for staffing configuration and schedules.

This module is the single source of truth for configuration and schedule
constraints. A staffing index is only built from configuration that passes
`StaffingConfigValidator`, and a week should pass `ScheduleValidator`
before it is published.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from rosterhelper.domain.models import (
    Employee,
    LeaveInterval,
    ServiceArea,
    ShiftAssignment,
    ShiftTemplate,
    StaffingRequirement,
)


class ValidationErrorType(Enum):
    """Types of validation errors."""

    # Staffing configuration
    DUPLICATE_AREA = "duplicate_area"
    UNKNOWN_AREA = "unknown_area"
    UNKNOWN_ROLE = "unknown_role"
    NEGATIVE_MIN_COUNT = "negative_min_count"
    INVALID_MAX_COUNT = "invalid_max_count"
    MALFORMED_TIME_WINDOW = "malformed_time_window"

    # Schedule
    UNKNOWN_EMPLOYEE = "unknown_employee"
    UNKNOWN_TEMPLATE = "unknown_template"
    DUPLICATE_ASSIGNMENT = "duplicate_assignment"
    ASSIGNMENT_ON_LEAVE = "assignment_on_leave"

    # Snapshot loading
    MALFORMED_RECORD = "malformed_record"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    employee_id: Optional[str] = None
    schedule_date: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.employee_id:
            parts.append(f"Employee {self.employee_id}:")
        parts.append(self.message)
        if self.schedule_date is not None:
            parts.append(f"({self.schedule_date.isoformat()})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of a validation pass."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class StaffingConfigValidator:
    """Validates service areas and staffing requirements.

    Example:
        >>> result = StaffingConfigValidator().validate(areas, requirements)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(
        self,
        areas: Iterable[ServiceArea],
        requirements: Iterable[StaffingRequirement],
        known_roles: Optional[set[str]] = None,
    ) -> ValidationResult:
        """Validate staffing configuration.

        Args:
            areas: Service areas of one or more business units.
            requirements: Staffing requirements referencing those areas.
            known_roles: Role labels in use. When given, requirements naming
                any other role are rejected.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)

        area_ids: set[str] = set()
        for area in areas:
            if area.id in area_ids:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_AREA,
                        message=f"Service area {area.id} is defined twice",
                    )
                )
            area_ids.add(area.id)

        seen: set[tuple] = set()
        for req in requirements:
            self._validate_requirement(req, area_ids, known_roles, result)

            key = (req.area_id, req.role, req.day_type_tier)
            if key in seen:
                result.add_warning(
                    f"Requirement {req.id}: duplicate requirement for role "
                    f"{req.role!r} in area {req.area_id} on "
                    f"{req.day_type_tier.value} days"
                )
            seen.add(key)

        return result

    def _validate_requirement(
        self,
        req: StaffingRequirement,
        area_ids: set[str],
        known_roles: Optional[set[str]],
        result: ValidationResult,
    ) -> None:
        if req.area_id not in area_ids:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNKNOWN_AREA,
                    message=f"Requirement {req.id} references unknown area {req.area_id}",
                )
            )

        if known_roles is not None and req.role not in known_roles:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNKNOWN_ROLE,
                    message=f"Requirement {req.id} references unknown role {req.role!r}",
                )
            )

        if req.min_count < 0:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NEGATIVE_MIN_COUNT,
                    message=f"Requirement {req.id} has negative min_count {req.min_count}",
                )
            )

        if req.max_count is not None and req.max_count < req.min_count:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_MAX_COUNT,
                    message=(
                        f"Requirement {req.id} has max_count {req.max_count} "
                        f"below min_count {req.min_count}"
                    ),
                )
            )

        has_start = req.start_time is not None
        has_end = req.end_time is not None
        if has_start != has_end:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.MALFORMED_TIME_WINDOW,
                    message=f"Requirement {req.id} sets only one end of its time window",
                )
            )
        elif has_start and req.start_time == req.end_time:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.MALFORMED_TIME_WINDOW,
                    message=f"Requirement {req.id} has an empty time window",
                )
            )


class ScheduleValidator:
    """Validates assignments against the roster, templates and leave.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate(assignments, employees_map, templates_map, leaves)
    """

    def validate(
        self,
        assignments: Iterable[ShiftAssignment],
        employees_map: dict[str, Employee],
        templates_map: dict[str, ShiftTemplate],
        leaves: Iterable[LeaveInterval] = (),
    ) -> ValidationResult:
        """Validate a set of assignments.

        Args:
            assignments: Assignments to check (usually one week).
            employees_map: Dict mapping employee IDs to Employee objects.
            templates_map: Dict mapping template IDs to ShiftTemplate objects.
            leaves: Leave intervals. Only approved leave is a conflict.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        approved: dict[str, list[LeaveInterval]] = {}
        for leave in leaves:
            if leave.blocks_scheduling:
                approved.setdefault(leave.employee_id, []).append(leave)

        slots: set[tuple[str, date]] = set()
        for assignment in assignments:
            emp_id = assignment.employee_id
            day = assignment.schedule_date

            employee = employees_map.get(emp_id)
            if employee is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_EMPLOYEE,
                        message=f"Unknown employee ID: {emp_id}",
                        employee_id=emp_id,
                        schedule_date=day,
                    )
                )
            elif not employee.is_active:
                result.add_warning(f"Employee {emp_id} is inactive but scheduled on {day}")

            template = templates_map.get(assignment.shift_template_id)
            if template is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_TEMPLATE,
                        message=f"Unknown shift template: {assignment.shift_template_id}",
                        employee_id=emp_id,
                        schedule_date=day,
                    )
                )
            elif (
                template.business_unit_id is not None
                and assignment.business_unit_id is not None
                and template.business_unit_id != assignment.business_unit_id
            ):
                result.add_warning(
                    f"Assignment {assignment.id} uses template {template.id} "
                    f"of business unit {template.business_unit_id}"
                )

            if (emp_id, day) in slots:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_ASSIGNMENT,
                        message="More than one assignment on the same date",
                        employee_id=emp_id,
                        schedule_date=day,
                    )
                )
            slots.add((emp_id, day))

            for leave in approved.get(emp_id, []):
                if leave.covers(day):
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.ASSIGNMENT_ON_LEAVE,
                            message="Scheduled during approved leave",
                            employee_id=emp_id,
                            schedule_date=day,
                            details={"leave_id": leave.id},
                        )
                    )
                    break

        return result
