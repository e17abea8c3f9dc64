"""Validation of staffing configuration, schedules and day coverage."""

from rosterhelper.validation.coverage import CoverageValidator
from rosterhelper.validation.validator import (
    ScheduleValidator,
    StaffingConfigValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "CoverageValidator",
    "ScheduleValidator",
    "StaffingConfigValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
