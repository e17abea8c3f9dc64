"""Domain models and business rules for staffing."""

from rosterhelper.domain.calendar import (
    classify_day_type,
    date_range,
    next_week,
    parse_hhmm,
    previous_week,
    start_of_week,
    week_dates,
    weekday_key,
)
from rosterhelper.domain.models import (
    DEFAULT_SHIFT_TIME,
    AssignmentSource,
    DayCoverage,
    DayHours,
    DayTypeTier,
    Employee,
    EmploymentStatus,
    Gap,
    LeaveInterval,
    LeaveStatus,
    OperatingHours,
    RotationAssignment,
    ScheduleWeekStatus,
    ServiceArea,
    ShiftAssignment,
    ShiftRotation,
    ShiftTemplate,
    ShiftTime,
    StaffingRequirement,
    StaffingSurplus,
    WeekKey,
)
from rosterhelper.domain.policies import (
    DayTypePolicy,
    ExactRoleMatchPolicy,
    HolidayDayTypePolicy,
    NormalizedRoleMatchPolicy,
    RoleMatchPolicy,
    WeekdayDayTypePolicy,
)
from rosterhelper.domain.staffing import StaffingConfigError, StaffingIndex

__all__ = [
    # Models
    "AssignmentSource",
    "DEFAULT_SHIFT_TIME",
    "DayCoverage",
    "DayHours",
    "DayTypeTier",
    "Employee",
    "EmploymentStatus",
    "Gap",
    "LeaveInterval",
    "LeaveStatus",
    "OperatingHours",
    "RotationAssignment",
    "ScheduleWeekStatus",
    "ServiceArea",
    "ShiftAssignment",
    "ShiftRotation",
    "ShiftTemplate",
    "ShiftTime",
    "StaffingRequirement",
    "StaffingSurplus",
    "WeekKey",
    # Calendar
    "classify_day_type",
    "date_range",
    "next_week",
    "parse_hhmm",
    "previous_week",
    "start_of_week",
    "week_dates",
    "weekday_key",
    # Policies
    "DayTypePolicy",
    "ExactRoleMatchPolicy",
    "HolidayDayTypePolicy",
    "NormalizedRoleMatchPolicy",
    "RoleMatchPolicy",
    "WeekdayDayTypePolicy",
    # Staffing
    "StaffingConfigError",
    "StaffingIndex",
]
