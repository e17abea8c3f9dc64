"""Domain models for the staffing engine.

This module contains the core data structures used throughout the engine:
employees, shift templates, service areas, staffing requirements, shift
assignments, leave, operating hours and the computed gap records.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional


WEEKDAY_KEYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class EmploymentStatus(Enum):
    """Employment status of an employee."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class LeaveStatus(Enum):
    """Workflow status of a leave request.

    Only approved leave blocks scheduling.
    """

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class DayTypeTier(Enum):
    """Demand category of a calendar day.

    Staffing requirements are keyed by tier, so the same area can ask for
    more people on a Saturday than on a Tuesday.
    """

    OFF_PEAK = "Off-Peak"
    PEAK = "Peak"
    SUPER_PEAK = "Super Peak"

    @classmethod
    def parse(cls, text: str) -> "DayTypeTier":
        """Parse a tier from its value, member name, or a loose spelling.

        Args:
            text: e.g. "Super Peak", "SUPER_PEAK", "super-peak", "offpeak".

        Returns:
            The matching tier.

        Raises:
            ValueError: If the text names no tier.
        """
        if isinstance(text, cls):
            return text
        for tier in cls:
            if text == tier.value or text == tier.name:
                return tier
        folded = "".join(ch for ch in str(text).lower() if ch.isalnum())
        if folded == "superpeak":
            return cls.SUPER_PEAK
        if folded == "offpeak":
            return cls.OFF_PEAK
        if folded == "peak":
            return cls.PEAK
        raise ValueError(f"Unknown day type tier: {text!r}")


class ScheduleWeekStatus(Enum):
    """Publish indicator for a (business unit, week) pair."""

    PUBLISHED = "published"
    DIRTY = "dirty"  # Committed changes since the last publish


class AssignmentSource(Enum):
    """Which operation produced an assignment."""

    MANUAL = "manual"
    AUTO_FILL = "auto_fill"
    CARRY_OVER = "carry_over"
    COPY = "copy"
    ROTATION = "rotation"


@dataclass(frozen=True)
class ShiftTime:
    """A time-of-day window. The end may be earlier than the start,
    which means the window runs past midnight."""

    start: time
    end: time

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


# Window used for a gap whose requirement has no explicit start/end.
DEFAULT_SHIFT_TIME = ShiftTime(start=time(10, 0), end=time(19, 0))


@dataclass(frozen=True)
class WeekKey:
    """Identifies one scheduling week of one business unit."""

    business_unit_id: str
    week_start: date


@dataclass
class Employee:
    """An employee that can be scheduled.

    Attributes:
        id: Unique identifier.
        name: Display name.
        position: Role label matched against staffing requirements.
        department: Department name.
        business_unit_id: Business unit the employee belongs to.
        status: Employment status. Only active employees are auto-assigned.
        department_id: Optional department identifier copied onto assignments.
    """

    id: str
    name: str
    position: str
    department: str = ""
    business_unit_id: str = ""
    status: EmploymentStatus = EmploymentStatus.ACTIVE
    department_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmploymentStatus.ACTIVE


@dataclass
class ShiftTemplate:
    """A named shift shape.

    A template is either fixed (start and end time, the end may fall on the
    next day) or flexible (no fixed times, only minimum hours per day and
    minimum days per week).

    Attributes:
        id: Unique identifier.
        name: Display name (e.g., "Closing").
        start_time: Start of a fixed template.
        end_time: End of a fixed template.
        break_minutes: Unpaid break length.
        grace_period_minutes: Tolerated lateness for attendance.
        business_unit_id: Owning business unit, None if shared.
        color: Display color tag.
        is_flexible: True for flexible templates.
        min_hours_per_day: Required daily hours of a flexible template.
        min_days_per_week: Required weekly days of a flexible template.
    """

    id: str
    name: str
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_minutes: int = 0
    grace_period_minutes: int = 0
    business_unit_id: Optional[str] = None
    color: str = "blue"
    is_flexible: bool = False
    min_hours_per_day: Optional[float] = None
    min_days_per_week: Optional[int] = None

    def __post_init__(self):
        if self.is_flexible:
            if self.min_hours_per_day is None or self.min_days_per_week is None:
                raise ValueError(
                    f"Flexible template {self.id} needs min_hours_per_day "
                    "and min_days_per_week"
                )
            # Times on a flexible template carry no meaning
            self.start_time = None
            self.end_time = None
        else:
            if self.start_time is None or self.end_time is None:
                raise ValueError(f"Fixed template {self.id} needs start and end times")
            if self.start_time == self.end_time:
                raise ValueError(
                    f"Fixed template {self.id} has identical start and end times"
                )
        if self.break_minutes < 0:
            raise ValueError(f"Template {self.id} has a negative break")

    @property
    def shift_time(self) -> Optional[ShiftTime]:
        if self.is_flexible:
            return None
        return ShiftTime(self.start_time, self.end_time)

    @property
    def wraps_midnight(self) -> bool:
        return not self.is_flexible and self.end_time < self.start_time

    @property
    def duration_minutes(self) -> int:
        """Scheduled length including the break.

        Flexible templates report their minimum daily hours.
        """
        if self.is_flexible:
            return int(self.min_hours_per_day * 60)
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        if end <= start:
            end += 24 * 60
        return end - start

    @property
    def paid_minutes(self) -> int:
        return max(0, self.duration_minutes - self.break_minutes)

    def matches_window(self, window: Optional[ShiftTime]) -> bool:
        """True if this fixed template starts and ends exactly on the window."""
        if window is None or self.is_flexible:
            return False
        return self.start_time == window.start and self.end_time == window.end

    def spans_on(self, schedule_date: date) -> tuple[datetime, datetime]:
        """Concrete start/end datetimes when worked on a given date."""
        if self.is_flexible:
            raise ValueError(f"Flexible template {self.id} has no fixed span")
        start = datetime.combine(schedule_date, self.start_time)
        return start, start + timedelta(minutes=self.duration_minutes)


@dataclass
class ServiceArea:
    """A physical or functional area of a business unit (e.g., "Bar")."""

    id: str
    business_unit_id: str
    name: str
    capacity: Optional[int] = None
    description: str = ""


@dataclass
class StaffingRequirement:
    """Minimum headcount of one role in one area on one kind of day.

    Attributes:
        id: Unique identifier.
        area_id: Service area the requirement belongs to.
        role: Role label employees must hold to count.
        day_type_tier: Tier of day the requirement applies to.
        min_count: Minimum number of people.
        max_count: Optional upper bound, exceeded counts are reported as surplus.
        start_time: Optional start of the shift window.
        end_time: Optional end of the shift window.
    """

    id: str
    area_id: str
    role: str
    day_type_tier: DayTypeTier
    min_count: int
    max_count: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def shift_time(self) -> Optional[ShiftTime]:
        if self.start_time is None or self.end_time is None:
            return None
        return ShiftTime(self.start_time, self.end_time)


@dataclass
class ShiftAssignment:
    """One employee working one template on one date.

    Attributes:
        id: Unique identifier.
        employee_id: Assigned employee.
        shift_template_id: Template worked.
        schedule_date: Calendar date of the shift start.
        business_unit_id: Business unit the shift belongs to.
        department_id: Department the shift is booked against.
        assigned_area_id: Optional service area.
        provisional: True for a carry-over suggestion not yet committed.
        source: Operation that produced the assignment.
    """

    id: str
    employee_id: str
    shift_template_id: str
    schedule_date: date
    business_unit_id: Optional[str] = None
    department_id: Optional[str] = None
    assigned_area_id: Optional[str] = None
    provisional: bool = False
    source: AssignmentSource = AssignmentSource.MANUAL


@dataclass
class LeaveInterval:
    """A leave request over an inclusive date range."""

    employee_id: str
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.APPROVED
    id: Optional[str] = None
    leave_type: str = ""

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"Leave for {self.employee_id} starts after it ends "
                f"({self.start_date} > {self.end_date})"
            )

    @property
    def blocks_scheduling(self) -> bool:
        return self.status == LeaveStatus.APPROVED

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class DayHours:
    """Opening and closing time of one weekday.

    A close earlier than the open means the unit closes after midnight.
    00:00-00:00 marks a closed day.
    """

    open: time
    close: time

    @property
    def is_closed(self) -> bool:
        return self.open == time(0, 0) and self.close == time(0, 0)


@dataclass
class OperatingHours:
    """Weekly opening hours of a business unit, keyed "Mon".."Sun"."""

    business_unit_id: str
    hours: dict[str, DayHours] = field(default_factory=dict)

    def hours_for(self, day: date) -> Optional[DayHours]:
        """Hours on a date, or None when the unit is closed or unconfigured."""
        day_hours = self.hours.get(WEEKDAY_KEYS[day.weekday()])
        if day_hours is None or day_hours.is_closed:
            return None
        return day_hours


@dataclass(frozen=True)
class Gap:
    """A staffing shortfall for one requirement on one date.

    Attributes:
        schedule_date: Date of the shortfall.
        role: Required role.
        area_id: Service area of the requirement.
        area_name: Display name of the area.
        day_type: Tier of the date.
        required: Minimum headcount.
        scheduled: Headcount currently scheduled.
        shift_time: Window the missing people should work.
        requirement_id: Requirement the gap was computed from.
    """

    schedule_date: date
    role: str
    area_id: str
    area_name: str
    day_type: DayTypeTier
    required: int
    scheduled: int
    shift_time: Optional[ShiftTime] = None
    requirement_id: Optional[str] = None

    @property
    def missing(self) -> int:
        return max(0, self.required - self.scheduled)


@dataclass(frozen=True)
class StaffingSurplus:
    """A requirement scheduled above its maximum headcount."""

    schedule_date: date
    role: str
    area_id: str
    area_name: str
    day_type: DayTypeTier
    maximum: int
    scheduled: int

    @property
    def excess(self) -> int:
        return max(0, self.scheduled - self.maximum)


@dataclass
class DayCoverage:
    """Opening/closing coverage flags for one date."""

    schedule_date: date
    opening_covered: bool = True
    closing_covered: bool = True
    is_closed: bool = False

    @property
    def is_fully_covered(self) -> bool:
        return self.opening_covered and self.closing_covered

    @property
    def messages(self) -> list[str]:
        messages = []
        if not self.opening_covered:
            messages.append("Missing opening shift coverage.")
        if not self.closing_covered:
            messages.append("Missing closing shift coverage.")
        return messages


@dataclass
class ShiftRotation:
    """A cyclic sequence of templates. None entries are days off."""

    id: str
    name: str
    sequence: list[Optional[str]] = field(default_factory=list)
    business_unit_id: Optional[str] = None

    def __post_init__(self):
        if not self.sequence:
            raise ValueError(f"Rotation {self.id} has an empty sequence")

    def template_for(self, day: date, start_date: date) -> Optional[str]:
        """Template id the rotation prescribes on a date, None if off."""
        offset = (day - start_date).days
        if offset < 0:
            return None
        return self.sequence[offset % len(self.sequence)]


@dataclass
class RotationAssignment:
    """Binds an employee to a rotation starting on a date."""

    employee_id: str
    rotation_id: str
    start_date: date
