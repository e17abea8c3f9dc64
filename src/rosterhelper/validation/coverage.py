"""Opening and closing coverage checks.

A day is covered at opening when some assignment's template starts exactly
at the opening time, and at closing when some template ends exactly at the
closing time. The check is informational and never blocks an operation.
"""

from collections.abc import Iterable
from datetime import date

from rosterhelper.domain.calendar import week_dates
from rosterhelper.domain.models import (
    DayCoverage,
    OperatingHours,
    ShiftAssignment,
    ShiftTemplate,
)


class CoverageValidator:
    """Checks that each open day has someone opening and someone closing.

    Example:
        >>> validator = CoverageValidator()
        >>> coverage = validator.validate_day(day, assignments, hours, templates)
        >>> coverage.messages
        ['Missing closing shift coverage.']
    """

    def validate_day(
        self,
        schedule_date: date,
        day_assignments: Iterable[ShiftAssignment],
        operating_hours: OperatingHours,
        templates: dict[str, ShiftTemplate],
    ) -> DayCoverage:
        """Check coverage of a single date.

        Args:
            schedule_date: Date being checked.
            day_assignments: Committed assignments on that date.
            operating_hours: Hours of the business unit.
            templates: Dict mapping template IDs to templates.

        Returns:
            DayCoverage. Closed or unconfigured days are fully covered.
        """
        day_hours = operating_hours.hours_for(schedule_date)
        if day_hours is None:
            return DayCoverage(schedule_date=schedule_date, is_closed=True)

        opening = False
        closing = False
        for assignment in day_assignments:
            template = templates.get(assignment.shift_template_id)
            if template is None or template.is_flexible:
                continue
            if template.start_time == day_hours.open:
                opening = True
            if template.end_time == day_hours.close:
                closing = True

        return DayCoverage(
            schedule_date=schedule_date,
            opening_covered=opening,
            closing_covered=closing,
        )

    def validate_week(
        self,
        week_start: date,
        assignments: Iterable[ShiftAssignment],
        operating_hours: OperatingHours,
        templates: dict[str, ShiftTemplate],
    ) -> dict[date, DayCoverage]:
        """Check coverage of each date of a week."""
        by_date: dict[date, list[ShiftAssignment]] = {}
        for assignment in assignments:
            if assignment.provisional:
                continue
            by_date.setdefault(assignment.schedule_date, []).append(assignment)

        return {
            day: self.validate_day(day, by_date.get(day, []), operating_hours, templates)
            for day in week_dates(week_start)
        }
