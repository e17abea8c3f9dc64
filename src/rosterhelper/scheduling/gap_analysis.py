"""Gap analysis: compare scheduled headcount against staffing minimums.

For each date of a week the analyzer classifies the day, looks up the
requirements of the business unit for that tier, counts the committed
assignments whose employee holds the required role, and reports every
requirement that falls short.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from rosterhelper.domain.calendar import week_dates
from rosterhelper.domain.models import (
    DEFAULT_SHIFT_TIME,
    Employee,
    Gap,
    ShiftAssignment,
    ShiftTime,
    StaffingRequirement,
    StaffingSurplus,
)
from rosterhelper.domain.policies import (
    DayTypePolicy,
    ExactRoleMatchPolicy,
    RoleMatchPolicy,
    WeekdayDayTypePolicy,
)
from rosterhelper.domain.staffing import StaffingIndex
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)


@dataclass
class GapReport:
    """Result of analyzing one week of one business unit.

    Attributes:
        business_unit_id: Business unit analyzed.
        week_start: Monday of the analyzed week.
        gaps: Shortfalls in date order, then requirement order.
        surpluses: Requirements scheduled above their maximum.
    """

    business_unit_id: str
    week_start: date
    gaps: list[Gap] = field(default_factory=list)
    surpluses: list[StaffingSurplus] = field(default_factory=list)

    @property
    def total_missing(self) -> int:
        return sum(g.missing for g in self.gaps)

    @property
    def is_fully_covered(self) -> bool:
        return not self.gaps

    def gaps_on(self, day: date) -> list[Gap]:
        return [g for g in self.gaps if g.schedule_date == day]


class GapAnalyzer:
    """Computes staffing gaps for a week.

    The analysis is a pure function of its inputs: running it twice over an
    unchanged state yields the same report.

    Example:
        >>> analyzer = GapAnalyzer()
        >>> report = analyzer.analyze("bu1", week_start, index, state, employees)
        >>> for gap in report.gaps:
        ...     print(gap.schedule_date, gap.role, gap.missing)
    """

    def __init__(
        self,
        day_type_policy: Optional[DayTypePolicy] = None,
        role_match_policy: Optional[RoleMatchPolicy] = None,
        default_shift_time: ShiftTime = DEFAULT_SHIFT_TIME,
    ):
        self.day_type_policy = day_type_policy or WeekdayDayTypePolicy()
        self.role_match_policy = role_match_policy or ExactRoleMatchPolicy()
        self.default_shift_time = default_shift_time

    def analyze(
        self,
        business_unit_id: str,
        week_start: date,
        index: StaffingIndex,
        state: ScheduleState,
        employees: dict[str, Employee],
    ) -> GapReport:
        """Analyze one week.

        Args:
            business_unit_id: Business unit to analyze.
            week_start: Monday of the week.
            index: Staffing requirement index.
            state: Current schedule state. Only committed assignments count.
            employees: Dict mapping employee IDs to Employee objects.

        Returns:
            GapReport with gaps and surpluses.
        """
        report = GapReport(business_unit_id=business_unit_id, week_start=week_start)

        for day in week_dates(week_start):
            day_type = self.day_type_policy.classify(day)
            requirements = index.requirements_for_business_unit(business_unit_id, day_type)
            if not requirements:
                continue

            day_assignments = [
                a for a in state.assignments_on(day)
                if self._belongs_to(a, business_unit_id, employees)
            ]

            for req in requirements:
                scheduled = self.count_scheduled(req, day_assignments, employees)
                area = index.area(req.area_id)
                area_name = area.name if area is not None else req.area_id

                if scheduled < req.min_count:
                    report.gaps.append(
                        Gap(
                            schedule_date=day,
                            role=req.role,
                            area_id=req.area_id,
                            area_name=area_name,
                            day_type=day_type,
                            required=req.min_count,
                            scheduled=scheduled,
                            shift_time=req.shift_time or self.default_shift_time,
                            requirement_id=req.id,
                        )
                    )
                elif req.max_count is not None and scheduled > req.max_count:
                    report.surpluses.append(
                        StaffingSurplus(
                            schedule_date=day,
                            role=req.role,
                            area_id=req.area_id,
                            area_name=area_name,
                            day_type=day_type,
                            maximum=req.max_count,
                            scheduled=scheduled,
                        )
                    )

        logger.debug(
            "Gap analysis for %s week %s: %d gaps, %d missing",
            business_unit_id,
            week_start,
            len(report.gaps),
            report.total_missing,
        )
        return report

    def count_scheduled(
        self,
        requirement: StaffingRequirement,
        day_assignments: list[ShiftAssignment],
        employees: dict[str, Employee],
    ) -> int:
        """Count assignments whose employee holds the required role."""
        count = 0
        for assignment in day_assignments:
            employee = employees.get(assignment.employee_id)
            if employee is None:
                continue
            if self.role_match_policy.matches(employee.position, requirement.role):
                count += 1
        return count

    @staticmethod
    def _belongs_to(
        assignment: ShiftAssignment,
        business_unit_id: str,
        employees: dict[str, Employee],
    ) -> bool:
        if assignment.business_unit_id is not None:
            return assignment.business_unit_id == business_unit_id
        employee = employees.get(assignment.employee_id)
        return employee is not None and employee.business_unit_id == business_unit_id
