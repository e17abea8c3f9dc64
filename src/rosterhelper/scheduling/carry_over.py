"""Carry-over suggestions and week copy operations.

An empty week is seeded with provisional copies of the previous week's
shifts. Suggestions stay out of gap analysis and persistence until they are
accepted one by one or committed together on publish. The copy operations
here commit immediately.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from rosterhelper.domain.calendar import previous_week, start_of_week
from rosterhelper.domain.models import AssignmentSource, ShiftAssignment, WeekKey
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)

ONE_WEEK = timedelta(days=7)


@dataclass
class CarryOverResult:
    """Result of a carry-over request."""

    suggestions: list[ShiftAssignment] = field(default_factory=list)
    reason: str = ""

    @property
    def suggested_count(self) -> int:
        return len(self.suggestions)


@dataclass
class CopyResult:
    """Result of a copy operation."""

    copied: list[ShiftAssignment] = field(default_factory=list)
    deleted: list[ShiftAssignment] = field(default_factory=list)
    reason: str = ""

    @property
    def copied_count(self) -> int:
        return len(self.copied)


class CarryOverSuggestor:
    """Generates and resolves carry-over suggestions.

    A week is seeded at most once: after its suggestions have been generated,
    rejecting all of them does not bring them back.
    """

    def __init__(self):
        self._suggested_weeks: set[WeekKey] = set()

    def suggest(
        self,
        state: ScheduleState,
        business_unit_id: str,
        week_start: date,
    ) -> CarryOverResult:
        """Seed an empty week with provisional copies of the previous week.

        Args:
            state: Schedule state holding both weeks.
            business_unit_id: Business unit being viewed.
            week_start: Monday of the week being viewed.

        Returns:
            CarryOverResult. Nothing is created when the week already has
            assignments, was already seeded, or the previous week is empty.
        """
        key = WeekKey(business_unit_id, week_start)
        if key in self._suggested_weeks:
            return CarryOverResult(reason="Suggestions were already generated for this week.")

        if state.assignments_in_week(week_start, business_unit_id, include_provisional=True):
            return CarryOverResult(reason="Week already has assignments.")

        source = state.assignments_in_week(previous_week(week_start), business_unit_id)
        if not source:
            return CarryOverResult(reason="No schedule found for last week.")

        staged = [
            state.upsert_assignment(
                a.employee_id,
                a.schedule_date + ONE_WEEK,
                a.shift_template_id,
                a.assigned_area_id,
                business_unit_id=business_unit_id,
                department_id=a.department_id,
                source=AssignmentSource.CARRY_OVER,
                provisional=True,
            )
            for a in source
        ]
        # Slots already committed elsewhere keep their assignment
        suggestions = [a for a in staged if a.provisional]
        self._suggested_weeks.add(key)
        logger.info(
            "Suggested %d shifts for %s week %s from the previous week",
            len(suggestions),
            business_unit_id,
            week_start,
        )
        return CarryOverResult(suggestions=suggestions)

    def was_suggested(self, business_unit_id: str, week_start: date) -> bool:
        return WeekKey(business_unit_id, week_start) in self._suggested_weeks

    def accept(self, state: ScheduleState, assignment_id: str) -> Optional[ShiftAssignment]:
        """Commit one suggestion."""
        return state.commit_provisional(assignment_id)

    def reject(self, state: ScheduleState, assignment_id: str) -> bool:
        """Drop one suggestion."""
        return state.discard_provisional(assignment_id)


def copy_previous_week(
    state: ScheduleState,
    business_unit_id: str,
    week_start: date,
    employee_ids: Optional[set[str]] = None,
) -> CopyResult:
    """Replace the week of the given employees with their previous week.

    The target employees' assignments in the destination week are deleted
    before the previous week's shifts are copied in.

    Args:
        state: Schedule state holding both weeks.
        business_unit_id: Business unit being edited.
        week_start: Monday of the destination week.
        employee_ids: Employees to copy. None copies everyone who worked the
            previous week.

    Returns:
        CopyResult with the copied and deleted assignments.
    """
    source = state.assignments_in_week(
        previous_week(week_start), business_unit_id, employee_ids=employee_ids
    )
    if not source:
        return CopyResult(
            reason="No shifts found in the previous week for the selected employees."
        )

    targets = employee_ids if employee_ids is not None else {a.employee_id for a in source}
    result = CopyResult()
    for employee_id in sorted(targets):
        result.deleted.extend(state.delete_employee_week(employee_id, week_start))

    for a in source:
        result.copied.append(
            state.upsert_assignment(
                a.employee_id,
                a.schedule_date + ONE_WEEK,
                a.shift_template_id,
                a.assigned_area_id,
                business_unit_id=business_unit_id,
                department_id=a.department_id,
                source=AssignmentSource.COPY,
            )
        )
    return result


def copy_employee_previous_week(
    state: ScheduleState,
    employee_id: str,
    week_start: date,
) -> CopyResult:
    """Replace one employee's week with their previous week."""
    source = state.assignments_in_week(previous_week(week_start), employee_ids={employee_id})
    if not source:
        return CopyResult(reason="No schedule found for last week.")

    result = CopyResult(deleted=state.delete_employee_week(employee_id, week_start))
    for a in source:
        result.copied.append(
            state.upsert_assignment(
                a.employee_id,
                a.schedule_date + ONE_WEEK,
                a.shift_template_id,
                a.assigned_area_id,
                business_unit_id=a.business_unit_id,
                department_id=a.department_id,
                source=AssignmentSource.COPY,
            )
        )
    return result


def copy_to_rest_of_week(state: ScheduleState, assignment_id: str) -> CopyResult:
    """Repeat a shift on the following days of its week.

    Days where the employee already has an assignment or approved leave are
    skipped.
    """
    origin = state.get(assignment_id)
    if origin is None:
        return CopyResult(reason=f"Assignment {assignment_id} not found")

    week_end = start_of_week(origin.schedule_date) + timedelta(days=6)
    result = CopyResult()
    day = origin.schedule_date + timedelta(days=1)
    while day <= week_end:
        if state.assignment_for(origin.employee_id, day) is None and not state.is_on_leave(
            origin.employee_id, day
        ):
            result.copied.append(
                state.upsert_assignment(
                    origin.employee_id,
                    day,
                    origin.shift_template_id,
                    origin.assigned_area_id,
                    business_unit_id=origin.business_unit_id,
                    department_id=origin.department_id,
                    source=AssignmentSource.COPY,
                )
            )
        day += timedelta(days=1)

    if not result.copied:
        result.reason = "No free days left in the week."
    return result
