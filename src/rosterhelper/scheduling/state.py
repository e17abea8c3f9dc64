"""In-memory schedule state for one scheduling session.

The state holds the assignments and leave loaded for the window being
edited. `upsert_assignment` and `delete_assignment` are the only mutation
paths, so the one-assignment-per-employee-per-date invariant is enforced in
one place. Committed changes notify listeners (the publish lifecycle) and
queue persistence intents for the repository.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from rosterhelper.domain.calendar import start_of_week
from rosterhelper.domain.models import (
    AssignmentSource,
    LeaveInterval,
    ShiftAssignment,
    WeekKey,
)

logger = logging.getLogger(__name__)


class IntentKind(Enum):
    """Kind of change to persist."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class AssignmentIntent:
    """A committed change the persistence collaborator should apply."""

    kind: IntentKind
    assignment: ShiftAssignment


@dataclass
class DeleteResult:
    """Outcome of a delete request."""

    deleted: bool
    assignment: Optional[ShiftAssignment] = None
    reason: str = ""


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ScheduleState:
    """Assignments and leave of one scheduling session.

    Attributes:
        business_unit_id: Default business unit for new assignments.
        leaves: Leave intervals of the employees in scope.
        id_factory: Produces identifiers for new assignments.
    """

    business_unit_id: Optional[str] = None
    leaves: list[LeaveInterval] = field(default_factory=list)
    id_factory: Callable[[], str] = _new_id
    _assignments: dict[str, ShiftAssignment] = field(default_factory=dict, init=False)
    _slots: dict[tuple[str, date], str] = field(default_factory=dict, init=False)
    _listeners: list[Callable[[WeekKey], None]] = field(default_factory=list, init=False)
    _intents: list[AssignmentIntent] = field(default_factory=list, init=False)

    @classmethod
    def from_records(
        cls,
        assignments: Iterable[ShiftAssignment],
        leaves: Iterable[LeaveInterval] = (),
        business_unit_id: Optional[str] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> "ScheduleState":
        """Load existing assignments without marking anything dirty.

        Raises:
            ValueError: If two loaded assignments share an employee and date.
        """
        state = cls(business_unit_id=business_unit_id, leaves=list(leaves))
        if id_factory is not None:
            state.id_factory = id_factory
        for assignment in assignments:
            slot = (assignment.employee_id, assignment.schedule_date)
            if slot in state._slots:
                raise ValueError(
                    f"Employee {assignment.employee_id} has more than one "
                    f"assignment on {assignment.schedule_date}"
                )
            state._store(assignment)
        return state

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_listener(self, listener: Callable[[WeekKey], None]) -> None:
        """Register a callback invoked with the WeekKey of each committed change."""
        self._listeners.append(listener)

    def drain_intents(self) -> list[AssignmentIntent]:
        """Return and clear the queued persistence intents."""
        intents, self._intents = self._intents, []
        return intents

    @property
    def pending_intents(self) -> list[AssignmentIntent]:
        return list(self._intents)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._assignments)

    def get(self, assignment_id: str) -> Optional[ShiftAssignment]:
        return self._assignments.get(assignment_id)

    def all_assignments(self, include_provisional: bool = True) -> list[ShiftAssignment]:
        return [
            a for a in self._sorted(self._assignments.values())
            if include_provisional or not a.provisional
        ]

    def assignments_on(
        self,
        day: date,
        business_unit_id: Optional[str] = None,
        include_provisional: bool = False,
    ) -> list[ShiftAssignment]:
        """Assignments on a date, committed only unless asked otherwise."""
        return self.assignments_between(day, day, business_unit_id, include_provisional)

    def assignments_between(
        self,
        start: date,
        end: date,
        business_unit_id: Optional[str] = None,
        include_provisional: bool = False,
        employee_ids: Optional[set[str]] = None,
    ) -> list[ShiftAssignment]:
        result = []
        for assignment in self._assignments.values():
            if not (start <= assignment.schedule_date <= end):
                continue
            if assignment.provisional and not include_provisional:
                continue
            if business_unit_id is not None and assignment.business_unit_id != business_unit_id:
                continue
            if employee_ids is not None and assignment.employee_id not in employee_ids:
                continue
            result.append(assignment)
        return self._sorted(result)

    def assignments_in_week(
        self,
        week_start: date,
        business_unit_id: Optional[str] = None,
        include_provisional: bool = False,
        employee_ids: Optional[set[str]] = None,
    ) -> list[ShiftAssignment]:
        return self.assignments_between(
            week_start,
            week_start + timedelta(days=6),
            business_unit_id,
            include_provisional,
            employee_ids,
        )

    def assignment_for(self, employee_id: str, day: date) -> Optional[ShiftAssignment]:
        """The assignment (committed or provisional) occupying a slot."""
        assignment_id = self._slots.get((employee_id, day))
        if assignment_id is None:
            return None
        return self._assignments[assignment_id]

    def leaves_covering(self, employee_id: str, day: date) -> Optional[LeaveInterval]:
        """First approved leave interval of an employee that contains a date."""
        for leave in self.leaves:
            if leave.employee_id == employee_id and leave.blocks_scheduling and leave.covers(day):
                return leave
        return None

    def is_on_leave(self, employee_id: str, day: date) -> bool:
        return self.leaves_covering(employee_id, day) is not None

    def add_leave(self, leave: LeaveInterval) -> None:
        self.leaves.append(leave)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert_assignment(
        self,
        employee_id: str,
        schedule_date: date,
        template_id: str,
        area_id: Optional[str] = None,
        *,
        business_unit_id: Optional[str] = None,
        department_id: Optional[str] = None,
        source: AssignmentSource = AssignmentSource.MANUAL,
        provisional: bool = False,
    ) -> ShiftAssignment:
        """Create or replace the assignment of an employee on a date.

        If the slot is taken the existing record keeps its id and gets the
        new template and area. A committed upsert over a provisional entry
        commits it. A provisional upsert never overwrites a committed entry.

        Args:
            employee_id: Employee to place.
            schedule_date: Date of the shift.
            template_id: Template to work.
            area_id: Optional service area.
            business_unit_id: Defaults to the state's business unit.
            department_id: Department the shift is booked against.
            source: Operation producing the assignment.
            provisional: True to stage a suggestion.

        Returns:
            The stored assignment.
        """
        bu_id = business_unit_id if business_unit_id is not None else self.business_unit_id
        existing = self.assignment_for(employee_id, schedule_date)

        if existing is not None:
            if provisional and not existing.provisional:
                logger.debug(
                    "Suggestion for %s on %s skipped, slot already committed",
                    employee_id,
                    schedule_date,
                )
                return existing
            was_provisional = existing.provisional
            updated = replace(
                existing,
                shift_template_id=template_id,
                assigned_area_id=area_id if area_id is not None else existing.assigned_area_id,
                business_unit_id=bu_id if bu_id is not None else existing.business_unit_id,
                department_id=(
                    department_id if department_id is not None else existing.department_id
                ),
                provisional=provisional,
                source=source if was_provisional and not provisional else existing.source,
            )
            self._store(updated)
            if not provisional:
                kind = IntentKind.CREATE if was_provisional else IntentKind.UPDATE
                self._committed(kind, updated)
            return updated

        assignment = ShiftAssignment(
            id=self.id_factory(),
            employee_id=employee_id,
            shift_template_id=template_id,
            schedule_date=schedule_date,
            business_unit_id=bu_id,
            department_id=department_id,
            assigned_area_id=area_id,
            provisional=provisional,
            source=source,
        )
        self._store(assignment)
        if not provisional:
            self._committed(IntentKind.CREATE, assignment)
        return assignment

    def delete_assignment(self, assignment_id: str) -> DeleteResult:
        """Remove an assignment. Unknown ids are a no-op."""
        assignment = self._assignments.pop(assignment_id, None)
        if assignment is None:
            return DeleteResult(deleted=False, reason=f"Assignment {assignment_id} not found")

        del self._slots[(assignment.employee_id, assignment.schedule_date)]
        if not assignment.provisional:
            self._committed(IntentKind.DELETE, assignment)
        return DeleteResult(deleted=True, assignment=assignment)

    def delete_employee_week(self, employee_id: str, week_start: date) -> list[ShiftAssignment]:
        """Delete every committed assignment of an employee in a week."""
        doomed = self.assignments_in_week(week_start, employee_ids={employee_id})
        for assignment in doomed:
            self.delete_assignment(assignment.id)
        return doomed

    def commit_provisional(self, assignment_id: str) -> Optional[ShiftAssignment]:
        """Turn a suggestion into a committed assignment."""
        assignment = self._assignments.get(assignment_id)
        if assignment is None or not assignment.provisional:
            return None
        return self.upsert_assignment(
            assignment.employee_id,
            assignment.schedule_date,
            assignment.shift_template_id,
            assignment.assigned_area_id,
            business_unit_id=assignment.business_unit_id,
            department_id=assignment.department_id,
            source=assignment.source,
        )

    def discard_provisional(self, assignment_id: str) -> bool:
        """Drop a suggestion. Committed assignments are left alone."""
        assignment = self._assignments.get(assignment_id)
        if assignment is None or not assignment.provisional:
            return False
        return self.delete_assignment(assignment_id).deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store(self, assignment: ShiftAssignment) -> None:
        self._assignments[assignment.id] = assignment
        self._slots[(assignment.employee_id, assignment.schedule_date)] = assignment.id

    def _committed(self, kind: IntentKind, assignment: ShiftAssignment) -> None:
        self._intents.append(AssignmentIntent(kind=kind, assignment=assignment))
        bu_id = assignment.business_unit_id or self.business_unit_id
        if not bu_id:
            logger.debug("Change to %s has no business unit, listeners not notified", assignment.id)
            return
        key = WeekKey(business_unit_id=bu_id, week_start=start_of_week(assignment.schedule_date))
        for listener in self._listeners:
            listener(key)

    @staticmethod
    def _sorted(assignments: Iterable[ShiftAssignment]) -> list[ShiftAssignment]:
        return sorted(assignments, key=lambda a: (a.schedule_date, a.employee_id))
