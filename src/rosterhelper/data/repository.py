"""Repository port and in-memory adapter.

The engine never performs I/O. A `ScheduleRepository` loads the records a
session needs and receives the persistence intents the session produces.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from rosterhelper.domain.calendar import next_week, previous_week
from rosterhelper.domain.models import (
    Employee,
    LeaveInterval,
    OperatingHours,
    RotationAssignment,
    ServiceArea,
    ShiftAssignment,
    ShiftRotation,
    ShiftTemplate,
    StaffingRequirement,
)
from rosterhelper.scheduling.state import AssignmentIntent, IntentKind

logger = logging.getLogger(__name__)


class ScheduleRepository(ABC):
    """Interface to the store holding scheduling records."""

    @abstractmethod
    def load_employees(self, business_unit_id: str) -> list[Employee]:
        """Employees of a business unit."""
        pass

    @abstractmethod
    def load_templates(self, business_unit_id: str) -> list[ShiftTemplate]:
        """Templates of a business unit plus shared templates."""
        pass

    @abstractmethod
    def load_areas(self, business_unit_id: str) -> list[ServiceArea]:
        pass

    @abstractmethod
    def load_requirements(self, business_unit_id: str) -> list[StaffingRequirement]:
        pass

    @abstractmethod
    def load_assignments(
        self,
        business_unit_id: str,
        start: date,
        end: date,
    ) -> list[ShiftAssignment]:
        """Committed assignments between two dates, inclusive."""
        pass

    @abstractmethod
    def load_leaves(self, start: date, end: date) -> list[LeaveInterval]:
        """Leave intervals overlapping a date range."""
        pass

    @abstractmethod
    def load_operating_hours(self, business_unit_id: str) -> Optional[OperatingHours]:
        pass

    @abstractmethod
    def load_rotations(
        self,
        business_unit_id: str,
    ) -> tuple[list[ShiftRotation], list[RotationAssignment]]:
        """Rotations of a business unit and the employee bindings to them."""
        pass

    @abstractmethod
    def apply_intents(self, intents: list[AssignmentIntent]) -> None:
        """Persist committed assignment changes."""
        pass


@dataclass
class InMemoryRepository(ScheduleRepository):
    """Repository backed by plain lists, used by tests and the CLI."""

    employees: list[Employee] = field(default_factory=list)
    templates: list[ShiftTemplate] = field(default_factory=list)
    areas: list[ServiceArea] = field(default_factory=list)
    requirements: list[StaffingRequirement] = field(default_factory=list)
    assignments: list[ShiftAssignment] = field(default_factory=list)
    leaves: list[LeaveInterval] = field(default_factory=list)
    operating_hours: list[OperatingHours] = field(default_factory=list)
    rotations: list[ShiftRotation] = field(default_factory=list)
    rotation_assignments: list[RotationAssignment] = field(default_factory=list)

    def load_employees(self, business_unit_id: str) -> list[Employee]:
        return [e for e in self.employees if e.business_unit_id == business_unit_id]

    def load_templates(self, business_unit_id: str) -> list[ShiftTemplate]:
        return [
            t for t in self.templates
            if t.business_unit_id is None or t.business_unit_id == business_unit_id
        ]

    def load_areas(self, business_unit_id: str) -> list[ServiceArea]:
        return [a for a in self.areas if a.business_unit_id == business_unit_id]

    def load_requirements(self, business_unit_id: str) -> list[StaffingRequirement]:
        area_ids = {a.id for a in self.load_areas(business_unit_id)}
        return [r for r in self.requirements if r.area_id in area_ids]

    def load_assignments(
        self,
        business_unit_id: str,
        start: date,
        end: date,
    ) -> list[ShiftAssignment]:
        return [
            a for a in self.assignments
            if a.business_unit_id == business_unit_id and start <= a.schedule_date <= end
        ]

    def load_leaves(self, start: date, end: date) -> list[LeaveInterval]:
        return [lv for lv in self.leaves if lv.start_date <= end and lv.end_date >= start]

    def load_operating_hours(self, business_unit_id: str) -> Optional[OperatingHours]:
        for hours in self.operating_hours:
            if hours.business_unit_id == business_unit_id:
                return hours
        return None

    def load_rotations(
        self,
        business_unit_id: str,
    ) -> tuple[list[ShiftRotation], list[RotationAssignment]]:
        rotations = [
            r for r in self.rotations
            if r.business_unit_id is None or r.business_unit_id == business_unit_id
        ]
        rotation_ids = {r.id for r in rotations}
        bindings = [b for b in self.rotation_assignments if b.rotation_id in rotation_ids]
        return rotations, bindings

    def apply_intents(self, intents: list[AssignmentIntent]) -> None:
        by_id = {a.id: i for i, a in enumerate(self.assignments)}
        for intent in intents:
            assignment = intent.assignment
            position = by_id.get(assignment.id)
            if intent.kind == IntentKind.DELETE:
                if position is not None:
                    self.assignments[position] = None
                continue
            if position is None:
                by_id[assignment.id] = len(self.assignments)
                self.assignments.append(assignment)
            else:
                self.assignments[position] = assignment
        self.assignments = [a for a in self.assignments if a is not None]
        logger.debug("Applied %d intents, %d assignments stored", len(intents), len(self.assignments))


@dataclass
class ScheduleSnapshot:
    """Pre-loaded inputs of one scheduling session.

    Assignments and leave cover the previous, current and next week so
    that carry-over and navigation can work without another load.
    """

    business_unit_id: str
    week_start: date
    employees: list[Employee] = field(default_factory=list)
    templates: list[ShiftTemplate] = field(default_factory=list)
    areas: list[ServiceArea] = field(default_factory=list)
    requirements: list[StaffingRequirement] = field(default_factory=list)
    assignments: list[ShiftAssignment] = field(default_factory=list)
    leaves: list[LeaveInterval] = field(default_factory=list)
    operating_hours: Optional[OperatingHours] = None
    rotations: list[ShiftRotation] = field(default_factory=list)
    rotation_assignments: list[RotationAssignment] = field(default_factory=list)

    @classmethod
    def from_repository(
        cls,
        repository: ScheduleRepository,
        business_unit_id: str,
        week_start: date,
    ) -> "ScheduleSnapshot":
        window_start = previous_week(week_start)
        window_end = next_week(week_start) + timedelta(days=6)
        rotations, bindings = repository.load_rotations(business_unit_id)
        return cls(
            business_unit_id=business_unit_id,
            week_start=week_start,
            employees=repository.load_employees(business_unit_id),
            templates=repository.load_templates(business_unit_id),
            areas=repository.load_areas(business_unit_id),
            requirements=repository.load_requirements(business_unit_id),
            assignments=repository.load_assignments(business_unit_id, window_start, window_end),
            leaves=repository.load_leaves(window_start, window_end),
            operating_hours=repository.load_operating_hours(business_unit_id),
            rotations=rotations,
            rotation_assignments=bindings,
        )
