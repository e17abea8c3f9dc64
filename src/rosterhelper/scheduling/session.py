"""Scheduling session facade.

A `SchedulingSession` wires the engine components for one business unit
and exposes the operations an HR planner performs on a week: analyze gaps,
auto-fill, copy and carry over shifts, and publish. `SessionRegistry`
serializes sessions per (business unit, week).
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from rosterhelper.data.repository import ScheduleRepository, ScheduleSnapshot
from rosterhelper.domain.calendar import start_of_week
from rosterhelper.domain.models import (
    DEFAULT_SHIFT_TIME,
    DayCoverage,
    Employee,
    OperatingHours,
    ScheduleWeekStatus,
    ShiftAssignment,
    ShiftTemplate,
    ShiftTime,
    WeekKey,
)
from rosterhelper.domain.policies import (
    DayTypePolicy,
    ExactRoleMatchPolicy,
    RoleMatchPolicy,
    WeekdayDayTypePolicy,
)
from rosterhelper.domain.staffing import StaffingIndex
from rosterhelper.scheduling.auto_assign import AutoAssigner, AutoFillResult, candidate_pool
from rosterhelper.scheduling.carry_over import (
    CarryOverResult,
    CarryOverSuggestor,
    CopyResult,
    copy_employee_previous_week,
    copy_previous_week,
    copy_to_rest_of_week,
)
from rosterhelper.scheduling.cpsat_assigner import CPSATAssigner, SolverConfig, SolverType
from rosterhelper.scheduling.gap_analysis import GapAnalyzer, GapReport
from rosterhelper.scheduling.lifecycle import PublishLifecycle, PublishResult
from rosterhelper.scheduling.rotation import apply_rotation
from rosterhelper.scheduling.state import AssignmentIntent, DeleteResult, ScheduleState
from rosterhelper.validation.coverage import CoverageValidator
from rosterhelper.validation.validator import ScheduleValidator, ValidationResult

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNASSIGNED_AREA = "General / Unassigned"


@dataclass
class SessionConfig:
    """Configuration for a scheduling session.

    Attributes:
        solver_type: Which assigner auto-fill uses.
        solver_config: CP-SAT settings (CPSAT and HYBRID only). Its own
            max_per_gap is overridden by the session's.
        max_per_gap: Cap on placements per gap for every assigner. The
            default 1 places one employee per gap, None fills up to the
            missing headcount.
        auto_suggest_carry_over: Seed empty weeks when navigating to them.
        default_shift_time: Window for requirements without one.
        day_type_policy: Day classification (default weekday policy).
        role_match_policy: Role matching (default exact equality).
    """

    solver_type: SolverType = SolverType.HEURISTIC
    solver_config: Optional[SolverConfig] = None
    max_per_gap: Optional[int] = 1
    auto_suggest_carry_over: bool = True
    default_shift_time: ShiftTime = DEFAULT_SHIFT_TIME
    day_type_policy: Optional[DayTypePolicy] = None
    role_match_policy: Optional[RoleMatchPolicy] = None

    def __post_init__(self):
        if self.day_type_policy is None:
            self.day_type_policy = WeekdayDayTypePolicy()
        if self.role_match_policy is None:
            self.role_match_policy = ExactRoleMatchPolicy()
        if self.solver_config is None:
            self.solver_config = SolverConfig(max_per_gap=self.max_per_gap)
        elif self.solver_config.max_per_gap != self.max_per_gap:
            self.solver_config = replace(self.solver_config, max_per_gap=self.max_per_gap)


class SchedulingSession:
    """Edits the schedule of one business unit, one week at a time.

    Example:
        >>> session = SchedulingSession(snapshot)
        >>> report = session.analyze_gaps()
        >>> result = session.auto_fill()
        >>> print(result.reason)
        >>> session.publish()
    """

    def __init__(self, snapshot: ScheduleSnapshot, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self.business_unit_id = snapshot.business_unit_id
        self.week_start = start_of_week(snapshot.week_start)

        self.employees: dict[str, Employee] = {e.id: e for e in snapshot.employees}
        self.templates: dict[str, ShiftTemplate] = {t.id: t for t in snapshot.templates}
        self.operating_hours = snapshot.operating_hours or OperatingHours(
            business_unit_id=self.business_unit_id
        )
        self.rotations = {r.id: r for r in snapshot.rotations}
        self.rotation_assignments = list(snapshot.rotation_assignments)

        self.index = StaffingIndex.build(snapshot.areas, snapshot.requirements)
        self.state = ScheduleState.from_records(
            snapshot.assignments,
            snapshot.leaves,
            business_unit_id=self.business_unit_id,
        )

        self.lifecycle = PublishLifecycle()
        self.lifecycle.attach(self.state)
        self.lifecycle.navigate(self.business_unit_id, self.week_start)

        self.suggestor = CarryOverSuggestor()
        self.gap_analyzer = GapAnalyzer(
            day_type_policy=self.config.day_type_policy,
            role_match_policy=self.config.role_match_policy,
            default_shift_time=self.config.default_shift_time,
        )
        self.coverage_validator = CoverageValidator()
        self.schedule_validator = ScheduleValidator()

    @classmethod
    def from_repository(
        cls,
        repository: ScheduleRepository,
        business_unit_id: str,
        week_start: date,
        config: Optional[SessionConfig] = None,
    ) -> "SchedulingSession":
        snapshot = ScheduleSnapshot.from_repository(
            repository, business_unit_id, start_of_week(week_start)
        )
        return cls(snapshot, config)

    @property
    def key(self) -> WeekKey:
        return WeekKey(self.business_unit_id, self.week_start)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_gaps(self) -> GapReport:
        return self.gap_analyzer.analyze(
            self.business_unit_id, self.week_start, self.index, self.state, self.employees
        )

    def validate_coverage(self) -> dict[date, DayCoverage]:
        return self.coverage_validator.validate_week(
            self.week_start,
            self.state.assignments_in_week(self.week_start, self.business_unit_id),
            self.operating_hours,
            self.templates,
        )

    def validate_schedule(self) -> ValidationResult:
        return self.schedule_validator.validate(
            self.state.assignments_in_week(self.week_start, self.business_unit_id),
            self.employees,
            self.templates,
            self.state.leaves,
        )

    # ------------------------------------------------------------------
    # Auto-fill
    # ------------------------------------------------------------------

    def auto_fill(
        self,
        department: Optional[str] = None,
        solver_type: Optional[SolverType] = None,
    ) -> AutoFillResult:
        """Fill the current week's gaps.

        Args:
            department: Only draw candidates from this department.
            solver_type: Override the configured assigner.

        Returns:
            AutoFillResult of the assigner that ran.
        """
        solver_type = solver_type or self.config.solver_type
        gaps = self.analyze_gaps().gaps
        candidates = candidate_pool(self.employees.values(), self.business_unit_id, department)
        args = (
            self.business_unit_id,
            gaps,
            candidates,
            self.state,
            list(self.templates.values()),
            self.index.has_requirements(self.business_unit_id),
        )

        greedy = AutoAssigner(self.config.role_match_policy, self.config.max_per_gap)
        if solver_type == SolverType.HEURISTIC:
            return greedy.fill(*args)

        optimal = CPSATAssigner(self.config.role_match_policy, self.config.solver_config)
        result = optimal.fill(*args)
        if solver_type == SolverType.HYBRID and result.solver_status not in (
            None,
            "OPTIMAL",
            "FEASIBLE",
        ):
            logger.warning(
                "CP-SAT returned %s, falling back to heuristic", result.solver_status
            )
            return greedy.fill(*args)
        return result

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def place_shift(
        self,
        employee_id: str,
        schedule_date: date,
        template_id: str,
        area_id: Optional[str] = None,
    ) -> ShiftAssignment:
        """Manually place (or replace) an employee's shift."""
        if template_id not in self.templates:
            raise KeyError(f"Unknown shift template: {template_id}")
        employee = self.employees.get(employee_id)
        if employee is None:
            raise KeyError(f"Unknown employee: {employee_id}")
        return self.state.upsert_assignment(
            employee_id,
            schedule_date,
            template_id,
            area_id,
            business_unit_id=self.business_unit_id,
            department_id=employee.department_id,
        )

    def delete_shift(self, assignment_id: str) -> DeleteResult:
        return self.state.delete_assignment(assignment_id)

    def copy_previous_week(self, employee_ids: Optional[set[str]] = None) -> CopyResult:
        return copy_previous_week(self.state, self.business_unit_id, self.week_start, employee_ids)

    def copy_employee_previous_week(self, employee_id: str) -> CopyResult:
        return copy_employee_previous_week(self.state, employee_id, self.week_start)

    def copy_to_rest_of_week(self, assignment_id: str) -> CopyResult:
        return copy_to_rest_of_week(self.state, assignment_id)

    def apply_rotations(self) -> list[ShiftAssignment]:
        """Apply every rotation binding of the unit to the current week."""
        written = []
        for binding in self.rotation_assignments:
            rotation = self.rotations.get(binding.rotation_id)
            if rotation is None:
                logger.warning(
                    "Employee %s bound to unknown rotation %s",
                    binding.employee_id,
                    binding.rotation_id,
                )
                continue
            written.extend(
                apply_rotation(
                    self.state,
                    rotation,
                    binding,
                    self.week_start,
                    known_templates=self.templates,
                    business_unit_id=self.business_unit_id,
                )
            )
        return written

    # ------------------------------------------------------------------
    # Carry-over and lifecycle
    # ------------------------------------------------------------------

    def suggest_carry_over(self) -> CarryOverResult:
        return self.suggestor.suggest(self.state, self.business_unit_id, self.week_start)

    def suggestions(self) -> list[ShiftAssignment]:
        return [
            a for a in self.state.assignments_in_week(
                self.week_start, self.business_unit_id, include_provisional=True
            )
            if a.provisional
        ]

    def accept_suggestion(self, assignment_id: str) -> Optional[ShiftAssignment]:
        return self.suggestor.accept(self.state, assignment_id)

    def reject_suggestion(self, assignment_id: str) -> bool:
        return self.suggestor.reject(self.state, assignment_id)

    def navigate(self, week_start: date) -> Optional[CarryOverResult]:
        """Move to another week.

        Resets the week's publish indicator and, when configured, seeds it
        with carry-over suggestions.
        """
        self.week_start = start_of_week(week_start)
        self.lifecycle.navigate(self.business_unit_id, self.week_start)
        if self.config.auto_suggest_carry_over:
            return self.suggest_carry_over()
        return None

    def publish(self) -> PublishResult:
        return self.lifecycle.publish(self.state, self.business_unit_id, self.week_start)

    def status(self) -> ScheduleWeekStatus:
        return self.lifecycle.status(self.business_unit_id, self.week_start)

    def drain_intents(self) -> list[AssignmentIntent]:
        return self.state.drain_intents()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def employees_by_role(self) -> dict[str, list[Employee]]:
        groups: dict[str, list[Employee]] = {}
        for employee in self._unit_employees():
            groups.setdefault(employee.position or UNCATEGORIZED, []).append(employee)
        return groups

    def employees_by_area(self) -> dict[str, list[Employee]]:
        """Group employees by the area their role is staffed in."""
        role_areas = self.index.role_to_area(self.business_unit_id)
        groups: dict[str, list[Employee]] = {}
        for employee in self._unit_employees():
            area = role_areas.get(employee.position)
            name = area.name if area is not None else UNASSIGNED_AREA
            groups.setdefault(name, []).append(employee)
        return groups

    def week_stats(self) -> dict:
        """Summary numbers for the current week."""
        assignments = self.state.assignments_in_week(self.week_start, self.business_unit_id)
        report = self.analyze_gaps()
        coverage = self.validate_coverage()
        paid_minutes = sum(
            self.templates[a.shift_template_id].paid_minutes
            for a in assignments
            if a.shift_template_id in self.templates
        )
        return {
            "business_unit_id": self.business_unit_id,
            "week_start": self.week_start.isoformat(),
            "assignments": len(assignments),
            "suggestions": len(self.suggestions()),
            "employees_scheduled": len({a.employee_id for a in assignments}),
            "paid_hours": paid_minutes / 60,
            "gaps": len(report.gaps),
            "missing": report.total_missing,
            "surpluses": len(report.surpluses),
            "days_missing_coverage": sum(1 for c in coverage.values() if not c.is_fully_covered),
            "status": self.status().value,
        }

    def _unit_employees(self) -> list[Employee]:
        return sorted(
            (e for e in self.employees.values() if e.business_unit_id == self.business_unit_id),
            key=lambda e: (e.name, e.id),
        )


class SessionRegistry:
    """One lock per (business unit, week).

    Edits of the same week are serialized; different weeks and business
    units proceed in parallel.
    """

    def __init__(self):
        self._locks: dict[WeekKey, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, key: WeekKey) -> threading.RLock:
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    @contextmanager
    def lock(self, business_unit_id: str, week_start: date) -> Iterator[WeekKey]:
        key = WeekKey(business_unit_id, start_of_week(week_start))
        with self.lock_for(key):
            yield key
