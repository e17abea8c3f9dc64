"""Greedy auto-assignment of employees to staffing gaps.

The heuristic walks the gaps in the order gap analysis emitted them and, for
each gap, takes the first eligible candidate in candidate order. It is
order-dependent and makes no attempt at a global optimum (see
`cpsat_assigner` for that).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from rosterhelper.domain.models import (
    AssignmentSource,
    Employee,
    Gap,
    ShiftAssignment,
    ShiftTemplate,
)
from rosterhelper.domain.policies import ExactRoleMatchPolicy, RoleMatchPolicy
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)


class AutoFillOutcome(Enum):
    """Why an auto-fill run ended the way it did."""

    FILLED = "filled"
    NO_REQUIREMENTS = "no_requirements"
    NO_GAPS = "no_gaps"
    NO_TEMPLATES = "no_templates"
    NO_ELIGIBLE_CANDIDATES = "no_eligible_candidates"


OUTCOME_MESSAGES = {
    AutoFillOutcome.NO_REQUIREMENTS: "No staffing requirements configured for this business unit.",
    AutoFillOutcome.NO_GAPS: "No gaps to fill!",
    AutoFillOutcome.NO_TEMPLATES: "No shift templates available for this business unit.",
    AutoFillOutcome.NO_ELIGIBLE_CANDIDATES: "Could not find available employees to fill gaps.",
}


@dataclass
class AutoFillPlacement:
    """One staged placement.

    Attributes:
        employee_id: Employee placed.
        gap: Gap the placement closes (in part).
        template_id: Template the employee will work.
        exact_template_match: False when no template matched the gap window
            and a fallback template was used.
        department_id: Department copied from the employee.
    """

    employee_id: str
    gap: Gap
    template_id: str
    exact_template_match: bool = True
    department_id: Optional[str] = None

    @property
    def schedule_date(self) -> date:
        return self.gap.schedule_date


@dataclass
class AutoFillResult:
    """Result of an auto-fill run."""

    outcome: AutoFillOutcome
    placements: list[AutoFillPlacement] = field(default_factory=list)
    committed: list[ShiftAssignment] = field(default_factory=list)
    solver_status: Optional[str] = None

    @property
    def filled_count(self) -> int:
        return len(self.placements)

    @property
    def fallback_count(self) -> int:
        return sum(1 for p in self.placements if not p.exact_template_match)

    @property
    def reason(self) -> str:
        if self.outcome == AutoFillOutcome.FILLED:
            return f"Auto-assigned {self.filled_count} shifts based on gaps."
        return OUTCOME_MESSAGES[self.outcome]


def candidate_pool(
    employees: Iterable[Employee],
    business_unit_id: str,
    department: Optional[str] = None,
) -> list[Employee]:
    """Active employees of a business unit, optionally one department, by name."""
    pool = [
        e for e in employees
        if e.business_unit_id == business_unit_id
        and e.is_active
        and (department is None or e.department == department)
    ]
    return sorted(pool, key=lambda e: (e.name, e.id))


def usable_templates(
    templates: Iterable[ShiftTemplate],
    business_unit_id: str,
) -> list[ShiftTemplate]:
    """Templates of a business unit plus shared ones, in input order."""
    return [
        t for t in templates
        if t.business_unit_id is None or t.business_unit_id == business_unit_id
    ]


def resolve_template(
    gap: Gap,
    templates: list[ShiftTemplate],
) -> tuple[Optional[ShiftTemplate], bool]:
    """Pick the template for a gap.

    Returns:
        Tuple of (template, exact). An exact start/end match on the gap
        window wins, otherwise the first fixed template, otherwise the first
        template. (None, False) if there are no templates.
    """
    for template in templates:
        if template.matches_window(gap.shift_time):
            return template, True
    for template in templates:
        if not template.is_flexible:
            return template, False
    if templates:
        return templates[0], False
    return None, False


def is_eligible(
    employee: Employee,
    gap: Gap,
    state: ScheduleState,
    role_match_policy: RoleMatchPolicy,
    staged: Optional[set[tuple[str, date]]] = None,
) -> bool:
    """Check whether an employee may close a gap.

    The employee must hold the role, have no assignment (committed,
    suggested or staged in this run) on the date, and not be on approved
    leave.
    """
    if not role_match_policy.matches(employee.position, gap.role):
        return False
    slot = (employee.id, gap.schedule_date)
    if staged is not None and slot in staged:
        return False
    if state.assignment_for(employee.id, gap.schedule_date) is not None:
        return False
    return not state.is_on_leave(employee.id, gap.schedule_date)


def commit_placements(
    state: ScheduleState,
    placements: list[AutoFillPlacement],
    business_unit_id: str,
) -> list[ShiftAssignment]:
    """Write staged placements to the state as one batch."""
    return [
        state.upsert_assignment(
            p.employee_id,
            p.schedule_date,
            p.template_id,
            p.gap.area_id,
            business_unit_id=business_unit_id,
            department_id=p.department_id,
            source=AssignmentSource.AUTO_FILL,
        )
        for p in placements
    ]


class AutoAssigner:
    """Greedy gap filler.

    Attributes:
        role_match_policy: Decides whether a position satisfies a role.
        max_per_gap: Cap on placements per gap. The default 1 stages the
            first eligible employee per gap. None fills up to the gap's
            missing headcount.

    Example:
        >>> assigner = AutoAssigner()
        >>> result = assigner.fill("bu1", report.gaps, candidates, state, templates)
        >>> print(result.reason)
        Auto-assigned 3 shifts based on gaps.
    """

    def __init__(
        self,
        role_match_policy: Optional[RoleMatchPolicy] = None,
        max_per_gap: Optional[int] = 1,
    ):
        self.role_match_policy = role_match_policy or ExactRoleMatchPolicy()
        self.max_per_gap = max_per_gap

    def slots_for(self, gap: Gap) -> int:
        if self.max_per_gap is None:
            return gap.missing
        return min(gap.missing, self.max_per_gap)

    def plan(
        self,
        business_unit_id: str,
        gaps: list[Gap],
        candidates: list[Employee],
        state: ScheduleState,
        templates: Iterable[ShiftTemplate],
        has_requirements: bool = True,
    ) -> AutoFillResult:
        """Stage placements without touching the state.

        Args:
            business_unit_id: Business unit being filled.
            gaps: Gaps in the order they should be served.
            candidates: Employees to draw from, in preference order.
            state: Current schedule state.
            templates: Shift templates to choose from.
            has_requirements: False when the unit has no requirements at all.

        Returns:
            AutoFillResult with staged placements and an outcome.
        """
        if not has_requirements:
            return AutoFillResult(outcome=AutoFillOutcome.NO_REQUIREMENTS)
        if not gaps:
            return AutoFillResult(outcome=AutoFillOutcome.NO_GAPS)

        unit_templates = usable_templates(templates, business_unit_id)
        if not unit_templates:
            logger.warning("No shift templates for business unit %s", business_unit_id)
            return AutoFillResult(outcome=AutoFillOutcome.NO_TEMPLATES)

        placements: list[AutoFillPlacement] = []
        staged: set[tuple[str, date]] = set()

        for gap in gaps:
            template, exact = resolve_template(gap, unit_templates)
            wanted = self.slots_for(gap)
            for employee in candidates:
                if wanted <= 0:
                    break
                if not is_eligible(employee, gap, state, self.role_match_policy, staged):
                    continue
                placements.append(
                    AutoFillPlacement(
                        employee_id=employee.id,
                        gap=gap,
                        template_id=template.id,
                        exact_template_match=exact,
                        department_id=employee.department_id,
                    )
                )
                staged.add((employee.id, gap.schedule_date))
                wanted -= 1
            if wanted > 0:
                logger.debug(
                    "Gap %s/%s on %s left %d open",
                    gap.area_id,
                    gap.role,
                    gap.schedule_date,
                    wanted,
                )

        if not placements:
            return AutoFillResult(outcome=AutoFillOutcome.NO_ELIGIBLE_CANDIDATES)
        return AutoFillResult(outcome=AutoFillOutcome.FILLED, placements=placements)

    def fill(
        self,
        business_unit_id: str,
        gaps: list[Gap],
        candidates: list[Employee],
        state: ScheduleState,
        templates: Iterable[ShiftTemplate],
        has_requirements: bool = True,
    ) -> AutoFillResult:
        """Plan placements and commit them to the state in one batch."""
        result = self.plan(business_unit_id, gaps, candidates, state, templates, has_requirements)
        if result.placements:
            result.committed = commit_placements(state, result.placements, business_unit_id)
            logger.info(
                "Auto-assigned %d shifts for %s (%d with fallback template)",
                result.filled_count,
                business_unit_id,
                result.fallback_count,
            )
        return result
