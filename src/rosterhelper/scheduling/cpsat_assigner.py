"""OR-Tools CP-SAT assigner for maximal gap filling.

This module formulates auto-assignment as a small integer program: one
boolean per eligible (gap, employee) pair, at most one placement per
employee per date, at most `max_per_gap` placements per gap (one by
default, never more than the missing headcount). The objective
maximizes the number of placements, breaking ties toward earlier
candidates so results stay close to the greedy ordering.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from ortools.sat.python import cp_model

from rosterhelper.domain.models import Employee, Gap, ShiftTemplate
from rosterhelper.domain.policies import ExactRoleMatchPolicy, RoleMatchPolicy
from rosterhelper.scheduling.auto_assign import (
    AutoFillOutcome,
    AutoFillPlacement,
    AutoFillResult,
    commit_placements,
    is_eligible,
    resolve_template,
    usable_templates,
)
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)


class SolverType(Enum):
    """Type of assigner to use."""

    HEURISTIC = "heuristic"  # Greedy, order-dependent
    CPSAT = "cpsat"  # OR-Tools CP-SAT (maximal fill)
    HYBRID = "hybrid"  # Try CP-SAT, fall back to heuristic


@dataclass
class SolverConfig:
    """Configuration for the CP-SAT assigner.

    Attributes:
        time_limit_seconds: Maximum solver runtime.
        num_workers: Number of parallel workers (0 = auto).
        max_per_gap: Cap on placements per gap (None = missing headcount).
    """

    time_limit_seconds: float = 10.0
    num_workers: int = 0
    max_per_gap: Optional[int] = 1


class CPSATAssigner:
    """Gap filler backed by CP-SAT.

    Uses the same eligibility and template rules as the greedy assigner, so
    every placement it makes is one the greedy assigner could have made.
    """

    def __init__(
        self,
        role_match_policy: Optional[RoleMatchPolicy] = None,
        config: Optional[SolverConfig] = None,
    ):
        self.role_match_policy = role_match_policy or ExactRoleMatchPolicy()
        self.config = config or SolverConfig()

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

        Args mirror `AutoAssigner.plan`.

        Returns:
            AutoFillResult with `solver_status` set.
        """
        if not has_requirements:
            return AutoFillResult(outcome=AutoFillOutcome.NO_REQUIREMENTS)
        if not gaps:
            return AutoFillResult(outcome=AutoFillOutcome.NO_GAPS)

        unit_templates = usable_templates(templates, business_unit_id)
        if not unit_templates:
            return AutoFillResult(outcome=AutoFillOutcome.NO_TEMPLATES)

        model = cp_model.CpModel()

        # x[(gap index, candidate index)] = 1 if the candidate fills the gap
        x: dict[tuple[int, int], cp_model.IntVar] = {}
        for g_idx, gap in enumerate(gaps):
            for c_idx, employee in enumerate(candidates):
                if is_eligible(employee, gap, state, self.role_match_policy):
                    x[(g_idx, c_idx)] = model.NewBoolVar(f"x_{g_idx}_{c_idx}")

        if not x:
            return AutoFillResult(outcome=AutoFillOutcome.NO_ELIGIBLE_CANDIDATES)

        # Constraint 1: at most max_per_gap (capped by missing headcount) per gap
        for g_idx, gap in enumerate(gaps):
            gap_vars = [v for (gi, _), v in x.items() if gi == g_idx]
            if gap_vars:
                model.Add(sum(gap_vars) <= self._slots_for(gap))

        # Constraint 2: one placement per employee per date
        per_slot: dict[tuple[int, date], list[cp_model.IntVar]] = {}
        for (g_idx, c_idx), var in x.items():
            per_slot.setdefault((c_idx, gaps[g_idx].schedule_date), []).append(var)
        for slot_vars in per_slot.values():
            if len(slot_vars) > 1:
                model.AddAtMostOne(slot_vars)

        # Objective: fill count dominates, candidate rank breaks ties
        weight = len(candidates) * len(x) + 1
        model.Maximize(
            sum(var * weight - var * c_idx for (_, c_idx), var in x.items())
        )

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.time_limit_seconds
        if self.config.num_workers > 0:
            solver.parameters.num_workers = self.config.num_workers

        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")
        logger.debug(
            "CP-SAT finished with %s in %.3fs over %d variables",
            status_str,
            solver.WallTime(),
            len(x),
        )

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return AutoFillResult(
                outcome=AutoFillOutcome.NO_ELIGIBLE_CANDIDATES,
                solver_status=status_str,
            )

        placements = []
        for g_idx, gap in enumerate(gaps):
            template, exact = resolve_template(gap, unit_templates)
            for c_idx, employee in enumerate(candidates):
                var = x.get((g_idx, c_idx))
                if var is not None and solver.Value(var) == 1:
                    placements.append(
                        AutoFillPlacement(
                            employee_id=employee.id,
                            gap=gap,
                            template_id=template.id,
                            exact_template_match=exact,
                            department_id=employee.department_id,
                        )
                    )

        outcome = AutoFillOutcome.FILLED if placements else AutoFillOutcome.NO_ELIGIBLE_CANDIDATES
        return AutoFillResult(outcome=outcome, placements=placements, solver_status=status_str)

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
                "CP-SAT assigned %d shifts for %s (%s)",
                result.filled_count,
                business_unit_id,
                result.solver_status,
            )
        return result

    def _slots_for(self, gap: Gap) -> int:
        if self.config.max_per_gap is None:
            return gap.missing
        return min(gap.missing, self.config.max_per_gap)
