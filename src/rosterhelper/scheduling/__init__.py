"""Scheduling engine: schedule state, gap analysis, auto-fill and publishing.

The session facade lives in `rosterhelper.scheduling.session`.
"""

from rosterhelper.scheduling.auto_assign import (
    AutoAssigner,
    AutoFillOutcome,
    AutoFillPlacement,
    AutoFillResult,
    candidate_pool,
)
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
from rosterhelper.scheduling.state import (
    AssignmentIntent,
    DeleteResult,
    IntentKind,
    ScheduleState,
)

__all__ = [
    # State
    "AssignmentIntent",
    "DeleteResult",
    "IntentKind",
    "ScheduleState",
    # Analysis
    "GapAnalyzer",
    "GapReport",
    # Auto-fill
    "AutoAssigner",
    "AutoFillOutcome",
    "AutoFillPlacement",
    "AutoFillResult",
    "CPSATAssigner",
    "SolverConfig",
    "SolverType",
    "candidate_pool",
    # Carry-over and copy
    "CarryOverResult",
    "CarryOverSuggestor",
    "CopyResult",
    "apply_rotation",
    "copy_employee_previous_week",
    "copy_previous_week",
    "copy_to_rest_of_week",
    # Lifecycle
    "PublishLifecycle",
    "PublishResult",
]
