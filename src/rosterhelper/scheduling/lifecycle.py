"""Draft/publish lifecycle per (business unit, week)."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from rosterhelper.domain.models import ScheduleWeekStatus, ShiftAssignment, WeekKey
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Result of publishing a week."""

    key: WeekKey
    committed: list[ShiftAssignment] = field(default_factory=list)
    status: ScheduleWeekStatus = ScheduleWeekStatus.PUBLISHED

    @property
    def committed_count(self) -> int:
        return len(self.committed)


class PublishLifecycle:
    """Tracks whether each week has unpublished changes.

    A week starts PUBLISHED. Any committed change to it marks it DIRTY;
    publishing commits its remaining suggestions and marks it PUBLISHED
    again. Navigating to a week resets its indicator without touching data.

    Example:
        >>> lifecycle = PublishLifecycle()
        >>> lifecycle.attach(state)
        >>> state.upsert_assignment("e1", day, "st1")
        >>> lifecycle.status("bu1", week_start)
        <ScheduleWeekStatus.DIRTY: 'dirty'>
    """

    def __init__(self):
        self._statuses: dict[WeekKey, ScheduleWeekStatus] = {}
        self.viewed: Optional[WeekKey] = None

    def attach(self, state: ScheduleState) -> None:
        """Subscribe to the committed mutations of a state."""
        state.add_listener(self.mark_dirty)

    def mark_dirty(self, key: WeekKey) -> None:
        self._statuses[key] = ScheduleWeekStatus.DIRTY

    def status(self, business_unit_id: str, week_start: date) -> ScheduleWeekStatus:
        return self._statuses.get(WeekKey(business_unit_id, week_start), ScheduleWeekStatus.PUBLISHED)

    def is_dirty(self, business_unit_id: str, week_start: date) -> bool:
        return self.status(business_unit_id, week_start) == ScheduleWeekStatus.DIRTY

    def navigate(self, business_unit_id: str, week_start: date) -> WeekKey:
        """Record the viewed week and reset its indicator to PUBLISHED."""
        key = WeekKey(business_unit_id, week_start)
        self.viewed = key
        self._statuses[key] = ScheduleWeekStatus.PUBLISHED
        return key

    def publish(
        self,
        state: ScheduleState,
        business_unit_id: str,
        week_start: date,
    ) -> PublishResult:
        """Commit the week's suggestions and mark it PUBLISHED."""
        key = WeekKey(business_unit_id, week_start)
        pending = [
            a for a in state.assignments_in_week(week_start, business_unit_id, include_provisional=True)
            if a.provisional
        ]
        committed = []
        for suggestion in pending:
            assignment = state.commit_provisional(suggestion.id)
            if assignment is not None:
                committed.append(assignment)

        self._statuses[key] = ScheduleWeekStatus.PUBLISHED
        logger.info(
            "Published %s week %s (%d suggestions committed)",
            business_unit_id,
            week_start,
            len(committed),
        )
        return PublishResult(key=key, committed=committed)
