"""Apply shift rotations to a week."""

import logging
from collections.abc import Iterable
from datetime import date
from typing import Optional

from rosterhelper.domain.calendar import week_dates
from rosterhelper.domain.models import (
    AssignmentSource,
    RotationAssignment,
    ShiftAssignment,
    ShiftRotation,
)
from rosterhelper.scheduling.state import ScheduleState

logger = logging.getLogger(__name__)


def apply_rotation(
    state: ScheduleState,
    rotation: ShiftRotation,
    binding: RotationAssignment,
    week_start: date,
    known_templates: Optional[Iterable[str]] = None,
    business_unit_id: Optional[str] = None,
) -> list[ShiftAssignment]:
    """Place the shifts a rotation prescribes for one employee in one week.

    Days before the binding's start date, OFF days and approved-leave days
    are left untouched. Other days are upserted, replacing any existing
    template.

    Args:
        state: Schedule state to write to.
        rotation: The rotation.
        binding: Employee binding with the rotation start date.
        week_start: Monday of the week.
        known_templates: Template ids that exist. Unknown ones are skipped.
        business_unit_id: Business unit for created assignments.

    Returns:
        The assignments written.
    """
    if binding.rotation_id != rotation.id:
        raise ValueError(
            f"Binding for {binding.employee_id} refers to rotation "
            f"{binding.rotation_id}, not {rotation.id}"
        )
    known = set(known_templates) if known_templates is not None else None

    written = []
    for day in week_dates(week_start):
        template_id = rotation.template_for(day, binding.start_date)
        if template_id is None:
            continue
        if known is not None and template_id not in known:
            logger.warning("Rotation %s names unknown template %s", rotation.id, template_id)
            continue
        if state.is_on_leave(binding.employee_id, day):
            continue
        written.append(
            state.upsert_assignment(
                binding.employee_id,
                day,
                template_id,
                business_unit_id=business_unit_id or rotation.business_unit_id,
                source=AssignmentSource.ROTATION,
            )
        )
    return written
