"""JSON snapshot adapter.

A snapshot file holds every record a session needs, one list per record
type:

    {
      "employees": [{"id": "e1", "name": "...", "position": "Bartender",
                     "business_unit_id": "bu1", "status": "active"}],
      "shift_templates": [{"id": "st1", "name": "Morning",
                           "start_time": "09:00", "end_time": "18:00"}],
      "service_areas": [...], "staffing_requirements": [...],
      "assignments": [...], "leaves": [...], "operating_hours": [...],
      "rotations": [...], "rotation_assignments": [...]
    }

Every malformed record is collected before `SnapshotError` is raised, so
one run reports all problems.
"""

import json
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any, Optional

from rosterhelper.domain.calendar import parse_hhmm
from rosterhelper.domain.models import (
    DayHours,
    DayTypeTier,
    Employee,
    EmploymentStatus,
    LeaveInterval,
    LeaveStatus,
    OperatingHours,
    RotationAssignment,
    ServiceArea,
    ShiftAssignment,
    ShiftRotation,
    ShiftTemplate,
    StaffingRequirement,
)
from rosterhelper.data.repository import InMemoryRepository
from rosterhelper.scheduling.state import AssignmentIntent
from rosterhelper.validation.validator import (
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

OFF_MARKER = "OFF"


class SnapshotError(Exception):
    """Raised when a snapshot contains malformed records."""

    def __init__(self, result: ValidationResult):
        self.result = result
        details = "; ".join(e.message for e in result.errors[:5])
        super().__init__(f"Invalid snapshot ({len(result.errors)} errors): {details}")

    @property
    def errors(self):
        return self.result.errors


def _json_dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)


def _json_load(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _optional_time(value: Optional[str]):
    if value in (None, ""):
        return None
    return parse_hhmm(value)


def _optional_int(value) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def _optional_float(value) -> Optional[float]:
    if value in (None, ""):
        return None
    return float(value)


def _parse_date(value: str) -> date:
    return date.fromisoformat(str(value))


def _employee(raw: dict) -> Employee:
    return Employee(
        id=str(raw["id"]),
        name=raw["name"],
        position=raw.get("position", ""),
        department=raw.get("department", ""),
        business_unit_id=raw.get("business_unit_id", ""),
        status=EmploymentStatus(str(raw.get("status", "active")).lower()),
        department_id=raw.get("department_id"),
    )


def _template(raw: dict) -> ShiftTemplate:
    return ShiftTemplate(
        id=str(raw["id"]),
        name=raw["name"],
        start_time=_optional_time(raw.get("start_time")),
        end_time=_optional_time(raw.get("end_time")),
        break_minutes=int(raw.get("break_minutes", 0)),
        grace_period_minutes=int(raw.get("grace_period_minutes", 0)),
        business_unit_id=raw.get("business_unit_id"),
        color=raw.get("color", "blue"),
        is_flexible=bool(raw.get("is_flexible", False)),
        min_hours_per_day=_optional_float(raw.get("min_hours_per_day")),
        min_days_per_week=_optional_int(raw.get("min_days_per_week")),
    )


def _area(raw: dict) -> ServiceArea:
    return ServiceArea(
        id=str(raw["id"]),
        business_unit_id=raw["business_unit_id"],
        name=raw["name"],
        capacity=_optional_int(raw.get("capacity")),
        description=raw.get("description", ""),
    )


def _requirement(raw: dict) -> StaffingRequirement:
    return StaffingRequirement(
        id=str(raw["id"]),
        area_id=raw["area_id"],
        role=raw["role"],
        day_type_tier=DayTypeTier.parse(raw["day_type_tier"]),
        min_count=int(raw["min_count"]),
        max_count=_optional_int(raw.get("max_count")),
        start_time=_optional_time(raw.get("start_time")),
        end_time=_optional_time(raw.get("end_time")),
    )


def _assignment(raw: dict) -> ShiftAssignment:
    return ShiftAssignment(
        id=str(raw["id"]),
        employee_id=raw["employee_id"],
        shift_template_id=raw["shift_template_id"],
        schedule_date=_parse_date(raw["schedule_date"]),
        business_unit_id=raw.get("business_unit_id"),
        department_id=raw.get("department_id"),
        assigned_area_id=raw.get("assigned_area_id"),
    )


def _leave(raw: dict) -> LeaveInterval:
    return LeaveInterval(
        id=raw.get("id"),
        employee_id=raw["employee_id"],
        start_date=_parse_date(raw["start_date"]),
        end_date=_parse_date(raw["end_date"]),
        status=LeaveStatus(str(raw.get("status", "approved")).lower()),
        leave_type=raw.get("leave_type", ""),
    )


def _operating_hours(raw: dict) -> OperatingHours:
    hours = {
        day: DayHours(open=parse_hhmm(span["open"]), close=parse_hhmm(span["close"]))
        for day, span in raw.get("hours", {}).items()
    }
    return OperatingHours(business_unit_id=raw["business_unit_id"], hours=hours)


def _rotation(raw: dict) -> ShiftRotation:
    sequence = [None if step == OFF_MARKER else step for step in raw["sequence"]]
    return ShiftRotation(
        id=str(raw["id"]),
        name=raw.get("name", raw["id"]),
        sequence=sequence,
        business_unit_id=raw.get("business_unit_id"),
    )


def _rotation_assignment(raw: dict) -> RotationAssignment:
    return RotationAssignment(
        employee_id=raw["employee_id"],
        rotation_id=raw["rotation_id"],
        start_date=_parse_date(raw["start_date"]),
    )


SECTIONS: dict[str, tuple[str, Callable[[dict], Any]]] = {
    "employees": ("employees", _employee),
    "shift_templates": ("templates", _template),
    "service_areas": ("areas", _area),
    "staffing_requirements": ("requirements", _requirement),
    "assignments": ("assignments", _assignment),
    "leaves": ("leaves", _leave),
    "operating_hours": ("operating_hours", _operating_hours),
    "rotations": ("rotations", _rotation),
    "rotation_assignments": ("rotation_assignments", _rotation_assignment),
}


def snapshot_from_dict(payload: dict) -> InMemoryRepository:
    """Parse a snapshot document into a repository.

    Raises:
        SnapshotError: If any record is malformed.
    """
    result = ValidationResult(is_valid=True)
    if not isinstance(payload, dict):
        result.add_error(
            ValidationError(
                error_type=ValidationErrorType.MALFORMED_RECORD,
                message=f"Snapshot must be a JSON object, got {type(payload).__name__}",
            )
        )
        raise SnapshotError(result)

    records: dict[str, list] = {}
    for section, (attr, parse) in SECTIONS.items():
        parsed = []
        raw_records = payload.get(section, [])
        if not isinstance(raw_records, list):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.MALFORMED_RECORD,
                    message=f"{section}: expected a list, got {type(raw_records).__name__}",
                    details={"section": section},
                )
            )
            raw_records = []
        for i, raw in enumerate(raw_records):
            try:
                parsed.append(parse(raw))
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MALFORMED_RECORD,
                        message=f"{section}[{i}]: {exc!r}",
                        details={"section": section, "index": i},
                    )
                )
        records[attr] = parsed

    if not result.is_valid:
        raise SnapshotError(result)
    return InMemoryRepository(**records)


def load_snapshot(path) -> InMemoryRepository:
    """Load a JSON snapshot file into a repository."""
    return snapshot_from_dict(_json_load(Path(path)))


def assignment_to_dict(assignment: ShiftAssignment) -> dict:
    return {
        "id": assignment.id,
        "employee_id": assignment.employee_id,
        "shift_template_id": assignment.shift_template_id,
        "schedule_date": assignment.schedule_date.isoformat(),
        "business_unit_id": assignment.business_unit_id,
        "department_id": assignment.department_id,
        "assigned_area_id": assignment.assigned_area_id,
        "source": assignment.source.value,
    }


def dump_intents(intents: list[AssignmentIntent], path) -> Path:
    """Write persistence intents to a JSON file."""
    target = Path(path)
    _json_dump(
        target,
        [{"kind": i.kind.value, "assignment": assignment_to_dict(i.assignment)} for i in intents],
    )
    return target

