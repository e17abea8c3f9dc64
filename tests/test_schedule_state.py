"""Tests for the in-memory schedule state."""

from datetime import date
from itertools import count

import pytest

from rosterhelper.domain.models import (
    AssignmentSource,
    LeaveInterval,
    LeaveStatus,
    ShiftAssignment,
    WeekKey,
)
from rosterhelper.scheduling.state import IntentKind, ScheduleState


@pytest.fixture
def base_date():
    """Monday."""
    return date(2024, 1, 15)


@pytest.fixture
def state():
    """Empty state with predictable ids."""
    ids = count(1)
    return ScheduleState(business_unit_id="bu1", id_factory=lambda: f"id{next(ids)}")


class TestUpsert:
    """Tests for the single mutation path."""

    def test_create(self, state, base_date):
        assignment = state.upsert_assignment("e1", base_date, "st1", "area1")

        assert assignment.id == "id1"
        assert assignment.business_unit_id == "bu1"
        assert state.assignment_for("e1", base_date) == assignment
        assert state.assignments_on(base_date) == [assignment]

    def test_upsert_same_slot_replaces_in_place(self, state, base_date):
        first = state.upsert_assignment("e1", base_date, "st1")
        second = state.upsert_assignment("e1", base_date, "st2", "area2")

        assert second.id == first.id
        assert second.shift_template_id == "st2"
        assert second.assigned_area_id == "area2"
        assert len(state.assignments_on(base_date)) == 1

    def test_one_assignment_per_employee_per_date(self, state, base_date):
        for template_id in ("st1", "st2", "st3", "st1"):
            state.upsert_assignment("e1", base_date, template_id)
        state.upsert_assignment("e2", base_date, "st1")

        slots = [(a.employee_id, a.schedule_date) for a in state.all_assignments()]
        assert len(slots) == len(set(slots)) == 2

    def test_intents_queued(self, state, base_date):
        state.upsert_assignment("e1", base_date, "st1")
        state.upsert_assignment("e1", base_date, "st2")

        intents = state.drain_intents()
        assert [i.kind for i in intents] == [IntentKind.CREATE, IntentKind.UPDATE]
        assert state.drain_intents() == []


class TestDelete:
    """Tests for deleting assignments."""

    def test_delete(self, state, base_date):
        assignment = state.upsert_assignment("e1", base_date, "st1")
        result = state.delete_assignment(assignment.id)

        assert result.deleted
        assert state.assignment_for("e1", base_date) is None
        assert state.drain_intents()[-1].kind == IntentKind.DELETE

    def test_delete_unknown_is_noop(self, state):
        result = state.delete_assignment("missing")

        assert not result.deleted
        assert "not found" in result.reason
        assert state.drain_intents() == []

    def test_delete_employee_week(self, state, base_date):
        for offset in range(3):
            state.upsert_assignment("e1", date(2024, 1, 15 + offset), "st1")
        state.upsert_assignment("e1", date(2024, 1, 22), "st1")
        state.upsert_assignment("e2", base_date, "st1")

        deleted = state.delete_employee_week("e1", base_date)

        assert len(deleted) == 3
        assert state.assignment_for("e1", date(2024, 1, 22)) is not None
        assert state.assignment_for("e2", base_date) is not None


class TestUpsertDeleteScenario:
    """Place, replace and delete a shift on the same slot."""

    def test_scenario(self, state):
        saturday = date(2024, 1, 20)
        events = []
        state.add_listener(events.append)

        first = state.upsert_assignment("E", saturday, "T1")
        second = state.upsert_assignment("E", saturday, "T2")
        assert second.id == first.id
        assert state.assignment_for("E", saturday).shift_template_id == "T2"

        state.delete_assignment(first.id)
        assert state.assignment_for("E", saturday) is None

        # Every mutation dirtied the same week
        assert events == [WeekKey("bu1", date(2024, 1, 15))] * 3


class TestProvisional:
    """Tests for carry-over suggestions held in the state."""

    def test_provisional_is_silent(self, state, base_date):
        events = []
        state.add_listener(events.append)

        state.upsert_assignment("e1", base_date, "st1", provisional=True)

        assert events == []
        assert state.drain_intents() == []
        assert state.assignments_on(base_date) == []
        assert len(state.assignments_on(base_date, include_provisional=True)) == 1

    def test_provisional_does_not_overwrite_committed(self, state, base_date):
        committed = state.upsert_assignment("e1", base_date, "st1")
        result = state.upsert_assignment("e1", base_date, "st2", provisional=True)

        assert result == committed
        assert state.assignment_for("e1", base_date).shift_template_id == "st1"

    def test_commit_provisional(self, state, base_date):
        suggestion = state.upsert_assignment(
            "e1", base_date, "st1", provisional=True, source=AssignmentSource.CARRY_OVER
        )
        committed = state.commit_provisional(suggestion.id)

        assert committed.id == suggestion.id
        assert not committed.provisional
        assert committed.source == AssignmentSource.CARRY_OVER
        assert [i.kind for i in state.drain_intents()] == [IntentKind.CREATE]

    def test_manual_placement_commits_suggestion(self, state, base_date):
        suggestion = state.upsert_assignment("e1", base_date, "st1", provisional=True)
        placed = state.upsert_assignment("e1", base_date, "st2")

        assert placed.id == suggestion.id
        assert not placed.provisional
        assert placed.source == AssignmentSource.MANUAL

    def test_discard(self, state, base_date):
        suggestion = state.upsert_assignment("e1", base_date, "st1", provisional=True)
        committed = state.upsert_assignment("e2", base_date, "st1")

        assert state.discard_provisional(suggestion.id)
        assert not state.discard_provisional(committed.id)
        assert state.assignment_for("e1", base_date) is None
        assert state.drain_intents()[-1].kind == IntentKind.CREATE


class TestLeave:
    """Tests for leave lookups."""

    def test_only_approved_leave_covers(self, base_date):
        state = ScheduleState(
            leaves=[
                LeaveInterval("e1", base_date, base_date, status=LeaveStatus.PENDING),
                LeaveInterval("e2", base_date, date(2024, 1, 17), id="lv2"),
            ]
        )

        assert state.leaves_covering("e1", base_date) is None
        assert state.leaves_covering("e2", date(2024, 1, 17)).id == "lv2"
        assert state.leaves_covering("e2", date(2024, 1, 18)) is None

    def test_add_leave(self, state, base_date):
        state.add_leave(LeaveInterval("e1", base_date, base_date))
        assert state.is_on_leave("e1", base_date)


class TestFromRecords:
    """Tests for loading existing assignments."""

    def test_load_does_not_dirty(self, base_date):
        records = [ShiftAssignment("a1", "e1", "st1", base_date, business_unit_id="bu1")]
        state = ScheduleState.from_records(records)

        assert state.get("a1") is not None
        assert state.drain_intents() == []

    def test_duplicate_slot_rejected(self, base_date):
        records = [
            ShiftAssignment("a1", "e1", "st1", base_date),
            ShiftAssignment("a2", "e1", "st2", base_date),
        ]
        with pytest.raises(ValueError):
            ScheduleState.from_records(records)

    def test_business_unit_filter(self, base_date):
        records = [
            ShiftAssignment("a1", "e1", "st1", base_date, business_unit_id="bu1"),
            ShiftAssignment("a2", "e2", "st1", base_date, business_unit_id="bu2"),
        ]
        state = ScheduleState.from_records(records)

        assert [a.id for a in state.assignments_on(base_date, "bu2")] == ["a2"]
        assert len(state.assignments_in_week(base_date)) == 2
