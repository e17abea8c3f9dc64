"""Tests for the staffing requirement index and its configuration checks."""

from datetime import time

import pytest

from rosterhelper.domain.models import DayTypeTier, ServiceArea, StaffingRequirement
from rosterhelper.domain.staffing import StaffingConfigError, StaffingIndex
from rosterhelper.validation.validator import ValidationErrorType


def create_areas() -> list[ServiceArea]:
    return [
        ServiceArea("area1", "bu1", "Reception", capacity=2),
        ServiceArea("area2", "bu1", "Bar", capacity=3),
        ServiceArea("area9", "bu2", "Terrace"),
    ]


class TestStaffingIndexLookup:
    """Tests for requirement lookup."""

    @pytest.fixture
    def index(self):
        """Index with requirements given out of area order."""
        requirements = [
            StaffingRequirement("r1", "area2", "Bartender", DayTypeTier.SUPER_PEAK, 2),
            StaffingRequirement("r2", "area1", "Host", DayTypeTier.SUPER_PEAK, 1),
            StaffingRequirement("r3", "area2", "Barback", DayTypeTier.SUPER_PEAK, 1),
            StaffingRequirement("r4", "area2", "Bartender", DayTypeTier.OFF_PEAK, 1),
            StaffingRequirement("r5", "area9", "Server", DayTypeTier.SUPER_PEAK, 4),
        ]
        return StaffingIndex.build(create_areas(), requirements)

    def test_requirements_for_area_and_tier(self, index):
        reqs = index.requirements_for("area2", DayTypeTier.SUPER_PEAK)
        assert [r.id for r in reqs] == ["r1", "r3"]

    def test_missing_key_is_empty(self, index):
        assert index.requirements_for("area1", DayTypeTier.PEAK) == []

    def test_business_unit_lookup_in_area_order(self, index):
        reqs = index.requirements_for_business_unit("bu1", DayTypeTier.SUPER_PEAK)
        assert [r.id for r in reqs] == ["r2", "r1", "r3"]

    def test_business_unit_lookup_all_tiers(self, index):
        reqs = index.requirements_for_business_unit("bu1")
        assert {r.id for r in reqs} == {"r1", "r2", "r3", "r4"}

    def test_has_requirements(self, index):
        assert index.has_requirements("bu1")
        assert not index.has_requirements("bu3")

    def test_roles_for_business_unit(self, index):
        assert index.roles_for_business_unit("bu1") == ["Host", "Bartender", "Barback"]

    def test_role_to_area(self, index):
        mapping = index.role_to_area("bu1")
        assert mapping["Host"].name == "Reception"
        assert mapping["Bartender"].name == "Bar"
        assert "Server" not in mapping


class TestStaffingConfigValidation:
    """Tests for rejected configurations."""

    def test_unknown_area(self):
        reqs = [StaffingRequirement("r1", "nowhere", "Host", DayTypeTier.PEAK, 1)]
        with pytest.raises(StaffingConfigError) as exc_info:
            StaffingIndex.build(create_areas(), reqs)
        assert exc_info.value.errors[0].error_type == ValidationErrorType.UNKNOWN_AREA

    def test_negative_min_count(self):
        reqs = [StaffingRequirement("r1", "area1", "Host", DayTypeTier.PEAK, -1)]
        result = StaffingIndex.validate(create_areas(), reqs)
        assert not result.is_valid
        assert result.errors[0].error_type == ValidationErrorType.NEGATIVE_MIN_COUNT

    def test_max_below_min(self):
        reqs = [StaffingRequirement("r1", "area1", "Host", DayTypeTier.PEAK, 3, max_count=2)]
        result = StaffingIndex.validate(create_areas(), reqs)
        assert result.errors[0].error_type == ValidationErrorType.INVALID_MAX_COUNT

    def test_half_open_window(self):
        reqs = [
            StaffingRequirement("r1", "area1", "Host", DayTypeTier.PEAK, 1, start_time=time(17, 0)),
        ]
        result = StaffingIndex.validate(create_areas(), reqs)
        assert result.errors[0].error_type == ValidationErrorType.MALFORMED_TIME_WINDOW

    def test_empty_window(self):
        reqs = [
            StaffingRequirement(
                "r1", "area1", "Host", DayTypeTier.PEAK, 1,
                start_time=time(17, 0), end_time=time(17, 0),
            ),
        ]
        result = StaffingIndex.validate(create_areas(), reqs)
        assert result.errors[0].error_type == ValidationErrorType.MALFORMED_TIME_WINDOW

    def test_wrapping_window_is_valid(self):
        reqs = [
            StaffingRequirement(
                "r1", "area2", "Bartender", DayTypeTier.PEAK, 1,
                start_time=time(17, 0), end_time=time(2, 0),
            ),
        ]
        assert StaffingIndex.validate(create_areas(), reqs).is_valid

    def test_unknown_role_when_roles_known(self):
        reqs = [StaffingRequirement("r1", "area1", "Hostess", DayTypeTier.PEAK, 1)]
        result = StaffingIndex.validate(create_areas(), reqs, known_roles={"Host", "Bartender"})
        assert result.errors[0].error_type == ValidationErrorType.UNKNOWN_ROLE

        assert StaffingIndex.validate(create_areas(), reqs).is_valid

    def test_duplicate_area(self):
        areas = create_areas() + [ServiceArea("area1", "bu1", "Lobby")]
        result = StaffingIndex.validate(areas, [])
        assert result.errors[0].error_type == ValidationErrorType.DUPLICATE_AREA

    def test_duplicate_requirement_is_warning_only(self):
        reqs = [
            StaffingRequirement("r1", "area1", "Host", DayTypeTier.PEAK, 1),
            StaffingRequirement("r2", "area1", "Host", DayTypeTier.PEAK, 2),
        ]
        result = StaffingIndex.validate(create_areas(), reqs)
        assert result.is_valid
        assert len(result.warnings) == 1

        # Both requirements stay in the index
        index = StaffingIndex.build(create_areas(), reqs)
        assert len(index.requirements_for("area1", DayTypeTier.PEAK)) == 2

    def test_all_errors_reported(self):
        reqs = [
            StaffingRequirement("r1", "nowhere", "Host", DayTypeTier.PEAK, -2),
            StaffingRequirement("r2", "area1", "Host", DayTypeTier.OFF_PEAK, 1, end_time=time(9, 0)),
        ]
        with pytest.raises(StaffingConfigError) as exc_info:
            StaffingIndex.build(create_areas(), reqs)
        assert len(exc_info.value.errors) == 3

    def test_constructor_validates(self):
        reqs = [StaffingRequirement("r1", "nowhere", "Bartender", DayTypeTier.SUPER_PEAK, -3)]

        with pytest.raises(StaffingConfigError) as exc_info:
            StaffingIndex([], reqs)

        types = {e.error_type for e in exc_info.value.errors}
        assert types == {ValidationErrorType.UNKNOWN_AREA, ValidationErrorType.NEGATIVE_MIN_COUNT}

    def test_warnings_kept_on_index(self):
        reqs = [
            StaffingRequirement("r1", "area1", "Host", DayTypeTier.PEAK, 1),
            StaffingRequirement("r2", "area1", "Host", DayTypeTier.PEAK, 2),
        ]
        index = StaffingIndex(create_areas(), reqs)
        assert len(index.validation.warnings) == 1
