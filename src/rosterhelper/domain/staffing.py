"""Staffing requirement index.

Requirements are looked up by (area, day-type tier) during gap analysis.
The index is built once from validated configuration and is read-only
afterwards.
"""

from collections.abc import Iterable
from typing import Optional

from rosterhelper.domain.models import DayTypeTier, ServiceArea, StaffingRequirement
from rosterhelper.validation.validator import StaffingConfigValidator, ValidationResult


class StaffingConfigError(Exception):
    """Raised when staffing configuration fails validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        details = "; ".join(str(e) for e in result.errors[:5])
        super().__init__(f"Invalid staffing configuration ({len(result.errors)} errors): {details}")

    @property
    def errors(self):
        return self.result.errors


class StaffingIndex:
    """Lookup of staffing requirements by area and day-type tier.

    Areas keep the order they were given in, and requirements keep their
    order within an area, so lookups are deterministic.

    Example:
        >>> index = StaffingIndex.build(areas, requirements)
        >>> index.requirements_for("area2", DayTypeTier.SUPER_PEAK)
    """

    def __init__(
        self,
        areas: Iterable[ServiceArea],
        requirements: Iterable[StaffingRequirement],
        known_roles: Optional[set[str]] = None,
    ):
        areas = list(areas)
        requirements = list(requirements)
        self.validation = StaffingConfigValidator().validate(areas, requirements, known_roles)
        if not self.validation.is_valid:
            raise StaffingConfigError(self.validation)

        self._areas: dict[str, ServiceArea] = {a.id: a for a in areas}
        self._area_order: dict[str, int] = {a.id: i for i, a in enumerate(areas)}
        self._by_area_tier: dict[tuple[str, DayTypeTier], list[StaffingRequirement]] = {}
        for req in requirements:
            self._by_area_tier.setdefault((req.area_id, req.day_type_tier), []).append(req)
        self._requirements = list(requirements)

    @classmethod
    def validate(
        cls,
        areas: Iterable[ServiceArea],
        requirements: Iterable[StaffingRequirement],
        known_roles: Optional[set[str]] = None,
    ) -> ValidationResult:
        """Inspect configuration without raising."""
        return StaffingConfigValidator().validate(areas, requirements, known_roles)

    @classmethod
    def build(
        cls,
        areas: Iterable[ServiceArea],
        requirements: Iterable[StaffingRequirement],
        known_roles: Optional[set[str]] = None,
    ) -> "StaffingIndex":
        """Validate configuration and build the index.

        Construction always validates, so an index never holds an invalid
        configuration. Warnings stay available on `index.validation`.

        Raises:
            StaffingConfigError: If any configuration error is found.
        """
        return cls(areas, requirements, known_roles)

    def area(self, area_id: str) -> Optional[ServiceArea]:
        return self._areas.get(area_id)

    def areas_for_business_unit(self, business_unit_id: str) -> list[ServiceArea]:
        return [a for a in self._areas.values() if a.business_unit_id == business_unit_id]

    def requirements_for(self, area_id: str, day_type: DayTypeTier) -> list[StaffingRequirement]:
        """Requirements of one area on one tier of day."""
        return list(self._by_area_tier.get((area_id, day_type), []))

    def requirements_for_business_unit(
        self,
        business_unit_id: str,
        day_type: Optional[DayTypeTier] = None,
    ) -> list[StaffingRequirement]:
        """Requirements of every area of a business unit, in area order.

        Args:
            business_unit_id: Business unit to look up.
            day_type: Restrict to one tier. None returns all tiers.
        """
        result = []
        for area in self.areas_for_business_unit(business_unit_id):
            for req in self._requirements:
                if req.area_id != area.id:
                    continue
                if day_type is not None and req.day_type_tier != day_type:
                    continue
                result.append(req)
        return result

    def has_requirements(self, business_unit_id: str) -> bool:
        return bool(self.requirements_for_business_unit(business_unit_id))

    def roles_for_business_unit(self, business_unit_id: str) -> list[str]:
        roles: list[str] = []
        for req in self.requirements_for_business_unit(business_unit_id):
            if req.role not in roles:
                roles.append(req.role)
        return roles

    def role_to_area(self, business_unit_id: str) -> dict[str, ServiceArea]:
        """Implicit role -> area mapping of a business unit.

        A role staffed in several areas maps to the area of its last
        requirement.
        """
        mapping: dict[str, ServiceArea] = {}
        for req in self.requirements_for_business_unit(business_unit_id):
            mapping[req.role] = self._areas[req.area_id]
        return mapping
