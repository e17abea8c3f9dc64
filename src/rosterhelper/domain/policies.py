"""Policy definitions for staffing rules.

This module contains the pluggable rules that classify calendar days into
demand tiers and decide whether an employee's position satisfies a required
role. Policies are kept separate from the engine so that a business unit can
swap them without touching gap analysis or auto-assignment.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from rosterhelper.domain.models import DayTypeTier


class DayTypePolicy(ABC):
    """Abstract base class for day-type classification."""

    @abstractmethod
    def classify(self, day: date) -> DayTypeTier:
        """Get the demand tier of a calendar date."""
        pass


class RoleMatchPolicy(ABC):
    """Abstract base class for matching employee positions to required roles."""

    @abstractmethod
    def matches(self, position: str, required_role: str) -> bool:
        """Check if an employee holding `position` counts for `required_role`."""
        pass


def _default_weekday_tiers() -> dict[int, DayTypeTier]:
    return {
        0: DayTypeTier.OFF_PEAK,  # Mon
        1: DayTypeTier.OFF_PEAK,  # Tue
        2: DayTypeTier.OFF_PEAK,  # Wed
        3: DayTypeTier.OFF_PEAK,  # Thu
        4: DayTypeTier.PEAK,  # Fri
        5: DayTypeTier.SUPER_PEAK,  # Sat
        6: DayTypeTier.PEAK,  # Sun
    }


@dataclass
class WeekdayDayTypePolicy(DayTypePolicy):
    """Default day-type policy keyed on weekday.

    - Saturday: Super Peak
    - Friday and Sunday: Peak
    - Monday to Thursday: Off-Peak

    `tiers` maps weekday index (Monday=0) to tier and may be overridden per
    business unit.
    """

    tiers: dict[int, DayTypeTier] = field(default_factory=_default_weekday_tiers)

    def classify(self, day: date) -> DayTypeTier:
        return self.tiers.get(day.weekday(), DayTypeTier.OFF_PEAK)


@dataclass
class HolidayDayTypePolicy(DayTypePolicy):
    """Day-type policy with explicit per-date overrides.

    Dates in `holidays` get their listed tier; every other date falls
    through to `base`.

    Example:
        >>> policy = HolidayDayTypePolicy({date(2024, 12, 25): DayTypeTier.SUPER_PEAK})
        >>> policy.classify(date(2024, 12, 25))
        <DayTypeTier.SUPER_PEAK: 'Super Peak'>
    """

    holidays: dict[date, DayTypeTier] = field(default_factory=dict)
    base: Optional[DayTypePolicy] = None

    def __post_init__(self):
        if self.base is None:
            self.base = WeekdayDayTypePolicy()

    def classify(self, day: date) -> DayTypeTier:
        if day in self.holidays:
            return self.holidays[day]
        return self.base.classify(day)


@dataclass
class ExactRoleMatchPolicy(RoleMatchPolicy):
    """Default role matching: exact string equality.

    "Bartender" and "bartender" are different roles under this policy.
    """

    def matches(self, position: str, required_role: str) -> bool:
        return position == required_role


def normalize_role(role: Optional[str]) -> str:
    """Lower-case a role label and collapse its whitespace."""
    return " ".join(str(role or "").lower().split())


@dataclass
class NormalizedRoleMatchPolicy(RoleMatchPolicy):
    """Case and whitespace insensitive role matching with aliases.

    `aliases` maps an alternative spelling to its canonical role, both
    compared after normalization (e.g., {"bar staff": "bartender"}).
    """

    aliases: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.aliases = {
            normalize_role(alias): normalize_role(canonical)
            for alias, canonical in self.aliases.items()
        }

    def canonical(self, role: Optional[str]) -> str:
        key = normalize_role(role)
        return self.aliases.get(key, key)

    def matches(self, position: str, required_role: str) -> bool:
        position_key = self.canonical(position)
        return bool(position_key) and position_key == self.canonical(required_role)
