"""
Roster type definitions.

Contains the records that flow out of roster generation and into placement:
UnitStartingData, ClassCount, TeamComposition and CompositionResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Tuple

from engine.error_handler import CompositionError
from settings import DEFAULT_UNIT_NAME
from .power import total_power


@dataclass(frozen=True)
class UnitStartingData:
    """
    One unit ready to be spawned.

    - position:      world position (origin until placement assigns one)
    - team_id:       owning team (0 = free-for-all)
    - unit_class:    class name
    - unit_name:     display / character name
    - scale_factor:  strength multiplier, 1.0 = baseline
    """
    position: Tuple[float, float] = (0.0, 0.0)
    team_id: int = 0
    unit_class: str = ""
    unit_name: str = DEFAULT_UNIT_NAME
    scale_factor: float = 1.0

    def with_position(self, position) -> "UnitStartingData":
        return replace(self, position=(float(position[0]), float(position[1])))

    def with_team(self, team_id: int) -> "UnitStartingData":
        return replace(self, team_id=team_id)

    def with_name(self, unit_name: str) -> "UnitStartingData":
        return replace(self, unit_name=unit_name)


@dataclass
class ClassCount:
    """A class name and the units generated for it within one team."""
    class_name: str
    count: int = 0
    unit_data: List[UnitStartingData] = field(default_factory=list)

    def add(self, unit: UnitStartingData) -> None:
        self.unit_data.append(unit)
        self.count += 1

    @property
    def power(self) -> float:
        return total_power(u.scale_factor for u in self.unit_data)


@dataclass
class TeamComposition:
    """A team id plus its per-class unit groups (in first-seen order)."""
    team_id: int
    class_distribution: List[ClassCount] = field(default_factory=list)

    @property
    def total_units(self) -> int:
        return sum(cc.count for cc in self.class_distribution)

    @property
    def power(self) -> float:
        return sum(cc.power for cc in self.class_distribution)

    def all_units(self) -> List[UnitStartingData]:
        return [u for cc in self.class_distribution for u in cc.unit_data]

    def class_names(self) -> List[str]:
        return [cc.class_name for cc in self.class_distribution]

    def get(self, class_name: str):
        for cc in self.class_distribution:
            if cc.class_name == class_name:
                return cc
        return None

    def validate(self) -> None:
        """
        Check the composition invariants.

        Raises:
            CompositionError: if a count disagrees with its unit list or a
                unit carries a different team id
        """
        for cc in self.class_distribution:
            if cc.count != len(cc.unit_data):
                raise CompositionError(
                    f"ClassCount {cc.class_name!r} has count {cc.count} but {len(cc.unit_data)} units"
                )
            for unit in cc.unit_data:
                if unit.team_id != self.team_id:
                    raise CompositionError(
                        f"Unit {unit.unit_name!r} has team {unit.team_id}, expected {self.team_id}"
                    )

    @classmethod
    def group(cls, team_id: int, units: Iterable[UnitStartingData]) -> "TeamComposition":
        """Build a composition from a flat unit list, grouping by class name."""
        builder = CompositionBuilder(team_id)
        for unit in units:
            builder.add(unit.with_team(team_id))
        return builder.build()


class CompositionBuilder:
    """Accumulates units per class name, preserving first-seen order."""

    def __init__(self, team_id: int):
        self.team_id = team_id
        self._counts: Dict[str, ClassCount] = {}

    def add_unit(self, class_name: str, unit_name: str, scale_factor: float = 1.0) -> UnitStartingData:
        unit = UnitStartingData(
            team_id=self.team_id,
            unit_class=class_name,
            unit_name=unit_name,
            scale_factor=scale_factor,
        )
        self.add(unit)
        return unit

    def add(self, unit: UnitStartingData) -> None:
        if unit.unit_class not in self._counts:
            self._counts[unit.unit_class] = ClassCount(unit.unit_class)
        self._counts[unit.unit_class].add(unit)

    @property
    def total_units(self) -> int:
        return sum(cc.count for cc in self._counts.values())

    def build(self) -> TeamComposition:
        return TeamComposition(
            team_id=self.team_id,
            class_distribution=[cc for cc in self._counts.values() if cc.count > 0],
        )


@dataclass
class CompositionResult:
    """A generated composition plus the army name chosen for it."""
    composition: TeamComposition
    army_name: str = ""
