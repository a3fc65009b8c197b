"""
Survive reinforcements.

Small random waves of attackers that enter from one edge of the map while
a survive battle runs. The schedule only keeps time; the caller's loop
decides when to ask it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from engine.error_handler import get_logger
from roster.distributions import TeamClassDistribution, generate_random_only_composition
from roster.types import UnitStartingData
from telemetry.logger import telemetry
from .geometry import FormationArea, Facing
from .packer import generate_mini_formations

log = get_logger(__name__)

SPAWN_AREA_SIZE = 5.0
EDGES = ("right", "left", "top", "bottom")


def spawn_area_for_edge(edge: str, x_bound: float, y_bound: float, size: float = SPAWN_AREA_SIZE) -> FormationArea:
    """Square of side ``size`` against ``edge``, centred along it and kept inside the map."""
    width = min(size, 2 * x_bound)
    height = min(size, 2 * y_bound)

    if edge == "right":
        return FormationArea(x_bound - width, x_bound, -height / 2, height / 2)
    if edge == "left":
        return FormationArea(-x_bound, -x_bound + width, -height / 2, height / 2)
    if edge == "top":
        return FormationArea(-width / 2, width / 2, y_bound - height, y_bound)
    if edge == "bottom":
        return FormationArea(-width / 2, width / 2, -y_bound, -y_bound + height)
    raise ValueError(f"Unknown map edge: {edge}")


def spawn_reinforcement_wave(
    distribution: Optional[TeamClassDistribution],
    rng: random.Random,
    catalog,
    x_bound: float,
    y_bound: float,
    min_distance: float,
    team_id: int = 2,
    size_range: Tuple[int, int] = (2, 10),
    existing: Sequence = (),
) -> List[UnitStartingData]:
    """
    Roll and place one wave.

    Args:
        distribution: Authored team 2 distribution, or None for Knights
        rng: Seeded generator
        catalog: Character / class data
        x_bound: Map half width
        y_bound: Map half height
        min_distance: Minimum unit separation
        team_id: Team the reinforcements join
        size_range: Inclusive bounds on the wave size
        existing: Positions of units already on the map

    Returns:
        Positioned units of the wave
    """
    unit_count = rng.randint(size_range[0], size_range[1])
    composition = generate_random_only_composition(distribution, team_id, unit_count, rng, catalog)

    edge = EDGES[rng.randrange(len(EDGES))]
    area = spawn_area_for_edge(edge, x_bound, y_bound)
    units = generate_mini_formations(
        composition.all_units(), area, min_distance, Facing.LEFT, rng, catalog, existing=existing,
    )

    log.debug(f"Reinforcement wave of {len(units)} from the {edge} edge")
    telemetry.log("reinforcement_wave", team_id=team_id, edge=edge, units=len(units))
    return units


@dataclass
class ReinforcementSchedule:
    """
    Spawn timer for survive waves.

    Call ``due(now)`` from the battle loop; when it is true, spawn
    ``advance(now)`` waves.
    """

    interval: float = 5.0
    waves_per_tick: int = 2
    next_spawn_time: Optional[float] = None

    def start(self, now: float) -> None:
        self.next_spawn_time = now + self.interval

    def due(self, now: float) -> bool:
        if self.next_spawn_time is None:
            self.start(now)
            return False
        return now >= self.next_spawn_time

    def advance(self, now: float) -> int:
        """Reset the timer from ``now`` and return the number of waves to spawn."""
        self.next_spawn_time = now + self.interval
        return self.waves_per_tick
