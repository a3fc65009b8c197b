"""
Survive layout.

The survivors (team 1) hold a square in the middle of the map; the
attackers (team 2) surround them in rings, sectors, or a mix of rings and
scattered units. Attackers never stand inside the survivors' square.
"""

from __future__ import annotations

import math
import random
from typing import List, Sequence

from pygame.math import Vector2

from engine.error_handler import get_logger
from roster.types import TeamComposition, UnitStartingData
from .geometry import FormationArea, Facing, is_far_enough, to_vector
from .layouts import MINI_FORMATION_CHANCE, formation_for_single_team
from .packer import generate_mini_formations
from .shapes import RELAXED_SPACING, SCATTER_ATTEMPTS_PER_UNIT

log = get_logger(__name__)

RING_CHANCE = 0.4
SECTOR_CHANCE = 0.7
MAX_CENTER_RATIO = 0.4


def center_area_ratio(team1_count: int, x_bound: float, y_bound: float, min_distance: float) -> float:
    """Half-size of the survivors' square as a share of the shorter half extent."""
    ratio = 0.25
    if team1_count > 20:
        ratio += 0.05
    if team1_count > 40:
        ratio += 0.05
    if team1_count > 60:
        ratio += 0.1

    team_radius = math.sqrt(team1_count * min_distance * min_distance * 2 / math.pi)
    required = team_radius / min(x_bound, y_bound)
    # The survivors need room before the attackers get theirs
    return max(required, min(ratio, MAX_CENTER_RATIO))


def distribute_units_among_rings(total: int, rings: int, rng: random.Random) -> List[int]:
    base, remainder = divmod(total, rings)
    distribution = [base + (1 if i < remainder else 0) for i in range(rings)]
    for i in range(rings - 1):
        if distribution[i] > 1 and rng.random() < 0.3:
            distribution[i] -= 1
            distribution[i + 1] += 1
    return distribution


def distribute_units_among_sectors(total: int, sectors: int, rng: random.Random) -> List[int]:
    base, remainder = divmod(total, sectors)
    distribution = [base + (1 if i < remainder else 0) for i in range(sectors)]
    for i in range(sectors - 1):
        if distribution[i] > 1 and rng.random() < 0.4:
            transfer = rng.randint(1, min(2, distribution[i] - 1))
            distribution[i] -= transfer
            distribution[i + 1] += transfer
    return distribution


class OuterBand:
    """The map minus the survivors' square grown by ``min_distance``."""

    def __init__(self, center_radius: float, x_bound: float, y_bound: float, min_distance: float):
        self.bounds = FormationArea.from_bounds(x_bound, y_bound)
        self.min_distance = min_distance
        self.inner = center_radius + min_distance

        inner = self.inner
        candidates = [
            (-x_bound, -inner, -y_bound, y_bound),
            (inner, x_bound, -y_bound, y_bound),
            (-inner, inner, -y_bound, -inner),
            (-inner, inner, inner, y_bound),
        ]
        self.strips: List[FormationArea] = []
        for min_x, max_x, min_y, max_y in candidates:
            min_x, max_x = max(min_x, -x_bound), min(max_x, x_bound)
            if max_x > min_x and max_y > min_y:
                self.strips.append(FormationArea(min_x, max_x, min_y, max_y))
        if not self.strips:
            log.warning("Survivor area covers the map, attackers may stand anywhere")
            self.strips = [self.bounds]
            self.inner = 0.0

    def contains(self, point) -> bool:
        if not self.bounds.contains(point):
            return False
        return abs(point[0]) >= self.inner or abs(point[1]) >= self.inner

    def random_point(self, rng: random.Random) -> Vector2:
        weights = [s.width * s.height for s in self.strips]
        value = rng.random() * sum(weights)
        cumulative = 0.0
        for strip, weight in zip(self.strips, weights):
            cumulative += weight
            if value <= cumulative:
                return strip.random_point(rng)
        return self.strips[-1].random_point(rng)

    def scatter(self, count: int, rng: random.Random, existing: Sequence = ()) -> List[Vector2]:
        """Bounded dart throwing over the band; always returns ``count`` points."""
        others = [to_vector(p) for p in existing]
        placed: List[Vector2] = []
        for factor in (1.0, RELAXED_SPACING):
            spacing = self.min_distance * factor
            attempts = 0
            while len(placed) < count and attempts < SCATTER_ATTEMPTS_PER_UNIT * count:
                attempts += 1
                candidate = self.random_point(rng)
                if is_far_enough(candidate, others, spacing) and is_far_enough(candidate, placed, spacing):
                    placed.append(candidate)
        if len(placed) < count:
            log.warning(f"Outer band crowded, placing {count - len(placed)} attackers without spacing")
        while len(placed) < count:
            placed.append(self.random_point(rng))
        return placed

    def fix(self, points: List[Vector2], rng: random.Random, existing: Sequence = ()) -> List[Vector2]:
        """Re-place points that sit outside the band or too close to another point."""
        kept = [to_vector(p) for p in existing]
        bad = []
        for index, point in enumerate(points):
            if self.contains(point) and is_far_enough(point, kept, self.min_distance):
                kept.append(point)
            else:
                bad.append(index)
        if not bad:
            return points

        log.debug(f"Re-placing {len(bad)} of {len(points)} attackers")
        points = list(points)
        for index, replacement in zip(bad, self.scatter(len(bad), rng, existing=kept)):
            points[index] = replacement
        return points


def ring_positions(
    radius: float,
    count: int,
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """One jittered ring around the origin, widened when it cannot hold ``count``."""
    if count * min_distance > 2 * math.pi * radius:
        radius = count * min_distance / (2 * math.pi)

    bounds = FormationArea.from_bounds(x_bound, y_bound)
    positions = []
    for i in range(count):
        angle = i * 2 * math.pi / count + rng.uniform(-0.1, 0.1)
        r = radius + rng.uniform(-min_distance / 4, min_distance / 4)
        positions.append(bounds.clamp(Vector2(r * math.cos(angle), r * math.sin(angle)), min_distance))
    return positions


def _rings(count: int, center_radius: float, x_bound: float, y_bound: float, d: float, rng: random.Random) -> List[Vector2]:
    spacing = max(d * 2.5, 3.0)
    max_radius = min(x_bound, y_bound) * 0.9
    first = center_radius + spacing
    rings = max(1, int(math.floor((max_radius - first) / spacing)) + 1)

    positions: List[Vector2] = []
    for ring, in_ring in enumerate(distribute_units_among_rings(count, rings, rng)):
        if in_ring:
            positions += ring_positions(first + ring * spacing, in_ring, x_bound, y_bound, d, rng)
    return positions


def _sectors(count: int, center_radius: float, x_bound: float, y_bound: float, d: float, rng: random.Random) -> List[Vector2]:
    sectors = rng.randint(4, 8)
    width = 2 * math.pi / sectors
    inner = center_radius + d
    outer = max(min(x_bound, y_bound) - d, inner)
    bounds = FormationArea.from_bounds(x_bound, y_bound)

    positions: List[Vector2] = []
    for sector, in_sector in enumerate(distribute_units_among_sectors(count, sectors, rng)):
        for _ in range(in_sector):
            angle = rng.uniform(sector * width, (sector + 1) * width)
            radius = inner + rng.random() * (outer - inner)
            positions.append(bounds.clamp(Vector2(radius * math.cos(angle), radius * math.sin(angle)), d / 2))
    return positions


def _mixed(
    count: int,
    center_radius: float,
    x_bound: float,
    y_bound: float,
    d: float,
    rng: random.Random,
    band: OuterBand,
) -> List[Vector2]:
    on_rings = int(count * rng.uniform(0.4, 0.8))
    positions = _rings(on_rings, center_radius, x_bound, y_bound, d, rng) if on_rings else []
    return positions + band.scatter(count - on_rings, rng, existing=positions)


def survive_positions(
    compositions: Sequence[TeamComposition],
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    catalog,
    mini_formation_chance: float = MINI_FORMATION_CHANCE,
) -> List[UnitStartingData]:
    """
    Place the survivors in the centre and the attackers around them.

    Returns:
        Team 1 units followed by team 2 units
    """
    survivors, attackers = compositions[0], compositions[1]
    ratio = center_area_ratio(survivors.total_units, x_bound, y_bound, min_distance)
    center_radius = min(x_bound, y_bound) * ratio
    center = FormationArea(
        -min(center_radius, x_bound), min(center_radius, x_bound),
        -min(center_radius, y_bound), min(center_radius, y_bound),
    )

    if rng.random() < mini_formation_chance:
        placed = generate_mini_formations(
            survivors.all_units(), center, min_distance, Facing.RIGHT, rng, catalog,
        )
    else:
        placed = formation_for_single_team(
            survivors, center, min_distance, Facing.RIGHT, rng, catalog, mini_formation_chance,
        )

    units = attackers.all_units()
    if not units:
        return placed

    band = OuterBand(center_radius, x_bound, y_bound, min_distance)
    choice = rng.random()
    if choice < RING_CHANCE:
        strategy = "ring"
        points = _rings(len(units), center_radius, x_bound, y_bound, min_distance, rng)
    elif choice < SECTOR_CHANCE:
        strategy = "sector"
        points = _sectors(len(units), center_radius, x_bound, y_bound, min_distance, rng)
    else:
        strategy = "mixed"
        points = _mixed(len(units), center_radius, x_bound, y_bound, min_distance, rng, band)
    log.debug(f"Survive: {len(placed)} survivors in radius {center_radius:.2f}, {len(units)} attackers ({strategy})")

    points = band.fix(points, rng, existing=[to_vector(u.position) for u in placed])
    return placed + [unit.with_position(point) for unit, point in zip(units, points)]

