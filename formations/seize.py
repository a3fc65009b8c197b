"""
Seize layout.

The attackers (team 1) hold the left half. The defenders (team 2) hold the
right half with their boss standing on the capture point, ringed by
guards; some defenders may instead form mini formations elsewhere on
their side.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Sequence

from pygame.math import Vector2

from engine.error_handler import get_logger
from roster.types import TeamComposition, UnitStartingData
from settings import BOSS_SCALE_THRESHOLD
from .geometry import FormationArea, Facing, to_vector
from .layouts import MINI_FORMATION_CHANCE, formation_for_single_team
from .packer import generate_mini_formations
from .shapes import enforce_separation, scatter_fill

log = get_logger(__name__)

RING_START = 2.0
RING_STEP = 1.5
DEFENSE_RADIUS_RATIO = 0.4
MIXED_DEFENSE_CHANCE = 0.5


def default_capture_point(x_bound: float, y_bound: float, min_distance: float, rng: random.Random) -> Vector2:
    """Random point on the defenders' side, kept ``min_distance`` off the map edge."""
    point = Vector2(x_bound * rng.uniform(0.5, 1.0), rng.uniform(-y_bound * 0.8, y_bound * 0.8))
    return FormationArea.from_bounds(x_bound, y_bound).clamp(point, min_distance)


def defensive_ring_positions(
    count: int,
    center,
    max_radius: float,
    min_distance: float,
    bounds: FormationArea,
    rng: random.Random,
) -> List[Vector2]:
    """
    Concentric rings around ``center``.

    Rings start at 2d and step out by 1.5d, each holding as many units as
    its circumference allows. Units left over once ``max_radius`` is
    reached are scattered around the centre.
    """
    center = to_vector(center)
    positions: List[Vector2] = []
    radius = min_distance * RING_START

    while len(positions) < count and radius <= max_radius:
        in_ring = min(int(math.floor(2 * math.pi * radius / min_distance)), count - len(positions))
        for i in range(in_ring):
            angle = i * 2 * math.pi / in_ring
            point = center + Vector2(radius * math.cos(angle), radius * math.sin(angle))
            positions.append(bounds.clamp(point, min_distance / 2))
        radius += min_distance * RING_STEP

    if len(positions) < count:
        reach = max(max_radius, min_distance * RING_START) + min_distance * 2
        around = _intersect(
            FormationArea(center.x - reach, center.x + reach, center.y - reach, center.y + reach),
            bounds,
        ) or bounds
        log.debug(f"Defensive rings full, scattering {count - len(positions)} guards")
        positions.extend(scatter_fill(count - len(positions), around, min_distance, rng, existing=positions + [center]))
    return positions


def _intersect(a: FormationArea, b: FormationArea) -> Optional[FormationArea]:
    min_x, max_x = max(a.min_x, b.min_x), min(a.max_x, b.max_x)
    min_y, max_y = max(a.min_y, b.min_y), min(a.max_y, b.max_y)
    if max_x <= min_x or max_y <= min_y:
        return None
    return FormationArea(min_x, max_x, min_y, max_y)


def _footprint(points: Sequence[Vector2], half: FormationArea, min_distance: float) -> FormationArea:
    """Bounding box of the ring guards, padded by half a unit spacing and kept inside ``half``."""
    pad = min_distance / 2
    box = FormationArea(
        min(p.x for p in points) - pad, max(p.x for p in points) + pad,
        min(p.y for p in points) - pad, max(p.y for p in points) + pad,
    )
    return _intersect(box, half) or half


def _defenders(
    units: List[UnitStartingData],
    capture_point: Vector2,
    half: FormationArea,
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    occupied: List[Vector2],
) -> List[UnitStartingData]:
    max_radius = min(x_bound, y_bound) * DEFENSE_RADIUS_RATIO
    points = defensive_ring_positions(len(units), capture_point, max_radius, min_distance, half, rng)
    # Clamping at the map edge can fold a ring onto itself
    points = enforce_separation(points, half, min_distance, rng, existing=occupied)
    return [unit.with_position(point) for unit, point in zip(units, points)]


def seize_positions(
    compositions: Sequence[TeamComposition],
    capture_point,
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    catalog,
    mini_formation_chance: float = MINI_FORMATION_CHANCE,
) -> List[UnitStartingData]:
    """
    Place both seize teams.

    Args:
        compositions: (attackers, defenders)
        capture_point: Objective the defenders' boss stands on
        x_bound: Map half width
        y_bound: Map half height
        min_distance: Minimum unit separation
        rng: Seeded generator
        catalog: Used to split melee from ranged

    Returns:
        Team 1 units, then the boss, then the other defenders
    """
    attackers, defenders = compositions[0], compositions[1]
    capture_point = to_vector(capture_point)
    left = FormationArea(-x_bound, -min_distance / 2, -y_bound, y_bound)
    right = FormationArea(min_distance / 2, x_bound, -y_bound, y_bound)

    placed = formation_for_single_team(
        attackers, left, min_distance, Facing.RIGHT, rng, catalog, mini_formation_chance,
    )

    boss: Optional[UnitStartingData] = None
    regular: List[UnitStartingData] = []
    for unit in defenders.all_units():
        if boss is None and unit.scale_factor >= BOSS_SCALE_THRESHOLD:
            boss = unit.with_position(capture_point)
        else:
            regular.append(unit)

    occupied: List[Vector2] = []
    if boss is not None:
        placed.append(boss)
        occupied.append(capture_point)
    if not regular:
        return placed

    if rng.random() < MIXED_DEFENSE_CHANCE:
        share = rng.uniform(0.3, 0.7)
        ring_count = int(math.floor(len(regular) * share + 0.5))
        guards, others = regular[:ring_count], regular[ring_count:]
        log.debug(f"Seize defence: {len(guards)} on rings, {len(others)} in mini formations")

        if guards:
            guards = _defenders(guards, capture_point, right, x_bound, y_bound, min_distance, rng, occupied)
            placed += guards
            occupied += [to_vector(u.position) for u in guards]
        if others:
            # The rest of the half stays open; only the rings' footprint is taken
            taken = [_footprint(occupied, right, min_distance)] if occupied else []
            placed += generate_mini_formations(
                others, right, min_distance, Facing.LEFT, rng, catalog, existing=occupied, reserved=taken,
            )
    else:
        placed += _defenders(regular, capture_point, right, x_bound, y_bound, min_distance, rng, occupied)
    return placed
