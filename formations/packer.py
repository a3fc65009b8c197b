"""
Mini-formation packer.

Breaks a team into small groups and lays each group out as a mini shape in
its own non-overlapping sub-rectangle of the team area.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Sequence, Tuple

from engine.error_handler import get_logger
from roster.types import UnitStartingData
from telemetry.logger import telemetry
from .geometry import FormationArea, Facing, Role, role_of, to_vector
from .mini_shapes import choose_shape, order_units, shape_positions
from .shapes import generate_team_positions, enforce_separation

log = get_logger(__name__)

MAX_AREA_ATTEMPTS = 50
MAX_GROUP_SIZE = 8
UNIT_TYPE_SHIFT = 0.2


def find_empty_area(
    used: Sequence[FormationArea],
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
    lean: int = 0,
    attempts: int = MAX_AREA_ATTEMPTS,
    count: int = 1,
) -> Optional[FormationArea]:
    """
    Random sub-rectangle of ``area`` that keeps clear of every used one.

    Args:
        used: Rectangles already holding a formation
        area: Team area
        min_distance: Minimum unit separation; also the gap between rectangles
        rng: Seeded generator
        lean: +1 to push toward +x, -1 toward -x, 0 to leave in place
        attempts: Candidate rectangles to try
        count: Units the rectangle must hold at full spacing

    Returns:
        A free rectangle, or None when the area is full
    """
    # A k x k block at spacing d plus a margin on each side
    min_size = max(min_distance * 2, min_distance * (math.ceil(math.sqrt(count)) + 1))
    max_w = max(area.width * 0.4, min_size)
    max_h = max(area.height * 0.4, min_size)
    if min_size > area.width or min_size > area.height:
        return None

    for _ in range(attempts):
        width = rng.uniform(min_size, max_w)
        height = rng.uniform(min_size, max_h)
        min_x = rng.uniform(area.min_x, area.max_x - width)
        min_y = rng.uniform(area.min_y, area.max_y - height)

        if lean:
            shift = lean * width * UNIT_TYPE_SHIFT
            min_x = min(max(min_x + shift, area.min_x), area.max_x - width)

        candidate = FormationArea(min_x, min_x + width, min_y, min_y + height)
        if not any(candidate.overlaps(other, min_distance) for other in used):
            return candidate
    return None


def _lean(melee: int, ranged: int, facing: Facing) -> int:
    """Melee-heavy groups step toward the enemy, ranged-heavy ones away from it."""
    if melee == ranged:
        return 0
    forward = 1 if facing.faces_right else -1
    return forward if melee > ranged else -forward


def select_units_for_formation(
    melee: List[UnitStartingData],
    ranged: List[UnitStartingData],
    size: int,
    rng: random.Random,
) -> Tuple[List[UnitStartingData], List[UnitStartingData], List[UnitStartingData]]:
    """
    Pick ``size`` units, preferring a whole role group.

    Returns:
        (selected, melee_left, ranged_left); the input lists are not modified
    """
    groups = [list(melee), list(ranged)]
    non_empty = [g for g in groups if g]
    selected: List[UnitStartingData] = []

    if non_empty:
        group = non_empty[rng.randrange(len(non_empty))]
        if len(group) <= size:
            selected.extend(group)
            del group[:]
        else:
            for _ in range(size):
                selected.append(group.pop(rng.randrange(len(group))))
            return selected, groups[0], groups[1]

    while len(selected) < size:
        non_empty = [g for g in groups if g]
        if not non_empty:
            break
        group = non_empty[rng.randrange(len(non_empty))]
        selected.append(group.pop(rng.randrange(len(group))))

    return selected, groups[0], groups[1]


def generate_mini_formations(
    units: Sequence[UnitStartingData],
    area: FormationArea,
    min_distance: float,
    facing: Facing,
    rng: random.Random,
    catalog,
    existing: Sequence = (),
    max_group_size: int = MAX_GROUP_SIZE,
    max_area_attempts: int = MAX_AREA_ATTEMPTS,
    reserved: Sequence[FormationArea] = (),
) -> List[UnitStartingData]:
    """
    Place ``units`` as a set of small shapes inside ``area``.

    Every unit comes back exactly once with a position inside ``area`` and
    at least ``min_distance`` from every other placed unit (and from any
    ``existing`` points). Units the packer cannot fit into shapes are laid
    out with ``generate_team_positions`` and then moved off any conflicts.

    Args:
        units: Units to place (team ids are kept)
        area: Team area
        min_distance: Minimum unit separation
        facing: Which way the team faces
        rng: Seeded generator
        catalog: Used to split melee from ranged
        existing: Points outside this team that must be kept clear of
        reserved: Rectangles already taken by other formations; sub-areas keep
            ``min_distance`` clear of them

    Returns:
        Positioned units, group by group
    """
    melee, ranged = [], []
    for unit in units:
        if role_of(unit, catalog) == Role.RANGED:
            ranged.append(unit)
        else:
            melee.append(unit)

    placed: List[UnitStartingData] = []
    used: List[FormationArea] = list(reserved)
    occupied = [to_vector(p) for p in existing]

    while melee or ranged:
        remaining = len(melee) + len(ranged)
        size = min(remaining, rng.randint(1, max_group_size))
        selected, melee_left, ranged_left = select_units_for_formation(melee, ranged, size, rng)

        group_melee = [u for u in selected if role_of(u, catalog) == Role.MELEE]
        group_ranged = [u for u in selected if role_of(u, catalog) == Role.RANGED]

        sub_area = find_empty_area(
            used, area, min_distance, rng,
            lean=_lean(len(group_melee), len(group_ranged), facing),
            attempts=max_area_attempts,
            count=len(selected),
        )
        if sub_area is None:
            break

        shape = choose_shape(len(group_melee), len(group_ranged), rng)
        points = shape_positions(shape, len(selected), sub_area, min_distance, facing, rng)
        # Crowded sub-areas may come back with relaxed spacing; repair against the whole team area
        points = enforce_separation(points, area, min_distance, rng, existing=occupied)
        ordered = order_units(shape, group_melee, group_ranged, facing)

        for unit, point in zip(ordered, points):
            placed.append(unit.with_position(point))
            occupied.append(point)
        used.append(sub_area)
        melee, ranged = melee_left, ranged_left

    leftover = melee + ranged
    if leftover:
        log.debug(f"Mini formations out of space, {len(leftover)} of {len(units)} units placed as a block")
        telemetry.log("formation_fallback", reason="packer_out_of_space", count=len(leftover))
        points = generate_team_positions(len(leftover), area, min_distance, rng)
        points = enforce_separation(points, area, min_distance, rng, existing=occupied)
        for unit, point in zip(leftover, points):
            placed.append(unit.with_position(point))

    return placed

