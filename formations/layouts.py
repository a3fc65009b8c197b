"""
Whole-team layouts.

Single-team formations (mini formations or a class-based front/back
layout), the two-team split used by the default battle, and the
free-for-all battle royale spread.
"""

from __future__ import annotations

import math
import random
from typing import List, Sequence, Tuple

from pygame.math import Vector2

from engine.error_handler import get_logger
from roster.types import TeamComposition, UnitStartingData
from .geometry import FormationArea, Facing, split_by_role, to_vector
from .packer import generate_mini_formations
from .shapes import (
    circular_positions,
    distributed_grid_positions,
    enforce_separation,
    generate_team_positions,
    poisson_disc_positions,
)

log = get_logger(__name__)

MINI_FORMATION_CHANCE = 0.75
BATTLE_ROYALE_CIRCLE_LIMIT = 16
BASE_TEAM_GAP = 3.0


# --- helpers ----------------------------------------------------------------

def _assign(units: Sequence[UnitStartingData], points: Sequence[Vector2]) -> List[UnitStartingData]:
    return [unit.with_position(point) for unit, point in zip(units, points)]


def separate_units(
    units: List[UnitStartingData],
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
    existing: Sequence = (),
) -> List[UnitStartingData]:
    """Re-place any unit that sits too close to another (or outside ``area``)."""
    points = enforce_separation([to_vector(u.position) for u in units], area, min_distance, rng, existing)
    return _assign(units, points)


def split_front_back(area: FormationArea, melee_ratio: float, facing: Facing) -> Tuple[FormationArea, FormationArea]:
    """
    (melee_area, ranged_area): melee takes ``melee_ratio`` of the width on
    the side the team faces, ranged stands behind.
    """
    melee_width = area.width * melee_ratio
    ranged_width = area.width - melee_width
    if facing.faces_right:
        melee = FormationArea(area.min_x + ranged_width, area.max_x, area.min_y, area.max_y)
        ranged = FormationArea(area.min_x, area.min_x + ranged_width, area.min_y, area.max_y)
    else:
        melee = FormationArea(area.min_x, area.min_x + melee_width, area.min_y, area.max_y)
        ranged = FormationArea(area.min_x + melee_width, area.max_x, area.min_y, area.max_y)
    return melee, ranged


def distribute_units_to_groups(total: int, groups: int, rng: random.Random) -> List[int]:
    """Even split (earlier groups take the remainder), then +-1 shifts between neighbours."""
    base, remainder = divmod(total, groups)
    distribution = [base + (1 if i < remainder else 0) for i in range(groups)]
    for i in range(groups - 1):
        if distribution[i] > 1 and distribution[i + 1] > 1:
            shift = rng.randint(-1, 1)
            distribution[i] += shift
            distribution[i + 1] -= shift
    return distribution


# --- spread shapes ----------------------------------------------------------

def _spread_line(count: int, area: FormationArea, d: float, rng: random.Random) -> List[Vector2]:
    horizontal = area.width > area.height * 1.2
    spread = rng.uniform(0.7, 0.95)
    along_min, along_ext = (area.min_x, area.width) if horizontal else (area.min_y, area.height)
    across_min, across_ext = (area.min_y, area.height) if horizontal else (area.min_x, area.width)

    length = min(along_ext * spread, (count - 1) * d)
    spacing = max(length / (count - 1), d) if count > 1 else 0.0
    start = along_min + (along_ext - length) / 2
    base = across_min + across_ext * rng.uniform(0.3, 0.7)
    low, high = across_min + d / 2, across_min + across_ext - d / 2

    positions = []
    for i in range(count):
        along = start + i * spacing
        across = base + rng.uniform(-across_ext * 0.1, across_ext * 0.1)
        if high > low:
            across = min(max(across, low), high)
        else:
            across = across_min + across_ext / 2
        positions.append(Vector2(along, across) if horizontal else Vector2(across, along))
    return positions


def _spread_columns(count: int, area: FormationArea, d: float, rng: random.Random) -> List[Vector2]:
    max_columns = max(1, int(math.floor(area.width / d)))
    upper = min(max_columns, count // 2 + 1)
    target = rng.randrange(2, upper) if upper > 2 else 2
    columns = max(1, min(target, max_columns))
    per_column = int(math.ceil(count / columns))

    effective_w = area.width * rng.uniform(0.6, 0.9)
    start_x = area.min_x + (area.width - effective_w) / 2
    x_spacing = effective_w / (columns - 1) if columns > 1 else 0.0
    if columns == 1:
        start_x = area.center.x

    positions = []
    for col in range(columns):
        in_column = min(per_column, count - len(positions))
        if in_column <= 0:
            break
        effective_h = area.height * rng.uniform(0.7, 0.95)
        start_y = area.min_y + (area.height - effective_h) / 2
        y_spacing = max(effective_h / (in_column - 1), d) if in_column > 1 else 0.0
        for row in range(in_column):
            positions.append(Vector2(start_x + col * x_spacing, start_y + row * y_spacing))
    return positions


def _spread_grid(count: int, area: FormationArea, d: float, rng: random.Random) -> List[Vector2]:
    cols = max(1, int(math.ceil(math.sqrt(count * area.width / area.height))))
    rows = int(math.ceil(count / cols))

    effective_w = area.width * rng.uniform(0.7, 0.95)
    effective_h = area.height * rng.uniform(0.7, 0.95)
    cell_w = max(effective_w / cols, d)
    cell_h = max(effective_h / rows, d)
    cols = max(1, int(math.floor(effective_w / cell_w)))
    rows = max(1, int(math.floor(effective_h / cell_h)))

    start_x = area.min_x + (area.width - cols * cell_w) / 2 + cell_w / 2
    start_y = area.min_y + (area.height - rows * cell_h) / 2 + cell_h / 2
    jx = max(0.0, min(cell_w * 0.2, (cell_w - d) / 2))
    jy = max(0.0, min(cell_h * 0.2, (cell_h - d) / 2))

    positions = []
    for row in range(rows):
        for col in range(cols):
            if len(positions) >= count:
                break
            x = start_x + col * cell_w + rng.uniform(-jx, jx)
            y = start_y + row * cell_h + rng.uniform(-jy, jy)
            positions.append(area.clamp(Vector2(x, y), d / 2))

    if len(positions) < count:
        log.debug(f"Spread grid held {len(positions)}/{count}, sampling the rest")
        positions.extend(poisson_disc_positions(count - len(positions), area, d, rng, existing=positions))
    return positions


def spread_positions(count: int, area: FormationArea, min_distance: float, rng: random.Random) -> List[Vector2]:
    """Loose line / column / grid that uses a random share of the area."""
    if count <= 0:
        return []
    aspect = area.width / area.height
    if count <= 8 or aspect > 2:
        points = _spread_line(count, area, min_distance, rng)
    elif area.height > area.width * 1.5:
        points = _spread_columns(count, area, min_distance, rng)
    else:
        points = _spread_grid(count, area, min_distance, rng)
    return enforce_separation(points, area, min_distance, rng)


# --- class-based formations -------------------------------------------------

def _standard_with_variance(melee, ranged, area, d, facing, rng) -> List[UnitStartingData]:
    melee_area, ranged_area = split_front_back(area, rng.uniform(0.5, 0.7), facing)

    offset = rng.uniform(-area.height * 0.2, area.height * 0.2)
    spread = rng.uniform(0.6, 0.95)
    inset = area.height * (1 - spread) / 2
    low = max(area.min_y + inset + offset, area.min_y)
    high = min(area.max_y - inset + offset, area.max_y)

    melee_area = FormationArea(melee_area.min_x, melee_area.max_x, low, high)
    ranged_area = FormationArea(ranged_area.min_x, ranged_area.max_x, low, high)
    placed = _assign(melee, spread_positions(len(melee), melee_area, d, rng))
    placed += _assign(ranged, spread_positions(len(ranged), ranged_area, d, rng))
    return placed


def _multi_group(melee, ranged, area, d, facing, rng) -> List[UnitStartingData]:
    groups = rng.randint(2, 4)
    group_height = area.height / groups
    ratio = rng.uniform(0.5, 0.7)
    melee_per_group = distribute_units_to_groups(len(melee), groups, rng)
    ranged_per_group = distribute_units_to_groups(len(ranged), groups, rng)

    placed: List[UnitStartingData] = []
    melee_index = ranged_index = 0
    for group in range(groups):
        low = area.min_y + group * group_height
        high = low + group_height
        # Neighbouring bands overlap a little
        if group > 0:
            low -= d * 0.5
        if group < groups - 1:
            high += d * 0.5
        band = FormationArea(area.min_x, area.max_x, low, high)
        melee_area, ranged_area = split_front_back(band, ratio, facing)

        group_melee = melee[melee_index:melee_index + melee_per_group[group]]
        group_ranged = ranged[ranged_index:ranged_index + ranged_per_group[group]]
        melee_index += len(group_melee)
        ranged_index += len(group_ranged)

        if group_melee:
            placed += _assign(group_melee, generate_team_positions(len(group_melee), melee_area, d, rng))
        if group_ranged:
            placed += _assign(group_ranged, generate_team_positions(len(group_ranged), ranged_area, d, rng))
    return placed


def _weighted_ranks(melee, ranged, area, d, facing, rng) -> List[UnitStartingData]:
    ratio = 0.6
    if len(melee) > len(ranged) * 2:
        ratio = 0.7
    elif len(ranged) > len(melee) * 2:
        ratio = 0.5
    melee_area, ranged_area = split_front_back(area, ratio, facing)
    placed = _assign(melee, generate_team_positions(len(melee), melee_area, d, rng))
    placed += _assign(ranged, generate_team_positions(len(ranged), ranged_area, d, rng))
    return placed


_STRATEGIES = (_standard_with_variance, _multi_group, _weighted_ranks)


def class_based_formation(
    composition: TeamComposition,
    area: FormationArea,
    min_distance: float,
    facing: Facing,
    rng: random.Random,
    catalog,
    existing: Sequence = (),
) -> List[UnitStartingData]:
    """
    Melee in front, ranged behind.

    A team with only one role gets a spread line/column/grid. Mixed teams
    roll one of three layouts: a varied front/back split, 2-4 horizontal
    bands each with its own front/back, or the plain 60/40 split.
    """
    melee, ranged = split_by_role(composition.all_units(), catalog)
    if not melee and not ranged:
        return []

    if not melee or not ranged:
        units = melee or ranged
        placed = _assign(units, spread_positions(len(units), area, min_distance, rng))
    else:
        strategy = _STRATEGIES[min(int(rng.random() * 3), 2)]
        log.debug(f"Class-based formation: {strategy.__name__.strip('_')} for {len(melee)} melee, {len(ranged)} ranged")
        placed = strategy(melee, ranged, area, min_distance, facing, rng)

    # Sub-areas touch, so units on either side of a seam can be too close
    return separate_units(placed, area, min_distance, rng, existing)


def formation_for_single_team(
    composition: TeamComposition,
    area: FormationArea,
    min_distance: float,
    facing: Facing,
    rng: random.Random,
    catalog,
    mini_formation_chance: float = MINI_FORMATION_CHANCE,
    existing: Sequence = (),
) -> List[UnitStartingData]:
    """
    Lay out one team inside ``area``.

    Args:
        composition: Team to place
        area: Where the team may stand
        min_distance: Minimum unit separation
        facing: Direction of the enemy
        rng: Seeded generator
        catalog: Used to split melee from ranged
        mini_formation_chance: Chance to use mini formations instead of a
            class-based layout
        existing: Points already taken by other teams

    Returns:
        Every unit of the composition, positioned
    """
    units = composition.all_units()
    if not units:
        return []
    if rng.random() < mini_formation_chance:
        return generate_mini_formations(units, area, min_distance, facing, rng, catalog, existing=existing)
    return class_based_formation(composition, area, min_distance, facing, rng, catalog, existing=existing)


# --- two teams / free-for-all ----------------------------------------------

def optimal_team_separation(n1: int, n2: int, min_distance: float, x_bound: float, y_bound: float) -> float:
    """Gap between two armies: the sum of their rough radii plus a base gap."""
    r1 = math.sqrt(n1 * min_distance * min_distance * 2 / math.pi)
    r2 = math.sqrt(n2 * min_distance * min_distance * 2 / math.pi)
    return min(r1 + r2 + BASE_TEAM_GAP, x_bound * 0.8, y_bound * 0.8)


def two_team_areas(
    n1: int,
    n2: int,
    min_distance: float,
    x_bound: float,
    y_bound: float,
) -> List[Tuple[FormationArea, Facing]]:
    """Left and right halves with a no-man's-land between them."""
    separation = optimal_team_separation(n1, n2, min_distance, x_bound, y_bound)
    total = n1 + n2

    mid_buffer = separation
    if total > 120:
        mid_buffer = max(separation * 0.5, x_bound * 0.1)
    if total > 200:
        mid_buffer = max(separation * 0.3, 0.0)
    mid_buffer = min(mid_buffer, x_bound * 0.6)
    # Units on the two inner edges still need min_distance between them
    mid_buffer = max(mid_buffer, min_distance)

    return [
        (FormationArea(-x_bound, -mid_buffer / 2, -y_bound, y_bound), Facing.RIGHT),
        (FormationArea(mid_buffer / 2, x_bound, -y_bound, y_bound), Facing.LEFT),
    ]


def two_team_positions(
    compositions: Sequence[TeamComposition],
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    catalog,
    mini_formation_chance: float = MINI_FORMATION_CHANCE,
) -> List[UnitStartingData]:
    """Team 1 on the left facing right, team 2 on the right facing left."""
    first, second = compositions[0], compositions[1]
    areas = two_team_areas(first.total_units, second.total_units, min_distance, x_bound, y_bound)

    placed: List[UnitStartingData] = []
    for composition, (area, facing) in zip((first, second), areas):
        placed += formation_for_single_team(
            composition, area, min_distance, facing, rng, catalog, mini_formation_chance,
        )
    return placed


def battle_royale_positions(
    composition: TeamComposition,
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    circle_limit: int = BATTLE_ROYALE_CIRCLE_LIMIT,
) -> List[UnitStartingData]:
    """Everyone for themselves: a ring for small fields, a shuffled grid for big ones. All units go to team 0."""
    units = composition.all_units()
    if not units:
        return []

    area = FormationArea.from_bounds(x_bound, y_bound)
    if len(units) <= circle_limit:
        points = circular_positions(len(units), area, min_distance, rng)
    else:
        points = distributed_grid_positions(len(units), area, min_distance, rng)
    rng.shuffle(points)
    points = enforce_separation(points, area, min_distance, rng)
    return [unit.with_position(point).with_team(0) for unit, point in zip(units, points)]
