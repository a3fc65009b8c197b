"""
N-team battle layout.

The map is cut into a grid of cells, one per team. Edge teams face the
middle of the map, interior teams face diagonally by quadrant.
"""

from __future__ import annotations

import math
import random
from typing import List, Sequence, Tuple

from engine.error_handler import TeamConfigurationError, get_logger
from roster.types import TeamComposition, UnitStartingData
from .geometry import FormationArea, Facing, rotate_about, separation_conflicts, to_vector
from .layouts import MINI_FORMATION_CHANCE, formation_for_single_team, separate_units, two_team_positions
from .packer import generate_mini_formations

log = get_logger(__name__)

CELL_BUFFER = 0.5
TEAM_MINI_FORMATION_CHANCE = 0.6
LARGE_TEAM_SIZE = 15


def optimal_grid(number_of_teams: int, x_bound: float, y_bound: float) -> Tuple[int, int]:
    """(cols, rows) for ``number_of_teams`` cells, shaped like the map."""
    cols = int(math.ceil(math.sqrt(number_of_teams) * math.sqrt(x_bound / y_bound)))
    cols = max(1, cols)
    rows = int(math.ceil(number_of_teams / cols))
    while cols * rows < number_of_teams:
        if x_bound > y_bound:
            cols += 1
        else:
            rows += 1
    return cols, rows


def facing_for_cell(col: int, row: int, cols: int, rows: int) -> Facing:
    if col == 0:
        return Facing.RIGHT
    if col == cols - 1:
        return Facing.LEFT
    if row == 0:
        return Facing.UP
    if row == rows - 1:
        return Facing.DOWN

    col_ratio = col / (cols - 1) if cols > 1 else 0.5
    row_ratio = row / (rows - 1) if rows > 1 else 0.5
    if col_ratio < 0.5 and row_ratio < 0.5:
        return Facing.UP_RIGHT
    if col_ratio >= 0.5 and row_ratio < 0.5:
        return Facing.UP_LEFT
    if col_ratio < 0.5:
        return Facing.DOWN_RIGHT
    return Facing.DOWN_LEFT


def divide_map_into_team_areas(
    number_of_teams: int,
    x_bound: float,
    y_bound: float,
    buffer: float = CELL_BUFFER,
) -> List[Tuple[FormationArea, Facing]]:
    """One (area, facing) per team, filled row by row from the bottom-left."""
    cols, rows = optimal_grid(number_of_teams, x_bound, y_bound)
    cell_w = 2 * x_bound / cols
    cell_h = 2 * y_bound / rows
    if buffer * 2 >= min(cell_w, cell_h):
        buffer = 0.0

    areas = []
    for row in range(rows):
        for col in range(cols):
            if len(areas) >= number_of_teams:
                return areas
            area = FormationArea(
                -x_bound + col * cell_w + buffer,
                -x_bound + (col + 1) * cell_w - buffer,
                -y_bound + row * cell_h + buffer,
                -y_bound + (row + 1) * cell_h - buffer,
            )
            areas.append((area, facing_for_cell(col, row, cols, rows)))
    return areas


def rotate_into_area(
    units: List[UnitStartingData],
    area: FormationArea,
    facing: Facing,
    min_distance: float,
) -> List[UnitStartingData]:
    """
    Turn a team laid out facing right/left toward ``facing``.

    The rotated block is re-centred in the cell and clamped into it. If
    clamping would squeeze units together the unrotated layout is kept.
    """
    degrees = facing.rotation_degrees
    if facing.is_horizontal or not units:
        return units

    pivot = area.center
    rotated = [rotate_about(u.position, pivot, degrees) for u in units]

    xs = [p.x for p in rotated]
    ys = [p.y for p in rotated]
    shift_x = pivot.x - (min(xs) + max(xs)) / 2
    shift_y = pivot.y - (min(ys) + max(ys)) / 2
    moved = [area.clamp((p.x + shift_x, p.y + shift_y)) for p in rotated]

    if separation_conflicts(moved, min_distance):
        log.debug(f"Rotation to {facing.value} does not fit its cell, keeping the unrotated layout")
        return units
    return [unit.with_position(point) for unit, point in zip(units, moved)]


def split_units_evenly(units: Sequence[UnitStartingData], number_of_teams: int) -> List[List[UnitStartingData]]:
    """Consecutive slices; earlier teams take one extra unit each while the remainder lasts."""
    base, remainder = divmod(len(units), number_of_teams)
    slices = []
    start = 0
    for index in range(number_of_teams):
        size = base + (1 if index < remainder else 0)
        slices.append(list(units[start:start + size]))
        start += size
    return slices


def team_battle_positions(
    composition: TeamComposition,
    team_ids: Sequence[int],
    x_bound: float,
    y_bound: float,
    min_distance: float,
    rng: random.Random,
    catalog,
    team_mini_formation_chance: float = TEAM_MINI_FORMATION_CHANCE,
    mini_formation_chance: float = MINI_FORMATION_CHANCE,
) -> List[UnitStartingData]:
    """
    Split one pooled roster into ``len(team_ids)`` teams and place each.

    Args:
        composition: Every unit taking part
        team_ids: Id per team, in cell order
        x_bound: Map half width
        y_bound: Map half height
        min_distance: Minimum unit separation
        rng: Seeded generator
        catalog: Used to split melee from ranged
        team_mini_formation_chance: Chance a large team in a 3-4 team
            battle still uses mini formations

    Returns:
        Positioned units, team by team

    Raises:
        TeamConfigurationError: If no team ids are given
    """
    number_of_teams = len(team_ids)
    if number_of_teams <= 0:
        raise TeamConfigurationError("Team battle needs at least one team id")

    slices = split_units_evenly(composition.all_units(), number_of_teams)

    if number_of_teams == 2:
        teams = [TeamComposition.group(team_id, units) for team_id, units in zip(team_ids, slices)]
        return two_team_positions(teams, x_bound, y_bound, min_distance, rng, catalog, mini_formation_chance)

    areas = divide_map_into_team_areas(number_of_teams, x_bound, y_bound)
    placed: List[UnitStartingData] = []
    for team_id, units, (area, facing) in zip(team_ids, slices, areas):
        if not units:
            continue
        team_units = [u.with_team(team_id) for u in units]

        use_mini = (
            number_of_teams > 4
            or len(team_units) < LARGE_TEAM_SIZE
            or rng.random() < team_mini_formation_chance
        )
        if use_mini:
            positioned = generate_mini_formations(team_units, area, min_distance, facing, rng, catalog)
        else:
            team = TeamComposition.group(team_id, team_units)
            positioned = formation_for_single_team(
                team, area, min_distance, facing, rng, catalog, mini_formation_chance,
            )

        positioned = rotate_into_area(positioned, area, facing, min_distance)
        # Neighbouring cells are only a small buffer apart
        occupied = [to_vector(u.position) for u in placed]
        if separation_conflicts([to_vector(u.position) for u in positioned], min_distance, occupied):
            positioned = separate_units(positioned, area, min_distance, rng, existing=occupied)
        placed += positioned
        log.debug(f"Team {team_id}: {len(positioned)} units in cell facing {facing.value}")
    return placed

