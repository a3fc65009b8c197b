"""
Basic position generators.

Every generator takes ``(count, area, min_distance, rng)`` and returns
``count`` ``Vector2`` points inside ``area``. The regular shapes (line,
columns, grid, circle) fall back to Poisson-disc sampling when the area is
too small for them, and Poisson sampling tops up with ``scatter_fill``, so a
caller always gets exactly the number of points it asked for.
"""

from __future__ import annotations

import math
import random
from typing import Iterable, List, Sequence

from pygame.math import Vector2

from engine.error_handler import FormationError, get_logger
from telemetry.logger import telemetry
from .geometry import (
    EPSILON,
    FormationArea,
    is_far_enough,
    separation_conflicts,
    to_vector,
)

log = get_logger(__name__)

POISSON_ATTEMPTS = 30
SCATTER_ATTEMPTS_PER_UNIT = 50
RELAXED_SPACING = 0.7
GRID_JITTER = 0.2
DISTRIBUTED_JITTER = 0.15
CIRCLE_RADIUS_RATIO = 0.8


def scatter_fill(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
    existing: Iterable = (),
) -> List[Vector2]:
    """
    Bounded dart throwing; always returns exactly ``count`` points.

    Phase one keeps ``min_distance`` from every other point, phase two
    relaxes that to 70%, and whatever is still missing is placed anywhere
    in the area.
    """
    if count <= 0:
        return []

    others = [to_vector(p) for p in existing]
    placed: List[Vector2] = []

    for factor in (1.0, RELAXED_SPACING):
        spacing = min_distance * factor
        inner = area.shrink(spacing / 2)
        attempts = 0
        while len(placed) < count and attempts < SCATTER_ATTEMPTS_PER_UNIT * count:
            attempts += 1
            candidate = inner.random_point(rng)
            if is_far_enough(candidate, others, spacing) and is_far_enough(candidate, placed, spacing):
                placed.append(candidate)
        if len(placed) >= count:
            if factor < 1.0:
                log.debug(f"scatter_fill relaxed spacing to {spacing:.2f} for {count} points")
                telemetry.log("formation_fallback", reason="relaxed_spacing", count=count)
            return placed

    missing = count - len(placed)
    log.warning(f"Area too crowded, placing {missing} of {count} units without spacing")
    telemetry.log("formation_fallback", reason="unconstrained", count=missing)
    while len(placed) < count:
        placed.append(area.random_point(rng))
    return placed


def poisson_disc_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
    existing: Sequence = (),
    attempts: int = POISSON_ATTEMPTS,
) -> List[Vector2]:
    """
    Bridson dart throwing on a background grid of cell size d/sqrt(2).

    ``existing`` points are respected but not returned. Sampling grows
    outward from existing points inside the area, or from a random seed in
    the area inset by ``min_distance``.
    """
    if count <= 0:
        return []

    others = [to_vector(p) for p in existing]
    cell = min_distance / math.sqrt(2)
    grid_w = max(1, int(math.ceil(area.width / cell)))
    grid_h = max(1, int(math.ceil(area.height / cell)))
    grid = {}

    def cell_of(p: Vector2):
        gx = min(max(int((p.x - area.min_x) / cell), 0), grid_w - 1)
        gy = min(max(int((p.y - area.min_y) / cell), 0), grid_h - 1)
        return gx, gy

    def grid_clear(p: Vector2) -> bool:
        gx, gy = cell_of(p)
        for dx in range(-2, 3):
            for dy in range(-2, 3):
                neighbour = grid.get((gx + dx, gy + dy))
                if neighbour is not None and p.distance_to(neighbour) < min_distance - EPSILON:
                    return False
        return True

    for p in others:
        if area.contains(p):
            grid.setdefault(cell_of(p), p)

    points: List[Vector2] = []
    active: List[Vector2] = [p for p in others if area.contains(p)]

    if not active:
        seed_area = area.shrink(min_distance)
        for _ in range(attempts):
            seed = seed_area.random_point(rng)
            if is_far_enough(seed, others, min_distance):
                grid[cell_of(seed)] = seed
                points.append(seed)
                active.append(seed)
                break

    while active and len(points) < count:
        index = rng.randrange(len(active))
        spawn = active[index]
        found = False
        for _ in range(attempts):
            angle = rng.uniform(0.0, 2.0 * math.pi)
            distance = rng.uniform(min_distance, 2.0 * min_distance)
            candidate = spawn + Vector2(distance * math.cos(angle), distance * math.sin(angle))
            if not area.contains(candidate):
                continue
            if not grid_clear(candidate) or not is_far_enough(candidate, others, min_distance):
                continue
            grid[cell_of(candidate)] = candidate
            points.append(candidate)
            active.append(candidate)
            found = True
            break
        if not found:
            active.pop(index)

    if len(points) < count:
        log.debug(f"Poisson sampling placed {len(points)}/{count}, scattering the rest")
        points.extend(scatter_fill(count - len(points), area, min_distance, rng, existing=others + points))
    return points


def enforce_separation(
    points: List[Vector2],
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
    existing: Iterable = (),
) -> List[Vector2]:
    """
    Clamp points into ``area`` and re-place any that break separation.

    Replacements keep the index of the point they replace, so a caller's
    unit ordering survives.
    """
    existing = [to_vector(p) for p in existing]
    points = [area.clamp(p) for p in points]
    conflicts = separation_conflicts(points, min_distance, existing)
    if not conflicts:
        return points

    conflict_set = set(conflicts)
    kept = [p for i, p in enumerate(points) if i not in conflict_set]
    log.debug(f"Re-placing {len(conflicts)} of {len(points)} points to keep separation")
    replacements = scatter_fill(len(conflicts), area, min_distance, rng, existing=existing + kept)
    for index, replacement in zip(conflicts, replacements):
        points[index] = replacement
    return points


def _spaced(count: int, center: float, spacing: float) -> List[float]:
    start = center - (count - 1) * spacing / 2
    return [start + i * spacing for i in range(count)]


def line_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """
    Evenly spaced line along the longer axis, centred in the area.

    A line that does not fit wraps into additional rows one
    ``min_distance`` apart.
    """
    if count <= 0:
        return []

    horizontal = area.width > area.height
    along = area.width if horizontal else area.height
    across = area.height if horizontal else area.width

    if along >= min_distance:
        per_row = int(math.floor((along - min_distance) / min_distance + EPSILON)) + 1
    else:
        per_row = 1
    rows = int(math.ceil(count / per_row))

    if (rows - 1) * min_distance > across + EPSILON:
        return poisson_disc_positions(count, area, min_distance, rng)

    center = area.center
    along_center = center.x if horizontal else center.y
    across_center = center.y if horizontal else center.x

    positions: List[Vector2] = []
    remaining = count
    for offset in _spaced(rows, across_center, min_distance):
        in_row = min(per_row, remaining)
        for value in _spaced(in_row, along_center, min_distance):
            positions.append(Vector2(value, offset) if horizontal else Vector2(offset, value))
        remaining -= in_row
    return positions


def columnar_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """Compact columns for tall, narrow areas."""
    if count <= 0:
        return []

    rows = max(1, int(math.ceil(math.sqrt(count * area.height / area.width))))
    rows = min(rows, count)
    columns = int(math.ceil(count / rows))
    rows = int(math.ceil(count / columns))

    x_spacing = area.width / (columns + 1)
    if x_spacing < min_distance or (rows - 1) * min_distance > area.height:
        return poisson_disc_positions(count, area, min_distance, rng)

    center_y = area.center.y
    positions: List[Vector2] = []
    remaining = count
    for col in range(columns):
        if remaining <= 0:
            break
        x = area.min_x + (col + 1) * x_spacing
        in_column = min(rows, remaining)
        for y in _spaced(in_column, center_y, min_distance):
            positions.append(Vector2(x, y))
        remaining -= in_column
    return positions


def _jitter(cell: float, ratio: float, min_distance: float) -> float:
    # Cells are >= min_distance apart; jitter must not eat into that
    return max(0.0, min(cell * ratio, (cell - min_distance) / 2))


def grid_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """Row-major grid from the top-left with per-cell jitter."""
    if count <= 0:
        return []

    cols = max(1, int(math.ceil(math.sqrt(count * area.width / area.height))))
    rows = int(math.ceil(count / cols))
    while cols * rows < count:
        cols += 1

    cell_w = area.width / cols
    cell_h = area.height / rows
    if cell_w < min_distance or cell_h < min_distance:
        return poisson_disc_positions(count, area, min_distance, rng)

    jx = _jitter(cell_w, GRID_JITTER, min_distance)
    jy = _jitter(cell_h, GRID_JITTER, min_distance)
    start_x = area.min_x + cell_w / 2
    start_y = area.max_y - cell_h / 2

    positions: List[Vector2] = []
    for row in range(rows):
        for col in range(cols):
            if len(positions) >= count:
                return positions
            x = start_x + col * cell_w + rng.uniform(-jx, jx)
            y = start_y - row * cell_h + rng.uniform(-jy, jy)
            positions.append(Vector2(x, y))
    return positions


def distributed_grid_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """Grid spread over the whole area; cells are shuffled so units land anywhere."""
    if count <= 0:
        return []

    grid_size = int(math.ceil(math.sqrt(count)))
    cell_w = max(area.width / grid_size, min_distance)
    cell_h = max(area.height / grid_size, min_distance)
    cols = int(math.floor(area.width / cell_w + EPSILON))
    rows = int(math.floor(area.height / cell_h + EPSILON))

    if rows * cols < count:
        ratio = area.width / area.height
        cell_w = area.width / math.ceil(math.sqrt(count * ratio))
        cell_h = area.height / math.ceil(math.sqrt(count / ratio))
        if cell_w < min_distance or cell_h < min_distance:
            return poisson_disc_positions(count, area, min_distance, rng)
        cols = int(math.floor(area.width / cell_w + EPSILON))
        rows = int(math.floor(area.height / cell_h + EPSILON))
        if rows * cols < count:
            return poisson_disc_positions(count, area, min_distance, rng)

    offset_x = area.min_x + (area.width - cols * cell_w) / 2 + cell_w / 2
    offset_y = area.min_y + (area.height - rows * cell_h) / 2 + cell_h / 2
    jx = _jitter(cell_w, DISTRIBUTED_JITTER, min_distance)
    jy = _jitter(cell_h, DISTRIBUTED_JITTER, min_distance)

    candidates: List[Vector2] = []
    for row in range(rows):
        for col in range(cols):
            candidates.append(Vector2(
                offset_x + col * cell_w + rng.uniform(-jx, jx),
                offset_y + row * cell_h + rng.uniform(-jy, jy),
            ))
    rng.shuffle(candidates)
    return candidates[:count]


def circular_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """Evenly spaced ring around the area centre."""
    if count <= 0:
        return []
    center = area.center
    if count == 1:
        return [center]

    radius = CIRCLE_RADIUS_RATIO * min(area.width, area.height) / 2
    # Chord between neighbours, not arc length, has to reach min_distance
    required = min_distance / (2 * math.sin(math.pi / count))
    if radius < required:
        radius = required

    positions = []
    for i in range(count):
        angle = i * 2 * math.pi / count
        positions.append(area.clamp(center + Vector2(radius * math.cos(angle), radius * math.sin(angle))))

    if separation_conflicts(positions, min_distance):
        log.debug(f"Circle of {count} does not fit {area.width:.1f}x{area.height:.1f}, sampling instead")
        return poisson_disc_positions(count, area, min_distance, rng)
    return positions


def generate_team_positions(
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """
    Positions for one homogeneous block of units.

    Small teams stand in a line, tall areas get columns, everything else a
    grid. The result always holds ``count`` separated points inside
    ``area`` (as far as the area can physically hold them).

    Raises:
        FormationError: If count is not positive
    """
    if count <= 0:
        raise FormationError(
            f"Cannot place {count} units",
            user_message="A formation needs at least one unit.",
        )

    if count <= 10:
        positions = line_positions(count, area, min_distance, rng)
    elif area.height > area.width * 1.5:
        positions = columnar_positions(count, area, min_distance, rng)
    else:
        positions = grid_positions(count, area, min_distance, rng)
    return enforce_separation(positions, area, min_distance, rng)
