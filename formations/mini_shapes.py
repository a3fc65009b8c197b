"""
Mini-formation shape table.

Each shape knows which group sizes it can take, how much it likes a given
melee/ranged mix, how to lay out points and how to order units onto those
points. The packer picks shapes from ``SHAPES`` by weighted score.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

from pygame.math import Vector2

from engine.error_handler import FormationError
from .geometry import FormationArea, Facing, separation_conflicts
from .shapes import POISSON_ATTEMPTS, poisson_disc_positions, scatter_fill


class Shape(Enum):
    LINE = "line"
    ARC = "arc"
    GRID = "grid"
    CROSS = "cross"
    CIRCLE = "circle"
    CLUSTER = "cluster"
    WEDGE = "wedge"
    DIAMOND = "diamond"


@dataclass(frozen=True)
class ShapeSpec:
    """
    How one mini-formation shape behaves.

    - can_handle(n):                       group size check
    - score(melee, ranged):                selection weight for a mix
    - generate(n, area, d, facing, rng):   raw points
    - order(melee, ranged, facing):        units in point order
    """
    can_handle: Callable[[int], bool]
    score: Callable[[int, int], float]
    generate: Callable[..., List[Vector2]]
    order: Callable[[list, list, Facing], list]


def finalize_shape_points(
    points: List[Vector2],
    count: int,
    area: FormationArea,
    min_distance: float,
    rng: random.Random,
) -> List[Vector2]:
    """
    Clamp shape points into ``area`` and guarantee ``count`` separated points.

    Shapes that overflow a small area get clamped onto each other; those
    points (and any missing ones) are re-sampled inside the same area.
    """
    points = [area.clamp(p) for p in points[:count]]
    conflicts = set(separation_conflicts(points, min_distance))
    kept = [p for i, p in enumerate(points) if i not in conflicts]
    missing = count - len(kept)
    if missing <= 0:
        return kept

    extra = poisson_disc_positions(missing, area, min_distance, rng, existing=kept)
    result = []
    extra_iter = iter(extra)
    for i in range(count):
        if i < len(points) and i not in conflicts:
            result.append(points[i])
        else:
            result.append(next(extra_iter))
    return result


def _jitter(rng: random.Random, min_distance: float) -> float:
    return rng.uniform(-min_distance / 4, min_distance / 4)


# --- generators -------------------------------------------------------------

def _line(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    if count == 1:
        return [center]

    horizontal = area.width > area.height
    extent = area.width if horizontal else area.height
    spacing = max(min(extent / (count - 1), d * 1.2), d)
    start = -(spacing * (count - 1)) / 2

    positions: List[Vector2] = []
    for i in range(count):
        along = start + i * spacing
        if horizontal:
            positions.append(Vector2(center.x + along, center.y))
        else:
            positions.append(Vector2(center.x, center.y + along))

    # Jitter across the line; neighbours stay >= spacing apart along it
    for i, p in enumerate(positions):
        offset = _jitter(rng, d)
        moved = Vector2(p.x, p.y + offset) if horizontal else Vector2(p.x + offset, p.y)
        neighbours = positions[max(0, i - 1):i] + positions[i + 1:i + 2]
        if all(moved.distance_to(n) >= d for n in neighbours):
            positions[i] = moved
    return positions


def _arc(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    arc_angle = 2 * math.pi / 3
    step = arc_angle / (count - 1)
    radius = min(area.width, area.height) * 0.4
    # Neighbouring points are one chord apart
    radius = max(radius, d / (2 * math.sin(step / 2)))

    # 120 degree arc: 210 to 330 degrees when facing right, 30 to 150 otherwise
    if facing.faces_right:
        start = math.pi + (math.pi - arc_angle) / 2
    else:
        start = (math.pi - arc_angle) / 2

    positions = []
    for i in range(count):
        angle = start + step * i
        positions.append(center + Vector2(radius * math.cos(angle), radius * math.sin(angle)))
    return positions


def _grid(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    cols = int(math.ceil(math.sqrt(count)))
    rows = int(math.ceil(count / cols))
    while cols * rows < count:
        if cols <= rows:
            cols += 1
        else:
            rows += 1

    cell_w = max(area.width / (cols + 1), d)
    cell_h = max(area.height / (rows + 1), d)
    start_x = area.min_x + (area.width - (cols - 1) * cell_w) / 2
    start_y = area.min_y + (area.height - (rows - 1) * cell_h) / 2

    positions = []
    for row in range(rows):
        for col in range(cols):
            if len(positions) < count:
                positions.append(Vector2(start_x + col * cell_w, start_y + row * cell_h))
    return positions


_ARMS = (Vector2(1, 0), Vector2(0, 1), Vector2(-1, 0), Vector2(0, -1))


def _cross(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    positions = [center]

    remaining = count - 1
    per_arm = remaining // 4
    extra = remaining % 4
    arm_length = min(area.width, area.height) * 0.4
    spacing = max(min(arm_length / max(per_arm, 1), d * 1.2), d)

    for arm, direction in enumerate(_ARMS):
        on_arm = per_arm + (1 if arm < extra else 0)
        for i in range(1, on_arm + 1):
            positions.append(center + direction * (spacing * i))
    return positions


def _circle(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    radius = min(area.width, area.height) * 0.4
    radius = max(radius, d / (2 * math.sin(math.pi / count)))
    start = rng.uniform(0.0, 2 * math.pi)

    positions = []
    for i in range(count):
        angle = start + 2 * math.pi * i / count
        positions.append(center + Vector2(radius * math.cos(angle), radius * math.sin(angle)))
    return positions


def _cluster(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    positions = [center]
    spawn_points = [center]

    while len(positions) < count and spawn_points:
        index = rng.randrange(len(spawn_points))
        spawn = spawn_points[index]
        found = False
        for _ in range(POISSON_ATTEMPTS):
            angle = rng.uniform(0.0, 2 * math.pi)
            distance = rng.uniform(d, 2 * d)
            candidate = spawn + Vector2(distance * math.cos(angle), distance * math.sin(angle))
            if not area.contains(candidate):
                continue
            if all(candidate.distance_to(p) >= d for p in positions):
                positions.append(candidate)
                spawn_points.append(candidate)
                found = True
                break
        if not found:
            spawn_points.pop(index)

    if len(positions) < count:
        positions.extend(scatter_fill(count - len(positions), area, d, rng, existing=positions))
    return positions


def _wedge(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    rows = 1
    total = 1
    while total < count:
        rows += 1
        total += rows

    h_spacing = d * 1.2
    v_spacing = d * 1.1
    direction = 1 if facing.faces_right else -1
    tip_x = center.x + direction * area.width * 0.3

    positions = []
    for row in range(rows):
        in_row = row + 1
        row_start = center.y - (in_row - 1) * h_spacing / 2
        x = tip_x - direction * row * v_spacing
        for col in range(in_row):
            if len(positions) < count:
                positions.append(Vector2(x, row_start + col * h_spacing))
    return positions


def _diamond(count: int, area: FormationArea, d: float, facing: Facing, rng: random.Random) -> List[Vector2]:
    center = area.center
    positions = []
    if count % 2 == 1:
        positions.append(center)

    edge_count = count - len(positions)
    per_side = edge_count // 4
    remainder = edge_count % 4

    # Longest side decides how far apart its points sit
    longest = per_side + (1 if remainder else 0)
    half = min(area.width, area.height) * 0.4
    if longest:
        half = max(half, d * longest / math.sqrt(2))
    half = max(half, d * math.sqrt(2) if positions else d)

    vertices = [
        center + Vector2(half, 0),
        center + Vector2(0, half),
        center + Vector2(-half, 0),
        center + Vector2(0, -half),
    ]
    for side in range(4):
        start, end = vertices[side], vertices[(side + 1) % 4]
        on_side = per_side + (1 if side < remainder else 0)
        # Each side takes its starting vertex and stops short of its end one,
        # so shared vertices are never doubled up
        for i in range(on_side):
            t = i / on_side
            positions.append(start.lerp(end, t))
    return positions[:count]


# --- ordering ---------------------------------------------------------------

def default_order(melee: list, ranged: list, facing: Facing) -> list:
    return melee + ranged if facing.faces_right else ranged + melee


def _alternate(first: list, second: list) -> list:
    ordered = []
    for i in range(max(len(first), len(second))):
        if i < len(first):
            ordered.append(first[i])
        if i < len(second):
            ordered.append(second[i])
    return ordered


def _line_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    if facing.faces_right:
        return _alternate(melee, ranged)
    return _alternate(ranged, melee)


def _arc_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    total = len(melee) + len(ranged)
    flank = [False] * total
    for i in range(len(melee)):
        if i % 2 == 0:
            flank[i // 2] = True
        else:
            flank[total - 1 - i // 2] = True

    melee_iter, ranged_iter = iter(melee), iter(ranged)
    ordered = []
    for is_flank in flank:
        ordered.append(next(melee_iter) if is_flank else next(ranged_iter))
    return ordered


def _grid_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    total = len(melee) + len(ranged)
    cols = int(math.ceil(math.sqrt(total)))
    rows = int(math.ceil(total / cols))

    melee_left, ranged_left = list(melee), list(ranged)
    ordered = []
    for r in range(rows):
        for c in range(cols):
            if len(ordered) >= total:
                break
            perimeter = r == 0 or r == rows - 1 or c == 0 or c == cols - 1
            if perimeter and melee_left:
                ordered.append(melee_left.pop(0))
            elif ranged_left:
                ordered.append(ranged_left.pop(0))
            else:
                ordered.append(melee_left.pop(0))
    return ordered


def _cross_order(melee: list, ranged: list, facing: Facing) -> list:
    if len(melee) == 1:
        return melee + ranged
    if len(ranged) == 1:
        return ranged + melee
    return default_order(melee, ranged, facing)


def _circle_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    return _alternate(melee, ranged)


def _wedge_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    melee_left, ranged_left = list(melee), list(ranged)
    ordered = [melee_left.pop(0)]
    prefer_melee = True
    while melee_left or ranged_left:
        if prefer_melee and melee_left:
            ordered.append(melee_left.pop(0))
        elif ranged_left:
            ordered.append(ranged_left.pop(0))
        else:
            ordered.append(melee_left.pop(0))
        prefer_melee = not prefer_melee
    return ordered


def _diamond_order(melee: list, ranged: list, facing: Facing) -> list:
    if not melee or not ranged:
        return melee + ranged
    melee_left, ranged_left = list(melee), list(ranged)
    ordered = []
    if (len(melee) + len(ranged)) % 2 == 1:
        ordered.append(ranged_left.pop(0))
    return ordered + _alternate(melee_left, ranged_left)


# --- scores -----------------------------------------------------------------

def _flat(melee: int, ranged: int) -> float:
    return 1.0


def _arc_score(melee: int, ranged: int) -> float:
    if melee == 0 or ranged == 0:
        return 1.2
    if abs(melee - ranged) <= 1:
        return 1.1
    return 0.9


def _cross_score(melee: int, ranged: int) -> float:
    return 1.5 if melee == 1 or ranged == 1 else 1.0


def _cluster_score(melee: int, ranged: int) -> float:
    return 1.3 if melee == 0 or ranged == 0 else 0.8


SHAPES: Dict[Shape, ShapeSpec] = {
    Shape.LINE: ShapeSpec(lambda n: n >= 1, _flat, _line, _line_order),
    Shape.ARC: ShapeSpec(lambda n: n >= 3, _arc_score, _arc, _arc_order),
    Shape.GRID: ShapeSpec(lambda n: 4 <= n <= 25, _flat, _grid, _grid_order),
    Shape.CROSS: ShapeSpec(lambda n: n >= 5 and (n - 1) % 4 <= 2, _cross_score, _cross, _cross_order),
    Shape.CIRCLE: ShapeSpec(lambda n: 4 <= n <= 20, _flat, _circle, _circle_order),
    Shape.CLUSTER: ShapeSpec(lambda n: 1 <= n <= 15, _cluster_score, _cluster, default_order),
    Shape.WEDGE: ShapeSpec(lambda n: 3 <= n <= 15, _flat, _wedge, _wedge_order),
    Shape.DIAMOND: ShapeSpec(lambda n: 5 <= n <= 17, _flat, _diamond, _diamond_order),
}


def shapes_for(count: int) -> List[Shape]:
    """Shapes able to hold ``count`` units, in table order."""
    return [shape for shape, spec in SHAPES.items() if spec.can_handle(count)]


def choose_shape(melee: int, ranged: int, rng: random.Random) -> Shape:
    """Weighted draw over the shapes that can hold ``melee + ranged`` units."""
    candidates = shapes_for(melee + ranged) or [Shape.LINE]
    scores = [SHAPES[s].score(melee, ranged) for s in candidates]
    value = rng.random() * sum(scores)
    cumulative = 0.0
    for shape, score in zip(candidates, scores):
        cumulative += score
        if value <= cumulative:
            return shape
    return candidates[-1]


def shape_positions(
    shape: Shape,
    count: int,
    area: FormationArea,
    min_distance: float,
    facing: Facing,
    rng: random.Random,
) -> List[Vector2]:
    """
    Generate ``count`` points for ``shape``, clamped and separated inside ``area``.

    Raises:
        FormationError: If count is not positive
    """
    if count <= 0:
        raise FormationError(
            f"Cannot place {count} units in a {shape.value}",
            user_message="A formation needs at least one unit.",
        )
    raw = SHAPES[shape].generate(count, area, min_distance, facing, rng)
    return finalize_shape_points(raw, count, area, min_distance, rng)


def order_units(shape: Shape, melee: list, ranged: list, facing: Facing) -> list:
    return SHAPES[shape].order(melee, ranged, facing)
