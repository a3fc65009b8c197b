"""
Formation geometry primitives.

Points are ``pygame.Vector2`` while a layout is being built and plain
``(x, y)`` tuples once they are stored on a UnitStartingData.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence, Tuple

from pygame.math import Vector2

from engine.error_handler import FormationError

# Float slack for bounds / separation comparisons
EPSILON = 1e-6


def to_vector(point) -> Vector2:
    return Vector2(float(point[0]), float(point[1]))


def to_tuple(point) -> Tuple[float, float]:
    return (float(point[0]), float(point[1]))


@dataclass(frozen=True)
class FormationArea:
    """Axis-aligned rectangle a formation must stay inside."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self):
        if not (self.max_x > self.min_x and self.max_y > self.min_y):
            raise FormationError(
                f"Invalid formation area x=[{self.min_x}, {self.max_x}] y=[{self.min_y}, {self.max_y}]"
            )

    @classmethod
    def from_bounds(cls, x_bound: float, y_bound: float) -> "FormationArea":
        """The whole battlefield, centred on the origin."""
        return cls(-x_bound, x_bound, -y_bound, y_bound)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Vector2:
        return Vector2((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def contains(self, point, margin: float = 0.0) -> bool:
        x, y = point[0], point[1]
        return (
            self.min_x + margin - EPSILON <= x <= self.max_x - margin + EPSILON
            and self.min_y + margin - EPSILON <= y <= self.max_y - margin + EPSILON
        )

    def shrink(self, margin: float) -> "FormationArea":
        """
        Inset every edge by ``margin``.

        The inset is capped per axis so the result always keeps a positive
        extent; a margin larger than the area collapses toward the centre.
        """
        mx = min(margin, self.width * 0.49)
        my = min(margin, self.height * 0.49)
        return FormationArea(self.min_x + mx, self.max_x - mx, self.min_y + my, self.max_y - my)

    def clamp(self, point, margin: float = 0.0) -> Vector2:
        inner = self.shrink(margin) if margin > 0 else self
        x = min(max(point[0], inner.min_x), inner.max_x)
        y = min(max(point[1], inner.min_y), inner.max_y)
        return Vector2(x, y)

    def overlaps(self, other: "FormationArea", buffer: float = 0.0) -> bool:
        """True unless the two areas are more than ``buffer`` apart on some axis."""
        return not (
            self.max_x + buffer < other.min_x
            or other.max_x + buffer < self.min_x
            or self.max_y + buffer < other.min_y
            or other.max_y + buffer < self.min_y
        )

    def translated(self, dx: float, dy: float) -> "FormationArea":
        return FormationArea(self.min_x + dx, self.max_x + dx, self.min_y + dy, self.max_y + dy)

    def random_point(self, rng) -> Vector2:
        return Vector2(rng.uniform(self.min_x, self.max_x), rng.uniform(self.min_y, self.max_y))


class Facing(Enum):
    RIGHT = "right"
    LEFT = "left"
    UP = "up"
    DOWN = "down"
    UP_RIGHT = "up_right"
    UP_LEFT = "up_left"
    DOWN_RIGHT = "down_right"
    DOWN_LEFT = "down_left"

    @property
    def faces_right(self) -> bool:
        return self in (Facing.RIGHT, Facing.UP_RIGHT, Facing.DOWN_RIGHT)

    @property
    def rotation_degrees(self) -> float:
        return _ROTATIONS.get(self, 0.0)

    @property
    def is_horizontal(self) -> bool:
        return self in (Facing.RIGHT, Facing.LEFT)


_ROTATIONS = {
    Facing.UP: 90.0,
    Facing.DOWN: -90.0,
    Facing.UP_RIGHT: 45.0,
    Facing.UP_LEFT: 135.0,
    Facing.DOWN_RIGHT: -45.0,
    Facing.DOWN_LEFT: -135.0,
}


class Role(Enum):
    MELEE = "melee"
    RANGED = "ranged"


def role_of(unit, catalog) -> Role:
    """Ranged when the unit's class prefers a ranged weapon; unknown classes are melee."""
    return Role.RANGED if catalog.is_ranged_class(unit.unit_class) else Role.MELEE


def split_by_role(units: Iterable, catalog) -> Tuple[list, list]:
    """(melee, ranged), each keeping the input order."""
    melee, ranged = [], []
    for unit in units:
        if role_of(unit, catalog) == Role.RANGED:
            ranged.append(unit)
        else:
            melee.append(unit)
    return melee, ranged


def min_pairwise_distance(points: Sequence) -> float:
    """Smallest distance between any two points; ``inf`` for fewer than two."""
    best = math.inf
    vectors = [to_vector(p) for p in points]
    for i in range(len(vectors)):
        for j in range(i + 1, len(vectors)):
            d = vectors[i].distance_to(vectors[j])
            if d < best:
                best = d
    return best


def is_far_enough(candidate, points: Iterable, min_distance: float) -> bool:
    c = to_vector(candidate)
    for p in points:
        if c.distance_to(to_vector(p)) < min_distance - EPSILON:
            return False
    return True


def separation_conflicts(points: Sequence, min_distance: float, existing: Iterable = ()) -> List[int]:
    """
    Indices of points that must move for the set to hold ``min_distance``.

    Points are kept greedily in order; a point is a conflict when it is too
    close to ``existing`` or to an earlier kept point.
    """
    kept = [to_vector(p) for p in existing]
    conflicts = []
    for i, p in enumerate(points):
        if is_far_enough(p, kept, min_distance):
            kept.append(to_vector(p))
        else:
            conflicts.append(i)
    return conflicts


def rotate_about(point, pivot, degrees: float) -> Vector2:
    """Rotate ``point`` counter-clockwise around ``pivot``."""
    return (to_vector(point) - to_vector(pivot)).rotate(degrees) + to_vector(pivot)
