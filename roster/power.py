"""
Power model.

Converts a unit's scale factor into a scalar "power" used to budget enemy
rosters. Bosses (scale > 1) grow exponentially since both their health and
damage compound; weaker units shrink quadratically.
"""

from __future__ import annotations

import math
from typing import Iterable


def unit_power(scale_factor: float) -> float:
    """
    Power of a single unit.

    Args:
        scale_factor: Relative strength multiplier (1.0 = baseline)

    Returns:
        scale² for scale <= 1, e^scale above that
    """
    if scale_factor > 1:
        return math.exp(scale_factor)
    return scale_factor * scale_factor


def total_power(scale_factors: Iterable[float]) -> float:
    return sum(unit_power(s) for s in scale_factors)


def team_power(composition) -> float:
    """Sum of unit power over every unit in a TeamComposition."""
    return total_power(u.scale_factor for u in composition.all_units())
