"""
Theme selection.

A theme decides how a roster "belongs together" (same character, shared
flag, same weapon, ...). Themes that need catalog data only become
candidates when the catalog actually has that data.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Callable, Dict, List, Tuple

from engine.error_handler import get_logger
from .catalog import UnitCatalog

log = get_logger(__name__)


class Theme(Enum):
    SAME_CHARACTER = "same_character"
    FLAG_BASED = "flag_based"
    SAME_CLASS = "same_class"
    CLASS_FLAG_BASED = "class_flag_based"
    PROMOTION_BASED = "promotion_based"
    WEAPON_BASED = "weapon_based"
    STAT_BASED = "stat_based"
    RANDOM = "random"


PLAYER_THEMES = (
    Theme.SAME_CHARACTER,
    Theme.FLAG_BASED,
    Theme.SAME_CLASS,
    Theme.CLASS_FLAG_BASED,
    Theme.PROMOTION_BASED,
    Theme.WEAPON_BASED,
    Theme.STAT_BASED,
)

ENEMY_THEMES = (
    Theme.FLAG_BASED,
    Theme.SAME_CLASS,
    Theme.CLASS_FLAG_BASED,
    Theme.WEAPON_BASED,
    Theme.STAT_BASED,
    Theme.RANDOM,
)

# Themes that only make sense when the catalog can answer the query
_REQUIREMENTS: Dict[Theme, Callable[[UnitCatalog], bool]] = {
    Theme.FLAG_BASED: lambda c: bool(c.character_flags()),
    Theme.CLASS_FLAG_BASED: lambda c: bool(c.class_flags()),
    Theme.WEAPON_BASED: lambda c: bool(c.preferred_weapons()),
    Theme.STAT_BASED: lambda c: bool(c.stat_types()) and c.class_count() > 0,
}


def available_themes(catalog: UnitCatalog, weights: Dict[str, float]) -> List[Tuple[Theme, float]]:
    """
    Themes that can be drawn for this catalog, with their weights.

    Args:
        catalog: Catalog the roster will be drawn from
        weights: Weight per theme value (e.g. {"flag_based": 40.0})

    Returns:
        (theme, weight) pairs in weight-table order; zero weights are dropped
    """
    candidates = []
    for key, weight in weights.items():
        try:
            theme = Theme(key)
        except ValueError:
            log.warning(f"Ignoring unknown theme weight key: {key}")
            continue
        if weight <= 0:
            continue
        requirement = _REQUIREMENTS.get(theme)
        if requirement is not None and not requirement(catalog):
            continue
        candidates.append((theme, float(weight)))
    return candidates


def select_theme(rng: random.Random, catalog: UnitCatalog, weights: Dict[str, float]) -> Theme:
    """
    Weighted draw over the available themes.

    Falls back to SAME_CHARACTER when nothing is available (the caller's
    own fallbacks then take over).
    """
    candidates = available_themes(catalog, weights)
    total = sum(w for _, w in candidates)
    if not candidates or total <= 0:
        log.debug("No theme candidates, defaulting to same_character")
        return Theme.SAME_CHARACTER

    value = rng.random() * total
    cumulative = 0.0
    for theme, weight in candidates:
        cumulative += weight
        if value <= cumulative:
            return theme
    return candidates[-1][0]
