"""
Roster generation.

Decides which characters and classes make up each team and how strong
they are. Placement lives in ``formations``.
"""

from .catalog import (
    CharacterRecord,
    ClassRecord,
    InMemoryCatalog,
    JsonCatalog,
    MovementType,
    StatType,
    UnitCatalog,
    Weapon,
    load_catalog,
)
from .distributions import (
    CompositionData,
    CompositionLibrary,
    GuaranteedClass,
    TeamClassDistribution,
    WeightedEntry,
    determine_compositions_with_relative_strength,
    determine_team_composition,
    estimate_unit_count,
    generate_random_only_composition,
    load_compositions,
)
from .enemy_generator import generate_enemy_composition
from .player_generator import (
    default_composition,
    generate_fixed_character_composition,
    generate_random_composition,
    generate_themed_composition,
)
from .power import team_power, total_power, unit_power
from .team_battle import determine_number_of_teams, valid_team_counts, valid_team_ids
from .themes import Theme, available_themes, select_theme
from .types import ClassCount, CompositionBuilder, CompositionResult, TeamComposition, UnitStartingData

__all__ = [
    # Types
    "UnitStartingData",
    "ClassCount",
    "TeamComposition",
    "CompositionBuilder",
    "CompositionResult",
    # Catalog
    "UnitCatalog",
    "InMemoryCatalog",
    "JsonCatalog",
    "CharacterRecord",
    "ClassRecord",
    "Weapon",
    "StatType",
    "MovementType",
    "load_catalog",
    # Power
    "unit_power",
    "total_power",
    "team_power",
    # Themes
    "Theme",
    "available_themes",
    "select_theme",
    # Generators
    "generate_random_composition",
    "generate_themed_composition",
    "generate_fixed_character_composition",
    "default_composition",
    "generate_enemy_composition",
    # Authored distributions
    "CompositionData",
    "CompositionLibrary",
    "GuaranteedClass",
    "TeamClassDistribution",
    "WeightedEntry",
    "determine_team_composition",
    "determine_compositions_with_relative_strength",
    "estimate_unit_count",
    "generate_random_only_composition",
    "load_compositions",
    # Team battle
    "determine_number_of_teams",
    "valid_team_counts",
    "valid_team_ids",
]
