"""
Unit placement.

Turns rosters into non-overlapping positions on the battlefield: basic
shapes, mini formations, and the per-mode layouts built on top of them.
"""

from .geometry import (
    FormationArea,
    Facing,
    Role,
    is_far_enough,
    min_pairwise_distance,
    role_of,
    rotate_about,
    separation_conflicts,
    split_by_role,
)
from .layouts import (
    battle_royale_positions,
    class_based_formation,
    distribute_units_to_groups,
    formation_for_single_team,
    optimal_team_separation,
    separate_units,
    spread_positions,
    two_team_areas,
    two_team_positions,
)
from .mini_shapes import Shape, choose_shape, order_units, shape_positions, shapes_for
from .packer import find_empty_area, generate_mini_formations, select_units_for_formation
from .reinforcements import ReinforcementSchedule, spawn_area_for_edge, spawn_reinforcement_wave
from .seize import default_capture_point, defensive_ring_positions, seize_positions
from .shapes import (
    circular_positions,
    columnar_positions,
    distributed_grid_positions,
    enforce_separation,
    generate_team_positions,
    grid_positions,
    line_positions,
    poisson_disc_positions,
    scatter_fill,
)
from .survive import (
    OuterBand,
    center_area_ratio,
    distribute_units_among_rings,
    distribute_units_among_sectors,
    ring_positions,
    survive_positions,
)
from .teams import divide_map_into_team_areas, optimal_grid, rotate_into_area, team_battle_positions

__all__ = [
    # Geometry
    "FormationArea",
    "Facing",
    "Role",
    "role_of",
    "split_by_role",
    "is_far_enough",
    "min_pairwise_distance",
    "separation_conflicts",
    "rotate_about",
    # Basic shapes
    "scatter_fill",
    "poisson_disc_positions",
    "enforce_separation",
    "line_positions",
    "columnar_positions",
    "grid_positions",
    "distributed_grid_positions",
    "circular_positions",
    "generate_team_positions",
    # Mini formations
    "Shape",
    "shapes_for",
    "choose_shape",
    "shape_positions",
    "order_units",
    "find_empty_area",
    "select_units_for_formation",
    "generate_mini_formations",
    # Layouts
    "separate_units",
    "distribute_units_to_groups",
    "spread_positions",
    "class_based_formation",
    "formation_for_single_team",
    "optimal_team_separation",
    "two_team_areas",
    "two_team_positions",
    "battle_royale_positions",
    "optimal_grid",
    "divide_map_into_team_areas",
    "rotate_into_area",
    "team_battle_positions",
    "default_capture_point",
    "defensive_ring_positions",
    "seize_positions",
    "OuterBand",
    "center_area_ratio",
    "distribute_units_among_rings",
    "distribute_units_among_sectors",
    "ring_positions",
    "survive_positions",
    # Reinforcements
    "spawn_area_for_edge",
    "spawn_reinforcement_wave",
    "ReinforcementSchedule",
]
