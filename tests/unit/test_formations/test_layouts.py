"""
Unit tests for whole-team layouts.
"""

import random

import pytest

from formations.geometry import EPSILON, Facing, FormationArea, min_pairwise_distance, split_by_role
from formations.layouts import (
    battle_royale_positions,
    class_based_formation,
    distribute_units_to_groups,
    formation_for_single_team,
    optimal_team_separation,
    spread_positions,
    split_front_back,
    two_team_areas,
    two_team_positions,
)
from roster.types import CompositionBuilder

D = 1.386


def _team(team_id, melee=6, ranged=6):
    builder = CompositionBuilder(team_id)
    for i in range(melee):
        builder.add_unit("Knight" if i % 2 else "Warrior", f"melee{team_id}_{i}")
    for i in range(ranged):
        builder.add_unit("Archer" if i % 2 else "Mage", f"ranged{team_id}_{i}")
    return builder.build()


def _positions(units):
    return [u.position for u in units]


class TestHelpers:
    """Tests for the layout helpers."""

    def test_split_front_back_facing_right(self):
        """Test that melee stands on the side the team faces."""
        melee, ranged = split_front_back(FormationArea(0, 10, 0, 4), 0.6, Facing.RIGHT)
        assert (melee.min_x, melee.max_x) == pytest.approx((4.0, 10.0))
        assert (ranged.min_x, ranged.max_x) == pytest.approx((0.0, 4.0))

    def test_split_front_back_facing_left(self):
        """Test the mirrored split."""
        melee, ranged = split_front_back(FormationArea(0, 10, 0, 4), 0.6, Facing.LEFT)
        assert (melee.min_x, melee.max_x) == pytest.approx((0.0, 6.0))
        assert (ranged.min_x, ranged.max_x) == pytest.approx((6.0, 10.0))

    @pytest.mark.parametrize("total,groups", [(10, 3), (4, 4), (0, 2), (17, 2)])
    def test_distribute_units_to_groups_conserves_count(self, total, groups, rng):
        """Test that group sizes always add up to the total."""
        distribution = distribute_units_to_groups(total, groups, rng)
        assert len(distribution) == groups
        assert sum(distribution) == total
        assert all(n >= 0 for n in distribution)

    def test_spread_positions(self, rng):
        """Test the loose spread used for single-role teams."""
        area = FormationArea(-10, 0, -6, 6)
        for count in (3, 12, 20):
            points = spread_positions(count, area, D, rng)
            assert len(points) == count
            assert min_pairwise_distance(points) >= D - EPSILON
            assert all(area.contains(p) for p in points)


class TestSingleTeam:
    """Tests for class-based and single-team formations."""

    @pytest.mark.parametrize("seed", range(10))
    def test_class_based_places_everyone(self, seed, catalog):
        """Test that every unit is placed, separated, inside the area."""
        area = FormationArea(-16, -1, -9, 9)
        team = _team(1)
        placed = class_based_formation(team, area, D, Facing.RIGHT, random.Random(seed), catalog)

        assert sorted(u.unit_name for u in placed) == sorted(u.unit_name for u in team.all_units())
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON
        assert all(area.contains(u.position) for u in placed)

    def test_melee_stands_in_front(self, catalog):
        """Test that melee units stand closer to the enemy than ranged ones."""
        area = FormationArea(-16, -1, -9, 9)
        for seed in range(5):
            placed = class_based_formation(_team(1), area, D, Facing.RIGHT, random.Random(seed), catalog)
            melee, ranged = split_by_role(placed, catalog)
            melee_x = sum(u.position[0] for u in melee) / len(melee)
            ranged_x = sum(u.position[0] for u in ranged) / len(ranged)
            assert melee_x > ranged_x

    def test_single_role_team(self, catalog, rng):
        """Test a team with only ranged units."""
        placed = class_based_formation(_team(1, melee=0, ranged=9), FormationArea(0, 12, 0, 8), D, Facing.LEFT, rng, catalog)
        assert len(placed) == 9
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON

    @pytest.mark.parametrize("chance", [0.0, 1.0])
    def test_formation_for_single_team(self, chance, catalog, rng):
        """Test both the mini-formation and class-based paths."""
        area = FormationArea(1, 16, -9, 9)
        team = _team(2, melee=8, ranged=5)
        placed = formation_for_single_team(team, area, D, Facing.LEFT, rng, catalog, chance)

        assert len(placed) == 13
        assert {u.team_id for u in placed} == {2}
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON

    def test_empty_team(self, catalog, rng):
        """Test that an empty team places nothing."""
        empty = CompositionBuilder(1).build()
        assert formation_for_single_team(empty, FormationArea(0, 5, 0, 5), D, Facing.RIGHT, rng, catalog) == []


class TestTwoTeams:
    """Tests for the default two-team layout."""

    def test_separation_is_capped_by_map(self):
        """Test that the gap never exceeds 80% of the smaller bound."""
        assert optimal_team_separation(200, 200, D, 16, 9) == pytest.approx(9 * 0.8)
        assert optimal_team_separation(1, 1, D, 16, 9) < 9 * 0.8

    def test_areas_leave_a_gap(self):
        """Test that the two halves face each other across a gap."""
        (left, left_facing), (right, right_facing) = two_team_areas(20, 20, D, 16, 9)
        assert left_facing == Facing.RIGHT
        assert right_facing == Facing.LEFT
        assert right.min_x - left.max_x >= D - EPSILON

    def test_large_battles_shrink_the_gap(self):
        """Test that very large battles use a smaller no-man's-land."""
        (small_left, _), _ = two_team_areas(20, 20, D, 16, 9)
        (large_left, _), _ = two_team_areas(150, 150, D, 16, 9)
        assert large_left.max_x >= small_left.max_x

    @pytest.mark.parametrize("seed", range(6))
    def test_teams_on_their_own_halves(self, seed, catalog):
        """Test that team 1 stays left, team 2 right, with spacing everywhere."""
        placed = two_team_positions([_team(1), _team(2, melee=8, ranged=4)], 16, 9, D, random.Random(seed), catalog)

        team1 = [u for u in placed if u.team_id == 1]
        team2 = [u for u in placed if u.team_id == 2]
        assert len(team1) == 12 and len(team2) == 12
        assert all(u.position[0] < 0 for u in team1)
        assert all(u.position[0] > 0 for u in team2)
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON


class TestBattleRoyale:
    """Tests for the free-for-all layout."""

    def test_small_battle_is_a_ring(self, catalog, rng):
        """Test that a small free-for-all puts everyone on team 0 in a ring."""
        placed = battle_royale_positions(_team(1, melee=5, ranged=5), 16, 9, D, rng)
        radii = {round((u.position[0] ** 2 + u.position[1] ** 2) ** 0.5, 4) for u in placed}

        assert len(placed) == 10
        assert {u.team_id for u in placed} == {0}
        assert len(radii) == 1
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON

    def test_large_battle_is_a_grid(self, rng):
        """Test that a big free-for-all spreads over the map with spacing."""
        placed = battle_royale_positions(_team(1, melee=20, ranged=20), 16, 9, D, rng)
        area = FormationArea.from_bounds(16, 9)

        assert len(placed) == 40
        assert all(area.contains(u.position) for u in placed)
        assert min_pairwise_distance(_positions(placed)) >= D - EPSILON
