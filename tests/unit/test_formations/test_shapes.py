"""
Unit tests for the basic position generators.
"""

import random

import pytest
from pygame.math import Vector2

from engine.error_handler import FormationError
from formations.geometry import EPSILON, FormationArea, min_pairwise_distance
from formations.shapes import (
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


def assert_spaced(points, min_distance):
    assert min_pairwise_distance(points) >= min_distance - EPSILON


def assert_inside(points, area):
    assert all(area.contains(p) for p in points)


class TestGenerateTeamPositions:
    """Tests for generate_team_positions."""

    def test_four_units_in_open_square(self, rng):
        """Test that four units in a 10x10 square keep their spacing."""
        area = FormationArea(-5, 5, -5, 5)
        points = generate_team_positions(4, area, 1.26, rng)

        assert len(points) == 4
        assert_spaced(points, 1.26)
        assert_inside(points, area)

    @pytest.mark.parametrize("count", [1, 7, 15, 30])
    def test_counts_and_spacing(self, count):
        """Test several team sizes in a roomy area."""
        area = FormationArea(-8, 8, -6, 6)
        points = generate_team_positions(count, area, 1.386, random.Random(count))
        assert len(points) == count
        assert_spaced(points, 1.386)
        assert_inside(points, area)

    def test_tall_area_uses_columns(self, rng):
        """Test that a tall narrow area still gets a valid layout."""
        area = FormationArea(0, 3, 0, 12)
        points = generate_team_positions(12, area, 1.0, rng)
        assert len(points) == 12
        assert_spaced(points, 1.0)
        assert_inside(points, area)

    def test_non_positive_count_raises(self, rng):
        """Test that an empty formation is rejected."""
        with pytest.raises(FormationError):
            generate_team_positions(0, FormationArea(0, 5, 0, 5), 1.0, rng)

    def test_same_seed_same_points(self):
        """Test that positions are reproducible."""
        area = FormationArea(-6, 6, -6, 6)
        first = generate_team_positions(20, area, 1.2, random.Random(42))
        second = generate_team_positions(20, area, 1.2, random.Random(42))
        assert first == second


class TestLinePositions:
    """Tests for line_positions."""

    def test_line_runs_along_longer_axis(self, rng):
        """Test that a wide area gets a horizontal line."""
        area = FormationArea(0, 10, 0, 2)
        points = line_positions(5, area, 1.0, rng)
        assert len({round(p.y, 6) for p in points}) == 1
        assert_spaced(points, 1.0)

    def test_long_line_wraps_into_rows(self, rng):
        """Test that a line too long for the area wraps."""
        area = FormationArea(0, 5, 0, 3)
        points = line_positions(10, area, 1.0, rng)

        assert len(points) == 10
        assert len({round(p.y, 6) for p in points}) == 2
        assert_spaced(points, 1.0)
        assert_inside(points, area)

    def test_empty(self, rng):
        """Test that zero units gives no points."""
        assert line_positions(0, FormationArea(0, 5, 0, 5), 1.0, rng) == []


class TestRegularShapes:
    """Tests for the grid, column and circle generators."""

    def test_grid_cells_keep_spacing(self, rng):
        """Test that jitter never breaks grid spacing."""
        area = FormationArea(-5, 5, -5, 5)
        points = grid_positions(16, area, 1.0, rng)
        assert len(points) == 16
        assert_spaced(points, 1.0)
        assert_inside(points, area)

    def test_columns(self, rng):
        """Test columns in a tall area."""
        area = FormationArea(0, 3, 0, 12)
        points = columnar_positions(12, area, 1.0, rng)
        assert len(points) == 12
        assert_spaced(points, 1.0)

    def test_distributed_grid(self, rng):
        """Test that the distributed grid spreads units with spacing."""
        area = FormationArea(-6, 6, -6, 6)
        points = distributed_grid_positions(9, area, 1.0, rng)
        assert len(points) == 9
        assert_spaced(points, 1.0)
        assert_inside(points, area)

    def test_circle_is_a_ring(self, rng):
        """Test that circle points share one radius around the centre."""
        area = FormationArea(-5, 5, -5, 5)
        points = circular_positions(8, area, 1.0, rng)
        radii = {round(p.length(), 6) for p in points}

        assert len(points) == 8
        assert radii == {4.0}
        assert_spaced(points, 1.0)

    def test_single_unit_circle_is_the_centre(self, rng):
        """Test that a one-unit circle stands at the centre."""
        assert circular_positions(1, FormationArea(0, 4, 0, 2), 1.0, rng) == [Vector2(2, 1)]

    def test_crowded_circle_falls_back(self, rng):
        """Test that a ring too large for its area is sampled instead."""
        area = FormationArea(0, 4, 0, 4)
        points = circular_positions(30, area, 1.0, rng)
        assert len(points) == 30
        assert_inside(points, area)


class TestSampling:
    """Tests for Poisson sampling, scatter fill and separation repair."""

    def test_poisson_respects_existing(self, rng):
        """Test that sampled points keep clear of existing ones."""
        area = FormationArea(-5, 5, -5, 5)
        existing = [Vector2(0, 0), Vector2(2, 2)]
        points = poisson_disc_positions(15, area, 1.0, rng, existing=existing)

        assert len(points) == 15
        assert_spaced(points + existing, 1.0)
        assert_inside(points, area)

    def test_scatter_fill_always_returns_count(self, rng):
        """Test that a crowded area still gets every point."""
        area = FormationArea(0, 2, 0, 2)
        points = scatter_fill(40, area, 1.0, rng)
        assert len(points) == 40
        assert_inside(points, area)

    def test_scatter_fill_roomy_area_keeps_spacing(self, rng):
        """Test full spacing when there is room."""
        area = FormationArea(0, 20, 0, 20)
        points = scatter_fill(10, area, 1.0, rng)
        assert_spaced(points, 1.0)

    def test_scatter_fill_zero(self, rng):
        """Test that no points are requested."""
        assert scatter_fill(0, FormationArea(0, 1, 0, 1), 1.0, rng) == []

    def test_enforce_separation_keeps_good_points(self, rng):
        """Test that only conflicting points move, in place."""
        area = FormationArea(-5, 5, -5, 5)
        points = [Vector2(0, 0), Vector2(0.2, 0), Vector2(3, 3), Vector2(9, 0)]
        fixed = enforce_separation(points, area, 1.0, rng)

        assert len(fixed) == 4
        assert fixed[0] == Vector2(0, 0)
        assert fixed[2] == Vector2(3, 3)
        assert fixed[3] == Vector2(5, 0)
        assert_spaced(fixed, 1.0)
        assert_inside(fixed, area)

    def test_enforce_separation_against_existing(self, rng):
        """Test that points are moved off existing positions."""
        area = FormationArea(-5, 5, -5, 5)
        fixed = enforce_separation([Vector2(1, 1)], area, 1.0, rng, existing=[Vector2(1, 1.2)])
        assert fixed[0].distance_to(Vector2(1, 1.2)) >= 1.0 - EPSILON
