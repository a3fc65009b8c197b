"""
Unit tests for formation geometry.
"""

import math

import pytest
from pygame.math import Vector2

from engine.error_handler import FormationError
from formations.geometry import (
    Facing,
    FormationArea,
    Role,
    is_far_enough,
    min_pairwise_distance,
    role_of,
    rotate_about,
    separation_conflicts,
    split_by_role,
)
from roster.types import UnitStartingData


class TestFormationArea:
    """Tests for FormationArea."""

    def test_degenerate_area_raises(self):
        """Test that an area without positive extent is rejected."""
        with pytest.raises(FormationError):
            FormationArea(1.0, 1.0, 0.0, 2.0)
        with pytest.raises(FormationError):
            FormationArea(0.0, 2.0, 3.0, -3.0)

    def test_from_bounds(self):
        """Test that bounds give a map centred on the origin."""
        area = FormationArea.from_bounds(16, 9)
        assert (area.width, area.height) == (32, 18)
        assert area.center == Vector2(0, 0)

    def test_contains_with_margin(self):
        """Test containment with and without an inset margin."""
        area = FormationArea(0, 10, 0, 10)
        assert area.contains((10, 10))
        assert not area.contains((10.1, 5))
        assert not area.contains((9.5, 5), margin=1.0)

    def test_shrink_never_inverts(self):
        """Test that a huge margin still leaves a valid area around the centre."""
        area = FormationArea(0, 2, 0, 2).shrink(5)
        assert area.width > 0 and area.height > 0
        assert area.center.x == pytest.approx(1.0)
        assert area.center.y == pytest.approx(1.0)

    def test_clamp(self):
        """Test clamping a point into the area, with and without margin."""
        area = FormationArea(-5, 5, -5, 5)
        assert area.clamp((9, -9)) == Vector2(5, -5)
        assert area.clamp((9, 0), margin=1) == Vector2(4, 0)
        assert area.clamp((1, 2)) == Vector2(1, 2)

    def test_overlaps_with_buffer(self):
        """Test overlap checks with a buffer gap."""
        a = FormationArea(0, 2, 0, 2)
        b = FormationArea(3, 5, 0, 2)
        assert not a.overlaps(b)
        assert a.overlaps(b, buffer=1.5)
        assert a.overlaps(FormationArea(1, 3, 1, 3))

    def test_random_point_inside(self, rng):
        """Test that random points stay inside."""
        area = FormationArea(-3, 1, 2, 4)
        assert all(area.contains(area.random_point(rng)) for _ in range(50))


class TestFacing:
    """Tests for Facing."""

    def test_faces_right(self):
        """Test which facings point toward +x."""
        assert Facing.RIGHT.faces_right
        assert Facing.UP_RIGHT.faces_right
        assert not Facing.LEFT.faces_right
        assert not Facing.UP.faces_right

    def test_rotation(self):
        """Test the rotation used for non-horizontal facings."""
        assert Facing.UP.rotation_degrees == 90.0
        assert Facing.RIGHT.rotation_degrees == 0.0
        assert Facing.DOWN_LEFT.rotation_degrees == -135.0


class TestRoles:
    """Tests for melee / ranged role helpers."""

    def test_role_of(self, catalog):
        """Test that ranged classes are detected through the catalog."""
        assert role_of(UnitStartingData(unit_class="Archer"), catalog) == Role.RANGED
        assert role_of(UnitStartingData(unit_class="Knight"), catalog) == Role.MELEE
        assert role_of(UnitStartingData(unit_class="Unknown"), catalog) == Role.MELEE

    def test_split_by_role_keeps_order(self, catalog):
        """Test that both role lists keep input order."""
        units = [
            UnitStartingData(unit_class="Mage", unit_name="a"),
            UnitStartingData(unit_class="Knight", unit_name="b"),
            UnitStartingData(unit_class="Archer", unit_name="c"),
            UnitStartingData(unit_class="Warrior", unit_name="d"),
        ]
        melee, ranged = split_by_role(units, catalog)
        assert [u.unit_name for u in melee] == ["b", "d"]
        assert [u.unit_name for u in ranged] == ["a", "c"]


class TestSeparation:
    """Tests for the separation helpers."""

    def test_min_pairwise_distance(self):
        """Test the closest-pair distance."""
        assert min_pairwise_distance([(0, 0), (3, 4), (0, 1)]) == pytest.approx(1.0)
        assert min_pairwise_distance([(0, 0)]) == math.inf

    def test_is_far_enough_tolerates_rounding(self):
        """Test that a point exactly min_distance away counts as far enough."""
        assert is_far_enough((1.0, 0.0), [(0.0, 0.0)], 1.0)
        assert not is_far_enough((0.5, 0.0), [(0.0, 0.0)], 1.0)

    def test_separation_conflicts_are_greedy(self):
        """Test that later points conflicting with kept ones are reported."""
        points = [(0, 0), (0.5, 0), (2, 0), (2.2, 0)]
        assert separation_conflicts(points, 1.0) == [1, 3]

    def test_separation_conflicts_with_existing(self):
        """Test that existing points block new ones."""
        assert separation_conflicts([(0, 0), (5, 0)], 1.0, existing=[(0.3, 0)]) == [0]

    def test_rotate_about(self):
        """Test a quarter turn around a pivot."""
        rotated = rotate_about((2, 1), (1, 1), 90)
        assert rotated.x == pytest.approx(1.0)
        assert rotated.y == pytest.approx(2.0)
