"""
Unit tests for the power model.
"""

import math

import pytest

from roster.power import team_power, total_power, unit_power
from roster.types import CompositionBuilder


class TestUnitPower:
    """Tests for unit_power."""

    def test_baseline_unit_has_power_one(self):
        """Test that a scale of 1.0 is worth exactly one unit."""
        assert unit_power(1.0) == 1.0

    def test_weak_units_shrink_quadratically(self):
        """Test that scales at or below 1 are squared."""
        assert unit_power(0.5) == pytest.approx(0.25)
        assert unit_power(0.7) == pytest.approx(0.49)
        assert unit_power(0.0) == 0.0

    def test_bosses_grow_exponentially(self):
        """Test that scales above 1 use e^scale."""
        assert unit_power(1.5) == pytest.approx(math.exp(1.5))
        assert unit_power(2.5) == pytest.approx(math.exp(2.5))

    def test_power_is_monotonic(self):
        """Test that a stronger unit is never worth less."""
        scales = [0.1, 0.5, 0.7, 1.0, 1.2, 1.5, 2.0, 2.5]
        powers = [unit_power(s) for s in scales]
        assert powers == sorted(powers)


class TestTotalPower:
    """Tests for total_power and team_power."""

    def test_total_power_sums_units(self):
        """Test that total power is the sum over units."""
        assert total_power([1.0, 0.5, 0.5]) == pytest.approx(1.5)

    def test_total_power_of_nothing(self):
        """Test that an empty roster has no power."""
        assert total_power([]) == 0.0

    def test_team_power_matches_composition_power(self):
        """Test that team_power agrees with TeamComposition.power."""
        builder = CompositionBuilder(2)
        builder.add_unit("Sorcerer", "Mirela", 2.0)
        builder.add_unit("Knight", "Soldier", 0.7)
        builder.add_unit("Knight", "Soldier", 1.0)
        team = builder.build()

        expected = math.exp(2.0) + 0.49 + 1.0
        assert team_power(team) == pytest.approx(expected)
        assert team.power == pytest.approx(expected)
