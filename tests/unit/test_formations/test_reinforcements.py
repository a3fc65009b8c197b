"""
Unit tests for survive reinforcement waves.
"""

import json
import random

import pytest

from formations.geometry import EPSILON, FormationArea, min_pairwise_distance
from formations.reinforcements import (
    EDGES,
    ReinforcementSchedule,
    spawn_area_for_edge,
    spawn_reinforcement_wave,
)
from telemetry.logger import telemetry


class TestSpawnArea:
    """Tests for spawn_area_for_edge."""

    @pytest.mark.parametrize("edge", EDGES)
    def test_area_inside_map(self, edge):
        """Test that every edge area lies inside the battlefield."""
        area = spawn_area_for_edge(edge, 16, 9)
        bounds = FormationArea.from_bounds(16, 9)
        assert bounds.contains((area.min_x, area.min_y))
        assert bounds.contains((area.max_x, area.max_y))
        assert area.width == pytest.approx(5.0)

    def test_area_touches_its_edge(self):
        """Test that each area sits against the edge it is named after."""
        assert spawn_area_for_edge("right", 16, 9).max_x == 16
        assert spawn_area_for_edge("left", 16, 9).min_x == -16
        assert spawn_area_for_edge("top", 16, 9).max_y == 9
        assert spawn_area_for_edge("bottom", 16, 9).min_y == -9

    def test_small_map_shrinks_area(self):
        """Test that the area never exceeds the map."""
        area = spawn_area_for_edge("right", 2, 1)
        assert area.width == pytest.approx(4.0)
        assert area.height == pytest.approx(2.0)

    def test_unknown_edge(self):
        """Test that an unknown edge is rejected."""
        with pytest.raises(ValueError):
            spawn_area_for_edge("middle", 16, 9)


class TestReinforcementWave:
    """Tests for spawn_reinforcement_wave."""

    @pytest.mark.parametrize("seed", range(8))
    def test_wave_size_team_and_area(self, seed, catalog):
        """Test that a wave respects its size range and stays in one edge area."""
        units = spawn_reinforcement_wave(
            None, random.Random(seed), catalog, 16, 9, 1.0, size_range=(2, 6),
        )

        assert 2 <= len(units) <= 6
        assert all(u.team_id == 2 for u in units)
        assert all(u.unit_class == "Knight" for u in units)
        areas = [spawn_area_for_edge(edge, 16, 9) for edge in EDGES]
        assert any(all(area.contains(u.position) for u in units) for area in areas)
        assert min_pairwise_distance([u.position for u in units]) >= 1.0 - EPSILON

    def test_custom_team(self, catalog, rng):
        """Test that waves can join another team."""
        units = spawn_reinforcement_wave(None, rng, catalog, 16, 9, 1.0, team_id=3, size_range=(3, 3))
        assert len(units) == 3
        assert {u.team_id for u in units} == {3}

    def test_wave_is_logged(self, catalog, rng, tmp_path):
        """Test that each wave is reported to telemetry."""
        path = tmp_path / "events.jsonl"
        telemetry.init(path)
        spawn_reinforcement_wave(None, rng, catalog, 16, 9, 1.0, size_range=(2, 2))
        telemetry.close()

        events = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        waves = [e for e in events if e["event"] == "reinforcement_wave"]
        assert len(waves) == 1
        assert waves[0]["units"] == 2
        assert waves[0]["edge"] in EDGES


class TestReinforcementSchedule:
    """Tests for ReinforcementSchedule."""

    def test_first_call_starts_timer(self):
        """Test that the first check only starts the clock."""
        schedule = ReinforcementSchedule()
        assert not schedule.due(0.0)
        assert schedule.next_spawn_time == 5.0

    def test_due_after_interval(self):
        """Test that a wave is due once the interval has passed."""
        schedule = ReinforcementSchedule(interval=3.0)
        schedule.start(10.0)
        assert not schedule.due(12.9)
        assert schedule.due(13.0)

    def test_advance_resets_timer(self):
        """Test that advancing returns the wave count and restarts the clock."""
        schedule = ReinforcementSchedule()
        schedule.start(0.0)
        assert schedule.advance(6.0) == 2
        assert schedule.next_spawn_time == 11.0
        assert not schedule.due(10.0)
