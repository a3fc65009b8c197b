"""
Unit tests for theme selection.
"""

import random
from collections import Counter

from engine.config import EnemyGenerationConfig, PlayerGenerationConfig
from roster.themes import Theme, available_themes, select_theme


class TestAvailableThemes:
    """Tests for available_themes."""

    def test_full_catalog_keeps_every_weighted_theme(self, catalog):
        """Test that a catalog with flags, weapons and stats allows every player theme."""
        weights = PlayerGenerationConfig().theme_weights
        themes = [theme for theme, _ in available_themes(catalog, weights)]
        assert set(themes) == {Theme(key) for key in weights}

    def test_empty_catalog_drops_data_themes(self, empty_catalog):
        """Test that themes needing catalog data are not offered without it."""
        weights = PlayerGenerationConfig().theme_weights
        themes = {theme for theme, _ in available_themes(empty_catalog, weights)}
        assert themes == {Theme.SAME_CHARACTER, Theme.SAME_CLASS, Theme.PROMOTION_BASED}

    def test_zero_weights_and_unknown_keys_are_ignored(self, catalog):
        """Test that zero weights and unknown keys never become candidates."""
        themes = available_themes(catalog, {"flag_based": 0.0, "moon_phase": 5.0, "same_class": 2.0})
        assert themes == [(Theme.SAME_CLASS, 2.0)]


class TestSelectTheme:
    """Tests for select_theme."""

    def test_single_candidate_always_wins(self, catalog):
        """Test that a lone weighted theme is always chosen."""
        rng = random.Random(3)
        for _ in range(10):
            assert select_theme(rng, catalog, {"weapon_based": 1.0}) == Theme.WEAPON_BASED

    def test_no_candidates_falls_back_to_same_character(self, empty_catalog):
        """Test the fallback when nothing can be drawn."""
        assert select_theme(random.Random(1), empty_catalog, {"flag_based": 10.0}) == Theme.SAME_CHARACTER
        assert select_theme(random.Random(1), empty_catalog, {}) == Theme.SAME_CHARACTER

    def test_weights_shape_the_draw(self, catalog):
        """Test that a heavily weighted theme dominates the draws."""
        rng = random.Random(11)
        counts = Counter(
            select_theme(rng, catalog, {"flag_based": 95.0, "same_class": 5.0}) for _ in range(400)
        )
        assert counts[Theme.FLAG_BASED] > counts[Theme.SAME_CLASS] * 5

    def test_enemy_weights_include_random(self, catalog):
        """Test that the enemy table can draw the random theme."""
        weights = EnemyGenerationConfig().theme_weights
        themes = {theme for theme, _ in available_themes(catalog, weights)}
        assert Theme.RANDOM in themes
        assert Theme.SAME_CHARACTER not in themes
