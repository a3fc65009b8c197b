"""
Unit tests for boss-led enemy roster generation.
"""

import random

import pytest

from engine.config import EnemyGenerationConfig
from engine.error_handler import CompositionError
from roster.catalog import CharacterRecord, ClassRecord, InMemoryCatalog, Weapon
from roster.enemy_generator import EnemyRosterGenerator, generate_enemy_composition


@pytest.fixture
def villain_catalog():
    """Catalog whose only character flag is 'villain'."""
    return InMemoryCatalog(
        [
            CharacterRecord("Norwin", "General", False, True, ("villain",)),
            CharacterRecord("Brigand", "Knight", False, False, ("villain",)),
        ],
        [
            ClassRecord("Knight", False, Weapon.LANCE),
            ClassRecord("General", True, Weapon.AXE),
        ],
    )


class TestGenerateEnemyComposition:
    """Tests for generate_enemy_composition."""

    @pytest.mark.parametrize("seed", range(20))
    def test_power_reaches_target_with_a_boss(self, seed, catalog, naming, setup_config):
        """Test that ten players at strength 1.0 face at least ten power, led by a boss."""
        result = generate_enemy_composition(2, 10, 1.0, random.Random(seed), catalog, naming, setup_config.enemy)
        team = result.composition

        assert team.power >= 10.0
        assert max(u.scale_factor for u in team.all_units()) >= 1.5
        assert all(u.team_id == 2 for u in team.all_units())
        team.validate()

    def test_stronger_target_means_more_power(self, catalog, naming):
        """Test that the power target scales with relative strength."""
        result = generate_enemy_composition(2, 10, 3.0, random.Random(7), catalog, naming)
        assert result.composition.power >= 30.0

    def test_zero_strength_is_just_the_boss(self, catalog, naming):
        """Test that a zero target stops after the boss."""
        result = generate_enemy_composition(2, 5, 0.0, random.Random(2), catalog, naming)
        assert result.composition.total_units == 1
        assert result.composition.all_units()[0].scale_factor >= 1.5

    def test_boss_scale_tiers(self, catalog, naming):
        """Test that the boss always uses one of the configured boss scales."""
        config = EnemyGenerationConfig()
        scales = {config.boss_scale, config.strong_boss_scale, config.hard_boss_scale}
        for seed in range(30):
            result = generate_enemy_composition(2, 1, 0.0, random.Random(seed), catalog, naming, config)
            assert result.composition.all_units()[0].scale_factor in scales

    def test_empty_catalog_uses_fallback_units(self, empty_catalog, naming):
        """Test that an empty catalog still builds a full-power roster."""
        result = generate_enemy_composition(2, 10, 1.0, random.Random(5), empty_catalog, naming)
        names = {u.unit_name for u in result.composition.all_units()}

        assert result.composition.power >= 10.0
        assert names <= {"Boss", "Soldier"}
        assert result.army_name == "Boss"

    def test_flag_theme_uses_enemy_table(self, villain_catalog, naming):
        """Test that a mapped flag gives the enemy army its table name."""
        config = EnemyGenerationConfig(theme_weights={"flag_based": 1.0})
        result = generate_enemy_composition(2, 6, 1.0, random.Random(3), villain_catalog, naming, config)
        assert result.army_name == "The Black Hand"

    def test_unmapped_theme_names_army_after_boss(self, catalog, naming):
        """Test that an army without a table name is named after its boss."""
        config = EnemyGenerationConfig(theme_weights={"weapon_based": 1.0})
        for seed in range(10):
            result = generate_enemy_composition(2, 8, 1.0, random.Random(seed), catalog, naming, config)
            boss = result.composition.all_units()[0]
            assert result.army_name == boss.unit_name
            assert boss.scale_factor >= 1.5

    def test_same_seed_same_roster(self, catalog, naming):
        """Test that enemy rosters are reproducible."""
        first = generate_enemy_composition(2, 12, 1.5, random.Random(17), catalog, naming)
        second = generate_enemy_composition(2, 12, 1.5, random.Random(17), catalog, naming)
        assert first.composition.all_units() == second.composition.all_units()
        assert first.army_name == second.army_name

    def test_invalid_arguments(self, catalog, naming, rng):
        """Test that non-positive players and negative strength are rejected."""
        with pytest.raises(CompositionError):
            generate_enemy_composition(2, 0, 1.0, rng, catalog, naming)
        with pytest.raises(CompositionError):
            generate_enemy_composition(2, 5, -1.0, rng, catalog, naming)


class TestDuplicateClassRows:
    """Tests for catalogs that list the same class more than once."""

    @pytest.fixture
    def repeated_catalog(self):
        return InMemoryCatalog(
            [CharacterRecord("Soldier", "Knight", False, False, ("generic",))],
            [ClassRecord("Knight", False, Weapon.LANCE), ClassRecord("Knight", False, Weapon.LANCE)],
        )

    @pytest.mark.parametrize("seed", range(10))
    def test_troop_pool_terminates(self, seed, repeated_catalog, naming):
        """Test that the random-class troop pool only asks for the distinct classes there are."""
        generator = EnemyRosterGenerator(2, 10, 1.0, random.Random(seed), repeated_catalog, naming)
        pool = generator._random_class_troop_pool()
        assert [c.name for c in pool] == ["Soldier"]

    def test_full_roster(self, repeated_catalog, naming, setup_config):
        """Test that a whole enemy roster can be built from the repeated rows."""
        for seed in range(10):
            result = generate_enemy_composition(
                2, 6, 1.0, random.Random(seed), repeated_catalog, naming, setup_config.enemy,
            )
            assert result.composition.power >= 6.0
