"""
Power-budgeted enemy roster generation.

An enemy roster always has one boss, sometimes a miniboss group, and then
troops until the summed unit power reaches ``player_count * strength``.
Troop draws always end in a default unit, so the fill loop terminates.
"""

from __future__ import annotations

import random
from typing import List, Optional

from engine.config import EnemyGenerationConfig
from engine.error_handler import CompositionError, get_logger
from settings import DEFAULT_CLASS_NAME
from .catalog import CharacterRecord, ClassRecord, UnitCatalog
from .naming import NameService
from .power import unit_power
from .themes import Theme, select_theme
from .types import CompositionBuilder, CompositionResult

log = get_logger(__name__)


class EnemyRosterGenerator:
    """Builds one boss-led enemy roster against a power target."""

    def __init__(
        self,
        team_id: int,
        player_count: int,
        relative_strength: float,
        rng: random.Random,
        catalog: UnitCatalog,
        naming: NameService,
        config: Optional[EnemyGenerationConfig] = None,
    ):
        if player_count <= 0:
            raise CompositionError(
                f"player_count must be positive, got {player_count}",
                user_message="An enemy roster needs at least one opposing unit.",
            )
        if relative_strength < 0:
            raise CompositionError(f"relative_strength must be non-negative, got {relative_strength}")

        self.team_id = team_id
        self.target = player_count * relative_strength
        self.rng = rng
        self.catalog = catalog
        self.naming = naming
        self.config = config or EnemyGenerationConfig()

        self.builder = CompositionBuilder(team_id)
        self.power = 0.0

    # --- helpers ----------------------------------------------------------

    def _usable(self, characters: List[CharacterRecord]) -> List[CharacterRecord]:
        invalid = {n.lower() for n in self.config.invalid_character_names}
        return [c for c in characters if c.name.lower() not in invalid]

    def _pick(self, pool):
        return pool[self.rng.randrange(len(pool))]

    def _class_for(self, character: CharacterRecord) -> str:
        if self.catalog.class_count() and self.catalog.class_by_name(character.class_name) is None:
            log.warning(f"Class {character.class_name} not found, using {DEFAULT_CLASS_NAME}")
            return DEFAULT_CLASS_NAME
        return character.class_name

    def _random_class_name(self) -> str:
        count = self.catalog.class_count()
        if count == 0:
            return DEFAULT_CLASS_NAME
        record = self.catalog.class_by_index(self.rng.randrange(count))
        return record.name if record is not None else DEFAULT_CLASS_NAME

    def _add(self, class_name: str, unit_name: str, scale: float) -> None:
        self.builder.add_unit(class_name, unit_name, scale)
        self.power += unit_power(scale)

    def _characters_for_classes(self, classes: List[ClassRecord]) -> List[CharacterRecord]:
        matching: List[CharacterRecord] = []
        for record in classes:
            matching.extend(self.catalog.characters_with_default_class(record.name))
        return self._usable(matching)

    def _boss_pool(self, unique_matching: List[CharacterRecord], all_matching: List[CharacterRecord]) -> List[CharacterRecord]:
        """
        Candidate pool for bosses and minibosses.

        Unique matching characters are preferred; the pool widens to the
        whole matching set (or the whole catalog) when that is empty or on
        the configured chance.
        """
        if not unique_matching:
            pool = all_matching
            if not pool or self.rng.randrange(2) == 1:
                pool = self._usable(self.catalog.all_characters(unique_only=True))
        elif self.rng.random() < self.config.include_generic_boss_chance:
            pool = all_matching or self._usable(self.catalog.all_characters())
        else:
            pool = unique_matching
        return list(pool)

    # --- generation -------------------------------------------------------

    def generate(self) -> CompositionResult:
        theme = select_theme(self.rng, self.catalog, self.config.theme_weights)
        log.debug(f"Selected enemy theme: {theme.value}")

        if theme == Theme.FLAG_BASED:
            return self._flag_based()
        if theme == Theme.SAME_CLASS:
            count = self.catalog.class_count()
            if count:
                selected = self.catalog.class_by_index(self.rng.randrange(count))
                if selected is not None:
                    return self._from_class_list([selected], selected.name)
        elif theme == Theme.CLASS_FLAG_BASED:
            flags = self.catalog.class_flags()
            if flags:
                flag = self._pick(flags)
                classes = self.catalog.classes_with_flag(flag)
                if classes:
                    return self._from_class_list(classes, flag)
        elif theme == Theme.WEAPON_BASED:
            weapons = self.catalog.preferred_weapons()
            if weapons:
                weapon = self._pick(weapons)
                classes = self.catalog.classes_by_weapon(weapon)
                if classes:
                    return self._from_class_list(classes, weapon.value)
        elif theme == Theme.STAT_BASED:
            stats = self.catalog.stat_types()
            if stats:
                stat = self._pick(stats)
                classes = self.catalog.classes_with_high_stat(stat)
                if classes:
                    return self._from_class_list(classes, stat.value)

        if theme != Theme.RANDOM:
            log.debug(f"Theme {theme.value} had no matching data, using random enemies")
        return self._completely_random()

    def _flag_based(self) -> CompositionResult:
        flags = self.catalog.character_flags()
        if not flags:
            return self._completely_random()
        flag = self._pick(flags)
        with_flag = self._usable(self.catalog.characters_with_flag(flag))
        if not with_flag:
            log.warning(f"No characters found with flag '{flag}', falling back to random composition")
            return self._completely_random()

        boss_name = self._bosses([c for c in with_flag if c.unique], with_flag)
        self._fill_troops(self._random_class_troop_pool())
        return self._result(flag, boss_name)

    def _from_class_list(self, classes: List[ClassRecord], theme_key: str) -> CompositionResult:
        matching = self._characters_for_classes(classes)
        boss_name = self._bosses([c for c in matching if c.unique], matching)

        troops = [c for c in matching if not c.unique]
        if not troops:
            troops = self._usable(self.catalog.all_characters(generic_only=True))
        max_classes = self._troop_class_limit()
        troops = list(troops)
        while len(troops) > max_classes:
            troops.pop(self.rng.randrange(len(troops)))

        self._fill_troops(troops)
        return self._result(theme_key, boss_name)

    def _completely_random(self) -> CompositionResult:
        everyone = self._usable(self.catalog.all_characters())
        boss_name = self._bosses([c for c in everyone if c.unique], everyone)
        self._fill_troops(self._random_class_troop_pool())
        return self._result(None, boss_name)

    def _troop_class_limit(self) -> int:
        roll = self.config.troop_class_roll
        return self.config.troop_class_base + self.rng.randrange(roll) + self.rng.randrange(roll)

    def _random_class_troop_pool(self) -> List[CharacterRecord]:
        """Generic characters whose default class is in a random class subset."""
        # Duplicate class rows must not count towards the distinct names needed
        distinct = len({c.name for c in self.catalog.classes()})
        wanted = min(self._troop_class_limit(), max(distinct, 1))
        chosen: List[str] = []
        while len(chosen) < wanted:
            name = self._random_class_name()
            if name not in chosen:
                chosen.append(name)

        pool: List[CharacterRecord] = []
        for class_name in chosen:
            pool.extend(self.catalog.characters_with_default_class(class_name))
        return self._usable([c for c in pool if not c.unique])

    def _bosses(self, unique_matching: List[CharacterRecord], all_matching: List[CharacterRecord]) -> str:
        """Add the boss and any minibosses; returns the boss name."""
        cfg = self.config
        pool = self._boss_pool(unique_matching, all_matching)

        scale = cfg.boss_scale
        if self.rng.random() > cfg.normal_boss_strength_chance:
            scale = cfg.strong_boss_scale
            if self.rng.random() > cfg.hard_boss_strength_chance:
                scale = cfg.hard_boss_scale

        if not pool:
            log.warning("Catalog has no boss candidates, using a default boss")
            self._add(DEFAULT_CLASS_NAME, cfg.fallback_boss_name, scale)
            return cfg.fallback_boss_name

        boss = self._pick(pool)
        self._add(self._class_for(boss), boss.name, scale)
        log.debug(f"Boss {boss.name} at scale {scale}, power {self.power:.2f}/{self.target:.2f}")

        if self.power >= self.target or self.rng.random() < cfg.single_boss_chance:
            return boss.name

        max_minibosses = cfg.small_group_max
        if self.rng.random() > cfg.small_boss_group_chance:
            max_minibosses = cfg.large_group_max
        wanted = self.rng.randrange(max_minibosses) + 1

        others_unique = [c for c in unique_matching if c != boss]
        others_all = [c for c in all_matching if c != boss]
        pool = [c for c in self._boss_pool(others_unique, others_all) if c != boss]

        placed = 0
        while placed < wanted:
            if not pool or self.power >= self.target:
                break
            chosen = pool.pop(self.rng.randrange(len(pool)))

            block = 1
            if not chosen.unique and placed < wanted - 1:
                block = self.rng.randrange(wanted - placed) + 1

            scale = cfg.miniboss_scale
            if self.rng.random() > cfg.normal_miniboss_chance:
                scale = cfg.strong_miniboss_scale

            class_name = self._class_for(chosen)
            for _ in range(block):
                self._add(class_name, chosen.name, scale)
            placed += block

        return boss.name

    def _fill_troops(self, pool: List[CharacterRecord]) -> None:
        if not pool:
            pool = self._usable(self.catalog.all_characters(generic_only=True))
        if not pool:
            pool = self._usable(self.catalog.all_characters())

        cfg = self.config
        while self.power < self.target:
            scale = cfg.troop_scale
            if self.rng.random() < cfg.strong_enemy_chance:
                scale = cfg.strong_troop_scale
            if pool:
                character = self._pick(pool)
                self._add(self._class_for(character), character.name, scale)
            else:
                self._add(DEFAULT_CLASS_NAME, cfg.fallback_troop_name, scale)

    def _result(self, theme_key: Optional[str], boss_name: str) -> CompositionResult:
        army_name = self.naming.enemy_theme_name(theme_key) if theme_key else ""
        composition = self.builder.build()
        log.debug(
            f"Enemy roster: {composition.total_units} units, power {self.power:.2f} "
            f"for target {self.target:.2f}"
        )
        return CompositionResult(composition, army_name or boss_name)


def generate_enemy_composition(
    team_id: int,
    player_count: int,
    relative_strength: float,
    rng: random.Random,
    catalog: UnitCatalog,
    naming: NameService,
    config: Optional[EnemyGenerationConfig] = None,
) -> CompositionResult:
    """
    Generate a boss-led enemy roster.

    Args:
        team_id: Team the enemies belong to
        player_count: Number of opposing units
        relative_strength: Target power as a multiple of player_count
        rng: Seeded generator for every draw
        catalog: Character / class data
        naming: Army name service
        config: Chances and scales (defaults if omitted)

    Returns:
        CompositionResult whose team power is >= player_count * relative_strength
    """
    generator = EnemyRosterGenerator(team_id, player_count, relative_strength, rng, catalog, naming, config)
    return generator.generate()
