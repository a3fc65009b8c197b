"""
Themed roster generation for player and ally teams.

Every public entry point returns a CompositionResult with exactly
``unit_count`` units: themes fall back to the fully random generator, and
that falls back to an all-Knight default roster.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional

from engine.config import PlayerGenerationConfig
from engine.error_handler import CompositionError, get_logger
from settings import DEFAULT_ARMY_NAME
from .catalog import CharacterRecord, ClassRecord, UnitCatalog
from .naming import NameService
from .themes import Theme, select_theme
from .types import CompositionBuilder, CompositionResult, TeamComposition

log = get_logger(__name__)


def default_composition(team_id: int, unit_count: int, config: Optional[PlayerGenerationConfig] = None) -> TeamComposition:
    """Every unit a default-class unit with the default name at scale 1.0."""
    config = config or PlayerGenerationConfig()
    builder = CompositionBuilder(team_id)
    for _ in range(unit_count):
        builder.add_unit(config.default_class_name, config.default_unit_name, 1.0)
    return builder.build()


class PlayerRosterGenerator:
    """
    Builds one themed roster.

    Holds the shared inputs so the per-theme methods only deal with the
    theme's own choices. All randomness goes through ``self.rng``.
    """

    def __init__(
        self,
        team_id: int,
        unit_count: int,
        rng: random.Random,
        catalog: UnitCatalog,
        naming: NameService,
        config: Optional[PlayerGenerationConfig] = None,
    ):
        if unit_count <= 0:
            raise CompositionError(
                f"unit_count must be positive, got {unit_count}",
                user_message="A roster needs at least one unit.",
            )
        self.team_id = team_id
        self.unit_count = unit_count
        self.rng = rng
        self.catalog = catalog
        self.naming = naming
        self.config = config or PlayerGenerationConfig()

    # --- helpers ----------------------------------------------------------

    def _usable(self, characters: List[CharacterRecord]) -> List[CharacterRecord]:
        invalid = {n.lower() for n in self.config.invalid_character_names}
        return [c for c in characters if c.name.lower() not in invalid]

    def _roll(self, probability: float) -> bool:
        return self.rng.random() < probability

    def _filtered_characters(self, exclude_non_unique: bool) -> List[CharacterRecord]:
        if exclude_non_unique:
            unique = self._usable(self.catalog.all_characters(unique_only=True))
            if unique:
                return unique
            log.debug("No unique characters available, including non-unique ones")
        return self._usable(self.catalog.all_characters(unique_only=False))

    def _prefer_unique(self, pool: List[CharacterRecord]) -> List[CharacterRecord]:
        """Unique-filter a pool with the configured chance, keeping it non-empty."""
        if self._roll(self.config.exclude_non_unique_probability):
            unique = [c for c in pool if c.unique]
            if unique:
                return unique
        return pool

    def _pick(self, pool):
        return pool[self.rng.randrange(len(pool))]

    def _random_class_name(self) -> str:
        count = self.catalog.class_count()
        if count == 0:
            return self.config.default_class_name
        record = self.catalog.class_by_index(self.rng.randrange(count))
        return record.name if record is not None else self.config.default_class_name

    def _resolve_class(self, class_name: str) -> str:
        if self.catalog.class_count() == 0:
            return class_name
        if self.catalog.class_by_name(class_name) is None:
            log.warning(f"Class {class_name} not found, using {self.config.default_class_name}")
            return self.config.default_class_name
        return class_name

    def _characters_with_default_class(self, classes: List[ClassRecord]) -> List[CharacterRecord]:
        matching: List[CharacterRecord] = []
        for record in classes:
            matching.extend(self.catalog.characters_with_default_class(record.name))
        return self._usable(matching)

    def default_result(self) -> CompositionResult:
        return CompositionResult(default_composition(self.team_id, self.unit_count, self.config), DEFAULT_ARMY_NAME)

    # --- themes -----------------------------------------------------------

    def generate(self) -> CompositionResult:
        if self._roll(self.config.theme_probability):
            theme = select_theme(self.rng, self.catalog, self.config.theme_weights)
            log.debug(f"Selected player theme: {theme.value}")
            result = self.generate_theme(theme)
        else:
            result = self.completely_random()

        if result.composition.total_units == 0:
            log.debug("Themed roster came back empty, using fully random roster")
            result = self.completely_random()
        if result.composition.total_units == 0:
            result = self.default_result()
        return result

    def generate_theme(self, theme: Theme) -> CompositionResult:
        handlers: Dict[Theme, Callable[[], CompositionResult]] = {
            Theme.SAME_CHARACTER: self.same_character,
            Theme.FLAG_BASED: self.flag_based,
            Theme.SAME_CLASS: self.same_class,
            Theme.CLASS_FLAG_BASED: self.class_flag_based,
            Theme.PROMOTION_BASED: self.promotion_based,
            Theme.WEAPON_BASED: self.weapon_based,
            Theme.STAT_BASED: self.stat_based,
        }
        return handlers.get(theme, self.completely_random)()

    def same_character(self) -> CompositionResult:
        characters = self._filtered_characters(self._roll(self.config.exclude_non_unique_probability))
        if not characters:
            log.warning("No characters available after filtering, using default composition")
            return self.default_result()

        character = self._pick(characters)
        army_name = self.naming.theme_name(character.name, self.rng)
        use_default_class = self._roll(self.config.default_class_probability)

        builder = CompositionBuilder(self.team_id)
        default_class = self._resolve_class(character.class_name) if use_default_class else None
        for _ in range(self.unit_count):
            class_name = default_class or self._resolve_class(self._random_class_name())
            builder.add_unit(class_name, character.name)
        return CompositionResult(builder.build(), army_name)

    def flag_based(self) -> CompositionResult:
        flags = self.catalog.character_flags()
        if not flags:
            log.warning("No character flags available, falling back to random composition")
            return self.completely_random()

        flag = self._pick(flags)
        with_flag = self._usable(self.catalog.characters_with_flag(flag))
        if not with_flag:
            log.warning(f"No characters found with flag '{flag}', falling back to random composition")
            return self.completely_random()

        pool = self._prefer_unique(with_flag)
        army_name = self.naming.theme_name(flag, self.rng)
        return CompositionResult(self._per_unit_class(pool), army_name)

    def same_class(self) -> CompositionResult:
        count = self.catalog.class_count()
        if count == 0:
            log.warning("No classes available, using default composition")
            return self.default_result()

        selected = self.catalog.class_by_index(self.rng.randrange(count))
        if selected is None:
            return self.default_result()

        army_name = self.naming.theme_name(selected.name, self.rng)
        if self._roll(self.config.default_class_probability):
            matching = self._characters_with_default_class([selected])
            if matching:
                pool = self._prefer_unique(matching)
                builder = CompositionBuilder(self.team_id)
                for _ in range(self.unit_count):
                    builder.add_unit(selected.name, self._pick(pool).name)
                return CompositionResult(builder.build(), army_name)
            log.debug(f"No characters found with default class {selected.name}, using random characters")

        return self._forced_class(selected, army_name)

    def _forced_class(self, selected: ClassRecord, army_name: str) -> CompositionResult:
        characters = self._filtered_characters(self._roll(self.config.exclude_non_unique_probability))
        if not characters:
            log.warning("No characters available after filtering")
            return self.default_result()

        builder = CompositionBuilder(self.team_id)
        for _ in range(self.unit_count):
            builder.add_unit(selected.name, self._pick(characters).name)
        return CompositionResult(builder.build(), army_name)

    def class_flag_based(self) -> CompositionResult:
        flags = self.catalog.class_flags()
        if not flags:
            log.warning("No class flags available, falling back to random composition")
            return self.completely_random()
        flag = self._pick(flags)
        return self._themed_class_list(self.catalog.classes_with_flag(flag), flag)

    def promotion_based(self) -> CompositionResult:
        promoted = self._roll(0.5)
        raw_name = "Promoted" if promoted else "Unpromoted"
        return self._themed_class_list(self.catalog.classes_by_promotion(promoted), raw_name)

    def weapon_based(self) -> CompositionResult:
        weapons = self.catalog.preferred_weapons()
        if not weapons:
            log.warning("No weapon types found, falling back to random")
            return self.completely_random()
        weapon = self._pick(weapons)
        return self._themed_class_list(self.catalog.classes_by_weapon(weapon), weapon.value)

    def stat_based(self) -> CompositionResult:
        stats = self.catalog.stat_types()
        if not stats:
            log.warning("No stats available, falling back to random")
            return self.completely_random()
        stat = self._pick(stats)
        return self._themed_class_list(self.catalog.classes_with_high_stat(stat), stat.value)

    def _themed_class_list(self, classes: List[ClassRecord], raw_name: str) -> CompositionResult:
        if not classes:
            log.warning(f"No classes found for theme '{raw_name}', falling back to random")
            return self.completely_random()
        army_name = self.naming.theme_name(raw_name, self.rng)
        return self.from_class_list(classes, army_name)

    def from_class_list(self, classes: List[ClassRecord], army_name: str) -> CompositionResult:
        """
        Roster restricted to a class list.

        Either characters whose default class is in the list keep that
        class, or random characters are forced into random listed classes.
        """
        builder = CompositionBuilder(self.team_id)

        if self._roll(self.config.default_class_probability):
            matching = self._characters_with_default_class(classes)
            if matching:
                pool = self._prefer_unique(matching)
                for _ in range(self.unit_count):
                    character = self._pick(pool)
                    builder.add_unit(self._resolve_class(character.class_name), character.name)
                return CompositionResult(builder.build(), army_name)
            log.debug("No characters found with matching default classes, using random characters")

        characters = self._filtered_characters(self._roll(self.config.exclude_non_unique_probability))
        if not characters:
            return self.default_result()
        for _ in range(self.unit_count):
            character = self._pick(characters)
            builder.add_unit(self._pick(classes).name, character.name)
        return CompositionResult(builder.build(), army_name)

    def completely_random(self) -> CompositionResult:
        characters = self._filtered_characters(self._roll(self.config.exclude_non_unique_probability))
        if not characters:
            log.warning("No characters available after filtering, using default composition")
            return self.default_result()
        army_name = self.naming.theme_name("Random", self.rng)
        return CompositionResult(self._per_unit_class(characters), army_name)

    def _per_unit_class(self, pool: List[CharacterRecord]) -> TeamComposition:
        """Random character per slot, in its default class or a random one."""
        builder = CompositionBuilder(self.team_id)
        for _ in range(self.unit_count):
            character = self._pick(pool)
            if self._roll(self.config.default_class_probability):
                class_name = character.class_name
            else:
                class_name = self._random_class_name()
            builder.add_unit(self._resolve_class(class_name), character.name)
        return builder.build()

    def fixed_character(self, character_name: str) -> CompositionResult:
        """Every unit is the named character, each in a random class."""
        record = self.catalog.character(character_name)
        name = record.name if record is not None else character_name
        if record is None:
            log.warning(f"Character {character_name} not in catalog, using the name as is")
        army_name = self.naming.theme_name(name, self.rng)

        builder = CompositionBuilder(self.team_id)
        for _ in range(self.unit_count):
            builder.add_unit(self._resolve_class(self._random_class_name()), name)
        return CompositionResult(builder.build(), army_name)


def generate_random_composition(
    team_id: int,
    unit_count: int,
    rng: random.Random,
    catalog: UnitCatalog,
    naming: NameService,
    config: Optional[PlayerGenerationConfig] = None,
) -> CompositionResult:
    """
    Generate a themed (or fully random) roster.

    Args:
        team_id: Team the units belong to
        unit_count: Number of units, must be positive
        rng: Seeded generator for every draw
        catalog: Character / class data
        naming: Army name service
        config: Probabilities and weights (defaults if omitted)

    Returns:
        CompositionResult with exactly unit_count units

    Raises:
        CompositionError: If unit_count <= 0
    """
    return PlayerRosterGenerator(team_id, unit_count, rng, catalog, naming, config).generate()


def generate_themed_composition(
    theme: Theme,
    team_id: int,
    unit_count: int,
    rng: random.Random,
    catalog: UnitCatalog,
    naming: NameService,
    config: Optional[PlayerGenerationConfig] = None,
) -> CompositionResult:
    """Generate a roster for a specific theme, with the usual fallbacks."""
    generator = PlayerRosterGenerator(team_id, unit_count, rng, catalog, naming, config)
    result = generator.generate_theme(theme)
    if result.composition.total_units == 0:
        result = generator.completely_random()
    if result.composition.total_units == 0:
        result = generator.default_result()
    return result


def generate_fixed_character_composition(
    team_id: int,
    unit_count: int,
    character_name: str,
    rng: random.Random,
    catalog: UnitCatalog,
    naming: NameService,
    config: Optional[PlayerGenerationConfig] = None,
) -> CompositionResult:
    """Every unit plays ``character_name`` in a random class."""
    return PlayerRosterGenerator(team_id, unit_count, rng, catalog, naming, config).fixed_character(character_name)
