"""
Authored team distributions.

Levels describe each team as guaranteed units plus weighted class / name /
scale tables. This module loads those descriptions and rolls concrete
rosters from them.
"""

from __future__ import annotations

import json
import math
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from engine.error_handler import CatalogError, get_logger
from settings import DEFAULT_CLASS_NAME, DEFAULT_LEVEL, DEFAULT_UNIT_NAME
from .catalog import CharacterRecord, UnitCatalog
from .power import unit_power
from .types import CompositionBuilder, TeamComposition

log = get_logger(__name__)

# Class placeholders
DEFAULT_CLASS = "DefaultClass"
RANDOM_CLASS = "RandomClass"

# Character placeholders
RANDOM_CHARACTER = "RandomCharacter"
RANDOM_PLAYABLE_CHARACTER = "RandomPlayableCharacter"
RANDOM_GENERIC_CHARACTER = "RandomGenericCharacter"
RANDOM_UNPROMOTED_CHARACTER = "RandomUnpromotedCharacter"
RANDOM_PROMOTED_CHARACTER = "RandomPromotedCharacter"

DEBUG_TEAM_NAME = "Debug Team"


@dataclass
class GuaranteedClass:
    """A fixed block of units added before any probability draws."""
    class_name: str
    count: int = 0
    use_total_count: bool = False
    unit_name: str = ""
    scale_factor: float = -1.0

    def actual_count(self, winners: int = 0) -> int:
        """``winners`` replaces the count when use_total_count is set."""
        if self.use_total_count and winners > 0:
            return winners
        return self.count

    @property
    def effective_scale(self) -> float:
        return self.scale_factor if self.scale_factor > 0 else 1.0


@dataclass
class WeightedEntry:
    value: object
    probability: float


def normalize(entries: List[WeightedEntry]) -> List[WeightedEntry]:
    """Scale probabilities to sum to 1 (left untouched when they sum to 0)."""
    total = sum(e.probability for e in entries)
    if total <= 0:
        return entries
    return [WeightedEntry(e.value, e.probability / total) for e in entries]


def draw(entries: List[WeightedEntry], rng: random.Random, default):
    """Cumulative draw over normalised entries; the first entry is the fallback."""
    if not entries:
        return default
    value = rng.random()
    cumulative = 0.0
    for entry in entries:
        cumulative += entry.probability
        if value <= cumulative:
            return entry.value
    return entries[0].value


@dataclass
class TeamClassDistribution:
    """How one team of an authored composition is rolled."""
    team_id: int
    guaranteed_classes: List[GuaranteedClass] = field(default_factory=list)
    class_probabilities: List[WeightedEntry] = field(default_factory=list)
    name_probabilities: List[WeightedEntry] = field(default_factory=list)
    scale_probabilities: List[WeightedEntry] = field(default_factory=list)

    def __post_init__(self):
        self.class_probabilities = normalize(self.class_probabilities)
        self.name_probabilities = normalize(self.name_probabilities)
        self.scale_probabilities = normalize(self.scale_probabilities)

    def guaranteed_count(self, winners: int = 0) -> int:
        return sum(gc.actual_count(winners) for gc in self.guaranteed_classes)

    def average_scale(self) -> Optional[float]:
        if not self.scale_probabilities:
            return None
        return sum(float(e.value) * e.probability for e in self.scale_probabilities)

    @classmethod
    def from_dict(cls, data: dict) -> "TeamClassDistribution":
        return cls(
            team_id=int(data["team_id"]),
            guaranteed_classes=[
                GuaranteedClass(
                    class_name=g["class_name"],
                    count=int(g.get("count", 0)),
                    use_total_count=bool(g.get("use_total_count", False)),
                    unit_name=g.get("unit_name", ""),
                    scale_factor=float(g.get("scale_factor", -1.0)),
                )
                for g in data.get("guaranteed_classes", [])
            ],
            class_probabilities=[
                WeightedEntry(e["class_name"], float(e["probability"]))
                for e in data.get("class_probabilities", [])
            ],
            name_probabilities=[
                WeightedEntry(e["unit_name"], float(e["probability"]))
                for e in data.get("name_probabilities", [])
            ],
            scale_probabilities=[
                WeightedEntry(float(e["scale_factor"]), float(e["probability"]))
                for e in data.get("scale_factor_probabilities", [])
            ],
        )


@dataclass
class CompositionData:
    """A named, authored battle: level metadata plus per-team distributions."""
    name: str
    game_mode: str = ""
    music_file: str = ""
    army_name: str = ""
    level: int = DEFAULT_LEVEL
    teams: List[TeamClassDistribution] = field(default_factory=list)

    def team(self, team_id: int) -> Optional[TeamClassDistribution]:
        for distribution in self.teams:
            if distribution.team_id == team_id:
                return distribution
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "CompositionData":
        return cls(
            name=data["name"],
            game_mode=data.get("game_mode", ""),
            music_file=data.get("music_file", ""),
            army_name=data.get("army_name", ""),
            level=int(data.get("level", DEFAULT_LEVEL)),
            teams=[TeamClassDistribution.from_dict(t) for t in data.get("teams", [])],
        )


def debug_composition() -> CompositionData:
    """Built-in test battle used when no authored composition applies."""
    minion_names = [WeightedEntry("Debug Minion", 1.0)]
    minion_scales = [WeightedEntry(0.7, 0.7), WeightedEntry(1.0, 0.3)]
    knights_and_archers = [WeightedEntry("Knight", 0.5), WeightedEntry("Archer", 0.5)]

    team1 = TeamClassDistribution(
        team_id=1,
        class_probabilities=list(knights_and_archers),
        name_probabilities=list(minion_names),
        scale_probabilities=list(minion_scales),
    )
    team2 = TeamClassDistribution(
        team_id=2,
        guaranteed_classes=[
            GuaranteedClass("Sorcerer", count=1, unit_name="Debug Boss", scale_factor=1.5),
            GuaranteedClass("Ninja", count=2),
            GuaranteedClass("Warrior", count=20, use_total_count=True),
        ],
        class_probabilities=list(knights_and_archers),
        name_probabilities=list(minion_names),
        scale_probabilities=list(minion_scales),
    )
    return CompositionData(
        name=DEBUG_TEAM_NAME,
        game_mode="Debug",
        music_file="debug_music.mp3",
        teams=[team1, team2],
    )


class CompositionLibrary:
    """Authored compositions keyed by name."""

    def __init__(self, compositions: Optional[Dict[str, CompositionData]] = None):
        self._compositions = dict(compositions or {})

    def names(self) -> List[str]:
        return list(self._compositions)

    def get(self, name: str) -> Optional[CompositionData]:
        return self._compositions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._compositions

    def debug_team(self) -> CompositionData:
        authored = self.get(DEBUG_TEAM_NAME)
        if authored is not None:
            return authored
        log.debug("No authored Debug Team, using the built-in one")
        return debug_composition()

    def resolve(self, name: Optional[str]) -> CompositionData:
        """Named composition, or the debug team (with a warning) when unknown."""
        if name:
            found = self.get(name)
            if found is not None:
                return found
            log.warning(f"Composition '{name}' not found, using {DEBUG_TEAM_NAME}")
        return self.debug_team()


def load_compositions(path: Path) -> CompositionLibrary:
    """
    Load authored compositions from JSON.

    A missing file gives an empty library (callers fall back to the debug
    team); an unreadable one raises CatalogError.
    """
    path = Path(path)
    if not path.exists():
        log.warning(f"Compositions file not found at {path}, only the debug team is available")
        return CompositionLibrary()

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        compositions = [CompositionData.from_dict(c) for c in data.get("compositions", [])]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise CatalogError(
            f"Error loading compositions from {path}: {e}",
            user_message="The level composition file is corrupt.",
        ) from e

    log.info(f"Loaded {len(compositions)} team compositions from {path}")
    return CompositionLibrary({c.name: c for c in compositions})


class _Roller:
    """Resolves placeholder names and classes for one roster roll."""

    def __init__(self, rng: random.Random, catalog: UnitCatalog):
        self.rng = rng
        self.catalog = catalog

    def _by_promotion(self, promoted: bool) -> Optional[CharacterRecord]:
        pool = []
        for character in self.catalog.characters():
            record = self.catalog.class_by_name(character.class_name)
            if record is not None and record.promoted == promoted:
                pool.append(character)
        if not pool:
            return self.catalog.random_character(self.rng)
        return pool[self.rng.randrange(len(pool))]

    def character_name(self, name: str) -> str:
        if not name:
            return DEFAULT_UNIT_NAME
        if not name.startswith("Random"):
            return name

        if name == RANDOM_CHARACTER:
            record = self.catalog.random_character(self.rng)
        elif name == RANDOM_PLAYABLE_CHARACTER:
            record = self.catalog.random_character(self.rng, playable_only=True)
        elif name == RANDOM_GENERIC_CHARACTER:
            record = self.catalog.random_character(self.rng, generic_only=True)
        elif name == RANDOM_UNPROMOTED_CHARACTER:
            record = self._by_promotion(False)
        elif name == RANDOM_PROMOTED_CHARACTER:
            record = self._by_promotion(True)
        else:
            return name
        return record.name if record is not None else DEFAULT_UNIT_NAME

    def class_name(self, class_name: str, character_name: str) -> str:
        if class_name == DEFAULT_CLASS:
            record = self.catalog.character(character_name)
            if record is None:
                log.warning(f"Character '{character_name}' not found, using {DEFAULT_CLASS_NAME}")
                return DEFAULT_CLASS_NAME
            return record.class_name
        if class_name == RANDOM_CLASS:
            count = self.catalog.class_count()
            if count == 0:
                log.warning(f"No classes in catalog, using {DEFAULT_CLASS_NAME}")
                return DEFAULT_CLASS_NAME
            return self.catalog.class_by_index(self.rng.randrange(count)).name
        return class_name

    def random_unit(self, distribution: TeamClassDistribution, builder: CompositionBuilder) -> None:
        name = self.character_name(draw(distribution.name_probabilities, self.rng, DEFAULT_UNIT_NAME))
        class_name = self.class_name(draw(distribution.class_probabilities, self.rng, DEFAULT_CLASS_NAME), name)
        scale = float(draw(distribution.scale_probabilities, self.rng, 1.0))
        builder.add_unit(class_name, name, scale)


def _knights(team_id: int, unit_count: int) -> TeamComposition:
    builder = CompositionBuilder(team_id)
    for _ in range(unit_count):
        builder.add_unit(DEFAULT_CLASS_NAME, DEFAULT_UNIT_NAME, 1.0)
    return builder.build()


def determine_team_composition(
    distribution: Optional[TeamClassDistribution],
    unit_count: int,
    rng: random.Random,
    catalog: UnitCatalog,
    team_id: Optional[int] = None,
    winners: int = 0,
) -> TeamComposition:
    """
    Roll a roster from an authored distribution.

    Args:
        distribution: Team description; None means "all Knights"
        unit_count: Total units wanted
        rng: Seeded generator
        catalog: Used to resolve placeholder names / classes
        team_id: Team id for the units (defaults to the distribution's)
        winners: Replaces guaranteed counts flagged use_total_count

    Returns:
        TeamComposition; guaranteed units first, then probability draws
    """
    if team_id is None:
        team_id = distribution.team_id if distribution is not None else 1
    if distribution is None:
        return _knights(team_id, unit_count)

    roller = _Roller(rng, catalog)
    builder = CompositionBuilder(team_id)

    placed = 0
    for gc in distribution.guaranteed_classes:
        to_add = min(gc.actual_count(winners), unit_count - placed)
        for _ in range(to_add):
            name = roller.character_name(gc.unit_name)
            builder.add_unit(roller.class_name(gc.class_name, name), name, gc.effective_scale)
        placed += max(to_add, 0)
        if placed >= unit_count:
            break

    remaining = unit_count - placed
    if remaining > 0:
        if not distribution.class_probabilities:
            log.warning(f"Team {team_id} has no class probabilities, {remaining} slots left empty")
        else:
            for _ in range(remaining):
                roller.random_unit(distribution, builder)

    return builder.build()


def generate_random_only_composition(
    distribution: Optional[TeamClassDistribution],
    team_id: int,
    unit_count: int,
    rng: random.Random,
    catalog: UnitCatalog,
) -> TeamComposition:
    """Probability draws only; guaranteed units are skipped."""
    if distribution is None:
        return _knights(team_id, unit_count)

    builder = CompositionBuilder(team_id)
    if distribution.class_probabilities:
        roller = _Roller(rng, catalog)
        for _ in range(unit_count):
            roller.random_unit(distribution, builder)
    return builder.build()


def estimate_unit_count(distribution: Optional[TeamClassDistribution], target_power: float) -> int:
    """
    Units a distribution needs to reach ``target_power``.

    Guaranteed units count first at their own scale; the rest are costed at
    the power of the average random scale.
    """
    if distribution is None:
        return round(target_power)

    guaranteed_power = 0.0
    guaranteed_count = 0
    for gc in distribution.guaranteed_classes:
        guaranteed_power += unit_power(gc.effective_scale) * gc.count
        guaranteed_count += gc.count

    if guaranteed_power >= target_power:
        return guaranteed_count

    average_scale = distribution.average_scale()
    average_power = unit_power(average_scale) if average_scale is not None else 1.0
    if average_power <= 0:
        return guaranteed_count
    return guaranteed_count + math.ceil((target_power - guaranteed_power) / average_power)


def determine_compositions_with_relative_strength(
    composition: CompositionData,
    team1_count: int,
    relative_strength: float,
    rng: random.Random,
    catalog: UnitCatalog,
    winners: int = 0,
) -> Tuple[TeamComposition, TeamComposition]:
    """Team 1 from its distribution; team 2 sized to team 1's power times ``relative_strength``."""
    team1 = determine_team_composition(composition.team(1), team1_count, rng, catalog, team_id=1, winners=winners)
    target = team1.power * relative_strength

    team2_dist = composition.team(2)
    team2_count = max(1, estimate_unit_count(team2_dist, target))
    team2 = determine_team_composition(team2_dist, team2_count, rng, catalog, team_id=2, winners=winners)

    if team1.power > 0:
        log.debug(f"Target team 2 strength ratio {relative_strength}, actual {team2.power / team1.power:.2f}")
    return team1, team2
