"""
Battle setup orchestration.

Routes a setup request through roster generation and the placement layout
for its game mode, and returns the positioned units ready to spawn.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from roster.catalog import UnitCatalog, load_catalog
from roster.distributions import (
    CompositionData,
    CompositionLibrary,
    determine_compositions_with_relative_strength,
    load_compositions,
)
from roster.enemy_generator import generate_enemy_composition
from roster.naming.base import NameService
from roster.naming.mapper import ThemeNameMapper
from roster.player_generator import generate_fixed_character_composition, generate_random_composition
from roster.team_battle import determine_number_of_teams, valid_team_ids
from roster.types import TeamComposition, UnitStartingData
from formations.layouts import battle_royale_positions, two_team_positions
from formations.seize import default_capture_point, seize_positions
from formations.survive import survive_positions
from formations.teams import team_battle_positions
from telemetry.logger import telemetry
from .config import SetupConfig
from .error_handler import CompositionError, get_logger

log = get_logger(__name__)


class GameMode(Enum):
    DEFAULT = "default"
    SEIZE = "seize"
    SURVIVE = "survive"
    BATTLE_ROYALE = "battle royale"
    HOT_POTATO = "hot potato"
    TEAM_BATTLE = "team battle"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "GameMode":
        """Case-insensitive; accepts spaces, underscores, or nothing between words."""
        if not raw:
            return cls.DEFAULT
        key = raw.strip().lower().replace("_", " ").replace("-", " ")
        for mode in cls:
            if key == mode.value or key == mode.value.replace(" ", ""):
                return mode
        log.warning(f"Unknown game mode {raw!r}, using the default two-team layout")
        return cls.DEFAULT

    @property
    def is_single_team(self) -> bool:
        return self in (GameMode.BATTLE_ROYALE, GameMode.HOT_POTATO)

    @property
    def always_random(self) -> bool:
        """Modes whose roster is always generated rather than authored."""
        return self.is_single_team or self == GameMode.TEAM_BATTLE

    @property
    def is_hp_scaled(self) -> bool:
        return self in (GameMode.BATTLE_ROYALE, GameMode.TEAM_BATTLE, GameMode.SURVIVE)


def hp_scale_factor(players: int, winners: int) -> float:
    """HP multiplier for elimination modes: more winners means longer fights."""
    if players <= 0:
        return 1.0
    if winners >= players / 2:
        return 4.0 * winners / players - 1.0
    return 1.0


@dataclass
class BattleSetupRequest:
    """Everything the menu would pass to the unit placer."""
    mode: GameMode = GameMode.DEFAULT
    player_names: List[str] = field(default_factory=list)
    winners: int = 1
    seed: Optional[int] = None
    composition_name: Optional[str] = None
    random_player_team: bool = False
    random_enemy_team: bool = False
    fixed_character: Optional[str] = None
    team2_relative_strength: float = 1.0
    survive_enemy_bonus: float = 0.5
    capture_point: Optional[Tuple[float, float]] = None
    x_bound: Optional[float] = None
    y_bound: Optional[float] = None
    min_distance: Optional[float] = None


@dataclass
class BattleSetup:
    """A generated battle: positioned units plus the level metadata to run it."""
    units: List[UnitStartingData]
    army_name: str
    team_ids: List[int]
    number_of_teams: int
    level: int
    music_file: str
    mode: GameMode
    seed: Optional[int] = None
    hp_scale: float = 1.0
    player_names: List[Optional[str]] = field(default_factory=list)
    capture_point: Optional[Tuple[float, float]] = None

    def units_per_team(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for unit in self.units:
            counts[unit.team_id] = counts.get(unit.team_id, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        names = self.player_names or [None] * len(self.units)
        return {
            "mode": self.mode.value,
            "seed": self.seed,
            "army_name": self.army_name,
            "level": self.level,
            "music_file": self.music_file,
            "number_of_teams": self.number_of_teams,
            "team_ids": list(self.team_ids),
            "hp_scale": round(self.hp_scale, 4),
            "capture_point": list(self.capture_point) if self.capture_point is not None else None,
            "units": [
                {
                    "team_id": unit.team_id,
                    "unit_class": unit.unit_class,
                    "unit_name": unit.unit_name,
                    "scale_factor": unit.scale_factor,
                    "position": [round(unit.position[0], 4), round(unit.position[1], 4)],
                    "player_name": name,
                }
                for unit, name in zip(self.units, names)
            ],
        }


class BattleSetupService:
    """
    Builds battle setups.

    Responsibilities:
    - Pick the rosters for each team (random, authored, or boss-led)
    - Route the rosters to the placement layout of the game mode
    - Hand out player names and report the setup to telemetry
    """

    def __init__(
        self,
        catalog: UnitCatalog,
        naming: NameService,
        library: Optional[CompositionLibrary] = None,
        config: Optional[SetupConfig] = None,
    ):
        self.catalog = catalog
        self.naming = naming
        self.library = library or CompositionLibrary()
        self.config = config or SetupConfig()

    @classmethod
    def from_config(cls, config: SetupConfig) -> "BattleSetupService":
        """Load the catalog, name tables and compositions named by ``config.data``."""
        data = config.data
        catalog = load_catalog(Path(data.data_dir), data.characters_file, data.classes_file)
        naming = ThemeNameMapper.from_files(
            data.path(data.theme_names_file), data.path(data.enemy_theme_names_file),
        )
        library = load_compositions(data.path(data.compositions_file))
        return cls(catalog, naming, library, config)

    def create(self, request: BattleSetupRequest) -> BattleSetup:
        """
        Generate one battle.

        Args:
            request: Mode, players and options

        Returns:
            BattleSetup with every unit positioned

        Raises:
            CompositionError: If there are no players
            TeamConfigurationError: If a team battle cannot be split
        """
        formation = self.config.formation
        x_bound = request.x_bound if request.x_bound is not None else formation.x_bound
        y_bound = request.y_bound if request.y_bound is not None else formation.y_bound
        min_distance = request.min_distance if request.min_distance is not None else formation.min_distance

        rng = random.Random(request.seed)
        mode = request.mode
        player_names = list(request.player_names)
        if not player_names:
            raise CompositionError(
                "Battle setup needs at least one player",
                user_message="Add at least one player before starting a battle.",
            )
        rng.shuffle(player_names)
        player_count = len(player_names)

        number_of_teams = 0
        team_ids: List[int] = []
        if mode == GameMode.TEAM_BATTLE:
            number_of_teams = determine_number_of_teams(player_count, request.winners, rng)
            team_ids = valid_team_ids(number_of_teams)
            log.info(f"Team battle with {number_of_teams} teams: {team_ids}")

        data = self.library.resolve(request.composition_name)

        if mode.always_random:
            result = generate_random_composition(1, player_count, rng, self.catalog, self.naming, self.config.player)
            teams = [result.composition]
            army_name = result.army_name
            log.debug(f"Using random army {army_name!r} for {mode.value}")
        else:
            teams, army_name = self._two_teams(request, data, player_count, rng)

        for team in teams:
            telemetry.log(
                "composition_generated",
                team_id=team.team_id,
                units=team.total_units,
                power=round(team.power, 3),
                classes=team.class_names(),
            )

        capture_point: Optional[Tuple[float, float]] = None
        if mode == GameMode.SEIZE:
            if request.capture_point is not None:
                capture_point = (float(request.capture_point[0]), float(request.capture_point[1]))
            else:
                point = default_capture_point(x_bound, y_bound, min_distance, rng)
                capture_point = (point.x, point.y)

        units = self._positions(
            mode, teams, team_ids, capture_point, x_bound, y_bound, min_distance, rng,
        )
        if mode == GameMode.TEAM_BATTLE:
            number_of_teams = len(team_ids)
        elif mode.is_single_team:
            number_of_teams = 1
            team_ids = [0]
        else:
            number_of_teams = len(teams)
            team_ids = [team.team_id for team in teams]

        setup = BattleSetup(
            units=units,
            army_name=army_name,
            team_ids=team_ids,
            number_of_teams=number_of_teams,
            level=data.level,
            music_file=data.music_file,
            mode=mode,
            seed=request.seed,
            hp_scale=hp_scale_factor(player_count, request.winners) if mode.is_hp_scaled else 1.0,
            player_names=self._assign_player_names(mode, units, player_names),
            capture_point=capture_point,
        )

        telemetry.log(
            "setup_generated",
            mode=mode,
            seed=request.seed,
            army_name=army_name,
            units=len(units),
            units_per_team=setup.units_per_team(),
        )
        log.info(f"Generated {mode.value} setup: {len(units)} units, army {army_name!r}")
        return setup

    def _two_teams(
        self,
        request: BattleSetupRequest,
        data: CompositionData,
        player_count: int,
        rng: random.Random,
    ) -> Tuple[List[TeamComposition], str]:
        strength = request.team2_relative_strength
        if request.mode == GameMode.SURVIVE:
            strength += request.survive_enemy_bonus

        army_name = data.army_name or data.name
        authored: Optional[Tuple[TeamComposition, TeamComposition]] = None

        if request.fixed_character:
            team1 = generate_fixed_character_composition(
                1, player_count, request.fixed_character, rng, self.catalog, self.naming, self.config.player,
            ).composition
        elif request.random_player_team:
            # The level keeps its own army name
            team1 = generate_random_composition(
                1, player_count, rng, self.catalog, self.naming, self.config.player,
            ).composition
        else:
            authored = determine_compositions_with_relative_strength(
                data, player_count, strength, rng, self.catalog, winners=request.winners,
            )
            team1 = authored[0]

        if request.random_enemy_team:
            enemy = generate_enemy_composition(
                2, player_count, strength, rng, self.catalog, self.naming, self.config.enemy,
            )
            team2 = enemy.composition
            if enemy.army_name:
                army_name = enemy.army_name
        else:
            if authored is None:
                authored = determine_compositions_with_relative_strength(
                    data, player_count, strength, rng, self.catalog, winners=request.winners,
                )
            team2 = authored[1]

        log.debug(
            f"Two-team rosters: {team1.total_units} vs {team2.total_units} "
            f"(relative strength {strength:.2f})"
        )
        return [team1, team2], army_name

    def _positions(
        self,
        mode: GameMode,
        teams: List[TeamComposition],
        team_ids: List[int],
        capture_point: Optional[Tuple[float, float]],
        x_bound: float,
        y_bound: float,
        min_distance: float,
        rng: random.Random,
    ) -> List[UnitStartingData]:
        formation = self.config.formation
        chance = formation.mini_formation_chance

        if mode == GameMode.SEIZE:
            return seize_positions(teams, capture_point, x_bound, y_bound, min_distance, rng, self.catalog, chance)
        if mode.is_single_team:
            return battle_royale_positions(
                teams[0], x_bound, y_bound, min_distance, rng, formation.battle_royale_circle_limit,
            )
        if mode == GameMode.TEAM_BATTLE:
            return team_battle_positions(
                teams[0], team_ids, x_bound, y_bound, min_distance, rng, self.catalog,
                formation.team_mini_formation_chance, chance,
            )
        if mode == GameMode.SURVIVE:
            return survive_positions(teams, x_bound, y_bound, min_distance, rng, self.catalog, chance)
        return two_team_positions(teams, x_bound, y_bound, min_distance, rng, self.catalog, chance)

    @staticmethod
    def _assign_player_names(
        mode: GameMode,
        units: List[UnitStartingData],
        player_names: List[str],
    ) -> List[Optional[str]]:
        """Every unit in single-team and team battles, team 1 only otherwise; in output order."""
        every_unit = mode.always_random
        assigned: List[Optional[str]] = []
        index = 0
        for unit in units:
            if index < len(player_names) and (every_unit or unit.team_id == 1):
                assigned.append(player_names[index])
                index += 1
            else:
                assigned.append(None)
        return assigned
