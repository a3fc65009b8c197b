"""
Battle setup configuration loader.

Loads and validates generation settings from a JSON config file. Every
section has defaults matching the tuned values, so a missing file simply
means "use the defaults".
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from settings import (
    CONFIG_DIR,
    DATA_DIR,
    DEFAULT_CLASS_NAME,
    DEFAULT_UNIT_NAME,
    MIN_DISTANCE,
    X_BOUND,
    Y_BOUND,
)
from .error_handler import ConfigError, ValidationError, get_logger

log = get_logger(__name__)

SETUP_CONFIG_FILE = CONFIG_DIR / "setup_settings.json"


@dataclass
class PlayerGenerationConfig:
    """Themed roster generation for player / ally teams."""
    theme_probability: float = 0.9
    default_class_probability: float = 0.5
    exclude_non_unique_probability: float = 0.7
    theme_weights: Dict[str, float] = field(default_factory=lambda: {
        "same_character": 10.0,
        "flag_based": 40.0,
        "same_class": 15.0,
        "class_flag_based": 40.0,
        "promotion_based": 5.0,
        "weapon_based": 15.0,
        "stat_based": 15.0,
    })
    invalid_character_names: List[str] = field(default_factory=lambda: ["CorrinF", "CorrinM"])
    default_class_name: str = DEFAULT_CLASS_NAME
    default_unit_name: str = DEFAULT_UNIT_NAME


@dataclass
class EnemyGenerationConfig:
    """Power-budgeted boss / miniboss / troop generation."""
    theme_weights: Dict[str, float] = field(default_factory=lambda: {
        "flag_based": 40.0,
        "same_class": 4.0,
        "class_flag_based": 40.0,
        "weapon_based": 5.0,
        "stat_based": 5.0,
        "random": 20.0,
    })
    single_boss_chance: float = 0.4
    small_boss_group_chance: float = 0.8
    small_group_max: int = 4
    large_group_max: int = 10
    normal_boss_strength_chance: float = 0.5
    hard_boss_strength_chance: float = 0.9
    strong_enemy_chance: float = 0.2
    normal_miniboss_chance: float = 0.7
    include_generic_boss_chance: float = 0.8
    boss_scale: float = 1.5
    strong_boss_scale: float = 2.0
    hard_boss_scale: float = 2.5
    miniboss_scale: float = 1.2
    strong_miniboss_scale: float = 1.5
    troop_scale: float = 0.7
    strong_troop_scale: float = 1.0
    troop_class_base: int = 2
    troop_class_roll: int = 5
    fallback_troop_name: str = "Soldier"
    fallback_boss_name: str = "Boss"
    invalid_character_names: List[str] = field(default_factory=lambda: ["CorrinF", "CorrinM"])


@dataclass
class FormationConfig:
    """Placement constants."""
    min_distance: float = MIN_DISTANCE
    x_bound: float = X_BOUND
    y_bound: float = Y_BOUND
    mini_formation_chance: float = 0.75
    team_mini_formation_chance: float = 0.6
    max_area_attempts: int = 50
    max_group_size: int = 8
    poisson_attempts: int = 30
    battle_royale_circle_limit: int = 16


@dataclass
class DataConfig:
    """Where the catalog, compositions and theme name tables live."""
    data_dir: str = str(DATA_DIR)
    characters_file: str = "characters.json"
    classes_file: str = "classes.json"
    compositions_file: str = "compositions.json"
    theme_names_file: str = "theme_names.csv"
    enemy_theme_names_file: str = "enemy_theme_names.csv"

    def path(self, name: str) -> Path:
        return Path(self.data_dir) / name


def _section(cls, data: Dict[str, Any], defaults):
    """Build a section dataclass from a dict, keeping defaults for missing keys."""
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        log.warning(f"Ignoring unknown {cls.__name__} keys: {', '.join(unknown)}")
    values = {name: data.get(name, getattr(defaults, name)) for name in known}
    return cls(**values)


@dataclass
class SetupConfig:
    """Complete battle setup configuration."""
    player: PlayerGenerationConfig = field(default_factory=PlayerGenerationConfig)
    enemy: EnemyGenerationConfig = field(default_factory=EnemyGenerationConfig)
    formation: FormationConfig = field(default_factory=FormationConfig)
    data: DataConfig = field(default_factory=DataConfig)

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "SetupConfig":
        """
        Load configuration from file, using defaults if the file doesn't exist.

        Args:
            config_file: Optional path to config file (defaults to standard location)

        Returns:
            Validated SetupConfig instance

        Raises:
            ConfigError: If the file exists but is not valid JSON
            ValidationError: If a value is out of range
        """
        if config_file is None:
            config_file = SETUP_CONFIG_FILE

        config = cls()

        if not config_file.exists():
            log.info(f"Setup config file not found at {config_file}, using defaults.")
            config.validate()
            return config

        try:
            with config_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(
                f"Could not read setup config {config_file}: {e}",
                user_message="The setup configuration file is unreadable.",
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Setup config {config_file} must contain a JSON object")

        if "player" in data:
            config.player = _section(PlayerGenerationConfig, data["player"], config.player)
        if "enemy" in data:
            config.enemy = _section(EnemyGenerationConfig, data["enemy"], config.enemy)
        if "formation" in data:
            config.formation = _section(FormationConfig, data["formation"], config.formation)
        if "data" in data:
            config.data = _section(DataConfig, data["data"], config.data)

        config.validate()
        return config

    def save(self, config_file: Optional[Path] = None) -> None:
        """
        Save configuration to file.

        Args:
            config_file: Optional path to config file (defaults to standard location)
        """
        if config_file is None:
            config_file = SETUP_CONFIG_FILE

        config_file.parent.mkdir(parents=True, exist_ok=True)
        with config_file.open("w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def validate(self) -> None:
        """Raise ValidationError on out-of-range values."""
        probabilities = {
            "player.theme_probability": self.player.theme_probability,
            "player.default_class_probability": self.player.default_class_probability,
            "player.exclude_non_unique_probability": self.player.exclude_non_unique_probability,
            "enemy.single_boss_chance": self.enemy.single_boss_chance,
            "enemy.small_boss_group_chance": self.enemy.small_boss_group_chance,
            "enemy.normal_boss_strength_chance": self.enemy.normal_boss_strength_chance,
            "enemy.hard_boss_strength_chance": self.enemy.hard_boss_strength_chance,
            "enemy.strong_enemy_chance": self.enemy.strong_enemy_chance,
            "enemy.normal_miniboss_chance": self.enemy.normal_miniboss_chance,
            "enemy.include_generic_boss_chance": self.enemy.include_generic_boss_chance,
            "formation.mini_formation_chance": self.formation.mini_formation_chance,
            "formation.team_mini_formation_chance": self.formation.team_mini_formation_chance,
        }
        for name, value in probabilities.items():
            if not 0.0 <= value <= 1.0:
                raise ValidationError(f"{name} must be within [0, 1], got {value}")

        for name, weights in (("player", self.player.theme_weights), ("enemy", self.enemy.theme_weights)):
            if any(w < 0 for w in weights.values()):
                raise ValidationError(f"{name}.theme_weights must be non-negative")

        if self.formation.min_distance <= 0:
            raise ValidationError(f"formation.min_distance must be positive, got {self.formation.min_distance}")
        if self.formation.x_bound <= 0 or self.formation.y_bound <= 0:
            raise ValidationError("formation bounds must be positive")
        if self.formation.max_area_attempts < 1 or self.formation.poisson_attempts < 1:
            raise ValidationError("formation attempt budgets must be at least 1")
        if self.formation.max_group_size < 1:
            raise ValidationError("formation.max_group_size must be at least 1")
        if self.enemy.small_group_max < 1 or self.enemy.large_group_max < 1:
            raise ValidationError("enemy miniboss group sizes must be at least 1")
        if self.enemy.troop_scale <= 0 or self.enemy.strong_troop_scale <= 0:
            raise ValidationError("enemy troop scales must be positive")


def load_setup_config(config_file: Optional[Path] = None) -> SetupConfig:
    """Load the setup configuration (convenience wrapper)."""
    return SetupConfig.load(config_file)
