"""
Unit / class catalog.

The roster generators never reach for global data managers; they receive a
UnitCatalog and query it. Empty query results are normal and the callers
fall back, so nothing here raises for "no match".
"""

from __future__ import annotations

import json
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from engine.error_handler import CatalogError, get_logger

log = get_logger(__name__)


class Weapon(Enum):
    SWORD = "Sword"
    LANCE = "Lance"
    AXE = "Axe"
    BOW = "Bow"
    TOME = "Tome"
    STAFF = "Staff"
    SHURIKEN = "Shuriken"
    FIST = "Fist"
    NONE = "None"

    @classmethod
    def parse(cls, raw: str) -> "Weapon":
        """Parse a weapon column, accepting the legacy Dagger/Stone spellings."""
        text = (raw or "").strip().lower()
        if not text:
            return cls.NONE
        if text == "dagger":
            return cls.SHURIKEN
        if text == "stone":
            return cls.FIST
        for weapon in cls:
            if weapon.value.lower() == text:
                return weapon
        log.warning(f"Unknown weapon type: {raw}. Defaulting to None.")
        return cls.NONE

    @property
    def is_ranged(self) -> bool:
        return self in RANGED_WEAPONS


RANGED_WEAPONS = frozenset({Weapon.TOME, Weapon.BOW, Weapon.SHURIKEN, Weapon.STAFF})


class StatType(Enum):
    HP = "HP"
    STR = "Str"
    MAG = "Mag"
    SKL = "Skl"
    SPD = "Spd"
    LCK = "Lck"
    DEF = "Def"
    RES = "Res"


class MovementType(Enum):
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    FLIER = "flier"


@dataclass(frozen=True)
class CharacterRecord:
    """A named character with its default class."""
    name: str
    class_name: str
    playable: bool = False
    unique: bool = False
    flags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassRecord:
    """A unit class with the attributes used for themed selection."""
    name: str
    promoted: bool = False
    preferred_weapon: Weapon = Weapon.NONE
    base_stats: Dict[StatType, int] = field(default_factory=dict, hash=False, compare=False)
    flags: Tuple[str, ...] = ()

    @property
    def is_ranged(self) -> bool:
        return self.preferred_weapon.is_ranged

    @property
    def movement_type(self) -> MovementType:
        lowered = [f.lower() for f in self.flags]
        if any("flying" in f for f in lowered):
            return MovementType.FLIER
        if any("mounted" in f for f in lowered):
            return MovementType.CAVALRY
        return MovementType.INFANTRY

    def base_stat(self, stat: StatType) -> int:
        return self.base_stats.get(stat, 0)


class UnitCatalog(ABC):
    """
    Read-only query interface over characters and classes.

    Subclasses only supply the two ordered lists; every query is derived
    from them so results keep catalog order (which keeps seeded runs
    reproducible).
    """

    @abstractmethod
    def characters(self) -> List[CharacterRecord]:
        raise NotImplementedError

    @abstractmethod
    def classes(self) -> List[ClassRecord]:
        raise NotImplementedError

    # --- characters -------------------------------------------------------

    def all_characters(
        self,
        playable_only: bool = False,
        unique_only: bool = False,
        generic_only: bool = False,
    ) -> List[CharacterRecord]:
        return [
            c for c in self.characters()
            if (not playable_only or c.playable)
            and (not unique_only or c.unique)
            and (not generic_only or not c.unique)
        ]

    def character(self, name: str) -> Optional[CharacterRecord]:
        key = name.lower()
        for c in self.characters():
            if c.name.lower() == key:
                return c
        return None

    def characters_with_flag(self, flag: str) -> List[CharacterRecord]:
        return [c for c in self.characters() if flag in c.flags]

    def characters_with_default_class(self, class_name: str) -> List[CharacterRecord]:
        key = class_name.lower()
        return [c for c in self.characters() if c.class_name.lower() == key]

    def character_flags(self) -> List[str]:
        return sorted({flag for c in self.characters() for flag in c.flags})

    def random_character(
        self,
        rng: random.Random,
        playable_only: bool = False,
        unique_only: bool = False,
        generic_only: bool = False,
    ) -> Optional[CharacterRecord]:
        pool = self.all_characters(playable_only, unique_only, generic_only)
        if not pool:
            log.debug(
                f"No characters match playable_only={playable_only}, "
                f"unique_only={unique_only}, generic_only={generic_only}"
            )
            return None
        return pool[rng.randrange(len(pool))]

    # --- classes ----------------------------------------------------------

    def class_count(self) -> int:
        return len(self.classes())

    def class_by_index(self, index: int) -> Optional[ClassRecord]:
        classes = self.classes()
        if 0 <= index < len(classes):
            return classes[index]
        return None

    def class_by_name(self, name: str) -> Optional[ClassRecord]:
        for c in self.classes():
            if c.name == name:
                return c
        return None

    def class_flags(self) -> List[str]:
        return sorted({flag for c in self.classes() for flag in c.flags})

    def classes_with_flag(self, flag: str) -> List[ClassRecord]:
        return [c for c in self.classes() if flag in c.flags]

    def classes_by_promotion(self, promoted: bool) -> List[ClassRecord]:
        return [c for c in self.classes() if c.promoted == promoted]

    def classes_by_weapon(self, weapon: Weapon) -> List[ClassRecord]:
        return [c for c in self.classes() if c.preferred_weapon == weapon]

    def preferred_weapons(self) -> List[Weapon]:
        seen: List[Weapon] = []
        for c in self.classes():
            if c.preferred_weapon != Weapon.NONE and c.preferred_weapon not in seen:
                seen.append(c.preferred_weapon)
        return seen

    def classes_with_high_stat(self, stat: StatType) -> List[ClassRecord]:
        """Classes in the top 25% for a base stat (ties at the threshold included)."""
        classes = self.classes()
        if not classes:
            return []
        values = sorted((c.base_stat(stat) for c in classes), reverse=True)
        threshold = values[max(0, math.floor(len(values) * 0.25))]
        return [c for c in classes if c.base_stat(stat) >= threshold]

    def stat_types(self) -> List[StatType]:
        return list(StatType)

    def is_ranged_class(self, class_name: str) -> bool:
        record = self.class_by_name(class_name)
        return record is not None and record.is_ranged


class InMemoryCatalog(UnitCatalog):
    """Catalog backed by plain lists (used for shipped data and tests)."""

    def __init__(
        self,
        characters: Sequence[CharacterRecord] = (),
        classes: Sequence[ClassRecord] = (),
    ):
        self._characters = list(characters)
        self._classes = list(classes)

    def characters(self) -> List[CharacterRecord]:
        return self._characters

    def classes(self) -> List[ClassRecord]:
        return self._classes


def _parse_character(row: dict) -> CharacterRecord:
    flags = row.get("flags", [])
    if isinstance(flags, str):
        flags = [f.strip() for f in flags.split(",")]
    return CharacterRecord(
        name=str(row["name"]).strip(),
        class_name=str(row["class_name"]).strip(),
        playable=bool(row.get("playable", False)),
        unique=bool(row.get("unique", False)),
        flags=tuple(f for f in flags if f),
    )


def _parse_class(row: dict) -> ClassRecord:
    stats: Dict[StatType, int] = {}
    raw_stats = row.get("base_stats", {})
    for stat in StatType:
        for key in (stat.value, stat.value.lower(), stat.name):
            if key in raw_stats:
                stats[stat] = int(raw_stats[key])
                break
    flags = row.get("flags", [])
    if isinstance(flags, str):
        flags = [f.strip() for f in flags.split(",")]
    weapons = row.get("weapons") or [row.get("preferred_weapon", "")]
    return ClassRecord(
        name=str(row["name"]).strip(),
        promoted=bool(row.get("promoted", False)),
        preferred_weapon=Weapon.parse(weapons[0] if weapons else ""),
        base_stats=stats,
        flags=tuple(f for f in flags if f),
    )


def _read_rows(path: Path, key: str) -> List[dict]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(
            f"Could not read catalog file {path}: {e}",
            user_message="Unit data is missing or corrupt.",
        ) from e
    rows = data.get(key) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise CatalogError(f"Catalog file {path} has no '{key}' list")
    return rows


class JsonCatalog(InMemoryCatalog):
    """Catalog read from the shipped JSON data files."""

    def __init__(self, characters, classes, source: Optional[Path] = None):
        super().__init__(characters, classes)
        self.source = source


def load_catalog(
    data_dir: Path,
    characters_file: str = "characters.json",
    classes_file: str = "classes.json",
) -> JsonCatalog:
    """
    Load characters and classes from JSON.

    Args:
        data_dir: Directory holding the data files
        characters_file: File with a "characters" list
        classes_file: File with a "classes" list

    Returns:
        JsonCatalog in file order

    Raises:
        CatalogError: If a file is missing, malformed or has a bad row
    """
    try:
        data_dir = Path(data_dir)
        characters = [_parse_character(r) for r in _read_rows(data_dir / characters_file, "characters")]
        classes = [_parse_class(r) for r in _read_rows(data_dir / classes_file, "classes")]
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"Malformed catalog row: {e}") from e

    log.info(f"Loaded {len(characters)} characters and {len(classes)} classes")
    return JsonCatalog(characters, classes, source=data_dir)
