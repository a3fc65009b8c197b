"""
CSV-backed theme name mapper.

Both tables share the layout ``raw_name,theme_name,add_suffix`` with a
header row. Lookups are case-insensitive on the raw name.
"""

from __future__ import annotations

import csv
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from engine.error_handler import get_logger
from .base import NameService
from .pools import FALLBACK_SUFFIX, suffixes_for

log = get_logger(__name__)


@dataclass(frozen=True)
class ThemeNameEntry:
    raw_name: str
    theme_name: str
    add_suffix: bool = False


def load_name_table(path: Optional[Path]) -> Dict[str, ThemeNameEntry]:
    """
    Read a theme-name CSV into a lookup keyed by lowercase raw name.

    A missing file is not an error: the table is simply empty.
    """
    table: Dict[str, ThemeNameEntry] = {}
    if path is None:
        return table
    path = Path(path)
    if not path.exists():
        log.warning(f"Theme names CSV not found at {path}. Using default naming.")
        return table

    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)  # header
        for row in reader:
            if len(row) < 3 or not row[0].strip():
                continue
            entry = ThemeNameEntry(
                raw_name=row[0].strip(),
                theme_name=row[1].strip(),
                add_suffix=row[2].strip().upper() == "TRUE",
            )
            table[entry.raw_name.lower()] = entry

    log.debug(f"Loaded {len(table)} theme names from {path}")
    return table


def add_alliterative_suffix(name: str, rng: random.Random) -> str:
    """Append a suffix sharing the name's first letter ("Lance" -> "Lance Lunge")."""
    if not name:
        return name
    suffixes = suffixes_for(name)
    if not suffixes:
        return f"{name} {FALLBACK_SUFFIX}"
    return f"{name} {suffixes[rng.randrange(len(suffixes))]}"


class ThemeNameMapper(NameService):
    """NameService backed by the player and enemy theme-name tables."""

    def __init__(
        self,
        theme_names: Optional[Dict[str, ThemeNameEntry]] = None,
        enemy_theme_names: Optional[Dict[str, ThemeNameEntry]] = None,
    ):
        self.theme_names = theme_names or {}
        self.enemy_theme_names = enemy_theme_names or {}

    @classmethod
    def from_files(cls, theme_names_path: Optional[Path], enemy_theme_names_path: Optional[Path]) -> "ThemeNameMapper":
        return cls(load_name_table(theme_names_path), load_name_table(enemy_theme_names_path))

    def theme_name(self, raw_name: str, rng: random.Random) -> str:
        entry = self.theme_names.get(raw_name.lower())
        if entry is None:
            # Unmapped names always get a suffix
            return add_alliterative_suffix(raw_name, rng)
        if entry.add_suffix:
            return add_alliterative_suffix(entry.theme_name, rng)
        return entry.theme_name

    def enemy_theme_name(self, raw_name: str) -> str:
        entry = self.enemy_theme_names.get(raw_name.lower())
        return entry.theme_name if entry is not None else ""
