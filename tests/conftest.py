"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test files.
"""

import os
import random

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from engine.config import SetupConfig
from roster.catalog import CharacterRecord, ClassRecord, InMemoryCatalog, StatType, Weapon
from roster.distributions import CompositionLibrary
from roster.naming.mapper import ThemeNameEntry, ThemeNameMapper
from telemetry.logger import telemetry


def _stats(hp: int, strength: int, speed: int, defense: int):
    return {StatType.HP: hp, StatType.STR: strength, StatType.SPD: speed, StatType.DEF: defense}


@pytest.fixture(autouse=True)
def telemetry_off():
    """Keep the global telemetry sink closed unless a test opens it."""
    telemetry.close()
    yield
    telemetry.close()


@pytest.fixture
def rng() -> random.Random:
    """
    Seeded generator shared by a single test.
    """
    return random.Random(1234)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    """
    Small catalog with melee and ranged classes, mounted and flying flags.
    """
    classes = [
        ClassRecord("Knight", False, Weapon.LANCE, _stats(17, 8, 3, 10), ("armored",)),
        ClassRecord("General", True, Weapon.AXE, _stats(22, 11, 3, 14), ("armored",)),
        ClassRecord("Archer", False, Weapon.BOW, _stats(17, 6, 5, 4)),
        ClassRecord("Sniper", True, Weapon.BOW, _stats(20, 7, 9, 7)),
        ClassRecord("Cavalier", False, Weapon.SWORD, _stats(17, 6, 6, 5), ("mounted",)),
        ClassRecord("Pegasus Knight", False, Weapon.LANCE, _stats(16, 4, 8, 2), ("flying",)),
        ClassRecord("Mage", False, Weapon.TOME, _stats(16, 0, 4, 2), ("magic",)),
        ClassRecord("Sorcerer", True, Weapon.TOME, _stats(17, 0, 4, 5), ("magic",)),
        ClassRecord("Ninja", False, Weapon.SHURIKEN, _stats(16, 3, 8, 3)),
        ClassRecord("Warrior", True, Weapon.AXE, _stats(28, 12, 7, 7)),
    ]
    characters = [
        CharacterRecord("Alden", "Cavalier", True, True, ("royal",)),
        CharacterRecord("Brenna", "Pegasus Knight", True, True, ("royal", "sky_corps")),
        CharacterRecord("Cato", "Archer", True, True, ("hunter",)),
        CharacterRecord("Edric", "Knight", True, True, ("royal",)),
        CharacterRecord("Isolde", "Mage", True, True, ("scholar",)),
        CharacterRecord("Mirela", "Sorcerer", False, True, ("villain", "scholar")),
        CharacterRecord("Norwin", "General", False, True, ("villain",)),
        CharacterRecord("Soldier", "Knight", False, False, ("generic",)),
        CharacterRecord("Bowman", "Archer", False, False, ("generic",)),
        CharacterRecord("Brigand", "Warrior", False, False, ("generic", "villain")),
    ]
    return InMemoryCatalog(characters, classes)


@pytest.fixture
def knight_only_catalog() -> InMemoryCatalog:
    """
    One class, one generic character.
    """
    return InMemoryCatalog(
        [CharacterRecord("Soldier", "Knight", False, False, ("generic",))],
        [ClassRecord("Knight", False, Weapon.LANCE, _stats(17, 8, 3, 10), ("armored",))],
    )


@pytest.fixture
def empty_catalog() -> InMemoryCatalog:
    return InMemoryCatalog([], [])


@pytest.fixture
def naming() -> ThemeNameMapper:
    """
    Name service with a couple of mapped entries; everything else gets a suffix.
    """
    return ThemeNameMapper(
        theme_names={
            "royal": ThemeNameEntry("royal", "Royal Guard", False),
            "knight": ThemeNameEntry("Knight", "Knights", True),
        },
        enemy_theme_names={
            "villain": ThemeNameEntry("villain", "The Black Hand", False),
        },
    )


@pytest.fixture
def setup_config() -> SetupConfig:
    return SetupConfig()


@pytest.fixture
def library() -> CompositionLibrary:
    """
    Empty library: every lookup resolves to the built-in debug team.
    """
    return CompositionLibrary()
