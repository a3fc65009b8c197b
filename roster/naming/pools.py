"""
Suffix pools for army names.

An army named after its theme gets a suffix that starts with the same
letter ("Pegasus Pursuit", "Lance Lunge").
"""

from __future__ import annotations

from typing import Dict, List


ALLITERATIVE_SUFFIXES: Dict[str, List[str]] = {
    "A": ["Arena", "Assault", "Attack", "Among Us"],
    "B": ["Brawl", "Battle"],
    "C": ["Clash"],
    "D": ["Duel", "Dance"],
    "E": ["Elites", "Empire", "Expired Soda"],
    "F": ["Fight", "Feud", "Free for All", "Frenzy", "Fortnite"],
    "G": ["Gamba"],
    "H": ["Hunt"],
    "I": ["Invasion"],
    "J": ["Joust", "Jamboree", "Jobbers"],
    "K": ["Kombat"],
    "L": ["Lunge", "Life and Death"],
    "M": ["Melee", "Morbin'"],
    "N": ["Noose Take"],
    "O": ["Operation"],
    "P": ["Pursuit"],
    "Q": ["Quarrel"],
    "R": ["Route", "Royale"],
    "S": ["Scuffle", "Skirmish", "Siege"],
    "T": ["Tournament", "Tussle"],
    "U": ["Ultimates"],
    "V": ["Violence", "Vengeance"],
    "W": ["War"],
    "X": ["X", "Xenosaga"],
    "Y": ["Yolo"],
    "Z": ["Z"],
}

FALLBACK_SUFFIX = "Battle"


def suffixes_for(name: str) -> List[str]:
    """Suffix pool for the first letter of a name (empty if none)."""
    if not name:
        return []
    return ALLITERATIVE_SUFFIXES.get(name[0].upper(), [])
