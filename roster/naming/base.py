"""
Base naming interface.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod


class NameService(ABC):
    """
    Turns a theme key (character name, flag, weapon, ...) into an army name.

    Generators only see this interface; the returned string is used as is.
    """

    @abstractmethod
    def theme_name(self, raw_name: str, rng: random.Random) -> str:
        """
        Display name for a player-side theme key.

        Args:
            raw_name: Theme key (e.g. "Lance", "Promoted", "Random")
            rng: Generator used to pick a suffix

        Returns:
            Army name
        """
        raise NotImplementedError

    @abstractmethod
    def enemy_theme_name(self, raw_name: str) -> str:
        """Display name for an enemy theme key, or "" when there is none."""
        raise NotImplementedError
