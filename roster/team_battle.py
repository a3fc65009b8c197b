"""
Team-battle team count selection.

Teams must be equal-sized, hold more than one player each, and the winner
count must be a whole number of teams.
"""

from __future__ import annotations

import math
import random
from typing import List

from engine.error_handler import TeamConfigurationError, get_logger
from settings import MAX_TEAMS, RESERVED_TEAM_ID

log = get_logger(__name__)


def valid_team_counts(total_players: int, winners: int) -> List[int]:
    """All team counts that split ``total_players`` evenly with whole winning teams."""
    counts = []
    for teams in range(2, min(total_players // 2, MAX_TEAMS) + 1):
        if total_players % teams:
            continue
        players_per_team = total_players // teams
        if players_per_team > 1 and winners % players_per_team == 0:
            counts.append(teams)
    return counts


def determine_number_of_teams(total_players: int, winners: int, rng: random.Random) -> int:
    """
    Pick a team count, favouring counts close to sqrt(total_players).

    Args:
        total_players: Number of players in the battle
        winners: Number of players that should win
        rng: Seeded generator

    Returns:
        Number of teams

    Raises:
        TeamConfigurationError: If the inputs are invalid or no split exists
    """
    if total_players <= 1 or winners < 1 or winners > total_players:
        raise TeamConfigurationError(
            f"Invalid team battle configuration: {total_players} players, {winners} winners",
            user_message="Team battle needs at least 2 players and between 1 and all of them winning.",
        )

    counts = valid_team_counts(total_players, winners)
    if not counts:
        raise TeamConfigurationError(
            f"No valid team configuration for {total_players} players with {winners} winners",
            user_message=f"{total_players} players cannot be split into teams with {winners} winners.",
        )

    target = math.sqrt(total_players)
    weights = [1.0 / (abs(t - target) + 1.0) for t in counts]
    value = rng.random() * sum(weights)

    cumulative = 0.0
    for teams, weight in zip(counts, weights):
        cumulative += weight
        if value <= cumulative:
            log.info(
                f"Team battle: {total_players} players, {winners} winners -> "
                f"{teams} teams of {total_players // teams}"
            )
            return teams
    return counts[-1]


def valid_team_ids(number_of_teams: int) -> List[int]:
    """Team ids starting at 1, skipping the reserved id."""
    ids: List[int] = []
    current = 1
    while len(ids) < number_of_teams:
        if current != RESERVED_TEAM_ID:
            ids.append(current)
        current += 1
    return ids
