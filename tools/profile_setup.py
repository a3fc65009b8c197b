#!/usr/bin/env python3
"""
Performance profiling script for battle setup generation.

Generates the same kind of setup many times in a row so the roster and
placement hot spots show up.

Usage:
    # Profile 200 two-team setups
    python tools/profile_setup.py --method cprofile --runs 200 --mode default

    # Memory growth over 500 survive setups
    python tools/profile_setup.py --method memory --runs 500 --mode survive

    # Read back a profile
    python tools/profile_setup.py --method analyze --analyze-file profile_setup.prof
"""

import argparse
import cProfile
import os
import pstats
import sys
import time
from pathlib import Path

import psutil

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def _generate(runs: int, mode: str, players: int, winners: int) -> int:
    """Create ``runs`` setups with consecutive seeds; returns the units generated."""
    from engine.battle_setup import BattleSetupRequest, BattleSetupService, GameMode
    from engine.config import SetupConfig

    service = BattleSetupService.from_config(SetupConfig.load())
    names = [f"Player {i + 1}" for i in range(players)]
    game_mode = GameMode.parse(mode)

    total = 0
    for seed in range(runs):
        request = BattleSetupRequest(mode=game_mode, player_names=names, winners=winners, seed=seed)
        total += len(service.create(request).units)
    return total


def profile_with_cprofile(
    runs: int = 100,
    output_file: str = "profile_setup.prof",
    mode: str = "default",
    players: int = 20,
    winners: int = 1,
):
    """
    Profile setup generation using cProfile.

    Args:
        runs: Number of setups to generate
        output_file: Where to save the profile results
        mode: Game mode to generate
        players: Players per setup
        winners: Winners per setup (team battle)
    """
    print(f"Profiling {runs} {mode} setups with {players} players...")
    profiler = cProfile.Profile()

    start = time.perf_counter()
    profiler.enable()
    try:
        units = _generate(runs, mode, players, winners)
    finally:
        profiler.disable()
    elapsed = time.perf_counter() - start

    profiler.dump_stats(output_file)
    print(f"Generated {units} units in {elapsed:.2f}s ({elapsed / max(runs, 1) * 1000:.1f}ms per setup)")
    print(f"\nProfile data saved to {output_file}")
    print(f"\nTo view results:")
    print(f"  python tools/profile_setup.py --method analyze --analyze-file {output_file}")


def profile_memory(runs: int = 100, mode: str = "default", players: int = 20, winners: int = 1):
    """
    Report resident memory before and after generating ``runs`` setups.

    Args:
        runs: Number of setups to generate
        mode: Game mode to generate
        players: Players per setup
        winners: Winners per setup (team battle)
    """
    process = psutil.Process(os.getpid())
    before = process.memory_info().rss
    units = _generate(runs, mode, players, winners)
    after = process.memory_info().rss

    mb = 1024 * 1024
    print(f"Generated {units} units over {runs} {mode} setups")
    print(f"  RSS before: {before / mb:.1f} MB")
    print(f"  RSS after:  {after / mb:.1f} MB")
    print(f"  Growth:     {(after - before) / mb:+.1f} MB")
    print(f"  System memory used: {psutil.virtual_memory().percent:.1f}%")


def analyze_profile(profile_file: str = "profile_setup.prof", sort_by: str = "cumulative", lines: int = 50):
    """
    Analyze a cProfile output file.

    Args:
        profile_file: Path to .prof file
        sort_by: How to sort results (cumulative, time, calls, etc.)
        lines: Number of lines to show
    """
    stats = pstats.Stats(profile_file)
    stats.sort_stats(sort_by)
    stats.print_stats(lines)


def main():
    parser = argparse.ArgumentParser(description="Profile battle setup generation")
    parser.add_argument(
        "--method",
        choices=["cprofile", "memory", "analyze"],
        default="cprofile",
        help="Profiling method to use"
    )
    parser.add_argument(
        "--runs",
        type=int,
        default=100,
        help="Number of setups to generate (default: 100)"
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="default",
        help="Game mode: default, seize, survive, battle royale, hot potato, team battle"
    )
    parser.add_argument(
        "--players",
        type=int,
        default=20,
        help="Players per setup (default: 20)"
    )
    parser.add_argument(
        "--winners",
        type=int,
        default=1,
        help="Winners per setup, used by team battle (default: 1)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="profile_setup.prof",
        help="Output file path"
    )
    parser.add_argument(
        "--analyze-file",
        type=str,
        default="profile_setup.prof",
        help="Profile file to analyze (for analyze method)"
    )
    parser.add_argument(
        "--sort-by",
        type=str,
        default="cumulative",
        choices=["cumulative", "time", "calls", "tottime"],
        help="How to sort results (for analyze method)"
    )
    parser.add_argument(
        "--lines",
        type=int,
        default=50,
        help="Number of lines to show (for analyze method)"
    )

    args = parser.parse_args()

    if args.method == "cprofile":
        profile_with_cprofile(args.runs, args.output, args.mode, args.players, args.winners)
    elif args.method == "memory":
        profile_memory(args.runs, args.mode, args.players, args.winners)
    elif args.method == "analyze":
        analyze_profile(args.analyze_file, args.sort_by, args.lines)


if __name__ == "__main__":
    main()
