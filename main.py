import argparse
import json
import os
import sys
from pathlib import Path

# pygame prints a banner on import; the CLI output must stay pure JSON
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from settings import TITLE
from engine.battle_setup import BattleSetupRequest, BattleSetupService, GameMode
from engine.config import SetupConfig
from engine.error_handler import GameError, log_error
from telemetry.logger import telemetry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=TITLE, description="Generate a battle setup and print it as JSON")
    parser.add_argument(
        "--mode",
        default="default",
        help="default, seize, survive, battle royale, hot potato or team battle",
    )
    players = parser.add_mutually_exclusive_group()
    players.add_argument("--players", type=int, default=None, help="Number of anonymous players")
    players.add_argument("--names", nargs="+", default=None, help="Player names")
    parser.add_argument("--winners", type=int, default=1, help="Winners (team battle, HP scaling)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible setup")
    parser.add_argument("--composition", default=None, help="Authored composition name")
    parser.add_argument("--random-player-team", action="store_true", help="Roll team 1 instead of using the level")
    parser.add_argument("--random-enemy-team", action="store_true", help="Roll a boss-led team 2")
    parser.add_argument("--character", default=None, help="Every team 1 unit plays this character")
    parser.add_argument("--strength", type=float, default=1.0, help="Team 2 strength relative to team 1")
    parser.add_argument("--config", type=Path, default=None, help="Setup settings JSON")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory with catalog and composition data")
    parser.add_argument("--telemetry", type=Path, default=None, help="Append JSONL events to this file")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.telemetry is not None:
        telemetry.init(args.telemetry)

    try:
        config = SetupConfig.load(args.config)
        if args.data_dir is not None:
            config.data.data_dir = str(args.data_dir)

        if args.names:
            names = list(args.names)
        else:
            names = [f"Player {i + 1}" for i in range(args.players if args.players is not None else 10)]

        service = BattleSetupService.from_config(config)
        request = BattleSetupRequest(
            mode=GameMode.parse(args.mode),
            player_names=names,
            winners=args.winners,
            seed=args.seed,
            composition_name=args.composition,
            random_player_team=args.random_player_team,
            random_enemy_team=args.random_enemy_team,
            fixed_character=args.character,
            team2_relative_strength=args.strength,
        )
        setup = service.create(request)
    except GameError as e:
        log_error(e, "main")
        print(e.user_message, file=sys.stderr)
        return 2
    finally:
        telemetry.close()

    print(json.dumps(setup.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
