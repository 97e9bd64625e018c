import argparse
import logging
import random
import tkinter as tk

from shiba2048.agent.dummy.ai import DummyAI
from shiba2048.agent.dummy.report import plot_scores
from shiba2048.config import GameConfig, configure_logging
from shiba2048.game_engine import GridEngine
from shiba2048.gameui import Game2048GUI
from shiba2048.scores import ScoreTracker

logger = logging.getLogger(__name__)


def play_game(config):
    root = tk.Tk()
    Game2048GUI.create(root, config)
    root.mainloop()


def evaluate_dummy(config, n_games, undo_probability=0.0, plot=None):
    # In-memory scores: simulated games must not touch the player's best score
    engine = GridEngine(
        size=config.grid_size,
        scores=ScoreTracker(),
        history_capacity=config.history_capacity,
        undo_budget=config.undo_budget,
        win_value=config.win_value,
        four_probability=config.four_probability,
        rng=random.Random(config.seed),
    )
    # Moves come from a second stream, seeded apart from the spawns
    ai_seed = config.seed + 1 if config.seed is not None else None
    ai = DummyAI(rng=random.Random(ai_seed), undo_probability=undo_probability)

    report = ai.eval(engine, n_games)
    print(report.summary())
    if plot:
        plot_scores(report, plot)
        print(f"Plot saved to {plot}")
    return report


def build_parser():
    parser = argparse.ArgumentParser(prog="shiba2048", description="2048 with undo, themes and sound.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--seed", type=int, default=None, help="Seed for tile spawns")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("play", help="Open the game window (default)")

    simulate = subparsers.add_parser("simulate", help="Play random games and check the engine rules")
    simulate.add_argument("--games", type=int, default=100, help="Number of games to play")
    simulate.add_argument("--seed", type=int, default=None, dest="simulate_seed", help="Seed for tile spawns and moves")
    simulate.add_argument("--undo-probability", type=float, default=0.0, help="Chance of an undo after each move")
    simulate.add_argument("--plot", default=None, help="Save a score plot to this file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    seed = getattr(args, "simulate_seed", None)
    if seed is None:
        seed = args.seed

    config = GameConfig.from_env(seed=seed, log_level=args.log_level)
    configure_logging(config.log_level)

    if args.command == "simulate":
        if args.games < 1:
            logger.error("--games must be at least 1, got %d", args.games)
            return 2
        evaluate_dummy(config, args.games, args.undo_probability, args.plot)
    else:
        play_game(config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
