"""
Memmatch CLI - Command-line interface for the engine.

Usage:
    memmatch simulate [--ai easy hard] [--pairs N]   Play AI against AI
    memmatch stages                                  Show the stage table
    memmatch achievements                            Show achievement progress
    memmatch stats [--reset]                         Show (or reset) stats
    memmatch serve [--host H] [--port P]             Run the HTTP API
"""

from __future__ import annotations
import argparse
import logging
import os
import random
import sys
from pathlib import Path

from .config import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Memmatch - Memory matching game engine",
        prog="memmatch",
    )
    parser.add_argument("--data-file", help="Stats JSON file (default: $MEMMATCH_DATA_FILE)")
    parser.add_argument("--log-level", help="Logging level (default: $MEMMATCH_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a game between AI seats")
    simulate_parser.add_argument(
        "--ai", nargs="+", default=["medium", "hard"],
        choices=["easy", "medium", "hard"], help="Difficulty of each AI seat (1-4 seats)",
    )
    simulate_parser.add_argument("--pairs", type=int, default=8, help="Pairs on the board")
    simulate_parser.add_argument("--seed", type=int, help="Random seed")
    simulate_parser.add_argument("--verbose", "-v", action="store_true", help="Print every resolved pair")

    # Catalog commands
    subparsers.add_parser("stages", help="Show the stage table")
    subparsers.add_parser("achievements", help="Show achievement progress")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show aggregate stats")
    stats_parser.add_argument("--reset", action="store_true", help="Reset stats to defaults")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.data_file:
        settings.data_file = Path(args.data_file).expanduser()
    if args.log_level:
        settings.log_level = args.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "stages":
        cmd_stages(args, settings)
    elif args.command == "achievements":
        cmd_achievements(args, settings)
    elif args.command == "stats":
        cmd_stats(args, settings)
    elif args.command == "serve":
        cmd_serve(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def run_simulation(difficulties: list[str], pairs: int = 8, seed: int | None = None):
    """
    Play one board with every seat taken by an AI.

    Runs on a manual clock, so it finishes instantly. Returns the engine.
    """
    from .bots import AITurnDriver
    from .engine_core import (
        Difficulty, GameMode, GameSession, ManualClock, MatchEngine, Player,
        Scheduler, generate_deck,
    )
    from .feedback import FeedbackChannel

    if not 1 <= len(difficulties) <= 4:
        raise ValueError("simulate needs 1-4 AI seats")

    rng = random.Random(seed)
    players = [
        Player(
            player_id=f"ai{i + 1}",
            name=f"AI {i + 1} ({Difficulty.parse(d).value})",
            is_ai=True,
            difficulty=Difficulty.parse(d),
        )
        for i, d in enumerate(difficulties)
    ]
    game = GameSession(
        game_id=f"sim-{seed if seed is not None else 'x'}",
        deck=generate_deck(pairs, rng=rng),
        players=players,
        mode=GameMode.AI,
        preview_time=0,
    )
    scheduler = Scheduler(ManualClock())
    engine = MatchEngine(
        game,
        scheduler,
        feedback=FeedbackChannel(sound_enabled=False, haptics_enabled=False),
        rng=rng,
        ai_driver=AITurnDriver(rng=rng),
    )
    engine.start()
    scheduler.run_until_idle(engine.owner)
    return engine


def cmd_simulate(args):
    """Play AI against AI and print the result."""
    from .engine_core import Matched, Mismatched
    from .engine_core.scoring import format_time

    try:
        engine = run_simulation(args.ai, pairs=args.pairs, seed=args.seed)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    game = engine.session
    if args.verbose:
        names = {p.player_id: p.name for p in game.players}
        for result in engine.history:
            if isinstance(result, Matched):
                print(f"  {names[result.player_id]}: match {result.indices} +{result.points}")
            elif isinstance(result, Mismatched):
                print(f"  {names[result.player_id]}: miss {result.indices}")

    summary = game.summary
    if summary is None:
        print("Game did not finish")
        sys.exit(1)

    print(f"Board: {game.pair_count} pairs, {summary.total_moves} moves, {format_time(summary.game_time)}")
    print("\nScores:")
    for p in sorted(summary.players, key=lambda p: -p.score):
        marker = " *" if p.player_id in summary.winner_ids else ""
        print(f"  {p.name:<20} {p.score:>4} ({p.matches} pairs, best combo {p.best_combo}){marker}")
    print(f"\nStars: {summary.stars}  Best streak: {summary.best_streak}")


def cmd_stages(args, settings: Settings):
    """Print the stage table with unlock flags."""
    from .catalog import STAGES, is_stage_unlocked
    from .persistence import StatsStore

    unlocked = StatsStore(settings.data_file).load().unlocked_stages
    print(f"{'Stage':<7}{'Grid':<7}{'Pairs':<7}{'Preview':<9}{'Level':<8}")
    for s in STAGES:
        lock = "" if is_stage_unlocked(s.stage, unlocked) else "  (locked)"
        print(f"{s.stage:<7}{f'{s.rows}x{s.cols}':<7}{s.pairs:<7}{f'{s.preview_time}s':<9}{s.difficulty:<8}{lock}")


def cmd_achievements(args, settings: Settings):
    """Print every achievement and whether it is unlocked."""
    from .catalog import ACHIEVEMENTS, achievement_progress
    from .persistence import StatsStore

    data = StatsStore(settings.data_file).load()
    progress = achievement_progress(data.achievements)
    print(f"Achievements: {progress['unlocked']}/{progress['total']} ({progress['percentage']}%)\n")
    for a in ACHIEVEMENTS:
        times = data.achievement_counts.get(a.id, 0)
        state = f"x{times}" if times else ("yes" if a.id in data.achievements else "-")
        print(f"  {a.icon} {a.name:<18} {state:<5} {a.description}")


def cmd_stats(args, settings: Settings):
    """Print aggregate stats."""
    from .engine_core.scoring import format_time
    from .persistence import GameData, StatsStore
    from .persistence.stats import DEFAULT_BEST_TIME

    store = StatsStore(settings.data_file)
    if args.reset:
        if not store.save(GameData()):
            print(f"Error: could not write {store.path}")
            sys.exit(1)
        print("Stats reset")
        return

    data = store.load()
    best = data.stats.best_time
    print(f"Data file:      {store.path}")
    print(f"Games played:   {data.stats.games_played}")
    print(f"Total score:    {data.stats.total_score}")
    print(f"Best time:      {'-' if best >= DEFAULT_BEST_TIME else format_time(best)}")
    print(f"Stages:         {data.unlocked_stages} unlocked")
    print(f"Achievements:   {len(data.achievements)}")
    print(f"Sound/haptics:  {data.preferences.sound_enabled}/{data.preferences.haptics_enabled}")


def cmd_serve(args, settings: Settings):
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    # The app factory reads its settings from the environment.
    os.environ["MEMMATCH_DATA_FILE"] = str(settings.data_file)
    logger.info("Serving on %s:%d (data: %s)", args.host, args.port, settings.data_file)
    uvicorn.run(
        "memmatch.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
