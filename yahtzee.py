#!/usr/bin/env python3
"""
Unified entry point for Yahtzee Duel.

Usage:
    python yahtzee.py                                   # Console, human vs. computer
    python yahtzee.py --ui tui                          # Terminal (Textual)
    python yahtzee.py --players computer computer       # Watch two computers
    python yahtzee.py --names Ada Hal --load save.txt   # Resume a saved game
    python yahtzee.py --manual-rolls --log-level DEBUG  # Type in every roll

Command-line flags override the stored settings.
"""
import logging
import sys

from rich.console import Console

from game_coordinator import GameCoordinator, build_players, parse_args
from settings import load_settings

logger = logging.getLogger(__name__)


def main(argv=None):
    args = parse_args(argv)
    settings = load_settings()

    log_level = args.log_level or settings["log_level"]
    logging.basicConfig(level=getattr(logging, str(log_level).upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    manual_rolls = settings["manual_rolls"] if args.manual_rolls is None else args.manual_rolls
    speed = args.speed or settings["speed"]
    save_path = args.save_path or settings["save_path"]

    console = Console()
    prompts = None
    roll_source = None
    if args.ui == "console":
        from console import ConsolePrompts
        prompts = ConsolePrompts(console)
        if manual_rolls:
            roll_source = prompts.ask_roll

    try:
        players = build_players(args.players, args.names, prompts)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(2)

    try:
        if args.load:
            coordinator = GameCoordinator.load(args.load, players, speed=speed, roll_source=roll_source)
            if coordinator is None:
                console.print(f"[red]Could not load {args.load}[/red]")
                sys.exit(1)
        else:
            coordinator = GameCoordinator(players, speed=speed, roll_source=roll_source)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(2)

    logger.info("Starting %s game: %s", args.ui, ", ".join(coordinator.player_names))
    if args.ui == "tui":
        from tui import main as run_tui
        run_tui(coordinator, save_path=save_path, manual_rolls=manual_rolls,
                show_pursuits=settings["show_pursuits"])
    else:
        from console import main as run_console
        run_console(coordinator, console=console, save_path=save_path,
                    show_pursuits=settings["show_pursuits"])


if __name__ == "__main__":
    main()
