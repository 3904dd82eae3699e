"""
Yahtzee Duel console frontend — prompt-driven play using rich.

Human decisions are asked with rich prompts through ConsolePrompts, which
the coordinator reaches via HumanStrategy. Everything that happens in the
game is read back from the coordinator's game log and printed as it
arrives.
"""
from __future__ import annotations

import logging

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ai import HumanPrompts, describe_reason, format_dice
from game_engine import Category, Scorecard
from game_log import LogEntry
from multiset import is_submultiset

logger = logging.getLogger(__name__)


# ── Parsing ──────────────────────────────────────────────────────────────────

def parse_dice(text: str) -> tuple[int, ...]:
    """
    Parse dice typed by a player

    Accepts values separated by spaces or commas ("5 5 2", "5,5,2") or
    run together ("552"). An empty string means no dice.

    Raises:
        ValueError: if any value is not a face 1-6
    """
    cleaned = text.replace(",", " ").replace("[", " ").replace("]", " ").split()
    if len(cleaned) == 1 and len(cleaned[0]) > 1:
        cleaned = list(cleaned[0])
    values = []
    for token in cleaned:
        if not token.isdigit() or not 1 <= int(token) <= 6:
            raise ValueError(f"{token!r} is not a die face (1-6)")
        values.append(int(token))
    return tuple(values)


# ── Rendering ────────────────────────────────────────────────────────────────

def scorecard_table(scorecard: Scorecard) -> Table:
    """Scorecard as a rich Table: category, round, winner, points."""
    table = Table(title="Scorecard")
    table.add_column("Category")
    table.add_column("Round", justify="right")
    table.add_column("Winner")
    table.add_column("Points", justify="right")
    for category in Category:
        entry = scorecard.get_entry(category)
        if entry is None:
            table.add_row(category.value, "-", "-", "-")
        else:
            table.add_row(category.value, str(entry.round), entry.winner, str(entry.points))
    return table


def scores_line(scores: dict[str, int]) -> str:
    return "  ".join(f"{name}: [bold]{points}[/bold]" for name, points in scores.items())


def categories_line(categories) -> str:
    if not categories:
        return "(none)"
    return ", ".join(cat.value for cat in categories)


def describe_entry(entry: LogEntry) -> str:
    """One rich-markup line for a game log entry."""
    if entry.event_type == "order":
        if entry.dice_values:
            return f"{entry.player} rolled {format_dice(entry.dice_values)} for the turn order"
        return f"{entry.player} takes a turn"
    elif entry.event_type == "roll":
        return f"{entry.player} rolled: [bold]{format_dice(entry.dice_values)}[/bold] (roll {entry.roll_number} of 3)"
    elif entry.event_type == "keep":
        return f"{entry.player} kept: {format_dice(entry.dice_values)}"
    elif entry.event_type == "stand":
        return f"{entry.player} chose to stand."
    elif entry.event_type == "score":
        if entry.category is None:
            return f"{entry.player} could not score {format_dice(entry.dice_values)}."
        return (f"{entry.player} scored [bold green]{entry.score}[/bold green] points in the "
                f"{entry.category.value} category with {format_dice(entry.dice_values)}.")
    return f"{entry.player}: {entry.event_type}"


# ── Prompts ──────────────────────────────────────────────────────────────────

class ConsolePrompts(HumanPrompts):
    """HumanPrompts answered at the terminal."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def ask_help(self) -> bool:
        return Confirm.ask("Would you like help?", console=self.console, default=False)

    def ask_stand(self) -> bool:
        return Confirm.ask("Would you like to stand?", console=self.console, default=False)

    def ask_dice_to_keep(self, current_roll):
        while True:
            text = Prompt.ask(f"Dice to keep from {format_dice(current_roll)} (blank for none)",
                              console=self.console, default="", show_default=False)
            try:
                dice = parse_dice(text)
            except ValueError as exc:
                self.console.print(f"[red]{exc}[/red]")
                continue
            if not is_submultiset(dice, current_roll):
                self.console.print(f"[red]{format_dice(dice)} were not all rolled.[/red]")
                continue
            return dice

    def show_help(self, text: str) -> None:
        self.console.print(Panel(text, title="Help"))

    def ask_roll(self, player: str, num_dice: int) -> tuple[int, ...]:
        """Manual dice entry for any player's roll."""
        while True:
            text = Prompt.ask(f"Enter {num_dice} dice for {player}", console=self.console)
            try:
                dice = parse_dice(text)
            except ValueError as exc:
                self.console.print(f"[red]{exc}[/red]")
                continue
            if len(dice) != num_dice:
                self.console.print(f"[red]Enter exactly {num_dice} dice.[/red]")
                continue
            return dice


# ── Game loop ────────────────────────────────────────────────────────────────

class ConsoleGame:
    """Runs a GameCoordinator at the terminal until the game ends or the player saves."""

    def __init__(self, coordinator, console: Console, save_path=None, show_pursuits: bool = True) -> None:
        self.coordinator = coordinator
        self.console = console
        self.save_path = save_path
        self.show_pursuits = show_pursuits
        self._printed = 0

    def _flush_log(self) -> None:
        entries = self.coordinator.game_log.entries
        for entry in entries[self._printed:]:
            self.console.print(describe_entry(entry))
        self._printed = len(entries)

    def _show_turn_header(self) -> None:
        coord = self.coordinator
        turn = coord.turn
        self.console.print()
        self.console.print(f"[bold]{coord.current_player_name}[/bold] — roll {turn.roll_number + 1} of 3")
        possible = coord.scorecard.get_possible_categories(turn.kept_dice)
        self.console.print(f"Available categories: {categories_line(possible)}")
        self.console.print(f"Current dice: {format_dice(turn.kept_dice)}")

    def _show_advice(self) -> None:
        coord = self.coordinator
        if not self.show_pursuits:
            return
        if coord.pursuits:
            self.console.print(f"{coord.current_player_name}'s pursuit:")
            for reason in coord.pursuits.values():
                self.console.print(f"  {describe_reason(reason)}")
        if coord.target:
            category, dice = coord.target
            self.console.print(f"{coord.current_player_name}'s target: {category.value} "
                               f"by rolling {format_dice(dice)}")

    def play_round(self) -> None:
        coord = self.coordinator
        self.console.rule(f"Round {coord.round_number}")
        self.console.print(scores_line(coord.scores))
        coord.start_round()
        self._flush_log()
        round_number = coord.round_number
        while coord.round_started and coord.round_number == round_number:
            if coord.can_roll_now():
                self._show_turn_header()
            action = coord.play_step()
            self._flush_log()
            if action == "keep":
                self._show_advice()
        self.console.print(scorecard_table(coord.scorecard))

    def run(self) -> None:
        coord = self.coordinator
        while not coord.game_over:
            self.play_round()
            if coord.game_over or self.save_path is None:
                continue
            if Confirm.ask("Save and quit?", console=self.console, default=False):
                try:
                    coord.save(self.save_path)
                except OSError as exc:
                    logger.error("Could not save to %s: %s", self.save_path, exc)
                    self.console.print(f"[red]Could not save: {exc}[/red]")
                    continue
                self.console.print(f"Game saved to {self.save_path}.")
                return
        self.show_result()

    def show_result(self) -> None:
        coord = self.coordinator
        self.console.rule("Game over")
        self.console.print(scores_line(coord.scores))
        if coord.is_draw:
            self.console.print("[bold]The game is a draw![/bold]")
        else:
            self.console.print(f"[bold]{coord.winner} wins![/bold]")


def main(coordinator, console: Console | None = None, save_path=None, show_pursuits: bool = True) -> None:
    """Play coordinator's game at the terminal."""
    game = ConsoleGame(coordinator, console or Console(), save_path=save_path,
                       show_pursuits=show_pursuits)
    game.run()
