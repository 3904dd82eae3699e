"""Game log for Yahtzee Duel — records every turn action for the round history.

Pure Python, no frontend dependency. Captures turn order decisions, rolls,
kept dice, stands and scoring for each round.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Category


@dataclass
class LogEntry:
    """A single logged game event."""
    round: int
    player: str
    event_type: str                             # "order", "roll", "keep", "stand", "score"
    dice_values: tuple[int, ...]
    category: Category | None = None
    score: int | None = None
    roll_number: int = 0                        # 1-3 for rolls


class GameLog:
    """Accumulates LogEntry records during a game."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_order(self, round: int, player: str, tie_break_rolls: list[int]) -> None:
        """Record a player's place in the round order and any tie-break dice rolled."""
        self.entries.append(LogEntry(
            round=round,
            player=player,
            event_type="order",
            dice_values=tuple(tie_break_rolls),
        ))

    def log_roll(self, round: int, player: str, roll_number: int, dice_values) -> None:
        """Record a dice roll."""
        self.entries.append(LogEntry(
            round=round,
            player=player,
            event_type="roll",
            dice_values=tuple(dice_values),
            roll_number=roll_number,
        ))

    def log_keep(self, round: int, player: str, dice_values) -> None:
        self.entries.append(LogEntry(
            round=round,
            player=player,
            event_type="keep",
            dice_values=tuple(dice_values),
        ))

    def log_stand(self, round: int, player: str, dice_values) -> None:
        self.entries.append(LogEntry(
            round=round,
            player=player,
            event_type="stand",
            dice_values=tuple(dice_values),
        ))

    def log_score(self, round: int, player: str, category: Category | None, score: int, dice_values) -> None:
        """Record the end of a turn. category is None when nothing could be scored."""
        self.entries.append(LogEntry(
            round=round,
            player=player,
            event_type="score",
            dice_values=tuple(dice_values),
            category=category,
            score=score,
        ))

    def get_round_entries(self, round: int) -> list[LogEntry]:
        return [e for e in self.entries if e.round == round]

    def get_turn_entries(self, round: int, player: str) -> list[LogEntry]:
        """Return all entries for a specific round and player."""
        return [e for e in self.entries
                if e.round == round and e.player == player]

    def get_score_entries(self, player: str | None = None) -> list[LogEntry]:
        """Return only scoring entries, optionally for one player."""
        return [e for e in self.entries
                if e.event_type == "score" and (player is None or e.player == player)]

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
