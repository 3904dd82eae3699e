"""
GameCoordinator — All frontend-independent game coordination logic.

Owns the shared scorecard, round order, the current turn and computer
pacing. Frontends (console.py, tui.py) read coordinator properties to decide
what to show and call coordinator action methods in response to input.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

from ai import (
    ComputerStrategy,
    HumanPrompts,
    HumanStrategy,
    PlayerStrategy,
    format_dice,
    get_help,
)
from game_engine import (
    Category,
    Scorecard,
    TurnState,
    calculate_score,
    can_roll,
    keep_dice,
    roll_turn,
    stand,
)
import save_file
from game_log import GameLog

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Ticks between computer decisions
SPEED_PRESETS = {
    "slow":   8,
    "normal": 4,
    "fast":   1,
}
SPEED_NAMES = ["slow", "normal", "fast"]


@dataclass(frozen=True)
class TurnResult:
    """How a finished turn was scored."""
    player: str
    round: int
    dice: tuple[int, ...]
    category: Category | None
    points: int


class GameCoordinator:
    """Coordinates the shared scorecard, round order and turns without any UI dependency.

    Players are (name, strategy) pairs. Rounds start lazily: the first
    action of a round fixes its turn order.
    """

    def __init__(self, players: list[tuple[str, PlayerStrategy]], scorecard: Scorecard | None = None,
                 round_number: int = 1, speed: str = "normal", roll_source=None) -> None:
        """Initialize the coordinator.

        Args:
            players: List of (name, strategy) tuples, 2-4 players.
            scorecard: Scorecard to resume from; a new one by default.
            round_number: Round to play next.
            speed: Speed preset name ("slow", "normal", "fast").
            roll_source: Optional callable (player_name, num_dice) -> dice values,
                         used instead of random rolls (manual dice entry).
        """
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
        names = [name for name, _ in players]
        if len(set(names)) != len(names):
            raise ValueError("Player names must be unique")
        for name in names:
            if not name or len(name.split()) != 1:
                raise ValueError(f"Player name must be a single word: {name!r}")

        self.player_configs = list(players)
        self.scorecard = scorecard if scorecard is not None else Scorecard()
        self.round_number = round_number
        self.roll_source = roll_source

        # Round and turn state
        self.round_started = False
        self.turn_queue: list[int] = []
        self.turn = TurnState()
        self.tie_break_rolls: dict[str, list[int]] = {}

        # Display state for the frontends
        self.help_text = ""
        self.pursuits = None
        self.target = None
        self.last_result: TurnResult | None = None

        # Computer pacing
        self.speed_name = speed if speed in SPEED_PRESETS else "normal"
        self.ai_delay = SPEED_PRESETS[self.speed_name]
        self.ai_timer = 0

        self.game_log = GameLog()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def player_names(self) -> list[str]:
        return [name for name, _ in self.player_configs]

    @property
    def num_players(self) -> int:
        return len(self.player_configs)

    @property
    def game_over(self) -> bool:
        """Game ends once every category holds an entry."""
        return self.scorecard.is_full()

    @property
    def scores(self) -> dict[str, int]:
        """Total points per player, in seating order."""
        return self.scorecard.get_player_scores(self.player_names)

    @property
    def winner(self) -> str | None:
        return self.scorecard.get_winner(self.player_names)

    @property
    def is_draw(self) -> bool:
        return self.scorecard.is_draw(self.player_names)

    @property
    def current_player_index(self) -> int | None:
        """Seat of the player whose turn it is, or None between rounds."""
        if not self.round_started or not self.turn_queue:
            return None
        return self.turn_queue[0]

    @property
    def current_player_name(self) -> str | None:
        idx = self.current_player_index
        return None if idx is None else self.player_configs[idx][0]

    @property
    def current_strategy(self) -> PlayerStrategy | None:
        idx = self.current_player_index
        return None if idx is None else self.player_configs[idx][1]

    @property
    def is_current_player_human(self) -> bool:
        strategy = self.current_strategy
        return strategy is not None and strategy.is_human

    @property
    def between_rounds(self) -> bool:
        return not self.round_started

    @property
    def turn_order(self) -> list[str]:
        """Names of the players still to play this round, current player first."""
        return [self.player_configs[i][0] for i in self.turn_queue]

    def can_roll_now(self) -> bool:
        return self.round_started and not self.game_over and can_roll(self.turn)

    def can_decide_now(self) -> bool:
        """Whether the current player has a roll to keep from or stand on."""
        return self.round_started and bool(self.turn.current_roll)

    # ── Round order ──────────────────────────────────────────────────────

    def _roll_for(self, index: int, num_dice: int) -> tuple[int, ...]:
        name, strategy = self.player_configs[index]
        if self.roll_source is not None:
            return tuple(self.roll_source(name, num_dice))
        return tuple(strategy.roll_dice(num_dice))

    def _break_tie(self, indices: list[int]) -> list[int]:
        """Order tied players by a die roll each, highest first, re-rolling ties."""
        rolls = {}
        for i in indices:
            rolls[i] = self._roll_for(i, 1)[0]
            self.tie_break_rolls.setdefault(self.player_configs[i][0], []).append(rolls[i])
        ordered = []
        for value in sorted(set(rolls.values()), reverse=True):
            group = [i for i in indices if rolls[i] == value]
            ordered.extend(self._break_tie(group) if len(group) > 1 else group)
        return ordered

    def determine_turn_order(self) -> list[int]:
        """
        Seats in playing order for the next round

        Lowest total plays first. Players sharing a total (everyone at the
        start of a game) roll a die each to settle who goes first.

        Returns:
            List of player indices
        """
        self.tie_break_rolls = {}
        scores = self.scores
        order = []
        for total in sorted(set(scores.values())):
            group = [i for i, (name, _) in enumerate(self.player_configs) if scores[name] == total]
            order.extend(self._break_tie(group) if len(group) > 1 else group)
        return order

    def start_round(self) -> bool:
        """Fix the turn order for the round. Returns False if already started or game over."""
        if self.round_started or self.game_over:
            return False
        self.turn_queue = self.determine_turn_order()
        self.round_started = True
        self.turn = TurnState()
        for i in self.turn_queue:
            name = self.player_configs[i][0]
            self.game_log.log_order(self.round_number, name, self.tie_break_rolls.get(name, []))
        logger.info("Round %d order: %s", self.round_number, ", ".join(self.turn_order))
        return True

    # ── Action methods ───────────────────────────────────────────────────

    def roll(self, values=None) -> bool:
        """Roll the dice that are not kept for the current player.

        Args:
            values: Explicit dice values; rolled by the player (or the
                    roll source) when omitted.

        Returns True if the roll happened.
        """
        if not self.round_started:
            self.start_round()
        if not self.can_roll_now():
            return False
        if values is None:
            values = self._roll_for(self.current_player_index, self.turn.dice_to_roll)
        new_turn = roll_turn(self.turn, values)
        if new_turn == self.turn:
            return False
        self.turn = new_turn
        self.help_text = ""
        name = self.current_player_name
        rolled = tuple(values)
        self.game_log.log_roll(self.round_number, name, self.turn.roll_number, rolled)
        logger.debug("%s rolled %s (roll %d)", name, format_dice(rolled), self.turn.roll_number)
        if self.turn.finished:
            self._finish_turn()
        return True

    def keep(self, dice) -> bool:
        """Keep dice from the current roll. Returns False if they were not rolled."""
        if not self.can_decide_now():
            return False
        new_turn = keep_dice(self.turn, dice)
        if new_turn == self.turn:
            return False
        self.turn = new_turn
        name = self.current_player_name
        self.game_log.log_keep(self.round_number, name, tuple(dice))
        logger.debug("%s kept %s", name, format_dice(dice))
        if self.turn.finished:
            self._finish_turn()
        else:
            strategy = self.current_strategy
            self.pursuits = strategy.get_category_pursuits(self.scorecard, self.turn.kept_dice)
            self.target = strategy.get_target(self.scorecard, self.turn.kept_dice)
        return True

    def stand(self) -> bool:
        """End the current turn keeping the whole current roll."""
        if not self.can_decide_now():
            return False
        rolled = self.turn.current_roll
        self.turn = stand(self.turn)
        self.game_log.log_stand(self.round_number, self.current_player_name, rolled)
        logger.debug("%s stands", self.current_player_name)
        self._finish_turn()
        return True

    def request_help(self) -> str:
        """Advice for the current roll, also kept in help_text."""
        if not self.can_decide_now():
            return ""
        self.help_text = get_help(self.scorecard, self.turn.kept_dice, self.turn.current_roll)
        return self.help_text

    def play_step(self) -> str | None:
        """Let the current player's strategy make its next move.

        Returns the action taken ("start", "roll", "stand", "keep"), or
        None if the game is over.
        """
        if self.game_over:
            return None
        if not self.round_started:
            self.start_round()
            return "start"
        if can_roll(self.turn):
            self.roll()
            return "roll"

        strategy = self.current_strategy
        kept, current = self.turn.kept_dice, self.turn.current_roll
        if strategy.decide_help(self.scorecard, kept, current):
            strategy.show_help(self.request_help())
        if strategy.decide_stand(self.scorecard, kept, current):
            self.stand()
            return "stand"
        dice = strategy.decide_dice_to_keep(self.scorecard, kept, current)
        if not self.keep(dice):
            raise ValueError(f"{self.current_player_name} cannot keep {format_dice(dice)} "
                             f"from {format_dice(current)}")
        return "keep"

    def play_round(self) -> None:
        """Play steps until the current round (or the game) is over."""
        if not self.round_started:
            self.start_round()
        round_number = self.round_number
        while self.round_started and self.round_number == round_number and not self.game_over:
            self.play_step()

    def change_speed(self, direction: int) -> bool:
        """Change computer speed. direction=+1 for faster, -1 for slower.

        Returns True if speed actually changed, False if already at limit.
        """
        idx = SPEED_NAMES.index(self.speed_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            self.speed_name = SPEED_NAMES[new_idx]
            self.ai_delay = SPEED_PRESETS[self.speed_name]
            return True
        return False

    def reset_game(self) -> None:
        """Start a new game with the same players."""
        self.scorecard = Scorecard()
        self.round_number = 1
        self.round_started = False
        self.turn_queue = []
        self.turn = TurnState()
        self.tie_break_rolls = {}
        self.help_text = ""
        self.pursuits = None
        self.target = None
        self.last_result = None
        self.ai_timer = 0
        self.game_log.clear()

    # ── Timer-driven play ────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance the computer by at most one decision.

        Rounds are started as soon as the previous one ends; human turns
        wait for action methods called by the frontend.
        """
        if self.game_over:
            return
        if not self.round_started:
            self.start_round()
            return
        if self.is_current_player_human:
            return
        self.ai_timer += 1
        if self.ai_timer < self.ai_delay:
            return
        self.ai_timer = 0
        self.play_step()

    # ── Internal ─────────────────────────────────────────────────────────

    def _finish_turn(self) -> None:
        """Score the finished turn in the best open category and move to the next player."""
        name = self.current_player_name
        dice = self.turn.final_dice
        category = self.scorecard.get_max_scoring_category(dice)
        points = calculate_score(dice, category) if category is not None else 0
        self.scorecard = self.scorecard.add_best_entry(self.round_number, name, dice)
        self.last_result = TurnResult(player=name, round=self.round_number, dice=dice,
                                      category=category, points=points)
        self.game_log.log_score(self.round_number, name, category, points, dice)
        if category is None:
            logger.info("%s could not score %s", name, format_dice(dice))
        else:
            logger.info("%s scored %d in %s", name, points, category.value)

        self.turn_queue.pop(0)
        self.turn = TurnState()
        self.help_text = ""
        self.pursuits = None
        self.target = None
        if not self.turn_queue or self.game_over:
            self._finish_round()

    def _finish_round(self) -> None:
        self.round_started = False
        self.turn_queue = []
        if self.game_over:
            if self.is_draw:
                logger.info("Game over after round %d: draw", self.round_number)
            else:
                logger.info("Game over after round %d: %s wins", self.round_number, self.winner)
        else:
            logger.info("Round %d complete", self.round_number)
            self.round_number += 1

    # ── Save / load ──────────────────────────────────────────────────────

    @property
    def can_save(self) -> bool:
        """True between rounds, or before anyone has rolled in the current round."""
        if self.game_over:
            return False
        if not self.round_started:
            return True
        return len(self.turn_queue) == self.num_players and self.turn.roll_number == 0

    def save(self, path: str | Path) -> bool:
        """Write the save file with the round to play next.

        Returns False when a turn of the current round is already under way.
        OSError propagates to the caller.
        """
        if not self.can_save:
            return False
        save_file.save_game(path, self.round_number, self.scorecard)
        return True

    @classmethod
    def load(cls, path: str | Path, players: list[tuple[str, PlayerStrategy]], **kwargs) -> GameCoordinator | None:
        """Build a coordinator from a save file, or None if it cannot be read."""
        loaded = save_file.load_game(path)
        if loaded is None:
            return None
        round_number, scorecard = loaded
        known = {name for name, _ in players}
        for name in scorecard.get_players():
            if name not in known:
                logger.warning("Save file lists unknown player %r", name)
        return cls(players, scorecard=scorecard, round_number=round_number, **kwargs)


def _make_strategy(token: str, prompts: HumanPrompts | None = None) -> PlayerStrategy:
    """Create a strategy from a CLI token ("human" or "computer")."""
    if token == "human":
        return HumanStrategy(prompts)
    elif token == "computer":
        return ComputerStrategy()
    raise ValueError(f"Unknown player type: {token!r}")


def build_players(tokens: list[str], names: list[str] | None = None,
                  prompts: HumanPrompts | None = None) -> list[tuple[str, PlayerStrategy]]:
    """(name, strategy) pairs for the given player types.

    Default names are "Human"/"Computer", numbered when a type repeats.
    """
    if names is not None and len(names) != len(tokens):
        raise ValueError("--names must match the number of players")
    if names is None:
        names = []
        for i, token in enumerate(tokens):
            base = token.capitalize()
            if tokens.count(token) > 1:
                base += str(tokens[:i + 1].count(token))
            names.append(base)
    return [(name, _make_strategy(token, prompts)) for name, token in zip(names, tokens)]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace.
    """
    parser = argparse.ArgumentParser(description="Yahtzee Duel: human vs. computer")
    parser.add_argument("--ui", choices=["console", "tui"], default="console",
                        help="Frontend to play with (default: console)")
    parser.add_argument("--players", nargs="+", choices=["human", "computer"],
                        default=["human", "computer"], metavar="TYPE",
                        help="Player types in seating order (human, computer)")
    parser.add_argument("--names", nargs="+", metavar="NAME",
                        help="Custom player names (must match --players count)")
    parser.add_argument("--load", metavar="PATH",
                        help="Resume from a save file")
    parser.add_argument("--save-path", metavar="PATH",
                        help="Where to save the game (default: from settings)")
    parser.add_argument("--manual-rolls", action="store_true", default=None,
                        help="Type in dice values instead of rolling")
    parser.add_argument("--speed", choices=SPEED_NAMES, default=None,
                        help="Computer playback speed in the TUI")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None,
                        help="Logging level (default: from settings)")
    args = parser.parse_args(argv)
    if not MIN_PLAYERS <= len(args.players) <= MAX_PLAYERS:
        parser.error(f"--players needs {MIN_PLAYERS}-{MAX_PLAYERS} entries")
    if args.names is not None and len(args.names) != len(args.players):
        parser.error("--names must match the number of players")
    return args
