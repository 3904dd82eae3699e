"""
Yahtzee Duel Game Engine - Pure game logic without any frontend dependencies

This module contains the category rule set, the shared scorecard and the
per-turn dice state. Dice hands are plain tuples of ints (1-6) and are
compared as multisets, never by position. Everything here is immutable:
operations return new values instead of mutating the old ones.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple
from enum import Enum
from collections import Counter
import random

from multiset import concatenate, is_submultiset


NUM_DICE = 5
MAX_ROLLS = 3


class Category(Enum):
    """Scorecard categories, in iteration and display order"""
    ONES = "Ones"
    TWOS = "Twos"
    THREES = "Threes"
    FOURS = "Fours"
    FIVES = "Fives"
    SIXES = "Sixes"
    THREE_OF_A_KIND = "Three of a Kind"
    FOUR_OF_A_KIND = "Four of a Kind"
    FULL_HOUSE = "Full House"
    FOUR_STRAIGHT = "Four Straight"
    FIVE_STRAIGHT = "Five Straight"
    YAHTZEE = "Yahtzee"


_NUMBER_CATS = {
    Category.ONES: 1, Category.TWOS: 2, Category.THREES: 3,
    Category.FOURS: 4, Category.FIVES: 5, Category.SIXES: 6,
}

_FIXED_SCORES = {
    Category.FULL_HOUSE: 25,
    Category.FOUR_STRAIGHT: 30,
    Category.FIVE_STRAIGHT: 40,
    Category.YAHTZEE: 50,
}


class CategoryFilledError(ValueError):
    """Raised when writing to a category that already holds an entry."""


# ── Dice helpers ─────────────────────────────────────────────────────────────

def roll_dice(num_dice):
    """Roll num_dice fair dice and return their values as a tuple."""
    return tuple(random.randint(1, 6) for _ in range(num_dice))


def count_values(dice):
    """Counter of face value -> occurrences."""
    return Counter(dice)


def max_count(dice):
    """Largest multiplicity of any face (0 for an empty hand)."""
    counts = count_values(dice)
    return max(counts.values()) if counts else 0


def num_repeats(dice):
    """Number of dice beyond the first occurrence of each face."""
    return sum(c - 1 for c in count_values(dice).values() if c > 1)


def has_n_of_kind(dice, n):
    """
    Check if dice contain at least n of the same value

    Args:
        dice: Iterable of die values
        n: Number of matching dice required

    Returns:
        True if at least n dice have the same value
    """
    return max_count(dice) >= n


def has_full_house(dice):
    """
    Check if dice form a full house (3 of one value, 2 of another)

    Five of a kind does not count.
    """
    sorted_counts = sorted(count_values(dice).values(), reverse=True)
    return sorted_counts == [3, 2]


def has_straight(dice, length):
    """
    Check if the distinct dice values contain a run of `length` consecutive faces

    Args:
        dice: Iterable of die values
        length: Run length required (4 or 5)

    Returns:
        True if such a run exists among the values 1-6
    """
    values = set(dice)
    for start in range(1, 8 - length):
        if all(v in values for v in range(start, start + length)):
            return True
    return False


def has_four_straight(dice):
    """Check if dice contain 4 consecutive values"""
    return has_straight(dice, 4)


def has_five_straight(dice):
    """Check if dice contain 5 consecutive values"""
    return has_straight(dice, 5)


def has_yahtzee(dice):
    """Check if at least 5 dice share the same value"""
    return has_n_of_kind(dice, 5)


# ── Category rules ───────────────────────────────────────────────────────────

def is_applicable(dice, category):
    """
    Check if a completed hand satisfies a category's pattern

    Args:
        dice: Iterable of die values
        category: Category enum value

    Returns:
        True if the category can be scored with these dice
    """
    dice = tuple(dice)
    if category in _NUMBER_CATS:
        return _NUMBER_CATS[category] in dice
    elif category == Category.THREE_OF_A_KIND:
        return has_n_of_kind(dice, 3)
    elif category == Category.FOUR_OF_A_KIND:
        return has_n_of_kind(dice, 4)
    elif category == Category.FULL_HOUSE:
        return has_full_house(dice)
    elif category == Category.FOUR_STRAIGHT:
        return has_four_straight(dice)
    elif category == Category.FIVE_STRAIGHT:
        return has_five_straight(dice)
    elif category == Category.YAHTZEE:
        return has_yahtzee(dice)
    return False


def calculate_score(dice, category):
    """
    Calculate the score for a given category and dice

    Args:
        dice: Iterable of die values
        category: Category enum value

    Returns:
        Integer score for the category (0 if it doesn't apply)
    """
    dice = tuple(dice)
    if not is_applicable(dice, category):
        return 0

    # Number categories - sum of matching dice
    if category in _NUMBER_CATS:
        face = _NUMBER_CATS[category]
        return dice.count(face) * face

    # N of a kind - sum of all dice
    elif category in (Category.THREE_OF_A_KIND, Category.FOUR_OF_A_KIND):
        return sum(dice)

    return _FIXED_SCORES.get(category, 0)


def is_possible(dice, category):
    """
    Check if a partial hand could still be completed into the category

    Args:
        dice: Dice already committed (0-5 values)
        category: Category enum value

    Returns:
        True if some roll of the remaining slots satisfies the category
    """
    dice = tuple(dice)
    if not dice:
        return True
    slots_left = NUM_DICE - len(dice)

    if category == Category.YAHTZEE:
        return len(set(dice)) == 1
    elif category == Category.FIVE_STRAIGHT:
        return num_repeats(dice) < 1 and not (1 in dice and 6 in dice)
    elif category == Category.FOUR_STRAIGHT:
        return num_repeats(dice) < 2
    elif category == Category.FULL_HOUSE:
        return len(set(dice)) <= 2 and max_count(dice) <= 3
    elif category == Category.FOUR_OF_A_KIND:
        return slots_left + max_count(dice) >= 4
    elif category == Category.THREE_OF_A_KIND:
        return slots_left + max_count(dice) >= 3
    elif category in _NUMBER_CATS:
        return _NUMBER_CATS[category] in dice or len(dice) < NUM_DICE
    return True


def get_applicable_categories(dice):
    """All categories the completed hand satisfies, in category order."""
    return [cat for cat in Category if is_applicable(dice, cat)]


# ── Scorecard ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreCardEntry:
    """A filled category: who won it, for how many points, in which round"""
    points: int
    winner: str
    round: int


class Scorecard:
    """Shared 12-category scorecard. Immutable: updates return a new Scorecard."""

    def __init__(self, entries=None):
        """Create a scorecard, empty unless entries (Category -> entry) are given"""
        scores = {category: None for category in Category}
        if entries:
            for category, entry in entries.items():
                scores[category] = entry
        self._scores = scores

    @property
    def scores(self):
        """Copy of the Category -> Optional[ScoreCardEntry] mapping"""
        return dict(self._scores)

    def __eq__(self, other):
        if not isinstance(other, Scorecard):
            return NotImplemented
        return self._scores == other._scores

    def __repr__(self):
        filled = sum(1 for e in self._scores.values() if e is not None)
        return f"Scorecard(filled={filled}/{len(self._scores)})"

    def get_entry(self, category) -> Optional[ScoreCardEntry]:
        return self._scores[category]

    def is_filled(self, category):
        """Check if a category has been filled"""
        return self._scores[category] is not None

    def is_full(self):
        """Check if all categories are filled"""
        return all(entry is not None for entry in self._scores.values())

    def add_entry(self, category, points, winner, round):
        """Return new Scorecard with the entry set for category.

        Raises:
            CategoryFilledError: if the category already holds an entry
        """
        if self.is_filled(category):
            raise CategoryFilledError(f"{category.value} already has a scorecard entry")
        new_scores = dict(self._scores)
        new_scores[category] = ScoreCardEntry(points=points, winner=winner, round=round)
        return Scorecard(new_scores)

    def add_best_entry(self, round, winner, dice):
        """Score dice in the max-scoring open category.

        Returns the scorecard unchanged when no open category applies.
        """
        category = self.get_max_scoring_category(dice)
        if category is None:
            return self
        return self.add_entry(category, calculate_score(dice, category), winner, round)

    def get_open_categories(self):
        """Unfilled categories, higher categories first (Yahtzee ... Ones)."""
        return [cat for cat in reversed(list(Category)) if not self.is_filled(cat)]

    def get_possible_categories(self, dice):
        """Open categories that dice could still be completed into."""
        return [cat for cat in self.get_open_categories() if is_possible(dice, cat)]

    def get_max_scoring_category(self, dice) -> Optional[Category]:
        """Open, applicable category with the highest score for dice.

        Categories are scanned in iteration order with >=, so on a tie the
        later category (combinations, straights, Yahtzee) wins.
        """
        open_cats = set(self.get_open_categories())
        best_cat = None
        best_score = 0
        for cat in Category:
            if cat not in open_cats or not is_applicable(dice, cat):
                continue
            score = calculate_score(dice, cat)
            if score >= best_score:
                best_score = score
                best_cat = cat
        return best_cat

    def get_players(self):
        """Names of every player that has won at least one category."""
        players = []
        for entry in self._scores.values():
            if entry is not None and entry.winner not in players:
                players.append(entry.winner)
        return players

    def get_player_score(self, player):
        """Total points of the categories won by player"""
        return sum(entry.points for entry in self._scores.values()
                   if entry is not None and entry.winner == player)

    def get_player_scores(self, players):
        """Dict of player name -> total points, in the given player order"""
        return {player: self.get_player_score(player) for player in players}

    def get_winner(self, players=None):
        """Highest-scoring player once the card is full, else None.

        Returns None on a draw as well.
        """
        if not self.is_full() or self.is_draw(players):
            return None
        scores = self.get_player_scores(players if players is not None else self.get_players())
        return max(scores, key=scores.get)

    def is_draw(self, players=None):
        """True when the card is full and the top total is shared."""
        if not self.is_full():
            return False
        scores = self.get_player_scores(players if players is not None else self.get_players())
        if not scores:
            return False
        top = max(scores.values())
        return sum(1 for s in scores.values() if s == top) > 1


# ── Turn state ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TurnState:
    """Immutable state of one player's turn"""
    kept_dice: Tuple[int, ...] = ()
    current_roll: Tuple[int, ...] = ()
    roll_number: int = 0  # 0-3
    finished: bool = False

    @property
    def dice_to_roll(self) -> int:
        return NUM_DICE - len(self.kept_dice)

    @property
    def final_dice(self) -> Tuple[int, ...]:
        """Committed dice once the turn is over"""
        return tuple(sorted(self.kept_dice))


def can_roll(turn: TurnState) -> bool:
    """
    Check if the player can roll.

    Rolling is allowed while the turn is open, rolls remain and the
    previous roll has been resolved (kept from or stood on).
    """
    return (not turn.finished and turn.roll_number < MAX_ROLLS
            and not turn.current_roll and turn.dice_to_roll > 0)


def roll_turn(turn: TurnState, values=None) -> TurnState:
    """
    Roll every die that is not kept.

    Returns new TurnState with the fresh roll. On the third roll the turn
    ends immediately and the rolled dice join the kept dice. If rolling is
    not allowed, returns the state unchanged.

    Args:
        turn: Current turn state
        values: Optional explicit dice values (manual rolls); must match
            the number of dice to roll

    Returns:
        New TurnState
    """
    if not can_roll(turn):
        return turn
    if values is None:
        values = roll_dice(turn.dice_to_roll)
    values = tuple(values)
    if len(values) != turn.dice_to_roll or not all(1 <= v <= 6 for v in values):
        return turn

    roll_number = turn.roll_number + 1
    if roll_number == MAX_ROLLS:
        return replace(turn,
                       kept_dice=concatenate(turn.kept_dice, values),
                       current_roll=(),
                       roll_number=roll_number,
                       finished=True)
    return replace(turn, current_roll=values, roll_number=roll_number)


def can_keep(turn: TurnState, dice) -> bool:
    """Check that dice is a sub-multiset of the current roll."""
    return not turn.finished and bool(turn.current_roll) and is_submultiset(dice, turn.current_roll)


def keep_dice(turn: TurnState, dice) -> TurnState:
    """
    Set aside dice from the current roll; the rest will be rolled again.

    Keeping all five dice ends the turn. Dice that were not rolled are
    rejected and the state is returned unchanged.
    """
    if not can_keep(turn, dice):
        return turn
    kept = concatenate(turn.kept_dice, dice)
    return replace(turn,
                   kept_dice=kept,
                   current_roll=(),
                   finished=len(kept) == NUM_DICE)


def stand(turn: TurnState) -> TurnState:
    """End the turn, keeping every die of the current roll."""
    if turn.finished or not turn.current_roll:
        return turn
    return replace(turn,
                   kept_dice=concatenate(turn.kept_dice, turn.current_roll),
                   current_roll=(),
                   finished=True)
