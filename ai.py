"""
Yahtzee Duel AI — Player interface, dice reasoning and advice.

Contains:
- Reason record and advice formatting
- Outcome scoring and selection (calculate_scores, find_best_roll,
  determine_dice_to_keep, get_best_roll)
- Advisory functions (get_category_pursuits, get_target, get_help)
- PlayerStrategy abstract base class with ComputerStrategy and HumanStrategy
- play_turn() headless turn loop
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import game_engine
from game_engine import (
    Category, Scorecard, TurnState,
    is_applicable,
    roll_turn, keep_dice, stand,
)
from dice_tables import generate_possible_final_rolls, lookup_score
from multiset import difference, intersection, concatenate, unordered_equal, unique


# ── Reason ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Reason:
    """Best and worst outcome reachable for one category from the kept dice."""
    current_dice: Tuple[int, ...]
    category: Category
    max_score: int
    roll_to_get_max: Tuple[int, ...]
    min_score: int          # 0 when no outcome scores
    roll_to_get_min: Tuple[int, ...]


def format_dice(dice) -> str:
    """'[1, 2, 3]' style listing of dice values."""
    return "[" + ", ".join(str(v) for v in dice) + "]"


def describe_reason(reason: Reason) -> str:
    if reason.min_score == 0:
        return (f"You can get {reason.category.value} with a score of {reason.max_score}. "
                f"For example, by rolling {format_dice(reason.roll_to_get_max)}")
    return (f"You can get {reason.category.value} with a minimum score of {reason.min_score} "
            f"by getting {format_dice(reason.roll_to_get_min)} and a maximum score of "
            f"{reason.max_score} by rolling {format_dice(reason.roll_to_get_max)}")


# ── Scoring and selection ───────────────────────────────────────────────────

def calculate_scores(final_rolls, score_card: Scorecard) -> List[Tuple[Tuple[int, ...], int]]:
    """Score every hand in every open category.

    Args:
        final_rolls: Completed hands to evaluate
        score_card: Scorecard whose open categories are considered

    Returns:
        One (hand, score) pair per hand and open category, sorted by
        descending score. Equal scores keep their encounter order.
    """
    open_categories = score_card.get_open_categories()
    scores = [(tuple(roll), lookup_score(roll, category))
              for roll in final_rolls
              for category in open_categories]
    scores.sort(key=lambda pair: pair[1], reverse=True)
    return scores


def find_best_roll(scores, current_roll) -> Optional[Tuple[int, ...]]:
    """Pick the top-scoring hand that needs the fewest dice changed.

    Only the leading run of pairs tied at the maximum score is examined.
    The first hand with the smallest multiset difference from current_roll
    wins. Returns None when scores is empty.
    """
    if not scores:
        return None
    best_roll, max_score = scores[0]
    best_diff = len(difference(best_roll, current_roll))
    for roll, score in scores:
        if score < max_score:
            break
        diff = len(difference(roll, current_roll))
        if diff < best_diff:
            best_roll = roll
            best_diff = diff
    return best_roll


def determine_dice_to_keep(best_roll, current_roll, kept_dice) -> Tuple[int, ...]:
    """Dice from current_roll that move the kept dice toward best_roll."""
    dice_needed = difference(best_roll, kept_dice)
    return intersection(dice_needed, current_roll)


def get_best_roll(score_card: Scorecard, kept_dice) -> Optional[Tuple[int, ...]]:
    """Best hand reachable from kept_dice, measured against the kept dice."""
    final_rolls = generate_possible_final_rolls(kept_dice)
    scores = calculate_scores(final_rolls, score_card)
    return find_best_roll(scores, kept_dice)


def get_dice_to_keep(score_card: Scorecard, current_roll, kept_dice) -> Tuple[int, ...]:
    """
    Decide which dice of the current roll to keep

    A finished Yahtzee keeps the whole roll. A completed five or four
    straight keeps the distinct faces of the roll (all of them, including
    faces outside the run). Otherwise the best reachable hand closest to
    the current roll is targeted.

    Args:
        score_card: Current shared scorecard
        current_roll: Dice just rolled
        kept_dice: Dice kept earlier this turn

    Returns:
        Tuple of dice values taken from current_roll
    """
    current_roll = tuple(current_roll)
    kept_dice = tuple(kept_dice)
    open_categories = score_card.get_open_categories()

    if (Category.YAHTZEE in open_categories
            and is_applicable(concatenate(kept_dice, current_roll), Category.YAHTZEE)):
        return current_roll

    for straight in (Category.FIVE_STRAIGHT, Category.FOUR_STRAIGHT):
        if straight in open_categories:
            unique_dice = unique(current_roll)
            if is_applicable(concatenate(kept_dice, unique_dice), straight):
                return unique_dice

    final_rolls = generate_possible_final_rolls(kept_dice)
    scores = calculate_scores(final_rolls, score_card)
    best_roll = find_best_roll(scores, current_roll)
    if best_roll is None:
        return ()
    return determine_dice_to_keep(best_roll, current_roll, kept_dice)


def wants_to_stand(score_card: Scorecard, kept_dice, current_roll) -> bool:
    """True if nothing in the current roll is worth rerolling."""
    dice_to_keep = get_dice_to_keep(score_card, current_roll, kept_dice)
    return unordered_equal(dice_to_keep, tuple(current_roll))


# ── Advice ──────────────────────────────────────────────────────────────────

def get_category_pursuits(score_card: Scorecard, kept_dice) -> Optional[Dict[Category, Reason]]:
    """
    Best and worst outcome of every category still reachable from kept_dice

    For each open category that is still possible, every reachable hand is
    scored. The maximum keeps the last hand found at that score; the
    minimum is the smallest non-zero score, first found on ties.

    Args:
        score_card: Current shared scorecard
        kept_dice: Dice committed so far

    Returns:
        Dict of Category -> Reason in category order, or None if no
        category can be pursued
    """
    kept = tuple(kept_dice)
    final_rolls = generate_possible_final_rolls(kept)
    possible = set(score_card.get_possible_categories(kept))

    pursuits = {}
    for category in Category:
        if category not in possible:
            continue
        max_score, roll_to_get_max = -1, ()
        min_score, roll_to_get_min = 0, ()
        for roll in final_rolls:
            score = lookup_score(roll, category)
            if score >= max_score:
                max_score = score
                roll_to_get_max = difference(roll, kept)
            if score > 0 and (min_score == 0 or score < min_score):
                min_score = score
                roll_to_get_min = difference(roll, kept)
        pursuits[category] = Reason(
            current_dice=kept,
            category=category,
            max_score=max_score,
            roll_to_get_max=roll_to_get_max,
            min_score=min_score,
            roll_to_get_min=roll_to_get_min,
        )
    return pursuits or None


def get_target(score_card: Scorecard, kept_dice) -> Optional[Tuple[Category, Tuple[int, ...]]]:
    """Category to aim for and the dice still needed for it, or None."""
    best_roll = get_best_roll(score_card, kept_dice)
    if best_roll is None:
        return None
    category = score_card.get_max_scoring_category(best_roll)
    if category is None:
        return None
    return category, difference(best_roll, kept_dice)


def get_help(score_card: Scorecard, kept_dice, current_roll) -> str:
    """Advice text for a player looking at current_roll."""
    dice_to_keep = get_dice_to_keep(score_card, current_roll, kept_dice)
    help_dice = concatenate(kept_dice, dice_to_keep)
    pursuits = get_category_pursuits(score_card, help_dice) or {}
    target = get_target(score_card, help_dice)

    lines = [f"You should keep: {format_dice(dice_to_keep)} because"]
    for reason in pursuits.values():
        lines.append(" - " + describe_reason(reason))
    lines.append("")
    if target is not None:
        category, dice = target
        lines.append(f"Considering this, your target should be to get {category.value}. "
                     f"A way to do this would be to roll {format_dice(dice)} "
                     f"in your subsequent rolls.")
    else:
        lines.append("Considering this, your target should be to get None")

    if wants_to_stand(score_card, kept_dice, current_roll):
        lines.append("You should stand.")
    else:
        lines.append("Do not stand. You should keep rolling.")

    if not dice_to_keep:
        lines.append("Do not keep any dice. You should roll all the dice.")
    else:
        lines.append(f"You should keep the following dice before you roll: {format_dice(dice_to_keep)}")
    return "\n".join(lines)


# ── Player interface ────────────────────────────────────────────────────────

class PlayerStrategy(ABC):
    """Abstract base class for the decisions a player makes during a turn."""

    is_human = False

    @abstractmethod
    def decide_dice_to_keep(self, score_card: Scorecard, kept_dice, current_roll) -> Tuple[int, ...]:
        """Dice of current_roll to set aside before rolling the rest again."""
        ...

    @abstractmethod
    def decide_stand(self, score_card: Scorecard, kept_dice, current_roll) -> bool:
        """True to end the turn now, keeping the whole current roll."""
        ...

    def decide_help(self, score_card: Scorecard, kept_dice, current_roll) -> bool:
        return False

    def show_help(self, text: str) -> None:
        pass

    def get_category_pursuits(self, score_card: Scorecard, kept_dice):
        return None

    def get_target(self, score_card: Scorecard, kept_dice):
        return None

    def roll_dice(self, num_dice) -> Tuple[int, ...]:
        return game_engine.roll_dice(num_dice)


class ComputerStrategy(PlayerStrategy):
    """Heuristic player: steer toward the best reachable hand with the fewest rerolls."""

    def decide_dice_to_keep(self, score_card, kept_dice, current_roll):
        return get_dice_to_keep(score_card, current_roll, kept_dice)

    def decide_stand(self, score_card, kept_dice, current_roll):
        return wants_to_stand(score_card, kept_dice, current_roll)

    def get_category_pursuits(self, score_card, kept_dice):
        return get_category_pursuits(score_card, kept_dice)

    def get_target(self, score_card, kept_dice):
        return get_target(score_card, kept_dice)


class HumanPrompts(ABC):
    """Questions a frontend asks a human player."""

    @abstractmethod
    def ask_help(self) -> bool:
        ...

    @abstractmethod
    def ask_stand(self) -> bool:
        ...

    @abstractmethod
    def ask_dice_to_keep(self, current_roll) -> Tuple[int, ...]:
        """Return a sub-multiset of current_roll."""
        ...

    @abstractmethod
    def show_help(self, text: str) -> None:
        ...


class HumanStrategy(PlayerStrategy):
    """Player whose every decision comes from a HumanPrompts implementation.

    Frontends that drive human turns from their own input handlers (the TUI)
    may leave prompts unset; asking such a player for a decision is an error.
    """

    is_human = True

    def __init__(self, prompts: Optional[HumanPrompts] = None):
        self.prompts = prompts

    def _require_prompts(self) -> HumanPrompts:
        if self.prompts is None:
            raise RuntimeError("HumanStrategy has no prompts to ask")
        return self.prompts

    def decide_dice_to_keep(self, score_card, kept_dice, current_roll):
        return tuple(self._require_prompts().ask_dice_to_keep(tuple(current_roll)))

    def decide_stand(self, score_card, kept_dice, current_roll):
        return self._require_prompts().ask_stand()

    def decide_help(self, score_card, kept_dice, current_roll):
        return self._require_prompts().ask_help()

    def show_help(self, text):
        self._require_prompts().show_help(text)


# ── Headless turn loop ──────────────────────────────────────────────────────

def play_turn(score_card: Scorecard, strategy: PlayerStrategy, roll_source=None) -> TurnState:
    """Play one turn to completion without any display.

    Args:
        score_card: Scorecard the decisions are made against
        strategy: Player making the decisions
        roll_source: Optional callable num_dice -> dice values; defaults
            to strategy.roll_dice

    Returns:
        The finished TurnState; its final_dice are ready to score
    """
    roll_source = roll_source or strategy.roll_dice
    turn = TurnState()
    while not turn.finished:
        values = tuple(roll_source(turn.dice_to_roll))
        rolled = roll_turn(turn, values)
        if rolled == turn:
            raise ValueError(f"Invalid roll {format_dice(values)} for {turn.dice_to_roll} dice")
        turn = rolled
        if turn.finished:
            break
        if strategy.decide_stand(score_card, turn.kept_dice, turn.current_roll):
            turn = stand(turn)
            break
        kept = strategy.decide_dice_to_keep(score_card, turn.kept_dice, turn.current_roll)
        new_turn = keep_dice(turn, kept)
        if new_turn == turn and kept:
            raise ValueError(f"Cannot keep {format_dice(kept)} from {format_dice(turn.current_roll)}")
        turn = new_turn
    return turn
