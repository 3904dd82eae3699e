"""
Dice Tables — Enumeration of the hands reachable from a set of kept dice.

No randomness involved. Every reachable final hand is produced once per
combination of the rerolled dice, so the list is NOT deduplicated.

Constants:
    ALL_COMBOS       — 252 distinct unordered 5-dice outcomes (sorted tuples)
    COMBO_TO_INDEX   — Reverse lookup: sorted tuple → index (0-251)
    SCORE_TABLE      — 252×12 table: score for each combo in each category

Functions:
    dice_combinations(n)                 — non-decreasing length-n sequences
    generate_possible_final_rolls(kept)  — sorted(kept + combo) for each combo
    outcome_count(kept)                  — C(6 + r - 1, r), r = dice left to roll
"""
import itertools
import math

from game_engine import Category, NUM_DICE, calculate_score

FACES = range(1, 7)


def dice_combinations(num_dice):
    """Every non-decreasing sequence of num_dice faces, in lexicographic order.

    Built by backtracking: each position takes a value no smaller than the
    previous one, so permutations of the same multiset are never repeated.
    """
    combos = []

    def _extend(prefix, lowest):
        if len(prefix) == num_dice:
            combos.append(tuple(prefix))
            return
        for value in range(lowest, 7):
            prefix.append(value)
            _extend(prefix, value)
            prefix.pop()

    _extend([], 1)
    return combos


def generate_possible_final_rolls(kept_dice):
    """
    All final hands reachable by rolling the dice that are not kept

    Args:
        kept_dice: Dice already set aside (0-5 values)

    Returns:
        List of sorted 5-dice tuples, one per combination of rerolled dice
    """
    kept = tuple(kept_dice)
    remaining = max(NUM_DICE - len(kept), 0)
    return [tuple(sorted(kept + combo)) for combo in dice_combinations(remaining)]


def outcome_count(kept_dice):
    remaining = max(NUM_DICE - len(tuple(kept_dice)), 0)
    return math.comb(len(FACES) + remaining - 1, remaining)


# ── ALL_COMBOS: 252 distinct unordered 5-dice outcomes ───────────────────────

ALL_COMBOS = list(itertools.combinations_with_replacement(FACES, NUM_DICE))

COMBO_TO_INDEX = {combo: i for i, combo in enumerate(ALL_COMBOS)}


# ── SCORE_TABLE: 252×12 score lookup ─────────────────────────────────────────

_ALL_CATEGORIES = list(Category)
_CATEGORY_INDEX = {cat: i for i, cat in enumerate(_ALL_CATEGORIES)}

def _build_score_table():
    """Build SCORE_TABLE[combo_idx][cat_idx] using game_engine.calculate_score()."""
    return [[calculate_score(combo, cat) for cat in _ALL_CATEGORIES]
            for combo in ALL_COMBOS]

SCORE_TABLE = _build_score_table()


def lookup_score(dice, category):
    """Table lookup for a completed 5-dice hand (any order).

    Hands outside the table (wrong size, faces outside 1-6) are scored
    directly.
    """
    idx = COMBO_TO_INDEX.get(tuple(sorted(dice)))
    if idx is None:
        return calculate_score(dice, category)
    return SCORE_TABLE[idx][_CATEGORY_INDEX[category]]
