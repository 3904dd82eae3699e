"""
Multiset algebra over dice hands.

Hands are sequences of die values whose order carries no meaning. These
helpers answer "what is left to roll", "which rolled dice match a target"
and "did the player keep exactly this".
"""
from collections import Counter


def difference(a, b):
    """
    Multiset subtraction: a with one occurrence removed per matching element of b

    Args:
        a: Dice to subtract from
        b: Dice to remove

    Returns:
        Sorted tuple of the remaining values
    """
    remaining = Counter(a)
    remaining.subtract(Counter(b))
    return tuple(sorted(remaining.elements()))


def intersection(a, b):
    """
    Multiset intersection, iterating b in order

    Each element of b is kept while an unmatched occurrence of it remains
    in a, so the result follows b's order.
    """
    available = Counter(a)
    result = []
    for value in b:
        if available[value] > 0:
            available[value] -= 1
            result.append(value)
    return tuple(result)


def concatenate(a, b):
    return tuple(a) + tuple(b)


def unordered_equal(a, b):
    """True if a and b hold the same values with the same counts."""
    return len(a) == len(b) and Counter(a) == Counter(b)


def unique(a):
    """First occurrence of every value, in order."""
    seen = set()
    result = []
    for value in a:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return tuple(result)


def is_submultiset(small, big):
    """True if every value of small can be matched by a distinct value of big."""
    big_counts = Counter(big)
    return all(big_counts[v] >= c for v, c in Counter(small).items())
