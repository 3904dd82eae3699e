"""
Save file — plain-text persistence of the round number and shared scorecard.

Format:

    Round: <n>
    Scorecard:
    <one line per category, in category order>

A scorecard line is "0" for an open category, otherwise
"<points> <winner> <round>". Player names therefore must not contain
whitespace. Lines that do not split into exactly three fields are read as
open categories.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from game_engine import Category, Scorecard, ScoreCardEntry

logger = logging.getLogger(__name__)


class SaveFileError(ValueError):
    """Raised when save text cannot be parsed."""


# ── Text format ──────────────────────────────────────────────────────────────

def serialize_scorecard(scorecard: Scorecard) -> str:
    lines = []
    for category in Category:
        entry = scorecard.get_entry(category)
        if entry is None:
            lines.append("0")
        else:
            lines.append(f"{entry.points} {entry.winner} {entry.round}")
    return "\n".join(lines)


def deserialize_scorecard(text: str) -> Scorecard:
    """Rebuild a Scorecard from its category lines.

    Raises:
        SaveFileError: if a three-field line has non-numeric points or round
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    entries = {}
    for category, line in zip(Category, lines):
        parts = line.split()
        if len(parts) != 3:
            continue
        points, winner, round_number = parts
        try:
            entries[category] = ScoreCardEntry(points=int(points), winner=winner,
                                               round=int(round_number))
        except ValueError as exc:
            raise SaveFileError(f"Bad scorecard line for {category.value}: {line!r}") from exc
    return Scorecard(entries)


def serialize_game(round_number: int, scorecard: Scorecard) -> str:
    """Full save text: the round to play next followed by the scorecard."""
    return f"Round: {round_number}\nScorecard:\n{serialize_scorecard(scorecard)}\n"


def deserialize_game(text: str) -> tuple[int, Scorecard]:
    """
    Parse save text

    Args:
        text: Contents of a save file

    Returns:
        (round_number, scorecard)

    Raises:
        SaveFileError: if the round header or scorecard section is missing
            or malformed
    """
    lines = text.splitlines()
    round_number = None
    for line in lines:
        if line.startswith("Round: "):
            try:
                round_number = int(line[len("Round: "):].strip())
            except ValueError as exc:
                raise SaveFileError(f"Bad round line: {line!r}") from exc
            break
    if round_number is None or round_number < 1:
        raise SaveFileError("Missing round number")

    for i, line in enumerate(lines):
        if line.strip() == "Scorecard:":
            return round_number, deserialize_scorecard("\n".join(lines[i + 1:]))
    raise SaveFileError("Missing scorecard section")


# ── Files ────────────────────────────────────────────────────────────────────

def save_game(path, round_number: int, scorecard: Scorecard) -> None:
    """Write the save file atomically. Errors propagate to the caller."""
    path = Path(path)
    raw = serialize_game(round_number, scorecard).encode()
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    closed = False
    try:
        os.write(fd, raw)
        os.close(fd)
        closed = True
        os.replace(tmp, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    logger.info("Saved round %d to %s", round_number, path)


def load_game(path) -> tuple[int, Scorecard] | None:
    """Read a save file. Returns None if it is missing or corrupt."""
    path = Path(path)
    try:
        text = path.read_text()
    except (FileNotFoundError, OSError) as exc:
        logger.warning("Could not read save file %s: %s", path, exc)
        return None
    try:
        return deserialize_game(text)
    except SaveFileError as exc:
        logger.warning("Corrupt save file %s: %s", path, exc)
        return None
