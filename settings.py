"""Persistent settings for Yahtzee Duel.

Stores user preferences in ~/.yahtzee_duel_settings.json.
No frontend dependency; command-line flags override what is stored here.
"""

import json
import os
import tempfile
from pathlib import Path

DEFAULTS = {
    "manual_rolls": False,
    "show_pursuits": True,
    "save_path": "yahtzee_save.txt",
    "log_level": "WARNING",
    "speed": "normal",
    "dark_mode": False,
}


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".yahtzee_duel_settings.json"


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Merges with DEFAULTS so missing keys get default values.
    Unknown keys are ignored.
    """
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            return dict(DEFAULTS)
        result = dict(DEFAULTS)
        for key in DEFAULTS:
            if key in data:
                result[key] = data[key]
        return result
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return dict(DEFAULTS)


def save_settings(settings, path=None):
    """Write settings dict to JSON atomically. Silently ignores write errors."""
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        raw = json.dumps(settings, indent=2).encode()
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
    except OSError:
        pass
