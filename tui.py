#!/usr/bin/env python3
"""
Yahtzee Duel TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with box-art dice, the shared scorecard,
advice panel and overlays. Computer turns are paced by a timer.
"""
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, Center
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Static
from textual import on

from ai import describe_reason, format_dice
from console import describe_entry, parse_dice
from game_engine import Category, MAX_ROLLS, calculate_score
from game_coordinator import GameCoordinator
from settings import load_settings, save_settings

logger = logging.getLogger(__name__)


# ── Box-art die faces ────────────────────────────────────────────────────────

BOX_ART = {
    1: [
        "┌───────┐",
        "│       │",
        "│   ●   │",
        "│       │",
        "└───────┘",
    ],
    2: [
        "┌───────┐",
        "│ ●     │",
        "│       │",
        "│     ● │",
        "└───────┘",
    ],
    3: [
        "┌───────┐",
        "│ ●     │",
        "│   ●   │",
        "│     ● │",
        "└───────┘",
    ],
    4: [
        "┌───────┐",
        "│ ●   ● │",
        "│       │",
        "│ ●   ● │",
        "└───────┘",
    ],
    5: [
        "┌───────┐",
        "│ ●   ● │",
        "│   ●   │",
        "│ ●   ● │",
        "└───────┘",
    ],
    6: [
        "┌───────┐",
        "│ ●   ● │",
        "│ ●   ● │",
        "│ ●   ● │",
        "└───────┘",
    ],
}

# Double-line frame for kept dice and dice marked for keeping
BOX_ART_KEPT = {
    v: [
        line.replace("┌", "╔").replace("┐", "╗")
        .replace("└", "╚").replace("┘", "╝")
        .replace("─", "═").replace("│", "║")
        for line in lines
    ]
    for v, lines in BOX_ART.items()
}


def render_dice_row(values, framed=()):
    """Render dice side by side; indices in framed use the double-line frame."""
    if not values:
        return ""
    lines = []
    for row in range(5):
        parts = []
        for i, value in enumerate(values):
            art = BOX_ART_KEPT if i in framed else BOX_ART
            parts.append(art[value][row])
        lines.append("  ".join(parts))
    return "\n".join(lines)


def render_dice_box(kept_dice, current_roll, selected=()):
    """Kept dice on top, the current roll below with labels for keys 1-5."""
    lines = ["[bold]Kept[/bold]"]
    if kept_dice:
        lines.append(render_dice_row(kept_dice, framed=range(len(kept_dice))))
    else:
        lines.append("[dim](none)[/dim]")
    lines.append("")
    lines.append("[bold]Rolled[/bold]")
    if current_roll:
        lines.append(render_dice_row(current_roll, framed=selected))
        labels = []
        for i in range(len(current_roll)):
            mark = " KEEP" if i in selected else ""
            labels.append(f"  [{i + 1}]{mark}".ljust(11))
        lines.append("".join(labels))
    else:
        lines.append("[dim](roll the dice)[/dim]")
    return "\n".join(lines)


def _theme_name(dark):
    return "textual-dark" if dark else "textual-light"


def selected_dice(current_roll, selected):
    """Values of the rolled dice at the selected positions, in roll order."""
    return tuple(v for i, v in enumerate(current_roll) if i in selected)


def render_scorecard(scorecard, dice=()):
    """Scorecard rows with the points the given full hand would earn in open categories."""
    lines = [f"[bold]{'Category':<18}{'Round':>6}  {'Winner':<12}{'Points':>6}[/bold]"]
    for cat in Category:
        entry = scorecard.get_entry(cat)
        if entry is not None:
            lines.append(f"{cat.value:<18}{entry.round:>6}  {entry.winner:<12}{entry.points:>6}")
        elif len(dice) == 5:
            potential = calculate_score(dice, cat)
            style = "green" if potential > 0 else "dim"
            lines.append(f"[{style}]{cat.value:<18}{'':>6}  {'':<12}({potential:>3})[/{style}]")
        else:
            lines.append(f"[dim]{cat.value:<18}{'-':>6}  {'-':<12}{'-':>6}[/dim]")
    return "\n".join(lines)


def render_result(coord):
    """Game-over summary text, empty while the game is running."""
    if not coord.game_over:
        return ""
    lines = ["", "[bold]═══ GAME OVER ═══[/bold]", ""]
    if coord.is_draw:
        lines.append("[bold]It's a draw![/bold]")
    else:
        lines.append(f"[bold]{coord.winner} wins![/bold]")
    lines.append("")
    winner = coord.winner
    for name, score in coord.scores.items():
        marker = " *" if name == winner else ""
        lines.append(f"  {name}: {score}{marker}")
    lines.append("")
    lines.append("[dim]Press N for new game, L for game log[/dim]")
    return "\n".join(lines)


# ── Widgets ──────────────────────────────────────────────────────────────────

class DiceDisplay(Static):
    """Renders kept and rolled dice using box art."""

    def render(self):
        app = self.app
        turn = app.coordinator.turn
        return render_dice_box(turn.kept_dice, turn.current_roll, app.selected)


class StatusDisplay(Static):
    """Shows roll status, the last scored turn and advice."""

    def render(self):
        app = self.app
        coord = app.coordinator
        lines = []

        if coord.game_over:
            lines.append("[bold]GAME OVER![/bold]")
        elif coord.between_rounds:
            lines.append("[dim]Setting up the next round...[/dim]")
        else:
            name = coord.current_player_name
            kind = "" if coord.is_current_player_human else " (computer)"
            remaining = MAX_ROLLS - coord.turn.roll_number
            lines.append(f"[bold]{name}'s turn{kind}[/bold]  Rolls left: {remaining}")
            possible = coord.scorecard.get_possible_categories(coord.turn.kept_dice)
            lines.append("[dim]Possible: " + ", ".join(c.value for c in possible) + "[/dim]")

        result = coord.last_result
        if result is not None:
            if result.category is None:
                lines.append(f"{result.player} could not score {format_dice(result.dice)}")
            else:
                lines.append(f"{result.player} scored {result.points} in {result.category.value} "
                             f"with {format_dice(result.dice)}")

        if app.show_pursuits and coord.pursuits:
            lines.append("")
            for reason in coord.pursuits.values():
                lines.append(f"[dim]{describe_reason(reason)}[/dim]")
        if app.show_pursuits and coord.target:
            category, dice = coord.target
            lines.append(f"Target: {category.value} by rolling {format_dice(dice)}")

        if coord.help_text:
            lines.append("")
            lines.append("[bold]Help[/bold]")
            lines.append(coord.help_text)

        return "\n".join(lines)


class ScorecardDisplay(Static):
    """Renders the shared scorecard as a text table."""

    def render(self):
        coord = self.app.coordinator
        turn = coord.turn
        hand = turn.kept_dice + turn.current_roll
        return render_scorecard(coord.scorecard, hand)


class GameOverDisplay(Static):
    """Shows game over summary."""

    def render(self):
        return render_result(self.app.coordinator)


# ── Modal Screens ────────────────────────────────────────────────────────────

class ControlsScreen(ModalScreen):
    """Overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
        Binding("f1", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll dice"),
            ("1-5", "Mark rolled die to keep"),
            ("K", "Keep marked dice"),
            ("S", "Stand"),
            ("A", "Ask for advice"),
            ("W", "Save game (between rounds)"),
            ("L", "Game log"),
            ("+/-", "Computer speed"),
            ("D", "Dark mode"),
            ("N", "New game (after game)"),
            ("Esc", "Close overlay / Quit"),
            ("? / F1", "This screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<20} {desc}\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="controls-panel"))


class LogScreen(ModalScreen):
    """Game log overlay, most recent events last."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("l", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        yield Center(Static(self._build_text(), id="log-panel"))

    def _build_text(self):
        entries = self.app.coordinator.game_log.entries[-30:]
        text = "[bold]GAME LOG[/bold]\n\n"
        if not entries:
            text += "  Nothing has happened yet.\n"
        for entry in entries:
            text += f"  R{entry.round} {describe_entry(entry)}\n"
        text += "\n[dim]L or Esc to close[/dim]"
        return text


class DiceEntryScreen(ModalScreen):
    """Manual dice entry for a roll. Dismisses with the dice tuple, or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, player: str, num_dice: int):
        super().__init__()
        self.player = player
        self.num_dice = num_dice

    def compose(self) -> ComposeResult:
        with Vertical(id="entry-panel"):
            yield Static(f"[bold]Enter {self.num_dice} dice for {self.player}[/bold]")
            yield Input(placeholder="e.g. 5 5 2", id="dice-input")
            yield Static("", id="entry-error")

    @on(Input.Submitted, "#dice-input")
    def on_submitted(self, event: Input.Submitted):
        try:
            dice = parse_dice(event.value)
        except ValueError as exc:
            self.query_one("#entry-error", Static).update(f"[red]{exc}[/red]")
            return
        if len(dice) != self.num_dice:
            self.query_one("#entry-error", Static).update(f"[red]Enter exactly {self.num_dice} dice[/red]")
            return
        self.dismiss(dice)

    def action_cancel(self):
        self.dismiss(None)


# ── Main App ─────────────────────────────────────────────────────────────────

class YahtzeeApp(App):
    """Yahtzee Duel terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 60;
        padding: 1 2;
    }

    #scorecard-panel {
        width: 1fr;
        padding: 1 2;
    }

    #round-display {
        height: auto;
        padding: 0 2;
    }

    #dice-display {
        height: auto;
    }

    #status-display {
        height: auto;
        margin-top: 1;
    }

    #roll-btn {
        margin-top: 1;
        width: 20;
    }

    #game-over-display {
        height: auto;
    }

    #controls-panel, #log-panel, #entry-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 70;
        height: auto;
        max-height: 80vh;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "select_1", "Die 1"),
        Binding("2", "select_2", "Die 2"),
        Binding("3", "select_3", "Die 3"),
        Binding("4", "select_4", "Die 4"),
        Binding("5", "select_5", "Die 5"),
        Binding("k", "keep", "Keep", show=True),
        Binding("s", "stand", "Stand", show=True),
        Binding("a", "advice", "Advice", show=True),
        Binding("w", "save", "Save"),
        Binding("l", "log", "Log"),
        Binding("question_mark", "controls", "Controls"),
        Binding("f1", "controls", "Controls"),
        Binding("d", "dark", "Dark mode"),
        Binding("plus", "speed_up", "+Speed"),
        Binding("equals", "speed_up", "+Speed"),
        Binding("minus", "speed_down", "-Speed"),
        Binding("n", "new_game", "New game"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, coordinator: GameCoordinator, save_path=None, manual_rolls=False,
                 show_pursuits=True, settings_path=None):
        super().__init__()
        self.coordinator = coordinator
        self.save_path = save_path
        self.manual_rolls = manual_rolls
        self.show_pursuits = show_pursuits
        self.settings_path = settings_path
        self.settings = load_settings(settings_path)
        self.selected = set()
        self.message = ""
        self._entry_open = False
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="round-display")
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield DiceDisplay(id="dice-display")
                yield Button("ROLL", id="roll-btn", variant="primary")
                yield StatusDisplay(id="status-display")
                yield GameOverDisplay(id="game-over-display")
            with Vertical(id="scorecard-panel"):
                yield ScorecardDisplay(id="scorecard-display")
        yield Footer()

    def on_mount(self):
        self.title = "Yahtzee Duel"
        self.theme = _theme_name(self.settings.get("dark_mode", False))
        self._tick_timer = self.set_interval(1 / 4, self._game_tick)

    def _game_tick(self):
        """Per-tick game update: start rounds and advance computer turns."""
        coord = self.coordinator
        if self._entry_open:
            return
        if (self.manual_rolls and not coord.is_current_player_human
                and coord.can_roll_now()):
            self._ask_dice(coord.current_player_name, coord.turn.dice_to_roll)
            return
        before = coord.turn
        coord.tick()
        if coord.turn != before:
            self.selected = set()
        self._refresh_display()

    def _refresh_display(self):
        """Refresh all display widgets."""
        try:
            self.query_one("#dice-display", DiceDisplay).refresh()
            self.query_one("#status-display", StatusDisplay).refresh()
            self.query_one("#scorecard-display", ScorecardDisplay).refresh()
            self.query_one("#round-display", Static).update(self._round_text())
            self.query_one("#game-over-display", GameOverDisplay).refresh()
            self.query_one("#roll-btn", Button).disabled = not self._can_play() or not self.coordinator.can_roll_now()
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    def _round_text(self):
        """Build round/player bar text."""
        coord = self.coordinator
        current = coord.current_player_name
        parts = []
        for name, score in coord.scores.items():
            marker = "▸" if name == current and not coord.game_over else " "
            parts.append(f"{marker}{name}:{score}")
        bar = "  ".join(parts)
        text = f"Round {coord.round_number} | {bar} | Speed: {coord.speed_name.capitalize()}"
        if self.message:
            text += f" | {self.message}"
        return text

    # ── Actions ──────────────────────────────────────────────────────────

    def _can_play(self):
        """Whether human input is allowed right now."""
        coord = self.coordinator
        return coord.is_current_player_human and not coord.game_over and not self._entry_open

    def _ask_dice(self, player, num_dice):
        def on_entry(dice):
            self._entry_open = False
            if dice is not None:
                self.coordinator.roll(dice)
                self.selected = set()
            self._refresh_display()
        self._entry_open = True
        self.push_screen(DiceEntryScreen(player, num_dice), on_entry)

    def action_roll(self):
        coord = self.coordinator
        if not self._can_play() or not coord.can_roll_now():
            return
        if self.manual_rolls:
            self._ask_dice(coord.current_player_name, coord.turn.dice_to_roll)
            return
        coord.roll()
        self.selected = set()
        self._refresh_display()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_select_1(self):
        self._toggle_select(0)

    def action_select_2(self):
        self._toggle_select(1)

    def action_select_3(self):
        self._toggle_select(2)

    def action_select_4(self):
        self._toggle_select(3)

    def action_select_5(self):
        self._toggle_select(4)

    def _toggle_select(self, index):
        if not self._can_play() or index >= len(self.coordinator.turn.current_roll):
            return
        self.selected ^= {index}
        self._refresh_display()

    def action_keep(self):
        coord = self.coordinator
        if not self._can_play() or not coord.can_decide_now():
            return
        coord.keep(selected_dice(coord.turn.current_roll, self.selected))
        self.selected = set()
        self._refresh_display()

    def action_stand(self):
        if not self._can_play():
            return
        if self.coordinator.stand():
            self.selected = set()
        self._refresh_display()

    def action_advice(self):
        if not self._can_play():
            return
        self.coordinator.request_help()
        self._refresh_display()

    def action_save(self):
        coord = self.coordinator
        if self.save_path is None:
            self.message = "No save path configured"
        elif not coord.can_save:
            self.message = "Save before the first roll of a round"
        else:
            try:
                coord.save(self.save_path)
                self.message = f"Saved to {self.save_path}"
            except OSError as exc:
                logger.error("Could not save to %s: %s", self.save_path, exc)
                self.message = "Save failed"
        self._refresh_display()

    def action_controls(self):
        self.push_screen(ControlsScreen())

    def action_log(self):
        self.push_screen(LogScreen())

    def action_dark(self):
        dark = not self.settings.get("dark_mode", False)
        self.settings["dark_mode"] = dark
        self.theme = _theme_name(dark)
        save_settings(self.settings, self.settings_path)
        self._refresh_display()

    def action_speed_up(self):
        self.coordinator.change_speed(+1)
        self._refresh_display()

    def action_speed_down(self):
        self.coordinator.change_speed(-1)
        self._refresh_display()

    def action_new_game(self):
        if self.coordinator.game_over:
            self.coordinator.reset_game()
            self.selected = set()
            self.message = ""
            self._refresh_display()

    def action_quit_or_close(self):
        # If any screen is stacked, pop it
        if len(self.screen_stack) > 1:
            self.pop_screen()
            self._entry_open = False
        else:
            self.exit()


def main(coordinator, save_path=None, manual_rolls=False, show_pursuits=True):
    """Entry point for the TUI."""
    app = YahtzeeApp(coordinator, save_path=save_path, manual_rolls=manual_rolls,
                     show_pursuits=show_pursuits)
    app.run()
