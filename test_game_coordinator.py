"""
GameCoordinator Test Suite

Tests the game coordination logic with no frontend attached.
Covers: setup, round order, turn flow, game over, strategy-driven steps,
timer pacing, speed control, reset, save/load, player building and CLI parsing.

Conventions match the other test files:
- Class grouping by topic
- random.seed() or scripted dice for determinism
- No mocking — exercises the real engine and AI
"""
import pytest
import random

from game_engine import Category, Scorecard, ScoreCardEntry
from ai import ComputerStrategy, HumanStrategy, HumanPrompts
from game_coordinator import (
    GameCoordinator, TurnResult, parse_args, build_players, _make_strategy,
    SPEED_PRESETS, SPEED_NAMES,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

class ScriptedDice:
    """Roll source returning fixed rolls in order and recording each request."""

    def __init__(self, *rolls):
        self.rolls = list(rolls)
        self.calls = []

    def __call__(self, name, num_dice):
        self.calls.append((name, num_dice))
        return self.rolls.pop(0)


class ScriptedPrompts(HumanPrompts):

    def __init__(self, help_answers=(), stand_answers=(), keep_answers=()):
        self.help_answers = list(help_answers)
        self.stand_answers = list(stand_answers)
        self.keep_answers = list(keep_answers)
        self.shown = []

    def ask_help(self):
        return self.help_answers.pop(0) if self.help_answers else False

    def ask_stand(self):
        return self.stand_answers.pop(0) if self.stand_answers else False

    def ask_dice_to_keep(self, current_roll):
        return self.keep_answers.pop(0) if self.keep_answers else ()

    def show_help(self, text):
        self.shown.append(text)


def no_rolls(name, num_dice):
    raise AssertionError(f"unexpected roll for {name}")


def card_with_open(*open_categories, winner="Computer"):
    entries = {cat: ScoreCardEntry(points=0, winner=winner, round=1)
               for cat in Category if cat not in open_categories}
    return Scorecard(entries)


def human_vs_computer(**kwargs):
    return GameCoordinator([("Human", HumanStrategy()), ("Computer", ComputerStrategy())], **kwargs)


def two_computers(**kwargs):
    return GameCoordinator([("Deep", ComputerStrategy()), ("Blue", ComputerStrategy())], **kwargs)


def human_first(scorecard=None):
    """Started round where Human won the opening tie-break."""
    coord = human_vs_computer(scorecard=scorecard, roll_source=ScriptedDice((6,), (1,)))
    coord.start_round()
    return coord


def tick_until(coordinator, predicate, max_ticks=200000):
    """Tick the coordinator until predicate(coordinator) is True.
    Raises if max_ticks exceeded."""
    for _ in range(max_ticks):
        coordinator.tick()
        if predicate(coordinator):
            return
    raise TimeoutError(f"Predicate not satisfied after {max_ticks} ticks")


def tick_n(coordinator, n):
    for _ in range(n):
        coordinator.tick()


# ═══════════════════════════════════════════════════════════════════════════════
# 1. SETUP
# ═══════════════════════════════════════════════════════════════════════════════

class TestSetup:

    def test_initial_state(self):
        coord = human_vs_computer()
        assert coord.round_number == 1
        assert coord.between_rounds
        assert coord.current_player_name is None
        assert coord.scores == {"Human": 0, "Computer": 0}
        assert not coord.game_over
        assert coord.winner is None
        assert coord.num_players == 2
        assert coord.player_names == ["Human", "Computer"]

    def test_too_few_players(self):
        with pytest.raises(ValueError):
            GameCoordinator([("Solo", ComputerStrategy())])

    def test_too_many_players(self):
        players = [(f"P{i}", ComputerStrategy()) for i in range(5)]
        with pytest.raises(ValueError):
            GameCoordinator(players)

    def test_duplicate_names(self):
        with pytest.raises(ValueError):
            GameCoordinator([("Bob", ComputerStrategy()), ("Bob", ComputerStrategy())])

    def test_names_must_be_single_words(self):
        with pytest.raises(ValueError):
            GameCoordinator([("Big Bob", ComputerStrategy()), ("Al", ComputerStrategy())])

    def test_unknown_speed_falls_back(self):
        coord = two_computers(speed="ludicrous")
        assert coord.speed_name == "normal"
        assert coord.ai_delay == SPEED_PRESETS["normal"]

    def test_resume_from_scorecard(self):
        card = Scorecard().add_entry(Category.SIXES, 24, "Human", 1)
        coord = human_vs_computer(scorecard=card, round_number=2)
        assert coord.round_number == 2
        assert coord.scores == {"Human": 24, "Computer": 0}


# ═══════════════════════════════════════════════════════════════════════════════
# 2. ROUND ORDER
# ═══════════════════════════════════════════════════════════════════════════════

class TestRoundOrder:

    def test_tie_broken_by_higher_roll(self):
        dice = ScriptedDice((2,), (5,))
        coord = human_vs_computer(roll_source=dice)
        assert coord.start_round()
        assert coord.turn_order == ["Computer", "Human"]
        assert coord.tie_break_rolls == {"Human": [2], "Computer": [5]}
        assert dice.calls == [("Human", 1), ("Computer", 1)]

    def test_tied_tie_break_rolls_again(self):
        coord = human_vs_computer(roll_source=ScriptedDice((3,), (3,), (1,), (4,)))
        coord.start_round()
        assert coord.turn_order == ["Computer", "Human"]
        assert coord.tie_break_rolls == {"Human": [3, 1], "Computer": [3, 4]}

    def test_lowest_score_goes_first_without_rolling(self):
        card = Scorecard().add_entry(Category.YAHTZEE, 50, "Human", 1)
        coord = human_vs_computer(scorecard=card, round_number=2, roll_source=no_rolls)
        coord.start_round()
        assert coord.turn_order == ["Computer", "Human"]
        assert coord.tie_break_rolls == {}

    def test_only_tied_players_roll(self):
        card = Scorecard().add_entry(Category.TWOS, 10, "Cy", 1)
        players = [("Al", ComputerStrategy()), ("Bo", ComputerStrategy()), ("Cy", ComputerStrategy())]
        dice = ScriptedDice((1,), (6,))
        coord = GameCoordinator(players, scorecard=card, roll_source=dice)
        coord.start_round()
        assert coord.turn_order == ["Bo", "Al", "Cy"]
        assert [name for name, _ in dice.calls] == ["Al", "Bo"]

    def test_order_is_logged(self):
        coord = human_vs_computer(roll_source=ScriptedDice((2,), (5,)))
        coord.start_round()
        order = [e for e in coord.game_log.entries if e.event_type == "order"]
        assert [e.player for e in order] == ["Computer", "Human"]
        assert order[0].dice_values == (5,)

    def test_start_round_only_once(self):
        coord = human_first()
        assert not coord.start_round()
        assert coord.current_player_name == "Human"

    def test_roll_starts_round(self):
        coord = human_vs_computer(roll_source=ScriptedDice((6,), (1,), (1, 2, 3, 4, 6)))
        assert coord.roll()
        assert coord.current_player_name == "Human"
        assert coord.turn.current_roll == (1, 2, 3, 4, 6)


# ═══════════════════════════════════════════════════════════════════════════════
# 3. TURN FLOW
# ═══════════════════════════════════════════════════════════════════════════════

class TestTurnFlow:

    def test_roll(self):
        coord = human_first()
        assert coord.roll((5, 5, 5, 5, 2))
        assert coord.turn.current_roll == (5, 5, 5, 5, 2)
        assert coord.turn.roll_number == 1
        assert coord.can_decide_now()
        assert not coord.can_roll_now()

    def test_must_decide_before_rolling_again(self):
        coord = human_first()
        coord.roll((5, 5, 5, 5, 2))
        assert not coord.roll((1, 2, 3, 4, 5))

    def test_bad_roll_values_rejected(self):
        coord = human_first()
        assert not coord.roll((7, 1, 1, 1, 1))
        assert not coord.roll((1, 2))
        assert coord.turn.roll_number == 0

    def test_keep_must_come_from_roll(self):
        coord = human_first()
        coord.roll((5, 5, 5, 5, 2))
        assert not coord.keep((6,))
        assert not coord.keep((2, 2))
        assert coord.turn.kept_dice == ()

    def test_keep_roll_stand_scores(self):
        coord = human_first()
        coord.roll((5, 5, 5, 5, 2))
        assert coord.keep((5, 5, 5, 5))
        assert coord.roll((5,))
        assert coord.stand()
        assert coord.last_result == TurnResult("Human", 1, (5, 5, 5, 5, 5), Category.YAHTZEE, 50)
        assert coord.scorecard.get_entry(Category.YAHTZEE) == ScoreCardEntry(50, "Human", 1)
        assert coord.current_player_name == "Computer"
        assert coord.turn.roll_number == 0

    def test_third_roll_ends_turn(self):
        coord = human_first()
        coord.roll((1, 2, 3, 4, 6))
        coord.keep(())
        coord.roll((1, 2, 3, 4, 6))
        coord.keep(())
        coord.roll((1, 1, 1, 1, 1))
        assert coord.last_result.category == Category.YAHTZEE
        assert coord.current_player_name == "Computer"

    def test_keeping_five_ends_turn(self):
        coord = human_first()
        coord.roll((2, 2, 3, 3, 3))
        coord.keep((2, 2, 3, 3, 3))
        assert coord.last_result.category == Category.FULL_HOUSE
        assert coord.last_result.points == 25

    def test_unscorable_turn_leaves_card_unchanged(self):
        card = card_with_open(Category.YAHTZEE)
        coord = human_first(scorecard=card)
        coord.roll((1, 2, 3, 4, 6))
        coord.stand()
        assert coord.last_result.category is None
        assert coord.last_result.points == 0
        assert coord.scorecard == card
        assert coord.current_player_name == "Computer"

    def test_round_completes(self):
        coord = human_first()
        coord.roll((1, 2, 3, 4, 6))
        coord.stand()
        coord.roll((2, 2, 3, 3, 3))
        coord.stand()
        assert coord.round_number == 2
        assert coord.between_rounds
        assert len(coord.game_log.get_score_entries()) == 2

    def test_turn_is_logged(self):
        coord = human_first()
        coord.roll((5, 5, 5, 5, 2))
        coord.keep((5, 5, 5, 5))
        coord.roll((5,))
        coord.stand()
        events = [e.event_type for e in coord.game_log.get_turn_entries(1, "Human")]
        assert events == ["order", "roll", "keep", "roll", "stand", "score"]

    def test_help(self):
        coord = human_first()
        assert coord.request_help() == ""
        coord.roll((5, 5, 5, 5, 2))
        text = coord.request_help()
        assert text.startswith("You should keep: ")
        assert coord.help_text == text

    def test_keep_sets_computer_advice(self):
        coord = human_vs_computer(roll_source=ScriptedDice((1,), (6,)))
        coord.start_round()
        assert coord.current_player_name == "Computer"
        coord.roll((5, 5, 5, 5, 2))
        coord.keep((5, 5, 5, 5))
        assert Category.YAHTZEE in coord.pursuits
        assert coord.target == (Category.YAHTZEE, (5,))

    def test_human_gets_no_pursuits(self):
        coord = human_first()
        coord.roll((5, 5, 5, 5, 2))
        coord.keep((5, 5, 5, 5))
        assert coord.pursuits is None
        assert coord.target is None


# ═══════════════════════════════════════════════════════════════════════════════
# 4. GAME OVER
# ═══════════════════════════════════════════════════════════════════════════════

class TestGameOver:

    def test_filling_last_category_ends_game_mid_round(self):
        card = card_with_open(Category.YAHTZEE)
        coord = human_first(scorecard=card)
        coord.roll((6, 6, 6, 6, 6))
        coord.stand()
        assert coord.game_over
        assert coord.winner == "Human"
        assert not coord.is_draw
        assert coord.round_number == 1
        assert coord.between_rounds
        assert not coord.roll()
        assert coord.play_step() is None

    def test_draw(self):
        cats = list(Category)
        entries = {cat: ScoreCardEntry(0, "Human", 1) for cat in cats}
        entries[cats[0]] = ScoreCardEntry(10, "Human", 1)
        entries[cats[1]] = ScoreCardEntry(10, "Computer", 2)
        coord = human_vs_computer(scorecard=Scorecard(entries))
        assert coord.game_over
        assert coord.is_draw
        assert coord.winner is None

    def test_player_without_categories_scores_zero(self):
        card = card_with_open(winner="Human")
        coord = human_vs_computer(scorecard=card)
        assert coord.scores == {"Human": 0, "Computer": 0}
        assert coord.is_draw


# ═══════════════════════════════════════════════════════════════════════════════
# 5. STRATEGY-DRIVEN STEPS
# ═══════════════════════════════════════════════════════════════════════════════

class TestPlayStep:

    def test_computer_steps(self):
        card = card_with_open(Category.YAHTZEE)
        coord = two_computers(scorecard=card, roll_source=ScriptedDice((6,), (1,), (5, 5, 5, 5, 5)))
        assert coord.play_step() == "start"
        assert coord.play_step() == "roll"
        assert coord.play_step() == "stand"
        assert coord.game_over
        assert coord.winner == "Deep"
        assert coord.play_step() is None

    def test_computer_keeps(self):
        coord = two_computers(roll_source=ScriptedDice((6,), (1,), (5, 5, 5, 5, 2)))
        coord.play_step()
        coord.play_step()
        assert coord.play_step() == "keep"
        assert coord.turn.kept_dice == (5, 5, 5, 5)

    def test_human_steps_use_prompts(self):
        prompts = ScriptedPrompts(help_answers=[True], stand_answers=[True])
        players = [("Ann", HumanStrategy(prompts)), ("Computer", ComputerStrategy())]
        coord = GameCoordinator(players, roll_source=ScriptedDice((6,), (1,), (2, 2, 3, 3, 3)))
        coord.play_step()
        coord.play_step()
        assert coord.play_step() == "stand"
        assert len(prompts.shown) == 1
        assert prompts.shown[0].startswith("You should keep: ")
        assert coord.scorecard.get_entry(Category.FULL_HOUSE) == ScoreCardEntry(25, "Ann", 1)

    def test_bad_human_keep_raises(self):
        prompts = ScriptedPrompts(keep_answers=[(6, 6)])
        players = [("Ann", HumanStrategy(prompts)), ("Computer", ComputerStrategy())]
        coord = GameCoordinator(players, roll_source=ScriptedDice((6,), (1,), (1, 2, 3, 4, 5)))
        coord.play_step()
        coord.play_step()
        with pytest.raises(ValueError):
            coord.play_step()

    def test_play_round(self):
        random.seed(17)
        coord = two_computers()
        coord.play_round()
        assert coord.between_rounds
        assert coord.round_number == 2
        assert {e.player for e in coord.game_log.get_score_entries()} == {"Deep", "Blue"}


# ═══════════════════════════════════════════════════════════════════════════════
# 6. TIMER PACING
# ═══════════════════════════════════════════════════════════════════════════════

class TestTick:

    def test_first_tick_starts_round(self):
        random.seed(1)
        coord = two_computers()
        coord.tick()
        assert coord.round_started
        assert coord.turn.roll_number == 0

    def test_computer_waits_for_delay(self):
        random.seed(1)
        coord = two_computers(speed="normal")
        coord.tick()
        tick_n(coord, SPEED_PRESETS["normal"] - 1)
        assert coord.turn.roll_number == 0
        coord.tick()
        assert coord.turn.roll_number == 1

    def test_human_turn_waits(self):
        coord = human_first()
        tick_n(coord, 50)
        assert coord.turn.roll_number == 0
        assert coord.current_player_name == "Human"

    def test_full_game(self):
        random.seed(7)
        coord = two_computers(speed="fast")
        tick_until(coord, lambda c: c.game_over)
        assert coord.scorecard.is_full()
        assert coord.is_draw or coord.winner in ("Deep", "Blue")
        assert len(coord.game_log.get_score_entries()) >= len(Category)
        total = sum(coord.scores.values())
        assert total == sum(coord.scorecard.get_entry(cat).points for cat in Category)


# ═══════════════════════════════════════════════════════════════════════════════
# 7. SPEED CONTROL
# ═══════════════════════════════════════════════════════════════════════════════

class TestSpeedControl:

    def test_faster(self):
        coord = two_computers()
        assert coord.change_speed(1)
        assert coord.speed_name == "fast"
        assert coord.ai_delay == SPEED_PRESETS["fast"]

    def test_limits(self):
        coord = two_computers(speed=SPEED_NAMES[-1])
        assert not coord.change_speed(1)
        coord = two_computers(speed=SPEED_NAMES[0])
        assert not coord.change_speed(-1)
        assert coord.change_speed(1)
        assert coord.speed_name == "normal"


# ═══════════════════════════════════════════════════════════════════════════════
# 8. RESET
# ═══════════════════════════════════════════════════════════════════════════════

class TestReset:

    def test_reset_clears_game(self):
        coord = human_first()
        coord.roll((2, 2, 3, 3, 3))
        coord.stand()
        coord.reset_game()
        assert coord.scorecard == Scorecard()
        assert coord.round_number == 1
        assert coord.between_rounds
        assert coord.last_result is None
        assert coord.game_log.entries == []
        assert coord.player_names == ["Human", "Computer"]


# ═══════════════════════════════════════════════════════════════════════════════
# 9. SAVE / LOAD
# ═══════════════════════════════════════════════════════════════════════════════

class TestSaveLoad:

    def players(self):
        return [("Human", HumanStrategy()), ("Computer", ComputerStrategy())]

    def test_save_new_game(self, tmp_path):
        path = tmp_path / "save.txt"
        assert human_vs_computer().save(path)
        assert path.read_text().startswith("Round: 1\nScorecard:\n")

    def test_save_and_load_after_round(self, tmp_path):
        path = tmp_path / "save.txt"
        coord = human_first()
        coord.roll((2, 2, 3, 3, 3))
        coord.stand()
        coord.roll((6, 6, 6, 6, 6))
        coord.stand()
        assert coord.save(path)
        loaded = GameCoordinator.load(path, self.players())
        assert loaded.round_number == 2
        assert loaded.scorecard == coord.scorecard
        assert loaded.scores == coord.scores

    def test_save_allowed_before_first_roll(self, tmp_path):
        coord = human_first()
        assert coord.can_save
        assert coord.save(tmp_path / "save.txt")

    def test_no_save_mid_round(self, tmp_path):
        path = tmp_path / "save.txt"
        coord = human_first()
        coord.roll((1, 2, 3, 4, 6))
        assert not coord.can_save
        assert not coord.save(path)
        coord.stand()
        assert not coord.save(path)
        assert not path.exists()

    def test_no_save_after_game_over(self, tmp_path):
        coord = human_vs_computer(scorecard=card_with_open())
        assert not coord.save(tmp_path / "save.txt")

    def test_load_missing_file(self, tmp_path):
        assert GameCoordinator.load(tmp_path / "nope.txt", self.players()) is None

    def test_load_with_unknown_player(self, tmp_path):
        path = tmp_path / "save.txt"
        card = Scorecard().add_entry(Category.ONES, 3, "Stranger", 1)
        GameCoordinator([("Stranger", ComputerStrategy()), ("Computer", ComputerStrategy())],
                        scorecard=card, round_number=2).save(path)
        loaded = GameCoordinator.load(path, self.players())
        assert loaded.scorecard.get_entry(Category.ONES).winner == "Stranger"
        assert loaded.scores == {"Human": 0, "Computer": 0}

    def test_load_passes_options(self, tmp_path):
        path = tmp_path / "save.txt"
        human_vs_computer().save(path)
        loaded = GameCoordinator.load(path, self.players(), speed="slow")
        assert loaded.speed_name == "slow"


# ═══════════════════════════════════════════════════════════════════════════════
# 10. PLAYERS
# ═══════════════════════════════════════════════════════════════════════════════

class TestBuildPlayers:

    def test_default_names(self):
        players = build_players(["human", "computer"])
        assert [name for name, _ in players] == ["Human", "Computer"]
        assert players[0][1].is_human
        assert not players[1][1].is_human

    def test_repeated_types_are_numbered(self):
        players = build_players(["computer", "human", "computer"])
        assert [name for name, _ in players] == ["Computer1", "Human", "Computer2"]

    def test_custom_names(self):
        players = build_players(["human", "computer"], names=["Ann", "Hal"])
        assert [name for name, _ in players] == ["Ann", "Hal"]

    def test_names_must_match(self):
        with pytest.raises(ValueError):
            build_players(["human", "computer"], names=["Ann"])

    def test_prompts_reach_humans(self):
        prompts = ScriptedPrompts()
        players = build_players(["human", "computer"], prompts=prompts)
        assert players[0][1].prompts is prompts

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            _make_strategy("robot")


# ═══════════════════════════════════════════════════════════════════════════════
# 11. CLI PARSING
# ═══════════════════════════════════════════════════════════════════════════════

class TestCLIParsing:

    def test_defaults(self):
        args = parse_args([])
        assert args.ui == "console"
        assert args.players == ["human", "computer"]
        assert args.names is None
        assert args.load is None
        assert args.save_path is None
        assert args.manual_rolls is None
        assert args.speed is None
        assert args.log_level is None

    def test_options(self):
        args = parse_args(["--ui", "tui", "--players", "computer", "computer", "human",
                           "--names", "A", "B", "C", "--manual-rolls", "--speed", "fast",
                           "--load", "game.txt", "--log-level", "DEBUG"])
        assert args.ui == "tui"
        assert args.players == ["computer", "computer", "human"]
        assert args.names == ["A", "B", "C"]
        assert args.manual_rolls is True
        assert args.speed == "fast"
        assert args.load == "game.txt"
        assert args.log_level == "DEBUG"

    def test_one_player_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--players", "human"])

    def test_five_players_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--players"] + ["computer"] * 5)

    def test_names_mismatch_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--names", "Solo"])

    def test_unknown_player_type_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--players", "human", "robot"])
