#!/usr/bin/env python3
"""
Yahtzee Duel AI Benchmark — Play N computer-only games and print score distributions.

Usage: python ai_benchmark.py [--games N] [--players N]
       python ai_benchmark.py --verbose --games 50
       python ai_benchmark.py --csv --games 200
       python ai_benchmark.py --solo --games 100
"""
import argparse
import random
import statistics
import time

from ai import ComputerStrategy, play_turn
from game_coordinator import GameCoordinator
from game_engine import Scorecard


def play_computer_game(num_players):
    """Play one game between computers. Returns the finished coordinator."""
    players = [(f"Computer{i + 1}", ComputerStrategy()) for i in range(num_players)]
    coord = GameCoordinator(players)
    while not coord.game_over:
        coord.play_round()
    return coord


def play_solo_card(strategy):
    """Fill a whole scorecard alone with one strategy. Returns (total, turns)."""
    scorecard = Scorecard()
    turns = 0
    while not scorecard.is_full():
        turns += 1
        turn = play_turn(scorecard, strategy)
        scorecard = scorecard.add_best_entry(turns, "Solo", turn.final_dice)
    return scorecard.get_player_score("Solo"), turns


def benchmark_games(num_players, num_games, start_seed=0):
    """Run num_games and collect per-seat scores, wins, draws and rounds."""
    scores = {f"Computer{i + 1}": [] for i in range(num_players)}
    wins = {name: 0 for name in scores}
    draws = 0
    rounds = []
    t0 = time.perf_counter()
    for seed in range(start_seed, start_seed + num_games):
        random.seed(seed)
        coord = play_computer_game(num_players)
        for name, points in coord.scores.items():
            scores[name].append(points)
        if coord.is_draw:
            draws += 1
        else:
            wins[coord.winner] += 1
        rounds.append(coord.round_number)
    elapsed = time.perf_counter() - t0
    return scores, wins, draws, rounds, elapsed


def benchmark_solo(num_games, start_seed=0):
    totals = []
    turns = []
    t0 = time.perf_counter()
    strategy = ComputerStrategy()
    for seed in range(start_seed, start_seed + num_games):
        random.seed(seed)
        total, used = play_solo_card(strategy)
        totals.append(total)
        turns.append(used)
    return totals, turns, time.perf_counter() - t0


def summarize(scores):
    """(avg, stdev, median, min, max, p25, p75) for a list of scores."""
    avg = sum(scores) / len(scores)
    stdev = statistics.stdev(scores) if len(scores) >= 2 else 0.0
    median = statistics.median(scores)
    sorted_scores = sorted(scores)
    n = len(sorted_scores)
    return (avg, stdev, median, sorted_scores[0], sorted_scores[-1],
            sorted_scores[n // 4], sorted_scores[(3 * n) // 4])


def print_results(name, scores, wins=None, verbose=False):
    """Print formatted benchmark results for one seat."""
    avg, stdev, median, lo, hi, p25, p75 = summarize(scores)
    win_info = f"  wins={wins:4d}" if wins is not None else ""
    print(f"  {name:15s}  avg={avg:6.1f}  min={lo:4d}  max={hi:4d}{win_info}")
    if verbose:
        print(f"  {'':15s}  stdev={stdev:5.1f}  median={median:5.0f}  "
              f"p25={p25:4d}  p75={p75:4d}")


def print_csv_header():
    """Print CSV header row."""
    print("seat,games,avg,stdev,median,min,max,p25,p75,wins")


def print_csv_row(name, scores, wins):
    """Print one CSV data row."""
    avg, stdev, median, lo, hi, p25, p75 = summarize(scores)
    print(f"{name},{len(scores)},{avg:.1f},{stdev:.1f},{median:.0f},"
          f"{lo},{hi},{p25},{p75},{wins}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Yahtzee Duel AI Benchmark")
    parser.add_argument("--games", type=int, default=100,
                        help="Number of games to play (default: 100)")
    parser.add_argument("--players", type=int, default=2, choices=[2, 3, 4],
                        help="Computers per game (default: 2)")
    parser.add_argument("--solo", action="store_true",
                        help="Fill the whole card with a single computer")
    parser.add_argument("--verbose", action="store_true",
                        help="Show extra statistics (stdev, median, percentiles)")
    parser.add_argument("--csv", action="store_true",
                        help="Output results as CSV")
    args = parser.parse_args(argv)

    if args.solo:
        totals, turns, elapsed = benchmark_solo(args.games)
        if args.csv:
            print_csv_header()
            print_csv_row("Solo", totals, "")
        else:
            print(f"Yahtzee Duel solo benchmark — {args.games} cards")
            print("=" * 72)
            print_results("Solo", totals, verbose=args.verbose)
            print(f"  {'':15s}  turns/card={sum(turns) / len(turns):.1f}  ({elapsed:.2f}s)")
            print("=" * 72)
        return

    scores, wins, draws, rounds, elapsed = benchmark_games(args.players, args.games)
    if args.csv:
        print_csv_header()
        for name, seat_scores in scores.items():
            print_csv_row(name, seat_scores, wins[name])
        return

    print(f"Yahtzee Duel AI Benchmark — {args.games} games, {args.players} computers")
    print("=" * 72)
    for name, seat_scores in scores.items():
        print_results(name, seat_scores, wins[name], verbose=args.verbose)
    per_game = elapsed / args.games * 1000
    print(f"  draws={draws}  rounds/game={sum(rounds) / len(rounds):.1f}  "
          f"({elapsed:.2f}s, {per_game:.1f}ms/game)")
    print("=" * 72)


if __name__ == "__main__":
    main()
