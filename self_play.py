import os
import json
import time
import random
import logging
import argparse
import multiprocessing as mp

import numpy as np
from tqdm import tqdm

# --- Project Imports ---
from dictionary import WordList
from difficulty import Difficulty
from scrabble_engine import MoveKind, Seat, play_ai_turn, start_game
from tiles import TileIdGenerator, letter_counts, starting_counts
from turn_manager import get_winner

logger = logging.getLogger(__name__)

# Global variable to hold the word list for each worker
worker_dictionary = None

# --- Constants for Self-Play ---
MAX_GAME_TURNS = 200  # Cap on turns so a stuck game still finishes
NUM_WORKERS = 2
DEFAULT_DIFFICULTIES = (Difficulty.MEDIUM.value, Difficulty.HARD.value)


def init_worker(dictionary_path):
    """
    Initializer for each worker process in the pool.
    Loads a single word list for that worker.
    """
    global worker_dictionary
    logger.debug("Initializing worker process %d...", os.getpid())
    worker_dictionary = WordList.from_file(dictionary_path)


def check_conservation(state):
    """Raises if tiles were created or lost anywhere in the game."""
    tiles = list(state.bag) + list(state.board.tiles())
    for player in state.players:
        tiles.extend(player.rack)
    if letter_counts(tiles) != starting_counts():
        raise RuntimeError(f"Tile conservation violated after {len(state.history)} moves")


def run_self_play_game(seed, difficulties=DEFAULT_DIFFICULTIES, max_turns=MAX_GAME_TURNS, dictionary=None):
    """
    Plays one game between AI seats and returns a summary of it.
    Tile conservation is checked after every turn.
    """
    dictionary = dictionary if dictionary is not None else worker_dictionary
    if dictionary is None:
        raise ValueError("No dictionary loaded; call init_worker first.")

    seats = [
        Seat(name=f"AI-{i + 1} ({difficulty})", is_ai=True, ai_difficulty=difficulty)
        for i, difficulty in enumerate(difficulties)
    ]
    bag_rng = random.Random(seed)
    pick_rng = np.random.default_rng(seed)
    state = start_game(seats, bag_rng, TileIdGenerator())

    start_time = time.time()
    turns = 0
    while not state.is_over and turns < max_turns:
        outcome = play_ai_turn(state, dictionary, pick_rng, bag_rng)
        if not outcome.ok:
            raise RuntimeError(f"AI turn rejected: {outcome.detail}")
        state = outcome.state
        check_conservation(state)
        turns += 1

    plays = [m for m in state.history if m.kind is MoveKind.PLAY]
    winner = get_winner(state.players)
    logger.debug("Game %s finished after %d turns in %.1fs", seed, turns, time.time() - start_time)

    return {
        'seed': seed,
        'turns': turns,
        'finished': state.is_over,
        'end_reason': state.end_reason,
        'winner': winner.name if winner else None,
        'scores': {p.name: p.score for p in state.players},
        'plays': len(plays),
        'bingos': sum(1 for m in plays if len(m.placements) == 7),
        'best_move': max((m.score for m in plays), default=0),
        'tiles_left_in_bag': len(state.bag),
    }


def _play(args):
    return run_self_play_game(*args)


def run_games(dictionary_path, games, workers, difficulties, seed, max_turns):
    """Runs `games` self-play games, in a process pool when `workers` > 1."""
    jobs = [(seed + i, tuple(difficulties), max_turns) for i in range(games)]

    if workers <= 1:
        init_worker(dictionary_path)
        return [_play(job) for job in tqdm(jobs, desc="Self-play")]

    with mp.Pool(workers, initializer=init_worker, initargs=(dictionary_path,)) as pool:
        return list(tqdm(pool.imap_unordered(_play, jobs), total=len(jobs), desc="Self-play"))


def summarize(results):
    """Aggregate statistics over a batch of game summaries."""
    if not results:
        return {}
    scores_by_seat = {}
    for result in results:
        for name, score in result['scores'].items():
            scores_by_seat.setdefault(name, []).append(score)

    wins = {}
    for result in results:
        if result['winner']:
            wins[result['winner']] = wins.get(result['winner'], 0) + 1

    return {
        'games': len(results),
        'finished': sum(1 for r in results if r['finished']),
        'mean_turns': float(np.mean([r['turns'] for r in results])),
        'mean_scores': {name: float(np.mean(s)) for name, s in scores_by_seat.items()},
        'wins': wins,
        'bingos': int(np.sum([r['bingos'] for r in results])),
    }


def build_parser():
    parser = argparse.ArgumentParser(description="Play AI-vs-AI games and report statistics.")
    parser.add_argument("--dictionary", required=True, help="Word list, one word per line")
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument("--workers", type=int, default=NUM_WORKERS)
    parser.add_argument("--difficulty", nargs="+", default=list(DEFAULT_DIFFICULTIES),
                        choices=[d.value for d in Difficulty],
                        help="One difficulty per AI seat")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--max-turns", type=int, default=MAX_GAME_TURNS)
    parser.add_argument("--output", help="Write the game summaries to this JSON file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    logger.info("Running %d games with seats %s", args.games, args.difficulty)
    results = run_games(args.dictionary, args.games, args.workers, args.difficulty, args.seed, args.max_turns)
    results.sort(key=lambda r: r['seed'])
    stats = summarize(results)

    logger.info("Finished %d/%d games, mean length %.1f turns",
                stats.get('finished', 0), len(results), stats.get('mean_turns', 0.0))
    for name, mean_score in stats.get('mean_scores', {}).items():
        logger.info("  %s: mean score %.1f, wins %d", name, mean_score, stats['wins'].get(name, 0))

    if args.output:
        with open(args.output, 'w') as f:
            json.dump({'summary': stats, 'games': results}, f, indent=2)
        logger.info("Wrote results to %s", args.output)
    return stats


if __name__ == "__main__":
    main()
