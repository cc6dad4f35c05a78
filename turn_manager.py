from dataclasses import replace
from typing import NamedTuple, Optional

from tiles import rack_value

# Consecutive scoreless turns (all players combined) before the game ends
MAX_SCORELESS_TURNS = 6


class EndCheck(NamedTuple):
    ended: bool
    reason: Optional[str] = None


def next_player_index(players, current_index):
    """Finds the next player in turn order, skipping eliminated players."""
    count = len(players)
    next_index = (current_index + 1) % count

    # Bounded by one cycle; if everyone is eliminated the last candidate stands
    attempts = 0
    while players[next_index].is_eliminated and attempts < count:
        next_index = (next_index + 1) % count
        attempts += 1

    return next_index


def active_players(players):
    return [player for player in players if not player.is_eliminated]


def _player_out_of_tiles(players):
    for player in players:
        if not player.is_eliminated and not player.rack:
            return player
    return None


def should_end(players, bag, scoreless_turns):
    """Checks the end-of-game conditions in order and names the first that holds."""
    if not bag:
        finisher = _player_out_of_tiles(players)
        if finisher is not None:
            return EndCheck(True, f"{finisher.name} used all their tiles!")

    if scoreless_turns >= MAX_SCORELESS_TURNS:
        return EndCheck(True, "Game ended: too many consecutive passes/zero-score turns")

    active = active_players(players)
    if len(active) <= 1 and len(players) > 1:
        survivor = active[0].name if active else "No one"
        return EndCheck(True, f"{survivor} wins by elimination!")

    return EndCheck(False)


def finalize_scores(players):
    """
    Applies the end-of-game adjustment. Every active player loses the value
    of the tiles left on their rack; a player who went out collects the
    total of everyone's deductions.
    """
    finisher = _player_out_of_tiles(players)
    remaining_points = 0
    adjusted = []

    for player in players:
        if player.is_eliminated:
            adjusted.append(player)
            continue
        value = rack_value(player.rack)
        remaining_points += value
        adjusted.append(replace(player, score=player.score - value))

    if finisher is not None:
        adjusted = [
            replace(player, score=player.score + remaining_points) if player.id == finisher.id else player
            for player in adjusted
        ]

    return tuple(adjusted)


def get_winner(players):
    """Highest score among active players; the earliest seat wins a tie."""
    best = None
    for player in active_players(players):
        if best is None or player.score > best.score:
            best = player
    return best
