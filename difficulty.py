import math
import logging
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

# --- Tier tuning ---

EASY_MAX_TILES = 4         # Easy opponents avoid long plays and bingos
EASY_POOL_FRACTION = 0.4   # ...and pick from the lowest-scoring 40%


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _tier(difficulty):
    try:
        return Difficulty(difficulty)
    except ValueError:
        return None


def select_move(candidates, difficulty, rng=None):
    """
    Picks one candidate according to the difficulty tier.

    Candidates are ranked by score, ascending (stable, so equal scores keep
    the finder's order). Returns None when there is nothing to choose from.
    """
    if not candidates:
        return None

    rng = rng if rng is not None else np.random.default_rng()
    ordered = sorted(candidates, key=lambda candidate: candidate.score)
    tier = _tier(difficulty)

    if tier is Difficulty.EASY:
        simple = [c for c in ordered if len(c.placements) <= EASY_MAX_TILES]
        pool = simple or ordered
        cutoff = max(1, math.ceil(len(pool) * EASY_POOL_FRACTION))
        return pool[int(rng.integers(cutoff))]

    if tier is Difficulty.MEDIUM:
        pool = ordered[len(ordered) // 2:]
        weights = np.array([c.score for c in pool], dtype=np.float64)
        total = weights.sum()
        if total <= 0:
            return pool[int(rng.integers(len(pool)))]
        return pool[int(rng.choice(len(pool), p=weights / total))]

    if tier is Difficulty.HARD:
        return ordered[-1]

    logger.debug("Unknown difficulty %r, choosing uniformly", difficulty)
    return ordered[int(rng.integers(len(ordered)))]
