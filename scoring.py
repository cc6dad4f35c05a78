from dataclasses import dataclass
from typing import Tuple

from board import Position, Premium, RACK_SIZE

# --- Constants ---

BINGO_BONUS = 50

LETTER_MULTIPLIERS = {
    Premium.DOUBLE_LETTER: 2,
    Premium.TRIPLE_LETTER: 3,
}

WORD_MULTIPLIERS = {
    Premium.DOUBLE_WORD: 2,
    Premium.CENTER_STAR: 2,
    Premium.TRIPLE_WORD: 3,
}


@dataclass(frozen=True)
class FormedWord:
    word: str
    positions: Tuple[Position, ...]
    score: int = 0

    def to_document(self):
        return {
            'word': self.word,
            'positions': [{'row': r, 'col': c} for r, c in self.positions],
            'score': self.score,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            word=doc['word'],
            positions=tuple(Position(p['row'], p['col']) for p in doc['positions']),
            score=doc['score'],
        )


def tile_points(tile):
    """Blanks never score, whatever letter they stand for."""
    if tile is None or tile.is_blank:
        return 0
    return tile.points


def score_word(board, positions, new_positions):
    """Scores a single word based on its coordinates.

    `board` already holds this turn's tiles; premiums only count under the
    positions in `new_positions`.
    """
    letter_score = 0
    word_multiplier = 1

    for pos in positions:
        tile_value = tile_points(board.tile_at(pos))

        # Apply bonuses only to newly placed tiles
        if pos in new_positions:
            premium = board.premium_at(pos)
            tile_value *= LETTER_MULTIPLIERS.get(premium, 1)
            word_multiplier *= WORD_MULTIPLIERS.get(premium, 1)

        letter_score += tile_value

    return letter_score * word_multiplier


def score_move(board, words, placements):
    """Calculates the total score for a move from the words it formed.

    Returns (scored_words, total) where `scored_words` repeats the input
    words with their individual scores filled in.
    """
    new_positions = {Position(*placed.position) for placed in placements}
    scored_words = []
    total_score = 0

    for formed in words:
        word_score = score_word(board, formed.positions, new_positions)
        scored_words.append(FormedWord(formed.word, tuple(formed.positions), word_score))
        total_score += word_score

    # Add bingo bonus if all 7 tiles were used
    if len(new_positions) == RACK_SIZE:
        total_score += BINGO_BONUS

    return tuple(scored_words), total_score
