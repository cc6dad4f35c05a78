from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from board import CENTER_POSITION, Position, in_bounds
from scoring import FormedWord

ACROSS = (0, 1)
DOWN = (1, 0)
SINGLE = None


class ValidationError(str, Enum):
    NO_TILES = "no_tiles"
    OUT_OF_BOUNDS = "out_of_bounds"
    OCCUPIED = "occupied"
    NOT_LINEAR = "not_linear"
    NOT_CONTIGUOUS = "not_contiguous"
    CENTER_NOT_COVERED = "center_not_covered"
    NOT_CONNECTED = "not_connected"
    NO_WORDS_FORMED = "no_words_formed"
    INVALID_WORD = "invalid_word"


ERROR_MESSAGES = {
    ValidationError.NO_TILES: "No tiles placed",
    ValidationError.OUT_OF_BOUNDS: "Tile placed out of bounds",
    ValidationError.OCCUPIED: "Cannot place tile on an occupied cell",
    ValidationError.NOT_LINEAR: "Tiles must be placed in a single row or column",
    ValidationError.NOT_CONTIGUOUS: "Tiles must form a contiguous line (no gaps)",
    ValidationError.CENTER_NOT_COVERED: "First word must cover the center square",
    ValidationError.NOT_CONNECTED: "New tiles must connect to existing tiles",
    ValidationError.NO_WORDS_FORMED: "No words formed",
    ValidationError.INVALID_WORD: "Word is not in the dictionary",
}


@dataclass(frozen=True)
class ValidationResult:
    words: Tuple[FormedWord, ...] = ()
    error: Optional[ValidationError] = None
    detail: str = ""

    @property
    def valid(self):
        return self.error is None


def _reject(error, detail=None):
    return ValidationResult(error=error, detail=detail or ERROR_MESSAGES[error])


# --- Word extraction ---

def word_positions(board, start, direction):
    """Finds the full run of occupied squares through `start` along `direction`."""
    dr, dc = direction
    r, c = start

    # Walk backward to find the start of the word
    while in_bounds((r - dr, c - dc)) and not board.is_empty((r - dr, c - dc)):
        r, c = r - dr, c - dc

    positions = []
    while in_bounds((r, c)) and not board.is_empty((r, c)):
        positions.append(Position(r, c))
        r, c = r + dr, c + dc
    return tuple(positions)


def word_string(board, positions):
    return "".join(board.tile_at(pos).face for pos in positions)


def placement_direction(placements):
    """Returns (direction, linear); a lone tile has no direction."""
    if len(placements) == 1:
        return SINGLE, True
    rows = {placed.position[0] for placed in placements}
    cols = {placed.position[1] for placed in placements}
    if len(rows) == 1:
        return ACROSS, True
    if len(cols) == 1:
        return DOWN, True
    return SINGLE, False


def find_formed_words(board, placements, direction):
    """Lists the main word and every cross word made by the placement.

    `board` already holds the new tiles. A single tile is checked along
    both axes; a span is only listed once.
    """
    main_direction = direction or ACROSS
    cross_direction = DOWN if main_direction == ACROSS else ACROSS

    spans = [word_positions(board, placements[0].position, main_direction)]
    for placed in placements:
        spans.append(word_positions(board, placed.position, cross_direction))

    words = []
    seen = set()
    for positions in spans:
        if len(positions) < 2 or positions in seen:
            continue
        seen.add(positions)
        words.append(FormedWord(word_string(board, positions), positions))
    return tuple(words)


# --- Validation pipeline ---

def _is_contiguous(board_after, placements, direction):
    if direction is SINGLE:
        return True
    axis = 1 if direction == ACROSS else 0
    fixed = placements[0].position[1 - axis]
    coords = [placed.position[axis] for placed in placements]
    for i in range(min(coords), max(coords) + 1):
        pos = (fixed, i) if direction == ACROSS else (i, fixed)
        if board_after.is_empty(pos):
            return False
    return True


def _touches_existing(board_before, placements):
    return any(board_before.has_neighbor(placed.position) for placed in placements)


def validate_move(board_before, placements, dictionary):
    """
    Checks a placement against the board as it stood before the turn.
    The checks run in a fixed order and the first failure is reported;
    on success the result lists every word the move forms.
    """
    placements = tuple(placements)
    if not placements:
        return _reject(ValidationError.NO_TILES)

    for placed in placements:
        if not in_bounds(placed.position):
            return _reject(ValidationError.OUT_OF_BOUNDS)

    targeted = set()
    for placed in placements:
        pos = Position(*placed.position)
        if not board_before.is_empty(pos) or pos in targeted:
            return _reject(ValidationError.OCCUPIED)
        targeted.add(pos)

    direction, linear = placement_direction(placements)
    if not linear:
        return _reject(ValidationError.NOT_LINEAR)

    board_after = board_before.place_tiles(placements)
    if not _is_contiguous(board_after, placements, direction):
        return _reject(ValidationError.NOT_CONTIGUOUS)

    if board_before.is_vacant():
        if CENTER_POSITION not in targeted:
            return _reject(ValidationError.CENTER_NOT_COVERED)
    elif not _touches_existing(board_before, placements):
        return _reject(ValidationError.NOT_CONNECTED)

    words = find_formed_words(board_after, placements, direction)
    if not words:
        return _reject(ValidationError.NO_WORDS_FORMED)

    for formed in words:
        if formed.word not in dictionary:
            return _reject(ValidationError.INVALID_WORD, f'"{formed.word}" is not a valid word')

    return ValidationResult(words=words)


