import logging
from dataclasses import dataclass
from typing import Tuple

from board import BOARD_SIZE, CENTER_POSITION, PlacedTile, Position, in_bounds
from move_validator import ACROSS, DOWN, find_formed_words
from scoring import FormedWord, score_move
from tiles import ALPHABET

logger = logging.getLogger(__name__)

ORIENTATIONS = (ACROSS, DOWN)


@dataclass(frozen=True)
class Candidate:
    """A legal move for a rack, scored exactly as a committed move would be."""
    placements: Tuple[PlacedTile, ...]
    score: int
    words: Tuple[FormedWord, ...]

    @property
    def tiles_used(self):
        return len(self.placements)

    @property
    def word_strings(self):
        return [formed.word for formed in self.words]


class MoveFinder:
    """
    Anchor-based move generator for one (board, rack, dictionary) triple.

    Every run is built left to right from its true start, so a dictionary
    exposing `is_prefix` lets the search drop dead branches early. Rack
    availability is tracked as a bitmask over rack slots.
    """

    def __init__(self, board, rack, dictionary):
        self.board = board
        self.rack = tuple(rack)
        self.dictionary = dictionary
        self._is_prefix = getattr(dictionary, 'is_prefix', None)
        self.full_mask = (1 << len(self.rack)) - 1
        self.cross_checks = {}
        self.seen = set()
        self.moves = []
        self.boundaries = 0

    def find_moves(self):
        if not self.rack:
            return []

        if self.board.is_vacant():
            anchors = [CENTER_POSITION]
        else:
            self._compute_cross_checks()
            anchors = self._find_anchors()

        for anchor in anchors:
            for direction in ORIENTATIONS:
                self._gen(anchor, direction)

        logger.debug("Found %d moves from %d anchors (%d boundaries checked)",
                     len(self.moves), len(anchors), self.boundaries)
        return self.moves

    # --- Board analysis ---

    def _run_letters(self, start, step):
        """Letters on consecutive occupied squares from `start`, walking by `step`."""
        letters = []
        r, c = start
        while in_bounds((r, c)) and not self.board.is_empty((r, c)):
            letters.append(self.board.tile_at((r, c)).face)
            r, c = r + step[0], c + step[1]
        return "".join(letters)

    def _compute_cross_checks(self):
        """Letters allowed in each empty square, per placement direction."""
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                if not self.board.is_empty((row, col)):
                    continue
                for direction in ORIENTATIONS:
                    dr, dc = DOWN if direction == ACROSS else ACROSS
                    before = self._run_letters((row - dr, col - dc), (-dr, -dc))[::-1]
                    after = self._run_letters((row + dr, col + dc), (dr, dc))
                    if not before and not after:
                        continue  # No perpendicular word, anything goes
                    self.cross_checks[(direction, (row, col))] = frozenset(
                        letter for letter in ALPHABET if before + letter + after in self.dictionary
                    )

    def _allowed(self, direction, pos):
        return self.cross_checks.get((direction, (pos[0], pos[1])))

    def _find_anchors(self):
        """Empty squares next to at least one tile, in row-major order."""
        anchors = []
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                if self.board.is_empty((row, col)) and self.board.has_neighbor((row, col)):
                    anchors.append(Position(row, col))
        return anchors

    def _left_limit(self, anchor, direction):
        """How many rack tiles may go before the anchor along `direction`."""
        dr, dc = direction
        r, c = anchor[0] - dr, anchor[1] - dc
        run = 0
        while in_bounds((r, c)) and self.board.is_empty((r, c)):
            run += 1
            r, c = r - dr, c - dc
        if run and in_bounds((r, c)):
            run -= 1  # Keep a gap before an earlier word
        return min(run, max(len(self.rack) - 1, 0))

    # --- Search ---

    def _gen(self, anchor, direction):
        dr, dc = direction
        for left in range(self._left_limit(anchor, direction) + 1):
            start = (anchor[0] - dr * left, anchor[1] - dc * left)
            prefix = ""
            if left == 0:
                prefix = self._run_letters((start[0] - dr, start[1] - dc), (-dr, -dc))[::-1]
            self._extend_forward(start, anchor, direction, prefix, (), self.full_mask)

    def _passed(self, pos, anchor, direction):
        axis = 1 if direction == ACROSS else 0
        return pos[axis] > anchor[axis]

    def _extend_forward(self, pos, anchor, direction, partial, placed, available):
        dr, dc = direction

        if not in_bounds(pos):
            if placed and self._passed(pos, anchor, direction):
                self._try_add_move(partial, placed, direction)
            return

        if not self.board.is_empty(pos):
            letter = self.board.tile_at(pos).face
            if self._can_continue(partial + letter):
                self._extend_forward((pos[0] + dr, pos[1] + dc), anchor, direction,
                                     partial + letter, placed, available)
            return

        # An empty square ends the current run
        if placed and self._passed(pos, anchor, direction):
            self._try_add_move(partial, placed, direction)

        if not available:
            return

        allowed = self._allowed(direction, pos)
        tried = set()
        for slot, tile in enumerate(self.rack):
            if not available & (1 << slot):
                continue
            key = (tile.letter, tile.is_blank, tile.designated_letter)
            if key in tried:
                continue
            tried.add(key)
            remaining = available & ~(1 << slot)

            for letter, placed_tile in self._tile_options(tile, allowed):
                if not self._can_continue(partial + letter):
                    continue
                self._extend_forward(
                    (pos[0] + dr, pos[1] + dc), anchor, direction, partial + letter,
                    placed + (PlacedTile(placed_tile, Position(*pos)),), remaining,
                )

    def _tile_options(self, tile, allowed):
        """(letter, tile) pairs a rack tile can become on a square."""
        if tile.is_blank and not tile.designated_letter:
            letters = sorted(allowed) if allowed is not None else ALPHABET
            return [(letter, tile.designate(letter)) for letter in letters]
        letter = tile.face
        if allowed is not None and letter not in allowed:
            return []
        return [(letter, tile)]

    def _can_continue(self, fragment):
        return self._is_prefix is None or self._is_prefix(fragment)

    def _try_add_move(self, word, placed, direction):
        self.boundaries += 1
        if len(word) < 2 or word not in self.dictionary:
            return

        signature = tuple(sorted(
            ((p.position.row, p.position.col), p.tile.face, p.tile.is_blank) for p in placed
        ))
        if signature in self.seen:
            return
        self.seen.add(signature)

        placements = tuple(sorted(placed, key=lambda p: p.position))
        board_after = self.board.place_tiles(placements)
        move_direction = direction if len(placements) > 1 else None
        words = find_formed_words(board_after, placements, move_direction)
        if not words or any(formed.word not in self.dictionary for formed in words):
            return

        scored_words, total = score_move(board_after, words, placements)
        self.moves.append(Candidate(placements, total, scored_words))


def find_moves(board, rack, dictionary):
    """Lists every distinct legal move the rack can make on the board."""
    return MoveFinder(board, rack, dictionary).find_moves()
