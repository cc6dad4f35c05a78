from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Tuple

from board import Board, PlacedTile, Position, in_bounds
from move_validator import validate_move
from scoring import FormedWord, score_move
from scrabble_engine import commit_move
from tiles import ALPHABET, Tile, shuffle_tiles


class Preview(NamedTuple):
    valid: bool
    total_score: int
    words: Tuple[FormedWord, ...]


@dataclass(frozen=True)
class TurnDraft:
    """
    Tiles a player has put on the board but not yet committed.

    `rack` is the full rack the turn started with; the tiles still in hand
    are derived from it, so recalling everything restores the rack exactly.
    Edits that make no sense (a tile not in hand, an occupied square) leave
    the draft unchanged.
    """
    player_id: str
    base_board: Board
    rack: Tuple[Tile, ...]
    placements: Tuple[PlacedTile, ...] = ()

    @classmethod
    def begin(cls, state):
        player = state.current_player
        return cls(player.id, state.board, player.rack)

    # --- Derived views ---

    @property
    def board(self):
        return self.base_board.place_tiles(self.placements)

    @property
    def hand(self):
        placed_ids = {p.tile.id for p in self.placements}
        return tuple(t for t in self.rack if t.id not in placed_ids)

    def _placement_at(self, pos):
        for i, placed in enumerate(self.placements):
            if placed.position == tuple(pos):
                return i
        return None

    def _is_free(self, pos):
        return in_bounds(pos) and self.base_board.is_empty(pos) and self._placement_at(pos) is None

    # --- Edits ---

    def place(self, tile_id, pos):
        tile = next((t for t in self.hand if t.id == tile_id), None)
        if tile is None or not self._is_free(pos):
            return self
        return replace(self, placements=self.placements + (PlacedTile(tile, Position(*pos)),))

    def remove(self, pos):
        """Takes a tile placed this turn back into the hand."""
        index = self._placement_at(pos)
        if index is None:
            return self
        return replace(self, placements=self.placements[:index] + self.placements[index + 1:])

    def move(self, src, dst):
        index = self._placement_at(src)
        if index is None or not self._is_free(dst):
            return self
        placements = list(self.placements)
        placements[index] = PlacedTile(placements[index].tile, Position(*dst))
        return replace(self, placements=tuple(placements))

    def recall(self):
        return replace(self, placements=())

    def set_blank_letter(self, tile_id, letter):
        """Gives a blank its letter. A blank that already has one keeps it."""
        letter = (letter or "").upper()
        if len(letter) != 1 or letter not in ALPHABET:
            return self
        target = next((t for t in self.rack if t.id == tile_id), None)
        if target is None or not target.is_blank or target.designated_letter:
            return self

        designated = target.designate(letter)
        rack = tuple(designated if t.id == tile_id else t for t in self.rack)
        placements = tuple(
            PlacedTile(designated, p.position) if p.tile.id == tile_id else p
            for p in self.placements
        )
        return replace(self, rack=rack, placements=placements)

    def shuffle_rack(self, rng=None):
        return replace(self, rack=shuffle_tiles(self.rack, rng))

    # --- Scoring ---

    def preview(self, dictionary) -> Optional[Preview]:
        """Live score for the pending tiles, or None while it cannot be computed."""
        if not self.placements:
            return None
        if any(p.tile.is_blank and not p.tile.designated_letter for p in self.placements):
            return None

        result = validate_move(self.base_board, self.placements, dictionary)
        if not result.valid:
            return Preview(False, 0, ())
        words, total = score_move(self.board, result.words, self.placements)
        return Preview(True, total, words)

    def commit(self, state, dictionary, timestamp=None):
        return commit_move(state, self.player_id, self.placements, dictionary, timestamp)
