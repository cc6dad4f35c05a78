from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from tiles import Tile

# --- Constants ---

BOARD_SIZE = 15
CENTER = 7
RACK_SIZE = 7


class Position(NamedTuple):
    row: int
    col: int


class Premium(str, Enum):
    NONE = "none"
    DOUBLE_LETTER = "dl"
    TRIPLE_LETTER = "tl"
    DOUBLE_WORD = "dw"
    TRIPLE_WORD = "tw"
    CENTER_STAR = "star"


CENTER_POSITION = Position(CENTER, CENTER)

# Bonus square layout (Triple Word, Double Word, Triple Letter, Double Letter)
PREMIUM_SQUARES = {
    (0, 0): Premium.TRIPLE_WORD, (0, 7): Premium.TRIPLE_WORD, (0, 14): Premium.TRIPLE_WORD,
    (7, 0): Premium.TRIPLE_WORD, (7, 14): Premium.TRIPLE_WORD,
    (14, 0): Premium.TRIPLE_WORD, (14, 7): Premium.TRIPLE_WORD, (14, 14): Premium.TRIPLE_WORD,

    (1, 1): Premium.DOUBLE_WORD, (2, 2): Premium.DOUBLE_WORD, (3, 3): Premium.DOUBLE_WORD, (4, 4): Premium.DOUBLE_WORD,
    (1, 13): Premium.DOUBLE_WORD, (2, 12): Premium.DOUBLE_WORD, (3, 11): Premium.DOUBLE_WORD, (4, 10): Premium.DOUBLE_WORD,
    (10, 4): Premium.DOUBLE_WORD, (11, 3): Premium.DOUBLE_WORD, (12, 2): Premium.DOUBLE_WORD, (13, 1): Premium.DOUBLE_WORD,
    (10, 10): Premium.DOUBLE_WORD, (11, 11): Premium.DOUBLE_WORD, (12, 12): Premium.DOUBLE_WORD, (13, 13): Premium.DOUBLE_WORD,
    (7, 7): Premium.CENTER_STAR,  # Scores as a double word

    (1, 5): Premium.TRIPLE_LETTER, (1, 9): Premium.TRIPLE_LETTER,
    (5, 1): Premium.TRIPLE_LETTER, (5, 5): Premium.TRIPLE_LETTER, (5, 9): Premium.TRIPLE_LETTER, (5, 13): Premium.TRIPLE_LETTER,
    (9, 1): Premium.TRIPLE_LETTER, (9, 5): Premium.TRIPLE_LETTER, (9, 9): Premium.TRIPLE_LETTER, (9, 13): Premium.TRIPLE_LETTER,
    (13, 5): Premium.TRIPLE_LETTER, (13, 9): Premium.TRIPLE_LETTER,

    (0, 3): Premium.DOUBLE_LETTER, (0, 11): Premium.DOUBLE_LETTER,
    (2, 6): Premium.DOUBLE_LETTER, (2, 8): Premium.DOUBLE_LETTER,
    (3, 0): Premium.DOUBLE_LETTER, (3, 7): Premium.DOUBLE_LETTER, (3, 14): Premium.DOUBLE_LETTER,
    (6, 2): Premium.DOUBLE_LETTER, (6, 6): Premium.DOUBLE_LETTER, (6, 8): Premium.DOUBLE_LETTER, (6, 12): Premium.DOUBLE_LETTER,
    (7, 3): Premium.DOUBLE_LETTER, (7, 11): Premium.DOUBLE_LETTER,
    (8, 2): Premium.DOUBLE_LETTER, (8, 6): Premium.DOUBLE_LETTER, (8, 8): Premium.DOUBLE_LETTER, (8, 12): Premium.DOUBLE_LETTER,
    (11, 0): Premium.DOUBLE_LETTER, (11, 7): Premium.DOUBLE_LETTER, (11, 14): Premium.DOUBLE_LETTER,
    (12, 6): Premium.DOUBLE_LETTER, (12, 8): Premium.DOUBLE_LETTER,
    (14, 3): Premium.DOUBLE_LETTER, (14, 11): Premium.DOUBLE_LETTER
}

PREMIUM_LABELS = {
    Premium.DOUBLE_LETTER: "DL",
    Premium.TRIPLE_LETTER: "TL",
    Premium.DOUBLE_WORD: "DW",
    Premium.TRIPLE_WORD: "TW",
    Premium.CENTER_STAR: "*",
}


@dataclass(frozen=True)
class PlacedTile:
    """A tile headed for (or already on) a board position."""
    tile: Tile
    position: Position

    def to_document(self):
        return {
            'tile': self.tile.to_document(),
            'position': {'row': self.position.row, 'col': self.position.col},
        }

    @classmethod
    def from_document(cls, doc):
        pos = doc['position']
        return cls(Tile.from_document(doc['tile']), Position(pos['row'], pos['col']))


@dataclass(frozen=True)
class BoardCell:
    position: Position
    tile: Optional[Tile]
    premium: Premium


def in_bounds(pos):
    """Checks whether a position lies on the 15x15 grid."""
    row, col = pos
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


@dataclass(frozen=True)
class Board:
    """The 15x15 board. Every operation returns a new board."""
    grid: Tuple[Tuple[Optional[Tile], ...], ...]

    @classmethod
    def empty(cls):
        """Creates an empty board with the fixed premium layout."""
        return cls(tuple((None,) * BOARD_SIZE for _ in range(BOARD_SIZE)))

    def tile_at(self, pos):
        """Retrieves the tile at a given position."""
        return self.grid[pos[0]][pos[1]]

    def is_empty(self, pos):
        """Checks if a given square is empty."""
        return self.grid[pos[0]][pos[1]] is None

    def premium_at(self, pos):
        return PREMIUM_SQUARES.get((pos[0], pos[1]), Premium.NONE)

    def cell(self, pos):
        pos = Position(*pos)
        return BoardCell(pos, self.tile_at(pos), self.premium_at(pos))

    def rows(self):
        """The board as a matrix of cells."""
        return [
            [self.cell((row, col)) for col in range(BOARD_SIZE)]
            for row in range(BOARD_SIZE)
        ]

    def place_tiles(self, placements):
        """Places tiles on the board; callers check occupancy beforehand."""
        grid = [list(row) for row in self.grid]
        for placed in placements:
            row, col = placed.position
            grid[row][col] = placed.tile
        return Board(tuple(tuple(row) for row in grid))

    def remove_tiles(self, positions):
        """Clears the given positions, returning (board, removed_tiles)."""
        grid = [list(row) for row in self.grid]
        removed = []
        for row, col in positions:
            if grid[row][col] is not None:
                removed.append(grid[row][col])
                grid[row][col] = None
        return Board(tuple(tuple(row) for row in grid)), tuple(removed)

    def tile_count(self):
        return sum(1 for row in self.grid for tile in row if tile is not None)

    def is_vacant(self):
        return all(tile is None for row in self.grid for tile in row)

    def tiles(self):
        """All tiles on the board, row by row."""
        return tuple(tile for row in self.grid for tile in row if tile is not None)

    def has_neighbor(self, pos):
        """Checks whether any 4-adjacent square holds a tile."""
        row, col = pos
        for dr, dc in [(-1, 0), (1, 0), (0, -1), (0, 1)]:
            nr, nc = row + dr, col + dc
            if in_bounds((nr, nc)) and self.grid[nr][nc] is not None:
                return True
        return False

    def display(self):
        """Returns a simple text-based representation of the board."""
        lines = []
        for row in range(BOARD_SIZE):
            row_str = ""
            for col in range(BOARD_SIZE):
                tile = self.grid[row][col]
                if tile:
                    row_str += f" {tile.face or '?'} "
                else:
                    label = PREMIUM_LABELS.get(self.premium_at((row, col)))
                    if label:
                        row_str += f"{label:^3}"
                    else:
                        row_str += " . "
            lines.append(row_str)
        return "\n".join(lines)

    def to_document(self):
        return [
            [
                {
                    'row': cell.position.row,
                    'col': cell.position.col,
                    'premium': cell.premium.value,
                    'tile': cell.tile.to_document() if cell.tile else None,
                }
                for cell in row
            ]
            for row in self.rows()
        ]

    @classmethod
    def from_document(cls, doc):
        return cls(tuple(
            tuple(Tile.from_document(cell['tile']) if cell['tile'] else None for cell in row)
            for row in doc
        ))
