import random
from collections import Counter
from dataclasses import dataclass, replace
from typing import Optional

# --- Constants ---

BLANK = ''  # Letter carried by a blank tile until it is designated

# Standard tile distribution and values: letter -> (count, points)
TILE_DISTRIBUTION = {
    'A': (9, 1), 'B': (2, 3), 'C': (2, 3), 'D': (4, 2), 'E': (12, 1),
    'F': (2, 4), 'G': (3, 2), 'H': (2, 4), 'I': (9, 1), 'J': (1, 8),
    'K': (1, 5), 'L': (4, 1), 'M': (2, 3), 'N': (6, 1), 'O': (8, 1),
    'P': (2, 3), 'Q': (1, 10), 'R': (6, 1), 'S': (4, 1), 'T': (6, 1),
    'U': (4, 1), 'V': (2, 4), 'W': (2, 4), 'X': (1, 8), 'Y': (2, 4),
    'Z': (1, 10), BLANK: (2, 0)
}

LETTER_POINTS = {letter: points for letter, (_, points) in TILE_DISTRIBUTION.items()}
TOTAL_TILES = sum(count for count, _ in TILE_DISTRIBUTION.values())
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class Tile:
    """A single letter tile. Blanks carry an empty letter and zero points."""
    id: str
    letter: str
    points: int
    is_blank: bool = False
    designated_letter: Optional[str] = None

    @property
    def face(self):
        """The letter this tile spells on the board."""
        if self.is_blank:
            return self.designated_letter or ''
        return self.letter

    def designate(self, letter):
        """Returns a copy of a blank tile standing for `letter`."""
        return replace(self, designated_letter=letter.upper())

    def cleared(self):
        """Returns a blank back to its undesignated form."""
        if self.is_blank and self.designated_letter is not None:
            return replace(self, designated_letter=None)
        return self

    def to_document(self):
        return {
            'id': self.id,
            'letter': self.letter,
            'points': self.points,
            'is_blank': self.is_blank,
            'designated_letter': self.designated_letter,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            id=doc['id'],
            letter=doc['letter'],
            points=doc['points'],
            is_blank=doc['is_blank'],
            designated_letter=doc.get('designated_letter'),
        )

    def __repr__(self):
        label = f"?{self.designated_letter or ''}" if self.is_blank else self.letter
        return f"{label}({self.points})"


class TileIdGenerator:
    """Sequential tile ids, scoped to one game session."""
    def __init__(self, prefix="tile"):
        self.prefix = prefix
        self._next = 0

    def next_id(self):
        tile_id = f"{self.prefix}-{self._next}"
        self._next += 1
        return tile_id

    def reset(self):
        self._next = 0


def make_tile(letter, id_generator):
    """Creates a fresh tile for `letter` (BLANK for a blank)."""
    return Tile(
        id=id_generator.next_id(),
        letter=letter,
        points=LETTER_POINTS[letter],
        is_blank=(letter == BLANK),
    )


def shuffle_tiles(tiles, rng=None):
    """Returns a uniformly shuffled copy of `tiles` as a tuple."""
    shuffled = list(tiles)
    (rng or random).shuffle(shuffled)
    return tuple(shuffled)


def create_bag(id_generator=None, rng=None):
    """Creates the full set of 100 tiles with fresh ids, shuffled."""
    id_generator = id_generator or TileIdGenerator()
    tiles = []
    for letter, (count, _) in TILE_DISTRIBUTION.items():
        for _ in range(count):
            tiles.append(make_tile(letter, id_generator))
    return shuffle_tiles(tiles, rng)


def draw_tiles(bag, count):
    """Draws up to `count` tiles from the front of the bag.

    Returns (drawn, remaining). Asking for more tiles than the bag holds
    simply drains it.
    """
    count = max(0, count)
    return tuple(bag[:count]), tuple(bag[count:])


def return_tiles(bag, tiles, rng=None):
    """Returns tiles to the bag and reshuffles the whole bag."""
    return shuffle_tiles(tuple(bag) + tuple(tile.cleared() for tile in tiles), rng)


def rack_value(tiles):
    """Face value of a group of tiles, as used for end-of-game deductions."""
    return sum(tile.points for tile in tiles)


def letter_counts(tiles):
    """Counts tiles by their printed letter (blanks counted under BLANK)."""
    return Counter(BLANK if tile.is_blank else tile.letter for tile in tiles)


def starting_counts():
    return Counter({letter: count for letter, (count, _) in TILE_DISTRIBUTION.items()})
