"""Defines the letter tiles: point values and how many of each letter are in a game."""

from dataclasses import dataclass
from typing import Self

# Standard English values
LETTER_SCORES: dict[str, int] = {
    **{c: 1 for c in "AEILNORSTU"},
    **{c: 2 for c in "DG"},
    **{c: 3 for c in "BCMP"},
    **{c: 4 for c in "FHVWY"},
    "K": 5,
    **{c: 8 for c in "JX"},
    **{c: 10 for c in "QZ"},
}

# No blanks in play
LETTER_DISTRIBUTION: dict[str, int] = {
    "A": 9, "B": 2, "C": 2, "D": 4, "E": 12, "F": 2, "G": 3,
    "H": 2, "I": 9, "J": 1, "K": 1, "L": 4, "M": 2, "N": 6,
    "O": 8, "P": 2, "Q": 1, "R": 6, "S": 4, "T": 6, "U": 4,
    "V": 2, "W": 2, "X": 1, "Y": 2, "Z": 1,
}  # fmt: skip

TOTAL_TILES = sum(LETTER_DISTRIBUTION.values())  # 98
RACK_SIZE = 7


@dataclass(frozen=True)
class Tile:
    letter: str
    points: int

    @classmethod
    def from_letter(cls, letter: str) -> Self:
        letter = letter.upper()
        if letter not in LETTER_SCORES:
            raise ValueError(f"Not a tile letter: {letter!r}")
        return cls(letter, LETTER_SCORES[letter])


def tiles_from_letters(letters: str) -> list[Tile]:
    """Decode the stored representation of a bag or rack (one letter per tile, in order)."""
    return [Tile.from_letter(letter) for letter in letters]


def letters_from_tiles(tiles: list[Tile]) -> str:
    return "".join(tile.letter for tile in tiles)


def tiles_value(tiles: list[Tile]) -> int:
    return sum(tile.points for tile in tiles)
