"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

BOARD_SIZE = 15


@dataclass(frozen=True, order=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_notation(cls, sq: str) -> Square:
        """'7,7' gets converted to Square(7, 7). Coordinates are 0-based."""
        row, col = sq.split(",")
        return cls(int(row), int(col))

    def to_notation(self) -> str:
        return f"{self.row},{self.col}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_SIZE) and (0 <= self.col < BOARD_SIZE)

    def neighbours(self) -> list[Square]:
        """The (up to) four orthogonally adjacent squares that lie on the board."""
        candidates = [
            Square(self.row - 1, self.col),
            Square(self.row + 1, self.col),
            Square(self.row, self.col - 1),
            Square(self.row, self.col + 1),
        ]
        return [square for square in candidates if square.is_within_bounds()]

    def shifted(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)


CENTER_SQUARE = Square(7, 7)
