"""The Game board holds the locked letters and the (fixed) premium layout."""

from dataclasses import dataclass
from typing import Optional, Self

from src.core.shared_types import TileType
from src.scrabble.premiums import cell_type
from src.scrabble.square import BOARD_SIZE, Square

EMPTY_CELL = "."


@dataclass
class BoardCell:
    type: TileType
    letter: Optional[str] = None
    locked: bool = False


@dataclass
class Board:
    cells: dict[Square, BoardCell]

    @classmethod
    def create(cls) -> Self:
        """Fresh board: no letters, premium squares according to the standard layout."""
        return cls(
            {
                Square(row, col): BoardCell(cell_type(Square(row, col)))
                for row in range(BOARD_SIZE)
                for col in range(BOARD_SIZE)
            }
        )

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """Construct a board from its stored notation.

        Rows are separated by slashes, top row first. Every row has exactly 15 characters:
        '.' for an empty cell, an uppercase letter for a locked tile, ex. the row
        '.......CAT.....' has C, A and T locked on columns 7, 8, and 9.
        """
        rows = notation.split("/")
        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise ValueError(
                f"Board notation must have {BOARD_SIZE} rows of {BOARD_SIZE} characters."
            )
        board = cls.create()
        for row_idx, row in enumerate(rows):
            for col_idx, character in enumerate(row):
                if character == EMPTY_CELL:
                    continue
                if not ("A" <= character <= "Z"):
                    raise ValueError(f"Invalid board character: {character!r}")
                board.lock_letter(Square(row_idx, col_idx), character)
        return board

    def to_notation(self) -> str:
        return "/".join(self._row_to_notation(row) for row in range(BOARD_SIZE))

    def _row_to_notation(self, row: int) -> str:
        return "".join(
            self.cell(Square(row, col)).letter or EMPTY_CELL
            for col in range(BOARD_SIZE)
        )

    def cell(self, square: Square) -> BoardCell:
        return self.cells[square]

    def letter(self, square: Square) -> Optional[str]:
        return self.cells[square].letter

    def is_locked(self, square: Square) -> bool:
        """Squares off the board are never locked (convenient when walking past the edges)."""
        return square.is_within_bounds() and self.cells[square].locked

    def is_empty(self) -> bool:
        return not any(cell.locked for cell in self.cells.values())

    def locked_squares(self) -> list[Square]:
        return [square for square, cell in self.cells.items() if cell.locked]

    def locked_count(self) -> int:
        return len(self.locked_squares())

    def lock_letter(self, square: Square, letter: str) -> None:
        """Permanently place a letter. A locked cell never changes its letter."""
        cell = self.cells[square]
        if cell.locked:
            raise ValueError(f"Square {square.to_notation()} is already locked.")
        cell.letter = letter
        cell.locked = True
