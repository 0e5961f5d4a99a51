"""Premium square layout. Needs to be imported by both the board and the scoring code."""

from src.core.shared_types import TileType
from src.scrabble.square import CENTER_SQUARE, Square


def _squares(*coordinates: tuple[int, int]) -> frozenset[Square]:
    return frozenset(Square(row, col) for row, col in coordinates)


TRIPLE_WORD = _squares(
    (0, 0), (0, 7), (0, 14),
    (7, 0), (7, 14),
    (14, 0), (14, 7), (14, 14),
)  # fmt: skip

DOUBLE_WORD = _squares(
    (1, 1), (2, 2), (3, 3), (4, 4),
    (1, 13), (2, 12), (3, 11), (4, 10),
    (13, 1), (12, 2), (11, 3), (10, 4),
    (13, 13), (12, 12), (11, 11), (10, 10),
)  # fmt: skip

TRIPLE_LETTER = _squares(
    (1, 5), (1, 9),
    (5, 1), (5, 5), (5, 9), (5, 13),
    (9, 1), (9, 5), (9, 9), (9, 13),
    (13, 5), (13, 9),
)  # fmt: skip

DOUBLE_LETTER = _squares(
    (0, 3), (0, 11),
    (2, 6), (2, 8),
    (3, 0), (3, 7), (3, 14),
    (6, 2), (6, 6), (6, 8), (6, 12),
    (7, 3), (7, 11),
    (8, 2), (8, 6), (8, 8), (8, 12),
    (11, 0), (11, 7), (11, 14),
    (12, 6), (12, 8),
    (14, 3), (14, 11),
)  # fmt: skip

LETTER_MULTIPLIERS: dict[TileType, int] = {
    TileType.DL: 2,
    TileType.TL: 3,
}

WORD_MULTIPLIERS: dict[TileType, int] = {
    TileType.DW: 2,
    TileType.CENTER: 2,
    TileType.TW: 3,
}


def cell_type(square: Square) -> TileType:
    """Fixed by position, the same for every board."""
    if square == CENTER_SQUARE:
        return TileType.CENTER
    if square in TRIPLE_WORD:
        return TileType.TW
    if square in DOUBLE_WORD:
        return TileType.DW
    if square in TRIPLE_LETTER:
        return TileType.TL
    if square in DOUBLE_LETTER:
        return TileType.DL
    return TileType.NORMAL
