"""
Placement rules, word extraction, and scoring.

Everything in here is a pure function of (placements, board, rack): nothing gets mutated.
Applying an accepted move (locking cells, refilling racks, switching turns) is done later by Game.

Checks are performed in a fixed order, so a placement breaking several rules is always refused with the same reason:

1. every placement lies on the board, no square used twice, no clash with a locked letter
2. at least two tiles newly placed
3. all new tiles in one row or one column
4. first move covers the center square / later moves touch a locked tile
5. no gaps between the outermost new tiles
6. every formed word has a valid shape (dictionary lookup is not done here)
7. the new letters are all on the player's rack
"""

from dataclasses import dataclass
from typing import Collection, Self

from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Direction, RejectionReason
from src.scrabble.board import Board
from src.scrabble.premiums import LETTER_MULTIPLIERS, WORD_MULTIPLIERS
from src.scrabble.rack import has_letters
from src.scrabble.square import CENTER_SQUARE, Square
from src.scrabble.tiles import LETTER_SCORES, RACK_SIZE, Tile

MIN_NEW_TILES = 2
MIN_WORD_LENGTH = 2
BINGO_BONUS = 50

# unit steps along a direction
STEPS: dict[Direction, tuple[int, int]] = {
    Direction.HORIZONTAL: (0, 1),
    Direction.VERTICAL: (1, 0),
}


@dataclass(frozen=True)
class Placement:
    """A single letter put on a square"""

    square: Square
    letter: str

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """'7,7,C': the letter C on row 7 / column 7"""
        row, col, letter = notation.split(",")
        return cls(Square(int(row), int(col)), letter.upper())

    def to_notation(self) -> str:
        return f"{self.square.to_notation()},{self.letter}"

    @property
    def points(self) -> int:
        return LETTER_SCORES.get(self.letter, 0)

    def to_tile(self) -> Tile:
        return Tile.from_letter(self.letter)


@dataclass
class FormedWord:
    word: str
    squares: list[Square]
    direction: Direction
    score: int = 0


@dataclass
class ScoredMove:
    """An accepted placement: the new tiles, every word they form (main word first), and the move total."""

    placements: list[Placement]
    direction: Direction
    words: list[FormedWord]
    score: int
    bingo: bool = False

    @property
    def main_word(self) -> FormedWord:
        return self.words[0]

    @property
    def letters_used(self) -> list[str]:
        return [placement.letter for placement in self.placements]


def is_valid_word_shape(word: str) -> bool:
    """Local check only: at least two letters, A-Z only."""
    return len(word) >= MIN_WORD_LENGTH and word.isascii() and word.isalpha() and word.isupper()


def validate_and_score(
    placements: list[Placement], board: Board, rack: list[Tile]
) -> ScoredMove:
    """Decide if the placement is legal on this board with this rack. Raises IllegalMoveError if not."""

    new_placements = _new_placements(placements, board)

    if len(new_placements) < MIN_NEW_TILES:
        raise IllegalMoveError(
            RejectionReason.TOO_FEW_TILES,
            f"Place at least {MIN_NEW_TILES} tiles (got {len(new_placements)}).",
        )

    direction = _placement_direction(new_placements)
    new_squares = {placement.square: placement.letter for placement in new_placements}

    if board.is_empty():
        if CENTER_SQUARE not in new_squares:
            raise IllegalMoveError(
                RejectionReason.MUST_COVER_CENTER,
                "The first word must cover the center square.",
            )
    elif not _touches_locked_tile(new_squares, board):
        raise IllegalMoveError(
            RejectionReason.NOT_CONNECTED,
            "The word must connect to tiles already on the board.",
        )

    _assert_contiguous(new_squares, board, direction)

    words = formed_words(new_squares, board, direction)
    for formed in words:
        if not is_valid_word_shape(formed.word):
            raise IllegalMoveError(
                RejectionReason.INVALID_WORD_SHAPE,
                f"{formed.word!r} is not a valid word shape.",
            )

    letters = [placement.letter for placement in new_placements]
    if not has_letters(rack, letters):
        raise IllegalMoveError(
            RejectionReason.TILES_NOT_IN_RACK,
            f"Not all of {''.join(letters)} are on your rack.",
        )

    for formed in words:
        formed.score = score_word(formed, new_squares, board)

    bingo = len(new_placements) == RACK_SIZE
    total = sum(formed.score for formed in words) + (BINGO_BONUS if bingo else 0)
    return ScoredMove(
        placements=new_placements,
        direction=direction,
        words=words,
        score=total,
        bingo=bingo,
    )


def formed_words(
    new_squares: dict[Square, str], board: Board, direction: Direction
) -> list[FormedWord]:
    """
    All words the new tiles form.
    ---

    * The main word: the run along the placement direction through the new tiles.
    * Cross words: for every new tile, the run perpendicular to it (only if it is 2 letters or longer).
    """
    first_square = min(new_squares)
    main_word = _word_through(first_square, new_squares, board, direction)
    words = [main_word]

    cross_direction = (
        Direction.VERTICAL if direction == Direction.HORIZONTAL else Direction.HORIZONTAL
    )
    for square in sorted(new_squares):
        cross_word = _word_through(square, new_squares, board, cross_direction)
        if len(cross_word.squares) >= MIN_WORD_LENGTH:
            words.append(cross_word)
    return words


def score_word(
    formed: FormedWord, new_squares: Collection[Square], board: Board
) -> int:
    """
    Score of a single word.
    ---

    Premium squares only count for tiles placed this turn. Letter premiums multiply the letter,
    word premiums are multiplied together and applied to the sum.
    """
    total = 0
    word_multiplier = 1
    for square, letter in zip(formed.squares, formed.word):
        letter_score = LETTER_SCORES.get(letter, 0)
        if square in new_squares:
            cell_type = board.cell(square).type
            letter_score *= LETTER_MULTIPLIERS.get(cell_type, 1)
            word_multiplier *= WORD_MULTIPLIERS.get(cell_type, 1)
        total += letter_score
    return total * word_multiplier


# --- HELPERS ---
def _new_placements(placements: list[Placement], board: Board) -> list[Placement]:
    """
    Drop placements repeating a letter that is already locked on that square.
    A different letter on a locked square is never allowed.
    """
    seen: set[Square] = set()
    new_placements: list[Placement] = []
    for placement in placements:
        square = placement.square
        if not square.is_within_bounds():
            raise IllegalMoveError(
                RejectionReason.OUT_OF_BOUNDS,
                f"Square {square.to_notation()} is not on the board.",
            )
        if square in seen:
            raise IllegalMoveError(
                RejectionReason.DUPLICATE_SQUARE,
                f"Square {square.to_notation()} is used twice.",
            )
        seen.add(square)

        if board.is_locked(square):
            if board.letter(square) != placement.letter:
                raise IllegalMoveError(
                    RejectionReason.CELL_OCCUPIED,
                    f"Square {square.to_notation()} already holds {board.letter(square)!r}.",
                )
            continue
        new_placements.append(placement)
    return new_placements


def _placement_direction(placements: list[Placement]) -> Direction:
    rows = {placement.square.row for placement in placements}
    cols = {placement.square.col for placement in placements}
    if len(rows) == 1:
        return Direction.HORIZONTAL
    if len(cols) == 1:
        return Direction.VERTICAL
    raise IllegalMoveError(
        RejectionReason.NOT_IN_LINE, "All tiles must be in one row or one column."
    )


def _touches_locked_tile(new_squares: dict[Square, str], board: Board) -> bool:
    return any(
        board.is_locked(neighbour)
        for square in new_squares
        for neighbour in square.neighbours()
    )


def _assert_contiguous(
    new_squares: dict[Square, str], board: Board, direction: Direction
) -> None:
    """Every square between the first and last new tile is either new or locked."""
    d_row, d_col = STEPS[direction]
    square = min(new_squares)
    last = max(new_squares)
    while square <= last:
        if square not in new_squares and not board.is_locked(square):
            raise IllegalMoveError(
                RejectionReason.NOT_CONTIGUOUS,
                f"Gap at square {square.to_notation()}.",
            )
        square = square.shifted(d_row, d_col)


def _word_through(
    square: Square, new_squares: dict[Square, str], board: Board, direction: Direction
) -> FormedWord:
    """Walk back to the start of the run of letters containing 'square', then collect it."""
    d_row, d_col = STEPS[direction]

    def occupied(sq: Square) -> bool:
        return sq in new_squares or board.is_locked(sq)

    start = square
    while occupied(start.shifted(-d_row, -d_col)):
        start = start.shifted(-d_row, -d_col)

    squares: list[Square] = []
    letters: list[str] = []
    current = start
    while occupied(current):
        squares.append(current)
        letters.append(new_squares.get(current) or board.letter(current) or "")
        current = current.shifted(d_row, d_col)
    return FormedWord(word="".join(letters), squares=squares, direction=direction)
