"""
End of game: final scores and the game summary.

Rules applied when the game ends by running out of tiles or by both players passing twice:

* every player loses the value of the tiles left on their own rack
* the player who used all their tiles (if any) gains the value of the opponent's leftover tiles
* in a pass-out, nobody gains anything: each player just loses their own leftover value
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.scrabble.tiles import Tile, tiles_value


@dataclass(frozen=True)
class SeatSettlement:
    raw_score: int
    penalty: int
    bonus: int

    @property
    def final_score(self) -> int:
        return self.raw_score - self.penalty + self.bonus


def settle(
    raw_scores: list[int],
    remaining_tiles: list[list[Tile]],
    finisher_index: Optional[int] = None,
) -> list[SeatSettlement]:
    """Settlement for both seats, given the raw scores and what is left on each rack."""
    penalties = [tiles_value(tiles) for tiles in remaining_tiles]
    settlements: list[SeatSettlement] = []
    for idx, raw_score in enumerate(raw_scores):
        bonus = 0
        if finisher_index == idx:
            bonus = sum(penalty for other, penalty in enumerate(penalties) if other != idx)
        settlements.append(SeatSettlement(raw_score, penalties[idx], bonus))
    return settlements


def winner_index(settlements: list[SeatSettlement]) -> Optional[int]:
    """Seat with the higher final score. None for a tie."""
    first, second = (settlement.final_score for settlement in settlements)
    if first == second:
        return None
    return 0 if first > second else 1


@dataclass(frozen=True)
class SeatSummary:
    player_id: Optional[str]
    score: int
    remaining_tiles_penalty: int
    final_score: int
    highest_word: Optional[str]
    highest_word_score: int
    moves_count: int


@dataclass(frozen=True)
class GameSummary:
    """Read-only view of a finished game. Never stored, always recomputed from the game itself."""

    winner_id: Optional[str]
    seats: list[SeatSummary]
    total_moves: int
    duration_minutes: int
    resigned: bool
    resigned_player_id: Optional[str]


def duration_minutes(started_at: Optional[datetime], ended_at: Optional[datetime]) -> int:
    if started_at is None or ended_at is None:
        return 0
    return round((ended_at - started_at).total_seconds() / 60)
