"""Requests and Response models"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.config import settings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Direction, MatchmakingStatus, PauseStatus, Status
from src.scrabble.game import JOIN_CODE_LENGTH
from src.scrabble.tiles import LETTER_SCORES

PlayerId = str


def _validate_letter(value: str) -> str:
    letter = value.strip().upper()
    if letter not in LETTER_SCORES:
        raise InvalidRequestError(f"Cannot interpret {value!r} as a tile letter.")
    return letter


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    player_id: PlayerId
    is_private: bool = False
    turn_duration_seconds: int = settings.TURN_DURATION_SECONDS

    @field_validator("turn_duration_seconds")
    @classmethod
    def validate_turn_duration(cls, value: int) -> int:
        if value not in settings.ALLOWED_TURN_DURATIONS:
            raise InvalidRequestError(
                f"Turn duration must be one of {settings.ALLOWED_TURN_DURATIONS} seconds, got {value}."
            )
        return value


class JoinGameRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId


class JoinByCodeRequest(BaseModel):
    join_code: str
    player_id: PlayerId

    @field_validator("join_code")
    @classmethod
    def validate_join_code(cls, value: str) -> str:
        code = value.strip().upper()
        if len(code) != JOIN_CODE_LENGTH or not (code.isascii() and code.isalnum()):
            raise InvalidRequestError(
                f"A join code has {JOIN_CODE_LENGTH} letters/digits, got {value!r}."
            )
        return code


class GameActionRequest(BaseModel):
    """Pass, pause handshake, resume, resign, cancel, clearing staged tiles: only need to know who and where."""

    game_id: UUID
    player_id: PlayerId


class PlacementData(BaseModel):
    row: int
    col: int
    letter: str

    @field_validator("letter")
    @classmethod
    def validate_letter(cls, value: str) -> str:
        return _validate_letter(value)


class MoveRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId
    placements: list[PlacementData]


class ExchangeRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId
    letters: list[str]

    @field_validator("letters")
    @classmethod
    def validate_letters(cls, value: list[str]) -> list[str]:
        return [_validate_letter(letter) for letter in value]


class TimeExpiredRequest(BaseModel):
    """Reported by either client when the countdown reaches zero. The player on turn forfeits the turn."""

    game_id: UUID


class GetGameRequest(BaseModel):
    game_id: UUID


class PlayerGamesRequest(BaseModel):
    player_id: PlayerId
    limit: int = 10


class FindMatchRequest(BaseModel):
    player_id: PlayerId
    display_name: str


class StatsRequest(BaseModel):
    player_id: PlayerId


# --- RESPONSE MODELS ---
class SeatResponse(BaseModel):
    player_id: Optional[PlayerId]
    rack: list[str]
    score: int
    moves_count: int
    consecutive_passes: int
    highest_word: Optional[str]
    highest_word_score: int
    pending: list[str]


class GameResponse(BaseModel):
    game_id: UUID
    status: Status
    board: list[str]
    tiles_in_bag: int
    bag_letters: dict[str, int]
    seats: list[SeatResponse]
    current_turn_player_id: Optional[PlayerId]
    timer_ends_at: Optional[datetime]
    turn_duration_seconds: int
    pause_status: PauseStatus
    pause_requested_by: Optional[PlayerId]
    is_private: bool
    join_code: Optional[str]
    winner_id: Optional[PlayerId]
    resigned_player_id: Optional[PlayerId]
    created_at: Optional[datetime]
    version: int


class FormedWordResponse(BaseModel):
    word: str
    score: int
    direction: Direction


class ScoredMoveResponse(BaseModel):
    words: list[FormedWordResponse]
    score: int
    bingo: bool


class MoveResponse(BaseModel):
    game: GameResponse
    move: ScoredMoveResponse


class ExchangeResponse(BaseModel):
    game: GameResponse
    new_tiles: list[str]


class SeatSummaryResponse(BaseModel):
    player_id: Optional[PlayerId]
    score: int
    remaining_tiles_penalty: int
    final_score: int
    highest_word: Optional[str]
    highest_word_score: int
    moves_count: int


class GameSummaryResponse(BaseModel):
    game_id: UUID
    winner_id: Optional[PlayerId]
    seats: list[SeatSummaryResponse]
    total_moves: int
    duration_minutes: int
    resigned: bool
    resigned_player_id: Optional[PlayerId]


class UserStatsResponse(BaseModel):
    player_id: PlayerId
    games_played: int
    games_won: int
    total_score: int
    highest_word_score: int
    win_rate: float
    average_score: float


class MatchmakingResponse(BaseModel):
    player_id: PlayerId
    game_id: Optional[UUID]
    status: MatchmakingStatus
    opponent_id: Optional[PlayerId] = None
