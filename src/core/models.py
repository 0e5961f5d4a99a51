"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)

Everything in here is made of plain, JSON-safe values (plus datetimes), so it maps directly onto the stored game document.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# Type aliases to make the models easier to read
PlayerId = str
BoardNotation = str  # 15 rows of 15 characters joined by '/', '.' is an empty cell
LetterString = str  # tiles in order, one letter per tile
PlacementNotation = str  # "row,col,LETTER"


@dataclass
class SeatModel:
    """Everything that belongs to one of the two players of a game."""

    player_id: Optional[PlayerId]
    rack: LetterString
    score: int = 0
    moves_count: int = 0
    consecutive_passes: int = 0
    highest_word: Optional[str] = None
    highest_word_score: int = 0
    pending: list[PlacementNotation] = field(default_factory=list)
    remaining_tiles: Optional[LetterString] = None


@dataclass
class GameModel:
    """Transport-safe representation of a game document used between API, Service, DB, and Game layers."""

    board: BoardNotation
    tile_bag: LetterString
    seats: list[SeatModel]
    status: str
    turn_duration_seconds: int
    current_turn_player_id: Optional[PlayerId] = None
    timer_ends_at: Optional[datetime] = None
    pause_status: str = "none"
    pause_requested_by: Optional[PlayerId] = None
    is_private: bool = False
    join_code: Optional[str] = None
    join_code_expires_at: Optional[datetime] = None
    winner_id: Optional[PlayerId] = None
    resigned_player_id: Optional[PlayerId] = None
    finished_by: Optional[PlayerId] = None
    move_history: list[dict[str, Any]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    version: int = 0


@dataclass
class MatchmakingModel:
    """One open matchmaking request. At most one per user."""

    user_id: PlayerId
    display_name: str
    created_at: datetime
    status: str
    game_id: Optional[str] = None
    opponent_id: Optional[PlayerId] = None


@dataclass
class PresenceModel:
    user_id: PlayerId
    display_name: str
    status: str
    looking_for_game: bool
    updated_at: datetime
    last_seen: Optional[datetime] = None
    current_game_id: Optional[str] = None
