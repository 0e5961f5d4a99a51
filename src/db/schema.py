"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.shared_types import Status


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    type_annotation_map = {datetime: DateTime(timezone=True)}


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    board: Mapped[str]
    tile_bag: Mapped[str]
    seats: Mapped[list[dict[str, Any]]] = mapped_column(JSON)
    # seat player ids are duplicated into their own columns so they can be queried
    player1_id: Mapped[Optional[str]] = mapped_column(index=True)
    player2_id: Mapped[Optional[str]] = mapped_column(index=True)
    status: Mapped[str] = mapped_column(index=True, default=Status.WAITING.value)
    turn_duration_seconds: Mapped[int]
    current_turn_player_id: Mapped[Optional[str]]
    timer_ends_at: Mapped[Optional[datetime]]
    pause_status: Mapped[str]
    pause_requested_by: Mapped[Optional[str]]
    is_private: Mapped[bool] = mapped_column(default=False)
    join_code: Mapped[Optional[str]] = mapped_column(index=True)
    join_code_expires_at: Mapped[Optional[datetime]]
    winner_id: Mapped[Optional[str]]
    resigned_player_id: Mapped[Optional[str]]
    finished_by: Mapped[Optional[str]]
    move_history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    started_at: Mapped[Optional[datetime]]
    ended_at: Mapped[Optional[datetime]]
    version: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBMatchmakingRequest(Base):
    __tablename__ = "matchmaking_requests"
    user_id: Mapped[str] = mapped_column(primary_key=True)
    display_name: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)
    status: Mapped[str] = mapped_column(index=True)
    game_id: Mapped[Optional[str]]
    opponent_id: Mapped[Optional[str]]


class DBPresence(Base):
    __tablename__ = "presence"
    user_id: Mapped[str] = mapped_column(primary_key=True)
    display_name: Mapped[str] = mapped_column(default="")
    status: Mapped[str]
    looking_for_game: Mapped[bool] = mapped_column(default=False)
    current_game_id: Mapped[Optional[str]]
    last_seen: Mapped[Optional[datetime]]
    updated_at: Mapped[datetime] = mapped_column(default=utc_now)
