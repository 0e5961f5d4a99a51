"""Implementation of the repositories using SQLAlchemy"""

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from src.core.exceptions import ConcurrencyError
from src.core.models import GameModel, MatchmakingModel, PresenceModel, SeatModel
from src.core.shared_types import PresenceStatus, Status
from src.db.schema import DBGame, DBMatchmakingRequest, DBPresence, utc_now


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes. Everything is stored in UTC, so just attach the timezone again."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""

        new_id = uuid4()
        game_db = DBGame(id=new_id, version=0, **self._to_columns(game))
        if game.created_at is not None:
            game_db.created_at = game.created_at
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """
        Add new info to existing record.
        ---

        Single conditional UPDATE: only applied if nobody else bumped the version since `game` was read.
        """
        values = self._to_columns(game)
        values["version"] = game.version + 1
        values["updated_at"] = game.updated_at or utc_now()
        query = (
            update(DBGame)
            .where(DBGame.id == game_id, DBGame.version == game.version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(query)
        if result.rowcount == 0:
            self.db.rollback()
            if self._fetch_game(game_id) is None:
                return None
            raise ConcurrencyError(
                f"Game with {game_id=} was changed by someone else (expected version {game.version})."
            )
        self.db.commit()
        game_db = self._fetch_game(game_id)
        assert game_db is not None
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return game_model

    def find_waiting_games(
        self,
        exclude_player_id: str,
        created_before: Optional[tuple[datetime, UUID]] = None,
        limit: Optional[int] = 1,
    ) -> list[tuple[UUID, GameModel]]:
        """
        Public games still waiting for a second player, not created by exclude_player_id.
        Oldest first, ordered by (created_at, id): games created in the same instant still have a fixed order.
        """
        query = select(DBGame).where(
            DBGame.status == Status.WAITING.value,
            DBGame.is_private.is_(False),
            DBGame.player2_id.is_(None),
            DBGame.player1_id != exclude_player_id,
        )
        if created_before is not None:
            created_at, game_id = created_before
            query = query.where(
                or_(
                    DBGame.created_at < created_at,
                    and_(DBGame.created_at == created_at, DBGame.id < game_id),
                )
            )
        query = query.order_by(DBGame.created_at.asc(), DBGame.id.asc())
        if limit is not None:
            query = query.limit(limit)
        return [(game_db.id, self._to_model(game_db)) for game_db in self.db.scalars(query)]

    def find_by_join_code(self, join_code: str) -> tuple[UUID, GameModel] | None:
        query = (
            select(DBGame)
            .where(DBGame.join_code == join_code)
            .order_by(DBGame.created_at.desc())
            .limit(1)
        )
        game_db = self.db.scalar(query)
        if game_db is None:
            return None
        return game_db.id, self._to_model(game_db)

    def list_player_games(
        self, player_id: str, status: Optional[str] = None, limit: Optional[int] = None
    ) -> list[tuple[UUID, GameModel]]:
        query = select(DBGame).where(
            or_(DBGame.player1_id == player_id, DBGame.player2_id == player_id)
        )
        if status is not None:
            query = query.where(DBGame.status == status)
        query = query.order_by(DBGame.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return [(game_db.id, self._to_model(game_db)) for game_db in self.db.scalars(query)]

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _to_columns(self, game: GameModel) -> dict[str, Any]:
        """Convert data transfer model into column values (everything except id / version / timestamps set by the db)."""
        return {
            "board": game.board,
            "tile_bag": game.tile_bag,
            "seats": [asdict(seat) for seat in game.seats],
            "player1_id": game.seats[0].player_id,
            "player2_id": game.seats[1].player_id,
            "status": game.status,
            "turn_duration_seconds": game.turn_duration_seconds,
            "current_turn_player_id": game.current_turn_player_id,
            "timer_ends_at": game.timer_ends_at,
            "pause_status": game.pause_status,
            "pause_requested_by": game.pause_requested_by,
            "is_private": game.is_private,
            "join_code": game.join_code,
            "join_code_expires_at": game.join_code_expires_at,
            "winner_id": game.winner_id,
            "resigned_player_id": game.resigned_player_id,
            "finished_by": game.finished_by,
            "move_history": list(game.move_history),
            "started_at": game.started_at,
            "ended_at": game.ended_at,
        }

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            board=game_db.board,
            tile_bag=game_db.tile_bag,
            seats=[SeatModel(**seat) for seat in game_db.seats],
            status=game_db.status,
            turn_duration_seconds=game_db.turn_duration_seconds,
            current_turn_player_id=game_db.current_turn_player_id,
            timer_ends_at=as_utc(game_db.timer_ends_at),
            pause_status=game_db.pause_status,
            pause_requested_by=game_db.pause_requested_by,
            is_private=game_db.is_private,
            join_code=game_db.join_code,
            join_code_expires_at=as_utc(game_db.join_code_expires_at),
            winner_id=game_db.winner_id,
            resigned_player_id=game_db.resigned_player_id,
            finished_by=game_db.finished_by,
            move_history=list(game_db.move_history or []),
            created_at=as_utc(game_db.created_at),
            updated_at=as_utc(game_db.updated_at),
            started_at=as_utc(game_db.started_at),
            ended_at=as_utc(game_db.ended_at),
            version=game_db.version,
        )


class SQLMatchmakingRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_request(self, user_id: str) -> MatchmakingModel | None:
        request_db = self.db.get(DBMatchmakingRequest, user_id)
        return self._to_model(request_db) if request_db else None

    def save_request(self, request: MatchmakingModel) -> MatchmakingModel:
        """Create or replace (one request per user)."""
        request_db = self.db.merge(DBMatchmakingRequest(**asdict(request)))
        self.db.commit()
        return self._to_model(request_db)

    def delete_request(self, user_id: str) -> MatchmakingModel | None:
        request_db = self.db.get(DBMatchmakingRequest, user_id)
        if request_db is None:
            return None
        request = self._to_model(request_db)
        self.db.delete(request_db)
        self.db.commit()
        return request

    def list_older_than(self, cutoff: datetime) -> list[MatchmakingModel]:
        query = select(DBMatchmakingRequest).where(DBMatchmakingRequest.created_at < cutoff)
        return [self._to_model(request_db) for request_db in self.db.scalars(query)]

    def _to_model(self, request_db: DBMatchmakingRequest) -> MatchmakingModel:
        return MatchmakingModel(
            user_id=request_db.user_id,
            display_name=request_db.display_name,
            created_at=as_utc(request_db.created_at) or utc_now(),
            status=request_db.status,
            game_id=request_db.game_id,
            opponent_id=request_db.opponent_id,
        )


class SQLPresenceRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_presence(self, user_id: str) -> PresenceModel | None:
        presence_db = self.db.get(DBPresence, user_id)
        return self._to_model(presence_db) if presence_db else None

    def save_presence(self, presence: PresenceModel) -> PresenceModel:
        presence_db = self.db.merge(DBPresence(**asdict(presence)))
        self.db.commit()
        return self._to_model(presence_db)

    def list_looking_for_game(self, updated_after: datetime) -> list[PresenceModel]:
        query = select(DBPresence).where(
            DBPresence.looking_for_game.is_(True),
            DBPresence.updated_at > updated_after,
        )
        return [self._to_model(presence_db) for presence_db in self.db.scalars(query)]

    def list_online(self, updated_after: datetime) -> list[PresenceModel]:
        query = select(DBPresence).where(
            DBPresence.status == PresenceStatus.ONLINE.value,
            DBPresence.updated_at > updated_after,
        )
        return [self._to_model(presence_db) for presence_db in self.db.scalars(query)]

    def delete_presence(self, user_id: str) -> PresenceModel | None:
        presence_db = self.db.get(DBPresence, user_id)
        if presence_db is None:
            return None
        presence = self._to_model(presence_db)
        self.db.delete(presence_db)
        self.db.commit()
        return presence

    def _to_model(self, presence_db: DBPresence) -> PresenceModel:
        return PresenceModel(
            user_id=presence_db.user_id,
            display_name=presence_db.display_name,
            status=presence_db.status,
            looking_for_game=presence_db.looking_for_game,
            updated_at=as_utc(presence_db.updated_at) or utc_now(),
            last_seen=as_utc(presence_db.last_seen),
            current_game_id=presence_db.current_game_id,
        )
