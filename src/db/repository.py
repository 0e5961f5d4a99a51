"""Protocol repositories (implemented with SQLAlchemy in sql_repository.py, and with dictionaries in the tests)"""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from src.core.models import GameModel, MatchmakingModel, PresenceModel


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """
        Write the new state, but only if the stored version still equals game.version.
        Returns the stored data (with the version bumped), None if the game does not exist.
        Raises ConcurrencyError if somebody else wrote in between.
        """
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        ...

    def find_waiting_games(
        self,
        exclude_player_id: str,
        created_before: Optional[tuple[datetime, UUID]] = None,
        limit: Optional[int] = 1,
    ) -> list[tuple[UUID, GameModel]]:
        """
        Public games still waiting for a second player, not created by exclude_player_id.
        Oldest first, ordered by (created_at, id). created_before keeps only games before that position.
        """
        ...

    def find_by_join_code(self, join_code: str) -> tuple[UUID, GameModel] | None:
        """Most recent game using this join code."""
        ...

    def list_player_games(
        self, player_id: str, status: Optional[str] = None, limit: Optional[int] = None
    ) -> list[tuple[UUID, GameModel]]:
        """Games the player sits in, newest first."""
        ...


class MatchmakingRepository(Protocol):
    def get_request(self, user_id: str) -> MatchmakingModel | None: ...

    def save_request(self, request: MatchmakingModel) -> MatchmakingModel:
        """Create or replace the request of request.user_id."""
        ...

    def delete_request(self, user_id: str) -> MatchmakingModel | None: ...

    def list_older_than(self, cutoff: datetime) -> list[MatchmakingModel]: ...


class PresenceRepository(Protocol):
    def get_presence(self, user_id: str) -> PresenceModel | None: ...

    def save_presence(self, presence: PresenceModel) -> PresenceModel: ...

    def list_looking_for_game(self, updated_after: datetime) -> list[PresenceModel]: ...

    def list_online(self, updated_after: datetime) -> list[PresenceModel]: ...

    def delete_presence(self, user_id: str) -> PresenceModel | None: ...