"""
Pairing of players looking for a public game.

Every searcher creates a game of their own first, then looks (twice, with a short pause in between) for a waiting game
of somebody who is still looking too. Waiting games are ordered by (created_at, id). While two players are both still
looking, only the later one joins the earlier one's game, never the other way around, so the pair cannot end up in two
half-empty games. A searcher who is done looking (stored as 'searching') will not come back for anyone's game,
so their game may be joined whatever its position.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    FindMatchRequest,
    GameActionRequest,
    GameResponse,
    JoinGameRequest,
    MatchmakingResponse,
)
from src.core.config import settings
from src.core.exceptions import ConcurrencyError, GameStateError
from src.core.models import GameModel, MatchmakingModel
from src.core.shared_types import MatchmakingStatus, Status
from src.db.repository import MatchmakingRepository
from src.services.presence_service import PresenceService
from src.services.scrabble_service import ScrabbleService

logger = logging.getLogger(__name__)

OPPONENT_LOOKUPS = 2


class MatchmakingService:
    def __init__(
        self,
        game_service: ScrabbleService,
        repository: MatchmakingRepository,
        presence: PresenceService,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        sleep: Callable[[float], None] = time.sleep,
        retry_delay_seconds: float = settings.MATCHMAKING_RETRY_DELAY_SEC,
        stale_after: timedelta = timedelta(seconds=settings.MATCHMAKING_STALE_AFTER_SEC),
    ) -> None:
        self.games = game_service
        self.repo = repository
        self.presence = presence
        self._clock = clock
        self._sleep = sleep
        self.retry_delay_seconds = retry_delay_seconds
        self.stale_after = stale_after

    def find_waiting_game(
        self, exclude_player_id: str, own_game: Optional[GameResponse] = None
    ) -> Optional[tuple[UUID, GameModel]]:
        """
        Oldest public game still waiting for a second player, created by someone who is still looking for a game.
        ---

        Games of players that went away (presence no longer 'looking for game') are never offered.
        With own_game given, only games before it qualify, or games of searchers that are done looking.
        Changes nothing.
        """
        looking = {
            user.user_id for user in self.presence.get_users_looking_for_game(exclude_player_id)
        }
        if own_game is None:
            waiting = self.games.repo.find_waiting_games(exclude_player_id, limit=None)
            return self._first_created_by(looking, waiting)

        assert own_game.created_at is not None
        earlier = self.games.repo.find_waiting_games(
            exclude_player_id,
            created_before=(own_game.created_at, own_game.game_id),
            limit=None,
        )
        found = self._first_created_by(looking, earlier)
        if found is not None:
            return found

        parked = [
            (game_id, game)
            for game_id, game in self.games.repo.find_waiting_games(exclude_player_id, limit=None)
            if self._is_parked(game.seats[0].player_id, game_id)
        ]
        return self._first_created_by(looking, parked)

    def create_and_pair(self, request: FindMatchRequest) -> MatchmakingResponse:
        """
        Find an opponent
        ----

        1. create a game of your own (so others can find you)
        2. look for a waiting game of another searcher, two lookups separated by a short delay
        3. found one? abandon your own game and join that one
        4. nothing found? stay in your own game as 'searching'
        """
        player = request.player_id
        self.presence.set_looking_for_game(player, True)

        own_game = self.games.create_new_game(CreateGameRequest(player_id=player))
        for attempt in range(OPPONENT_LOOKUPS):
            joined = self._opponent_joined(own_game.game_id)
            if joined is not None:
                return self._matched(request, own_game.game_id, joined)

            found = self.find_waiting_game(player, own_game=own_game)
            if found is not None:
                return self._pair_with(request, own_game, *found)

            if attempt < OPPONENT_LOOKUPS - 1:
                self._sleep(self.retry_delay_seconds)

        return self._searching(request, own_game.game_id)

    def cancel_matchmaking(self, player_id: str) -> None:
        """Stop searching: the waiting game gets cancelled, the request deleted, and the presence flag cleared."""
        request = self.repo.get_request(player_id)
        if request is not None:
            self._stop_searching(request)
        self.repo.delete_request(player_id)
        self.presence.set_looking_for_game(player_id, False)

    def get_request(self, player_id: str) -> Optional[MatchmakingResponse]:
        request = self.repo.get_request(player_id)
        if request is None:
            return None
        return self._create_response(request)

    def cleanup_stale_requests(self) -> int:
        """Purge requests older than the stale threshold, along with their waiting games. Returns how many were removed."""
        cutoff = self._clock() - self.stale_after
        stale = self.repo.list_older_than(cutoff)
        for request in stale:
            self._stop_searching(request)
            self.repo.delete_request(request.user_id)
            self.presence.set_looking_for_game(request.user_id, False)
        if stale:
            logger.info("Removed %d stale matchmaking requests", len(stale))
        return len(stale)

    # -- Internal helpers --
    def _stop_searching(self, request: MatchmakingModel) -> None:
        """Cancel the waiting game of a request that is still searching."""
        if request.status != MatchmakingStatus.SEARCHING or not request.game_id:
            return
        try:
            self.games.cancel_waiting_game(
                GameActionRequest(game_id=UUID(request.game_id), player_id=request.user_id)
            )
        except GameStateError:
            # an opponent joined in the meantime: the game goes on, only the search stops
            logger.info(
                "Game %s of %s already started, not cancelled", request.game_id, request.user_id
            )

    def _pair_with(
        self,
        request: FindMatchRequest,
        own_game: GameResponse,
        other_game_id: UUID,
        other_game: GameModel,
    ) -> MatchmakingResponse:
        player = request.player_id
        try:
            self.games.cancel_waiting_game(
                GameActionRequest(game_id=own_game.game_id, player_id=player)
            )
        except (GameStateError, ConcurrencyError):
            # somebody joined our own game first
            joined = self._opponent_joined(own_game.game_id)
            if joined is not None:
                return self._matched(request, own_game.game_id, joined)
            raise

        try:
            self.games.join_game(JoinGameRequest(game_id=other_game_id, player_id=player))
        except (GameStateError, ConcurrencyError):
            logger.info("Game %s was taken before %s could join it", other_game_id, player)
            new_game = self.games.create_new_game(CreateGameRequest(player_id=player))
            return self._searching(request, new_game.game_id)

        opponent = other_game.seats[0].player_id
        assert opponent is not None
        opponent_request = self.repo.get_request(opponent)
        if opponent_request is not None:
            opponent_request.status = MatchmakingStatus.MATCHED
            opponent_request.opponent_id = player
            self.repo.save_request(opponent_request)
        self.presence.set_in_game(opponent, str(other_game_id))
        return self._matched(request, other_game_id, opponent)

    def _opponent_joined(self, game_id: UUID) -> Optional[str]:
        """The second player of our own game, if someone already joined it."""
        model = self.games.repo.get_game(game_id)
        if model is None or model.status == Status.WAITING:
            return None
        return model.seats[1].player_id

    def _is_parked(self, player_id: Optional[str], game_id: UUID) -> bool:
        """The player is done looking and waits in this game for someone to join."""
        if player_id is None:
            return False
        request = self.repo.get_request(player_id)
        return (
            request is not None
            and request.status == MatchmakingStatus.SEARCHING
            and request.game_id == str(game_id)
        )

    def _first_created_by(
        self, players: set[str], games: list[tuple[UUID, GameModel]]
    ) -> Optional[tuple[UUID, GameModel]]:
        for game_id, game in games:
            if game.seats[0].player_id in players:
                return game_id, game
        return None

    def _matched(
        self, request: FindMatchRequest, game_id: UUID, opponent_id: Optional[str]
    ) -> MatchmakingResponse:
        stored = self.repo.save_request(
            MatchmakingModel(
                user_id=request.player_id,
                display_name=request.display_name,
                created_at=self._clock(),
                status=MatchmakingStatus.MATCHED,
                game_id=str(game_id),
                opponent_id=opponent_id,
            )
        )
        self.presence.set_in_game(request.player_id, str(game_id))
        logger.info("Matched %s with %s in game %s", request.player_id, opponent_id, game_id)
        return self._create_response(stored)

    def _searching(self, request: FindMatchRequest, game_id: UUID) -> MatchmakingResponse:
        joined = self._opponent_joined(game_id)
        if joined is not None:
            # joined right after the last lookup
            return self._matched(request, game_id, joined)
        stored = self.repo.save_request(
            MatchmakingModel(
                user_id=request.player_id,
                display_name=request.display_name,
                created_at=self._clock(),
                status=MatchmakingStatus.SEARCHING,
                game_id=str(game_id),
            )
        )
        return self._create_response(stored)

    def _create_response(self, request: MatchmakingModel) -> MatchmakingResponse:
        return MatchmakingResponse(
            player_id=request.user_id,
            game_id=UUID(request.game_id) if request.game_id else None,
            status=request.status,
            opponent_id=request.opponent_id,
        )
