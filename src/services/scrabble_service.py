"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction).

Every state change follows the same transaction:
read the stored GameModel --> rebuild the Game --> run the transition --> write back conditioned on the version that was read.
A rejected transition raises before anything is written. A lost race raises ConcurrencyError (nothing written either).
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, TypeVar
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    ExchangeRequest,
    ExchangeResponse,
    FormedWordResponse,
    GameActionRequest,
    GameResponse,
    GameSummaryResponse,
    GetGameRequest,
    JoinByCodeRequest,
    JoinGameRequest,
    MoveRequest,
    MoveResponse,
    PlacementData,
    PlayerGamesRequest,
    ScoredMoveResponse,
    SeatResponse,
    SeatSummaryResponse,
    TimeExpiredRequest,
)
from src.core.config import settings
from src.core.exceptions import GameStateError, JoinCodeError, RepositoryError
from src.core.models import GameModel
from src.db.repository import GameRepository
from src.scrabble.game import Game
from src.scrabble.moves import Placement, ScoredMove
from src.scrabble.square import Square
from src.services.dictionary import DictionaryValidator
from src.services.notifier import GameNotifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScrabbleService:
    """Orchestration of layers for the word game."""

    def __init__(
        self,
        repository: GameRepository,
        dictionary: Optional[DictionaryValidator] = None,
        notifier: Optional[GameNotifier] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        join_code_ttl: timedelta = timedelta(minutes=settings.JOIN_CODE_TTL_MINUTES),
    ) -> None:
        self.repo = repository
        self.dictionary = dictionary
        self.notifier = notifier or GameNotifier()
        self._clock = clock
        self._rng = rng
        self.join_code_ttl = join_code_ttl

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """First player requested to create a new game."""
        new_game = Game.new_game(
            player=request.player_id,
            now=self._clock(),
            is_private=request.is_private,
            turn_duration_seconds=request.turn_duration_seconds,
            join_code_ttl=self.join_code_ttl,
            rng=self._rng,
        )
        stored_game, game_id = self.repo.create_game(new_game.to_model())
        logger.info(
            "Game %s created by %s (private=%s)", game_id, request.player_id, request.is_private
        )
        return self._create_game_response(game_id, stored_game)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game."""
        stored, _ = self._apply(
            request.game_id,
            lambda game: game.register_player(request.player_id, self._clock(), self._rng),
        )
        logger.info("Player %s joined game %s", request.player_id, request.game_id)
        return self._create_game_response(request.game_id, stored)

    def join_game_by_code(self, request: JoinByCodeRequest) -> GameResponse:
        """Join a private game. The code must match exactly, the game must still be waiting, and the code must not be expired."""
        found = self.repo.find_by_join_code(request.join_code)
        if found is None:
            raise JoinCodeError(f"No game found for join code {request.join_code!r}.")
        game_id, model = found

        game = Game.from_model(model)
        now = self._clock()
        if not game.is_joinable_with_code(request.join_code, now):
            raise JoinCodeError(
                f"Game for join code {request.join_code!r} is expired or already started."
            )
        game.register_player(request.player_id, now, self._rng)
        stored = self._save(game_id, game)
        return self._create_game_response(game_id, stored)

    def cancel_waiting_game(self, request: GameActionRequest) -> GameResponse:
        """Creator stops waiting for an opponent. No-op if the game already finished."""
        return self._apply_idempotent(
            request.game_id, lambda game: game.cancel(request.player_id, self._clock())
        )

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used by clients that cannot subscribe to changes (polling).
        """
        game_model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game_model)

    def list_player_games(self, request: PlayerGamesRequest) -> list[GameResponse]:
        """Most recent games of a player, newest first."""
        return [
            self._create_game_response(game_id, model)
            for game_id, model in self.repo.list_player_games(
                request.player_id, limit=request.limit
            )
        ]

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """Place a word. All formed words are looked up in the dictionary (if one is configured)."""
        placements = self._to_placements(request.placements)
        word_checker = self.dictionary.invalid_words if self.dictionary else None

        stored, scored = self._apply(
            request.game_id,
            lambda game: game.submit_move(
                request.player_id, placements, self._clock(), word_checker
            ),
        )
        logger.info(
            "Player %s played %s for %d points in game %s",
            request.player_id,
            scored.main_word.word,
            scored.score,
            request.game_id,
        )
        return MoveResponse(
            game=self._create_game_response(request.game_id, stored),
            move=self._create_scored_move_response(scored),
        )

    def preview_move(self, request: MoveRequest) -> ScoredMoveResponse:
        """Validate and score without committing anything (shape check only, no dictionary)."""
        game = Game.from_model(self._fetch_game(request.game_id))
        scored = game.preview_move(request.player_id, self._to_placements(request.placements))
        return self._create_scored_move_response(scored)

    def pass_turn(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.pass_turn(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def exchange_tiles(self, request: ExchangeRequest) -> ExchangeResponse:
        stored, new_tiles = self._apply(
            request.game_id,
            lambda game: game.exchange_tiles(
                request.player_id, request.letters, self._clock(), self._rng
            ),
        )
        return ExchangeResponse(
            game=self._create_game_response(request.game_id, stored),
            new_tiles=[tile.letter for tile in new_tiles],
        )

    def stage_tiles(self, request: MoveRequest) -> GameResponse:
        """Remember tiles a player put on the board without submitting them yet."""
        placements = self._to_placements(request.placements)
        stored, _ = self._apply(
            request.game_id,
            lambda game: game.stage_tiles(request.player_id, placements, self._clock()),
        )
        return self._create_game_response(request.game_id, stored)

    def clear_pending(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.clear_pending(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def handle_time_expired(self, request: TimeExpiredRequest) -> GameResponse:
        """The player on turn ran out of time: forfeits the turn (refused if the timer did not run out yet)."""

        def _expire(game: Game) -> None:
            if game.current_turn_player_id is None:
                raise GameStateError("Nobody is on turn in this game.")
            game.time_expired(game.current_turn_player_id, self._clock())

        stored, _ = self._apply(request.game_id, _expire)
        return self._create_game_response(request.game_id, stored)

    def request_pause(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.request_pause(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def accept_pause(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.accept_pause(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def reject_pause(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.reject_pause(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def resume_game(self, request: GameActionRequest) -> GameResponse:
        stored, _ = self._apply(
            request.game_id, lambda game: game.resume(request.player_id, self._clock())
        )
        return self._create_game_response(request.game_id, stored)

    def resign_game(self, request: GameActionRequest) -> GameResponse:
        """Resigning an already finished game changes nothing and does not raise."""
        return self._apply_idempotent(
            request.game_id, lambda game: game.resign(request.player_id, self._clock())
        )

    def get_game_summary(self, request: GetGameRequest) -> GameSummaryResponse:
        game = Game.from_model(self._fetch_game(request.game_id))
        summary = game.summary()
        return GameSummaryResponse(
            game_id=request.game_id,
            winner_id=summary.winner_id,
            seats=[
                SeatSummaryResponse(
                    player_id=seat.player_id,
                    score=seat.score,
                    remaining_tiles_penalty=seat.remaining_tiles_penalty,
                    final_score=seat.final_score,
                    highest_word=seat.highest_word,
                    highest_word_score=seat.highest_word_score,
                    moves_count=seat.moves_count,
                )
                for seat in summary.seats
            ],
            total_moves=summary.total_moves,
            duration_minutes=summary.duration_minutes,
            resigned=summary.resigned,
            resigned_player_id=summary.resigned_player_id,
        )

    def delete_game(self, request: GetGameRequest) -> None:
        """Handle a request to delete a Game record."""
        self.repo.delete_game(request.game_id)

    # -- Internal helpers --
    def _apply(self, game_id: UUID, action: Callable[[Game], T]) -> tuple[GameModel, T]:
        """Read, run the transition on the domain object, and write back. Raises before writing if the action is refused."""
        game = Game.from_model(self._fetch_game(game_id))
        result = action(game)
        return self._save(game_id, game), result

    def _apply_idempotent(
        self, game_id: UUID, action: Callable[[Game], bool]
    ) -> GameResponse:
        """Like _apply, but only writes when the action reports it changed something."""
        stored = self._fetch_game(game_id)
        game = Game.from_model(stored)
        if action(game):
            stored = self._save(game_id, game)
        return self._create_game_response(game_id, stored)

    def _save(self, game_id: UUID, game: Game) -> GameModel:
        stored = self.repo.update_game(game_id, game.to_model())
        if stored is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        self.notifier.publish(game_id, stored)
        return stored

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model

    def _to_placements(self, placements: list[PlacementData]) -> list[Placement]:
        return [Placement(Square(p.row, p.col), p.letter) for p in placements]

    def _create_scored_move_response(self, scored: ScoredMove) -> ScoredMoveResponse:
        return ScoredMoveResponse(
            words=[
                FormedWordResponse(
                    word=formed.word, score=formed.score, direction=formed.direction
                )
                for formed in scored.words
            ],
            score=scored.score,
            bingo=scored.bingo,
        )

    def _create_game_response(self, game_id: UUID, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        return GameResponse(
            game_id=game_id,
            status=model.status,
            board=model.board.split("/"),
            tiles_in_bag=len(model.tile_bag),
            bag_letters=Game.from_model(model).bag_letter_counts(),
            seats=[
                SeatResponse(
                    player_id=seat.player_id,
                    rack=list(seat.rack),
                    score=seat.score,
                    moves_count=seat.moves_count,
                    consecutive_passes=seat.consecutive_passes,
                    highest_word=seat.highest_word,
                    highest_word_score=seat.highest_word_score,
                    pending=list(seat.pending),
                )
                for seat in model.seats
            ],
            current_turn_player_id=model.current_turn_player_id,
            timer_ends_at=model.timer_ends_at,
            turn_duration_seconds=model.turn_duration_seconds,
            pause_status=model.pause_status,
            pause_requested_by=model.pause_requested_by,
            is_private=model.is_private,
            join_code=model.join_code,
            winner_id=model.winner_id,
            resigned_player_id=model.resigned_player_id,
            created_at=model.created_at,
            version=model.version,
        )
