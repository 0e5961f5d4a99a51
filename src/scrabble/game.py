"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic of a turn (placing words, passing, exchanging tiles),
the pause handshake, and the end of the game --> the service layer persists the result and passes it onwards.

Every public method either raises (and leaves the Game untouched) or applies the whole transition.
"""

import logging
import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Self

from src.core.exceptions import (
    ExchangeNotAllowedError,
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.models import GameModel, SeatModel
from src.core.shared_types import (
    ExchangeRejection,
    MoveKind,
    PauseStatus,
    RejectionReason,
    Status,
)
from src.scrabble import bag as tile_bag
from src.scrabble.board import Board
from src.scrabble.moves import Placement, ScoredMove, validate_and_score
from src.scrabble.rack import has_letters, refill, remove_letters
from src.scrabble.settlement import (
    GameSummary,
    SeatSummary,
    duration_minutes,
    settle,
    winner_index,
)
from src.scrabble.tiles import RACK_SIZE, Tile, letters_from_tiles, tiles_from_letters

logger = logging.getLogger(__name__)

JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_TURN_DURATION = 300
DEFAULT_JOIN_CODE_TTL = timedelta(hours=1)
# Both players passing this many times in a row ends the game
PASSES_TO_END = 2

# Receives all words formed by a move, returns the ones that are not real words
WordChecker = Callable[[list[str]], list[str]]


def generate_join_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.SystemRandom()
    return "".join(rng.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


@dataclass
class Seat:
    """One of the two players. The second seat already has a rack before anybody sits in it."""

    player_id: Optional[str]
    rack: list[Tile]
    score: int = 0
    moves_count: int = 0
    consecutive_passes: int = 0
    highest_word: Optional[str] = None
    highest_word_score: int = 0
    pending: list[Placement] = field(default_factory=list)
    remaining_tiles: Optional[list[Tile]] = None

    @classmethod
    def from_model(cls, model: SeatModel) -> Self:
        return cls(
            player_id=model.player_id,
            rack=tiles_from_letters(model.rack),
            score=model.score,
            moves_count=model.moves_count,
            consecutive_passes=model.consecutive_passes,
            highest_word=model.highest_word,
            highest_word_score=model.highest_word_score,
            pending=[Placement.from_notation(p) for p in model.pending],
            remaining_tiles=(
                tiles_from_letters(model.remaining_tiles)
                if model.remaining_tiles is not None
                else None
            ),
        )

    def to_model(self) -> SeatModel:
        return SeatModel(
            player_id=self.player_id,
            rack=letters_from_tiles(self.rack),
            score=self.score,
            moves_count=self.moves_count,
            consecutive_passes=self.consecutive_passes,
            highest_word=self.highest_word,
            highest_word_score=self.highest_word_score,
            pending=[placement.to_notation() for placement in self.pending],
            remaining_tiles=(
                letters_from_tiles(self.remaining_tiles)
                if self.remaining_tiles is not None
                else None
            ),
        )


@dataclass
class MoveRecord:
    """One entry of the move history (plays, passes, exchanges, and timeouts)"""

    player_id: str
    kind: MoveKind
    at: datetime
    score: int = 0
    words: list[str] = field(default_factory=list)
    tiles: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            player_id=data["player_id"],
            kind=MoveKind(data["kind"]),
            at=datetime.fromisoformat(data["at"]),
            score=data.get("score", 0),
            words=list(data.get("words", [])),
            tiles=list(data.get("tiles", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "kind": self.kind.value,
            "at": self.at.isoformat(),
            "score": self.score,
            "words": self.words,
            "tiles": self.tiles,
        }


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    bag: list[Tile]
    seats: list[Seat]
    status: Status
    turn_duration_seconds: int = DEFAULT_TURN_DURATION
    current_turn_player_id: Optional[str] = None
    timer_ends_at: Optional[datetime] = None
    pause_status: PauseStatus = PauseStatus.NONE
    pause_requested_by: Optional[str] = None
    is_private: bool = False
    join_code: Optional[str] = None
    join_code_expires_at: Optional[datetime] = None
    winner_id: Optional[str] = None
    resigned_player_id: Optional[str] = None
    finished_by: Optional[str] = None
    history: list[MoveRecord] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    version: int = 0

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.status not in Status.__members__.values():
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(status.value for status in Status)}"
            )
        if len(model.seats) != 2:
            raise GameStateError(f"A game has two seats, got {len(model.seats)}.")

        return cls(
            board=Board.from_notation(model.board),
            bag=tiles_from_letters(model.tile_bag),
            seats=[Seat.from_model(seat) for seat in model.seats],
            status=Status(model.status),
            turn_duration_seconds=model.turn_duration_seconds,
            current_turn_player_id=model.current_turn_player_id,
            timer_ends_at=model.timer_ends_at,
            pause_status=PauseStatus(model.pause_status),
            pause_requested_by=model.pause_requested_by,
            is_private=model.is_private,
            join_code=model.join_code,
            join_code_expires_at=model.join_code_expires_at,
            winner_id=model.winner_id,
            resigned_player_id=model.resigned_player_id,
            finished_by=model.finished_by,
            history=[MoveRecord.from_dict(record) for record in model.move_history],
            created_at=model.created_at,
            updated_at=model.updated_at,
            started_at=model.started_at,
            ended_at=model.ended_at,
            version=model.version,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""

        return GameModel(
            board=self.board.to_notation(),
            tile_bag=letters_from_tiles(self.bag),
            seats=[seat.to_model() for seat in self.seats],
            status=self.status.value,
            turn_duration_seconds=self.turn_duration_seconds,
            current_turn_player_id=self.current_turn_player_id,
            timer_ends_at=self.timer_ends_at,
            pause_status=self.pause_status.value,
            pause_requested_by=self.pause_requested_by,
            is_private=self.is_private,
            join_code=self.join_code,
            join_code_expires_at=self.join_code_expires_at,
            winner_id=self.winner_id,
            resigned_player_id=self.resigned_player_id,
            finished_by=self.finished_by,
            move_history=[record.to_dict() for record in self.history],
            created_at=self.created_at,
            updated_at=self.updated_at,
            started_at=self.started_at,
            ended_at=self.ended_at,
            version=self.version,
        )

    @classmethod
    def new_game(
        cls,
        player: str,
        now: datetime,
        is_private: bool = False,
        turn_duration_seconds: int = DEFAULT_TURN_DURATION,
        join_code_ttl: timedelta = DEFAULT_JOIN_CODE_TTL,
        rng: Optional[random.Random] = None,
    ) -> Self:
        """Created by the first player: one shared board, a shuffled bag, and a full rack for both seats."""
        bag = tile_bag.create_shuffled_bag(rng)
        first_rack, bag = tile_bag.draw(bag, RACK_SIZE)
        second_rack, bag = tile_bag.draw(bag, RACK_SIZE)

        join_code = generate_join_code(rng) if is_private else None
        return cls(
            board=Board.create(),
            bag=bag,
            seats=[Seat(player, first_rack), Seat(None, second_rack)],
            status=Status.WAITING,
            turn_duration_seconds=turn_duration_seconds,
            is_private=is_private,
            join_code=join_code,
            join_code_expires_at=now + join_code_ttl if join_code else None,
            created_at=now,
            updated_at=now,
        )

    # --- LIFECYCLE ---
    @property
    def player_ids(self) -> list[str]:
        return [seat.player_id for seat in self.seats if seat.player_id is not None]

    def register_player(
        self, player: str, now: datetime, rng: Optional[random.Random] = None
    ) -> None:
        """Registering the 2nd player to an open game. The starting player is drawn at random."""
        if self.status != Status.WAITING:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. status: {self.status}"
            )
        if player in self.player_ids:
            raise GameStateError("You cannot join your own game.")

        self.seats[1].player_id = player
        self.current_turn_player_id = (rng or random.Random()).choice(self.player_ids)
        self.started_at = now
        self._restart_timer(now)
        self._change_status(Status.PLAYING)
        self._touch(now)

    def is_joinable_with_code(self, code: str, now: datetime) -> bool:
        """Exact code (case-insensitive), still waiting, and not expired."""
        if self.status != Status.WAITING or not self.join_code:
            return False
        if self.join_code != code.strip().upper():
            return False
        return self.join_code_expires_at is None or now < self.join_code_expires_at

    def cancel(self, player: str, now: datetime) -> bool:
        """The creator stops waiting for an opponent. Returns False if there was nothing to cancel."""
        if self.status == Status.FINISHED:
            logger.info("Game already finished, skipping cancel")
            return False
        if self.status != Status.WAITING:
            raise GameStateError(f"Only a waiting game can be cancelled. status: {self.status}")
        self._assert_participant(player)
        self._finish(now)
        return True

    def resign(self, player: str, now: datetime) -> bool:
        """The opponent wins immediately. Resigning a finished game changes nothing (returns False)."""
        if self.status == Status.FINISHED:
            logger.info("Game already finished, skipping resign")
            return False
        self._assert_participant(player)

        self.winner_id = self._opponent_id(player)
        self.resigned_player_id = player
        self._finish(now)
        return True

    # --- TURN ACTIONS ---
    def preview_move(self, player: str, placements: list[Placement]) -> ScoredMove:
        """Validate and score against the current board and your rack without changing anything (also when it is not your turn)."""
        self._assert_in_progress()
        return validate_and_score(placements, self.board, self._seat(player).rack)

    def submit_move(
        self,
        player: str,
        placements: list[Placement],
        now: datetime,
        word_checker: Optional[WordChecker] = None,
    ) -> ScoredMove:
        """
        Attempt to place a word
        -----

        1. check the game is in progress and it is your turn
        2. validate + score the placement (no changes made if this fails)
        3. every formed word must pass the word_checker (if given), which returns the rejected words
        4. lock the tiles, update the rack (refilled from the bag), score, counters
        5. end the game if rack and bag are both empty, otherwise hand the turn to the opponent
        """
        self._assert_in_progress()
        self._assert_your_turn(player)

        seat = self._seat(player)
        scored = validate_and_score(placements, self.board, seat.rack)

        if word_checker is not None:
            rejected = word_checker([formed.word for formed in scored.words])
            if rejected:
                raise IllegalMoveError(
                    RejectionReason.NOT_A_WORD,
                    f"Not in the dictionary: {', '.join(rejected)}",
                )

        for placement in scored.placements:
            self.board.lock_letter(placement.square, placement.letter)
        _, rack = remove_letters(seat.rack, scored.letters_used)
        seat.rack, self.bag = refill(rack, self.bag)

        seat.score += scored.score
        seat.moves_count += 1
        seat.consecutive_passes = 0
        seat.pending = []
        if scored.score > seat.highest_word_score:
            seat.highest_word = scored.main_word.word
            seat.highest_word_score = scored.score

        self.history.append(
            MoveRecord(
                player_id=player,
                kind=MoveKind.PLAY,
                at=now,
                score=scored.score,
                words=[formed.word for formed in scored.words],
                tiles=[placement.to_notation() for placement in scored.placements],
            )
        )

        if not seat.rack and not self.bag:
            self._settle(now, finisher=player)
        else:
            self._next_turn(now)
        self._touch(now)
        return scored

    def pass_turn(self, player: str, now: datetime) -> None:
        self._assert_in_progress()
        self._assert_your_turn(player)
        self._register_pass(player, MoveKind.PASS, now)

    def time_expired(self, player: str, now: datetime) -> None:
        """The turn timer ran out: the player on turn forfeits the turn, exactly like a pass."""
        self._assert_in_progress()
        self._assert_your_turn(player)
        if self.timer_ends_at is not None and now < self.timer_ends_at:
            raise GameStateError(
                f"Turn timer has not expired yet (ends at {self.timer_ends_at.isoformat()})."
            )
        self._register_pass(player, MoveKind.TIMEOUT, now)

    def exchange_tiles(
        self,
        player: str,
        letters: list[str],
        now: datetime,
        rng: Optional[random.Random] = None,
    ) -> list[Tile]:
        """
        Swap rack tiles for tiles from the bag. Returns the new tiles.
        ---

        Does not hand over the turn, and leaves scores and pass counters as they are.
        """
        self._assert_in_progress()
        self._assert_your_turn(player)
        seat = self._seat(player)

        letters = [letter.upper() for letter in letters]
        if not letters:
            raise ExchangeNotAllowedError(ExchangeRejection.EMPTY_EXCHANGE)
        if seat.pending:
            raise ExchangeNotAllowedError(
                ExchangeRejection.PENDING_TILES,
                "Take back the tiles placed on the board before exchanging.",
            )
        if not tile_bag.can_exchange(self.bag):
            raise ExchangeNotAllowedError(
                ExchangeRejection.BAG_TOO_SMALL,
                f"Need at least {tile_bag.MIN_BAG_FOR_EXCHANGE} tiles in the bag, {len(self.bag)} left.",
            )
        if not has_letters(seat.rack, letters):
            raise ExchangeNotAllowedError(ExchangeRejection.TILES_NOT_IN_RACK)

        returned, kept = remove_letters(seat.rack, letters)
        replacements, self.bag = tile_bag.exchange(self.bag, returned, rng)
        seat.rack = kept + replacements

        self.history.append(
            MoveRecord(player_id=player, kind=MoveKind.EXCHANGE, at=now, tiles=letters)
        )
        self._touch(now)
        return replacements

    def stage_tiles(self, player: str, placements: list[Placement], now: datetime) -> None:
        """
        Store tiles a player has put on the board but not yet submitted.
        Does not need to be your turn: you can prepare your word while the opponent is thinking.
        """
        self._assert_in_progress()
        self._assert_participant(player)
        seat = self._seat(player)

        squares = [placement.square for placement in placements]
        if len(set(squares)) != len(squares):
            raise IllegalMoveError(RejectionReason.DUPLICATE_SQUARE)
        for square in squares:
            if not square.is_within_bounds():
                raise IllegalMoveError(RejectionReason.OUT_OF_BOUNDS)
            if self.board.is_locked(square):
                raise IllegalMoveError(RejectionReason.CELL_OCCUPIED)
        if not has_letters(seat.rack, [placement.letter for placement in placements]):
            raise IllegalMoveError(RejectionReason.TILES_NOT_IN_RACK)

        seat.pending = list(placements)
        self._touch(now)

    def clear_pending(self, player: str, now: datetime) -> None:
        self._assert_participant(player)
        self._seat(player).pending = []
        self._touch(now)

    # --- PAUSE HANDSHAKE ---
    def request_pause(self, player: str, now: datetime) -> None:
        self._assert_in_progress()
        self._assert_participant(player)
        if self.pause_status != PauseStatus.NONE:
            raise GameStateError(f"A pause was already requested by {self.pause_requested_by}.")
        self.pause_status = PauseStatus.REQUESTED
        self.pause_requested_by = player
        self._touch(now)

    def accept_pause(self, player: str, now: datetime) -> None:
        self._assert_pending_pause_answer(player)
        self.pause_status = PauseStatus.ACCEPTED
        self._change_status(Status.PAUSED)
        self._touch(now)

    def reject_pause(self, player: str, now: datetime) -> None:
        self._assert_pending_pause_answer(player)
        self.pause_status = PauseStatus.NONE
        self.pause_requested_by = None
        self._touch(now)

    def resume(self, player: str, now: datetime) -> None:
        """Back to playing. The player on turn gets a full turn duration again (time used before the pause is not credited)."""
        if self.status != Status.PAUSED:
            raise GameStateError(f"Game is not paused. status: {self.status}")
        self._assert_participant(player)
        self.pause_status = PauseStatus.NONE
        self.pause_requested_by = None
        self._restart_timer(now)
        self._change_status(Status.PLAYING)
        self._touch(now)

    # --- READ-ONLY VIEWS ---
    def bag_letter_counts(self) -> dict[str, int]:
        return tile_bag.remaining_by_letter(self.bag)

    def tiles_in_circulation(self) -> int:
        """Bag + racks + locked board tiles. Equal to TOTAL_TILES for the whole lifetime of a game."""
        return (
            len(self.bag)
            + sum(len(seat.rack) for seat in self.seats)
            + self.board.locked_count()
        )

    def summary(self) -> GameSummary:
        """Final-score view of a finished game (recomputed from the stored raw scores and leftover tiles)."""
        if self.status != Status.FINISHED:
            raise GameStateError(f"Game is not finished. status: {self.status}")

        remaining = [seat.remaining_tiles or [] for seat in self.seats]
        finisher_index = (
            self._seat_index(self.finished_by) if self.finished_by else None
        )
        settlements = settle([seat.score for seat in self.seats], remaining, finisher_index)
        return GameSummary(
            winner_id=self.winner_id,
            seats=[
                SeatSummary(
                    player_id=seat.player_id,
                    score=seat.score,
                    remaining_tiles_penalty=settlement.penalty,
                    final_score=settlement.final_score,
                    highest_word=seat.highest_word,
                    highest_word_score=seat.highest_word_score,
                    moves_count=seat.moves_count,
                )
                for seat, settlement in zip(self.seats, settlements)
            ],
            total_moves=sum(seat.moves_count for seat in self.seats),
            duration_minutes=duration_minutes(
                self.started_at or self.created_at, self.ended_at
            ),
            resigned=self.resigned_player_id is not None,
            resigned_player_id=self.resigned_player_id,
        )

    # -- PRIVATE HELPERS ---
    def _seat_index(self, player: str) -> int:
        for idx, seat in enumerate(self.seats):
            if seat.player_id == player:
                return idx
        raise GameStateError(f"Player {player!r} is not part of this game.")

    def _seat(self, player: str) -> Seat:
        return self.seats[self._seat_index(player)]

    def _opponent_id(self, player: str) -> Optional[str]:
        return self.seats[1 - self._seat_index(player)].player_id

    def _assert_participant(self, player: str) -> None:
        self._seat_index(player)

    def _assert_in_progress(self) -> None:
        if self.status != Status.PLAYING:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _assert_your_turn(self, player: str) -> None:
        """You must wait for your turn before placing a word / passing / exchanging."""
        self._assert_participant(player)
        if player != self.current_turn_player_id:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {self.current_turn_player_id} to make a move first."
            )

    def _assert_pending_pause_answer(self, player: str) -> None:
        """Only the player who did NOT ask for the pause can answer the request."""
        self._assert_in_progress()
        self._assert_participant(player)
        if self.pause_status != PauseStatus.REQUESTED:
            raise GameStateError("There is no pause request to answer.")
        if player == self.pause_requested_by:
            raise GameStateError("You cannot answer your own pause request.")

    def _register_pass(self, player: str, kind: MoveKind, now: datetime) -> None:
        seat = self._seat(player)
        seat.consecutive_passes += 1
        self.history.append(MoveRecord(player_id=player, kind=kind, at=now))

        if all(s.consecutive_passes >= PASSES_TO_END for s in self.seats):
            self._settle(now, finisher=None)
        else:
            self._next_turn(now)
        self._touch(now)

    def _next_turn(self, now: datetime) -> None:
        assert self.current_turn_player_id is not None
        self.current_turn_player_id = self._opponent_id(self.current_turn_player_id)
        self._restart_timer(now)

    def _restart_timer(self, now: datetime) -> None:
        self.timer_ends_at = now + timedelta(seconds=self.turn_duration_seconds)

    def _settle(self, now: datetime, finisher: Optional[str]) -> None:
        """
        End-of-game settlement (rack-out or pass-out).
        Leftover racks are recorded, the winner is the seat with the higher final score (None on a tie).
        Raw scores are kept as they are: the final scores are derived again by summary().
        """
        for seat in self.seats:
            seat.remaining_tiles = list(seat.rack)

        finisher_index = self._seat_index(finisher) if finisher else None
        settlements = settle(
            [seat.score for seat in self.seats],
            [seat.rack for seat in self.seats],
            finisher_index,
        )
        winner = winner_index(settlements)
        self.winner_id = self.seats[winner].player_id if winner is not None else None
        self.finished_by = finisher
        self._finish(now)

    def _finish(self, now: datetime) -> None:
        self.timer_ends_at = None
        self.pause_status = PauseStatus.NONE
        self.pause_requested_by = None
        self.ended_at = now
        self._change_status(Status.FINISHED)
        self._touch(now)

    def _change_status(self, new_status: Status) -> None:
        self.status = new_status

    def _touch(self, now: datetime) -> None:
        self.updated_at = now
