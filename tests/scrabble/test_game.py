"""Unit tests for /src/scrabble/game.py"""

import random
from collections import Counter
from copy import deepcopy
from datetime import datetime, timedelta

import pytest

from src.core.exceptions import (
    ExchangeNotAllowedError,
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.models import GameModel
from src.core.shared_types import (
    ExchangeRejection,
    MoveKind,
    PauseStatus,
    RejectionReason,
    Status,
)
from src.scrabble.bag import full_bag
from src.scrabble.board import Board
from src.scrabble.game import (
    JOIN_CODE_ALPHABET,
    JOIN_CODE_LENGTH,
    Game,
    Seat,
    generate_join_code,
)
from src.scrabble.moves import Placement
from src.scrabble.square import Square
from src.scrabble.tiles import (
    LETTER_DISTRIBUTION,
    RACK_SIZE,
    TOTAL_TILES,
    Tile,
    letters_from_tiles,
    tiles_from_letters,
)

TURN = timedelta(seconds=300)
CAT = [Placement.from_notation(n) for n in ("7,6,C", "7,7,A", "7,8,T")]


def bag_without(*racks: str) -> list[Tile]:
    """A full (unshuffled) bag minus the letters on the given racks."""
    bag = full_bag()
    for letter in "".join(racks):
        bag.remove(Tile.from_letter(letter))
    return bag


def letter_counts(game: Game) -> Counter:
    """Every tile in circulation: bag, racks, and board."""
    letters = [tile.letter for tile in game.bag]
    letters += [tile.letter for seat in game.seats for tile in seat.rack]
    letters += [game.board.letter(square) for square in game.board.locked_squares()]
    return Counter(letters)


@pytest.fixture
def game(now: datetime) -> Game:
    """Game in progress between alice (on turn) and bob, with known racks."""
    return Game(
        board=Board.create(),
        bag=bag_without("CATERSQ", "DOGEARS"),
        seats=[
            Seat("alice", tiles_from_letters("CATERSQ")),
            Seat("bob", tiles_from_letters("DOGEARS")),
        ],
        status=Status.PLAYING,
        current_turn_player_id="alice",
        timer_ends_at=now + TURN,
        created_at=now,
        started_at=now,
    )


@pytest.fixture
def waiting_game(now: datetime, rng: random.Random) -> Game:
    return Game.new_game("alice", now, rng=rng)


# -- CREATION LOGIC --
def test_new_game(waiting_game: Game, now: datetime) -> None:
    assert waiting_game.status == Status.WAITING
    assert waiting_game.player_ids == ["alice"]
    assert waiting_game.seats[1].player_id is None
    # both racks are dealt right away
    assert [len(seat.rack) for seat in waiting_game.seats] == [RACK_SIZE, RACK_SIZE]
    assert len(waiting_game.bag) == TOTAL_TILES - 2 * RACK_SIZE
    assert waiting_game.board.is_empty()
    assert waiting_game.current_turn_player_id is None
    assert waiting_game.timer_ends_at is None
    assert waiting_game.join_code is None
    assert waiting_game.created_at == now
    assert letter_counts(waiting_game) == Counter(LETTER_DISTRIBUTION)


def test_new_private_game(now: datetime, rng: random.Random) -> None:
    game = Game.new_game(
        "alice", now, is_private=True, join_code_ttl=timedelta(minutes=30), rng=rng
    )
    assert game.is_private
    assert game.join_code is not None
    assert len(game.join_code) == JOIN_CODE_LENGTH
    assert game.join_code_expires_at == now + timedelta(minutes=30)


def test_join_code_alphabet(rng: random.Random) -> None:
    for _ in range(50):
        code = generate_join_code(rng)
        assert len(code) == JOIN_CODE_LENGTH
        assert set(code) <= set(JOIN_CODE_ALPHABET)


def test_model_roundtrip(game: Game, now: datetime) -> None:
    """Game --> GameModel --> Game gives back the same game."""
    game.submit_move("alice", CAT, now)
    game.stage_tiles("bob", [Placement.from_notation("8,6,O")], now)

    model = game.to_model()
    assert isinstance(model, GameModel)
    assert model.board.split("/")[7] == "......CAT......"
    assert model.seats[1].pending == ["8,6,O"]
    assert Game.from_model(model) == game


def test_invalid_status_in_model(game: Game) -> None:
    model = game.to_model()
    model.status = "in_progress"
    with pytest.raises(GameStateError):
        Game.from_model(model)


def test_model_needs_two_seats(game: Game) -> None:
    model = game.to_model()
    model.seats = model.seats[:1]
    with pytest.raises(GameStateError):
        Game.from_model(model)


# -- JOINING --
def test_register_second_player(waiting_game: Game, now: datetime, rng: random.Random) -> None:
    later = now + timedelta(minutes=2)
    waiting_game.register_player("bob", later, rng)

    assert waiting_game.status == Status.PLAYING
    assert waiting_game.player_ids == ["alice", "bob"]
    assert waiting_game.current_turn_player_id in ("alice", "bob")
    assert waiting_game.timer_ends_at == later + TURN
    assert waiting_game.started_at == later


def test_starting_player_is_random(now: datetime) -> None:
    starters = set()
    for seed in range(30):
        game = Game.new_game("alice", now, rng=random.Random(seed))
        game.register_player("bob", now, random.Random(seed))
        starters.add(game.current_turn_player_id)
    assert starters == {"alice", "bob"}


def test_cannot_join_own_game(waiting_game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        waiting_game.register_player("alice", now)
    assert waiting_game.status == Status.WAITING


def test_cannot_join_started_game(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.register_player("carol", now)
    assert game.player_ids == ["alice", "bob"]


def test_joinable_with_code(now: datetime, rng: random.Random) -> None:
    game = Game.new_game("alice", now, is_private=True, rng=rng)
    assert game.join_code is not None
    assert game.is_joinable_with_code(game.join_code, now)
    assert game.is_joinable_with_code(game.join_code.lower(), now)
    assert not game.is_joinable_with_code("XXXXXX" if game.join_code != "XXXXXX" else "YYYYYY", now)
    # expired
    assert game.join_code_expires_at is not None
    assert not game.is_joinable_with_code(game.join_code, game.join_code_expires_at)
    # already started
    game.register_player("bob", now, rng)
    assert not game.is_joinable_with_code(game.join_code, now)


def test_public_game_has_no_code(waiting_game: Game, now: datetime) -> None:
    assert not waiting_game.is_joinable_with_code("ABC123", now)


# -- PLACING WORDS --
def test_submit_move(game: Game, now: datetime) -> None:
    later = now + timedelta(seconds=30)
    bag_before = len(game.bag)

    scored = game.submit_move("alice", CAT, later)

    assert scored.score == 10
    alice = game.seats[0]
    assert alice.score == 10
    assert alice.moves_count == 1
    assert alice.highest_word == "CAT"
    assert alice.highest_word_score == 10
    # used tiles replaced from the bag
    assert len(alice.rack) == RACK_SIZE
    assert len(game.bag) == bag_before - 3
    assert [game.board.letter(Square(7, col)) for col in range(6, 9)] == ["C", "A", "T"]
    # turn handed over, with a fresh timer
    assert game.current_turn_player_id == "bob"
    assert game.timer_ends_at == later + TURN
    assert game.history[-1].kind == MoveKind.PLAY
    assert game.history[-1].words == ["CAT"]
    assert game.history[-1].tiles == ["7,6,C", "7,7,A", "7,8,T"]
    assert letter_counts(game) == Counter(LETTER_DISTRIBUTION)


def test_bag_letter_counts(game: Game, now: datetime) -> None:
    counts = game.bag_letter_counts()
    # the only Q is on alice's rack, two of the four S tiles are on racks
    assert counts["Q"] == 0
    assert counts["S"] == LETTER_DISTRIBUTION["S"] - 2
    assert sum(counts.values()) == len(game.bag)

    game.submit_move("alice", CAT, now)
    assert sum(game.bag_letter_counts().values()) == len(game.bag)


def test_turns_alternate(
game: Game, now: datetime) -> None:
    game.submit_move("alice", CAT, now)
    # bob hangs O and D below the C: COD
    game.submit_move("bob", [Placement.from_notation(n) for n in ("8,6,O", "9,6,D")], now)
    assert game.current_turn_player_id == "alice"
    assert game.seats[1].score > 0
    assert game.board.locked_count() == 5
    assert game.tiles_in_circulation() == TOTAL_TILES


def test_not_your_turn(game: Game, now: datetime) -> None:
    before = deepcopy(game)
    with pytest.raises(NotYourTurnError):
        game.submit_move("bob", [Placement.from_notation(n) for n in ("7,7,D", "7,8,O")], now)
    assert game == before


def test_outsider_cannot_move(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.submit_move("carol", CAT, now)


def test_illegal_move_changes_nothing(game: Game, now: datetime) -> None:
    before = deepcopy(game)
    with pytest.raises(IllegalMoveError) as exc:
        game.submit_move("alice", [Placement.from_notation(n) for n in ("0,0,C", "0,1,A")], now)
    assert exc.value.reason == RejectionReason.MUST_COVER_CENTER
    assert game == before


def test_rejected_by_dictionary(game: Game, now: datetime) -> None:
    before = deepcopy(game)

    def reject_everything(words: list[str]) -> list[str]:
        return words

    with pytest.raises(IllegalMoveError) as exc:
        game.submit_move("alice", CAT, now, word_checker=reject_everything)
    assert exc.value.reason == RejectionReason.NOT_A_WORD
    assert "CAT" in str(exc.value)
    assert game == before


def test_accepted_by_dictionary(game: Game, now: datetime) -> None:
    checked: list[list[str]] = []

    def accept_everything(words: list[str]) -> list[str]:
        checked.append(words)
        return []

    game.submit_move("alice", CAT, now, word_checker=accept_everything)
    assert checked == [["CAT"]]


def test_move_while_waiting(waiting_game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        waiting_game.submit_move("alice", CAT, now)


def test_preview_move_changes_nothing(game: Game) -> None:
    before = deepcopy(game)
    scored = game.preview_move("bob", [Placement.from_notation(n) for n in ("7,7,D", "7,8,O")])
    assert scored.score == 6
    assert game == before


# -- PASSING & TIMEOUTS --
def test_pass_turn(game: Game, now: datetime) -> None:
    game.pass_turn("alice", now)
    assert game.current_turn_player_id == "bob"
    assert game.seats[0].consecutive_passes == 1
    assert game.history[-1].kind == MoveKind.PASS
    assert game.status == Status.PLAYING


def test_play_resets_pass_counter(game: Game, now: datetime) -> None:
    game.pass_turn("alice", now)
    game.pass_turn("bob", now)
    game.submit_move("alice", CAT, now)
    assert game.seats[0].consecutive_passes == 0
    assert game.seats[1].consecutive_passes == 1


def test_two_passes_each_end_the_game(game: Game, now: datetime) -> None:
    """Pass-out: alice holds CATERSQ (18 points), bob DOGEARS (9 points). Lowest leftover wins."""
    for player in ("alice", "bob", "alice"):
        game.pass_turn(player, now)
    assert game.status == Status.PLAYING

    end = now + timedelta(minutes=5)
    game.pass_turn("bob", end)

    assert game.status == Status.FINISHED
    assert game.ended_at == end
    assert game.timer_ends_at is None
    assert game.winner_id == "bob"
    assert game.finished_by is None

    summary = game.summary()
    assert [seat.final_score for seat in summary.seats] == [-18, -9]
    assert [seat.remaining_tiles_penalty for seat in summary.seats] == [18, 9]
    assert summary.winner_id == "bob"
    assert summary.duration_minutes == 5
    assert not summary.resigned


def test_time_expired(game: Game, now: datetime) -> None:
    assert game.timer_ends_at is not None
    with pytest.raises(GameStateError):
        game.time_expired("alice", game.timer_ends_at - timedelta(seconds=1))
    assert game.current_turn_player_id == "alice"

    game.time_expired("alice", game.timer_ends_at)
    assert game.current_turn_player_id == "bob"
    assert game.seats[0].consecutive_passes == 1
    assert game.history[-1].kind == MoveKind.TIMEOUT


def test_time_expired_for_wrong_player(game: Game) -> None:
    assert game.timer_ends_at is not None
    with pytest.raises(NotYourTurnError):
        game.time_expired("bob", game.timer_ends_at)


# -- END OF GAME BY RACK-OUT --
def test_rack_out_settlement(now: datetime) -> None:
    """Empty bag, alice goes out with AT (4 points) and receives bob's QZ (20 points)."""
    game = Game(
        board=Board.create(),
        bag=[],
        seats=[Seat("alice", tiles_from_letters("AT")), Seat("bob", tiles_from_letters("QZ"))],
        status=Status.PLAYING,
        current_turn_player_id="alice",
        timer_ends_at=now + TURN,
        started_at=now,
    )
    game.submit_move("alice", [Placement.from_notation(n) for n in ("7,7,A", "7,8,T")], now)

    assert game.status == Status.FINISHED
    assert game.finished_by == "alice"
    assert game.winner_id == "alice"
    # raw scores are kept, final scores derived by summary()
    assert [seat.score for seat in game.seats] == [4, 0]
    assert letters_from_tiles(game.seats[1].remaining_tiles or []) == "QZ"

    summary = game.summary()
    assert [seat.final_score for seat in summary.seats] == [24, -20]
    assert summary.total_moves == 1


def test_summary_of_running_game(game: Game) -> None:
    with pytest.raises(GameStateError):
        game.summary()


def test_summary_survives_the_model_roundtrip(game: Game, now: datetime) -> None:
    for player in ("alice", "bob", "alice", "bob"):
        game.pass_turn(player, now)
    restored = Game.from_model(game.to_model())
    assert restored.summary() == game.summary()


# -- EXCHANGE --
def test_exchange_tiles(game: Game, now: datetime, rng: random.Random) -> None:
    bag_before = len(game.bag)
    new_tiles = game.exchange_tiles("alice", ["q", "C"], now, rng)

    assert len(new_tiles) == 2
    assert len(game.seats[0].rack) == RACK_SIZE
    assert len(game.bag) == bag_before
    # still alice's turn, nothing else changed
    assert game.current_turn_player_id == "alice"
    assert game.seats[0].consecutive_passes == 0
    assert game.seats[0].score == 0
    assert game.history[-1].kind == MoveKind.EXCHANGE
    assert game.history[-1].tiles == ["Q", "C"]
    assert letter_counts(game) == Counter(LETTER_DISTRIBUTION)


@pytest.mark.parametrize(
    "letters, reason",
    [
        ([], ExchangeRejection.EMPTY_EXCHANGE),
        (["Z"], ExchangeRejection.TILES_NOT_IN_RACK),
        (["Q", "Q"], ExchangeRejection.TILES_NOT_IN_RACK),
    ],
)
def test_exchange_refused(
    game: Game, now: datetime, letters: list[str], reason: ExchangeRejection
) -> None:
    before = deepcopy(game)
    with pytest.raises(ExchangeNotAllowedError) as exc:
        game.exchange_tiles("alice", letters, now)
    assert exc.value.reason == reason
    assert game == before


def test_exchange_with_small_bag(game: Game, now: datetime) -> None:
    game.bag = game.bag[:6]
    with pytest.raises(ExchangeNotAllowedError) as exc:
        game.exchange_tiles("alice", ["Q"], now)
    assert exc.value.reason == ExchangeRejection.BAG_TOO_SMALL


def test_exchange_with_pending_tiles(game: Game, now: datetime) -> None:
    game.stage_tiles("alice", [Placement.from_notation("7,7,Q")], now)
    with pytest.raises(ExchangeNotAllowedError) as exc:
        game.exchange_tiles("alice", ["Q"], now)
    assert exc.value.reason == ExchangeRejection.PENDING_TILES


def test_exchange_not_your_turn(game: Game, now: datetime) -> None:
    with pytest.raises(NotYourTurnError):
        game.exchange_tiles("bob", ["D"], now)


# -- STAGED (PENDING) TILES --
def test_stage_tiles_out_of_turn(game: Game, now: datetime) -> None:
    """bob may prepare his word while alice is thinking."""
    staged = [Placement.from_notation(n) for n in ("7,7,D", "7,8,O")]
    game.stage_tiles("bob", staged, now)
    assert game.seats[1].pending == staged

    game.clear_pending("bob", now)
    assert game.seats[1].pending == []


@pytest.mark.parametrize(
    "notations, reason",
    [
        (["7,7,Z"], RejectionReason.TILES_NOT_IN_RACK),
        (["7,7,D", "7,7,O"], RejectionReason.DUPLICATE_SQUARE),
        (["7,15,D"], RejectionReason.OUT_OF_BOUNDS),
    ],
)
def test_stage_tiles_refused(
    game: Game, now: datetime, notations: list[str], reason: RejectionReason
) -> None:
    with pytest.raises(IllegalMoveError) as exc:
        game.stage_tiles("bob", [Placement.from_notation(n) for n in notations], now)
    assert exc.value.reason == reason


def test_stage_on_locked_square(game: Game, now: datetime) -> None:
    game.submit_move("alice", CAT, now)
    with pytest.raises(IllegalMoveError) as exc:
        game.stage_tiles("bob", [Placement.from_notation("7,7,D")], now)
    assert exc.value.reason == RejectionReason.CELL_OCCUPIED


def test_submitting_clears_pending(game: Game, now: datetime) -> None:
    game.stage_tiles("alice", CAT, now)
    game.submit_move("alice", CAT, now)
    assert game.seats[0].pending == []


# -- PAUSE HANDSHAKE --
def test_pause_and_resume(game: Game, now: datetime) -> None:
    game.request_pause("alice", now)
    assert game.pause_status == PauseStatus.REQUESTED
    assert game.pause_requested_by == "alice"
    assert game.status == Status.PLAYING

    game.accept_pause("bob", now)
    assert game.status == Status.PAUSED
    assert game.pause_status == PauseStatus.ACCEPTED

    # nothing can be played while paused
    with pytest.raises(GameStateError):
        game.submit_move("alice", CAT, now)
    with pytest.raises(GameStateError):
        game.pass_turn("alice", now)

    later = now + timedelta(minutes=10)
    game.resume("bob", later)
    assert game.status == Status.PLAYING
    assert game.pause_status == PauseStatus.NONE
    assert game.pause_requested_by is None
    # the player on turn gets a full turn again
    assert game.current_turn_player_id == "alice"
    assert game.timer_ends_at == later + TURN


def test_reject_pause(game: Game, now: datetime) -> None:
    game.request_pause("bob", now)
    game.reject_pause("alice", now)
    assert game.status == Status.PLAYING
    assert game.pause_status == PauseStatus.NONE
    assert game.pause_requested_by is None


def test_cannot_answer_own_pause_request(game: Game, now: datetime) -> None:
    game.request_pause("alice", now)
    with pytest.raises(GameStateError):
        game.accept_pause("alice", now)
    with pytest.raises(GameStateError):
        game.reject_pause("alice", now)


def test_only_one_pause_request(game: Game, now: datetime) -> None:
    game.request_pause("alice", now)
    with pytest.raises(GameStateError):
        game.request_pause("bob", now)


def test_no_pause_request_to_answer(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.accept_pause("bob", now)


def test_resume_running_game(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.resume("alice", now)


# -- RESIGN & CANCEL --
def test_resign(game: Game, now: datetime) -> None:
    assert game.resign("alice", now) is True
    assert game.status == Status.FINISHED
    assert game.winner_id == "bob"
    assert game.resigned_player_id == "alice"

    summary = game.summary()
    assert summary.resigned
    assert summary.resigned_player_id == "alice"


def test_resign_twice(game: Game, now: datetime) -> None:
    game.resign("alice", now)
    finished = deepcopy(game)
    assert game.resign("bob", now + timedelta(minutes=1)) is False
    assert game == finished


def test_resign_while_paused(game: Game, now: datetime) -> None:
    game.request_pause("alice", now)
    game.accept_pause("bob", now)
    assert game.resign("bob", now)
    assert game.winner_id == "alice"
    assert game.pause_status == PauseStatus.NONE


def test_resign_waiting_game(waiting_game: Game, now: datetime) -> None:
    assert waiting_game.resign("alice", now)
    assert waiting_game.status == Status.FINISHED
    assert waiting_game.winner_id is None


def test_outsider_cannot_resign(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.resign("carol", now)


def test_cancel_waiting_game(waiting_game: Game, now: datetime) -> None:
    assert waiting_game.cancel("alice", now) is True
    assert waiting_game.status == Status.FINISHED
    assert waiting_game.winner_id is None
    # already finished: nothing to do
    assert waiting_game.cancel("alice", now) is False


def test_cannot_cancel_started_game(game: Game, now: datetime) -> None:
    with pytest.raises(GameStateError):
        game.cancel("alice", now)
    assert game.status == Status.PLAYING


def test_finished_game_refuses_turn_actions(game: Game, now: datetime) -> None:
    game.resign("alice", now)
    with pytest.raises(GameStateError):
        game.pass_turn("bob", now)
    with pytest.raises(GameStateError):
        game.request_pause("bob", now)
