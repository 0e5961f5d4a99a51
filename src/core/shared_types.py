"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING = "waiting"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


class PauseStatus(StrEnum):
    NONE = "none"
    REQUESTED = "requested"
    ACCEPTED = "accepted"


class TileType(StrEnum):
    NORMAL = "NORMAL"
    DL = "DL"
    TL = "TL"
    DW = "DW"
    TW = "TW"
    CENTER = "CENTER"


class Direction(StrEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class MoveKind(StrEnum):
    PLAY = "play"
    PASS = "pass"
    EXCHANGE = "exchange"
    TIMEOUT = "timeout"


class RejectionReason(StrEnum):
    """Why a proposed placement was refused. Shown to the submitting player."""

    TOO_FEW_TILES = "too_few_tiles"
    NOT_IN_LINE = "not_in_line"
    MUST_COVER_CENTER = "must_cover_center"
    NOT_CONNECTED = "not_connected"
    NOT_CONTIGUOUS = "not_contiguous"
    OUT_OF_BOUNDS = "out_of_bounds"
    DUPLICATE_SQUARE = "duplicate_square"
    CELL_OCCUPIED = "cell_occupied"
    TILES_NOT_IN_RACK = "tiles_not_in_rack"
    INVALID_WORD_SHAPE = "invalid_word_shape"
    NOT_A_WORD = "not_a_word"


class ExchangeRejection(StrEnum):
    BAG_TOO_SMALL = "bag_too_small"
    PENDING_TILES = "pending_tiles"
    TILES_NOT_IN_RACK = "tiles_not_in_rack"
    EMPTY_EXCHANGE = "empty_exchange"


class MatchmakingStatus(StrEnum):
    SEARCHING = "searching"
    MATCHED = "matched"
    CANCELLED = "cancelled"


class PresenceStatus(StrEnum):
    ONLINE = "online"
    IN_GAME = "in_game"
    OFFLINE = "offline"
