"""
String enum definitions for auction room concepts.
"""

from enum import Enum


class RoomPhase(str, Enum):
    """Room-level mode."""

    LOBBY = "lobby"
    RUNNING = "running"
    COMPLETE = "complete"  # no item left to offer


class AuctionPhase(str, Enum):
    """States of the per-item bidding protocol."""

    INITIAL_COUNTDOWN = "initial_countdown"
    AWAITING_FINALIZE = "awaiting_finalize"
    FINALIZING = "finalizing"


class TimeoutType(str, Enum):
    """Timer kinds that call back into the engine."""

    TICK = "tick"
    FINALIZE = "finalize"
    NEXT_ITEM = "next_item"


class NoticeKind(str, Enum):
    """Categories of chat-style notices broadcast to a room."""

    GAME_STARTED = "game_started"
    SKIP = "skip"
    NO_BIDS = "no_bids"
    PAUSED = "paused"
    WIN = "win"
    FINALIZE_FAILED = "finalize_failed"
    NO_WINNER = "no_winner"
    NO_ITEMS_FOR_POSITION = "no_items_for_position"
    AUCTION_COMPLETE = "auction_complete"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    MESSAGE = "message"  # free text from a member


class AuctionErrorCode(str, Enum):
    """Error codes returned to clients for rejected room and auction requests."""

    ROOM_EXISTS = "room_exists"
    INVALID_CAPACITY = "invalid_capacity"
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_FULL = "room_full"
    NO_ACTIVE_AUCTION = "no_active_auction"
    NOT_A_MEMBER = "not_a_member"
    ALREADY_SKIPPED = "already_skipped"
    TEAM_FULL = "team_full"
    INVALID_FIRST_BID = "invalid_first_bid"
    BID_TOO_LOW = "bid_too_low"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NOT_HOST = "not_host"
    ALREADY_STARTED = "already_started"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
