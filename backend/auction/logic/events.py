"""
Typed events produced by the auction engine.

Every event is broadcast to all members of the room it was produced for.
The session layer serializes them with auction.messaging.event_payload.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel

from auction.logic.enums import NoticeKind
from auction.logic.types import AuctionView, RoomView


class EventType(str, Enum):
    """Types of room events pushed to clients."""

    ROOM_UPDATE = "room_update"
    AUCTION_START = "auction_start"
    AUCTION_UPDATE = "auction_update"
    AUCTION_TICK = "auction_tick"
    CHAT = "chat"


class AuctionEvent(BaseModel):
    """Base class for all room events."""

    type: EventType


class RoomUpdateEvent(AuctionEvent):
    """Full sanitized room snapshot."""

    type: Literal[EventType.ROOM_UPDATE] = EventType.ROOM_UPDATE
    room: RoomView


class AuctionStartEvent(AuctionEvent):
    """A new item has been drawn and bidding is open."""

    type: Literal[EventType.AUCTION_START] = EventType.AUCTION_START
    auction: AuctionView


class AuctionUpdateEvent(AuctionEvent):
    """A bid was accepted."""

    type: Literal[EventType.AUCTION_UPDATE] = EventType.AUCTION_UPDATE
    auction: AuctionView


class AuctionTickEvent(AuctionEvent):
    type: Literal[EventType.AUCTION_TICK] = EventType.AUCTION_TICK
    time_left: int


class ChatEvent(AuctionEvent):
    """Free-text notice; player_name is set only for messages typed by a member."""

    type: Literal[EventType.CHAT] = EventType.CHAT
    kind: NoticeKind
    msg: str
    player_name: str | None = None
