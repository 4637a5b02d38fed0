"""
Sanitized, client-facing views of room and auction state.

Views never expose timer handles and never reveal the high bidder's
connection id; the auction view carries the bidder's username instead.
"""

from pydantic import BaseModel

from auction.logic.enums import AuctionPhase, RoomPhase
from auction.logic.pool import PoolEntry
from auction.logic.state import Auction, Participant, Room


class TeamEntryView(BaseModel):
    name: str
    price_paid: int


class MemberView(BaseModel):
    id: str
    username: str
    balance: int
    team: list[TeamEntryView]
    skipped: bool


class AuctionView(BaseModel):
    auction_id: int
    position: str
    item: PoolEntry
    base_price: int
    current_bid: int
    highest_bidder: str | None
    time_left: int
    phase: AuctionPhase


class RoomView(BaseModel):
    id: str
    capacity: int
    phase: RoomPhase
    host: str | None
    members: list[MemberView]
    current_auction: AuctionView | None
    sold_count: int


def member_view(participant: Participant) -> MemberView:
    return MemberView(
        id=participant.participant_id,
        username=participant.username,
        balance=participant.balance,
        team=[TeamEntryView(name=t.name, price_paid=t.price_paid) for t in participant.team],
        skipped=participant.skipped_this_round,
    )


def auction_view(auction: Auction) -> AuctionView:
    return AuctionView(
        auction_id=auction.auction_id,
        position=auction.position,
        item=auction.item,
        base_price=auction.base_price,
        current_bid=auction.current_bid,
        highest_bidder=auction.highest_bidder_name,
        time_left=auction.remaining_seconds,
        phase=auction.phase,
    )


def room_view(room: Room) -> RoomView:
    return RoomView(
        id=room.room_id,
        capacity=room.capacity,
        phase=room.phase,
        host=room.host_id,
        members=[member_view(p) for p in room.members.values()],
        current_auction=auction_view(room.current_auction) if room.current_auction is not None else None,
        sold_count=len(room.sold_names),
    )
