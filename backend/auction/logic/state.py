"""
Mutable room and auction state.

A Room is owned by the RoomRegistry and mutated only by the registry and the
AuctionEngine, always under the room's lock in the session layer. Timer
handles live on the values they guard (countdown and finalize on the Auction,
the next-item delay on the Room) so tearing a value down cancels its timers.
"""

from dataclasses import dataclass, field

from auction.logic.enums import AuctionPhase, RoomPhase
from auction.logic.pool import PoolEntry
from auction.logic.timer import AuctionTimer


@dataclass(frozen=True)
class TeamEntry:
    name: str
    price_paid: int


@dataclass
class Participant:
    """A room member identified by its connection id."""

    participant_id: str
    username: str
    balance: int
    team: list[TeamEntry] = field(default_factory=list)
    skipped_this_round: bool = False

    @property
    def team_size(self) -> int:
        return len(self.team)


@dataclass
class Auction:
    """State for the single item currently being sold in a room.

    auction_id is unique across the process, so a timer callback carrying it
    can tell whether the auction it was armed for is still the live one.
    """

    auction_id: int
    item: PoolEntry
    current_bid: int
    remaining_seconds: int
    highest_bidder_id: str | None = None
    highest_bidder_name: str | None = None  # kept for display if the bidder leaves
    phase: AuctionPhase = AuctionPhase.INITIAL_COUNTDOWN
    countdown_timer: AuctionTimer = field(default_factory=AuctionTimer, repr=False)
    finalize_timer: AuctionTimer = field(default_factory=AuctionTimer, repr=False)

    @property
    def position(self) -> str:
        return self.item.position

    @property
    def base_price(self) -> int:
        return self.item.base_price

    @property
    def has_bid(self) -> bool:
        return self.highest_bidder_id is not None

    def record_bid(self, participant: Participant, amount: int) -> None:
        """Raise the current bid and take the lead in one step."""
        if amount < self.current_bid:
            raise ValueError(f"bid {amount} below current bid {self.current_bid}")
        self.current_bid = amount
        self.highest_bidder_id = participant.participant_id
        self.highest_bidder_name = participant.username
        self.phase = AuctionPhase.AWAITING_FINALIZE

    def cancel_timers(self) -> None:
        self.countdown_timer.cancel()
        self.finalize_timer.cancel()


@dataclass
class Room:
    """One isolated auction session with a fixed membership cap.

    members preserves join order, which is also the display order and the
    order in which host duty passes on when the host leaves.
    """

    room_id: str
    capacity: int
    host_id: str | None = None
    phase: RoomPhase = RoomPhase.LOBBY
    members: dict[str, Participant] = field(default_factory=dict)  # participant_id -> Participant
    sold_names: set[str] = field(default_factory=set)
    current_auction: Auction | None = None
    next_item_timer: AuctionTimer = field(default_factory=AuctionTimer, repr=False)
    next_item_token: int | None = None  # generation of the pending next-item selection

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return self.member_count == 0

    @property
    def is_full(self) -> bool:
        return self.member_count >= self.capacity

    @property
    def usernames(self) -> list[str]:
        return [p.username for p in self.members.values()]

    def mark_sold(self, name: str) -> None:
        """Consume an item name; each name may be consumed once per room."""
        if name in self.sold_names:
            raise ValueError(f"{name!r} already consumed in room {self.room_id}")
        self.sold_names.add(name)

    def cancel_timers(self) -> None:
        self.next_item_timer.cancel()
        self.next_item_token = None
        if self.current_auction is not None:
            self.current_auction.cancel_timers()
