"""
Per-room auction state machine.

The engine picks items, validates bids, and settles each auction exactly once.
Every public method is a synchronous transition that mutates a Room and
returns the events to broadcast. Timers are armed on the Auction (or Room)
and call back through on_timeout; the session layer takes the room lock and
re-enters the engine via handle_timeout, which first checks that the
callback's generation id still names the live auction.

Protocol per item:
- initial countdown: ticks once per second from 45; a bid starts the
  finalize timer while the countdown keeps running
- countdown hits zero with no bid: the item is consumed and skipped
- countdown hits zero after a bid: bidding is announced as paused and the
  pending finalize timer closes the round
- every accepted bid restarts the 20 second finalize timer
- finalize settles the item and schedules the next selection
"""

from __future__ import annotations

import itertools
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from auction.logic.enums import AuctionPhase, NoticeKind, RoomPhase, TimeoutType
from auction.logic.events import (
    AuctionEvent,
    AuctionStartEvent,
    AuctionTickEvent,
    AuctionUpdateEvent,
    ChatEvent,
    RoomUpdateEvent,
)
from auction.logic.exceptions import (
    AlreadySkippedError,
    AlreadyStartedError,
    InsufficientBalanceError,
    NoActiveAuctionError,
    NotAMemberError,
    NotEnoughPlayersError,
    NotHostError,
    TeamFullError,
)
from auction.logic.pricing import validate_bid_amount
from auction.logic.selection import has_unsold_items, pick_item, pick_position
from auction.logic.settings import AuctionSettings
from auction.logic.state import Auction, Participant, Room, TeamEntry
from auction.logic.types import auction_view, room_view

if TYPE_CHECKING:
    from auction.logic.pool import PlayerPool

logger = structlog.get_logger()

# Callback type: (room_id, timeout_type, generation) -> Awaitable[None]
TimeoutCallback = Callable[[str, TimeoutType, int], Awaitable[None]]


class AuctionEngine:
    """Drive the auctions of every room against one shared player pool.

    The engine holds no per-room state of its own besides the generation
    counter; everything lives on the Room passed in.
    """

    def __init__(
        self,
        pool: PlayerPool,
        on_timeout: TimeoutCallback,
        settings: AuctionSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._pool = pool
        self._on_timeout = on_timeout
        self._settings = settings or AuctionSettings()
        self._rng = rng or random.Random()  # noqa: S311
        self._generations = itertools.count(1)

    @property
    def settings(self) -> AuctionSettings:
        return self._settings

    # --- Requests ---

    def start_game(self, room: Room, requester_id: str) -> list[AuctionEvent]:
        """Move a lobby room to running and open the first auction."""
        if room.host_id != requester_id:
            raise NotHostError
        if room.phase is not RoomPhase.LOBBY:
            raise AlreadyStartedError
        if room.member_count < self._settings.min_players_to_start:
            raise NotEnoughPlayersError(
                f"At least {self._settings.min_players_to_start} players are needed to start"
            )

        room.phase = RoomPhase.RUNNING
        logger.info("game started", room_id=room.room_id, members=room.member_count)
        events: list[AuctionEvent] = [
            RoomUpdateEvent(room=room_view(room)),
            ChatEvent(kind=NoticeKind.GAME_STARTED, msg="The auction has started"),
        ]
        events.extend(self.select_next(room))
        return events

    def place_bid(self, room: Room, participant_id: str, amount: int) -> list[AuctionEvent]:
        auction = room.current_auction
        if auction is None or auction.phase is AuctionPhase.FINALIZING:
            raise NoActiveAuctionError
        participant = room.members.get(participant_id)
        if participant is None:
            raise NotAMemberError
        if participant.skipped_this_round:
            raise AlreadySkippedError
        if participant.team_size >= self._settings.max_team_size:
            raise TeamFullError
        validate_bid_amount(auction, amount, self._settings)
        if amount > participant.balance:
            raise InsufficientBalanceError

        auction.record_bid(participant, amount)
        self._arm_finalize(room, auction)
        logger.info(
            "bid accepted",
            room_id=room.room_id,
            player=auction.item.name,
            bidder=participant.username,
            amount=amount,
        )
        return [AuctionUpdateEvent(auction=auction_view(auction))]

    def skip(self, room: Room, participant_id: str) -> list[AuctionEvent]:
        auction = room.current_auction
        if auction is None or auction.phase is AuctionPhase.FINALIZING:
            raise NoActiveAuctionError
        participant = room.members.get(participant_id)
        if participant is None:
            raise NotAMemberError

        participant.skipped_this_round = True
        return [ChatEvent(kind=NoticeKind.SKIP, msg=f"{participant.username} skipped {auction.item.name}")]

    # --- Selection ---

    def select_next(self, room: Room) -> list[AuctionEvent]:
        """Draw the next item, or close the room if nothing is left to sell."""
        if room.phase is not RoomPhase.RUNNING or room.current_auction is not None:
            return []

        for participant in room.members.values():
            participant.skipped_this_round = False

        if not has_unsold_items(self._pool, room.sold_names) or not self._anyone_can_bid(room):
            return self._complete(room)

        position = pick_position(self._pool, self._rng)
        item = pick_item(self._pool, position, room.sold_names, self._rng)
        if item is None:
            self._schedule_next(room)
            return [ChatEvent(kind=NoticeKind.NO_ITEMS_FOR_POSITION, msg=f"No players left for position {position}")]

        auction = Auction(
            auction_id=next(self._generations),
            item=item,
            current_bid=item.base_price,
            remaining_seconds=self._settings.initial_countdown_seconds,
        )
        room.current_auction = auction
        self._arm_countdown(room, auction)
        logger.info("auction opened", room_id=room.room_id, player=item.name, position=position)
        return [
            AuctionStartEvent(auction=auction_view(auction)),
            RoomUpdateEvent(room=room_view(room)),
        ]

    # --- Timers ---

    def handle_timeout(self, room: Room, timeout_type: TimeoutType, generation: int) -> list[AuctionEvent]:
        """Apply a timer firing; stale firings return no events."""
        if timeout_type is TimeoutType.NEXT_ITEM:
            if room.next_item_token != generation:
                return []
            room.next_item_token = None
            return self.select_next(room)

        auction = room.current_auction
        if auction is None or auction.auction_id != generation or auction.phase is AuctionPhase.FINALIZING:
            return []
        if timeout_type is TimeoutType.TICK:
            return self._on_tick(room, auction)
        return self._finalize(room, auction)

    def _on_tick(self, room: Room, auction: Auction) -> list[AuctionEvent]:
        auction.remaining_seconds = max(0, auction.remaining_seconds - 1)
        events: list[AuctionEvent] = [AuctionTickEvent(time_left=auction.remaining_seconds)]
        if auction.remaining_seconds > 0:
            self._arm_countdown(room, auction)
            return events

        auction.countdown_timer.cancel()
        if not auction.has_bid:
            events.extend(self._abandon(room, auction))
            return events

        events.append(ChatEvent(kind=NoticeKind.PAUSED, msg="Bidding paused, finalizing soon"))
        if not auction.finalize_timer.is_active:
            self._arm_finalize(room, auction)
        return events

    def _abandon(self, room: Room, auction: Auction) -> list[AuctionEvent]:
        """Consume an item nobody bid on and move to the next one."""
        auction.cancel_timers()
        room.current_auction = None
        room.mark_sold(auction.item.name)
        self._schedule_next(room)
        logger.info("auction skipped, no bids", room_id=room.room_id, player=auction.item.name)
        return [
            ChatEvent(kind=NoticeKind.NO_BIDS, msg=f"No bids for {auction.item.name}, skipped"),
            RoomUpdateEvent(room=room_view(room)),
        ]

    def _finalize(self, room: Room, auction: Auction) -> list[AuctionEvent]:
        auction.phase = AuctionPhase.FINALIZING
        auction.cancel_timers()
        room.current_auction = None
        events = self._settle(room, auction)
        events.append(RoomUpdateEvent(room=room_view(room)))
        self._schedule_next(room)
        return events

    def _settle(self, room: Room, auction: Auction) -> list[AuctionEvent]:
        """Award the item to the high bidder if they can still pay for it.

        The item is consumed whether or not it is awarded.
        """
        name = auction.item.name
        price = auction.current_bid
        room.mark_sold(name)

        if auction.highest_bidder_id is None:
            return [ChatEvent(kind=NoticeKind.NO_WINNER, msg=f"No winner for {name}")]

        winner = room.members.get(auction.highest_bidder_id)
        if winner is None or winner.balance < price or winner.team_size >= self._settings.max_team_size:
            logger.warning(
                "could not finalize",
                room_id=room.room_id,
                player=name,
                bidder=auction.highest_bidder_name,
                price=price,
                still_member=winner is not None,
            )
            return [
                ChatEvent(
                    kind=NoticeKind.FINALIZE_FAILED,
                    msg=f"Could not finalize {name} for {auction.highest_bidder_name}",
                )
            ]

        winner.balance -= price
        winner.team.append(TeamEntry(name=name, price_paid=price))
        logger.info("player sold", room_id=room.room_id, player=name, winner=winner.username, price=price)
        return [ChatEvent(kind=NoticeKind.WIN, msg=f"{winner.username} bought {name} for {price}")]

    def _complete(self, room: Room) -> list[AuctionEvent]:
        room.phase = RoomPhase.COMPLETE
        room.cancel_timers()
        logger.info("auction complete", room_id=room.room_id, sold=len(room.sold_names))
        return [
            ChatEvent(kind=NoticeKind.AUCTION_COMPLETE, msg="Auction complete"),
            RoomUpdateEvent(room=room_view(room)),
        ]

    def _anyone_can_bid(self, room: Room) -> bool:
        return any(self._can_bid(p) for p in room.members.values())

    def _can_bid(self, participant: Participant) -> bool:
        return participant.team_size < self._settings.max_team_size

    # --- Timer arming ---

    def _arm_countdown(self, room: Room, auction: Auction) -> None:
        room_id, generation = room.room_id, auction.auction_id
        auction.countdown_timer.start(
            self._settings.tick_seconds,
            lambda: self._on_timeout(room_id, TimeoutType.TICK, generation),
        )

    def _arm_finalize(self, room: Room, auction: Auction) -> None:
        room_id, generation = room.room_id, auction.auction_id
        auction.finalize_timer.start(
            self._settings.finalize_seconds,
            lambda: self._on_timeout(room_id, TimeoutType.FINALIZE, generation),
        )

    def _schedule_next(self, room: Room) -> None:
        room_id, token = room.room_id, next(self._generations)
        room.next_item_token = token
        room.next_item_timer.start(
            self._settings.next_item_delay_seconds,
            lambda: self._on_timeout(room_id, TimeoutType.NEXT_ITEM, token),
        )
