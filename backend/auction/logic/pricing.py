"""
Bid increment rules.

The step is 5 below the threshold price (200) and 10 at or above it. The very
first bid on an item opens at the base price or one step above it; every later
bid must clear the current bid by at least one step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from auction.logic.exceptions import BidTooLowError, InvalidFirstBidError
from auction.logic.settings import AuctionSettings

if TYPE_CHECKING:
    from auction.logic.state import Auction


def bid_step(current_bid: int, settings: AuctionSettings | None = None) -> int:
    """Return the minimum increment above current_bid."""
    settings = settings or AuctionSettings()
    return settings.high_step if current_bid >= settings.step_threshold else settings.low_step


def opening_bids(base_price: int, settings: AuctionSettings | None = None) -> tuple[int, int]:
    """Return the two amounts accepted as the first bid on an item."""
    return base_price, base_price + bid_step(base_price, settings)


def minimum_next_bid(auction: Auction, settings: AuctionSettings | None = None) -> int:
    """Return the lowest amount the next bid on this auction may offer."""
    if not auction.has_bid:
        return auction.base_price
    return auction.current_bid + bid_step(auction.current_bid, settings)


def validate_bid_amount(auction: Auction, amount: int, settings: AuctionSettings | None = None) -> None:
    """Raise if amount breaks the increment rules for this auction."""
    if not auction.has_bid:
        allowed = opening_bids(auction.base_price, settings)
        if amount not in allowed:
            raise InvalidFirstBidError(f"First bid must be {allowed[0]} or {allowed[1]}")
        return

    minimum = minimum_next_bid(auction, settings)
    if amount < minimum:
        raise BidTooLowError(minimum)
