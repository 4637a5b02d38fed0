"""Typed domain exceptions for room and auction rule violations.

Registry and engine code raises subclasses of AuctionRuleError instead of
returning error values. The session layer catches them at the request
boundary and converts them into failed acknowledgements, so a rejected
request never reaches the event loop as an unhandled fault.
"""

from auction.logic.enums import AuctionErrorCode


class AuctionRuleError(Exception):
    """Base exception for rejected room and auction requests.

    Each subclass pins the wire error code sent back to the caller.
    """

    code: AuctionErrorCode
    default_message = "Request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class RoomExistsError(AuctionRuleError):
    code = AuctionErrorCode.ROOM_EXISTS
    default_message = "Room exists"


class InvalidCapacityError(AuctionRuleError):
    code = AuctionErrorCode.INVALID_CAPACITY
    default_message = "Capacity must be between 3 and 6"


class RoomNotFoundError(AuctionRuleError):
    code = AuctionErrorCode.ROOM_NOT_FOUND
    default_message = "Room not found"


class RoomFullError(AuctionRuleError):
    code = AuctionErrorCode.ROOM_FULL
    default_message = "Room is full"


class NoActiveAuctionError(AuctionRuleError):
    code = AuctionErrorCode.NO_ACTIVE_AUCTION
    default_message = "No active auction"


class NotAMemberError(AuctionRuleError):
    code = AuctionErrorCode.NOT_A_MEMBER
    default_message = "You are not a member of this room"


class AlreadySkippedError(AuctionRuleError):
    code = AuctionErrorCode.ALREADY_SKIPPED
    default_message = "You skipped this player"


class TeamFullError(AuctionRuleError):
    code = AuctionErrorCode.TEAM_FULL
    default_message = "Your team is full"


class InvalidFirstBidError(AuctionRuleError):
    code = AuctionErrorCode.INVALID_FIRST_BID
    default_message = "Invalid first bid"


class BidTooLowError(AuctionRuleError):
    """Raised for a follow-up bid below the minimum increment.

    Attributes:
        minimum: The smallest amount that would have been accepted.

    """

    code = AuctionErrorCode.BID_TOO_LOW

    def __init__(self, minimum: int) -> None:
        self.minimum = minimum
        super().__init__(f"Bid too low, minimum is {minimum}")


class InsufficientBalanceError(AuctionRuleError):
    code = AuctionErrorCode.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance"


class NotHostError(AuctionRuleError):
    code = AuctionErrorCode.NOT_HOST
    default_message = "Only the host can start the game"


class AlreadyStartedError(AuctionRuleError):
    code = AuctionErrorCode.ALREADY_STARTED
    default_message = "Game already started"


class NotEnoughPlayersError(AuctionRuleError):
    code = AuctionErrorCode.NOT_ENOUGH_PLAYERS
    default_message = "At least 2 players are needed to start"
