"""Wire shaping for engine events.

Every broadcast leaves the server through room_event_payload, so the
dict shape of an event is defined in one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from auction.logic.events import AuctionEvent


def room_event_payload(event: AuctionEvent) -> dict[str, Any]:
    """Return the wire-format dict for an engine event.

    Shape: {"type": event.type, **data_fields}. Enums are dumped by value.
    """
    return event.model_dump(mode="json")
