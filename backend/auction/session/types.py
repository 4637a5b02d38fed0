"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel

from auction.logic.enums import RoomPhase


class RoomInfo(BaseModel):
    """Room information for lobby listing."""

    room_id: str
    phase: RoomPhase
    member_count: int
    capacity: int
    players: list[str]
