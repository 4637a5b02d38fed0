"""Room registry: creation, lookup and membership bookkeeping."""

from __future__ import annotations

import structlog

from auction.logic.exceptions import (
    InvalidCapacityError,
    RoomExistsError,
    RoomFullError,
    RoomNotFoundError,
)
from auction.logic.settings import AuctionSettings
from auction.logic.state import Participant, Room

logger = structlog.get_logger()


class RoomRegistry:
    """Own the mapping from room id to Room.

    The registry validates capacity and membership limits. It does not know
    about connections or locks; the session layer serializes calls per room.
    """

    def __init__(self, settings: AuctionSettings | None = None) -> None:
        self._settings = settings or AuctionSettings()
        self._rooms: dict[str, Room] = {}

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def get_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def require_room(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError
        return room

    def create_room(self, room_id: str, capacity: int, creator_id: str, username: str) -> Room:
        """Create a lobby room with the creator as host and first member."""
        if room_id in self._rooms:
            raise RoomExistsError
        if not (self._settings.min_capacity <= capacity <= self._settings.max_capacity):
            raise InvalidCapacityError(
                f"Capacity must be between {self._settings.min_capacity} and {self._settings.max_capacity}"
            )

        room = Room(room_id=room_id, capacity=capacity, host_id=creator_id)
        room.members[creator_id] = self._new_participant(creator_id, username)
        self._rooms[room_id] = room
        logger.info("room created", room_id=room_id, capacity=capacity, host=username)
        return room

    def join_room(self, room_id: str, participant_id: str, username: str) -> Room:
        room = self.require_room(room_id)
        if room.is_full:
            raise RoomFullError
        room.members[participant_id] = self._new_participant(participant_id, username)
        logger.info("room joined", room_id=room_id, username=username, members=room.member_count)
        return room

    def remove_participant(self, room_id: str, participant_id: str) -> Participant | None:
        """Remove a member; drop the room (and its timers) once it is empty.

        A departing high bidder's bid stays on the live auction.
        """
        room = self._rooms.get(room_id)
        if room is None:
            return None
        participant = room.members.pop(participant_id, None)
        if participant is None:
            return None

        if room.host_id == participant_id:
            room.host_id = next(iter(room.members), None)

        if room.is_empty:
            room.cancel_timers()
            self._rooms.pop(room_id, None)
            logger.info("room closed", room_id=room_id)
        return participant

    def _new_participant(self, participant_id: str, username: str) -> Participant:
        return Participant(
            participant_id=participant_id,
            username=username,
            balance=self._settings.starting_balance,
        )
