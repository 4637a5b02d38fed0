"""Connection and room session management.

SessionManager is the single entry point between the transport and the
auction core. It owns the registry, the engine, live connections and one
asyncio.Lock per room. Every request that touches a room, and every timer
callback, runs under that room's lock, so transitions of one room never
interleave while rooms stay independent of each other.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from auction.logic.engine import AuctionEngine
from auction.logic.enums import NoticeKind, RoomPhase
from auction.logic.events import ChatEvent, RoomUpdateEvent
from auction.logic.exceptions import AuctionRuleError, RoomNotFoundError
from auction.logic.registry import RoomRegistry
from auction.logic.types import room_view
from auction.messaging.event_payload import room_event_payload
from auction.messaging.types import (
    AckMessage,
    ClientMessageType,
    ErrorMessage,
    PongMessage,
    SessionErrorCode,
)
from auction.session.broadcast import broadcast_to_members
from auction.session.heartbeat import HeartbeatMonitor
from auction.session.types import RoomInfo

if TYPE_CHECKING:
    import random
    from collections.abc import AsyncIterator, Callable

    from auction.logic.enums import TimeoutType
    from auction.logic.events import AuctionEvent
    from auction.logic.pool import PlayerPool
    from auction.logic.settings import AuctionSettings
    from auction.logic.state import Room
    from auction.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    def __init__(
        self,
        pool: PlayerPool,
        *,
        settings: AuctionSettings | None = None,
        max_rooms: int = 100,
        rng: random.Random | None = None,
        heartbeat: HeartbeatMonitor | None = None,
    ) -> None:
        self._registry = RoomRegistry(settings)
        self._engine = AuctionEngine(pool, on_timeout=self._handle_timeout, settings=settings, rng=rng)
        self._max_rooms = max_rooms
        self._heartbeat = heartbeat or HeartbeatMonitor()
        self._connections: dict[str, ConnectionProtocol] = {}
        self._memberships: dict[str, str] = {}  # connection_id -> room_id
        self._room_locks: dict[str, asyncio.Lock] = {}  # room_id -> room mutation lock

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def engine(self) -> AuctionEngine:
        return self._engine

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection
        self._heartbeat.record_connect(connection.connection_id)

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._heartbeat.record_disconnect(connection.connection_id)

    def get_room(self, room_id: str) -> Room | None:
        return self._registry.get_room(room_id)

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._memberships

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    @property
    def running_room_count(self) -> int:
        return sum(1 for room in self._registry.rooms() if room.phase is RoomPhase.RUNNING)

    def get_rooms_info(self) -> list[RoomInfo]:
        """Return info about all rooms for the lobby list."""
        return [
            RoomInfo(
                room_id=room.room_id,
                phase=room.phase,
                member_count=room.member_count,
                capacity=room.capacity,
                players=room.usernames,
            )
            for room in self._registry.rooms()
        ]

    # --- Membership ---

    async def create_room(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        capacity: int,
        username: str,
        request_id: str | None = None,
    ) -> None:
        request = ClientMessageType.CREATE_ROOM
        if self.is_in_room(connection.connection_id):
            await self._send_session_failure(
                connection, request, request_id, SessionErrorCode.ALREADY_IN_ROOM, "Leave your current room first"
            )
            return
        if self._registry.room_count >= self._max_rooms:
            await self._send_session_failure(
                connection, request, request_id, SessionErrorCode.SERVER_AT_CAPACITY, "Server at capacity"
            )
            return

        try:
            room = self._registry.create_room(room_id, capacity, connection.connection_id, username)
        except AuctionRuleError as e:
            await self._send_ack(connection, request, request_id, error=e)
            return

        self._room_locks[room_id] = asyncio.Lock()
        self._memberships[connection.connection_id] = room_id
        self._heartbeat.start_for_room(room_id, self._room_connections)

        await self._broadcast_events(room, [RoomUpdateEvent(room=room_view(room))])
        await self._send_ack(connection, request, request_id, data={"room_id": room_id})

    async def join_room(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        username: str,
        request_id: str | None = None,
    ) -> None:
        request = ClientMessageType.JOIN_ROOM
        if self.is_in_room(connection.connection_id):
            await self._send_session_failure(
                connection, request, request_id, SessionErrorCode.ALREADY_IN_ROOM, "Leave your current room first"
            )
            return

        error: AuctionRuleError | None = None
        async with self._room_guard(room_id) as room:
            if room is None:
                error = RoomNotFoundError()
            else:
                try:
                    self._registry.join_room(room_id, connection.connection_id, username)
                except AuctionRuleError as e:
                    error = e
                else:
                    self._memberships[connection.connection_id] = room_id
                    await self._broadcast_events(
                        room,
                        [
                            RoomUpdateEvent(room=room_view(room)),
                            ChatEvent(kind=NoticeKind.PLAYER_JOINED, msg=f"{username} joined"),
                        ],
                    )

        data = None if error is not None else {"room_id": room_id}
        await self._send_ack(connection, request, request_id, error=error, data=data)

    async def leave_room(
        self,
        connection: ConnectionProtocol,
        *,
        request_id: str | None = None,
        notify_player: bool = True,
    ) -> None:
        """Remove the connection from its room; also the disconnect path.

        A high bid placed by the departing member stays on the live auction.
        """
        request = ClientMessageType.LEAVE_ROOM
        room_id = self._memberships.pop(connection.connection_id, None)
        if room_id is None:
            if notify_player:
                await self._send_session_failure(
                    connection, request, request_id, SessionErrorCode.NOT_IN_ROOM, "You are not in a room"
                )
            return

        room_closed = False
        async with self._room_guard(room_id) as room:
            if room is not None:
                participant = self._registry.remove_participant(room_id, connection.connection_id)
                if self._registry.get_room(room_id) is None:
                    room_closed = True
                    self._room_locks.pop(room_id, None)
                elif participant is not None:
                    await self._broadcast_events(
                        room,
                        [
                            RoomUpdateEvent(room=room_view(room)),
                            ChatEvent(kind=NoticeKind.PLAYER_LEFT, msg=f"{participant.username} left"),
                        ],
                    )

        if room_closed:
            await self._heartbeat.stop_for_room(room_id)

        if notify_player:
            with contextlib.suppress(RuntimeError, OSError, ConnectionError):
                await self._send_ack(connection, request, request_id)

    # --- Auction requests ---

    async def start_game(self, connection: ConnectionProtocol, room_id: str, request_id: str | None = None) -> None:
        await self._run_room_request(
            connection,
            ClientMessageType.START_GAME,
            room_id,
            request_id,
            lambda room: self._engine.start_game(room, connection.connection_id),
        )

    async def place_bid(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        amount: int,
        request_id: str | None = None,
    ) -> None:
        await self._run_room_request(
            connection,
            ClientMessageType.BID,
            room_id,
            request_id,
            lambda room: self._engine.place_bid(room, connection.connection_id, amount),
        )

    async def skip(self, connection: ConnectionProtocol, room_id: str, request_id: str | None = None) -> None:
        await self._run_room_request(
            connection,
            ClientMessageType.SKIP,
            room_id,
            request_id,
            lambda room: self._engine.skip(room, connection.connection_id),
        )

    async def request_room(self, connection: ConnectionProtocol, room_id: str, request_id: str | None = None) -> None:
        """Acknowledge with the full sanitized room snapshot."""
        async with self._room_guard(room_id) as room:
            data = room_view(room).model_dump(mode="json") if room is not None else None

        error = RoomNotFoundError() if data is None else None
        await self._send_ack(connection, ClientMessageType.REQUEST_ROOM, request_id, error=error, data=data)

    async def broadcast_chat(self, connection: ConnectionProtocol, text: str) -> None:
        room_id = self._memberships.get(connection.connection_id)
        if room_id is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_ROOM, "You must join a room first")
            return

        async with self._room_guard(room_id) as room:
            if room is None:
                return
            participant = room.members.get(connection.connection_id)
            if participant is None:
                return
            await self._broadcast_events(
                room,
                [ChatEvent(kind=NoticeKind.MESSAGE, msg=text, player_name=participant.username)],
            )

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        """Respond to client ping with pong and update activity timestamp."""
        self._heartbeat.record_ping(connection.connection_id)
        await connection.send_message(PongMessage().model_dump())

    async def shutdown(self) -> None:
        """Cancel every pending timer and heartbeat loop."""
        for room in self._registry.rooms():
            room.cancel_timers()
        await self._heartbeat.stop_all()

    # --- Internals ---

    @contextlib.asynccontextmanager
    async def _room_guard(self, room_id: str) -> AsyncIterator[Room | None]:
        """Hold the room's lock and yield the room, or None if it is gone.

        A room id can be reused after the room closes; the lock identity
        check keeps a waiter on the old lock away from the new room.
        """
        lock = self._room_locks.get(room_id)
        if lock is None:
            yield None
            return
        async with lock:
            room = self._registry.get_room(room_id)
            if room is None or self._room_locks.get(room_id) is not lock:
                yield None
            else:
                yield room

    async def _run_room_request(
        self,
        connection: ConnectionProtocol,
        request: ClientMessageType,
        room_id: str,
        request_id: str | None,
        action: Callable[[Room], list[AuctionEvent]],
    ) -> None:
        """Apply an engine transition under the room lock, broadcast, then ack."""
        error: AuctionRuleError | None = None
        async with self._room_guard(room_id) as room:
            if room is None:
                error = RoomNotFoundError()
            else:
                try:
                    events = action(room)
                except AuctionRuleError as e:
                    error = e
                else:
                    await self._broadcast_events(room, events)

        if error is not None:
            logger.info(
                "request rejected",
                request=request,
                room_id=room_id,
                connection_id=connection.connection_id,
                code=error.code,
            )
        await self._send_ack(connection, request, request_id, error=error)

    async def _handle_timeout(self, room_id: str, timeout_type: TimeoutType, generation: int) -> None:
        async with self._room_guard(room_id) as room:
            if room is None:
                return
            events = self._engine.handle_timeout(room, timeout_type, generation)
            await self._broadcast_events(room, events)

    async def _broadcast_events(self, room: Room, events: list[AuctionEvent]) -> None:
        for event in events:
            await broadcast_to_members(self._connections, room.members.keys(), room_event_payload(event))

    def _room_connections(self, room_id: str) -> list[ConnectionProtocol] | None:
        room = self._registry.get_room(room_id)
        if room is None:
            return None
        return [self._connections[cid] for cid in room.members if cid in self._connections]

    async def _send_ack(
        self,
        connection: ConnectionProtocol,
        request: ClientMessageType,
        request_id: str | None,
        *,
        error: AuctionRuleError | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if error is not None:
            message = AckMessage(
                request=request,
                request_id=request_id,
                ok=False,
                code=error.code.value,
                msg=error.message,
            )
        else:
            message = AckMessage(request=request, request_id=request_id, ok=True, data=data)
        await connection.send_message(message.model_dump(mode="json"))

    async def _send_session_failure(
        self,
        connection: ConnectionProtocol,
        request: ClientMessageType,
        request_id: str | None,
        code: SessionErrorCode,
        msg: str,
    ) -> None:
        message = AckMessage(request=request, request_id=request_id, ok=False, code=code.value, msg=msg)
        await connection.send_message(message.model_dump(mode="json"))

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump(mode="json"))
