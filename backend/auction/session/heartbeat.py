"""Monitor client liveness via application-level ping messages."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from auction.messaging.protocol import ConnectionProtocol

HEARTBEAT_CHECK_INTERVAL = 5  # seconds between heartbeat checks
HEARTBEAT_TIMEOUT = 30  # seconds before disconnecting an idle client

logger = structlog.get_logger()

# Resolves a room id to the connections of its current members,
# or None once the room is gone.
ConnectionResolver = Callable[[str], "list[ConnectionProtocol] | None"]


class HeartbeatMonitor:
    """Disconnect room members that stop pinging.

    Tracks per-connection ping timestamps and runs one background loop per
    room. Closing a stale connection makes the websocket endpoint run its
    disconnect path, which removes the member from the room.
    """

    def __init__(
        self,
        check_interval: float = HEARTBEAT_CHECK_INTERVAL,
        timeout: float = HEARTBEAT_TIMEOUT,
    ) -> None:
        self._check_interval = check_interval
        self._timeout = timeout
        self._last_ping: dict[str, float] = {}  # connection_id -> monotonic timestamp
        self._tasks: dict[str, asyncio.Task[None]] = {}  # room_id -> task

    def record_connect(self, connection_id: str) -> None:
        self._last_ping[connection_id] = time.monotonic()

    def record_disconnect(self, connection_id: str) -> None:
        self._last_ping.pop(connection_id, None)

    def record_ping(self, connection_id: str) -> None:
        if connection_id in self._last_ping:
            self._last_ping[connection_id] = time.monotonic()

    def start_for_room(self, room_id: str, resolve: ConnectionResolver) -> None:
        existing = self._tasks.get(room_id)
        if existing is not None and not existing.done():
            existing.cancel()
        self._tasks[room_id] = asyncio.create_task(self._check_loop(room_id, resolve))

    async def stop_for_room(self, room_id: str) -> None:
        task = self._tasks.pop(room_id, None)
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def stop_all(self) -> None:
        for room_id in list(self._tasks):
            await self.stop_for_room(room_id)

    async def _check_loop(self, room_id: str, resolve: ConnectionResolver) -> None:
        """Periodically close connections in a room that missed the ping deadline."""
        while True:
            await asyncio.sleep(self._check_interval)
            connections = resolve(room_id)
            if connections is None:
                return

            now = time.monotonic()
            for connection in connections:
                last_ping = self._last_ping.get(connection.connection_id)
                if last_ping is not None and now - last_ping > self._timeout:
                    logger.info(
                        "heartbeat timeout, disconnecting",
                        connection_id=connection.connection_id,
                        room_id=room_id,
                    )
                    with contextlib.suppress(RuntimeError, OSError, ConnectionError):
                        await connection.close(code=1000, reason="heartbeat_timeout")
