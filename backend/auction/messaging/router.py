from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from auction.messaging.types import (
    BidMessage,
    ChatMessage,
    CreateRoomMessage,
    ErrorMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    PingMessage,
    RequestRoomMessage,
    SessionErrorCode,
    SkipMessage,
    StartGameMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from auction.messaging.protocol import ConnectionProtocol
    from auction.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This class contains pure business logic and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(mode="json"),
            )
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("unhandled error while routing message", connection_id=connection.connection_id)
            await connection.send_message(
                ErrorMessage(
                    code=SessionErrorCode.INTERNAL_ERROR,
                    message="Internal server error",
                ).model_dump(mode="json"),
            )

    async def _dispatch(self, connection: ConnectionProtocol, message: Any) -> None:
        manager = self._session_manager
        if isinstance(message, PingMessage):
            await manager.handle_ping(connection)
        elif isinstance(message, CreateRoomMessage):
            await manager.create_room(
                connection,
                room_id=message.room_id,
                capacity=message.capacity,
                username=message.username,
                request_id=message.request_id,
            )
        elif isinstance(message, JoinRoomMessage):
            await manager.join_room(
                connection,
                room_id=message.room_id,
                username=message.username,
                request_id=message.request_id,
            )
        elif isinstance(message, LeaveRoomMessage):
            await manager.leave_room(connection, request_id=message.request_id)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(connection, message.room_id, request_id=message.request_id)
        elif isinstance(message, BidMessage):
            await manager.place_bid(connection, message.room_id, message.amount, request_id=message.request_id)
        elif isinstance(message, SkipMessage):
            await manager.skip(connection, message.room_id, request_id=message.request_id)
        elif isinstance(message, RequestRoomMessage):
            await manager.request_room(connection, message.room_id, request_id=message.request_id)
        elif isinstance(message, ChatMessage):
            await manager.broadcast_chat(connection, text=message.text)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_room(connection, notify_player=False)
        self._session_manager.unregister_connection(connection)
