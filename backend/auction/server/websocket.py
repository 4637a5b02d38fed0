from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from auction.messaging.encoder import DecodeError, decode
from auction.messaging.protocol import ConnectionProtocol
from auction.messaging.types import ErrorMessage, SessionErrorCode
from auction.server.rate_limit import TokenBucket

logger = structlog.get_logger()

if TYPE_CHECKING:
    from auction.messaging.router import MessageRouter

# Rate limit: 20 messages/sec sustained, burst of 40.
# Bidding wars are the busiest traffic; a human cannot click faster than this.
_RATE_LIMIT_RATE = 20.0
_RATE_LIMIT_BURST = 40

# Disconnect after this many consecutive decode errors
_MAX_DECODE_ERRORS = 5


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    logger.info("websocket connected", connection_id=connection.connection_id)
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
    decode_errors = 0

    try:
        while True:
            raw = await connection.receive_bytes()

            # decode before throttling so malformed frames always count as strikes
            try:
                data = decode(raw)
            except DecodeError as e:
                decode_errors += 1
                logger.warning(
                    "decode error",
                    connection_id=connection.connection_id,
                    error=str(e),
                    strikes=decode_errors,
                )
                await connection.send_message(
                    ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(mode="json"),
                )
                if decode_errors >= _MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting", connection_id=connection.connection_id)
                    await connection.close(code=4004, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0

            if not bucket.consume():
                await connection.send_message(
                    ErrorMessage(code=SessionErrorCode.RATE_LIMITED, message="Too many messages").model_dump(
                        mode="json"
                    ),
                )
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected", connection_id=connection.connection_id)
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
