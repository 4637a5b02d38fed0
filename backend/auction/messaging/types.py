from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

_ROOM_ID = Field(min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
_USERNAME = Field(min_length=1, max_length=50)
_REQUEST_ID = Field(default=None, max_length=64)


def _reject_control_chars(value: str, *, allow_whitespace: bool = False) -> str:
    allowed = ("\t", "\n", "\r") if allow_whitespace else ()
    if any((ord(c) < _SPACE_ORD and c not in allowed) or ord(c) == _DEL_ORD for c in value):
        raise ValueError("value must not contain control characters")
    return value


class ClientMessageType(StrEnum):
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    START_GAME = "start_game"
    BID = "bid"
    SKIP = "skip"
    REQUEST_ROOM = "request_room"
    CHAT = "chat"
    PING = "ping"


class SessionMessageType(StrEnum):
    ACK = "ack"
    ERROR = "session_error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    ALREADY_IN_ROOM = "already_in_room"
    NOT_IN_ROOM = "not_in_room"
    SERVER_AT_CAPACITY = "server_at_capacity"
    INVALID_MESSAGE = "invalid_message"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"


class CreateRoomMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID
    # range is enforced by the registry so the caller gets invalid_capacity
    capacity: int
    username: str = _USERNAME

    @field_validator("username")
    @classmethod
    def _validate_username(cls, v: str) -> str:
        return _reject_control_chars(v)


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID
    username: str = _USERNAME

    @field_validator("username")
    @classmethod
    def _validate_username(cls, v: str) -> str:
        return _reject_control_chars(v)


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM
    request_id: str | None = _REQUEST_ID


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID


class BidMessage(BaseModel):
    type: Literal[ClientMessageType.BID] = ClientMessageType.BID
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID
    amount: int = Field(strict=True)


class SkipMessage(BaseModel):
    type: Literal[ClientMessageType.SKIP] = ClientMessageType.SKIP
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID


class RequestRoomMessage(BaseModel):
    type: Literal[ClientMessageType.REQUEST_ROOM] = ClientMessageType.REQUEST_ROOM
    request_id: str | None = _REQUEST_ID
    room_id: str = _ROOM_ID


class ChatMessage(BaseModel):
    type: Literal[ClientMessageType.CHAT] = ClientMessageType.CHAT
    text: str = Field(min_length=1, max_length=500)

    @field_validator("text")
    @classmethod
    def _validate_text(cls, v: str) -> str:
        return _reject_control_chars(v, allow_whitespace=True)


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    CreateRoomMessage
    | JoinRoomMessage
    | LeaveRoomMessage
    | StartGameMessage
    | BidMessage
    | SkipMessage
    | RequestRoomMessage
    | ChatMessage
    | PingMessage,
    Field(discriminator="type"),
]


class AckMessage(BaseModel):
    """Acknowledgement of a single client request.

    code and msg are set only when ok is False; data carries the request's
    result payload (e.g. the room snapshot for request_room).
    """

    type: Literal[SessionMessageType.ACK] = SessionMessageType.ACK
    request: ClientMessageType
    request_id: str | None = None
    ok: bool
    code: str | None = None
    msg: str | None = None
    data: dict[str, Any] | None = None


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage."""
    return _client_message_adapter.validate_python(data)
