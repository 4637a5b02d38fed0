"""
MessagePack encoder/decoder for the websocket wire format.

Client requests and room broadcasts are plain dicts; this module turns them
into MessagePack bytes and back, rejecting oversized or non-dict payloads.
"""

from enum import Enum
from typing import Any

import msgpack


class DecodeError(Exception):
    """Error raised when an incoming frame cannot be decoded."""


# Size limits to keep a single client from exhausting memory.
# Requests are small (room id, username, amount); 64KB is generous.
MAX_BUFFER_LEN = 64 * 1024
MAX_STR_LEN = 16 * 1024
MAX_BIN_LEN = 16 * 1024
MAX_ARRAY_LEN = 256
MAX_MAP_LEN = 64
MAX_EXT_LEN = 256


def _to_wire(obj: object) -> object:
    """Pack hook for values msgpack cannot serialize natively."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def encode(data: dict[str, Any]) -> bytes:
    """
    Encode a dict to MessagePack bytes.
    """
    return msgpack.packb(data, default=_to_wire)


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode MessagePack bytes to a dict.

    Raises DecodeError if data is invalid, not a dict, or exceeds size limits.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected dict, got {type(result).__name__}")

    return result
