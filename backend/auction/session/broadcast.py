"""Shared broadcast utility for sending messages to room members."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from auction.messaging.protocol import ConnectionProtocol


async def broadcast_to_members(
    connections: Mapping[str, ConnectionProtocol],
    member_ids: Iterable[str],
    message: dict[str, Any],
) -> None:
    """Send a message to every connected member.

    Snapshot member_ids via list() so a concurrent leave that mutates the
    room while we yield on send_message cannot break iteration. Members
    without a live connection, or whose send fails, are skipped.
    """
    for member_id in list(member_ids):
        connection = connections.get(member_id)
        if connection is None:
            continue
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(message)
