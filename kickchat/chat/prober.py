"""
Fallback across candidate WebSocket hosts.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from kickchat.chat.exceptions import AllEndpointsFailedError
from kickchat.chat.fallback import Attempt, first_success
from kickchat.chat.models import Callbacks
from kickchat.chat.websocket import ConnectionSession

logger = logging.getLogger(__name__)


def chatroom_address(host: str, room_id: int) -> str:
    return f"{host.rstrip('/')}/{room_id}"


async def probe(
    candidates: Sequence[str],
    room_id: int,
    on_message: Callable[[Any], Any],
    callbacks: Optional[Callbacks] = None,
    *,
    establish: Callable[..., Awaitable[ConnectionSession]] = ConnectionSession.establish,
    **options: Any,
) -> ConnectionSession:
    """
    Connect to the first candidate host that completes a handshake.

    Hosts are tried one at a time in the given order; later hosts are never
    contacted once one succeeds.

    Args:
        candidates: Base WebSocket addresses
        room_id: Chatroom ID appended to each address
        on_message: Receives each ChatMessage
        callbacks: Optional lifecycle callbacks
        establish: Opens one session (ConnectionSession.establish)
        **options: Forwarded to ``establish``

    Returns:
        The established ConnectionSession

    Raises:
        AllEndpointsFailedError: If every host failed, with one reason per host
    """
    attempts = [
        Attempt(
            run=lambda address=chatroom_address(host, room_id): establish(
                address, on_message, callbacks, **options
            ),
            label=host,
        )
        for host in candidates
    ]

    session = await first_success(
        attempts,
        exhausted=AllEndpointsFailedError,
        stage=f"WebSocket connect for chatroom {room_id}",
    )
    logger.info(f"Chatroom {room_id} connected via {session.address}")
    return session
