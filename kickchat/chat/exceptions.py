"""
Custom exceptions for Kick chat client.
"""

from typing import List, Optional


class KickChatError(Exception):
    """Base exception for all Kick chat errors."""
    pass


class ChannelNotFoundError(KickChatError):
    """A single chatroom id lookup strategy failed."""
    pass


class ResolutionError(KickChatError):
    """Every chatroom id lookup strategy failed."""

    def __init__(self, attempts: Optional[List[str]] = None):
        self.attempts = list(attempts or [])
        super().__init__(
            "Failed to resolve chatroom.id: " + " | ".join(self.attempts)
        )


class TransportError(KickChatError):
    """WebSocket transport reported an error."""
    pass


class ConnectTimeoutError(TransportError):
    """WebSocket handshake did not complete in time."""
    pass


class AllEndpointsFailedError(KickChatError):
    """Every candidate WebSocket host failed."""

    def __init__(self, attempts: Optional[List[str]] = None):
        self.attempts = list(attempts or [])
        super().__init__("All WS hosts failed: " + " | ".join(self.attempts))
