"""
Kick chat client with chatroom lookup and WebSocket host fallback.
"""

from kickchat.chat.client import ChatHandle, KickChatClient, async_connect, connect, resolve
from kickchat.chat.models import Callbacks, ChatMessage, Envelope, parse_chat_message
from kickchat.chat.http import (
    get_chatroom_id,
    get_chatroom_id_from_v2,
    get_chatroom_id_from_v1,
    get_chatroom_id_from_html,
)
from kickchat.chat.prober import probe
from kickchat.chat.websocket import ConnectionSession, SessionState, SettleState
from kickchat.chat.exceptions import (
    KickChatError,
    ChannelNotFoundError,
    ResolutionError,
    TransportError,
    ConnectTimeoutError,
    AllEndpointsFailedError,
)

__all__ = [
    "KickChatClient",
    "ChatHandle",
    "connect",
    "async_connect",
    "resolve",
    "Callbacks",
    "ChatMessage",
    "Envelope",
    "parse_chat_message",
    "get_chatroom_id",
    "get_chatroom_id_from_v2",
    "get_chatroom_id_from_v1",
    "get_chatroom_id_from_html",
    "probe",
    "ConnectionSession",
    "SessionState",
    "SettleState",
    "KickChatError",
    "ChannelNotFoundError",
    "ResolutionError",
    "TransportError",
    "ConnectTimeoutError",
    "AllEndpointsFailedError",
]
