"""
Main Kick chat client: chatroom lookup followed by WebSocket host fallback.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from kickchat.chat.http import get_chatroom_id
from kickchat.chat.models import Callbacks
from kickchat.chat.prober import probe
from kickchat.chat.websocket import ConnectionSession, open_channel
from kickchat.models import Config

logger = logging.getLogger(__name__)


class ChatHandle:
    """
    Handle returned by :meth:`KickChatClient.connect`.

    ``disconnect()`` is a no-op until the background connect succeeds, after
    which it closes the live session.
    """

    def __init__(self):
        self._session: Optional[ConnectionSession] = None
        self.task: Optional[asyncio.Task] = None

    def _attach(self, session: ConnectionSession) -> None:
        self._session = session

    async def disconnect(self) -> None:
        if self._session is not None:
            await self._session.disconnect()

    @property
    def session(self) -> Optional[ConnectionSession]:
        return self._session

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.closed


class KickChatClient:
    """
    Kick chat client.

    Resolves a channel's chatroom ID, then connects to the first WebSocket
    host that accepts the connection.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        http_session: Optional[aiohttp.ClientSession] = None,
        connect: Optional[Callable[[str], Awaitable[Any]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize chat client.

        Args:
            config: Hosts, URLs and timeouts (defaults if omitted)
            http_session: Session for chatroom lookups (temporary ones otherwise)
            connect: Opens a WebSocket channel for an address
            sleep: Timer primitive used by connection sessions
        """
        self._config = config or Config()
        self._http_session = http_session
        self._connect = connect or functools.partial(
            open_channel,
            headers={"User-Agent": self._config.user_agent, "Origin": "https://kick.com"},
        )
        self._sleep = sleep

    @property
    def config(self) -> Config:
        return self._config

    async def resolve(self, channel_name: str) -> int:
        """
        Resolve the chatroom ID for a channel.

        Raises:
            ResolutionError: If every lookup strategy failed
        """
        return await get_chatroom_id(channel_name, self._http_session, self._config)

    async def async_connect(
        self,
        channel_name: str,
        on_message: Callable[[Any], Any],
        callbacks: Optional[Callbacks] = None,
    ) -> ConnectionSession:
        """
        Resolve the chatroom and connect to it.

        Args:
            channel_name: The Kick channel slug
            on_message: Receives each ChatMessage
            callbacks: Optional lifecycle callbacks

        Returns:
            The established ConnectionSession; the caller owns it and must
            call ``disconnect()``

        Raises:
            ResolutionError: If the chatroom ID could not be resolved
            AllEndpointsFailedError: If no WebSocket host accepted the connection
        """
        logger.info(f"Connecting to chat for channel {channel_name}...")
        room_id = await self.resolve(channel_name)

        return await probe(
            self._config.ws_hosts,
            room_id,
            on_message,
            callbacks,
            connect=self._connect,
            connect_timeout=self._config.connect_timeout_sec,
            ping_interval=self._config.ping_interval_sec,
            sleep=self._sleep,
        )

    def connect(
        self,
        channel_name: str,
        on_message: Callable[[Any], Any],
        callbacks: Optional[Callbacks] = None,
    ) -> ChatHandle:
        """
        Start connecting in the background and return a handle right away.

        This is an asyncio entry point: it schedules a task on the running
        event loop. Connection failures never raise here; they are delivered
        to ``callbacks.on_error``.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        loop = asyncio.get_running_loop()
        callbacks = callbacks or Callbacks()
        handle = ChatHandle()

        async def run() -> None:
            try:
                session = await self.async_connect(channel_name, on_message, callbacks)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Failed to connect to chat for {channel_name}: {e}")
                await callbacks.emit("on_error", e)
                return

            handle._attach(session)

        handle.task = loop.create_task(run())
        return handle


async def resolve(channel_name: str) -> int:
    """Resolve a chatroom ID with the default configuration."""
    return await KickChatClient().resolve(channel_name)


async def async_connect(
    channel_name: str,
    on_message: Callable[[Any], Any],
    callbacks: Optional[Callbacks] = None,
) -> ConnectionSession:
    """Connect with the default configuration and wait for the session."""
    return await KickChatClient().async_connect(channel_name, on_message, callbacks)


def connect(
    channel_name: str,
    on_message: Callable[[Any], Any],
    callbacks: Optional[Callbacks] = None,
) -> ChatHandle:
    """Connect with the default configuration in the background."""
    return KickChatClient().connect(channel_name, on_message, callbacks)
