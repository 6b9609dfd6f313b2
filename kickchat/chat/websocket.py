"""
WebSocket connection management for Kick chat.
"""

import aiohttp
import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from kickchat.chat.exceptions import ConnectTimeoutError, TransportError
from kickchat.chat.models import Callbacks, call_handler, parse_chat_message

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 12.0
PING_INTERVAL = 25.0
PING_PAYLOAD = json.dumps({"event": "pusher:ping", "data": "{}"})

_CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


class WebSocketChannel:
    """
    Duplex channel over an aiohttp client WebSocket.

    Owns the ClientSession it was opened with and closes it together with
    the socket.
    """

    def __init__(self, ws: aiohttp.ClientWebSocketResponse, session: aiohttp.ClientSession):
        self._ws = ws
        self._session = session

    async def receive(self) -> aiohttp.WSMessage:
        return await self._ws.receive()

    async def send_str(self, data: str) -> None:
        await self._ws.send_str(data)

    def exception(self) -> Optional[BaseException]:
        return self._ws.exception()

    async def close(self) -> None:
        try:
            if not self._ws.closed:
                await self._ws.close()
        finally:
            await self._session.close()

    @property
    def closed(self) -> bool:
        return self._ws.closed


async def open_channel(address: str, headers: Optional[dict] = None) -> WebSocketChannel:
    """
    Open a WebSocket to the given address.

    Raises:
        aiohttp.ClientError: If the handshake fails
    """
    session = aiohttp.ClientSession()
    try:
        ws = await session.ws_connect(address, headers=headers, autoping=True)
    except BaseException:
        await session.close()
        raise
    return WebSocketChannel(ws, session)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class SettleState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ConnectionSession:
    """
    One WebSocket connection to a chatroom.

    Lifecycle is ``CONNECTING -> OPEN -> CLOSED``, or ``CONNECTING -> FAILED``
    when the handshake errors out or exceeds the connect timeout. The setup
    result settles exactly once; whichever of open/timeout/error comes first
    wins and the rest are ignored.

    Must be constructed inside a running event loop.
    """

    def __init__(
        self,
        address: str,
        on_message: Callable[[Any], Any],
        callbacks: Optional[Callbacks] = None,
        *,
        connect: Callable[[str], Awaitable[Any]] = open_channel,
        connect_timeout: float = CONNECT_TIMEOUT,
        ping_interval: float = PING_INTERVAL,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.address = address
        self._on_message = on_message
        self._callbacks = callbacks or Callbacks()
        self._connect = connect
        self._connect_timeout = connect_timeout
        self._ping_interval = ping_interval
        self._sleep = sleep

        self._channel: Optional[Any] = None
        self._ready: asyncio.Future = asyncio.get_running_loop().create_future()
        self._open_task: Optional[asyncio.Task] = None
        self._timeout_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._reader_task: Optional[asyncio.Task] = None

        self.state = SessionState.CONNECTING
        self.settle_state = SettleState.PENDING
        self._disconnected = False

    @classmethod
    async def establish(
        cls,
        address: str,
        on_message: Callable[[Any], Any],
        callbacks: Optional[Callbacks] = None,
        **options: Any,
    ) -> "ConnectionSession":
        """
        Open a connection and wait until it is usable.

        Args:
            address: Full WebSocket address including the chatroom ID
            on_message: Receives each ChatMessage
            callbacks: Optional lifecycle callbacks
            **options: connect, connect_timeout, ping_interval, sleep

        Returns:
            The open ConnectionSession

        Raises:
            ConnectTimeoutError: If the handshake did not finish in time
            TransportError: If the handshake failed
        """
        session = cls(address, on_message, callbacks, **options)
        return await session._start()

    async def _start(self) -> "ConnectionSession":
        logger.info(f"Connecting to {self.address}")
        self._timeout_task = asyncio.create_task(self._connect_timer())
        self._open_task = asyncio.create_task(self._open())
        try:
            return await self._ready
        except asyncio.CancelledError:
            # Caller gave up waiting; nobody will hold this connection
            if self.settle_state is SettleState.RESOLVED:
                await self.disconnect()
            else:
                await self._reject(TransportError("connect cancelled"))
            raise

    async def _connect_timer(self) -> None:
        await self._sleep(self._connect_timeout)
        await self._on_connect_timeout()

    async def _open(self) -> None:
        try:
            channel = await self._connect(self.address)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e if isinstance(e, TransportError) else TransportError(str(e) or type(e).__name__)
            await self._callbacks.emit("on_error", error)
            await self._reject(error)
            return

        await self._on_open(channel)

    async def _on_open(self, channel: Any) -> None:
        if self.settle_state is not SettleState.PENDING:
            logger.debug(f"Discarding late connection to {self.address}")
            await self._close_quietly(channel)
            return

        self.settle_state = SettleState.RESOLVED
        self.state = SessionState.OPEN
        self._channel = channel
        self._cancel_timers()

        self._keepalive_task = asyncio.create_task(self._keepalive())
        self._reader_task = asyncio.create_task(self._read_loop())

        logger.info(f"Connected to {self.address}")
        await self._callbacks.emit("on_open")
        if not self._ready.done():
            self._ready.set_result(self)

    async def _on_connect_timeout(self) -> None:
        await self._reject(ConnectTimeoutError("WS connect timeout"))

    async def _reject(self, error: Exception) -> None:
        if self.settle_state is not SettleState.PENDING:
            return

        self.settle_state = SettleState.REJECTED
        self.state = SessionState.FAILED
        logger.warning(f"Connection to {self.address} failed: {error}")

        await self._cleanup()
        if not self._ready.done():
            self._ready.set_exception(error)

    def _cancel_timers(self) -> None:
        current = asyncio.current_task()
        for task in (self._timeout_task, self._keepalive_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._timeout_task = None
        self._keepalive_task = None

    async def _cleanup(self) -> None:
        """Stop all timers and close the channel. Safe to repeat."""
        self._cancel_timers()

        if (
            self._open_task is not None
            and self._open_task is not asyncio.current_task()
            and not self._open_task.done()
        ):
            self._open_task.cancel()

        if self._channel is not None:
            await self._close_quietly(self._channel)

    async def _close_quietly(self, channel: Any) -> None:
        try:
            if not channel.closed:
                await channel.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")

    async def _keepalive(self) -> None:
        while True:
            await self._sleep(self._ping_interval)
            try:
                await self._channel.send_str(PING_PAYLOAD)
                logger.debug("Sent ping")
            except Exception as e:
                logger.debug(f"Ping failed: {e}")

    async def _read_loop(self) -> None:
        try:
            while True:
                msg = await self._channel.receive()

                if msg.type == aiohttp.WSMsgType.TEXT:
                    message = parse_chat_message(msg.data)
                    if message is not None:
                        await call_handler(self._on_message, message)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = TransportError(f"WebSocket error: {self._channel.exception()}")
                    logger.warning(str(error))
                    await self._callbacks.emit("on_error", error)
                elif msg.type in _CLOSE_TYPES:
                    break
                else:
                    logger.debug(f"Ignoring frame of type {msg.type}")

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error receiving message: {e}", exc_info=True)
            await self._callbacks.emit("on_error", TransportError(f"Error receiving message: {e}"))

        await self._handle_close()

    async def _handle_close(self) -> None:
        if self.state is SessionState.CLOSED:
            return

        self.state = SessionState.CLOSED
        await self._cleanup()
        logger.info(f"WebSocket connection to {self.address} closed")
        await self._callbacks.emit("on_close")

    async def disconnect(self) -> None:
        """Stop keepalive and close the connection. Safe to call repeatedly."""
        if self._disconnected:
            return

        self._disconnected = True
        await self._cleanup()

    async def wait_closed(self) -> None:
        """Wait until the connection has closed and on_close has run."""
        if self._reader_task is not None:
            await asyncio.shield(self._reader_task)

    @property
    def raw(self) -> Optional[Any]:
        """The underlying channel."""
        return self._channel

    @property
    def closed(self) -> bool:
        return self.state in (SessionState.CLOSED, SessionState.FAILED)
