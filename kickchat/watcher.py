"""Channel watcher that keeps one chat connection per channel."""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from kickchat.chat import Callbacks, ChatMessage, ConnectionSession, KickChatClient
from kickchat.models import ChatEvent, Config

logger = logging.getLogger(__name__)


class Watcher:
    """Connects to several channels and forwards their chat as ChatEvents."""

    def __init__(
        self,
        channel_names: list[str],
        config: Config,
        sink: Callable[[ChatEvent], None],
        client: Optional[KickChatClient] = None,
    ):
        self.channel_names = channel_names
        self.config = config
        self.sink = sink
        self.client = client or KickChatClient(config)

        self.sessions: dict[str, ConnectionSession] = {}
        self.event_count = 0
        self.running = False

    def _make_handler(self, channel_name: str) -> Callable[[ChatMessage], None]:
        def on_message(message: ChatMessage) -> None:
            event = ChatEvent(
                channel=channel_name,
                username=message.username,
                text=message.text,
                received_at=datetime.now(timezone.utc),
            )
            self.event_count += 1
            self.sink(event)

        return on_message

    def _make_callbacks(self, channel_name: str) -> Callbacks:
        return Callbacks(
            on_open=lambda: logger.info(f"[{channel_name}] chat connected"),
            on_error=lambda error: logger.warning(f"[{channel_name}] chat error: {error}"),
            on_close=lambda: logger.info(f"[{channel_name}] chat closed"),
        )

    async def _connect_channel(self, channel_name: str) -> None:
        try:
            session = await self.client.async_connect(
                channel_name,
                self._make_handler(channel_name),
                self._make_callbacks(channel_name),
            )
        except Exception as e:
            logger.error(f"[{channel_name}] could not connect: {e}")
            return

        self.sessions[channel_name] = session

    async def start(self):
        """Connect to every channel and run until all connections close."""
        self.running = True
        logger.info(f"Starting watcher for {len(self.channel_names)} channels")

        try:
            await asyncio.gather(*(self._connect_channel(name) for name in self.channel_names))

            if not self.sessions:
                logger.error("No channel could be connected")
                return

            await asyncio.gather(*(session.wait_closed() for session in self.sessions.values()))
        finally:
            await self._cleanup()

    async def stop(self):
        """Stop watching channels."""
        logger.info("Stopping watcher")
        self.running = False
        await self._cleanup()

    async def _cleanup(self):
        for session in list(self.sessions.values()):
            await session.disconnect()
        self.running = False


class JsonlSink:
    """Appends ChatEvents to a JSON Lines file."""

    def __init__(self, path: Path):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, event: ChatEvent) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(event.model_dump_json() + "\n")
