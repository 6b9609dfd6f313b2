"""
Message models for Kick chat.
"""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

CHAT_MESSAGE_MARKER = "ChatMessageEvent"
DEFAULT_USERNAME = "user"


@dataclass(frozen=True)
class ChatMessage:
    """A normalized chat message."""
    username: str
    text: str


@dataclass(frozen=True)
class Envelope:
    """Outer wrapper of every realtime frame."""
    event: str
    data: Dict[str, Any]

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Envelope"]:
        """
        Decode a raw text frame.

        The payload may be a nested JSON string or an object already; both
        forms are accepted. Anything else is treated as unrecognized.

        Args:
            raw: Text frame as received

        Returns:
            Envelope instance or None if the frame is not recognized
        """
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.debug(f"Dropping undecodable frame: {e}")
            return None

        if not isinstance(payload, dict):
            return None

        event = payload.get("event") or ""
        if not isinstance(event, str):
            return None

        data = payload.get("data")
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, ValueError) as e:
                logger.debug(f"Dropping frame with undecodable data ({event}): {e}")
                return None
        elif not data:
            data = {}

        if not isinstance(data, dict):
            return None

        return cls(event=event, data=data)

    @property
    def is_chat_message(self) -> bool:
        return self.event == "message" or CHAT_MESSAGE_MARKER in self.event


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value:
            return value
    return None


def message_from_envelope(envelope: Envelope) -> Optional[ChatMessage]:
    """Extract a chat message, or None if the envelope carries none."""
    if not envelope.is_chat_message:
        return None

    data = envelope.data
    text = _first_text(data.get("content"), data.get("message"))
    if text is None:
        return None

    sender = data.get("sender")
    sender_name = sender.get("username") if isinstance(sender, dict) else None
    username = _first_text(sender_name, data.get("username")) or DEFAULT_USERNAME

    return ChatMessage(username=username, text=text)


def parse_chat_message(raw: Any) -> Optional[ChatMessage]:
    """Decode a raw frame straight to a chat message; never raises."""
    envelope = Envelope.from_raw(raw)
    if envelope is None:
        return None
    return message_from_envelope(envelope)


async def call_handler(handler: Optional[Callable], *args: Any) -> None:
    """Invoke a plain or coroutine callback, logging anything it raises."""
    if handler is None:
        return
    try:
        result = handler(*args)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        name = getattr(handler, "__name__", repr(handler))
        logger.error(f"Error in callback {name}: {e}", exc_info=True)


@dataclass
class Callbacks:
    """Optional lifecycle notifications for a chat connection."""
    on_open: Optional[Callable[[], Any]] = None
    on_error: Optional[Callable[[Exception], Any]] = None
    on_close: Optional[Callable[[], Any]] = None

    async def emit(self, name: str, *args: Any) -> None:
        await call_handler(getattr(self, name), *args)
