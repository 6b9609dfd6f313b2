"""
HTTP API for resolving a channel's chatroom ID.
"""

import asyncio
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from urllib.parse import quote
import logging

import aiohttp

from kickchat.chat.exceptions import ChannelNotFoundError, ResolutionError
from kickchat.chat.fallback import Attempt, first_success
from kickchat.models import Config

logger = logging.getLogger(__name__)

# Matches "chatroom":{..."id":12345 inside the page markup
CHATROOM_ID_PATTERN = re.compile(r'"chatroom"\s*:\s*\{[^}]*"id"\s*:\s*(\d+)', re.IGNORECASE)


def _slug(channel_name: str) -> str:
    return quote(channel_name, safe="")


def api_v2_url(channel_name: str, config: Optional[Config] = None) -> str:
    return (config or Config()).api_v2_url.format(slug=_slug(channel_name))


def api_v1_url(channel_name: str, config: Optional[Config] = None) -> str:
    return (config or Config()).api_v1_url.format(slug=_slug(channel_name))


def page_url(channel_name: str, config: Optional[Config] = None) -> str:
    return (config or Config()).page_url.format(slug=_slug(channel_name))


def _as_room_id(value: Any) -> Optional[int]:
    """Accept positive ints and digit strings; anything else is absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.isdigit():
        number = int(value)
        return number if number > 0 else None
    return None


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def extract_chatroom_id(data: Any) -> Optional[int]:
    """
    Extract the chatroom ID from a channel info response.

    Known shapes are checked in this order:
    ``chatroom.id``, ``chatroom_id``, ``livestream.chatroom.id``.

    Args:
        data: Decoded JSON body

    Returns:
        The chatroom ID, or None if no shape matched
    """
    for path in (("chatroom", "id"), ("chatroom_id",), ("livestream", "chatroom", "id")):
        room_id = _as_room_id(_dig(data, *path))
        if room_id is not None:
            return room_id
    return None


def extract_chatroom_id_from_html(html: str) -> Optional[int]:
    """Best-effort chatroom ID lookup in the channel page markup."""
    match = CHATROOM_ID_PATTERN.search(html)
    if not match:
        return None
    return _as_room_id(match.group(1))


@asynccontextmanager
async def _client_session(
    session: Optional[aiohttp.ClientSession],
    config: Config,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Use the given session, or open a temporary one."""
    if session is not None:
        yield session
        return

    timeout = aiohttp.ClientTimeout(total=config.http_timeout_sec)
    async with aiohttp.ClientSession(headers=config.http_headers, timeout=timeout) as owned:
        yield owned


async def _chatroom_id_from_api(
    url: str,
    version: str,
    session: aiohttp.ClientSession,
) -> int:
    try:
        async with session.get(url) as response:
            if not 200 <= response.status < 300:
                raise ChannelNotFoundError(f"API {version} {response.status}")

            try:
                data = await response.json(content_type=None)
            except ValueError:
                data = None

    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ChannelNotFoundError(f"API {version} network error: {e}")

    room_id = extract_chatroom_id(data)
    if room_id is None:
        raise ChannelNotFoundError(f"chatroom.id not found ({version})")

    return room_id


async def get_chatroom_id_from_v2(
    channel_name: str,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[Config] = None,
) -> int:
    """
    Look up the chatroom ID through the v2 channel API.

    Raises:
        ChannelNotFoundError: On HTTP/network failure or missing ID
    """
    config = config or Config()
    async with _client_session(session, config) as http:
        return await _chatroom_id_from_api(api_v2_url(channel_name, config), "v2", http)


async def get_chatroom_id_from_v1(
    channel_name: str,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[Config] = None,
) -> int:
    """
    Look up the chatroom ID through the v1 channel API.

    Raises:
        ChannelNotFoundError: On HTTP/network failure or missing ID
    """
    config = config or Config()
    async with _client_session(session, config) as http:
        return await _chatroom_id_from_api(api_v1_url(channel_name, config), "v1", http)


async def get_chatroom_id_from_html(
    channel_name: str,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[Config] = None,
) -> int:
    """
    Look up the chatroom ID in the public channel page.

    Raises:
        ChannelNotFoundError: On HTTP/network failure or missing ID
    """
    config = config or Config()
    async with _client_session(session, config) as http:
        try:
            async with http.get(page_url(channel_name, config)) as response:
                if not 200 <= response.status < 300:
                    raise ChannelNotFoundError(f"PAGE {response.status}")
                html = await response.text()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChannelNotFoundError(f"PAGE network error: {e}")

    room_id = extract_chatroom_id_from_html(html)
    if room_id is None:
        raise ChannelNotFoundError("chatroom.id not found (HTML)")

    return room_id


async def get_chatroom_id(
    channel_name: str,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[Config] = None,
) -> int:
    """
    Resolve the chatroom ID for a channel.

    Strategies run strictly in order (v2 API, v1 API, page markup) and the
    first one that finds an ID wins.

    Args:
        channel_name: The Kick channel slug
        session: Session to issue requests with (a temporary one otherwise)
        config: Lookup configuration

    Returns:
        The chatroom ID

    Raises:
        ResolutionError: If every strategy failed; lists each reason in order
    """
    config = config or Config()

    async with _client_session(session, config) as http:
        strategies = (get_chatroom_id_from_v2, get_chatroom_id_from_v1, get_chatroom_id_from_html)
        attempts = [
            Attempt(run=lambda strategy=strategy: strategy(channel_name, http, config))
            for strategy in strategies
        ]
        room_id = await first_success(
            attempts,
            exhausted=ResolutionError,
            stage=f"chatroom id lookup for {channel_name!r}",
        )

    logger.info(f"Got chatroom ID for {channel_name}: {room_id}")
    return room_id
