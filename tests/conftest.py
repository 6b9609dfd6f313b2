"""Shared fakes for the HTTP session, WebSocket channel and timers."""

import asyncio
import json
from collections import namedtuple

import aiohttp
import pytest

Frame = namedtuple("Frame", ["type", "data", "extra"])


async def drain(rounds: int = 20) -> None:
    """Let every ready task run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeResponse:
    def __init__(self, status=200, json_body=None, text_body=None):
        self.status = status
        self._json_body = json_body
        self._text_body = text_body

    async def json(self, content_type="application/json"):
        if self._json_body is None:
            raise json.JSONDecodeError("Expecting value", self._text_body or "", 0)
        return self._json_body

    async def text(self):
        if self._text_body is None:
            return json.dumps(self._json_body)
        return self._text_body


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc_info):
        return False


class FakeHttpSession:
    """Stands in for aiohttp.ClientSession; unknown URLs answer 404."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        return _RequestContext(self.routes.get(url, FakeResponse(status=404)))


class FakeChannel:
    """Stands in for an open WebSocket channel."""

    def __init__(self):
        self.sent = []
        self.close_calls = 0
        self.closed = False
        self.fail_sends = False
        self._frames = asyncio.Queue()

    def push_text(self, data) -> None:
        if not isinstance(data, str):
            data = json.dumps(data)
        self._frames.put_nowait(Frame(aiohttp.WSMsgType.TEXT, data, None))

    def push_error(self) -> None:
        self._frames.put_nowait(Frame(aiohttp.WSMsgType.ERROR, None, None))

    def drop(self) -> None:
        """Simulate the server closing the connection."""
        self.closed = True
        self._frames.put_nowait(Frame(aiohttp.WSMsgType.CLOSED, None, None))

    async def receive(self):
        return await self._frames.get()

    async def send_str(self, data: str) -> None:
        if self.fail_sends:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)

    def exception(self):
        return ConnectionResetError("reset by peer")

    async def close(self) -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self._frames.put_nowait(Frame(aiohttp.WSMsgType.CLOSING, None, None))


class ManualClock:
    """Replacement for asyncio.sleep driven by advance()."""

    def __init__(self):
        self.now = 0.0
        self._sleepers = []

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, future))
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            await drain()
            due = [s for s in self._sleepers if s[0] <= target and not s[1].done()]
            if not due:
                break
            sleeper = min(due, key=lambda s: s[0])
            self._sleepers.remove(sleeper)
            self.now = sleeper[0]
            sleeper[1].set_result(None)
        self.now = target
        await drain()


class ChannelFactory:
    """Connect function handing out FakeChannels and recording addresses."""

    def __init__(self):
        self.addresses = []
        self.channels = []

    async def __call__(self, address: str) -> FakeChannel:
        self.addresses.append(address)
        channel = FakeChannel()
        self.channels.append(channel)
        return channel


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def channel_factory():
    return ChannelFactory()
