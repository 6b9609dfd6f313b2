"""Tests for WebSocket host fallback."""

import pytest

from kickchat.chat.exceptions import AllEndpointsFailedError, ConnectTimeoutError, TransportError
from kickchat.chat.prober import chatroom_address, probe

HOSTS = [
    "wss://ws-prod.chat-service.kick.com/chatroom",
    "wss://ws-us.chat-service.kick.com/chatroom",
    "wss://ws-eu.chat-service.kick.com/chatroom",
]


class FakeSession:
    def __init__(self, address):
        self.address = address


class ScriptedEstablish:
    """Fails for the addresses given, succeeds for every other one."""

    def __init__(self, failures):
        self.failures = failures
        self.calls = []

    async def __call__(self, address, on_message, callbacks, **options):
        self.calls.append((address, options))
        if address in self.failures:
            raise self.failures[address]
        return FakeSession(address)


def test_chatroom_address():
    assert chatroom_address(HOSTS[0], 42) == f"{HOSTS[0]}/42"
    assert chatroom_address(HOSTS[0] + "/", 42) == f"{HOSTS[0]}/42"


@pytest.mark.asyncio
async def test_stops_at_first_host_that_connects():
    establish = ScriptedEstablish({f"{HOSTS[0]}/42": ConnectTimeoutError("WS connect timeout")})

    session = await probe(HOSTS, 42, print, establish=establish, connect_timeout=3.0)

    assert session.address == f"{HOSTS[1]}/42"
    assert [address for address, _ in establish.calls] == [f"{HOSTS[0]}/42", f"{HOSTS[1]}/42"]
    assert establish.calls[0][1] == {"connect_timeout": 3.0}


@pytest.mark.asyncio
async def test_first_host_success_contacts_no_other_host():
    establish = ScriptedEstablish({})

    await probe(HOSTS, 7, print, establish=establish)

    assert [address for address, _ in establish.calls] == [f"{HOSTS[0]}/7"]


@pytest.mark.asyncio
async def test_all_hosts_failing_aggregates_per_host_reasons():
    establish = ScriptedEstablish({
        f"{HOSTS[0]}/42": ConnectTimeoutError("WS connect timeout"),
        f"{HOSTS[1]}/42": TransportError("connection refused"),
        f"{HOSTS[2]}/42": TransportError("403, message='Invalid response status'"),
    })

    with pytest.raises(AllEndpointsFailedError) as exc_info:
        await probe(HOSTS, 42, print, establish=establish)

    assert exc_info.value.attempts == [
        f"{HOSTS[0]}: WS connect timeout",
        f"{HOSTS[1]}: connection refused",
        f"{HOSTS[2]}: 403, message='Invalid response status'",
    ]
    assert str(exc_info.value).startswith("All WS hosts failed: ")
