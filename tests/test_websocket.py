import asyncio

import aiohttp
import pytest

from rconcli.errors import AuthenticationError, ConnectionFailedError, InvalidArgumentError
from rconcli.proto import websocket


def test_build_url_quotes_password():
    assert websocket.build_url("127.0.0.1:28016", "p@ss/word") == "ws://127.0.0.1:28016/p%40ss%2Fword"


def test_build_request():
    assert websocket.build_request(1001, "status") == {
        "Identifier": 1001,
        "Message": "status",
        "Name": "WebRcon",
    }


def test_execute_runs_coroutine(monkeypatch):
    async def fake_execute(address, password, command):
        return f"{address}|{password}|{command}"

    monkeypatch.setattr(websocket, "_execute", fake_execute)

    assert websocket.execute("h:1", "pw", "status") == "h:1|pw|status"


def test_execute_rejects_empty_command():
    with pytest.raises(InvalidArgumentError):
        websocket.execute("h:1", "pw", "")


def test_handshake_rejection_is_authentication_error(monkeypatch):
    async def rejected(address, password):
        raise aiohttp.WSServerHandshakeError(request_info=None, history=(), status=401)

    monkeypatch.setattr(websocket, "_check_credentials", rejected)

    with pytest.raises(AuthenticationError):
        websocket.check_credentials("h:1", "bad")


def test_timeout_is_connection_error(monkeypatch):
    async def slow(address, password, command):
        raise asyncio.TimeoutError()

    monkeypatch.setattr(websocket, "_execute", slow)

    with pytest.raises(ConnectionFailedError, match="timed out"):
        websocket.execute("h:1", "pw", "status")


def test_client_error_is_connection_error(monkeypatch):
    async def refused(address, password, command):
        raise aiohttp.ClientConnectionError("connection refused")

    monkeypatch.setattr(websocket, "_execute", refused)

    with pytest.raises(ConnectionFailedError, match="connection refused"):
        websocket.execute("h:1", "pw", "status")


@pytest.mark.parametrize("address", ["nohostport", "host:", ":28016", "host:notaport"])
def test_invalid_address_rejected_before_dialing(monkeypatch, address):
    async def must_not_dial(*args):
        raise AssertionError("dialed an invalid address")

    monkeypatch.setattr(websocket, "_execute", must_not_dial)
    monkeypatch.setattr(websocket, "_check_credentials", must_not_dial)

    with pytest.raises(InvalidArgumentError, match="invalid"):
        websocket.execute(address, "pw", "status")
    with pytest.raises(InvalidArgumentError, match="invalid"):
        websocket.check_credentials(address, "pw")
