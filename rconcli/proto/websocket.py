"""WebRCON client (Rust style): JSON frames over a WebSocket.

The password is part of the URL path; a wrong one makes the server
refuse the handshake.
"""

import asyncio
import itertools
import json
from typing import Any, Dict
from urllib.parse import quote

import aiohttp

from rconcli.config import config
from rconcli.errors import (
    AuthenticationError, ConnectionFailedError, InvalidArgumentError, ProtocolError
)
from rconcli.utils import log_debug, split_address

CLIENT_NAME = "WebRcon"

_identifiers = itertools.count(1000)


def build_url(address: str, password: str) -> str:
    return f"ws://{address}/{quote(password, safe='')}"


def build_request(identifier: int, command: str) -> Dict[str, Any]:
    return {"Identifier": identifier, "Message": command, "Name": CLIENT_NAME}


def _connect(session: aiohttp.ClientSession, address: str, password: str):
    return session.ws_connect(build_url(address, password), autoping=True, heartbeat=None)


def _translate(exc: Exception, address: str) -> Exception:
    if isinstance(exc, aiohttp.WSServerHandshakeError):
        return AuthenticationError(f"authentication failed: handshake rejected with status {exc.status}")
    if isinstance(exc, asyncio.TimeoutError):
        return ConnectionFailedError(f"{address}: timed out")
    return ConnectionFailedError(f"{address}: {exc}")


async def _execute(address: str, password: str, command: str) -> str:
    identifier = next(_identifiers)
    async with aiohttp.ClientSession() as session:
        async with _connect(session, address, password) as ws:
            log_debug(f"webrcon connected to {address}, request {identifier}")
            await ws.send_json(build_request(identifier, command))
            async for message in ws:
                if message.type == aiohttp.WSMsgType.TEXT:
                    try:
                        data = json.loads(message.data)
                    except ValueError as exc:
                        raise ProtocolError(f"malformed frame: {exc}", result=message.data) from exc
                    # Broadcast console lines carry other identifiers.
                    if isinstance(data, dict) and data.get("Identifier") == identifier:
                        return str(data.get("Message") or "")
                elif message.type == aiohttp.WSMsgType.ERROR:
                    raise ConnectionFailedError(f"{address}: {ws.exception()}")
    raise ConnectionFailedError(f"{address}: connection closed before response")


async def _check_credentials(address: str, password: str) -> None:
    async with aiohttp.ClientSession() as session:
        async with _connect(session, address, password):
            log_debug(f"webrcon credentials accepted by {address}")


def _run(coro, address: str):
    timeout = config.DIAL_TIMEOUT + config.READ_TIMEOUT
    try:
        return asyncio.run(asyncio.wait_for(coro, timeout))
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise _translate(exc, address) from exc


def execute(address: str, password: str, command: str) -> str:
    split_address(address)
    if not command:
        raise InvalidArgumentError("command is not set")
    return _run(_execute(address, password, command), address)


def check_credentials(address: str, password: str) -> None:
    split_address(address)
    _run(_check_credentials(address, password), address)
