"""Shared fixtures: stub protocol backends and a scripted fake socket."""

import socket
from typing import Callable, List, Optional, Tuple

import pytest

from rconcli.config import config
from rconcli.executor import Backends, Executor


class StubBackend:
    """Records calls; returns ``result`` or raises ``error`` from execute."""

    def __init__(self, result="", error=None, auth_error=None, echo=False):
        self.result = result
        self.error = error
        self.auth_error = auth_error
        self.echo = echo
        self.calls: List[Tuple[str, str, str]] = []
        self.auth_calls: List[Tuple[str, str]] = []
        self.interactive_calls = []

    def execute(self, address, password, command):
        self.calls.append((address, password, command))
        if self.error is not None:
            raise self.error
        return command if self.echo else self.result

    def check_credentials(self, address, password):
        self.auth_calls.append((address, password))
        if self.auth_error is not None:
            raise self.auth_error

    def interactive(self, r, w, address, password):
        self.interactive_calls.append((address, password))


class LogRecorder:
    def __init__(self, error=None):
        self.records = []
        self.error = error

    def __call__(self, target, address, command, result):
        if self.error is not None:
            raise self.error
        self.records.append((target, address, command, result))


class FakeSocket:
    """In-memory socket: ``recv`` drains the inbox, then times out.

    ``on_send`` may return bytes that are queued as the reply to each
    ``sendall``.
    """

    def __init__(self, initial: bytes = b"", on_send: Optional[Callable[[bytes], bytes]] = None):
        self.inbox = bytearray(initial)
        self.on_send = on_send
        self.sent: List[bytes] = []
        self.closed = False
        self.eof = False

    def settimeout(self, value):
        pass

    def sendall(self, data):
        self.sent.append(bytes(data))
        if self.on_send is not None:
            reply = self.on_send(bytes(data))
            if reply:
                self.inbox.extend(reply)

    def recv(self, size):
        if not self.inbox:
            if self.eof:
                return b""
            raise socket.timeout("timed out")
        chunk = bytes(self.inbox[:size])
        del self.inbox[:size]
        return chunk

    def close(self):
        self.closed = True


@pytest.fixture
def backends():
    return Backends(rcon=StubBackend(), telnet=StubBackend(), web=StubBackend())


@pytest.fixture
def log_recorder():
    return LogRecorder()


@pytest.fixture
def executor(backends, log_recorder):
    return Executor(backends=backends, add_log=log_recorder)


@pytest.fixture(autouse=True)
def _fast_timeouts(monkeypatch):
    monkeypatch.setattr(config, "DIAL_TIMEOUT", 0.5)
    monkeypatch.setattr(config, "READ_TIMEOUT", 0.5)
    monkeypatch.setattr(config, "QUIET_TIMEOUT", 0.05)
    monkeypatch.setattr(config, "CONFIG_PATH", "")
    monkeypatch.setattr(config, "DEBUG", False)
