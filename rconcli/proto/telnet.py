"""Line-oriented telnet console, as spoken by 7 Days to Die style servers.

The server opens with a password prompt, answers the password with a
logon banner and from then on echoes log lines and command output as
CRLF terminated text. There is no explicit end-of-response marker, so
output is collected until the line goes quiet.
"""

import socket
import time
from typing import Optional, TextIO, Tuple

from rconcli.config import BUFFER_SIZE, COMMAND_QUIT, config
from rconcli.errors import (
    AuthenticationError, BackendExecutionError, ConnectionFailedError,
    InvalidArgumentError, MissingCredentialError
)
from rconcli.utils import clean_output, log_debug, prompt, read_token, split_address

PASSWORD_PROMPT = "Please enter password:"
AUTH_SUCCESS = "Logon successful."
AUTH_FAILED = "Password incorrect, please enter password:"
EXIT_COMMAND = "exit"
CRLF = "\r\n"


class TelnetConnection:
    def __init__(self, address: str, password: str, timeout: Optional[float] = None):
        self.address = address
        self.password = password
        self.timeout = config.READ_TIMEOUT if timeout is None else timeout
        self.sock: Optional[socket.socket] = None
        self._pending = ""

    def __enter__(self) -> "TelnetConnection":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self) -> None:
        host, port = split_address(self.address)
        try:
            self.sock = socket.create_connection((host, port), timeout=config.DIAL_TIMEOUT)
        except OSError as exc:
            raise ConnectionFailedError(f"dial {self.address}: {exc}") from exc
        log_debug(f"telnet connected to {self.address}")
        try:
            self._authenticate()
        except BaseException:
            self._drop()
            raise

    def close(self) -> None:
        if self.sock is None:
            return
        try:
            self.send_line(EXIT_COMMAND)
        except ConnectionFailedError as exc:
            log_debug(f"telnet exit not delivered: {exc}")
        self._drop()

    def _drop(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def _authenticate(self) -> None:
        self.read_until(PASSWORD_PROMPT)
        self.send_line(self.password)
        reply = self.read_until(AUTH_SUCCESS, AUTH_FAILED)
        if reply.endswith(AUTH_FAILED):
            raise AuthenticationError("authentication failed: password incorrect")
        # Swallow the logon banner so it does not prefix the first response.
        self.read_quiet()

    def execute(self, command: str) -> str:
        if not command:
            raise InvalidArgumentError("command is not set")
        self.send_line(command)
        return clean_output(self.read_quiet())

    def send_line(self, line: str) -> None:
        if self.sock is None:
            raise ConnectionFailedError("connection is not open")
        try:
            self.sock.sendall((line + CRLF).encode("utf-8"))
        except OSError as exc:
            raise ConnectionFailedError(f"write to {self.address}: {exc}") from exc

    def _recv(self, timeout: float) -> str:
        self.sock.settimeout(timeout)
        try:
            chunk = self.sock.recv(BUFFER_SIZE)
        except socket.timeout:
            raise
        except OSError as exc:
            raise ConnectionFailedError(f"read from {self.address}: {exc}") from exc
        if not chunk:
            raise ConnectionFailedError(f"read from {self.address}: connection closed")
        return chunk.decode("utf-8", errors="replace")

    def _find_marker(self, markers: Tuple[str, ...]) -> int:
        ends = []
        for marker in markers:
            index = self._pending.find(marker)
            if index >= 0:
                ends.append(index + len(marker))
        return min(ends) if ends else -1

    def read_until(self, *markers: str) -> str:
        """Read until the earliest of ``markers`` and return the text up to it."""
        deadline = time.monotonic() + self.timeout
        while True:
            end = self._find_marker(markers)
            if end >= 0:
                text, self._pending = self._pending[:end], self._pending[end:]
                return text

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConnectionFailedError(
                    f"timed out waiting for {markers[0]!r}", result=clean_output(self._pending)
                )
            try:
                self._pending += self._recv(remaining)
            except socket.timeout as exc:
                raise ConnectionFailedError(
                    f"timed out waiting for {markers[0]!r}", result=clean_output(self._pending)
                ) from exc

    def read_quiet(self) -> str:
        """Read until nothing arrives for QUIET_TIMEOUT, bounded by the read timeout."""
        collected, self._pending = self._pending, ""
        deadline = time.monotonic() + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                collected += self._recv(min(config.QUIET_TIMEOUT, remaining))
            except socket.timeout:
                break
            except BackendExecutionError as exc:
                exc.result = clean_output(collected)
                raise
        return collected


def execute(address: str, password: str, command: str) -> str:
    with TelnetConnection(address, password) as connection:
        return connection.execute(command)


def check_credentials(address: str, password: str) -> None:
    with TelnetConnection(address, password):
        pass


def interactive(r: TextIO, w: TextIO, address: str, password: str) -> None:
    """Run a console session that owns its own password negotiation."""
    if not password:
        prompt(w, "Enter password: ")
        password = read_token(r)
    if not password:
        raise MissingCredentialError("password is not set")

    with TelnetConnection(address, password) as connection:
        prompt(w, f"Waiting commands for {address} (or type {COMMAND_QUIT} to exit)\n> ")
        while True:
            line = r.readline()
            if not line:
                break
            command = line.rstrip("\r\n")
            if command:
                if command == COMMAND_QUIT:
                    break
                try:
                    output = connection.execute(command)
                except BackendExecutionError as exc:
                    if exc.result:
                        w.write(exc.result + "\n")
                    raise
                if output:
                    w.write(output + "\n")
            prompt(w, "> ")
