"""Source RCON client.

Every packet is ``size | id | type | body | \\x00\\x00`` with little-endian
int32 header fields, where ``size`` counts everything after itself.
"""

import socket
import struct
from dataclasses import dataclass
from typing import Optional

from rconcli.config import BUFFER_SIZE, config
from rconcli.errors import (
    AuthenticationError, ConnectionFailedError, InvalidArgumentError, ProtocolError
)
from rconcli.utils import log_debug, split_address

SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0

AUTH_ID = 0
AUTH_FAILED_ID = -1

MAX_COMMAND_LEN = 1000
MIN_PACKET_SIZE = 10  # id + type + two terminating nulls
MAX_PACKET_SIZE = 1024 * 1024

_HEADER = struct.Struct("<i")
_ID_TYPE = struct.Struct("<ii")


@dataclass
class Packet:
    id: int
    type: int
    body: str = ""


def encode_packet(packet: Packet) -> bytes:
    payload = _ID_TYPE.pack(packet.id, packet.type) + packet.body.encode("utf-8") + b"\x00\x00"
    return _HEADER.pack(len(payload)) + payload


def decode_payload(payload: bytes) -> Packet:
    if len(payload) < MIN_PACKET_SIZE:
        raise ProtocolError(f"packet too short: {len(payload)} bytes")
    packet_id, packet_type = _ID_TYPE.unpack_from(payload)
    body = payload[_ID_TYPE.size:].rstrip(b"\x00")
    return Packet(packet_id, packet_type, body.decode("utf-8", errors="replace"))


class RconConnection:
    def __init__(self, address: str, password: str, timeout: Optional[float] = None):
        self.address = address
        self.password = password
        self.timeout = config.READ_TIMEOUT if timeout is None else timeout
        self.sock: Optional[socket.socket] = None
        self._last_id = AUTH_ID

    def __enter__(self) -> "RconConnection":
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
        self.sock.settimeout(self.timeout)
        log_debug(f"rcon connected to {self.address}")
        try:
            self._authenticate()
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def _authenticate(self) -> None:
        self._send(Packet(AUTH_ID, SERVERDATA_AUTH, self.password))

        # Source servers send an empty RESPONSE_VALUE ahead of the auth
        # response, other implementations skip it.
        packet = self._read_packet()
        while packet.type == SERVERDATA_RESPONSE_VALUE:
            packet = self._read_packet()

        if packet.type != SERVERDATA_AUTH_RESPONSE:
            raise ProtocolError(f"unexpected packet type {packet.type} during authentication")
        if packet.id == AUTH_FAILED_ID:
            raise AuthenticationError("authentication failed: invalid password")
        if packet.id != AUTH_ID:
            raise ProtocolError(f"invalid authentication packet id {packet.id}")

    def execute(self, command: str) -> str:
        if not command:
            raise InvalidArgumentError("command is not set")
        if len(command.encode("utf-8")) > MAX_COMMAND_LEN:
            raise InvalidArgumentError(f"command too long: limit is {MAX_COMMAND_LEN} bytes")

        self._last_id += 1
        request_id = self._last_id
        self._send(Packet(request_id, SERVERDATA_EXECCOMMAND, command))

        packet = self._read_packet()
        if packet.type != SERVERDATA_RESPONSE_VALUE:
            raise ProtocolError(f"unexpected packet type {packet.type}", result=packet.body)
        if packet.id != request_id:
            raise ProtocolError(
                f"response id {packet.id} does not match request id {request_id}",
                result=packet.body,
            )
        return packet.body

    def _send(self, packet: Packet) -> None:
        if self.sock is None:
            raise ConnectionFailedError("connection is not open")
        try:
            self.sock.sendall(encode_packet(packet))
        except OSError as exc:
            raise ConnectionFailedError(f"write to {self.address}: {exc}") from exc

    def _read_packet(self) -> Packet:
        (size,) = _HEADER.unpack(self._recv_exact(_HEADER.size))
        if size < MIN_PACKET_SIZE or size > MAX_PACKET_SIZE:
            raise ProtocolError(f"invalid packet size {size}")
        return decode_payload(self._recv_exact(size))

    def _recv_exact(self, size: int) -> bytes:
        if self.sock is None:
            raise ConnectionFailedError("connection is not open")
        data = b""
        while len(data) < size:
            try:
                chunk = self.sock.recv(min(BUFFER_SIZE, size - len(data)))
            except socket.timeout as exc:
                raise ConnectionFailedError(f"read from {self.address}: timed out") from exc
            except OSError as exc:
                raise ConnectionFailedError(f"read from {self.address}: {exc}") from exc
            if not chunk:
                raise ConnectionFailedError(f"read from {self.address}: connection closed")
            data += chunk
        return data


def execute(address: str, password: str, command: str) -> str:
    with RconConnection(address, password) as connection:
        return connection.execute(command)


def check_credentials(address: str, password: str) -> None:
    with RconConnection(address, password):
        pass
