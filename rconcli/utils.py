import json
import os
import sys
from datetime import datetime
from typing import Any, Dict, TextIO, Tuple

from rconcli.config import ANSI_ESCAPE, CONTROL_CHARS, config
from rconcli.errors import InvalidArgumentError


def log_error(message: str) -> None:
    print(f"[rcon-cli] {message}", file=sys.stderr, flush=True)


def log_debug(message: str) -> None:
    if config.DEBUG:
        log_error(f"debug: {message}")


def iso_now() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


def split_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port:
        raise InvalidArgumentError(f"invalid address {address!r}: expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        number = int(port)
    except ValueError as exc:
        raise InvalidArgumentError(f"invalid port in address {address!r}") from exc
    if not 0 < number < 65536:
        raise InvalidArgumentError(f"invalid port in address {address!r}")
    return host, number


def read_token(r: TextIO) -> str:
    # One whitespace-delimited token from one line; "" on end of input.
    parts = r.readline().split()
    return parts[0] if parts else ""


def prompt(w: TextIO, text: str) -> None:
    w.write(text)
    w.flush()


def clean_output(text: str) -> str:
    if not text:
        return ""
    text = ANSI_ESCAPE.sub("", text)
    text = CONTROL_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    while "\n\n\n" in text:
        text = text.replace("\n\n\n", "\n\n")
    return text.strip()


def json_line(path: str, payload: Dict[str, Any]) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
