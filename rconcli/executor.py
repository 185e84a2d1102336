from dataclasses import dataclass
from typing import Any, Callable, Optional, TextIO

from rconcli import logger
from rconcli.config import COMMAND_QUIT
from rconcli.errors import InvalidArgumentError, LogWriteError, MissingCredentialError
from rconcli.proto import rcon, telnet, websocket
from rconcli.session import Protocol, Session
from rconcli.utils import log_debug, prompt, read_token

AddLog = Callable[[str, str, str, str], None]


@dataclass
class Backends:
    """One backend per protocol kind; each exposes execute/check_credentials."""

    rcon: Any = rcon
    telnet: Any = telnet
    web: Any = websocket


def _write_result(w: TextIO, result: str) -> str:
    if not result:
        return ""
    result = result.strip()
    w.write(result + "\n")
    w.flush()
    return result


class Executor:
    def __init__(self, backends: Optional[Backends] = None, add_log: AddLog = logger.add_log):
        self.backends = backends or Backends()
        self.add_log = add_log

    def backend_for(self, protocol: Protocol) -> Any:
        if protocol is Protocol.TELNET:
            return self.backends.telnet
        if protocol is Protocol.WEB:
            return self.backends.web
        return self.backends.rcon

    def execute(self, w: TextIO, session: Session, command: str) -> None:
        """Run one command remotely, print the response and log it.

        Output received before a failure is printed before the failure is
        raised. A failed log write raises LogWriteError, distinct from any
        backend error.
        """
        if not command:
            raise InvalidArgumentError("command is not set")

        backend = self.backend_for(session.protocol)
        log_debug(f"{session.protocol.value} -> {session.address}: {command}")
        try:
            result = backend.execute(session.address, session.password, command)
        except Exception as exc:
            _write_result(w, getattr(exc, "result", ""))
            raise

        result = _write_result(w, result)

        try:
            self.add_log(session.log, session.address, command, result)
        except Exception as exc:
            raise LogWriteError(f"log error: {exc}") from exc

    def check_credentials(self, session: Session) -> None:
        if session.protocol is Protocol.WEB:
            self.backends.web.check_credentials(session.address, session.password)
            return
        self.backends.rcon.check_credentials(session.address, session.password)

    def interactive(self, r: TextIO, w: TextIO, session: Session) -> None:
        """Read commands from ``r`` one line at a time and execute them.

        Stops on COMMAND_QUIT or end of input. Any execution error ends
        the loop and is raised.
        """
        if not session.address:
            prompt(w, "Enter remote host and port [ip:port]: ")
            session = session.with_address(read_token(r))
        if not session.address:
            raise MissingCredentialError("address is not set")

        # Telnet consoles negotiate the password themselves.
        if session.protocol is Protocol.TELNET:
            self.backends.telnet.interactive(r, w, session.address, session.password)
            return

        if not session.password:
            prompt(w, "Enter password: ")
            session = session.with_password(read_token(r))
        if not session.password:
            raise MissingCredentialError("password is not set")

        self.check_credentials(session)

        prompt(w, f"Waiting commands for {session.address} (or type {COMMAND_QUIT} to exit)\n> ")
        while True:
            line = r.readline()
            if not line:
                break
            command = line.rstrip("\r\n")
            if command:
                if command == COMMAND_QUIT:
                    break
                self.execute(w, session, command)
            prompt(w, "> ")
