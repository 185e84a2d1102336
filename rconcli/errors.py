"""Exception hierarchy for rcon-cli.

Every failure the dispatcher can surface to the operator derives from
RconCliError, so the command line can turn any of them into a message
and a non-zero exit code.
"""


class RconCliError(Exception):
    """Base exception for all rcon-cli errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MissingCredentialError(RconCliError):
    """Address or password absent when a remote call needs it."""


class InvalidArgumentError(RconCliError):
    """Malformed operator input, e.g. an empty command or a bad address."""


class ConfigurationError(RconCliError):
    """Configuration file unreadable or malformed."""


class LogWriteError(RconCliError):
    """The command succeeded remotely but its log record could not be written."""


class BackendExecutionError(RconCliError):
    """A protocol backend failed to execute a command.

    ``result`` carries whatever output arrived before the failure so the
    caller can still show it.
    """

    def __init__(self, message: str, result: str = ""):
        super().__init__(message)
        self.result = result


class ConnectionFailedError(BackendExecutionError):
    """Dial, read or write on the remote connection failed."""


class ProtocolError(BackendExecutionError):
    """The remote side answered with something the protocol does not allow."""


class AuthenticationError(BackendExecutionError):
    """The remote server rejected the password."""
