from rconcli.config import DEFAULT_LOG_NAME
from rconcli.utils import iso_now, json_line


def add_log(target: str, address: str, command: str, result: str) -> None:
    """Append one command/response record to the log file ``target``.

    An empty target writes to DEFAULT_LOG_NAME in the working directory.
    Write failures propagate to the caller.
    """
    json_line(
        target or DEFAULT_LOG_NAME,
        {
            "ts": iso_now(),
            "address": address,
            "command": command,
            "result": result,
        },
    )
