import argparse
import sys
from typing import List, Optional, TextIO

from rconcli.config import DEFAULT_CONFIG_NAME, VERSION, config
from rconcli.errors import MissingCredentialError, RconCliError
from rconcli.executor import Executor
from rconcli.session import DEFAULT_PROTOCOL, Session, resolve_credentials
from rconcli.utils import log_error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-cli",
        description=(
            "CLI for executing queries on a remote server. Can be run in two modes: "
            "a single query (-c) or reading commands from the input stream."
        ),
    )
    parser.add_argument(
        "-a", "--address", default="",
        help=f"Host and port of the remote server, e.g. 127.0.0.1:16260 (can be set in {DEFAULT_CONFIG_NAME})",
    )
    parser.add_argument(
        "-p", "--password", default="",
        help=f"Password of the remote server (can be set in {DEFAULT_CONFIG_NAME})",
    )
    parser.add_argument(
        "-c", "--command", default="",
        help="Command to execute on the remote server. Required to run in single mode",
    )
    parser.add_argument(
        "-e", "--env", default="",
        help="Environment in the configuration file to take address and password from",
    )
    parser.add_argument(
        "-l", "--log", default="",
        help="Path and name of the log file. Taken from the config if not specified",
    )
    parser.add_argument(
        "--cfg", default="",
        help=f"Path and name of the configuration file (default {DEFAULT_CONFIG_NAME})",
    )
    parser.add_argument(
        "-t", "--type", default="",
        help=f"Protocol type: rcon, telnet or web (default {DEFAULT_PROTOCOL.value})",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def run(args: argparse.Namespace, r: TextIO, w: TextIO, executor: Optional[Executor] = None) -> None:
    executor = executor or Executor()
    overrides = Session(address=args.address, password=args.password, type=args.type, log=args.log)
    session = resolve_credentials(overrides, config_path=args.cfg, env=args.env)

    if not args.command:
        executor.interactive(r, w, session)
        return

    if not session.address:
        raise MissingCredentialError("address is not set: to set address add -a host:port")
    if not session.password:
        raise MissingCredentialError("password is not set: to set password add -p password")

    executor.execute(w, session, args.command)


def main(argv: Optional[List[str]] = None, executor: Optional[Executor] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config.load_from_env()
        run(args, sys.stdin, sys.stdout, executor)
    except RconCliError as exc:
        log_error(str(exc))
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
