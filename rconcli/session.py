from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Optional

from rconcli.config import DEFAULT_CONFIG_ENV, Profile, load_config


class Protocol(str, Enum):
    RCON = "rcon"
    TELNET = "telnet"
    WEB = "web"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Protocol":
        # Anything unrecognised, the empty string included, is plain RCON.
        value = (value or "").strip().lower()
        if value == cls.TELNET.value:
            return cls.TELNET
        if value == cls.WEB.value:
            return cls.WEB
        return cls.RCON


DEFAULT_PROTOCOL = Protocol.RCON


@dataclass(frozen=True)
class Session:
    """Connection parameters for one invocation. Empty strings mean unset."""

    address: str = ""
    password: str = ""
    type: str = ""
    log: str = ""

    @property
    def protocol(self) -> Protocol:
        return Protocol.parse(self.type)

    def with_address(self, address: str) -> "Session":
        return replace(self, address=address)

    def with_password(self, password: str) -> "Session":
        return replace(self, password=password)


def resolve_credentials(
    overrides: Session,
    config_path: Optional[str] = None,
    env: Optional[str] = None,
    load: Callable[[Optional[str]], Dict[str, Profile]] = load_config,
) -> Session:
    """Merge explicit values with the selected configuration environment.

    When both address and password are given explicitly the configuration
    file is not read at all. Otherwise every field still empty is taken
    from environment ``env`` (or the default one) of the file.
    """
    if overrides.address and overrides.password:
        return overrides

    profiles = load(config_path)
    profile = profiles.get(env or DEFAULT_CONFIG_ENV)
    if profile is None:
        return overrides

    return Session(
        address=overrides.address or profile.address,
        password=overrides.password or profile.password,
        type=overrides.type or profile.type,
        log=overrides.log or profile.log,
    )
