import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from rconcli.errors import ConfigurationError

VERSION = "0.10.3"

# ========= Static config =========
DEFAULT_CONFIG_NAME = "rcon.yaml"
DEFAULT_CONFIG_ENV = "default"
DEFAULT_LOG_NAME = "rcon-default.log"
COMMAND_QUIT = ":q"

DIAL_TIMEOUT = 5.0
READ_TIMEOUT = 5.0
QUIET_TIMEOUT = 1.0
BUFFER_SIZE = 4096

# ========= Output cleanup =========
ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


# ========= Runtime Configuration =========
def _env_seconds(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


class RuntimeConfig:
    def __init__(self):
        self.DEBUG: bool = False
        self.CONFIG_PATH: str = ""
        self.DIAL_TIMEOUT: float = DIAL_TIMEOUT
        self.READ_TIMEOUT: float = READ_TIMEOUT
        self.QUIET_TIMEOUT: float = QUIET_TIMEOUT

    def load_from_env(self):
        self.CONFIG_PATH = os.environ.get("RCON_CLI_CONFIG", self.CONFIG_PATH)
        self.DIAL_TIMEOUT = _env_seconds("RCON_CLI_DIAL_TIMEOUT", self.DIAL_TIMEOUT)
        self.READ_TIMEOUT = _env_seconds("RCON_CLI_READ_TIMEOUT", self.READ_TIMEOUT)

        debug_env = os.environ.get("RCON_CLI_DEBUG")
        if debug_env is not None:
            self.DEBUG = debug_env.lower() in ("true", "1", "yes")

# Global instance
config = RuntimeConfig()


# ========= Profiles =========
@dataclass(frozen=True)
class Profile:
    address: str = ""
    password: str = ""
    log: str = ""
    type: str = ""


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def parse_profiles(data: Any, source: str) -> Dict[str, Profile]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config {source}: top level must be a mapping of environments")

    profiles: Dict[str, Profile] = {}
    for name, section in data.items():
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"config {source}: environment {name!r} must be a mapping")
        profiles[str(name)] = Profile(
            address=_as_str(section.get("address")),
            password=_as_str(section.get("password")),
            log=_as_str(section.get("log")),
            type=_as_str(section.get("type")),
        )
    return profiles


def load_config(path: Optional[str] = None) -> Dict[str, Profile]:
    """Read the environments of a YAML or JSON configuration file.

    A missing file is only tolerated for the implicit default name; a path
    the operator asked for must exist.
    """
    explicit = bool(path or config.CONFIG_PATH)
    path = path or config.CONFIG_PATH or DEFAULT_CONFIG_NAME

    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = handle.read()
    except FileNotFoundError as exc:
        if not explicit:
            return {}
        raise ConfigurationError(f"config file {path} not found") from exc
    except OSError as exc:
        raise ConfigurationError(f"failed to read config {path}: {exc}") from exc

    try:
        if path.lower().endswith(".json"):
            data = json.loads(raw) if raw.strip() else None
        else:
            data = yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to parse config {path}: {exc}") from exc

    return parse_profiles(data, path)
