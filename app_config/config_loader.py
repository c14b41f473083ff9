from __future__ import annotations

import configparser
import os
from dataclasses import dataclass


DEFAULT_LOGGING_LEVEL = "INFO"


@dataclass(frozen=True)
class ServerCfg:
    host: str
    port: int


class ConfigError(Exception):
    pass


def resolve_config_path() -> str:
    candidates = []
    env_cfg_path = os.getenv("CONFIG_PATH")
    if env_cfg_path:
        candidates.append(env_cfg_path)
    candidates.append("./config.ini")

    for path in candidates:
        if path and os.path.exists(path):
            return os.path.abspath(path)

    return os.path.abspath(candidates[0])


class Config:
    """
    Loads the client configuration from an INI file.

    The server endpoint is static configuration; SERVER_HOST, SERVER_PORT and
    LOGGING_LEVEL in the environment take precedence over the file. Read
    timeouts are protocol constants and are deliberately not read here.
    """

    def __init__(self, ini_path: str):
        self._path = os.path.abspath(ini_path)
        if not os.path.exists(self._path):
            raise ConfigError(f"INI file not found: {self._path}")

        cp = configparser.ConfigParser()
        cp.read(self._path)

        if "server" not in cp:
            raise ConfigError(f"Section [server] missing in {self._path}")
        s = cp["server"]

        host = os.getenv("SERVER_HOST", s.get("host", "")).strip()
        if not host:
            raise ConfigError("server host is empty")

        raw_port = os.getenv("SERVER_PORT", s.get("port", ""))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"server port could not be parsed: {raw_port!r}")
        if not 0 < port < 65536:
            raise ConfigError(f"server port out of range: {port}")

        self.server = ServerCfg(host=host, port=port)
        self.logging_level = os.getenv(
            "LOGGING_LEVEL",
            cp.get("DEFAULT", "LOGGING_LEVEL", fallback=DEFAULT_LOGGING_LEVEL),
        ).upper()

    @property
    def path(self) -> str:
        return self._path
