"""
Runtime settings read from the environment (and an optional ``.env`` file).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

DEFAULT_ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
# requests per second
DEFAULT_RATE_LIMIT = 3
DEFAULT_FRESHNESS_HOURS = 24
DEFAULT_JOB_TTL = 300
DEFAULT_REAP_INTERVAL = 60


def _env(env: Mapping[str, str], key: str, default: str | None = None) -> str | None:
    v = env.get(key)
    if v is None or str(v).strip() == "":
        return default
    return v.strip()


def _as_int(env: Mapping[str, str], key: str, default: int) -> int:
    v = _env(env, key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError as exc:
        raise ValueError(f"`{key}` must be an integer, got `{v}`") from exc


def _as_float(env: Mapping[str, str], key: str, default: float) -> float:
    v = _env(env, key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError as exc:
        raise ValueError(f"`{key}` must be a number, got `{v}`") from exc


@dataclass(frozen=True)
class Settings:
    """
    Settings of the abicat service.

    Use :meth:`from_env` to build them from environment variables:

    +----------------------------+------------------------------------+
    | Variable                   | Setting                            |
    +============================+====================================+
    | ``HOST`` / ``PORT``        | HTTP bind address                  |
    +----------------------------+------------------------------------+
    | ``ABICAT_CACHE_PATH``      | sqlite3 database path              |
    +----------------------------+------------------------------------+
    | ``ETHERSCAN_API_KEY``      | Etherscan API key                  |
    +----------------------------+------------------------------------+
    | ``ETHERSCAN_API_URL``      | Etherscan endpoint                 |
    +----------------------------+------------------------------------+
    | ``ETHERSCAN_TIMEOUT``      | Etherscan request timeout, seconds |
    +----------------------------+------------------------------------+
    | ``ETHERSCAN_RATE_LIMIT``   | Etherscan requests per second      |
    +----------------------------+------------------------------------+
    | ``ABICAT_FRESHNESS_HOURS`` | refetch window for incomplete data |
    +----------------------------+------------------------------------+
    | ``ABICAT_JOB_TTL``         | job lifetime, seconds              |
    +----------------------------+------------------------------------+
    | ``ABICAT_REAP_INTERVAL``   | job sweep period, seconds          |
    +----------------------------+------------------------------------+
    | ``LOG_LEVEL``              | root logging level                 |
    +----------------------------+------------------------------------+
    """

    host: str = "127.0.0.1"
    port: int = 8080
    cache_path: str = "cache.sqlite3"
    etherscan_api_key: str | None = None
    etherscan_api_url: str = DEFAULT_ETHERSCAN_API_URL
    etherscan_timeout: float = 30.0
    rate_limit: int = DEFAULT_RATE_LIMIT
    freshness_hours: float = DEFAULT_FRESHNESS_HOURS
    job_ttl: float = DEFAULT_JOB_TTL
    reap_interval: float = DEFAULT_REAP_INTERVAL
    log_level: str = "INFO"

    def __post_init__(self):
        if self.rate_limit <= 0:
            raise ValueError("rate limit must be positive")
        if self.job_ttl <= 0 or self.reap_interval <= 0:
            raise ValueError("job ttl and reap interval must be positive")

    @property
    def freshness_window(self) -> float:
        """
        Freshness window in seconds
        """
        return self.freshness_hours * 3600

    @staticmethod
    def from_env(
        env: Mapping[str, str] | None = None, dotenv_path: str | Path | None = None
    ) -> Settings:
        """
        Build settings from environment variables.

        Args:
            env: variables to read, defaults to ``os.environ``
            dotenv_path: ``.env`` file loaded into ``os.environ`` first
                         (only when ``env`` is not given). Defaults to
                         ``.env`` in the working directory.

        Returns:
            An instance of :class:`Settings`
        """
        if env is None:
            path = Path(dotenv_path or ".env")
            if path.exists():
                load_dotenv(dotenv_path=path)
            env = os.environ

        return Settings(
            host=_env(env, "HOST", "127.0.0.1"),
            port=_as_int(env, "PORT", 8080),
            cache_path=_env(env, "ABICAT_CACHE_PATH", "cache.sqlite3"),
            etherscan_api_key=_env(env, "ETHERSCAN_API_KEY"),
            etherscan_api_url=_env(env, "ETHERSCAN_API_URL", DEFAULT_ETHERSCAN_API_URL),
            etherscan_timeout=_as_float(env, "ETHERSCAN_TIMEOUT", 30.0),
            rate_limit=_as_int(env, "ETHERSCAN_RATE_LIMIT", DEFAULT_RATE_LIMIT),
            freshness_hours=_as_float(
                env, "ABICAT_FRESHNESS_HOURS", DEFAULT_FRESHNESS_HOURS
            ),
            job_ttl=_as_float(env, "ABICAT_JOB_TTL", DEFAULT_JOB_TTL),
            reap_interval=_as_float(env, "ABICAT_REAP_INTERVAL", DEFAULT_REAP_INTERVAL),
            log_level=_env(env, "LOG_LEVEL", "INFO"),
        )
