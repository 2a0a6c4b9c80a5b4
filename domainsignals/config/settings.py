"""Worker settings from environment variables.

The entry point calls load_dotenv() first; this module only reads a mapping.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from psycopg.conninfo import make_conninfo

from domainsignals.processing.domain_types import SignalConfig

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5


@dataclass(frozen=True)
class WorkerSettings:
    signals: SignalConfig
    pg_dsn: str
    idle_seconds: float = 10.0
    fetch_timeout: float = 30.0
    fetch_connect_timeout: float = 10.0
    fetch_max_bytes: int = 20_000_000
    allow_private_hosts: bool = False
    mode: str = "daemon"
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _split_list(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def _env_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        value = 0
    if value < 1:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    return value


def build_pg_dsn(env: Mapping[str, str]) -> str:
    """PG_DSN wins; otherwise assemble one from the DB_* variables."""
    dsn = (env.get("PG_DSN") or "").strip()
    if dsn:
        return dsn
    parts = {
        "host": env.get("DB_HOST"),
        "port": env.get("DB_PORT"),
        "user": env.get("DB_USER"),
        "password": env.get("DB_PASSWORD"),
        "dbname": env.get("DB_NAME"),
    }
    return make_conninfo(**{k: v.strip() for k, v in parts.items() if v and v.strip()})


def load_settings(env: Optional[Mapping[str, str]] = None) -> WorkerSettings:
    env = os.environ if env is None else env
    signals = SignalConfig(
        frameworks=_split_list(env.get("FRAMEWORKS")),
        help_desks=_split_list(env.get("HELP_DESKS")),
        batch_size=_env_positive_int(env, "MAX_CONCURRENT_TASKS", DEFAULT_BATCH_SIZE),
    )
    mode = (env.get("SCAN_MODE") or "daemon").strip().lower()
    return WorkerSettings(
        signals=signals,
        pg_dsn=build_pg_dsn(env),
        idle_seconds=max(0.0, _env_float(env, "SCAN_IDLE_SECONDS", 10.0)),
        fetch_timeout=_env_float(env, "FETCH_TIMEOUT_S", 30.0),
        fetch_connect_timeout=_env_float(env, "FETCH_CONNECT_TIMEOUT_S", 10.0),
        fetch_max_bytes=_env_positive_int(env, "FETCH_MAX_BYTES", 20_000_000),
        allow_private_hosts=_env_bool(env, "FETCH_ALLOW_PRIVATE_HOSTS", False),
        mode="once" if mode == "once" else "daemon",
        log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        log_file=(env.get("LOG_FILE") or "").strip() or None,
    )
