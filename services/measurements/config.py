from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from isak.reference.adjustment import DEFAULT_ADJUSTMENT_FACTOR


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()

EVENT_BACKENDS = ("logging", "redis")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or value == "":
        raise ValueError(f"Environment variable {name} is required")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


@dataclass(frozen=True)
class MeasurementsConfig:
    database_url: str
    id_prefix: str
    id_length: int
    adjustment_factor: float
    reference_tables_path: str | None
    events_backend: str
    redis_host: str
    redis_port: int
    redis_db: int
    redis_channel: str
    log_level: str

    @property
    def sqlalchemy_dsn(self) -> str:
        dsn = self.database_url
        if dsn.startswith("postgresql://"):
            return dsn.replace("postgresql://", "postgresql+psycopg://", 1)
        return dsn


def load_config() -> MeasurementsConfig:
    events_backend = os.getenv("MEASUREMENTS_EVENTS_BACKEND", "logging").lower()
    if events_backend not in EVENT_BACKENDS:
        raise ValueError(
            "Environment variable MEASUREMENTS_EVENTS_BACKEND must be one of "
            + ", ".join(EVENT_BACKENDS)
        )
    return MeasurementsConfig(
        database_url=_require_env("MEASUREMENTS_DATABASE_URL"),
        id_prefix=os.getenv("MEASUREMENTS_ID_PREFIX", "msr"),
        id_length=_env_int("MEASUREMENTS_ID_LENGTH", 16),
        adjustment_factor=_env_float(
            "MEASUREMENTS_ADJUSTMENT_FACTOR", DEFAULT_ADJUSTMENT_FACTOR
        ),
        reference_tables_path=os.getenv("MEASUREMENTS_REFERENCE_TABLES_PATH") or None,
        events_backend=events_backend,
        redis_host=os.getenv("MEASUREMENTS_REDIS_HOST", "localhost"),
        redis_port=_env_int("MEASUREMENTS_REDIS_PORT", 6379),
        redis_db=_env_int("MEASUREMENTS_REDIS_DB", 0),
        redis_channel=os.getenv("MEASUREMENTS_REDIS_CHANNEL", "measurements"),
        log_level=os.getenv("MEASUREMENTS_LOG_LEVEL", "INFO").upper(),
    )
