"""
Typed runtime settings, read from the environment once at startup.
"""

from __future__ import annotations

import os
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field, model_validator


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq's sslmode query parameter.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class DatabaseSettings(BaseModel):
    dsn: str = Field(..., min_length=1)
    min_size: int = Field(default=1, ge=1)
    max_size: int = Field(default=5, ge=1)
    command_timeout: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "DatabaseSettings":
        if self.max_size < self.min_size:
            raise ValueError("max_size must be >= min_size.")
        return self


class Settings(BaseModel):
    database: DatabaseSettings
    create_schema: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        url = os.environ.get("DATABASE_URL", "").strip()
        if not url:
            raise RuntimeError("DATABASE_URL is not set.")

        return cls(
            database=DatabaseSettings(
                dsn=sanitize_database_url(url),
                min_size=_env_int("DB_POOL_MIN_SIZE", 1),
                max_size=_env_int("DB_POOL_MAX_SIZE", 5),
                command_timeout=_env_float("DB_COMMAND_TIMEOUT", 30.0),
            ),
            create_schema=_env_bool("ATOMPUB_CREATE_SCHEMA", True),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
