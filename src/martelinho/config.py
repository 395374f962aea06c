"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the MongoDB connection, the business timezone and the log location
from the environment (a `.env` at the project root is loaded first).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_TIMEZONE = "America/Sao_Paulo"

@dataclass(frozen=True)
class Settings:
    """Container for application configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        mongo_tls: Whether to connect with TLS (certifi CA bundle).
        timezone: IANA name of the shop's timezone; service dates and the
            dashboard's "today" are calendar dates in this zone.
        log_path: File that receives application logs.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool
    timezone: str
    log_path: Path

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `APP_TIMEZONE` is not a known IANA timezone.
    """
    mongo_uri = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017,localhost:27018,localhost:27019/?replicaSet=rs0",
    )
    mongo_db = os.getenv("MONGO_DB", "martelinho")
    mongo_tls = _env_flag("MONGO_TLS")
    timezone = os.getenv("APP_TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
    log_path = Path(os.getenv("LOG_PATH", "logs/martelinho.log"))

    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(
            f"APP_TIMEZONE={timezone!r} is not a valid IANA timezone "
            "(example: 'America/Sao_Paulo')."
        ) from exc

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        timezone=timezone,
        log_path=log_path,
    )
