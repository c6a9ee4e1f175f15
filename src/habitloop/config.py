"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitLoop"
    DB_FILENAME = "habitloop.db"
    EXPORT_VERSION = "1.0"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("HABITLOOP_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("HABITLOOP_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITLOOP_DATABASE_URL", self._build_sqlite_url())
        self.TIMEZONE = self._resolve_timezone(os.getenv("HABITLOOP_TIMEZONE", "UTC"))
        self.EXPORT_RETENTION = _env_int("HABITLOOP_EXPORT_RETENTION", 5)
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("HABITLOOP_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file, logs and exports live."""

        data_root = os.getenv("HABITLOOP_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _resolve_timezone(name: str) -> str:
        """Validate the timezone used to compute day keys."""

        name = (name or "UTC").strip()
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"HABITLOOP_TIMEZONE is not a known timezone: {name!r}") from exc
        return name

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def exports_dir(self) -> Path:
        return self.DATA_DIR / "exports"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """In-memory database for the test suite."""

    TESTING = True
    __test__ = False

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = os.getenv("HABITLOOP_TEST_DATABASE_URL", "sqlite://")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        options = super().sqlalchemy_engine_options()
        if self.DATABASE_URL == "sqlite://":
            # A single shared connection keeps the in-memory schema alive.
            from sqlalchemy.pool import StaticPool

            options["poolclass"] = StaticPool
        return options
