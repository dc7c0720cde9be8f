"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "StreakOne"
    DB_FILENAME = "streakone.db"
    DEFAULT_STORAGE_KEY = "@streak_data"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("STREAKONE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("STREAKONE_DATABASE_URL", self._build_sqlite_url())
        self.STORAGE_KEY = os.getenv("STREAKONE_STORAGE_KEY", self.DEFAULT_STORAGE_KEY)
        self.REMINDER_TIMEZONE = os.getenv("STREAKONE_REMINDER_TIMEZONE") or None
        if not self.STORAGE_KEY.strip():
            raise ValueError("STREAKONE_STORAGE_KEY must not be empty.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("STREAKONE_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {"check_same_thread": False}
        return {"connect_args": connect_args}


class TestConfig(BaseConfig):
    """Configuration for tests: in-memory SQLite, no files besides logs."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        options = super().sqlalchemy_engine_options()
        # One shared connection so every session sees the same in-memory database.
        options["poolclass"] = StaticPool
        return options


__all__ = ["BaseConfig", "TestConfig"]
