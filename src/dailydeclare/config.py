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

    APP_NAME = "DailyDeclare"
    DB_FILENAME = "dailydeclare.db"
    LOG_FILENAME = "dailydeclare.log"
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 5

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("DAILYDECLARE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("DAILYDECLARE_DATABASE_URL", self._build_sqlite_url())
        self.NOTIFICATIONS_ALLOWED = _env_bool("DAILYDECLARE_NOTIFICATIONS_ALLOWED", default=True)
        self.TIMEZONE = os.getenv("DAILYDECLARE_TIMEZONE") or None

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("DAILYDECLARE_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to the per-user data folder.
            fallback_path = Path.home() / ".local" / "share" / self.APP_NAME.lower()
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # APScheduler delivers reminders from its own worker thread.
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class TestConfig(BaseConfig):
    """Configuration rooted in a caller-supplied directory."""

    __test__ = False

    def __init__(self, data_dir: Path | str) -> None:
        self._data_dir_override = Path(data_dir)
        super().__init__()
        self.DATABASE_URL = self._build_sqlite_url()
        self.NOTIFICATIONS_ALLOWED = True

    def _resolve_data_dir(self) -> Path:
        path = self._data_dir_override.expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path
