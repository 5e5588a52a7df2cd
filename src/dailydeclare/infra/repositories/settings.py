"""Settings repository implementing the persisted key-value store."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from ...errors import StorageUnavailable
from ...logging_config import get_logger
from ...models.settings import AppSetting

logger = get_logger(__name__)


@contextmanager
def _storage_errors(action: str, keys: Iterable[str] = ()) -> Iterator[None]:
    """Translate SQLAlchemy failures into StorageUnavailable."""
    try:
        yield
    except SQLAlchemyError as exc:
        key_list = sorted(keys)
        logger.error(
            f"Storage {action} failed: {exc}",
            extra={"action": action, "keys": key_list},
        )
        raise StorageUnavailable(f"Storage {action} failed for {key_list or 'store'}") from exc


class SQLModelSettingsRepository:
    """SQLModel-based key-value store over the ``app_setting`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with _storage_errors("read", [key]):
            with self.session_factory() as session:
                setting = session.get(AppSetting, key)
                return setting.value if setting else None

    def set(self, key: str, value: str) -> None:
        with _storage_errors("write", [key]):
            with self.session_factory() as session:
                self._upsert(session, key, value)
                session.commit()

    def multi_get(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}
        with _storage_errors("read", wanted):
            with self.session_factory() as session:
                rows = session.exec(select(AppSetting).where(col(AppSetting.key).in_(wanted))).all()
                found = {row.key: row.value for row in rows}
        return {key: found.get(key) for key in wanted}

    def multi_set(self, values: Mapping[str, str]) -> None:
        """Write every pair in one transaction; a failure leaves none applied."""
        if not values:
            return
        with _storage_errors("write", values.keys()):
            with self.session_factory() as session:
                for key, value in values.items():
                    self._upsert(session, key, value)
                session.commit()

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]) -> None:
        doomed = list(keys)
        if not doomed:
            return
        with _storage_errors("delete", doomed):
            with self.session_factory() as session:
                rows = session.exec(select(AppSetting).where(col(AppSetting.key).in_(doomed))).all()
                for row in rows:
                    session.delete(row)
                session.commit()

    def list_keys(self, prefix: str = "") -> list[str]:
        with _storage_errors("read"):
            with self.session_factory() as session:
                statement = select(AppSetting.key).order_by(AppSetting.key)
                if prefix:
                    statement = statement.where(col(AppSetting.key).startswith(prefix))
                return list(session.exec(statement).all())

    def clear(self) -> None:
        with _storage_errors("clear"):
            with self.session_factory() as session:
                for row in session.exec(select(AppSetting)).all():
                    session.delete(row)
                session.commit()
        logger.warning("All stored settings cleared")

    @staticmethod
    def _upsert(session: Session, key: str, value: str) -> None:
        setting = session.get(AppSetting, key)
        if setting:
            setting.value = value
            setting.updated_at = datetime.now(timezone.utc)
        else:
            setting = AppSetting(key=key, value=value)
        session.add(setting)


__all__ = ["SQLModelSettingsRepository"]
